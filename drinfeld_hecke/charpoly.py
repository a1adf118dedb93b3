"""
charpoly.py: Characteristic polynomials of Hecke operators from power-sum traces.

Newton's identities recover e_1..e_{p-1} directly. From index p on they
degenerate (the identity for e_r divides by r, which vanishes when p | r), so
e_p..e_d are solved from the identities of the indices r in [p+1, N] prime
to p, one linear equation each.
"""
from .hecke_config import matrix, vector, DEBUG, HeckeInputError, ReconstructionError
from .combinatorics import cuspdim, characteristic, trace_sequence_length
from .substrate import base_rings
from .trace_formula import trace_sequence


def _newton_elementary(traces, count, K):
    # e_i = (1/i) sum_{j=1}^i (-1)^(j-1) e_{i-j} Tr_j, valid while i < p
    e = [K(1)]
    for i in range(1, count + 1):
        s = K(0)
        for j in range(1, i + 1):
            s += (-1)**(j - 1) * e[i - j] * traces[j - 1]
        e.append(s / i)
    return e


def correction_matrix(traces, d, p, K):
    """
    Rows r = p+1..N with p not dividing r of the Newton identities

        sum_{i=0}^{min(r-1,d)} (-1)^(r-i-1) Tr_{r-i} e_i - r e_r = 0

    (the e_r term only when r <= d), as a (d-p+1) x (d+1) matrix over K.
    """
    N = d + (d - 1) // (p - 1)
    rows = []
    for r in range(p + 1, N + 1):
        if r % p == 0:
            continue
        row = [K(0)] * (d + 1)
        for i in range(min(r - 1, d) + 1):
            row[i] += (-1)**(r - i - 1) * traces[r - i - 1]
        if r <= d:
            row[r] -= r
        rows.append(row)
    return matrix(K, len(rows), d + 1, rows)


def elementary_symmetric_from_traces(traces, d, p, K, k=None, l=None, q=None, debug=DEBUG):
    """
    Elementary symmetric functions [e_0, ..., e_d] of d unknowns whose power
    sums are traces[0], traces[1], ... over a field K of characteristic p.
    Raises ReconstructionError when the correction system is rank deficient.
    """
    traces = [K(t) for t in traces]
    e = _newton_elementary(traces, min(p - 1, d), K)
    if d < p:
        return e

    M = correction_matrix(traces, d, p, K)
    unknowns = d - p + 1
    U = M.matrix_from_columns(range(p, d + 1))
    known = M.matrix_from_columns(range(p))
    rhs = -(known * vector(K, e))
    rank = U.rank()
    if debug:
        print(f"[charpoly] correction matrix {M.nrows()}x{M.ncols()}, rank {rank}/{unknowns}")
    if rank < unknowns:
        raise ReconstructionError(k, l, q, rank, unknowns)

    echelon = U.augment(rhs).echelon_form()
    solution = echelon.column(unknowns)
    return e + [solution[i] for i in range(unknowns)]


def char_pol_from_list(k, l, q, traces, debug=DEBUG):
    """
    Characteristic polynomial of T_P on S_{k,l} from the traces of T_P^1..T_P^N.
    Returns the zero polynomial when S_{k,l} = 0.
    """
    q = int(q)
    _, _, K, S = base_rings(q)
    d = cuspdim(k, l, q)
    if d == 0:
        return S(0)
    N = trace_sequence_length(k, l, q)
    if len(traces) < N:
        raise HeckeInputError(f"need {N} traces for k={k}, l={l}, q={q}, got {len(traces)}")

    p = characteristic(q)
    e = elementary_symmetric_from_traces(traces[:N], d, p, K, k=k, l=l, q=q, debug=debug)
    return S([(-1)**(d - m) * e[d - m] for m in range(d + 1)])


def char_pol(k, l, q, P, data=None, debug=DEBUG, **kwargs):
    """Characteristic polynomial of T_P on S_{k,l}, straight from the trace formula."""
    q = int(q)
    if cuspdim(k, l, q) == 0:
        _, _, _, S = base_rings(q)
        return S(0)
    traces = trace_sequence(k, l, q, P, data=data, debug=debug, **kwargs)
    return char_pol_from_list(k, l, q, traces, debug=debug)
