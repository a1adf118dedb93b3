"""
trace_formula.py: Traces of powers of T_P on S_{k,l} from isogeny-class lists.

Two evaluations of the same sum are provided. trace_from_list expands
h_{k-2}(alpha, beta) in the coefficients (a, b) of each Weil polynomial and is
the one the pipeline uses; trace_from_roots works with alpha, beta in
K[X]/(X^2 + aX + bP^n) and serves as a cross-check.
"""
from .hecke_config import DEBUG, DEFAULT_WEIGHTING, DrinfeldHeckeError, HeckeInputError
from .combinatorics import lucas, hom_sym, canonical_type, characteristic, trace_sequence_length
from .substrate import base_rings
from .isogeny import enumerate_isogeny_classes


def _check_weight(k):
    k = int(k)
    if k <= 1:
        raise HeckeInputError(f"weight k={k} must be > 1")
    return k


def _type_exponent(k, l, q):
    # exponent of alpha*beta/P^n attached to the type
    return (l - k + 1) % (q - 1)


def trace_from_list(k, l, q, isogeny_list):
    """
    Trace of T_P^n on S_{k,l}, where isogeny_list = (P^n, record, ...):

        sum over records (a, b, N), j = 0..floor((k-2)/2) of
        (-1)^j C(k-2-j, j) N (-a)^(k-2-2j) b^((j+l-k+1) mod (q-1)) (P^n)^j
    """
    k = _check_weight(k)
    q = int(q)
    l = canonical_type(l, q)
    p = characteristic(q)
    _, _, K, _ = base_rings(q)
    c = K(isogeny_list[0])
    t = _type_exponent(k, l, q)

    terms = []
    for j in range((k - 2) // 2 + 1):
        binom = lucas(k - 2 - j, j, p)
        if binom:
            terms.append((j, (-1)**j * binom, c**j))

    total = K(0)
    for a, b, N in isogeny_list[1:]:
        if N == 0:
            continue
        a = K(a)
        for j, coeff, c_power in terms:
            e = (j + t) % (q - 1)
            total += coeff * N * (-a)**(k - 2 - 2 * j) * K(b)**e * c_power
    return total


def trace_from_roots(k, l, q, isogeny_list):
    """
    Same trace as trace_from_list, summing N h_{k-2}(alpha, beta) (alpha beta / P^n)^t
    with alpha the class of X in K[X]/(X^2 + aX + bP^n) and beta = -a - alpha.
    """
    k = _check_weight(k)
    q = int(q)
    l = canonical_type(l, q)
    _, _, K, S = base_rings(q)
    c = K(isogeny_list[0])
    c_inv = ~c
    t = _type_exponent(k, l, q)

    total = K(0)
    for a, b, N in isogeny_list[1:]:
        if N == 0:
            continue
        a = K(a)
        Q = S.quotient(S([K(b) * c, a, K(1)]), 'alpha')
        alpha = Q.gen()
        beta = -a - alpha
        value = (N * hom_sym(k - 2, alpha, beta) * (alpha * beta * c_inv)**t).lift()
        if value.degree() > 0:
            raise DrinfeldHeckeError(f"non-symmetric value {value} for record ({a}, {b}, {N})")
        total += value[0]
    return total


def hecke_trace(k, l, q, n, P, weighting=DEFAULT_WEIGHTING, num_workers=None,
                stats=None, progress=False, debug=DEBUG):
    """Trace of (T_P)^n on S_{k,l}."""
    k = _check_weight(k)
    isogeny_list = enumerate_isogeny_classes(q, n, P, weighting=weighting, num_workers=num_workers,
                                             stats=stats, progress=progress, debug=debug)
    if stats is not None:
        stats.incr('traces_evaluated')
    return trace_from_list(k, l, q, isogeny_list)


def simple_hecke_trace(k, l, q, **kwargs):
    """Trace of T_T on S_{k,l}."""
    return hecke_trace(k, l, q, 1, [0, 1], **kwargs)


def isogeny_data(q, P, n_max, **kwargs):
    """Isogeny-class lists {n: list} for n = 1..n_max, the reusable input of every trace."""
    return {n: enumerate_isogeny_classes(q, n, P, **kwargs) for n in range(1, n_max + 1)}


def trace_sequence(k, l, q, P, length=None, data=None, stats=None, **kwargs):
    """
    [Tr(T_P^n | S_{k,l}) for n = 1..length]; length defaults to the number of
    traces char_pol_from_list needs. data, when given, is an isogeny_data dict.
    """
    k = _check_weight(k)
    if length is None:
        length = trace_sequence_length(k, l, q)
    traces = []
    for n in range(1, length + 1):
        if data is not None and n in data:
            traces.append(trace_from_list(k, l, q, data[n]))
            if stats is not None:
                stats.incr('traces_evaluated')
        else:
            traces.append(hecke_trace(k, l, q, n, P, stats=stats, **kwargs))
    return traces
