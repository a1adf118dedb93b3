"""
isogeny.py: Weighted enumeration of rank-2 isogeny classes over the residue field of P^n.

The output of enumerate_isogeny_classes depends only on (q, n, P); it is built
once and reused for every weight and type by the trace formula.
"""
import itertools
import multiprocessing
from typing import NamedTuple
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed

from tqdm import tqdm
from colorama import Fore, Style

from .hecke_config import (
    PolynomialRing, DEBUG, PROFILE, DEFAULT_MAX_CACHE_SIZE, DEFAULT_WEIGHTING, WEIGHTINGS,
    ENUMERATION_WORKERS, PARALLEL_MIN_CANDIDATES, ENUMERATION_CHUNK_SIZE, HeckeInputError
)
from .substrate import (
    base_rings, validate_prime, quadratic, is_imaginary_root, place_type,
    maximal_order_class_number, factor_polynomial, order_conductor, order_class_number
)


class WeilNumberRecord(NamedTuple):
    """X^2 + a X + b P^n is a Weil polynomial shared by N isomorphism classes."""
    a: object
    b: object
    N: int


_ISOGENY_CACHE = {}


def clear_isogeny_cache():
    _ISOGENY_CACHE.clear()


# ==============================================================
# === Class number weighting ===================================
# ==============================================================

def hurwitz_class_number(D, q, f=None, debug=DEBUG):
    """
    Class number of the maximal order of K(sqrt(D)), corrected at the primes
    dividing D to an even power: 0 if one of them splits, otherwise doubled
    for each of them that ramifies.

    f, when given, is the quadratic defining the extension (needed in
    characteristic 2, where the discriminant is a square).
    """
    _, _, K, S = base_rings(q)
    D = K(D)
    if f is None:
        f = S([-D, K(0), K(1)])
    h = maximal_order_class_number(f, debug=debug)
    if h == 0:
        return 0
    ramified = 0
    for g, e in factor_polynomial(D):
        if e % 2:
            continue
        kind = place_type(f, g)
        if kind == 'split':
            if debug:
                print(f"[hurwitz] D={D}: {g} splits, weight 0")
            return 0
        if kind == 'ramified':
            ramified += 1
    return h * 2**ramified


def class_number_of_orders(D, q, f=None, debug=DEBUG):
    """
    Number of isomorphism classes with Weil polynomial f: the sum of h(O) over
    the orders O between A[X]/(f) and the maximal order, i.e. over the monic
    divisors g of the conductor of A[X]/(f).
    """
    _, _, K, S = base_rings(q)
    if f is None:
        f = S([-K(D), K(0), K(1)])
    h = maximal_order_class_number(f, debug=debug)
    if h == 0:
        return 0
    conductor = order_conductor(f)
    factors = list(conductor.factor())
    total = 0
    for exponents in itertools.product(*[range(e + 1) for _, e in factors]):
        g = conductor.parent()(1)
        for (pi, _), j in zip(factors, exponents):
            g *= pi**j
        total += order_class_number(f, g, h=h)
    if debug:
        print(f"[orders] f={f}: conductor={conductor}, h={h}, total={total}")
    return total


def _class_number_weight(f, D, q, weighting, debug=DEBUG):
    if weighting == 'orders':
        return class_number_of_orders(D, q, f=f, debug=debug)
    if weighting == 'hurwitz':
        return hurwitz_class_number(D, q, f=f, debug=debug)
    return maximal_order_class_number(f, debug=debug)


# ==============================================================
# === Ordinary case ============================================
# ==============================================================

def _trace_polynomial_digits(q, n, P):
    """
    Coefficient vectors (low to high) of every z in GF(q)[T] with
    deg z <= deg(P) * n / 2.
    """
    F, _, _, _ = base_rings(q)
    length = (P.degree() * n) // 2 + 1
    return itertools.product(list(F), repeat=length)


def _ordinary_chunk_worker(args):
    """
    Test every (z, y) with z in the chunk and y in GF(q)*.
    Returns (found, tested) with found a list of (z digits, y, N).
    """
    q, n, P_coeffs, chunk, weighting = args
    F, A, K, _ = base_rings(q)
    P = A(list(P_coeffs))
    c = K(P**n)
    found = []
    tested = 0
    for digits in chunk:
        z = A(list(digits))
        if z == 0 or z.gcd(P) != 1:
            continue
        for y in F:
            if y == 0:
                continue
            tested += 1
            f = quadratic(z, y * c, q)
            if not is_imaginary_root(f):
                continue
            D = K(z)**2 - 4 * y * c
            found.append((tuple(digits), y, _class_number_weight(f, D, q, weighting)))
    return found, tested


def make_executor(max_workers):
    """
    Try to create a ProcessPoolExecutor with 'fork' on Linux, fall back to threads.
    """
    try:
        ctx = multiprocessing.get_context("fork")
        return ProcessPoolExecutor(max_workers=max_workers, mp_context=ctx)
    except ValueError as e:
        if DEBUG:
            print(f"Warning: couldn't start process pool with fork: {e}. Falling back to threads.")
        return ThreadPoolExecutor(max_workers=max_workers)


@PROFILE
def _ordinary_records(q, n, P, weighting, num_workers, stats=None, progress=False, debug=DEBUG):
    F, A, K, _ = base_rings(q)
    digits = list(_trace_polynomial_digits(q, n, P))
    chunks = [digits[i:i + ENUMERATION_CHUNK_SIZE]
              for i in range(0, len(digits), ENUMERATION_CHUNK_SIZE)]
    args_list = [(q, n, tuple(P.list()), chunk, weighting) for chunk in chunks]
    candidates = len(digits) * (q - 1)

    results = [None] * len(args_list)
    desc = f"{Fore.CYAN}Enumerating Weil numbers q={q} n={n}{Style.RESET_ALL}"
    if num_workers > 1 and candidates >= PARALLEL_MIN_CANDIDATES:
        if debug:
            print(f"[enumerate] {candidates} candidates over {len(chunks)} chunks, {num_workers} workers")
        with make_executor(num_workers) as executor:
            futures = {executor.submit(_ordinary_chunk_worker, args): idx
                       for idx, args in enumerate(args_list)}
            for future in tqdm(as_completed(futures), total=len(futures), desc=desc,
                               disable=not progress):
                results[futures[future]] = future.result()
    else:
        for idx, args in enumerate(tqdm(args_list, desc=desc, disable=not progress)):
            results[idx] = _ordinary_chunk_worker(args)

    records = []
    for found, tested in results:
        if stats is not None:
            stats.incr('candidates_tested', tested)
        for z_digits, y, N in found:
            records.append(WeilNumberRecord(K(A(list(z_digits))), F(y), int(N)))
    return records


# ==============================================================
# === Supersingular cases ======================================
# ==============================================================

def _supersingular_records(q, n, P, debug=DEBUG):
    """Returns {case: records} for the three supersingular families."""
    F, A, K, _ = base_rings(q)
    c = K(P**n)
    cases = {1: [], 2: [], 3: []}

    if n % 2 == 1:
        for x in F:
            if x == 0:
                continue
            if not is_imaginary_root(quadratic(0, x * c, q)):
                continue
            h = maximal_order_class_number(quadratic(0, x * K(P), q), debug=debug)
            cases[1].append(WeilNumberRecord(K(0), x, int(h)))
        return cases

    half = K(P**(n // 2))
    if P.degree() % 2 == 1:
        R = PolynomialRing(F, 'Y')
        for v in F:
            for m in F:
                if m != 0 and R([m, v, 1]).is_irreducible():
                    cases[2].append(WeilNumberRecord(v * half, m, 2))
    for x in F:
        if x != 0:
            # (X - x P^(n/2))^2
            cases[3].append(WeilNumberRecord(-2 * x * half, x**2, 1))
    return cases


# ==============================================================
# === Public entry point =======================================
# ==============================================================

def enumerate_isogeny_classes(q, n, P, weighting=DEFAULT_WEIGHTING, num_workers=None,
                              stats=None, progress=False, debug=DEBUG):
    """
    Weighted list of Weil numbers for characteristic P over the degree n*deg(P)
    extension of GF(q).

    Returns a tuple whose first entry is P^n (in K) followed by one
    WeilNumberRecord per Weil polynomial: the ordinary ones, then the
    supersingular families. Memoized on (q, n, P, weighting).
    """
    n = int(n)
    if n < 1:
        raise HeckeInputError(f"n={n} must be a positive integer")
    if weighting not in WEIGHTINGS:
        raise HeckeInputError(f"unknown weighting {weighting!r}, expected one of {WEIGHTINGS}")
    q = int(q)
    P = validate_prime(P, q)
    key = (q, n, tuple(P.list()), weighting)
    cached = _ISOGENY_CACHE.get(key)
    if cached is not None:
        if stats is not None:
            stats.incr('isogeny_cache_hits')
        return cached

    if num_workers is None:
        num_workers = ENUMERATION_WORKERS
    _, _, K, _ = base_rings(q)

    if stats is not None:
        stats.start_phase('enumerate_ordinary')
    ordinary = _ordinary_records(q, n, P, weighting, num_workers, stats=stats,
                                 progress=progress, debug=debug)
    if stats is not None:
        stats.end_phase('enumerate_ordinary')
        stats.start_phase('enumerate_supersingular')
    supersingular = _supersingular_records(q, n, P, debug=debug)
    if stats is not None:
        stats.end_phase('enumerate_supersingular')
        stats.incr('records_ordinary', len(ordinary))
        for case, records in supersingular.items():
            stats.incr(f'records_supersingular_{case}', len(records))
        stats.record_isogeny_list(key, ordinary + supersingular[1] + supersingular[2] + supersingular[3])

    result = (K(P**n),) + tuple(ordinary) + tuple(supersingular[1]) \
        + tuple(supersingular[2]) + tuple(supersingular[3])
    if debug:
        print(f"[enumerate] q={q} n={n} P={P}: {len(result) - 1} records, "
              f"mass {total_multiplicity(result)}")

    if len(_ISOGENY_CACHE) >= DEFAULT_MAX_CACHE_SIZE:
        _ISOGENY_CACHE.pop(next(iter(_ISOGENY_CACHE)))
    _ISOGENY_CACHE[key] = result
    return result


def total_multiplicity(isogeny_list):
    """Number of isomorphism classes counted by an isogeny-class list."""
    return sum(int(record.N) for record in isogeny_list[1:])
