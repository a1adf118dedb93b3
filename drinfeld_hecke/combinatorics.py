"""
combinatorics.py: Binomials mod p, homogeneous symmetric sums, cusp form dimensions.
"""
from .hecke_config import GF, binomial, lru_cache, DEFAULT_MAX_CACHE_SIZE, GF_GENERATOR_NAME


@lru_cache(maxsize=DEFAULT_MAX_CACHE_SIZE)
def lucas(n, m, p):
    """
    Binomial coefficient C(n, m) mod p via Lucas's theorem.
    Expands n and m in base p and multiplies the digit binomials mod p.
    Returns 0 when m > n, m < 0, or some digit of m exceeds the digit of n.
    """
    n, m, p = int(n), int(m), int(p)
    if m < 0 or m > n:
        return 0
    result = 1
    while n or m:
        n_digit, m_digit = n % p, m % p
        if m_digit > n_digit:
            return 0
        result = (result * int(binomial(n_digit, m_digit))) % p
        n //= p
        m //= p
    return result


def hom_sym(m, a, b):
    """Degree-m complete homogeneous symmetric polynomial sum_{i=0}^m a^i b^(m-i)."""
    if m < 0:
        return 0 * a
    total = 0 * a
    for i in range(m + 1):
        total += a**i * b**(m - i)
    return total


def canonical_type(l, q):
    # types live in Z/(q-1), represented by 1..q-1
    l = int(l) % (q - 1)
    return q - 1 if l == 0 else l


def cuspdim(k, l, q):
    """
    Dimension of S_{k,l}: 1 + floor((k - l(q+1)) / (q^2 - 1)) when
    l <= floor(k/(q+1)) and k = 2l mod (q-1), and 0 otherwise.
    """
    k, q = int(k), int(q)
    l = canonical_type(l, q)
    if l > k // (q + 1):
        return 0
    if (k - 2 * l) % (q - 1) != 0:
        return 0
    return 1 + (k - l * (q + 1)) // (q**2 - 1)


def characteristic(q):
    return int(GF(q, GF_GENERATOR_NAME).characteristic())


def trace_sequence_length(k, l, q):
    """Number of traces Tr(T_P^1..T_P^N) needed to rebuild the characteristic polynomial."""
    d = cuspdim(k, l, q)
    if d == 0:
        return 0
    p = characteristic(q)
    return d + (d - 1) // (p - 1)
