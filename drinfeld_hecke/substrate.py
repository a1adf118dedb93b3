"""
substrate.py: The algebraic layer the trace formula pipeline runs on.

Everything here is a thin, exact wrapper over Sage: the rings GF(q), A = GF(q)[T],
K = GF(q)(T) and K[X]; input normalization and validation; valuations of
elements of K at the place at infinity or at a finite place; the decomposition
of a place of K in a quadratic extension K[X]/(f); and class numbers of the
maximal finite orders of imaginary quadratic extensions.
"""
from .hecke_config import (
    GF, ZZ, PolynomialRing, FunctionField, matrix, is_prime_power, lru_cache, Infinity,
    GF_GENERATOR_NAME, POLY_VARIABLE, CHARPOLY_VARIABLE,
    IMAGINARY_REQUIRES_RAMIFICATION, HeckeInputError, DEBUG
)


# ==============================================================
# === Base rings and input normalization =======================
# ==============================================================

@lru_cache(maxsize=None)
def base_rings(q):
    """
    Return (F, A, K, S) = (GF(q), GF(q)[T], GF(q)(T), K[X]).
    A is the polynomial ring K uses for numerators and denominators.
    """
    q = int(q)
    if q < 2 or not is_prime_power(q):
        raise HeckeInputError(f"q={q} is not a prime power")
    F = GF(q, GF_GENERATOR_NAME)
    K = FunctionField(F, POLY_VARIABLE)
    A = PolynomialRing(F, POLY_VARIABLE)
    S = PolynomialRing(K, CHARPOLY_VARIABLE)
    return F, A, K, S


def as_base_polynomial(P, q):
    """Coerce P (a polynomial, an element of K with trivial denominator, or a
    low-to-high coefficient list) into GF(q)[T]."""
    _, A, K, _ = base_rings(q)
    if hasattr(P, 'parent') and P.parent() is K:
        if P.denominator() != 1:
            raise HeckeInputError(f"{P} is not a polynomial")
        P = P.numerator()
    if hasattr(P, 'list'):
        P = P.list()
    try:
        return A(list(P))
    except (TypeError, ValueError) as e:
        raise HeckeInputError(f"Could not read {P!r} as a polynomial over GF({q}): {e}")


def validate_prime(P, q):
    """Return P in GF(q)[T] after checking that it is monic and irreducible."""
    P = as_base_polynomial(P, q)
    if P.degree() < 1:
        raise HeckeInputError(f"P={P} must have positive degree")
    if not P.is_monic():
        raise HeckeInputError(f"P={P} must be monic")
    if not P.is_irreducible():
        raise HeckeInputError(f"P={P} is not irreducible over GF({q})")
    return P


def quadratic(a, b, q):
    """The polynomial X^2 + aX + b in K[X]."""
    _, _, K, S = base_rings(q)
    return S([K(b), K(a), K(1)])


# ==============================================================
# === Valuations on K ==========================================
# ==============================================================

def _deg(p):
    # degree with constants (and zero) sent to 0
    if p.is_constant():
        return 0
    return p.degree()


def _ord_poly_at_factor(h, g):
    # exponent of the irreducible g in the nonzero polynomial h
    v = 0
    while h % g == 0:
        h //= g
        v += 1
    return v


def valuation_at_place(x, g=None, at_infinity=False):
    """
    Valuation of x in K = GF(q)(T).
    Provide exactly one of:
      - g (monic irreducible in GF(q)[T]) -> finite place of g
      - at_infinity=True                  -> place at infinity, deg(den) - deg(num)
    Zero has valuation +Infinity.
    """
    if x == 0:
        return Infinity
    num = x.numerator()
    den = x.denominator()

    if at_infinity:
        return _deg(den) - _deg(num)

    if g is not None:
        ring = num.parent()
        g = ring(g)
        if not g.is_monic():
            g = g.monic()
        return _ord_poly_at_factor(num, g) - _ord_poly_at_factor(den, g)

    raise HeckeInputError("valuation_at_place: must provide g or at_infinity=True")


# ==============================================================
# === Quadratic extensions =====================================
# ==============================================================

def _is_square(x):
    """Whether the nonzero element x of K is a square in K."""
    if x == 0:
        return True
    N = x.numerator() * x.denominator()
    fac = N.factor()
    if not fac.unit().is_square():
        return False
    return all(e % 2 == 0 for _, e in fac)


def is_separable(f):
    return f.derivative() != 0


def is_irreducible_quadratic(f):
    """Irreducibility of the monic quadratic f over K."""
    b, a = f[0], f[1]
    if f.base_ring().characteristic() != 2:
        return not _is_square(a**2 - 4 * b)
    if a == 0:
        # X^2 + b = (X + sqrt(b))^2 when b is a square
        return not _is_square(b)
    return f.is_irreducible()


def _is_constant_field_extension(f):
    # odd characteristic: K(sqrt(D)) = GF(q^2)(T) when D is a constant times a square
    if f.base_ring().characteristic() == 2:
        return False
    b, a = f[0], f[1]
    D = a**2 - 4 * b
    N = D.numerator() * D.denominator()
    return all(e % 2 == 0 for _, e in N.factor())


def quadratic_extension(f):
    """The function field K[X]/(f) for an irreducible separable f."""
    return f.base_ring().extension(f, 'w')


def places_over(f, g=None):
    """
    Decomposition of a place of K in K[X]/(f), as a list of
    (ramification index, residue degree) pairs, one per place above.
    Sage lists each place as (prime, residue degree, ramification index).
    g=None is the place at infinity; otherwise the finite place of g.
    """
    L = quadratic_extension(f)
    if g is None:
        decomposition = L.maximal_order_infinite().decomposition()
    else:
        K = f.base_ring()
        prime = K.maximal_order().ideal(K(g))
        decomposition = L.maximal_order().decomposition(prime)
    return [(int(e), int(r)) for _, r, e in decomposition]


def place_type(f, g=None):
    """'split', 'inert' or 'ramified' for the place of g (or infinity) in K[X]/(f)."""
    if not is_separable(f):
        # purely inseparable: one place above every place, fully ramified
        return 'ramified'
    if _is_constant_field_extension(f):
        # GF(q^2)(T): a place splits iff its degree is even
        degree = 1 if g is None else g.degree()
        return 'split' if degree % 2 == 0 else 'inert'
    decomposition = places_over(f, g)
    if len(decomposition) > 1:
        return 'split'
    e, _ = decomposition[0]
    return 'ramified' if e > 1 else 'inert'


def is_imaginary_root(f, g=None, ramified_only=None):
    """
    Whether f is irreducible over K and the place of g (infinity when g is None)
    does not split in K[X]/(f), so it is either ramified or inert. With
    ramified_only an inert place is rejected too.
    This is the 'imaginary' test for Weil polynomials.
    """
    if ramified_only is None:
        ramified_only = IMAGINARY_REQUIRES_RAMIFICATION
    if not is_irreducible_quadratic(f):
        return False
    kind = place_type(f, g)
    if kind == 'split':
        return False
    if ramified_only:
        return kind == 'ramified'
    return True


def maximal_order_class_number(f, debug=DEBUG):
    """
    Class number of the integral closure of GF(q)[T] in K[X]/(f), for an
    imaginary f. This is h(L) times the degree of the place above infinity.
    """
    if not is_separable(f):
        # K[X]/(f) = GF(q)(T^(1/2)), whose finite maximal order is a PID
        return 1
    if _is_constant_field_extension(f):
        return 1
    L = quadratic_extension(f)
    infinite = L.maximal_order_infinite().decomposition()
    if len(infinite) != 1:
        raise HeckeInputError(f"{f} is real quadratic: infinity splits")
    _, inf_degree, _ = infinite[0]
    h = ZZ(L.L_polynomial()(1))
    if debug:
        print(f"[class number] f={f}: genus={L.genus()}, h(L)={h}, deg(inf)={inf_degree}")
    return int(h * inf_degree)


def factor_polynomial(x):
    """Factorization (g, e) of the numerator of x in GF(q)[T], units dropped."""
    num = x.numerator() if hasattr(x, 'numerator') else x
    return [(g, int(e)) for g, e in num.factor()]


# ==============================================================
# === Non-maximal orders =======================================
# ==============================================================

def residue_character(f, g):
    """chi(g) for the monic irreducible g of A: 1 split, -1 inert, 0 ramified in K[X]/(f)."""
    return {'split': 1, 'inert': -1, 'ramified': 0}[place_type(f, g)]


def order_conductor(f):
    """
    Monic conductor of A[X]/(f) inside the integral closure of A in K[X]/(f),
    for a monic irreducible separable f with coefficients in A.
    """
    K = f.base_ring()
    if K.characteristic() != 2:
        D = f[1]**2 - 4 * f[0]
        g = D.numerator().parent()(1)
        for h, e in factor_polynomial(D):
            g *= h**(e // 2)
        return g
    # the index [O : A[w]] is the inverse determinant of a basis of O in terms of 1, w
    rows = []
    for b in quadratic_extension(f).maximal_order().basis():
        coeffs = list(b.list())
        rows.append(coeffs + [K(0)] * (2 - len(coeffs)))
    index = ~matrix(K, rows).determinant()
    if index.denominator() != 1:
        raise HeckeInputError(f"{f} does not define an order in K[X]/(f)")
    return index.numerator().monic()


def order_class_number(f, g, h=None):
    """
    Class number of the order of conductor g in K[X]/(f):

        h(O_g) = h |g| prod_{pi | g} (1 - chi(pi)/|pi|) / [O^* : O_g^*]

    with h the class number of the maximal order O.
    """
    if h is None:
        h = maximal_order_class_number(f)
    q = f.base_ring().constant_base_field().order()
    if g.degree() == 0:
        return int(h)
    value = int(h)
    for pi, e in g.factor():
        norm = q**pi.degree()
        value *= norm**(e - 1) * (norm - residue_character(f, pi))
    if _is_constant_field_extension(f):
        # units drop from GF(q^2)^* to GF(q)^*
        value //= q + 1
    return value
