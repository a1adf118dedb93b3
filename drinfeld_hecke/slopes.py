"""
slopes.py: Valuations of the roots of a polynomial over K via its Newton polygon.
"""
from .hecke_config import QQ, NewtonPolygon, Infinity, DEBUG, HeckeInputError
from .substrate import valuation_at_place, as_base_polynomial
from .charpoly import char_pol


def newton_points(f, g=None, at_infinity=False):
    """Points (i, v(coefficient of X^i)) of f, skipping zero coefficients."""
    return [(i, valuation_at_place(c, g=g, at_infinity=at_infinity))
            for i, c in enumerate(f.list()) if c != 0]


def slopes(f, g=None, at_infinity=False, debug=DEBUG):
    """
    Root valuations of f at the place of g (or at infinity) with multiplicity,
    as [(slope, multiplicity), ...] in increasing slope order.

    Each lower edge of the Newton polygon with run r and slope s gives (-s, r).
    A zero root of multiplicity m (X^m divides f) gives a final (+Infinity, m).
    """
    if g is None and not at_infinity:
        raise HeckeInputError("slopes: must provide g or at_infinity=True")
    if f == 0 or f.degree() == 0:
        return []

    points = newton_points(f, g=g, at_infinity=at_infinity)
    zero_roots = points[0][0]
    result = []
    if len(points) > 1:
        vertices = [(QQ(v[0]), QQ(v[1])) for v in NewtonPolygon(points).vertices()]
        if debug:
            print(f"[slopes] points={points} vertices={vertices}")
        for (x0, y0), (x1, y1) in zip(vertices, vertices[1:]):
            run = x1 - x0
            result.append((-(y1 - y0) / run, int(run)))
        result.reverse()
    if zero_roots:
        result.append((Infinity, int(zero_roots)))
    return result


def inf_hecke_slopes(f, **kwargs):
    """Slopes of f at the place at infinity."""
    return slopes(f, at_infinity=True, **kwargs)


def t_hecke_slopes(f, **kwargs):
    """Slopes of f at the place T = 0."""
    T = f.base_ring().gen().numerator()
    return slopes(f, g=T, **kwargs)


def hecke_slopes(k, l, q, P, at_infinity=True, g=None, **kwargs):
    """
    Slopes of the characteristic polynomial of T_P on S_{k,l} at infinity
    (default) or at the place of g.
    """
    debug = kwargs.get('debug', DEBUG)
    f = char_pol(k, l, q, P, **kwargs)
    if g is not None:
        return slopes(f, g=as_base_polynomial(g, q), debug=debug)
    if at_infinity:
        return inf_hecke_slopes(f, debug=debug)
    return t_hecke_slopes(f, debug=debug)
