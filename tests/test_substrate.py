"""Tests for drinfeld_hecke.substrate."""
import pytest

from drinfeld_hecke.hecke_config import HeckeInputError, Infinity
from drinfeld_hecke.substrate import (
    base_rings, as_base_polynomial, validate_prime, quadratic, valuation_at_place,
    is_irreducible_quadratic, is_imaginary_root, place_type, places_over,
    maximal_order_class_number, residue_character, order_conductor, order_class_number
)


def test_base_rings_rejects_non_prime_powers():
    with pytest.raises(HeckeInputError):
        base_rings(6)
    with pytest.raises(HeckeInputError):
        base_rings(1)


def test_as_base_polynomial_from_list():
    _, A, _, _ = base_rings(3)
    T = A.gen()
    assert as_base_polynomial([0, 1], 3) == T
    assert as_base_polynomial([1, 0, 1], 3) == T**2 + 1
    assert as_base_polynomial(T**2 + 2, 3) == T**2 + 2


def test_as_base_polynomial_from_function_field():
    _, A, K, _ = base_rings(3)
    T = K.gen()
    assert as_base_polynomial(T, 3) == A.gen()
    assert validate_prime(T**2 + 1, 3) == A.gen()**2 + 1
    with pytest.raises(HeckeInputError):
        as_base_polynomial(1 / T, 3)


def test_validate_prime():
    _, A, _, _ = base_rings(3)
    T = A.gen()
    assert validate_prime([0, 1], 3) == T
    assert validate_prime(T**2 + 1, 3) == T**2 + 1
    with pytest.raises(HeckeInputError):
        validate_prime(T**2 - 1, 3)       # reducible
    with pytest.raises(HeckeInputError):
        validate_prime(2 * T, 3)          # not monic
    with pytest.raises(HeckeInputError):
        validate_prime([1], 3)            # constant


def test_valuation_at_place():
    _, A, K, _ = base_rings(3)
    T = K.gen()
    x = T**2 / (T + 1)
    assert valuation_at_place(x, at_infinity=True) == -1
    assert valuation_at_place(x, g=A.gen()) == 2
    assert valuation_at_place(x, g=A.gen() + 1) == -1
    assert valuation_at_place(K(0), at_infinity=True) == Infinity
    with pytest.raises(HeckeInputError):
        valuation_at_place(x)


def test_irreducible_quadratics():
    _, _, K, _ = base_rings(3)
    T = K.gen()
    assert is_irreducible_quadratic(quadratic(0, T, 3))
    assert not is_irreducible_quadratic(quadratic(0, -T**2, 3))
    assert not is_irreducible_quadratic(quadratic(-(T + 1), T, 3))   # (X - 1)(X - T)


def test_imaginary_roots():
    _, _, K, _ = base_rings(3)
    T = K.gen()
    # odd degree discriminant: infinity ramifies
    assert is_imaginary_root(quadratic(0, T, 3))
    assert place_type(quadratic(0, T, 3)) == 'ramified'
    # X^2 - (T^2 + 1): square leading coefficient, infinity splits
    assert not is_imaginary_root(quadratic(0, -(T**2 + 1), 3))
    # X^2 + (T^2 + 1): leading coefficient of the discriminant is a non-square, inert
    f = quadratic(0, T**2 + 1, 3)
    assert place_type(f) == 'inert'
    assert is_imaginary_root(f)
    assert not is_imaginary_root(f, ramified_only=True)


def test_finite_place_types():
    _, A, K, _ = base_rings(3)
    T = K.gen()
    f = quadratic(0, -T, 3)                # K(sqrt(T))
    assert place_type(f, A.gen()) == 'ramified'
    assert place_type(f, A.gen() - 1) == 'split'     # T = 1 is a square mod 3
    assert place_type(f, A.gen() + 1) == 'inert'     # T = -1 is not


def test_class_numbers_genus_zero():
    _, _, K, _ = base_rings(3)
    T = K.gen()
    assert maximal_order_class_number(quadratic(0, T, 3)) == 1
    # inert infinity doubles the divisor class number
    assert maximal_order_class_number(quadratic(0, T**2 + 1, 3)) == 2


def test_class_number_inseparable_characteristic_two():
    _, _, K, _ = base_rings(2)
    T = K.gen()
    f = quadratic(0, T, 2)
    assert is_imaginary_root(f)
    assert maximal_order_class_number(f) == 1


def test_decomposition_at_infinity():
    _, _, K, _ = base_rings(3)
    T = K.gen()
    # (ramification index, residue degree)
    assert places_over(quadratic(0, T, 3)) == [(2, 1)]
    assert places_over(quadratic(0, T**2 + 1, 3)) == [(1, 2)]
    assert sorted(places_over(quadratic(0, -(T**2 + 1), 3))) == [(1, 1), (1, 1)]


def test_strict_imaginary_test_keeps_ramified_roots():
    _, _, K, _ = base_rings(3)
    T = K.gen()
    assert is_imaginary_root(quadratic(0, T, 3), ramified_only=True)


def test_constant_field_extension():
    _, A, K, _ = base_rings(3)
    T = K.gen()
    f = quadratic(0, 1, 3)           # X^2 + 1, K(i) = GF(9)(T)
    assert place_type(f) == 'inert'
    assert place_type(f, A.gen()) == 'inert'
    assert place_type(f, A.gen()**2 + 1) == 'split'
    assert maximal_order_class_number(f) == 1


def test_residue_character():
    _, A, K, _ = base_rings(3)
    T = K.gen()
    f = quadratic(0, -T, 3)
    assert residue_character(f, A.gen()) == 0
    assert residue_character(f, A.gen() - 1) == 1
    assert residue_character(f, A.gen() + 1) == -1


def test_order_conductor():
    _, A, K, _ = base_rings(3)
    T, t = K.gen(), A.gen()
    assert order_conductor(quadratic(0, -T, 3)) == 1
    assert order_conductor(quadratic(0, -(T + 1)**2 * T, 3)) == t + 1
    # X^2 + X + T: discriminant 1 - 4T = 1 - T = -(T - 1)
    assert order_conductor(quadratic(1, T, 3)) == 1
    assert order_conductor(quadratic(0, (T - 1)**3, 3)) == t - 1


def test_order_class_numbers():
    _, A, K, _ = base_rings(3)
    T, t = K.gen(), A.gen()
    f = quadratic(0, -T, 3)
    assert order_class_number(f, A(1)) == 1
    assert order_class_number(f, t + 1) == 4     # inert: 3 + 1
    assert order_class_number(f, t - 1) == 2     # split: 3 - 1
    assert order_class_number(f, t) == 3         # ramified
    assert order_class_number(f, (t + 1)**2) == 12
    # GF(9)[T]: h(O_g) = |g| prod (1 - chi/|pi|) / 4
    assert order_class_number(quadratic(0, 1, 3), t) == 1
    assert order_class_number(quadratic(0, 1, 3), t**2 + 1) == 2


def test_conductor_characteristic_two():
    _, A, K, _ = base_rings(2)
    T = K.gen()
    # X^2 + X + T: Artin-Schreier with a polynomial constant term, already maximal
    assert order_conductor(quadratic(1, T, 2)) == 1
    # a root of X^2 + T X + T^3 is T u with u^2 + u + T = 0, so A[w] = A + T A[u]
    assert order_conductor(quadratic(T, T**3, 2)) == A.gen()
