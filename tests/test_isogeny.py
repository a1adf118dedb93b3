"""Tests for drinfeld_hecke.isogeny."""
import pytest

import drinfeld_hecke.isogeny as isogeny
from drinfeld_hecke.hecke_config import HeckeInputError
from drinfeld_hecke.substrate import base_rings
from drinfeld_hecke.isogeny import (
    enumerate_isogeny_classes, total_multiplicity, hurwitz_class_number,
    class_number_of_orders, clear_isogeny_cache, WeilNumberRecord
)
from drinfeld_hecke.stats import HeckeStats


def test_first_entry_is_power_of_prime():
    _, _, K, _ = base_rings(3)
    T = K.gen()
    lst = enumerate_isogeny_classes(3, 2, [0, 1], num_workers=1)
    assert lst[0] == T**2
    assert all(isinstance(r, WeilNumberRecord) for r in lst[1:])


def test_mass_degree_one():
    # rank-2 Drinfeld modules over GF(3) with characteristic T: 2(q-1) = 4
    # ordinary classes plus the 2 supersingular ones
    lst = enumerate_isogeny_classes(3, 1, [0, 1], num_workers=1)
    assert len(lst) == 7
    assert all(r.N == 1 for r in lst[1:])
    assert total_multiplicity(lst) == 6


def test_mass_degree_two():
    lst = enumerate_isogeny_classes(3, 2, [0, 1], num_workers=1)
    assert total_multiplicity(lst) == 24


def test_mass_degree_three():
    # 52 ordinary classes plus the 2 supersingular twists of j = 0
    lst = enumerate_isogeny_classes(3, 3, [0, 1], num_workers=1)
    assert total_multiplicity(lst) == 54
    record = [r for r in lst[1:] if r.a == 1 and r.b == 1][0]
    # X^2 + X + T^3 has discriminant -(T - 1)^3: conductor T - 1, ramified
    assert record.N == 4


def test_mass_degree_four():
    lst = enumerate_isogeny_classes(3, 4, [0, 1], num_workers=1)
    assert total_multiplicity(lst) == 168


def test_mass_quadratic_prime():
    # residue field GF(81) again: 168 orbits of (g, Delta)
    lst = enumerate_isogeny_classes(3, 2, [1, 0, 1], num_workers=1)
    assert total_multiplicity(lst) == 168


def test_hurwitz_weighting_is_selectable():
    lst = enumerate_isogeny_classes(3, 3, [0, 1], weighting="hurwitz", num_workers=1)
    assert total_multiplicity(lst) == 42


def test_prime_given_in_function_field():
    _, _, K, _ = base_rings(3)
    lst = enumerate_isogeny_classes(3, 1, K.gen(), num_workers=1)
    assert lst == enumerate_isogeny_classes(3, 1, [0, 1], num_workers=1)


def test_no_duplicate_weil_polynomials():
    for n in (1, 2, 3):
        lst = enumerate_isogeny_classes(3, n, [0, 1], num_workers=1)
        keys = [(r.a, r.b) for r in lst[1:]]
        assert len(keys) == len(set(keys))


def test_multiplicities_are_nonnegative_integers():
    lst = enumerate_isogeny_classes(5, 2, [1, 1], num_workers=1)
    for r in lst[1:]:
        assert int(r.N) == r.N
        assert r.N >= 0


def test_results_are_memoized():
    stats = HeckeStats()
    first = enumerate_isogeny_classes(3, 1, [0, 1], num_workers=1)
    again = enumerate_isogeny_classes(3, 1, [0, 1], num_workers=1, stats=stats)
    assert first is again
    assert stats.counters['isogeny_cache_hits'] == 1


def test_parallel_enumeration_matches_serial(monkeypatch):
    clear_isogeny_cache()
    serial = enumerate_isogeny_classes(3, 3, [0, 1], num_workers=1)
    clear_isogeny_cache()
    monkeypatch.setattr(isogeny, 'PARALLEL_MIN_CANDIDATES', 0)
    monkeypatch.setattr(isogeny, 'ENUMERATION_CHUNK_SIZE', 5)
    parallel = enumerate_isogeny_classes(3, 3, [0, 1], num_workers=2)
    assert parallel == serial
    clear_isogeny_cache()


def test_stats_record_masses():
    clear_isogeny_cache()
    stats = HeckeStats()
    enumerate_isogeny_classes(3, 1, [0, 1], num_workers=1, stats=stats)
    assert list(stats.masses.values()) == [6]
    assert stats.counters['records_ordinary'] == 4
    assert 'enumerate_ordinary' in stats.phase_times


def test_preconditions():
    _, A, _, _ = base_rings(3)
    T = A.gen()
    with pytest.raises(HeckeInputError):
        enumerate_isogeny_classes(3, 0, [0, 1])
    with pytest.raises(HeckeInputError):
        enumerate_isogeny_classes(3, 1, T**2 - 1)
    with pytest.raises(HeckeInputError):
        enumerate_isogeny_classes(3, 1, [0, 1], weighting='uniform')


def test_hurwitz_correction_at_square_factors():
    _, _, K, _ = base_rings(3)
    T = K.gen()
    assert hurwitz_class_number(T, 3) == 1
    # T + 1 is inert in K(sqrt(T)): no contribution
    assert hurwitz_class_number((T + 1)**2 * T, 3) == 1
    # T - 1 splits in K(sqrt(T))
    assert hurwitz_class_number((T - 1)**2 * T, 3) == 0


def test_class_number_of_orders():
    _, _, K, _ = base_rings(3)
    T = K.gen()
    assert class_number_of_orders(T, 3) == 1
    # conductor T + 1, inert: 1 + (3 + 1)
    assert class_number_of_orders((T + 1)**2 * T, 3) == 5
    # conductor T - 1, split: 1 + (3 - 1)
    assert class_number_of_orders((T - 1)**2 * T, 3) == 3
    # conductor T - 1, ramified: 1 + 3
    assert class_number_of_orders(1 - T**3, 3) == 4
