import math

import pytest

from bsd_probe.bsd_config import InvalidConfig
from bsd_probe.local_arith import (
    is_perfect_square, is_perfect_square_exact, is_quadratic_residue,
    is_quadratic_residue_euler, count_points_mod_p, frobenius_trace,
    reduce_mod_p, primes_up_to, residue_test_by_name
)

SAMPLE_CURVES = [(-5, 5), (-1, 0), (0, 7), (1, 1), (-2, 3), (3, -4), (0, 0), (7, 11)]


def test_perfect_square_negative_is_false():
    for n in (-1, -4, -0.5, -1e9):
        assert not is_perfect_square(n)
    for n in (-1, -4, -9, -10**12):
        assert not is_perfect_square_exact(n)


def test_perfect_square_true_for_squares():
    for k in range(0, 300):
        assert is_perfect_square(k * k)
        assert is_perfect_square_exact(k * k)


def test_perfect_square_false_for_non_squares():
    for n in (2, 3, 5, 8, 10, 99, 1000):
        assert not is_perfect_square(n)
        assert not is_perfect_square_exact(n)


def test_perfect_square_tolerance():
    assert is_perfect_square(4.0000000001, tolerance=1e-6)
    assert not is_perfect_square(4.01, tolerance=1e-6)


def test_zero_is_a_residue():
    for p in (2, 3, 5, 7, 11):
        assert is_quadratic_residue(0, p)
        assert is_quadratic_residue(p, p)


def test_residues_mod_7():
    assert [n for n in range(1, 7) if is_quadratic_residue(n, 7)] == [1, 2, 4]


def test_residue_tests_agree():
    for p in primes_up_to(200):
        for n in range(-3, p + 3):
            assert is_quadratic_residue(n, p) == is_quadratic_residue_euler(n, p), (n, p)


def test_residue_test_by_name():
    assert residue_test_by_name('naive') is is_quadratic_residue
    assert residue_test_by_name('euler') is is_quadratic_residue_euler
    with pytest.raises(InvalidConfig):
        residue_test_by_name('tonelli')


def test_point_count_range():
    for a, b in SAMPLE_CURVES:
        for p in primes_up_to(60):
            n = count_points_mod_p(a, b, p)
            assert 1 <= n <= 2 * p + 1


def test_point_count_known_value():
    # y^2 = x^3 - x mod 5: x=0,1,4 give rhs 0; x=2 -> 6=1 (residue), x=3 -> 24=4 (residue)
    assert count_points_mod_p(-1, 0, 5) == 1 + 3 + 2 + 2


def test_hasse_bound():
    for a, b in SAMPLE_CURVES:
        for p in primes_up_to(100):
            assert abs(frobenius_trace(a, b, p)) <= 2 * math.sqrt(p), (a, b, p)


def test_counts_do_not_depend_on_residue_test():
    for a, b in SAMPLE_CURVES:
        for p in primes_up_to(50):
            assert count_points_mod_p(a, b, p) == count_points_mod_p(a, b, p, is_quadratic_residue_euler)


def test_reduce_mod_p_rationals():
    assert reduce_mod_p(7, 5) == 2
    assert reduce_mod_p(-1, 5) == 4
    assert reduce_mod_p(0.5, 5) == 3    # 2 * 3 = 6 = 1 mod 5
    assert reduce_mod_p(0.5, 2) is None


def test_count_points_rejects_bad_denominator():
    with pytest.raises(ArithmeticError):
        count_points_mod_p(0.5, 1, 2)


def test_primes_up_to():
    assert primes_up_to(20) == [2, 3, 5, 7, 11, 13, 17, 19]
    assert primes_up_to(2) == [2]
