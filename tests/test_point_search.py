import time

import pytest

from bsd_probe.bsd_config import CurveTimeoutError, InvalidConfig, RationalPoint
from bsd_probe.bsd_check import estimate_rank
from bsd_probe.point_search import find_rational_points, curve_rhs, x_grid


def _check_invariants(a, b, points, tolerance=1e-6):
    for x, y in points:
        assert abs(y * y - curve_rhs(a, b, x)) < tolerance
    pts = set(points)
    for x, y in points:
        if abs(y) > tolerance:
            assert (x, -y) in pts
        else:
            assert sum(1 for P in points if P.x == x) == 1


def test_curve_minus5_5():
    points = find_rational_points(-5, 5, 25, 1)
    assert points == [
        RationalPoint(-1, 3), RationalPoint(-1, -3),
        RationalPoint(1, 1), RationalPoint(1, -1),
        RationalPoint(4, 7), RationalPoint(4, -7),
    ]
    _check_invariants(-5, 5, points)


def test_two_torsion_curve():
    points = find_rational_points(-1, 0, 10, 1)
    assert points == [RationalPoint(-1, 0), RationalPoint(0, 0), RationalPoint(1, 0)]
    assert estimate_rank(points) == 2


def test_points_ordered_by_x():
    points = find_rational_points(0, 1, 30, 1)
    xs = [P.x for P in points]
    assert xs == sorted(xs)
    _check_invariants(0, 1, points)


def test_invariants_over_sampled_curves():
    for a in range(-6, 7, 2):
        for b in range(-5, 6):
            _check_invariants(a, b, find_rational_points(a, b, 20, 1))


def test_fractional_step_uses_float_search():
    # y^2 = x^3 on the half-integer grid
    points = find_rational_points(0, 0, 2, 0.5)
    assert points == [RationalPoint(0, 0), RationalPoint(1, 1.0), RationalPoint(1, -1.0)]
    _check_invariants(0, 0, points)


def test_float_search_on_quarter_grid():
    # x = 0.25: 1/64 + 0 + 0 -> y = 1/8, not within tolerance of an integer
    points = find_rational_points(0, 1, 3, 0.25)
    assert RationalPoint(0, 1.0) in points
    assert RationalPoint(2, 3.0) in points
    _check_invariants(0, 1, points)


def test_grid_is_inclusive():
    assert list(x_grid(2, 1)) == [-2, -1, 0, 1, 2]
    assert x_grid(1, 0.5) == [-1, -0.5, 0, 0.5, 1]


@pytest.mark.parametrize("step", [0, -1, -0.5])
def test_non_positive_step_rejected(step):
    with pytest.raises(InvalidConfig):
        find_rational_points(1, 1, 10, step)


def test_negative_bound_rejected():
    with pytest.raises(InvalidConfig):
        find_rational_points(1, 1, -1, 1)


def test_expired_deadline_stops_large_search():
    deadline = time.monotonic() - 1
    with pytest.raises(CurveTimeoutError):
        find_rational_points(1, 1, 10 ** 7, 1, deadline=deadline)
    with pytest.raises(CurveTimeoutError):
        find_rational_points(1, 1, 10 ** 4, 0.5, deadline=deadline)


def test_small_search_finishes_before_first_deadline_check():
    points = find_rational_points(-5, 5, 25, 1, deadline=time.monotonic() - 1)
    assert len(points) == 6
