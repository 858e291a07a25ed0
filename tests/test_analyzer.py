import math
import time

import pytest

import bsd_probe.analyzer as analyzer
from bsd_probe.bsd_config import (
    CONSISTENT, ERRORED, InvalidConfig, RationalPoint, make_config
)
from bsd_probe.analyzer import (
    analyze_curve, curve_samples, result_to_dict, result_from_dict
)
from bsd_probe.bsd_check import check_consistency

FAST = make_config(max_prime=30)


def test_analyze_curve_minus5_5():
    r = analyze_curve(-5, 5, FAST)
    assert r.params == (-5, 5)
    assert set(r.points) == {(-1, 3), (-1, -3), (1, 1), (1, -1), (4, 7), (4, -7)}
    assert r.rank_estimate == 2
    assert math.isfinite(r.l_value) and r.l_value > 0
    assert r.verdict == check_consistency(r.l_value, 2)
    assert r.primes_used == (2, 3, 5, 7, 11, 13, 17, 19, 23, 29)
    assert r.error is None


def test_rank_zero_with_nonvanishing_l_is_consistent():
    # y^2 = x^3 + 7 has no integer points with |x| <= 25
    r = analyze_curve(0, 7, FAST)
    assert r.points == ()
    assert r.rank_estimate == 0
    assert r.verdict == CONSISTENT


def test_analysis_is_repeatable():
    assert analyze_curve(-2, 1, FAST) == analyze_curve(-2, 1, FAST)


def test_default_config():
    r = analyze_curve(-1, 0)
    assert r.rank_estimate == 2
    assert len(r.primes_used) == 25     # primes below 100


@pytest.mark.parametrize("a,b", [(None, 1), ("x", 1), (1, float('nan')), (True, 1)])
def test_bad_curve_params_rejected(a, b):
    with pytest.raises(InvalidConfig):
        analyze_curve(a, b, FAST)


def test_time_budget_marks_curve_errored():
    r = analyze_curve(-5, 5, make_config(max_prime=100, curve_time_budget=1e-9))
    assert r.verdict == ERRORED
    assert r.error.startswith('CurveTimeoutError')
    assert math.isnan(r.l_value)
    assert r.rank_estimate == 2          # points were found before the budget ran out


def test_numeric_failure_marks_curve_errored(monkeypatch):
    def boom(*args, **kwargs):
        raise OverflowError("too big")
    monkeypatch.setattr(analyzer, 'approximate_l_value', boom)
    r = analyze_curve(1, 1, FAST)
    assert r.verdict == ERRORED
    assert 'OverflowError' in r.error


def test_curve_samples_cover_both_branches():
    samples = curve_samples(-1, 0, -2, 2, num=41)
    assert samples
    for x, y in samples:
        assert y * y == pytest.approx(x ** 3 - x, abs=1e-9)
    assert any(y > 0 for _, y in samples) and any(y < 0 for _, y in samples)


def test_curve_samples_needs_two_points():
    with pytest.raises(InvalidConfig):
        curve_samples(0, 1, 0, 1, num=1)


def test_result_dict_round_trip():
    r = analyze_curve(0, 1, make_config(max_prime=20, bound=5, step=0.5))
    back = result_from_dict(result_to_dict(r))
    assert back == r
    assert all(isinstance(P, RationalPoint) for P in back.points)


def test_time_budget_stops_long_point_search():
    t0 = time.monotonic()
    r = analyze_curve(1, 1, make_config(bound=2 * 10 ** 7, max_prime=5, curve_time_budget=0.05))
    assert time.monotonic() - t0 < 5
    assert r.verdict == ERRORED
    assert 'point search' in r.error


@pytest.mark.parametrize("exc", [KeyError('missing'), AttributeError('nope'), RecursionError('deep')])
def test_any_computation_error_marks_curve_errored(monkeypatch, exc):
    def boom(*args, **kwargs):
        raise exc
    monkeypatch.setattr(analyzer, 'approximate_l_value', boom)
    r = analyze_curve(-5, 5, FAST)
    assert r.verdict == ERRORED
    assert r.error.startswith(type(exc).__name__)
    assert r.rank_estimate == 2
