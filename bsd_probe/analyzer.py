"""
analyzer.py: Run the whole BSD probe on one curve y^2 = x^3 + ax + b.

points -> rank heuristic, local factors -> L(E,1), then the verdict. Nothing here
keeps state between curves, so sweeps can farm cells out to worker processes.
"""
import math
import time
from typing import NamedTuple, Optional, Tuple

from .bsd_config import (
    DEBUG, ERRORED, SweepConfig, CurveParams, RationalPoint,
    InvalidConfig, validate_config, validate_curve
)
from .bsd_check import check_consistency, estimate_rank
from .lfunction import approximate_l_value
from .local_arith import residue_test_by_name
from .point_search import find_rational_points, curve_rhs


class AnalysisResult(NamedTuple):
    params: CurveParams
    points: Tuple[RationalPoint, ...]
    rank_estimate: int
    l_value: float
    verdict: str
    primes_used: Tuple[int, ...] = ()
    error: Optional[str] = None


def analyze_curve(a, b, config=None, debug=DEBUG):
    """
    Points, rank estimate, L(E,1) and verdict for one (a, b).

    Bad parameters raise InvalidConfig. Anything that goes wrong during the
    computation itself (timeout, overflow, ...) gives an ERRORED result instead.
    """
    params = validate_curve(a, b)
    config = validate_config(config if config is not None else SweepConfig())
    residue_test = residue_test_by_name(config.residue_test)

    t0 = time.monotonic()
    deadline = None
    if config.curve_time_budget is not None:
        deadline = t0 + config.curve_time_budget

    points = ()
    try:
        points = tuple(find_rational_points(a, b, config.bound, config.step,
                                            config.tolerance, deadline=deadline))
        rank = estimate_rank(points)
        approx = approximate_l_value(a, b, config.max_prime, residue_test,
                                     deadline=deadline, debug=debug)
        verdict = check_consistency(approx.value_at_1, rank, config.tolerance)
    except InvalidConfig:
        raise
    except Exception as e:
        if debug:
            print(f"[analyze] a={a}, b={b} failed: {type(e).__name__}: {e}")
        return AnalysisResult(params, points, estimate_rank(points), math.nan, ERRORED,
                              error=f"{type(e).__name__}: {e}")

    if debug:
        print(f"[analyze] a={a}, b={b}: {len(points)} points, rank~{rank}, "
              f"L(1)~{approx.value_at_1:.6g} ({approx.method}) -> {verdict}")
    return AnalysisResult(params, points, rank, approx.value_at_1, verdict,
                          approx.primes_used)


def curve_samples(a, b, x_min, x_max, num=400):
    """
    Dense real sampling of the curve for plotting: (x, y) pairs on both branches
    wherever x^3 + ax + b >= 0.
    """
    if num < 2:
        raise InvalidConfig(f"num must be >= 2, got {num}")
    upper, lower = [], []
    for i in range(num):
        x = x_min + (x_max - x_min) * i / (num - 1)
        rhs = curve_rhs(a, b, x)
        if rhs >= 0:
            y = math.sqrt(rhs)
            upper.append((x, y))
            lower.append((x, -y))
    return upper + lower[::-1]


# ---------------- Serialization ----------------
def result_to_dict(result):
    return {
        'a': result.params.a,
        'b': result.params.b,
        'points': [[P.x, P.y] for P in result.points],
        'rank_estimate': result.rank_estimate,
        'l_value': result.l_value,
        'verdict': result.verdict,
        'primes_used': list(result.primes_used),
        'error': result.error,
    }


def result_from_dict(d):
    return AnalysisResult(
        CurveParams(d['a'], d['b']),
        tuple(RationalPoint(x, y) for x, y in d['points']),
        int(d['rank_estimate']),
        float(d['l_value']),
        d['verdict'],
        tuple(int(p) for p in d.get('primes_used', ())),
        d.get('error'),
    )
