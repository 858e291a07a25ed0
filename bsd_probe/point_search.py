"""
point_search.py: Bounded brute-force search for rational points on y^2 = x^3 + ax + b.

x runs over the grid -bound, -bound+step, ..., bound. With integer a, b, bound and
step the search is exact integer arithmetic; otherwise a float perfect-square test
with tolerance is used.
"""
import math
import numbers
import time

from .bsd_config import (
    DEFAULT_TOLERANCE, CurveTimeoutError, InvalidConfig, RationalPoint, tidy_number
)
from .local_arith import is_perfect_square, is_perfect_square_exact

# grid steps between deadline checks
DEADLINE_CHECK_EVERY = 1024


def _is_int(v):
    return isinstance(v, numbers.Integral) and not isinstance(v, bool)


def x_grid(bound, step):
    if step is None or step <= 0:
        raise InvalidConfig(f"step must be strictly positive, got {step!r}")
    if bound is None or bound < 0:
        raise InvalidConfig(f"bound must be non-negative, got {bound!r}")
    if _is_int(bound) and _is_int(step):
        return range(-bound, bound + 1, step)
    n = int(math.floor(2 * bound / step + 1e-9))
    return [tidy_number(-bound + i * step) for i in range(n + 1)]


def curve_rhs(a, b, x):
    return x * x * x + a * x + b


def find_rational_points(a, b, bound, step=1, tolerance=DEFAULT_TOLERANCE, exact=None,
                         deadline=None):
    """
    Points (x, y) on the curve with x on the search grid, ordered by x, +y before -y.
    (x, 0) is emitted once. `exact=None` picks the integer variant when every input
    is an integer. `deadline` is a time.monotonic() value polled every
    DEADLINE_CHECK_EVERY grid steps.
    """
    xs = x_grid(bound, step)
    if exact is None:
        exact = all(_is_int(v) for v in (a, b, bound, step))
    if exact:
        return _find_points_exact(a, b, xs, deadline)
    return _find_points_float(a, b, xs, tolerance, deadline)


def _check_deadline(i, x, deadline):
    if deadline is not None and i and i % DEADLINE_CHECK_EVERY == 0 and time.monotonic() > deadline:
        raise CurveTimeoutError(f"time budget exceeded in point search at x={x}")


def _find_points_exact(a, b, xs, deadline=None):
    points = []
    for i, x in enumerate(xs):
        _check_deadline(i, x, deadline)
        y2 = curve_rhs(a, b, x)
        if not is_perfect_square_exact(y2):
            continue
        y = math.isqrt(y2)
        points.append(RationalPoint(x, y))
        if y != 0:
            points.append(RationalPoint(x, -y))
    return points


def _find_points_float(a, b, xs, tolerance, deadline=None):
    points = []
    for i, x in enumerate(xs):
        _check_deadline(i, x, deadline)
        y2 = curve_rhs(a, b, x)
        if not is_perfect_square(y2, tolerance):
            continue
        y = math.sqrt(y2)
        if abs(y) > tolerance:
            points.append(RationalPoint(x, y))
            points.append(RationalPoint(x, -y))
        else:
            points.append(RationalPoint(x, 0))
    return points
