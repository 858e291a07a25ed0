"""
bsd_check.py: Rank heuristic and the BSD consistency verdict.
"""
from .bsd_config import DEFAULT_TOLERANCE, CONSISTENT, INCONSISTENT


def estimate_rank(points):
    """
    Heuristic rank: (number of distinct x among the points) - 1, or 0 with no points.
    NOT the Mordell-Weil rank; torsion points and multiples all count as new x values.
    """
    xs = {P.x for P in points}
    if not xs:
        return 0
    return len(xs) - 1


def check_consistency(l_value, rank, tolerance=DEFAULT_TOLERANCE):
    """
    BSD predicts L(E,1) = 0 exactly when rank > 0.
    Both failure modes (vanishing L with rank 0, non-vanishing L with rank > 0)
    come back as INCONSISTENT.
    """
    vanishes = abs(l_value) < tolerance
    if (vanishes and rank > 0) or (not vanishes and rank == 0):
        return CONSISTENT
    return INCONSISTENT
