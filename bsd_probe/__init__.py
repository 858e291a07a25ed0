"""
__init__.py: Exposes key functions from the submodules.
"""
# Expose core configuration and exceptions
from .bsd_config import (
    DEFAULT_MAX_PRIME, DEFAULT_TOLERANCE, CONSISTENT, INCONSISTENT, ERRORED,
    BSDProbeError, InvalidConfig, SingularLocalFactor, PersistenceFailure, CurveTimeoutError,
    CurveParams, RationalPoint, CurveRange, SweepConfig, make_config, make_range
)

# Expose the per-curve pipeline
from .local_arith import (
    is_perfect_square, is_perfect_square_exact, is_quadratic_residue,
    is_quadratic_residue_euler, count_points_mod_p, frobenius_trace
)
from .point_search import find_rational_points
from .lfunction import LocalFactor, LFunctionApproximation, EulerProduct, build_euler_product, approximate_l_value
from .bsd_check import estimate_rank, check_consistency
from .analyzer import AnalysisResult, analyze_curve, curve_samples

# Expose the sweep driver
from .checkpoint import SweepCheckpoint, CheckpointStore
from .sweep import SweepReport, run_sweep
from .sweep_stats import summarize_results
