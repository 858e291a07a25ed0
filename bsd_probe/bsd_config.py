"""
bsd_config.py: Central config for the bsd_probe package.

Run constants (DEFAULT_MAX_PRIME, DEFAULT_BOUND, etc.), the record types that get
passed between modules, config validation, and the exception classes.
"""

# === 1. Standard library imports ===
import math
import numbers
from typing import NamedTuple, Optional

# === 2. Third-party imports ===
from colorama import Fore, Style


# === 3. Run Constants ===
DEBUG = False

# point search
DEFAULT_BOUND = 25
DEFAULT_STEP = 1
DEFAULT_TOLERANCE = 1e-6     # used both for perfect squares and for |L(E,1)| ~ 0

# L-function
DEFAULT_MAX_PRIME = 100      # 50 is fine for quick scans
RESIDUE_TESTS = ('naive', 'euler')
DEFAULT_RESIDUE_TEST = 'naive'
# one-sided numeric limit s -> 1+ when sympy cannot give a finite value
LIMIT_EPSILONS = (1e-4, 1e-6, 1e-8, 1e-10)

# sweep
DEFAULT_CHECKPOINT_INTERVAL = 100
DEFAULT_ETA_WINDOW = 50
DEFAULT_MAX_CACHE_SIZE = 10000

# verdicts
CONSISTENT = 'Consistent'
INCONSISTENT = 'Inconsistent'
ERRORED = 'Errored'
VERDICTS = (CONSISTENT, INCONSISTENT, ERRORED)


# === 4. Custom Exception Classes ===
class BSDProbeError(Exception):
    """Base exception for errors in the probe."""
    pass

class InvalidConfig(BSDProbeError, ValueError):
    """Raised before any computation when a parameter is missing or out of range."""
    pass

class SingularLocalFactor(BSDProbeError):
    """A local Euler factor denominator is exactly zero at s=1."""
    def __init__(self, p, message=None):
        self.p = p
        super().__init__(message or f"local denominator vanishes at s=1 for p={p}")

class PersistenceFailure(BSDProbeError):
    """
    Checkpoint or export write failed.
    `structural` is True when retrying is pointless (unwritable destination, etc.).
    """
    def __init__(self, message, structural=False):
        self.structural = structural
        super().__init__(message)

class CurveTimeoutError(BSDProbeError):
    """Per-curve time budget exceeded."""
    pass


# === 5. Records ===
class CurveParams(NamedTuple):
    a: numbers.Real
    b: numbers.Real

class RationalPoint(NamedTuple):
    x: numbers.Real
    y: numbers.Real

class CurveRange(NamedTuple):
    start: numbers.Real
    end: numbers.Real
    step: numbers.Real

    def size(self):
        return int(math.floor((self.end - self.start) / self.step + 1e-9)) + 1

    def values(self):
        """Inclusive grid start, start+step, ..., <= end. Built by index so floats don't drift."""
        return [tidy_number(self.start + i * self.step) for i in range(self.size())]

class SweepConfig(NamedTuple):
    bound: numbers.Real = DEFAULT_BOUND
    step: numbers.Real = DEFAULT_STEP
    max_prime: int = DEFAULT_MAX_PRIME
    tolerance: float = DEFAULT_TOLERANCE
    checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL
    residue_test: str = DEFAULT_RESIDUE_TEST
    curve_time_budget: Optional[float] = None
    eta_window: int = DEFAULT_ETA_WINDOW


def tidy_number(v):
    """Integral floats coming out of range arithmetic go back to int."""
    if isinstance(v, float) and v.is_integer():
        return int(v)
    if isinstance(v, float):
        return round(v, 12)
    return v


# === 6. Validation ===
def _is_number(v):
    return isinstance(v, numbers.Real) and not isinstance(v, bool) and math.isfinite(v)

def _require_positive(name, v):
    if v is None:
        raise InvalidConfig(f"{name} is missing")
    if not _is_number(v):
        raise InvalidConfig(f"{name} must be a finite number, got {v!r}")
    if v <= 0:
        raise InvalidConfig(f"{name} must be strictly positive, got {v!r}")

def _require_int(name, v, minimum):
    if isinstance(v, bool) or not isinstance(v, numbers.Integral):
        raise InvalidConfig(f"{name} must be an integer, got {v!r}")
    if v < minimum:
        raise InvalidConfig(f"{name} must be >= {minimum}, got {v!r}")


def validate_config(config):
    """Check a SweepConfig; raise InvalidConfig on the first bad field."""
    if not isinstance(config, SweepConfig):
        raise InvalidConfig(f"expected SweepConfig, got {type(config).__name__}")
    _require_positive('bound', config.bound)
    _require_positive('step', config.step)
    _require_int('max_prime', config.max_prime, 2)
    _require_positive('tolerance', config.tolerance)
    _require_int('checkpoint_interval', config.checkpoint_interval, 1)
    _require_int('eta_window', config.eta_window, 1)
    if config.residue_test not in RESIDUE_TESTS:
        raise InvalidConfig(f"residue_test must be one of {RESIDUE_TESTS}, got {config.residue_test!r}")
    if config.curve_time_budget is not None:
        _require_positive('curve_time_budget', config.curve_time_budget)
    return config


def make_config(**overrides):
    """Build and validate a SweepConfig; unknown keys are rejected."""
    unknown = set(overrides) - set(SweepConfig._fields)
    if unknown:
        raise InvalidConfig(f"unknown config keys: {sorted(unknown)}")
    return validate_config(SweepConfig(**overrides))


def validate_curve(a, b):
    for name, v in (('a', a), ('b', b)):
        if v is None:
            raise InvalidConfig(f"{name} is missing")
        if not _is_number(v):
            raise InvalidConfig(f"{name} must be a finite number, got {v!r}")
    return CurveParams(a, b)


def make_range(start, end, step):
    for name, v in (('start', start), ('end', end)):
        if v is None or not _is_number(v):
            raise InvalidConfig(f"range {name} must be a finite number, got {v!r}")
    _require_positive('range step', step)
    if end < start:
        raise InvalidConfig(f"range end {end!r} is below start {start!r}")
    return CurveRange(start, end, step)


def config_to_dict(config):
    return dict(config._asdict())

def config_from_dict(d):
    try:
        return make_config(**d)
    except TypeError as e:
        raise InvalidConfig(f"bad stored config: {e}") from e


def warn(msg, fatal=False, write=print):
    """Coloured warning; always printed, unlike DEBUG chatter."""
    colour = Fore.RED if fatal else Fore.YELLOW
    write(f"{colour}{msg}{Style.RESET_ALL}")
