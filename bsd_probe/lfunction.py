"""
lfunction.py: Truncated Euler product for L(E, s) and its value at s = 1.

    L(E, s) ~ prod_{p <= max_prime} (1 - a_p p^{-s} + p^{1-2s})^{-1}

At s = 1 the local denominator is N_p / p, so it only vanishes for a factor with
N_p = 0. Such a factor is resolved by a limit (sympy first, then a one-sided
numeric limit) instead of dividing by zero.
"""
import math
import time
from fractions import Fraction
from typing import NamedTuple, Tuple

import sympy

from .bsd_config import (
    DEBUG, DEFAULT_MAX_PRIME, LIMIT_EPSILONS,
    SingularLocalFactor, CurveTimeoutError
)
from .local_arith import (
    count_points_mod_p, reduce_mod_p, primes_up_to, is_quadratic_residue
)

S = sympy.Symbol('s')


class LocalFactor(NamedTuple):
    p: int
    a_p: int
    n_p: int

    @property
    def denominator_at_one(self):
        """1 - a_p/p + 1/p, exactly."""
        return 1 - Fraction(self.a_p, self.p) + Fraction(1, self.p)

    def denominator(self, s):
        return 1 - self.a_p * self.p ** (-s) + self.p ** (1 - 2 * s)

    def as_expr(self, s=S):
        p = sympy.Integer(self.p)
        return 1 / (1 - self.a_p * p ** (-s) + p ** (1 - 2 * s))


class LFunctionApproximation(NamedTuple):
    value_at_1: float
    primes_used: Tuple[int, ...]
    singular_primes: Tuple[int, ...] = ()
    method: str = 'direct'     # 'direct' | 'limit' | 'numeric-limit'


def local_factor(a, b, p, residue_test=is_quadratic_residue):
    n_p = count_points_mod_p(a, b, p, residue_test)
    return LocalFactor(p, p + 1 - n_p, n_p)


class EulerProduct:
    """A finite Euler product, callable as a function of s."""

    def __init__(self, factors, skipped=()):
        self.factors = tuple(factors)
        self.skipped = tuple(skipped)

    @property
    def primes(self):
        return tuple(f.p for f in self.factors)

    def __call__(self, s):
        value = 1.0
        for f in self.factors:
            value /= f.denominator(s)
        return value

    def as_expr(self, s=S):
        return sympy.Mul(*[f.as_expr(s) for f in self.factors])

    def value_at_one(self, debug=DEBUG):
        try:
            value = self._exact_at_one()
            return LFunctionApproximation(float(value), self.primes)
        except SingularLocalFactor as e:
            if debug:
                print(f"[lfunc] {e}; resolving by limit")
        return self._limit_at_one(debug=debug)

    def _exact_at_one(self):
        value = Fraction(1)
        for f in self.factors:
            den = f.denominator_at_one
            if den == 0:
                raise SingularLocalFactor(f.p)
            value /= den
        return value

    def _limit_at_one(self, debug=DEBUG):
        """
        The regular factors are continuous at s=1 and are evaluated there; only the
        singular ones go through sympy.limit.
        """
        regular = Fraction(1)
        singular = []
        for f in self.factors:
            den = f.denominator_at_one
            if den == 0:
                singular.append(f)
            else:
                regular /= den
        singular_primes = tuple(f.p for f in singular)

        expr = sympy.Mul(*[f.as_expr() for f in singular])
        try:
            lim = sympy.limit(expr, S, 1, '+')
        except (NotImplementedError, ValueError) as e:
            if debug:
                print(f"[lfunc] sympy.limit failed: {e}")
            lim = sympy.nan
        if lim.is_finite and lim.is_real:
            return LFunctionApproximation(float(regular) * float(lim), self.primes,
                                          singular_primes, 'limit')

        if debug:
            print(f"[lfunc] sympy limit at s=1 is {lim}; falling back to s = 1 + eps")
        value = math.inf
        for eps in LIMIT_EPSILONS:
            try:
                v = self(1 + eps)
            except (ZeroDivisionError, OverflowError):
                continue
            if math.isfinite(v):
                value = v
        return LFunctionApproximation(value, self.primes, singular_primes, 'numeric-limit')


def build_euler_product(a, b, max_prime=DEFAULT_MAX_PRIME,
                        residue_test=is_quadratic_residue, deadline=None):
    """
    Local factors for every prime p <= max_prime in ascending order.
    Primes dividing a denominator of a or b are skipped. `deadline` is a
    time.monotonic() value checked between primes.
    """
    factors, skipped = [], []
    for p in primes_up_to(max_prime):
        if deadline is not None and time.monotonic() > deadline:
            raise CurveTimeoutError(f"time budget exceeded at p={p} for a={a}, b={b}")
        if reduce_mod_p(a, p) is None or reduce_mod_p(b, p) is None:
            skipped.append(p)
            continue
        factors.append(local_factor(a, b, p, residue_test))
    return EulerProduct(factors, skipped)


def approximate_l_value(a, b, max_prime=DEFAULT_MAX_PRIME,
                        residue_test=is_quadratic_residue, deadline=None, debug=DEBUG):
    euler = build_euler_product(a, b, max_prime, residue_test, deadline)
    return euler.value_at_one(debug=debug)
