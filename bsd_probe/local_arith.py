"""
local_arith.py: Core number theory utilities.

Perfect squares, quadratic residues, and point counts on y^2 = x^3 + ax + b mod p.
The residue tests are plain functions so the counter can take either one.
"""
import math
from fractions import Fraction
from functools import lru_cache

from sympy import primerange

from .bsd_config import DEFAULT_MAX_CACHE_SIZE, DEFAULT_TOLERANCE, InvalidConfig


def is_perfect_square(n, tolerance=DEFAULT_TOLERANCE):
    """Float test: sqrt(n) is within `tolerance` of an integer."""
    if n < 0:
        return False
    root = math.sqrt(n)
    return abs(root - round(root)) < tolerance


def is_perfect_square_exact(n):
    """Integer test, no tolerance."""
    if n < 0:
        return False
    root = math.isqrt(n)
    return root * root == n


def is_quadratic_residue(n, p):
    """
    Naive O(p) test: is n a square mod p?
    0 counts as a residue. For p = 2 the loop still checks i = 1.
    """
    n = n % p
    if n == 0:
        return True
    for i in range(1, max(1, (p - 1) // 2) + 1):
        if (i * i) % p == n:
            return True
    return False


def is_quadratic_residue_euler(n, p):
    """Euler's criterion, O(log p). Same answers as is_quadratic_residue."""
    n = n % p
    if n == 0 or p == 2:
        return True
    return pow(n, (p - 1) // 2, p) == 1


RESIDUE_TEST_FUNCS = {
    'naive': is_quadratic_residue,
    'euler': is_quadratic_residue_euler,
}

def residue_test_by_name(name):
    try:
        return RESIDUE_TEST_FUNCS[name]
    except KeyError:
        raise InvalidConfig(f"unknown residue test {name!r}") from None


@lru_cache(maxsize=DEFAULT_MAX_CACHE_SIZE)
def _count_points_cached(a_mod, b_mod, p, residue_test):
    total = 1  # point at infinity
    for x in range(p):
        rhs = (x * x * x + a_mod * x + b_mod) % p
        if rhs == 0:
            total += 1
        elif residue_test(rhs, p):
            total += 2
    return total


def reduce_mod_p(v, p):
    """
    Image of a rational coefficient in F_p, or None when p divides its denominator.
    Floats are read as the nearest fraction with denominator <= 10**6.
    """
    if isinstance(v, int):
        return v % p
    q = Fraction(v).limit_denominator(10**6)
    if q.denominator % p == 0:
        return None
    return (q.numerator * pow(q.denominator, -1, p)) % p


def count_points_mod_p(a, b, p, residue_test=is_quadratic_residue):
    """
    N_p = #E(F_p) including the point at infinity, by brute force over x in [0, p).
    The count lies in [1, 2p+1]. Raises ArithmeticError if a or b has p in its denominator.
    """
    a_mod, b_mod = reduce_mod_p(a, p), reduce_mod_p(b, p)
    if a_mod is None or b_mod is None:
        raise ArithmeticError(f"curve coefficients ({a}, {b}) do not reduce mod {p}")
    return _count_points_cached(a_mod, b_mod, int(p), residue_test)


def frobenius_trace(a, b, p, residue_test=is_quadratic_residue):
    """a_p = p + 1 - N_p."""
    return p + 1 - count_points_mod_p(a, b, p, residue_test)


def primes_up_to(max_prime):
    """Ascending primes p <= max_prime."""
    return [int(p) for p in primerange(2, int(max_prime) + 1)]
