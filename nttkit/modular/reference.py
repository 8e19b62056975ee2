"""
Pure-Python modular arithmetic reference implementations.

Scalar helpers shared by root derivation, the transforms and the tests.
All operations are exact (integer arithmetic, no floating-point).
"""

from functools import lru_cache
from typing import List

import numpy as np
import sympy

from nttkit.errors import InvalidConfiguration


# ---------------------------------------------------------------------------
# Primality and prime generation
# ---------------------------------------------------------------------------

def is_prime(n: int) -> bool:
    """Exact primality test (sympy's BPSW, deterministic below 2^64)."""
    return bool(sympy.isprime(n))


def generate_ntt_primes(count: int, min_order: int = 1 << 20,
                        bits: int = 30) -> List[int]:
    """Generate ``count`` distinct NTT-friendly primes below ``2^bits``.

    Each prime has the form c * 2^k + 1 with 2^k >= min_order, so it
    supports transforms of at least ``min_order`` points.

    Args:
        count: Number of primes to generate.
        min_order: Minimum supported power-of-two transform order.
        bits: Primes are strictly below 2^bits.

    Returns:
        Primes sorted in descending order (largest capacity first).
    """
    if not is_power_of_two(min_order):
        raise InvalidConfiguration(f"min_order {min_order} is not a power of two")

    primes: List[int] = []
    step = min_order
    # Largest multiple of min_order below 2^bits, then walk down
    candidate = (((1 << bits) - 2) // step) * step + 1
    while len(primes) < count and candidate > step:
        if is_prime(candidate):
            primes.append(candidate)
        candidate -= step
    if len(primes) < count:
        raise RuntimeError(
            f"Could not find {count} primes below 2^{bits} "
            f"with order >= {min_order}"
        )
    return primes


# ---------------------------------------------------------------------------
# Modular inverse
# ---------------------------------------------------------------------------

def inv_mod(a: int, p: int) -> int:
    """Modular inverse a^{-1} mod p using Fermat's little theorem.
    Requires p prime.  Returns 0 if a == 0."""
    if a == 0:
        return 0
    return pow(a, p - 2, p)


# ---------------------------------------------------------------------------
# Powers of two
# ---------------------------------------------------------------------------

def is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def two_adic_order(n: int) -> int:
    """Largest power of two dividing n (n > 0)."""
    if n <= 0:
        raise ValueError(f"two_adic_order needs a positive integer, got {n}")
    return n & -n


def log2_exact(n: int) -> int:
    if not is_power_of_two(n):
        raise ValueError(f"{n} is not a power of two")
    return n.bit_length() - 1


# ---------------------------------------------------------------------------
# Bit reversal
# ---------------------------------------------------------------------------

def bit_reverse(i: int, bits: int) -> int:
    """Reverse the low ``bits`` bits of i."""
    r = 0
    for _ in range(bits):
        r = (r << 1) | (i & 1)
        i >>= 1
    return r


@lru_cache(maxsize=32)
def bit_reversal_indices(size: int) -> np.ndarray:
    """Index vector ``rev`` with rev[i] = bit_reverse(i, log2(size)).

    Built by doubling: the reversal table for 2n is the table for n
    shifted up by one, followed by the same plus one.
    """
    bits = log2_exact(size)
    rev = np.zeros(1, dtype=np.int64)
    for _ in range(bits):
        rev = np.concatenate([rev * 2, rev * 2 + 1])
    rev.setflags(write=False)
    return rev


# ---------------------------------------------------------------------------
# Root search
# ---------------------------------------------------------------------------

def find_non_residue(p: int) -> int:
    """First g in 2, 3, ... with g^((p-1)/2) != 1 (mod p).

    For an odd prime such a g is a quadratic non-residue, and
    g^(odd part of p-1) generates the full 2-power subgroup.
    """
    if p < 3:
        raise InvalidConfiguration(f"No quadratic non-residue exists modulo {p}")
    half = (p - 1) // 2
    for g in range(2, p):
        if pow(g, half, p) != 1:
            return g
    raise InvalidConfiguration(
        f"Root search did not converge for modulus {p}; is it prime?"
    )
