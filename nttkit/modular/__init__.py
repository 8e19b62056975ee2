"""
Modular arithmetic helpers for the NTT engine.

Scalar operations, power-of-two utilities, bit reversal and the
quadratic non-residue search used for root derivation.
"""

from .reference import (
    is_prime, generate_ntt_primes,
    inv_mod,
    is_power_of_two, next_power_of_two, two_adic_order, log2_exact,
    bit_reverse, bit_reversal_indices,
    find_non_residue,
)

__all__ = [
    "is_prime", "generate_ntt_primes",
    "inv_mod",
    "is_power_of_two", "next_power_of_two", "two_adic_order", "log2_exact",
    "bit_reverse", "bit_reversal_indices",
    "find_non_residue",
]
