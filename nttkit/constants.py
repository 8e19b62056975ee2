"""
Bank of NTT-friendly primes.

Each entry is a prime p = c * 2^k + 1 with a large 2-power subgroup, so
the engine can be built on it without searching an arbitrary modulus.
All entries are below 2^30, which keeps butterflies inside int64.

Each entry has:
  - modulus: the prime
  - form: its c * 2^k + 1 decomposition
  - description: where it usually shows up
"""

from typing import Any, Dict, List

from nttkit.modular.reference import two_adic_order

GOOD_PRIMES_REGISTRY = [
    {"modulus": 469762049, "form": "7*2^26+1",   "description": "Largest order in the bank (2^26)"},
    {"modulus": 167772161, "form": "5*2^25+1",   "description": "Order 2^25, classic CRT partner"},
    {"modulus": 754974721, "form": "45*2^24+1",  "description": "Order 2^24"},
    {"modulus": 377487361, "form": "45*2^23+1",  "description": "Order 2^23"},
    {"modulus": 595591169, "form": "71*2^23+1",  "description": "Order 2^23"},
    {"modulus": 645922817, "form": "77*2^23+1",  "description": "Order 2^23"},
    {"modulus": 880803841, "form": "105*2^23+1", "description": "Order 2^23"},
    {"modulus": 897581057, "form": "107*2^23+1", "description": "Order 2^23"},
    {"modulus": 998244353, "form": "119*2^23+1", "description": "Order 2^23, the usual default"},
]

GOOD_PRIMES = [entry["modulus"] for entry in GOOD_PRIMES_REGISTRY]

DEFAULT_MODULUS = 998244353


def max_supported_order(modulus: int) -> int:
    """Largest power-of-two transform order the prime supports."""
    return two_adic_order(modulus - 1)


def good_prime_table() -> List[Dict[str, Any]]:
    """Registry entries with max_order and odd_factor filled in."""
    table = []
    for entry in GOOD_PRIMES_REGISTRY:
        order = max_supported_order(entry["modulus"])
        table.append({
            "modulus": entry["modulus"],
            "max_order": order,
            "odd_factor": (entry["modulus"] - 1) // order,
            "form": entry["form"],
            "description": entry["description"],
        })
    return table
