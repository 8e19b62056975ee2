"""
nttkit: exact number-theoretic transforms and polynomial arithmetic.

Transforms run modulo a prime p whose multiplicative group has a large
2-power subgroup (p = c * 2^k + 1):

  forward   F[j] = sum_i a[i] w^(ij)  mod p,   w a primitive n-th root
  inverse   a[i] = n^{-1} F'[-i]                F' = forward(F)
  product   inverse(forward(a) * forward(b))    on a working size that
                                                holds the full product

Two kernels (recursive even/odd split, iterative in place after a
bit-reversal permutation) are picked by size and fan out over a shared
thread pool.
"""

__version__ = "0.1.0"

from .errors import (
    NttError, InvalidConfiguration, UnsupportedOrder,
    SizeExceedsOrder, InvalidCutoff, InvalidSize,
)
from .config import (
    TransformConfig, EngineSettings,
    load_config, load_settings, settings_from_dict, transform_config_from_dict,
)
from .constants import (
    GOOD_PRIMES, GOOD_PRIMES_REGISTRY, DEFAULT_MODULUS,
    good_prime_table, max_supported_order,
)
from .engine import NttEngine
from .transform import (
    transform_recursive, transform_iterative, bit_reverse_permute,
    evaluate_naive,
)
from .parallel import ForkJoinPool
from .logging import RunLogger, RunManifest, create_manifest


def engine_from_yaml(path) -> NttEngine:
    """Engine built from the ``field:`` and ``engine:`` sections of a YAML file."""
    config = load_config(path)
    transform_config = transform_config_from_dict(config)
    if transform_config is None:
        transform_config = TransformConfig.maximal(DEFAULT_MODULUS)
    return NttEngine(transform_config, settings_from_dict(config))


__all__ = [
    "NttError", "InvalidConfiguration", "UnsupportedOrder",
    "SizeExceedsOrder", "InvalidCutoff", "InvalidSize",
    "TransformConfig", "EngineSettings",
    "load_config", "load_settings", "settings_from_dict",
    "transform_config_from_dict", "engine_from_yaml",
    "GOOD_PRIMES", "GOOD_PRIMES_REGISTRY", "DEFAULT_MODULUS",
    "good_prime_table", "max_supported_order",
    "NttEngine",
    "transform_recursive", "transform_iterative", "bit_reverse_permute",
    "evaluate_naive",
    "ForkJoinPool",
    "RunLogger", "RunManifest", "create_manifest",
]
