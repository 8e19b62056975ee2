"""
Transform configuration and root-of-unity derivation.

A TransformConfig is built once per engine and never mutated:

  modulus      prime p with a large 2-power subgroup in (Z/p)^*
  order        largest transform length, a power of two dividing p - 1
  root         generator of the order-th roots of unity
  root_powers  root^i mod p for i in [0, order), read-only

Three ways to build one:
  from_root(p, root, order)   trust a caller-supplied root/order pair
  maximal(p)                  largest order the prime supports
  with_order(p, order)        a smaller power-of-two order
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import yaml

from nttkit.errors import InvalidConfiguration, UnsupportedOrder
from nttkit.modular.reference import (
    find_non_residue, is_power_of_two, is_prime,
    next_power_of_two, two_adic_order,
)

# Below this bound (p-1)^2 + p fits in a signed 64-bit integer
INT64_MODULUS_LIMIT = 1 << 31

# Largest root table built (int64: 1 GiB)
TABLE_ORDER_LIMIT = 1 << 27


def _check_prime(modulus: int):
    if modulus < 3 or not is_prime(modulus):
        raise InvalidConfiguration(f"Modulus {modulus} is not an odd prime")


def build_root_powers(root: int, order: int, modulus: int) -> np.ndarray:
    """Table of root^i mod modulus for i in [0, order), read-only.

    Filled by doubling: powers[k:2k] = powers[0:k] * root^k.
    """
    if order > TABLE_ORDER_LIMIT:
        raise InvalidConfiguration(
            f"Root table of {order} entries exceeds the memory limit of "
            f"{TABLE_ORDER_LIMIT} entries; build with an explicit smaller order"
        )
    dtype = np.int64 if modulus < INT64_MODULUS_LIMIT else object
    powers = np.empty(order, dtype=dtype)
    powers[0] = 1
    filled = 1
    step = root % modulus   # root^filled
    while filled < order:
        powers[filled:2 * filled] = powers[:filled] * step % modulus
        step = step * step % modulus
        filled *= 2
    powers.setflags(write=False)
    return powers


@dataclass(frozen=True)
class TransformConfig:
    """Immutable modulus / order / root triple plus its power table."""
    modulus: int
    order: int
    root: int
    root_powers: np.ndarray = field(repr=False, compare=False)

    @property
    def dtype(self):
        return self.root_powers.dtype

    @property
    def max_order(self) -> int:
        """Largest order the modulus could support."""
        return two_adic_order(self.modulus - 1)

    # -- constructors -------------------------------------------------------

    @classmethod
    def from_root(cls, modulus: int, root: int, order: int,
                  strict: bool = True) -> "TransformConfig":
        """Build from an explicit root.  The root/order pair is trusted.

        Args:
            modulus: Prime modulus.
            root: Claimed generator of the order-th roots of unity.
            order: Transform order.  With strict=False a non-power-of-two
                   order is rounded up instead of rejected.
        """
        _check_prime(modulus)
        if order < 1:
            raise InvalidConfiguration(f"Order must be positive, got {order}")
        if not is_power_of_two(order):
            if strict:
                raise InvalidConfiguration(f"Order {order} is not a power of two")
            order = next_power_of_two(order)
        root %= modulus
        return cls(modulus, order, root, build_root_powers(root, order, modulus))

    @classmethod
    def maximal(cls, modulus: int) -> "TransformConfig":
        """Largest power-of-two order dividing modulus - 1."""
        _check_prime(modulus)
        order = two_adic_order(modulus - 1)
        g = find_non_residue(modulus)
        root = pow(g, (modulus - 1) // order, modulus)
        return cls(modulus, order, root, build_root_powers(root, order, modulus))

    @classmethod
    def with_order(cls, modulus: int, desired_order: int) -> "TransformConfig":
        """Caller-chosen order, rounded up to a power of two."""
        _check_prime(modulus)
        if desired_order < 1:
            raise InvalidConfiguration(
                f"Desired order must be positive, got {desired_order}"
            )
        order = next_power_of_two(desired_order)
        supported = two_adic_order(modulus - 1)
        if order > supported:
            raise UnsupportedOrder(
                f"Modulus {modulus} supports order at most {supported}, "
                f"requested {desired_order}"
            )
        g = find_non_residue(modulus)
        root = pow(g, (modulus - 1) // order, modulus)
        return cls(modulus, order, root, build_root_powers(root, order, modulus))

    # -- checks -------------------------------------------------------------

    def verify(self):
        """Raise InvalidConfiguration unless root has order exactly `order`."""
        p = self.modulus
        if pow(self.root, self.order, p) != 1:
            raise InvalidConfiguration(
                f"root^{self.order} != 1 mod {p} (root={self.root})"
            )
        if self.order > 1 and pow(self.root, self.order // 2, p) == 1:
            raise InvalidConfiguration(
                f"root {self.root} has order smaller than {self.order} mod {p}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "modulus": self.modulus,
            "order": self.order,
            "root": self.root,
        }


@dataclass
class EngineSettings:
    """Engine-level tuning.  Fixed for the lifetime of an engine."""
    recursive_crossover: int = 1 << 10  # sizes below this use the recursive path
    parallel_threshold: int = 1 << 6    # recursive halves fork above this size
    max_workers: int = field(default_factory=lambda: min(8, os.cpu_count() or 1))
    parallel: bool = True

    def __post_init__(self):
        if self.recursive_crossover < 1:
            raise InvalidConfiguration("recursive_crossover must be >= 1")
        if self.parallel_threshold < 1:
            raise InvalidConfiguration("parallel_threshold must be >= 1")
        if self.max_workers < 1:
            raise InvalidConfiguration("max_workers must be >= 1")


_SETTINGS_KEYS = {"recursive_crossover", "parallel_threshold",
                  "max_workers", "parallel"}
_MODULUS_KEYS = {"modulus", "order", "root", "strict"}


def load_config(config_path) -> dict:
    """Load YAML configuration."""
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def settings_from_dict(config: Dict[str, Any]) -> EngineSettings:
    engine_cfg = config.get("engine", {}) or {}
    unknown = set(engine_cfg) - _SETTINGS_KEYS
    if unknown:
        raise InvalidConfiguration(f"Unknown engine settings: {sorted(unknown)}")
    return EngineSettings(**engine_cfg)


def transform_config_from_dict(config: Dict[str, Any]) -> Optional[TransformConfig]:
    """Build a TransformConfig from a ``field:`` section, or None if absent.

    Accepted forms:
      field: {modulus: p}                      maximal order
      field: {modulus: p, order: n}            desired order
      field: {modulus: p, order: n, root: g}   explicit root
    """
    field_cfg = config.get("field")
    if not field_cfg:
        return None
    unknown = set(field_cfg) - _MODULUS_KEYS
    if unknown:
        raise InvalidConfiguration(f"Unknown field settings: {sorted(unknown)}")
    if "modulus" not in field_cfg:
        raise InvalidConfiguration("field section needs a modulus")

    modulus = int(field_cfg["modulus"])
    order = field_cfg.get("order")
    root = field_cfg.get("root")
    if root is not None:
        if order is None:
            raise InvalidConfiguration("An explicit root needs an explicit order")
        return TransformConfig.from_root(
            modulus, int(root), int(order),
            strict=bool(field_cfg.get("strict", True)),
        )
    if order is not None:
        return TransformConfig.with_order(modulus, int(order))
    return TransformConfig.maximal(modulus)


def load_settings(path) -> EngineSettings:
    """Engine settings from the ``engine:`` section of a YAML file."""
    return settings_from_dict(load_config(Path(path)))
