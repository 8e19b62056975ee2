"""
NTT engine: transforms and polynomial arithmetic modulo an NTT prime.

Usage:
    with NttEngine.for_modulus(998244353) as engine:
        c = engine.multiply([1, 2, 3], [4, 5, 6])   # [4, 13, 28, 27, 18, 0, 0, 0]

Polynomials are little-endian coefficient sequences (index = degree).
Inputs are reduced into [0, modulus); outputs are lists of ints in
[0, modulus).  Caller data is never modified, except by
forward_transform_inplace.

Cutoff operations return exactly cutoff + 1 coefficients, zero-padded
when the cutoff reaches past the computed product.
"""

from typing import List, Optional, Sequence

import numpy as np

from nttkit.config import EngineSettings, TransformConfig
from nttkit.errors import InvalidCutoff
from nttkit.modular.reference import inv_mod, next_power_of_two
from nttkit.parallel import ForkJoinPool
from nttkit.transform import (
    check_size, evaluate_naive, pointwise_mul, pointwise_pow,
    to_residues, transform_iterative, transform_recursive,
)

METHODS = ("auto", "recursive", "iterative", "naive")


def _check_operand(poly: Sequence[int], name: str = "polynomial"):
    if len(poly) == 0:
        raise ValueError(f"{name} must have at least one coefficient")


def _check_cutoff(cutoff) -> int:
    if isinstance(cutoff, bool) or not isinstance(cutoff, (int, np.integer)):
        raise InvalidCutoff(f"Cutoff must be an integer, got {cutoff!r}")
    if cutoff < 0:
        raise InvalidCutoff(f"Cutoff must be non-negative, got {cutoff}")
    return int(cutoff)


def _truncate(coeffs: List[int], cutoff: int) -> List[int]:
    """Coefficients [0, cutoff], zero-padded if needed."""
    out = coeffs[:cutoff + 1]
    if len(out) < cutoff + 1:
        out.extend([0] * (cutoff + 1 - len(out)))
    return out


class NttEngine:
    """Transform engine bound to one TransformConfig.

    The config (and its root table) is shared read-only by every call,
    so one engine may serve concurrent callers.
    """

    def __init__(self, config: TransformConfig,
                 settings: Optional[EngineSettings] = None):
        self.config = config
        self.settings = settings or EngineSettings()
        self.pool = ForkJoinPool(
            max_workers=self.settings.max_workers,
            enabled=self.settings.parallel,
        )

    # -- constructors -------------------------------------------------------

    @classmethod
    def from_root(cls, modulus: int, root: int, order: int,
                  strict: bool = True,
                  settings: Optional[EngineSettings] = None) -> "NttEngine":
        return cls(TransformConfig.from_root(modulus, root, order, strict),
                   settings)

    @classmethod
    def for_modulus(cls, modulus: int, desired_order: Optional[int] = None,
                    settings: Optional[EngineSettings] = None) -> "NttEngine":
        """Maximal order, or the given power-of-two order."""
        if desired_order is None:
            config = TransformConfig.maximal(modulus)
        else:
            config = TransformConfig.with_order(modulus, desired_order)
        return cls(config, settings)

    @property
    def modulus(self) -> int:
        return self.config.modulus

    @property
    def order(self) -> int:
        return self.config.order

    # -- transforms ---------------------------------------------------------

    def _transform(self, buf: np.ndarray, method: str = "auto") -> np.ndarray:
        """Forward transform of a private buffer (may be overwritten)."""
        if method == "auto":
            method = ("recursive" if len(buf) < self.settings.recursive_crossover
                      else "iterative")
        if method == "recursive":
            return transform_recursive(buf, self.config, self.pool,
                                       self.settings.parallel_threshold)
        if method == "iterative":
            return transform_iterative(buf, self.config, self.pool)
        if method == "naive":
            return np.array(evaluate_naive(buf, len(buf), self.config),
                            dtype=self.config.dtype)
        raise ValueError(f"Unknown transform method {method!r}; use one of {METHODS}")

    def _inverse(self, values: np.ndarray) -> np.ndarray:
        n = len(values)
        p = self.modulus
        t = self._transform(values.copy())
        out = np.empty(n, dtype=t.dtype)
        out[0] = t[0]
        out[1:] = t[:0:-1]
        return out * inv_mod(n % p, p) % p

    def working_size(self, length: int) -> int:
        """Smallest power of two >= length."""
        return next_power_of_two(length)

    def forward_transform(self, coeffs: Sequence[int],
                          size: Optional[int] = None) -> List[int]:
        """Evaluate coeffs at the size-th roots of unity.

        Args:
            coeffs: Coefficients, zero-padded or truncated to `size`.
            size: Power-of-two transform length.  Defaults to the working
                  size of len(coeffs).

        Raises:
            SizeExceedsOrder: size > order.
        """
        if size is None:
            size = self.working_size(len(coeffs))
        check_size(size, self.config)
        return self._transform(to_residues(coeffs, size, self.config)).tolist()

    def transform_with(self, method: str, coeffs: Sequence[int],
                       size: Optional[int] = None) -> List[int]:
        """forward_transform with an explicit kernel choice."""
        if size is None:
            size = self.working_size(len(coeffs))
        check_size(size, self.config)
        return self._transform(to_residues(coeffs, size, self.config),
                               method).tolist()

    def forward_transform_inplace(self, buffer: np.ndarray) -> np.ndarray:
        """Transform a power-of-two-length engine-dtype array in place."""
        if not isinstance(buffer, np.ndarray) or buffer.dtype != self.config.dtype:
            raise TypeError(
                f"forward_transform_inplace needs a numpy array of dtype "
                f"{self.config.dtype}"
            )
        check_size(len(buffer), self.config)
        np.mod(buffer, self.modulus, out=buffer)
        if len(buffer) < self.settings.recursive_crossover:
            buffer[:] = transform_recursive(buffer, self.config, self.pool,
                                            self.settings.parallel_threshold)
            return buffer
        return transform_iterative(buffer, self.config, self.pool)

    def inverse_transform(self, values: Sequence[int]) -> List[int]:
        """Recover coefficients from a full power-of-two transform.

        No padding: len(values) must already be a power of two <= order.
        """
        n = len(values)
        check_size(n, self.config)
        return self._inverse(to_residues(values, n, self.config)).tolist()

    # -- polynomial arithmetic ----------------------------------------------

    def multiply(self, a: Sequence[int], b: Sequence[int]) -> List[int]:
        """a * b, padded to the working size of len(a) + len(b) - 1."""
        _check_operand(a, "a")
        _check_operand(b, "b")
        size = self.working_size(len(a) + len(b) - 1)
        check_size(size, self.config)
        fa, fb = self.pool.fork(
            lambda: self._transform(to_residues(a, size, self.config)),
            lambda: self._transform(to_residues(b, size, self.config)),
        )
        return self._inverse(pointwise_mul(fa, fb, self.modulus)).tolist()

    def multiply_cutoff(self, a: Sequence[int], b: Sequence[int],
                        cutoff: int) -> List[int]:
        """Coefficients 0..cutoff of a * b."""
        cutoff = _check_cutoff(cutoff)
        return _truncate(self.multiply(a, b), cutoff)

    def square(self, a: Sequence[int]) -> List[int]:
        """a * a with a single forward transform."""
        _check_operand(a, "a")
        size = self.working_size(2 * len(a) - 1)
        check_size(size, self.config)
        fa = self._transform(to_residues(a, size, self.config))
        return self._inverse(pointwise_mul(fa, fa, self.modulus)).tolist()

    def square_cutoff(self, a: Sequence[int], cutoff: int) -> List[int]:
        cutoff = _check_cutoff(cutoff)
        return _truncate(self.square(a), cutoff)

    def power(self, a: Sequence[int], exponent: int) -> List[int]:
        """a^exponent via one forward transform and pointwise powers.

        The working size holds the full product, exponent * deg(a) + 1
        coefficients, so no wrap-around occurs.
        """
        _check_operand(a, "a")
        if exponent < 0:
            raise ValueError(f"Exponent must be non-negative, got {exponent}")
        size = self.working_size(exponent * (len(a) - 1) + 1)
        check_size(size, self.config)
        fa = self._transform(to_residues(a, size, self.config))
        return self._inverse(pointwise_pow(fa, exponent, self.modulus)).tolist()

    def power_cutoff(self, base: Sequence[int], exponent: int,
                     cutoff: int) -> List[int]:
        """Coefficients 0..cutoff of base^exponent.

        Binary exponentiation where every intermediate is truncated to
        cutoff + 1 coefficients, so transforms never exceed the working
        size of 2 * cutoff + 1.
        """
        _check_operand(base, "base")
        cutoff = _check_cutoff(cutoff)
        if exponent < 0:
            raise ValueError(f"Exponent must be non-negative, got {exponent}")

        p = self.modulus
        doubled = [int(c) % p for c in base[:cutoff + 1]]
        result: Optional[List[int]] = None
        while exponent:
            if exponent & 1:
                result = (list(doubled) if result is None
                          else self.multiply_cutoff(result, doubled, cutoff))
            exponent >>= 1
            if exponent:
                doubled = self.square_cutoff(doubled, cutoff)
        if result is None:
            result = [1]
        return _truncate(result, cutoff)

    # -- lifecycle ----------------------------------------------------------

    def close(self):
        self.pool.shutdown()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __repr__(self):
        return (f"NttEngine(modulus={self.modulus}, order={self.order}, "
                f"root={self.config.root})")
