"""
Forward number-theoretic transform kernels.

Given a buffer of `size` residues (size a power of two, size <= order)
both kernels compute

    out[j] = sum_i a[i] * w^(i*j)  mod p,    w = root^(order/size)

Recursive path (Cooley-Tukey, even/odd split):
  transform the even- and odd-indexed halves with the squared root, then
  out[k]        = E[k] + w^k O[k]
  out[k + n/2]  = E[k] - w^k O[k]
  The halves are forked onto the pool above `parallel_threshold`.

Iterative path (in place):
  bit-reversal permutation, then log2(size) butterfly passes with span
  2, 4, ..., size.  Blocks of one pass are independent and run as a
  parallel-for; the end of each pass is the barrier.

Both paths are exact and produce identical output.
"""

from typing import List, Optional, Sequence

import numpy as np

from nttkit.config import TransformConfig
from nttkit.errors import InvalidSize, SizeExceedsOrder
from nttkit.modular.reference import bit_reversal_indices, is_power_of_two
from nttkit.parallel import SERIAL, ForkJoinPool

# Minimum elements per parallel-for chunk
PARALLEL_GRAIN = 1 << 12


def check_size(size: int, config: TransformConfig):
    if not is_power_of_two(size):
        raise InvalidSize(f"Transform size {size} is not a power of two")
    if size > config.order:
        raise SizeExceedsOrder(
            f"Transform size {size} exceeds configured order {config.order}"
        )


def to_residues(coeffs, size: int, config: TransformConfig) -> np.ndarray:
    """Fresh buffer of exactly `size` residues in [0, modulus).

    Pads with zeros or truncates.  Never aliases the input.
    """
    p = config.modulus
    buf = np.zeros(size, dtype=config.dtype)
    n = min(len(coeffs), size)
    if n == 0:
        return buf
    if (config.dtype != object and isinstance(coeffs, np.ndarray)
            and coeffs.dtype.kind in "iu" and coeffs.dtype.itemsize <= 4):
        buf[:n] = np.mod(coeffs[:n].astype(np.int64), p)
    else:
        buf[:n] = [int(c) % p for c in coeffs[:n]]
    return buf


# ---------------------------------------------------------------------------
# Recursive transform
# ---------------------------------------------------------------------------

def _recursive(a: np.ndarray, step: int, roots: np.ndarray, p: int,
               pool: ForkJoinPool, parallel_threshold: int,
               depth: int) -> np.ndarray:
    n = len(a)
    if n == 1:
        return a.copy()
    half = n // 2
    even = a[0::2]
    odd = a[1::2]

    def run_even():
        return _recursive(even, 2 * step, roots, p, pool,
                          parallel_threshold, depth + 1)

    def run_odd():
        return _recursive(odd, 2 * step, roots, p, pool,
                          parallel_threshold, depth + 1)

    if n > parallel_threshold:
        E, O = pool.fork(run_even, run_odd, depth)
    else:
        E, O = run_even(), run_odd()

    t = roots[0:half * step:step] * O % p
    out = np.empty(n, dtype=a.dtype)
    out[:half] = (E + t) % p
    out[half:] = (E - t) % p
    return out


def transform_recursive(buffer: np.ndarray, config: TransformConfig,
                        pool: Optional[ForkJoinPool] = None,
                        parallel_threshold: int = 1 << 6) -> np.ndarray:
    """Recursive transform of a power-of-two-length buffer.

    Returns a new array; `buffer` is not modified.
    """
    size = len(buffer)
    check_size(size, config)
    return _recursive(buffer, config.order // size, config.root_powers,
                      config.modulus, pool or SERIAL, parallel_threshold, 0)


# ---------------------------------------------------------------------------
# Iterative transform
# ---------------------------------------------------------------------------

def bit_reverse_permute(buffer: np.ndarray,
                        pool: Optional[ForkJoinPool] = None) -> np.ndarray:
    """Reorder `buffer` in place so buffer[rev(i)] moves to index i."""
    size = len(buffer)
    if size <= 2:
        return buffer
    rev = bit_reversal_indices(size)
    src = buffer.copy()

    def body(lo, hi):
        buffer[lo:hi] = src[rev[lo:hi]]

    (pool or SERIAL).parallel_for(size, body, min_chunk=PARALLEL_GRAIN)
    return buffer


def transform_iterative(buffer: np.ndarray, config: TransformConfig,
                        pool: Optional[ForkJoinPool] = None) -> np.ndarray:
    """In-place iterative transform.  Overwrites and returns `buffer`."""
    pool = pool or SERIAL
    size = len(buffer)
    check_size(size, config)
    p = config.modulus
    roots = config.root_powers

    work = buffer if buffer.flags.c_contiguous else buffer.copy()
    bit_reverse_permute(work, pool)

    span = 2
    while span <= size:
        half = span // 2
        stride = config.order // span
        twiddles = roots[0:half * stride:stride]
        blocks = work.reshape(size // span, span)

        def butterflies(lo, hi, blocks=blocks, half=half, twiddles=twiddles):
            blk = blocks[lo:hi]
            even = blk[:, :half]
            t = blk[:, half:] * twiddles % p
            upper = (even + t) % p
            lower = (even - t) % p
            blk[:, :half] = upper
            blk[:, half:] = lower

        pool.parallel_for(size // span, butterflies,
                          min_chunk=max(1, PARALLEL_GRAIN // span))
        span *= 2
    if work is not buffer:
        buffer[:] = work
    return buffer


# ---------------------------------------------------------------------------
# Reference evaluation and pointwise helpers
# ---------------------------------------------------------------------------

def evaluate_naive(coeffs: Sequence[int], size: int,
                   config: TransformConfig) -> List[int]:
    """Horner evaluation at every size-th root of unity.  O(size * n)."""
    check_size(size, config)
    p = config.modulus
    step = config.order // size
    values = [int(c) % p for c in coeffs[:size]]
    out = []
    for j in range(size):
        w = int(config.root_powers[j * step])
        acc = 0
        for c in reversed(values):
            acc = (acc * w + c) % p
        out.append(acc)
    return out


def pointwise_mul(a: np.ndarray, b: np.ndarray, p: int) -> np.ndarray:
    return a * b % p


def pointwise_pow(a: np.ndarray, exponent: int, p: int) -> np.ndarray:
    """Elementwise a^exponent mod p by square-and-multiply."""
    if exponent < 0:
        raise ValueError(f"Exponent must be non-negative, got {exponent}")
    result = np.full(len(a), 1, dtype=a.dtype)
    base = a.copy()
    while exponent:
        if exponent & 1:
            result = result * base % p
        exponent >>= 1
        if exponent:
            base = base * base % p
    return result
