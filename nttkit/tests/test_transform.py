"""
Unit tests for the transform kernels.

Recursive, iterative and naive evaluation must agree exactly for every
size on both sides of the crossover, serial or pooled.
"""

import unittest
import random
import os
import sys
import threading
from unittest import mock

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from nttkit.config import TransformConfig
from nttkit.errors import InvalidSize, NttError, SizeExceedsOrder
from nttkit.parallel import ForkJoinPool
from nttkit.transform import (
    bit_reverse_permute, evaluate_naive, pointwise_mul, pointwise_pow,
    to_residues, transform_iterative, transform_recursive,
)


class RecordingPool(ForkJoinPool):
    """ForkJoinPool that remembers the most chunks one parallel_for used."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_chunks = 0
        self._lock = threading.Lock()

    def parallel_for(self, n, body, min_chunk=1):
        seen = []

        def recording_body(lo, hi):
            with self._lock:
                seen.append(lo)
            body(lo, hi)

        super().parallel_for(n, recording_body, min_chunk)
        self.max_chunks = max(self.max_chunks, len(seen))


class TestKernelEquivalence(unittest.TestCase):

    def setUp(self):
        self.rng = random.Random(7)
        self.configs = [
            TransformConfig.maximal(17),
            TransformConfig.maximal(12289),
            TransformConfig.with_order(998244353, 1 << 12),
            TransformConfig.with_order(4179340454199820289, 1 << 8),
        ]

    def _random_buffer(self, config, size):
        coeffs = [self.rng.randrange(config.modulus) for _ in range(size)]
        return coeffs, to_residues(coeffs, size, config)

    def test_against_naive(self):
        for config in self.configs:
            for bits in range(0, 7):
                size = 1 << bits
                if size > config.order:
                    continue
                coeffs, buf = self._random_buffer(config, size)
                want = evaluate_naive(coeffs, size, config)
                self.assertEqual(transform_recursive(buf, config).tolist(), want)
                self.assertEqual(transform_iterative(buf.copy(), config).tolist(), want)

    def test_recursive_equals_iterative_large(self):
        config = self.configs[2]
        for size in [128, 512, 1024, 4096]:
            _, buf = self._random_buffer(config, size)
            rec = transform_recursive(buf, config)
            it = transform_iterative(buf.copy(), config)
            self.assertEqual(rec.tolist(), it.tolist(), f"size={size}")

    def test_pooled_matches_serial(self):
        config = self.configs[2]
        with ForkJoinPool(max_workers=4) as pool:
            for size in [64, 256, 4096]:
                _, buf = self._random_buffer(config, size)
                serial = transform_iterative(buf.copy(), config).tolist()
                self.assertEqual(
                    transform_iterative(buf.copy(), config, pool).tolist(),
                    serial)
                self.assertEqual(
                    transform_recursive(buf, config, pool,
                                        parallel_threshold=8).tolist(),
                    serial)

    def test_butterfly_passes_split_across_workers(self):
        config = TransformConfig.with_order(998244353, 1 << 14)
        size = 1 << 14
        _, buf = self._random_buffer(config, size)
        serial = transform_iterative(buf.copy(), config).tolist()
        with RecordingPool(max_workers=4) as pool:
            pooled = transform_iterative(buf.copy(), config, pool).tolist()
        self.assertEqual(pooled, serial)
        self.assertEqual(transform_recursive(buf, config).tolist(), serial)
        self.assertGreater(pool.max_chunks, 1)

    def test_uneven_chunks_small_grain(self):
        config = self.configs[1]
        with mock.patch("nttkit.transform.PARALLEL_GRAIN", 4), \
                RecordingPool(max_workers=3) as pool:
            for size in [8, 32, 256, 1024]:
                coeffs, buf = self._random_buffer(config, size)
                want = transform_recursive(buf, config).tolist()
                self.assertEqual(
                    transform_iterative(buf.copy(), config, pool).tolist(),
                    want, f"size={size}")
                if size <= 32:
                    self.assertEqual(evaluate_naive(coeffs, size, config), want)
        self.assertEqual(pool.max_chunks, 3)

    def test_object_dtype_pooled(self):
        config = self.configs[3]
        with ForkJoinPool(max_workers=3) as pool:
            coeffs, buf = self._random_buffer(config, 256)
            want = evaluate_naive(coeffs, 256, config)
            self.assertEqual(
                transform_recursive(buf, config, pool, parallel_threshold=4).tolist(),
                want)

    def test_outputs_in_range(self):
        for config in self.configs:
            size = min(64, config.order)
            _, buf = self._random_buffer(config, size)
            for out in (transform_recursive(buf, config),
                        transform_iterative(buf.copy(), config)):
                self.assertTrue(all(0 <= int(v) < config.modulus for v in out))


class TestTransformContracts(unittest.TestCase):

    def setUp(self):
        self.config = TransformConfig.maximal(97)

    def test_single_coefficient_unchanged(self):
        buf = to_residues([42], 1, self.config)
        self.assertEqual(transform_recursive(buf, self.config).tolist(), [42])
        self.assertEqual(transform_iterative(buf.copy(), self.config).tolist(), [42])

    def test_recursive_does_not_mutate(self):
        buf = to_residues([1, 2, 3, 4], 4, self.config)
        transform_recursive(buf, self.config)
        self.assertEqual(buf.tolist(), [1, 2, 3, 4])

    def test_iterative_is_in_place(self):
        buf = to_residues([1, 2, 3, 4], 4, self.config)
        out = transform_iterative(buf, self.config)
        self.assertIs(out, buf)
        self.assertEqual(buf.tolist(), evaluate_naive([1, 2, 3, 4], 4, self.config))

    def test_iterative_non_contiguous_view(self):
        backing = to_residues(list(range(16)), 16, self.config)
        view = backing[::2]
        want = evaluate_naive(view.tolist(), 8, self.config)
        transform_iterative(view, self.config)
        self.assertEqual(backing[::2].tolist(), want)
        self.assertEqual(backing[1::2].tolist(), list(range(1, 16, 2)))

    def test_size_exceeds_order(self):
        buf = to_residues([1], 64, self.config)
        with self.assertRaises(SizeExceedsOrder):
            transform_recursive(buf, self.config)
        with self.assertRaises(SizeExceedsOrder):
            transform_iterative(buf, self.config)
        with self.assertRaises(SizeExceedsOrder):
            evaluate_naive([1], 64, self.config)

    def test_non_power_of_two_size(self):
        buf = to_residues([1, 2, 3], 3, self.config)
        with self.assertRaises(InvalidSize):
            transform_recursive(buf, self.config)
        with self.assertRaises(InvalidSize):
            transform_iterative(buf, self.config)
        with self.assertRaises(NttError):
            evaluate_naive([1, 2, 3], 3, self.config)

    def test_delta_transforms_to_ones(self):
        buf = to_residues([1], 16, self.config)
        self.assertEqual(transform_iterative(buf, self.config).tolist(), [1] * 16)


class TestHelpers(unittest.TestCase):

    def test_to_residues_pads_truncates_reduces(self):
        config = TransformConfig.maximal(17)
        self.assertEqual(to_residues([1, -1, 20], 4, config).tolist(), [1, 16, 3, 0])
        self.assertEqual(to_residues([1, 2, 3, 4, 5], 2, config).tolist(), [1, 2])
        self.assertEqual(to_residues([], 2, config).tolist(), [0, 0])
        arr = np.array([18, 35], dtype=np.int32)
        self.assertEqual(to_residues(arr, 2, config).tolist(), [1, 1])

    def test_to_residues_copies(self):
        config = TransformConfig.maximal(17)
        src = np.array([1, 2, 3, 4], dtype=np.int64)
        buf = to_residues(src, 4, config)
        buf[0] = 9
        self.assertEqual(src[0], 1)

    def test_bit_reverse_permute(self):
        buf = np.arange(8, dtype=np.int64)
        bit_reverse_permute(buf)
        self.assertEqual(buf.tolist(), [0, 4, 2, 6, 1, 5, 3, 7])

    def test_bit_reverse_permute_pooled(self):
        size = 1 << 14
        with ForkJoinPool(max_workers=4) as pool:
            buf = np.arange(size, dtype=np.int64)
            bit_reverse_permute(buf, pool)
        ref = np.arange(size, dtype=np.int64)
        bit_reverse_permute(ref)
        self.assertEqual(buf.tolist(), ref.tolist())
        bit_reverse_permute(buf)
        self.assertEqual(buf.tolist(), list(range(size)))

    def test_pointwise(self):
        p = 97
        a = np.array([0, 1, 2, 50, 96], dtype=np.int64)
        b = np.array([5, 6, 7, 8, 96], dtype=np.int64)
        self.assertEqual(pointwise_mul(a, b, p).tolist(),
                         [x * y % p for x, y in zip(a.tolist(), b.tolist())])
        for e in [0, 1, 2, 5, 96, 1000]:
            self.assertEqual(pointwise_pow(a, e, p).tolist(),
                             [pow(x, e, p) for x in a.tolist()])
        with self.assertRaises(ValueError):
            pointwise_pow(a, -1, p)

    def test_pointwise_pow_object(self):
        p = 4179340454199820289
        a = np.array([p - 1, 12345678901234567, 2], dtype=object)
        self.assertEqual(pointwise_pow(a, 77, p).tolist(),
                         [pow(int(x), 77, p) for x in a])


if __name__ == '__main__':
    unittest.main()
