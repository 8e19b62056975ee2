"""
Fork-join helpers over a shared thread pool.

Two patterns, both over provably disjoint partitions:
  parallel_for(n, body)   body(lo, hi) on contiguous chunks of [0, n), then join
  fork(left, right)       right on the pool, left inline, then join

numpy drops the GIL inside vectorized arithmetic, so chunks that are
large numpy slices genuinely overlap.  Nothing here locks; the join at
the end of each call is the only barrier.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Tuple, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class ForkJoinPool:
    """Thin wrapper around ThreadPoolExecutor with a bounded fork depth.

    A waiting thread cancels any of its subtasks that no worker has
    picked up yet and runs them itself, so nested forks never block on
    work queued behind them.  Forking stops at max_fork_depth, which
    keeps outstanding pool tasks at 2^max_fork_depth - 1 <= max_workers.
    """

    def __init__(self, max_workers: int = 1, enabled: bool = True):
        self.max_workers = max(1, int(max_workers))
        self.enabled = enabled and self.max_workers > 1
        self.max_fork_depth = (self.max_workers + 1).bit_length() - 1
        self._executor: Optional[ThreadPoolExecutor] = None
        if self.enabled:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="nttkit",
            )

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            raise RuntimeError("ForkJoinPool is shut down or disabled")
        return self._executor

    def parallel_for(self, n: int, body: Callable[[int, int], None],
                     min_chunk: int = 1):
        """Run body(lo, hi) over disjoint chunks covering [0, n).

        Runs inline when disabled or when n is too small to split into
        at least two chunks of min_chunk.  Chunks still queued when the
        calling thread finishes its own chunk are run inline.
        """
        if n <= 0:
            return
        n_chunks = min(self.max_workers, n // max(1, min_chunk))
        if not self.enabled or n_chunks < 2:
            body(0, n)
            return

        bounds = [(i * n) // n_chunks for i in range(n_chunks + 1)]
        futures = [
            (self.executor.submit(body, bounds[i], bounds[i + 1]), i)
            for i in range(1, n_chunks)
        ]
        try:
            body(bounds[0], bounds[1])
        except BaseException:
            for fut, _ in futures:
                if not fut.cancel():
                    fut.exception()
            raise
        # Barrier
        for fut, i in futures:
            if fut.cancel():
                body(bounds[i], bounds[i + 1])
            else:
                fut.result()

    def fork(self, left: Callable[[], T], right: Callable[[], U],
             depth: int = 0) -> Tuple[T, U]:
        """Evaluate left() and right(), concurrently when depth allows."""
        if not self.enabled or depth >= self.max_fork_depth:
            return left(), right()
        fut = self.executor.submit(right)
        try:
            a = left()
        except BaseException:
            if not fut.cancel():
                fut.exception()
            raise
        if fut.cancel():
            return a, right()
        return a, fut.result()

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self.enabled = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.shutdown()


SERIAL = ForkJoinPool(max_workers=1, enabled=False)
