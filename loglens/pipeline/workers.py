"""
Bounded worker pool shared by file-processing runs.

The pool is created explicitly by its owner (the service at start-up, or a
test) and shut down by that owner. A batch is submitted as a whole and
run_batch returns only after every task in it has finished.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Iterable, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class WorkerPool:
    """
    Fixed-capacity thread pool with a wait-for-all batch primitive.

    Usage:
        with WorkerPool(max_workers=4) as pool:
            futures = pool.run_batch(handle, lines)
    """

    def __init__(self, max_workers: int = 4, thread_name_prefix: str = "loglens-worker"):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )
        self._closed = False

    def run_batch(self, fn: Callable[[T], R], items: Iterable[T]) -> List["Future[R]"]:
        """
        Run fn over items and block until all of them complete.

        Returns the futures in submission order; failures stay inside
        their future.
        """
        if self._closed:
            raise RuntimeError("WorkerPool has been shut down")
        futures = [self._executor.submit(fn, item) for item in items]
        wait(futures)
        return futures

    def shutdown(self, wait: bool = True) -> None:
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait)
        logger.debug("Worker pool shut down")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
