"""
Unit tests for the bounded worker pool.
"""

import threading
import time

import pytest

from loglens.pipeline.workers import WorkerPool


def test_results_in_submission_order(worker_pool):
    def slow_square(n):
        time.sleep(0.01 * (5 - n))
        return n * n

    futures = worker_pool.run_batch(slow_square, range(5))

    assert [f.result() for f in futures] == [0, 1, 4, 9, 16]


def test_batch_waits_for_all_tasks(worker_pool):
    futures = worker_pool.run_batch(lambda n: time.sleep(0.02) or n, range(6))

    assert all(f.done() for f in futures)


def test_failures_stay_in_their_future(worker_pool):
    def maybe_fail(n):
        if n == 1:
            raise RuntimeError("boom")
        return n

    futures = worker_pool.run_batch(maybe_fail, [0, 1, 2])

    assert futures[0].result() == 0
    assert isinstance(futures[1].exception(), RuntimeError)
    assert futures[2].result() == 2


def test_concurrency_is_bounded():
    active = 0
    peak = 0
    lock = threading.Lock()

    def task(_):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        with lock:
            active -= 1

    with WorkerPool(max_workers=2) as pool:
        pool.run_batch(task, range(8))

    assert peak <= 2


def test_context_manager_shuts_down():
    with WorkerPool(max_workers=1) as pool:
        pass

    assert pool.closed
    with pytest.raises(RuntimeError):
        pool.run_batch(lambda n: n, [1])


def test_invalid_size():
    with pytest.raises(ValueError):
        WorkerPool(max_workers=0)
