from __future__ import annotations

import threading
import time

import pytest

from src.ingest.rate_limit import RateLimiter


class _FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_acquire_is_immediate_and_later_calls_are_spaced() -> None:
    clock = _FakeClock()
    limiter = RateLimiter.per_second(2.0, clock=clock, sleep=clock.sleep)

    waits = [limiter.acquire() for _ in range(3)]

    assert waits == [0.0, 0.5, 0.5]
    assert clock.now == pytest.approx(101.0)


def test_idle_time_does_not_bank_burst_capacity() -> None:
    clock = _FakeClock()
    limiter = RateLimiter(0.5, clock=clock, sleep=clock.sleep)

    limiter.acquire()
    clock.now += 10.0
    waits = [limiter.acquire() for _ in range(3)]

    assert waits == [0.0, 0.5, 0.5]


def test_zero_rate_disables_pacing() -> None:
    clock = _FakeClock()
    limiter = RateLimiter.per_second(0, clock=clock, sleep=clock.sleep)

    assert [limiter.acquire() for _ in range(3)] == [0.0, 0.0, 0.0]
    assert clock.sleeps == []


def test_negative_interval_is_rejected() -> None:
    with pytest.raises(ValueError):
        RateLimiter(-1.0)


def test_concurrent_callers_are_admitted_one_interval_apart() -> None:
    limiter = RateLimiter(0.05)
    admitted: list[float] = []
    lock = threading.Lock()

    def _worker() -> None:
        limiter.acquire()
        with lock:
            admitted.append(time.monotonic())

    started_at = time.monotonic()
    threads = [threading.Thread(target=_worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(admitted) == 5
    assert max(admitted) - started_at >= 0.05 * 4 - 0.01


def test_waiting_callers_are_admitted_in_arrival_order() -> None:
    clock = _FakeClock()
    asleep = threading.Semaphore(0)
    release = threading.Event()
    arrivals: dict[int, float] = {}
    waits: dict[int, float] = {}

    def _blocking_sleep(seconds: float) -> None:
        asleep.release()
        release.wait(timeout=5)

    limiter = RateLimiter(0.5, clock=clock, sleep=_blocking_sleep)

    def _worker(index: int) -> None:
        arrivals[index] = clock.now
        waits[index] = limiter.acquire()

    threads = []
    for index in range(4):
        thread = threading.Thread(target=_worker, args=(index,))
        thread.start()
        threads.append(thread)
        if index == 0:
            thread.join(timeout=5)
        else:
            # Next caller only arrives once this one holds its slot.
            assert asleep.acquire(timeout=5)
        clock.now += 0.1
    release.set()
    for thread in threads:
        thread.join(timeout=5)

    admitted_at = [arrivals[index] + waits[index] for index in range(4)]
    assert admitted_at == pytest.approx([100.0, 100.5, 101.0, 101.5])
    assert waits[1] == pytest.approx(0.4)
