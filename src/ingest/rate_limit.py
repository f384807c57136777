from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass(slots=True)
class RateLimiter:
    """Admit at most one caller per ``interval_seconds``.

    Callers reserve the next free slot under a lock, in the order they arrive,
    and then sleep outside the lock until that slot comes up. Idle time is not
    banked: a caller arriving after a quiet period gets ``now``, not a burst.
    """

    interval_seconds: float
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], None] = time.sleep
    _next_slot: float | None = field(init=False, default=None)
    _lock: threading.Lock = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.interval_seconds < 0:
            raise ValueError(f"interval_seconds must be >= 0, got {self.interval_seconds}")
        self._lock = threading.Lock()

    @classmethod
    def per_second(cls, requests_per_second: float, **kwargs) -> RateLimiter:
        if requests_per_second <= 0:
            return cls(0.0, **kwargs)
        return cls(1.0 / requests_per_second, **kwargs)

    def acquire(self) -> float:
        """Block until a permit is available; returns the seconds spent waiting."""
        with self._lock:
            now = self.clock()
            slot = now if self._next_slot is None else max(now, self._next_slot)
            self._next_slot = slot + self.interval_seconds
        wait_seconds = slot - now
        if wait_seconds > 0:
            self.sleep(wait_seconds)
        return wait_seconds
