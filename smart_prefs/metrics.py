"""In-process instruments for remote loads and failed writes.

Nothing is exported anywhere; :func:`snapshot` is what the demo prints.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager


class Counter:
    """Named running total of events since the last :meth:`reset`."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.value = 0

    def inc(self, n: int = 1) -> None:
        self.value += n

    def reset(self) -> None:
        self.value = 0


class LatencyTimer:
    """Duration of the latest measured block plus a running count and sum."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.last_ms: float | None = None
        self.count = 0
        self.total_ms = 0.0

    @contextmanager
    def measure(self) -> Iterator[None]:
        # Recorded even when the block raises, so failed fetches are timed too.
        started = time.perf_counter()
        try:
            yield
        finally:
            self.last_ms = (time.perf_counter() - started) * 1000
            self.count += 1
            self.total_ms += self.last_ms

    @property
    def mean_ms(self) -> float | None:
        return self.total_ms / self.count if self.count else None

    def reset(self) -> None:
        self.last_ms = None
        self.count = 0
        self.total_ms = 0.0


remote_load_attempts_total = Counter("remote_load_attempts_total")
remote_load_failures_total = Counter("remote_load_failures_total")
remote_write_failures_total = Counter("remote_write_failures_total")
local_write_failures_total = Counter("local_write_failures_total")
remote_load_ms = LatencyTimer("remote_load_ms")

COUNTERS = (
    remote_load_attempts_total,
    remote_load_failures_total,
    remote_write_failures_total,
    local_write_failures_total,
)
TIMERS = (remote_load_ms,)


def snapshot() -> dict[str, int | float | None]:
    """Current value of every instrument, keyed by name."""
    data: dict[str, int | float | None] = {c.name: c.value for c in COUNTERS}
    for timer in TIMERS:
        data[f"{timer.name}_count"] = timer.count
        data[f"{timer.name}_mean"] = timer.mean_ms
    return data


def reset_all() -> None:
    for instrument in (*COUNTERS, *TIMERS):
        instrument.reset()
