"""Local call telemetry: request counter and recent latencies.

This is what the current session observed, independent of the server's own
statistics endpoint.
"""

import threading
import time
from collections import deque

MAX_SAMPLES = 100


class CallTelemetry:
    """Counter of call attempts plus a bounded FIFO of latencies in ms."""

    def __init__(self, capacity: int = MAX_SAMPLES):
        self._lock = threading.Lock()
        self._count = 0
        self._samples: deque[int] = deque(maxlen=capacity)

    def record_attempt(self) -> None:
        with self._lock:
            self._count += 1

    def record_latency(self, elapsed_ms: int) -> None:
        # deque(maxlen) drops the oldest sample on overflow
        with self._lock:
            self._samples.append(elapsed_ms)

    @property
    def request_count(self) -> int:
        return self._count

    def response_times(self) -> list[int]:
        """Return a copy of the recorded latencies, oldest first."""
        with self._lock:
            return list(self._samples)

    def average_response_time(self) -> int:
        """Mean latency rounded to whole ms; 0 when nothing was recorded."""
        samples = self.response_times()
        if not samples:
            return 0
        # half-up, samples are never negative
        return int(sum(samples) / len(samples) + 0.5)

    def reset(self) -> None:
        with self._lock:
            self._count = 0
            self._samples.clear()


class CallTimer:
    """Brackets exactly one call: counts it on entry, records latency on exit."""

    def __init__(self, telemetry: CallTelemetry):
        self.telemetry = telemetry
        self.started: float | None = None
        self.elapsed_ms: int | None = None

    def __enter__(self) -> "CallTimer":
        self.telemetry.record_attempt()
        self.started = time.monotonic()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed_ms = int((time.monotonic() - self.started) * 1000)
        self.telemetry.record_latency(self.elapsed_ms)
