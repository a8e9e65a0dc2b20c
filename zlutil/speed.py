"""Throughput measurement in bytes per second."""

from __future__ import annotations

import time
from typing import Callable, Optional

_RECOMPUTE_THRESHOLD = 1024 * 1024
_MIN_INTERVAL_MS = 1000


class BytesSpeed:
    """Counts bytes and reports the rate at which they arrived.

    ``clock`` returns seconds and defaults to :func:`time.monotonic`.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.monotonic
        self._start = self._clock()
        self._speed = 0
        self._bytes = 0

    def _elapsed_ms(self) -> int:
        return int((self._clock() - self._start) * 1000)

    def add(self, nbytes: int) -> None:
        """Count ``nbytes`` more; the rate is recomputed once over 1 MiB is pending."""
        self._bytes += nbytes
        if self._bytes > _RECOMPUTE_THRESHOLD:
            self._compute()

    def __iadd__(self, nbytes: int) -> "BytesSpeed":
        self.add(nbytes)
        return self

    def get_speed(self) -> int:
        """Return the rate in bytes/s; within a second of the last reading it is not recomputed."""
        if self._elapsed_ms() < _MIN_INTERVAL_MS:
            return self._speed
        return self._compute()

    def _compute(self) -> int:
        elapsed = self._elapsed_ms()
        if not elapsed:
            return self._speed
        self._speed = self._bytes * 1000 // elapsed
        self._start = self._clock()
        self._bytes = 0
        return self._speed