"""Trusted time source for the registry."""

from __future__ import annotations

import threading
import time
from typing import Callable


def system_time() -> int:
    """Return the current wall-clock time in whole epoch seconds."""
    return int(time.time())


class MonotonicClock:
    """Wrap a time source so that it never runs backwards.

    If the underlying source steps back (NTP correction, manual change) the
    last value handed out is returned instead until the source catches up.
    """

    def __init__(self, source: Callable[[], int] = system_time) -> None:
        self._source = source
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            now = int(self._source())
            if now > self._last:
                self._last = now
            return self._last
