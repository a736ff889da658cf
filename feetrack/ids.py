"""Identifier generation for records and payments."""
from __future__ import annotations

import time
from typing import Callable


def _now_ms() -> int:
    return int(time.time() * 1000)


class MonotonicIdGenerator:
    """Millisecond-timestamp ids that never repeat within one process.

    Stored data from earlier versions uses plain ``Date.now()``-style integers,
    so ids stay numeric. Two calls inside the same millisecond get consecutive
    values instead of the same one.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms):
        self._clock = clock
        self._last = 0

    def __call__(self) -> int:
        candidate = int(self._clock())
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return candidate
