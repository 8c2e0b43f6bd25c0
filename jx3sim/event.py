"""A tick-ordered event queue."""

from __future__ import annotations

import bisect
import itertools
from collections.abc import Callable
from typing import Any

EventFunc = Callable[[Any], Any]


class EventQueue:
    """Events fire in tick order; events on the same tick fire in insertion order."""

    def __init__(self) -> None:
        self._events: list[tuple[int, int, EventFunc, Any]] = []
        self._seq = itertools.count()
        self._tick = 0

    def add(self, delay: int, func: EventFunc, param: Any = None) -> int:
        """Schedule ``func(param)`` after ``delay`` ticks; return its tick."""
        active = self._tick + delay
        bisect.insort(self._events, (active, next(self._seq), func, param),
                      key=lambda e: (e[0], e[1]))
        return active

    def cancel(self, active: int, func: EventFunc, param: Any = None) -> int:
        """Remove the first matching event at ``active``; return ticks left until it."""
        start = bisect.bisect_left(self._events, active, key=lambda e: e[0])
        for pos in range(start, len(self._events)):
            tick, _, f, p = self._events[pos]
            if tick != active:
                break
            if f == func and p == param:
                del self._events[pos]
                break
        return active - self._tick

    def run(self) -> bool:
        """Fire the earliest event; return False if the queue is empty."""
        if not self._events:
            return False
        tick, _, func, param = self._events.pop(0)
        self._tick = tick
        func(param)
        return True

    def now(self) -> int:
        """Return the current tick."""
        return self._tick

    def clear(self) -> None:
        """Drop all events and reset the clock."""
        self._events.clear()
        self._tick = 0