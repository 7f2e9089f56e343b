"""
Host schedulers for timed continuations.

The engine never sleeps. Settle delays, waits and typewriter ticks are handed
to a scheduler as "call this after N ms"; the host decides what a millisecond
is:

- VirtualScheduler: manual clock, deterministic. Tests and headless runs.
- RealtimeScheduler: monotonic clock, polled once per frame by a GUI loop.
"""
from __future__ import annotations

import heapq
import itertools
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, List


@dataclass(order=True)
class Timer:
    due: int
    seq: int
    fn: Callable[..., None] = field(compare=False)
    args: tuple = field(default=(), compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class IScheduler(ABC):
    @abstractmethod
    def now(self) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def call_later(self, delay_ms: int, fn: Callable[..., None], *args: Any) -> Timer:  # pragma: no cover - interface
        raise NotImplementedError


class _TimerQueue(IScheduler):
    def __init__(self) -> None:
        self._queue: List[Timer] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: int, fn: Callable[..., None], *args: Any) -> Timer:
        t = Timer(self.now() + max(0, int(delay_ms)), next(self._seq), fn, args)
        heapq.heappush(self._queue, t)
        return t

    @property
    def pending(self) -> int:
        return sum(1 for t in self._queue if not t.cancelled)

    def next_due(self) -> int | None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)
        return self._queue[0].due if self._queue else None

    def _pop_due(self, now: int) -> Timer | None:
        due = self.next_due()
        if due is None or due > now:
            return None
        return heapq.heappop(self._queue)

    def clear(self) -> None:
        self._queue.clear()


class VirtualScheduler(_TimerQueue):
    """Clock that only moves when told to."""

    def __init__(self, start_ms: int = 0) -> None:
        super().__init__()
        self._now = int(start_ms)

    def now(self) -> int:
        return self._now

    def advance(self, ms: int) -> int:
        """Move the clock forward, firing due timers in order. Returns timers fired."""
        target = self._now + max(0, int(ms))
        fired = 0
        while True:
            t = self._pop_due(target)
            if t is None:
                break
            # timers scheduled from inside a callback see the callback's time
            self._now = max(self._now, t.due)
            t.fn(*t.args)
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, limit_ms: int = 24 * 3600 * 1000) -> int:
        """Fire timers until none are left; stops after limit_ms of virtual time."""
        deadline = self._now + limit_ms
        fired = 0
        while True:
            due = self.next_due()
            if due is None or due > deadline:
                break
            fired += self.advance(due - self._now)
        return fired


class RealtimeScheduler(_TimerQueue):
    """Wall-clock scheduler; call poll() from the host frame loop."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self._clock = clock
        self._origin = clock()

    def now(self) -> int:
        return int((self._clock() - self._origin) * 1000)

    def poll(self) -> int:
        now = self.now()
        fired = 0
        while True:
            t = self._pop_due(now)
            if t is None:
                break
            t.fn(*t.args)
            fired += 1
        return fired
