from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable

import structlog

log = structlog.get_logger()

TimerCallback = Callable[[], None]


@dataclass(slots=True)
class TimerHandle:
    """
    Cancellable reference to one scheduled callback.
    """

    timer_id: int
    group: str
    due_ms: float
    cancelled: bool = False
    fired: bool = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


@dataclass(order=True, slots=True)
class _Entry:
    due_ms: float
    timer_id: int
    handle: TimerHandle = field(compare=False)
    callback: TimerCallback = field(compare=False)


class Scheduler:
    """
    Deterministic virtual clock.

    - time only moves through advance(ms); nothing runs in the background
    - timers due at the same instant fire in scheduling order
    - every timer belongs to a group (the session id) so a session can
      cancel all of its deferred work in one call
    - callbacks may schedule further timers; those fire within the same
      advance() if they fall due before its target time
    """

    def __init__(self, *, now_ms: float = 0.0) -> None:
        self._now_ms = now_ms
        self._heap: list[_Entry] = []
        self._ids = itertools.count(1)

    @property
    def now_ms(self) -> float:
        return self._now_ms

    def call_later(self, delay_ms: float, callback: TimerCallback, *, group: str) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        timer_id = next(self._ids)
        handle = TimerHandle(timer_id=timer_id, group=group, due_ms=self._now_ms + delay_ms)
        heapq.heappush(self._heap, _Entry(handle.due_ms, timer_id, handle, callback))
        return handle

    def cancel(self, handle: TimerHandle | None) -> bool:
        if handle is None or not handle.pending:
            return False
        handle.cancelled = True
        return True

    def cancel_group(self, group: str) -> int:
        cancelled = 0
        for entry in self._heap:
            if entry.handle.group == group and self.cancel(entry.handle):
                cancelled += 1
        if cancelled:
            log.debug("scheduler.group_cancelled", group=group, cancelled=cancelled)
        # drop dead entries eagerly; keeps pending() cheap
        self._heap = [e for e in self._heap if e.handle.pending]
        heapq.heapify(self._heap)
        return cancelled

    def pending(self, group: str | None = None) -> int:
        return sum(
            1
            for e in self._heap
            if e.handle.pending and (group is None or e.handle.group == group)
        )

    def advance(self, elapsed_ms: float) -> int:
        """
        Move the clock forward, firing every timer that falls due.

        Returns the number of callbacks executed.
        """
        if elapsed_ms < 0:
            raise ValueError("elapsed_ms must be >= 0")

        target = self._now_ms + elapsed_ms
        fired = 0
        while self._heap and self._heap[0].due_ms <= target:
            entry = heapq.heappop(self._heap)
            if not entry.handle.pending:
                continue
            self._now_ms = entry.due_ms
            entry.handle.fired = True
            entry.callback()
            fired += 1

        self._now_ms = target
        return fired
