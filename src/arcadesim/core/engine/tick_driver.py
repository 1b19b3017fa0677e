from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import structlog

from arcadesim.core.engine.protocol import GameEngine
from arcadesim.core.engine.scheduler import Scheduler, TimerHandle
from arcadesim.core.events.base import Event
from arcadesim.core.events.session import SessionEnded, SessionStarted

log = structlog.get_logger()


@dataclass(slots=True)
class TickDriverComponent:
    """
    Drives one engine with periodic ticks on the Scheduler.

    - arms on SessionStarted, disarms on SessionEnded
    - schedules one tick at a time, re-reading engine.tick_interval_ms()
      after each tick (the stacker speeds up mid-session)
    - a tick that fires for a superseded generation is dropped
    """
    engine: GameEngine
    scheduler: Scheduler
    _handle: TimerHandle | None = None
    _generation: int = 0

    def subscriptions(self) -> Sequence[tuple[str, callable]]:
        return [
            (SessionStarted.event_type, self._on_started),
            (SessionEnded.event_type, self._on_ended),
        ]

    @property
    def armed(self) -> bool:
        return self._handle is not None and self._handle.pending

    def _on_started(self, e: Event) -> None:
        if not isinstance(e, SessionStarted) or e.session_id != self.engine.state.session_id:
            return
        self.scheduler.cancel(self._handle)
        self._generation = e.generation
        self._schedule()

    def _on_ended(self, e: Event) -> None:
        if not isinstance(e, SessionEnded) or e.session_id != self.engine.state.session_id:
            return
        self.scheduler.cancel(self._handle)
        self._handle = None

    def _schedule(self) -> None:
        interval = self.engine.tick_interval_ms()
        generation = self._generation
        self._handle = self.scheduler.call_later(
            interval,
            lambda: self._fire(generation, interval),
            group=self.engine.state.session_id,
        )

    def _fire(self, generation: int, elapsed_ms: float) -> None:
        if not self.engine.state.is_current(generation):
            log.debug("tick_driver.stale_tick_dropped", generation=generation)
            return

        self.engine.tick(elapsed_ms)

        if self.engine.state.is_current(generation):
            self._schedule()
