from __future__ import annotations

from dataclasses import replace
from typing import ClassVar, Mapping

import structlog

from arcadesim.core.engine.lifecycle import SessionLifecycle
from arcadesim.core.engine.protocol import Action
from arcadesim.core.engine.scheduler import Scheduler
from arcadesim.core.engine.state import SessionState
from arcadesim.core.events.bus import EventBus
from arcadesim.core.events.games import BlockPlaced
from arcadesim.games.stacker.alignment import (
    Block,
    StackerConfig,
    StackerSnapshot,
    base_block,
    next_block,
    oscillate,
    resolve_drop,
    sped_up_interval,
)

log = structlog.get_logger()


class StackerEngine:
    """
    Overlap-stacking tower ("token stacker").

    Each tick slides the moving block; drop() trims it to the overlap with
    the block below. A miss ends the session immediately, a block narrower
    than min_width ends it after the drop has been scored.
    """

    game: ClassVar[str] = "stacker"

    def __init__(
        self,
        *,
        bus: EventBus,
        scheduler: Scheduler,
        session_id: str,
        cfg: StackerConfig | None = None,
        high_score: int = 0,
    ) -> None:
        if high_score < 0:
            raise ValueError("high_score must be >= 0")

        self._bus = bus
        self._cfg = cfg or StackerConfig()

        self._session = SessionState(game=self.game, session_id=session_id, high_score=high_score)
        self._lifecycle = SessionLifecycle(bus=bus, state=self._session, scheduler=scheduler)

        self._blocks: list[Block] = []
        self._current: Block | None = None
        self._direction = 1
        self._level = 1
        self._perfect_stacks = 0
        self._interval_ms = self._cfg.initial_interval_ms

    # ---------------- Introspection ----------------

    @property
    def state(self) -> SessionState:
        return self._session

    @property
    def config(self) -> StackerConfig:
        return self._cfg

    def tick_interval_ms(self) -> float:
        return self._interval_ms

    def actions(self) -> Mapping[str, Action]:
        return {"drop": self.drop}

    def snapshot(self) -> StackerSnapshot:
        return StackerSnapshot(
            session=self._session.view(),
            blocks=tuple(self._blocks),
            current_block=self._current,
            direction=self._direction,
            level=self._level,
            perfect_stacks=self._perfect_stacks,
            tick_interval_ms=self._interval_ms,
        )

    # ---------------- Lifecycle ----------------

    def start(self) -> None:
        base = base_block(self._cfg)
        self._blocks = [base]
        self._level = 1
        self._perfect_stacks = 0
        self._interval_ms = self._cfg.initial_interval_ms
        self.spawn_next(base)
        self._lifecycle.start()

    def close(self) -> None:
        self._lifecycle.close()

    def spawn_next(self, last: Block) -> Block:
        self._current = next_block(last, self._cfg)
        self._direction = 1
        return self._current

    def _end(self, reason: str) -> None:
        self._current = None
        self._lifecycle.end(reason=reason)

    # ---------------- Tick ----------------

    def tick(self, elapsed_ms: float | None = None) -> None:
        if not self._session.is_running or self._current is None:
            return

        self._session.next_tick()
        self._current, self._direction = oscillate(self._current, self._direction, self._cfg)

    # ---------------- Inputs ----------------

    def drop(self) -> None:
        if not self._session.is_running or self._current is None:
            return

        last = self._blocks[-1]
        outcome = resolve_drop(self._current, last, self._cfg)

        if outcome.placed is None:
            log.info("stacker.missed", level=self._level, overlap=outcome.overlap)
            self._end("missed")
            return

        placed = outcome.placed
        self._blocks.append(placed)
        self._session.credit(score=outcome.points, tokens=outcome.tokens)
        if outcome.perfect:
            self._perfect_stacks += 1

        self._level += 1
        self._interval_ms = sped_up_interval(self._level, self._interval_ms, self._cfg)

        self._bus.publish(
            BlockPlaced.create(
                session_id=self._session.session_id,
                level=self._level,
                x=placed.x,
                width=placed.width,
                perfect=outcome.perfect,
                points=outcome.points,
                tokens=outcome.tokens,
                sequence=self._session.next_sequence(),
            )
        )

        if placed.width < self._cfg.min_width:
            log.info("stacker.unstable", level=self._level, width=placed.width)
            self._end("unstable")
            return

        self.spawn_next(placed)

    def primary_action(self) -> None:
        self.drop()

    # ---------------- Test/host seams ----------------

    def position_current(self, x: int) -> None:
        """
        Move the moving block to an absolute x (scripted play, tests).
        """
        if not self._session.is_running or self._current is None:
            return
        clamped = max(0, min(x, self._cfg.field_width - self._current.width))
        self._current = replace(self._current, x=clamped)
