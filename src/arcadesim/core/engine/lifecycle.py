from __future__ import annotations

import structlog

from arcadesim.core.engine.scheduler import Scheduler
from arcadesim.core.engine.state import SessionState, SessionStatus
from arcadesim.core.events.bus import EventBus
from arcadesim.core.events.session import SessionEnded, SessionStarted
from arcadesim.core.logging.setup import bind_context

log = structlog.get_logger()


class SessionLifecycle:
    """
    Explicit session lifecycle controller: Idle -> Running -> Ended -> Running ...

    Every engine owns one. Transitions are audited via events, and every
    transition cancels the session's timer group before anything new is
    scheduled (cancel-before-replace).
    """

    def __init__(self, *, bus: EventBus, state: SessionState, scheduler: Scheduler) -> None:
        self._bus = bus
        self._state = state
        self._scheduler = scheduler

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def timer_group(self) -> str:
        return self._state.session_id

    def start(self) -> int:
        """
        Begin a new session and return its generation.

        Score-bearing counters are zeroed; high_score is carried forward.
        Engines reset their own fields before calling this so that
        SessionStarted subscribers observe a fully reset engine.
        """
        if self._state.is_running:
            log.info(
                "session.abandoned",
                session_id=self._state.session_id,
                generation=self._state.generation,
                score=self._state.score,
            )

        self._scheduler.cancel_group(self.timer_group)

        bind_context(session_id=self._state.session_id, game=self._state.game)

        # Reset deterministic counters
        self._state.score = 0
        self._state.tokens_earned = 0
        self._state.tick = 0
        self._state.sequence = 0
        self._state.generation += 1

        # Enter running state FIRST (sequence guards depend on this)
        self._state.status = SessionStatus.RUNNING

        self._bus.publish(
            SessionStarted.create(
                game=self._state.game,
                session_id=self._state.session_id,
                generation=self._state.generation,
                high_score=self._state.high_score,
                sequence=self._state.next_sequence(),
            )
        )

        log.info(
            "session.started",
            session_id=self._state.session_id,
            generation=self._state.generation,
            high_score=self._state.high_score,
        )
        return self._state.generation

    def end(self, *, reason: str, tokens_earned: int | None = None) -> SessionEnded | None:
        """
        Finalize the running session.

        No-op (returns None) when the session is not running, which makes
        repeated terminal conditions harmless.
        """
        if not self._state.is_running:
            return None

        self._scheduler.cancel_group(self.timer_group)

        if tokens_earned is not None:
            if tokens_earned < 0:
                raise ValueError("tokens_earned must be >= 0")
            self._state.tokens_earned = tokens_earned

        # Allocate sequence while still running
        seq = self._state.next_sequence()

        previous_high = self._state.high_score
        new_high = self._state.score > previous_high
        self._state.high_score = max(previous_high, self._state.score)

        # Transition to ended
        self._state.status = SessionStatus.ENDED

        event = SessionEnded.create(
            game=self._state.game,
            session_id=self._state.session_id,
            generation=self._state.generation,
            score=self._state.score,
            tokens_earned=self._state.tokens_earned,
            high_score=self._state.high_score,
            new_high_score=new_high,
            reason=reason,
            sequence=seq,
        )
        self._bus.publish(event)

        log.info(
            "session.ended",
            session_id=self._state.session_id,
            generation=self._state.generation,
            reason=reason,
            score=self._state.score,
            tokens_earned=self._state.tokens_earned,
            new_high_score=new_high,
        )
        return event

    def close(self) -> None:
        """
        Teardown: drop every pending timer. State is left as-is.
        """
        cancelled = self._scheduler.cancel_group(self.timer_group)
        log.info("session.closed", session_id=self._state.session_id, cancelled_timers=cancelled)
