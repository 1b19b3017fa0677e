from __future__ import annotations

import pytest

from arcadesim.core.engine.lifecycle import SessionLifecycle
from arcadesim.core.engine.scheduler import Scheduler
from arcadesim.core.engine.state import SessionState, SessionStatus
from arcadesim.core.events.base import Event
from arcadesim.core.events.bus import EventBus
from arcadesim.core.events.session import SessionEnded, SessionStarted


class Collector:
    def __init__(self) -> None:
        self.started: list[SessionStarted] = []
        self.ended: list[SessionEnded] = []

    def attach(self, bus: EventBus) -> None:
        bus.subscribe(event_type=SessionStarted.event_type, handler=self._on_started)
        bus.subscribe(event_type=SessionEnded.event_type, handler=self._on_ended)

    def _on_started(self, e: Event) -> None:
        if isinstance(e, SessionStarted):
            self.started.append(e)

    def _on_ended(self, e: Event) -> None:
        if isinstance(e, SessionEnded):
            self.ended.append(e)


def _lifecycle(high_score: int = 0) -> tuple[SessionLifecycle, Scheduler, Collector]:
    bus = EventBus()
    sched = Scheduler()
    col = Collector()
    col.attach(bus)
    state = SessionState(game="test", session_id="s1", high_score=high_score)
    return SessionLifecycle(bus=bus, state=state, scheduler=sched), sched, col


def test_idle_cannot_end_and_counters_are_guarded() -> None:
    lc, _, col = _lifecycle()

    assert lc.state.status is SessionStatus.IDLE
    assert lc.end(reason="nope") is None
    assert col.ended == []

    with pytest.raises(RuntimeError):
        lc.state.credit(score=1)
    with pytest.raises(RuntimeError):
        lc.state.next_tick()


def test_start_resets_and_end_records_high_score_once() -> None:
    lc, _, col = _lifecycle(high_score=10)

    assert lc.start() == 1
    lc.state.credit(score=25, tokens=3)

    ended = lc.end(reason="done")
    assert ended is not None
    assert ended.score == 25
    assert ended.tokens_earned == 3
    assert ended.high_score == 25
    assert ended.new_high_score is True
    assert lc.state.status is SessionStatus.ENDED

    # second end is a no-op
    assert lc.end(reason="again") is None
    assert len(col.ended) == 1

    lc.start()
    assert lc.state.score == 0
    assert lc.state.tokens_earned == 0
    assert lc.state.high_score == 25
    assert lc.state.generation == 2
    assert [s.generation for s in col.started] == [1, 2]


def test_high_score_never_decreases() -> None:
    lc, _, col = _lifecycle()

    for score in (40, 15, 90, 0, 60):
        lc.start()
        lc.state.credit(score=score)
        lc.end(reason="done")

    highs = [e.high_score for e in col.ended]
    assert highs == [40, 40, 90, 90, 90]
    assert [e.new_high_score for e in col.ended] == [True, False, True, False, False]


def test_end_finalizes_tokens_when_given() -> None:
    lc, _, _ = _lifecycle()
    lc.start()
    lc.state.credit(score=99)

    ended = lc.end(reason="time_up", tokens_earned=9)
    assert ended is not None and ended.tokens_earned == 9
    assert lc.state.tokens_earned == 9


def test_transitions_cancel_session_timers() -> None:
    lc, sched, _ = _lifecycle()
    fired: list[int] = []

    lc.start()
    sched.call_later(100, lambda: fired.append(1), group=lc.timer_group)
    lc.start()  # restart abandons the running session
    assert sched.pending(lc.timer_group) == 0

    sched.call_later(100, lambda: fired.append(2), group=lc.timer_group)
    lc.end(reason="done")
    sched.advance(1000)

    assert fired == []


def test_debit_cannot_go_negative() -> None:
    lc, _, _ = _lifecycle()
    lc.start()
    lc.state.credit(score=5)
    with pytest.raises(ValueError):
        lc.state.debit(6)
