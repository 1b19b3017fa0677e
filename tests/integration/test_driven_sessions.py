from __future__ import annotations

import sys
import threading
from pathlib import Path

import structlog

from arcadesim.core.engine.scheduler import Scheduler
from arcadesim.core.engine.state import SessionStatus
from arcadesim.core.events.session import SessionEnded, SessionStarted
from arcadesim.core.session.assembly import build_session
from arcadesim.core.session.recorder import EventLogComponent
from arcadesim.core.session.spec import SessionSpec
from arcadesim.games.clicker.engine import ClickerEngine
from arcadesim.games.stacker.engine import StackerEngine


def test_clicker_clock_is_driven_by_scheduler() -> None:
    handle = build_session(spec=SessionSpec(game="clicker"), session_id="clicker_drv")
    engine = handle.engine
    assert isinstance(engine, ClickerEngine)

    engine.start()
    assert handle.driver.armed

    for _ in range(42):
        engine.primary_action()

    handle.advance(59_999)
    assert engine.snapshot().time_remaining == 1
    assert engine.state.is_running

    handle.advance(1)
    snap = engine.snapshot()
    assert snap.session.status is SessionStatus.ENDED
    assert snap.session.tokens_earned == 4

    assert not handle.driver.armed
    assert handle.scheduler.pending(handle.session_id) == 0

    result = handle.rewards.latest
    assert result is not None
    assert result.tokens_earned == 4
    assert result.reason == "time_up"


def test_power_up_extends_driven_clock() -> None:
    handle = build_session(spec=SessionSpec(game="clicker"), session_id="clicker_pu")
    engine = handle.engine
    assert isinstance(engine, ClickerEngine)

    engine.start()
    for _ in range(500):
        engine.primary_action()
    engine.activate_power_up()

    handle.advance(60_000)
    assert engine.state.is_running
    assert engine.snapshot().time_remaining == 10
    assert engine.snapshot().multiplier == 1

    handle.advance(10_000)
    assert engine.state.status is SessionStatus.ENDED


def test_restart_drops_pending_tick_of_previous_session() -> None:
    handle = build_session(spec=SessionSpec(game="clicker"), session_id="clicker_rs")
    engine = handle.engine
    assert isinstance(engine, ClickerEngine)

    engine.start()
    handle.advance(5_500)
    assert engine.snapshot().time_remaining == 55

    engine.start()
    assert engine.snapshot().time_remaining == 60

    handle.advance(500)  # old tick would have fired at t=6000
    assert engine.snapshot().time_remaining == 60

    handle.advance(500)
    assert engine.snapshot().time_remaining == 59
    assert handle.scheduler.pending(handle.session_id) == 1


def test_stacker_driver_follows_interval() -> None:
    handle = build_session(spec=SessionSpec(game="stacker"), session_id="stacker_drv")
    engine = handle.engine
    assert isinstance(engine, StackerEngine)

    engine.start()
    handle.advance(1_000)
    assert engine.snapshot().current_block.x == 3

    for _ in range(4):
        engine.position_current(100)
        engine.drop()
    assert engine.tick_interval_ms() == 900

    # next tick still uses the interval armed before the speed-up, then 900ms
    handle.advance(1_000)
    x0 = engine.snapshot().current_block.x
    handle.advance(900)
    assert engine.snapshot().current_block.x == x0 + 3


def test_runner_frames_and_close_cancels_everything() -> None:
    scheduler = Scheduler()
    handle = build_session(
        spec=SessionSpec(game="runner", seed=3),
        session_id="runner_drv",
        scheduler=scheduler,
        runner_frame_interval_ms=10.0,
    )

    assert handle.wiring.components() == ("TickDriverComponent", "RewardCollector")

    handle.engine.start()
    handle.advance(100)
    assert handle.engine.state.tick == 10
    assert structlog.contextvars.get_contextvars()["session_id"] == "runner_drv"

    handle.close()
    assert scheduler.pending() == 0
    assert handle.bus.subscribers_for(SessionStarted.event_type) == ()
    assert handle.bus.subscribers_for(SessionEnded.event_type) == ()
    assert structlog.contextvars.get_contextvars() == {}

    tick = handle.engine.state.tick
    handle.advance(1_000)
    assert handle.engine.state.tick == tick


def test_events_are_recorded_to_jsonl(tmp_path: Path) -> None:
    handle = build_session(
        spec=SessionSpec(game="stacker"),
        session_id="stacker_rec",
        record_dir=tmp_path,
    )
    engine = handle.engine
    assert isinstance(engine, StackerEngine)

    engine.start()
    engine.position_current(100)
    engine.drop()
    engine.position_current(0)
    engine.drop()  # overlap 100, stays alive
    engine.position_current(200)
    engine.drop()  # 100..200 vs 200..300: miss
    handle.close()

    path = tmp_path / "stacker_rec.jsonl"
    assert path.exists()

    (recorder,) = [c for c in handle.components if isinstance(c, EventLogComponent)]
    assert recorder.store.path == path
    lines = recorder.store.iter_events()
    types = [obj["event_type"] for obj in lines]

    assert types[0] == "session.started"
    assert types.count("stacker.block_placed") == 2
    assert types[-1] == "session.ended"

    ended = lines[-1]
    assert ended["reason"] == "missed"
    assert ended["score"] == 150
    assert [obj["sequence"] for obj in lines] == sorted(obj["sequence"] for obj in lines)


def test_recording_can_be_disabled_per_session(tmp_path: Path) -> None:
    handle = build_session(
        spec=SessionSpec(game="clicker", record=False),
        session_id="clicker_norec",
        record_dir=tmp_path,
    )
    handle.engine.start()
    handle.close()

    assert not (tmp_path / "clicker_norec.jsonl").exists()


def test_inputs_and_clock_from_two_threads_never_interleave() -> None:
    previous = sys.getswitchinterval()
    sys.setswitchinterval(1e-6)
    try:
        for n in range(8):
            handle = build_session(spec=SessionSpec(game="clicker"), session_id=f"clicker_mt{n}")
            handle.start()

            errors: list[Exception] = []
            done = threading.Event()

            def pump() -> None:
                try:
                    while not done.is_set():
                        handle.act("pump")
                except Exception as exc:
                    errors.append(exc)

            worker = threading.Thread(target=pump)
            worker.start()
            try:
                handle.advance(59_000)
                for _ in range(3):
                    handle.advance(1_000)
            finally:
                done.set()
                worker.join()

            assert errors == []
            assert handle.engine.state.status is SessionStatus.ENDED
            (result,) = handle.results()
            assert result.score == handle.engine.state.score
            assert handle.rewards.total_tokens == result.tokens_earned
            handle.close()
    finally:
        sys.setswitchinterval(previous)
