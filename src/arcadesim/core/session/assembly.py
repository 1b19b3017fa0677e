from __future__ import annotations

import random
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Iterable

import structlog

from arcadesim.core.engine.protocol import GameEngine
from arcadesim.core.engine.router import EngineRouter, RouterWiring
from arcadesim.core.engine.scheduler import Scheduler
from arcadesim.core.engine.tick_driver import TickDriverComponent
from arcadesim.core.events.bus import EventBus
from arcadesim.core.logging.setup import clear_context
from arcadesim.core.session.recorder import EventLogComponent
from arcadesim.core.session.rewards import RewardCollector, SessionResult
from arcadesim.core.session.spec import SessionSpec
from arcadesim.games.clicker.engine import ClickerEngine
from arcadesim.games.runner.engine import RunnerEngine
from arcadesim.games.stacker.engine import StackerEngine
from arcadesim.storage.jsonl import JsonlEventStore

log = structlog.get_logger()


def new_session_id() -> str:
    created_at = datetime.now(timezone.utc)
    # High-entropy suffix to avoid collisions (even if called in same second)
    return f"{created_at.strftime('%Y%m%dT%H%M%SZ')}_{secrets.token_hex(4)}"


@dataclass(frozen=True, slots=True)
class SessionHandle:
    """
    Canonical handle for a wired game session in this process.

    Hosts may call in from several threads; every operation that touches
    the engine or the scheduler holds `lock`, so a tick or an input handler
    always runs to completion before the next one starts.
    """
    session_id: str
    game: str
    spec: SessionSpec
    bus: EventBus
    scheduler: Scheduler
    engine: GameEngine
    driver: TickDriverComponent
    rewards: RewardCollector
    wiring: RouterWiring
    components: tuple[object, ...]
    lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def start(self) -> None:
        with self.lock:
            self.engine.start()

    def advance(self, elapsed_ms: float) -> int:
        with self.lock:
            return self.scheduler.advance(elapsed_ms)

    def act(self, action: str) -> bool:
        """
        Run a named input handler. False when the game does not offer it.
        """
        handler = self.engine.actions().get(action)
        if handler is None:
            return False
        with self.lock:
            handler()
        return True

    def snapshot(self) -> object:
        with self.lock:
            return self.engine.snapshot()

    def results(self) -> tuple[SessionResult, ...]:
        with self.lock:
            return tuple(self.rewards.results)

    def close(self) -> None:
        with self.lock:
            self.engine.close()
            EngineRouter(bus=self.bus).unregister(self.wiring)
            for c in self.components:
                if isinstance(c, EventLogComponent):
                    c.close()
        clear_context()


def build_engine(
    *,
    spec: SessionSpec,
    bus: EventBus,
    scheduler: Scheduler,
    session_id: str,
    runner_frame_interval_ms: float = 16.0,
) -> GameEngine:
    if spec.game == "clicker":
        return ClickerEngine(bus=bus, scheduler=scheduler, session_id=session_id, high_score=spec.high_score)

    if spec.game == "runner":
        return RunnerEngine(
            bus=bus,
            scheduler=scheduler,
            session_id=session_id,
            rng=random.Random(spec.seed),
            high_score=spec.high_score,
            frame_interval_ms=runner_frame_interval_ms,
        )

    if spec.game == "stacker":
        return StackerEngine(bus=bus, scheduler=scheduler, session_id=session_id, high_score=spec.high_score)

    raise ValueError(f"unknown game: {spec.game!r}")


def build_session(
    *,
    spec: SessionSpec,
    session_id: str | None = None,
    scheduler: Scheduler | None = None,
    record_dir: Path | None = None,
    runner_frame_interval_ms: float = 16.0,
    extra_components: Iterable[object] = (),
) -> SessionHandle:
    session_id = session_id or new_session_id()
    bus = EventBus()
    scheduler = scheduler or Scheduler()

    engine = build_engine(
        spec=spec,
        bus=bus,
        scheduler=scheduler,
        session_id=session_id,
        runner_frame_interval_ms=runner_frame_interval_ms,
    )

    driver = TickDriverComponent(engine=engine, scheduler=scheduler)
    rewards = RewardCollector()

    # Deterministic chain:
    # SessionStarted -> driver arms -> ticks mutate engine -> SessionEnded -> driver disarms, rewards collect
    components: list[object] = [driver, rewards]

    if record_dir is not None and spec.record:
        store = JsonlEventStore(path=record_dir / f"{session_id}.jsonl")
        components.append(EventLogComponent(store=store))

    components.extend(extra_components)

    wiring = EngineRouter(bus=bus).register(components)

    log.info(
        "session.assembled",
        session_id=session_id,
        game=spec.game,
        components=list(wiring.components()),
        recording=record_dir is not None and spec.record,
    )

    return SessionHandle(
        session_id=session_id,
        game=spec.game,
        spec=spec,
        bus=bus,
        scheduler=scheduler,
        engine=engine,
        driver=driver,
        rewards=rewards,
        wiring=wiring,
        components=tuple(components),
    )
