from __future__ import annotations

import random
from typing import ClassVar, Mapping

import structlog

from arcadesim.core.engine.lifecycle import SessionLifecycle
from arcadesim.core.engine.protocol import Action
from arcadesim.core.engine.scheduler import Scheduler
from arcadesim.core.engine.state import SessionState
from arcadesim.core.events.bus import EventBus
from arcadesim.core.events.games import PickupCollected
from arcadesim.games.runner.collision import first_obstacle_hit, split_pickups
from arcadesim.games.runner.entities import (
    Entity,
    EntityKind,
    PlayerBody,
    RunnerConfig,
    RunnerInput,
    RunnerSnapshot,
)
from arcadesim.games.runner.physics import integrate, try_jump
from arcadesim.games.runner.spawner import ObstacleSpawner

log = structlog.get_logger()


class RunnerEngine:
    """
    Side-scrolling runner ("space runner").

    Frame order:
      input -> physics -> scroll/prune -> spawn -> distance/score/speed
      -> obstacle collision (ends the session) -> pickups

    tick() is one frame regardless of elapsed_ms; the host controls the
    frame rate.
    """

    game: ClassVar[str] = "runner"

    def __init__(
        self,
        *,
        bus: EventBus,
        scheduler: Scheduler,
        session_id: str,
        cfg: RunnerConfig | None = None,
        rng: random.Random | None = None,
        high_score: int = 0,
        frame_interval_ms: float = 16.0,
    ) -> None:
        if high_score < 0:
            raise ValueError("high_score must be >= 0")
        if frame_interval_ms <= 0:
            raise ValueError("frame_interval_ms must be > 0")

        self._bus = bus
        self._cfg = cfg or RunnerConfig()
        self._frame_interval_ms = frame_interval_ms

        self._session = SessionState(game=self.game, session_id=session_id, high_score=high_score)
        self._lifecycle = SessionLifecycle(bus=bus, state=self._session, scheduler=scheduler)
        self._spawner = ObstacleSpawner(cfg=self._cfg, rng=rng or random.Random())

        self._player = PlayerBody.spawn(self._cfg)
        self._entities: list[Entity] = []
        self._input = RunnerInput()
        self._distance = 0
        self._speed = self._cfg.initial_speed

    # ---------------- Introspection ----------------

    @property
    def state(self) -> SessionState:
        return self._session

    @property
    def config(self) -> RunnerConfig:
        return self._cfg

    def tick_interval_ms(self) -> float:
        return self._frame_interval_ms

    def actions(self) -> Mapping[str, Action]:
        return {"jump": self.jump}

    def snapshot(self) -> RunnerSnapshot:
        return RunnerSnapshot(
            session=self._session.view(),
            player=self._player.view(),
            entities=tuple(self._entities),
            distance=self._distance,
            speed=self._speed,
        )

    # ---------------- Lifecycle ----------------

    def start(self) -> None:
        self._player = PlayerBody.spawn(self._cfg)
        self._entities = []
        self._input = RunnerInput()
        self._distance = 0
        self._speed = self._cfg.initial_speed
        self._spawner.reset()
        self._lifecycle.start()

    def close(self) -> None:
        self._lifecycle.close()

    # ---------------- Inputs ----------------

    def jump(self) -> None:
        if not self._session.is_running:
            return
        self._input.jump_requested = True

    def primary_action(self) -> None:
        self.jump()

    # ---------------- Tick ----------------

    def tick(self, elapsed_ms: float | None = None) -> None:
        if not self._session.is_running:
            return

        self._session.next_tick()
        cfg = self._cfg

        if self._input.take_jump():
            try_jump(self._player, cfg)

        integrate(self._player, cfg)

        self._entities = [
            moved
            for moved in (e.scrolled(self._speed) for e in self._entities)
            if moved.x + moved.width > 0
        ]

        spawned = self._spawner.maybe_spawn()
        if spawned is not None:
            self._entities.append(spawned)
            log.debug("runner.spawned", kind=spawned.kind.value, entity_id=spawned.entity_id)

        self._distance += 1
        self._session.credit(score=1)
        self._speed = min(self._speed + cfg.speed_step, cfg.max_speed)

        hit = first_obstacle_hit(self._player, self._entities)
        if hit is not None:
            log.info("runner.obstacle_hit", entity_id=hit.entity_id, distance=self._distance)
            self._lifecycle.end(reason="obstacle")
            return

        self._entities, collected = split_pickups(self._player, self._entities)
        for e in collected:
            self._credit_pickup(e)

    def _credit_pickup(self, e: Entity) -> None:
        if e.kind is EntityKind.TOKEN:
            score, tokens = self._cfg.token_reward
        else:
            score, tokens = self._cfg.power_up_reward

        self._session.credit(score=score, tokens=tokens)
        self._bus.publish(
            PickupCollected.create(
                session_id=self._session.session_id,
                kind=e.kind.value,
                score_delta=score,
                tokens_delta=tokens,
                sequence=self._session.next_sequence(),
            )
        )

    # ---------------- Test/host seams ----------------

    def place(self, entity: Entity) -> None:
        """
        Inject an entity into the field (scripted levels, tests).
        """
        if not self._session.is_running:
            return
        self._entities.append(entity)
