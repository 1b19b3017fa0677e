from __future__ import annotations

import itertools
import random

from arcadesim.games.runner.entities import Entity, EntityKind, RunnerConfig


class ObstacleSpawner:
    """
    Procedural entity source for the runner.

    Kind selection is two independent draws: obstacle vs. collectible, then
    token vs. power-up inside the collectible branch. With the default
    chances that gives 0.7 / 0.27 / 0.03 overall.
    """

    def __init__(self, *, cfg: RunnerConfig, rng: random.Random) -> None:
        self._cfg = cfg
        self._rng = rng
        self._ids = itertools.count(1)

    def reset(self) -> None:
        self._ids = itertools.count(1)

    def draw_kind(self) -> EntityKind:
        if self._rng.random() < self._cfg.obstacle_chance:
            return EntityKind.OBSTACLE
        if self._rng.random() < self._cfg.token_chance:
            return EntityKind.TOKEN
        return EntityKind.POWER_UP

    def build(self, kind: EntityKind) -> Entity:
        cfg = self._cfg
        if kind is EntityKind.OBSTACLE:
            size = cfg.obstacle_size
            # resting on the same floor as the player
            y = cfg.floor_y - size
        else:
            size = cfg.collectible_size
            y = cfg.ground_y - cfg.collectible_min_lift - self._rng.random() * cfg.collectible_lift_range

        return Entity(
            entity_id=next(self._ids),
            kind=kind,
            x=cfg.field_width,
            y=y,
            width=size,
            height=size,
        )

    def maybe_spawn(self) -> Entity | None:
        if self._rng.random() >= self._cfg.spawn_chance:
            return None
        return self.build(self.draw_kind())
