from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from arcadesim.core.engine.state import SessionView


@dataclass(frozen=True, slots=True)
class RunnerConfig:
    # Physics (per frame)
    gravity: float = 0.8
    jump_force: float = -15.0
    ground_y: float = 300.0

    # Player
    player_x: float = 100.0
    player_start_y: float = 200.0
    player_size: float = 40.0

    # Field & scrolling
    field_width: float = 800.0
    initial_speed: float = 2.0
    max_speed: float = 8.0
    speed_step: float = 0.001

    # Spawning
    spawn_chance: float = 0.02
    obstacle_chance: float = 0.7
    token_chance: float = 0.9
    obstacle_size: float = 30.0
    collectible_size: float = 20.0
    collectible_min_lift: float = 50.0
    collectible_lift_range: float = 100.0

    # Rewards (score, tokens)
    token_reward: tuple[int, int] = (50, 5)
    power_up_reward: tuple[int, int] = (100, 10)

    def __post_init__(self) -> None:
        if self.gravity <= 0:
            raise ValueError("gravity must be > 0")
        if self.jump_force >= 0:
            raise ValueError("jump_force must be < 0 (y grows downward)")
        if not 0 < self.initial_speed <= self.max_speed:
            raise ValueError("initial_speed must be in (0, max_speed]")
        for name in ("spawn_chance", "obstacle_chance", "token_chance"):
            p = getattr(self, name)
            if not 0.0 <= p <= 1.0:
                raise ValueError(f"{name} must be a probability, got {p}")

    @property
    def floor_y(self) -> float:
        """
        Line the player stands on (bottom edge of a grounded player).
        """
        return self.ground_y + self.player_size


class EntityKind(str, Enum):
    OBSTACLE = "obstacle"
    TOKEN = "token"
    POWER_UP = "power_up"


@dataclass(frozen=True, slots=True)
class Entity:
    entity_id: int
    kind: EntityKind
    x: float
    y: float
    width: float
    height: float

    def scrolled(self, dx: float) -> "Entity":
        return replace(self, x=self.x - dx)

    @property
    def is_collectible(self) -> bool:
        return self.kind is not EntityKind.OBSTACLE


@dataclass(frozen=True, slots=True)
class PlayerView:
    x: float
    y: float
    width: float
    height: float
    velocity_y: float
    is_airborne: bool


@dataclass(slots=True)
class PlayerBody:
    """
    The single mutable body of a runner session.
    """
    x: float
    y: float
    width: float
    height: float
    velocity_y: float = 0.0
    is_airborne: bool = False

    @classmethod
    def spawn(cls, cfg: RunnerConfig) -> "PlayerBody":
        return cls(
            x=cfg.player_x,
            y=cfg.player_start_y,
            width=cfg.player_size,
            height=cfg.player_size,
            is_airborne=cfg.player_start_y < cfg.ground_y,
        )

    def view(self) -> PlayerView:
        return PlayerView(
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            velocity_y=self.velocity_y,
            is_airborne=self.is_airborne,
        )


@dataclass(slots=True)
class RunnerInput:
    """
    Input record owned by the engine; filled by handlers, sampled once per tick.
    """
    jump_requested: bool = False

    def take_jump(self) -> bool:
        requested = self.jump_requested
        self.jump_requested = False
        return requested


@dataclass(frozen=True, slots=True)
class RunnerSnapshot:
    session: SessionView
    player: PlayerView
    entities: tuple[Entity, ...]
    distance: int
    speed: float
