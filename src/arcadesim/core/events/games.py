from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal

from arcadesim.core.events.base import Event

PickupKind = Literal["token", "power_up"]


@dataclass(frozen=True, slots=True)
class PowerUpActivated(Event):
    """
    Clicker: the player spent an available power-up.
    """
    event_type: ClassVar[str] = "clicker.power_up_activated"

    session_id: str
    multiplier: int
    time_remaining: int


@dataclass(frozen=True, slots=True)
class UpgradePurchased(Event):
    """
    Clicker: score was debited in exchange for click power.
    """
    event_type: ClassVar[str] = "clicker.upgrade_purchased"

    session_id: str
    click_power: int
    score: int


@dataclass(frozen=True, slots=True)
class PickupCollected(Event):
    """
    Runner: a collectible entity was consumed by the player.
    """
    event_type: ClassVar[str] = "runner.pickup_collected"

    session_id: str
    kind: PickupKind
    score_delta: int
    tokens_delta: int


@dataclass(frozen=True, slots=True)
class BlockPlaced(Event):
    """
    Stacker: a drop landed and the trimmed block joined the tower.
    """
    event_type: ClassVar[str] = "stacker.block_placed"

    session_id: str
    level: int
    x: int
    width: int
    perfect: bool
    points: int
    tokens: int
