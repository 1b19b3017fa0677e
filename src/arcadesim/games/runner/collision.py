from __future__ import annotations

from typing import Iterable, Sequence

from arcadesim.games.geometry import Boxed, overlaps
from arcadesim.games.runner.entities import Entity, EntityKind


def first_obstacle_hit(player: Boxed, entities: Iterable[Entity]) -> Entity | None:
    """
    First obstacle (spawn order) overlapping the player, if any.
    """
    for e in entities:
        if e.kind is EntityKind.OBSTACLE and overlaps(player, e):
            return e
    return None


def split_pickups(player: Boxed, entities: Sequence[Entity]) -> tuple[list[Entity], list[Entity]]:
    """
    Partition entities into (remaining, collected).

    Every overlapping collectible is collected in the same frame; obstacles
    are never collected.
    """
    remaining: list[Entity] = []
    collected: list[Entity] = []
    for e in entities:
        if e.is_collectible and overlaps(player, e):
            collected.append(e)
        else:
            remaining.append(e)
    return remaining, collected
