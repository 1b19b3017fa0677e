from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from arcadesim.core.events.base import Event
from arcadesim.core.events.games import BlockPlaced, PickupCollected, PowerUpActivated, UpgradePurchased
from arcadesim.core.events.session import SessionEnded, SessionStarted
from arcadesim.storage.jsonl import JsonlEventStore

RECORDED_EVENT_TYPES: tuple[str, ...] = (
    SessionStarted.event_type,
    SessionEnded.event_type,
    PowerUpActivated.event_type,
    UpgradePurchased.event_type,
    PickupCollected.event_type,
    BlockPlaced.event_type,
)


@dataclass(slots=True)
class EventLogComponent:
    """
    EventBus component: append-only persistence of session events to JSONL.

    Ticks are not recorded; the log is an audit trail of transitions,
    purchases and placements.
    """
    store: JsonlEventStore
    event_types: tuple[str, ...] = RECORDED_EVENT_TYPES

    def subscriptions(self) -> Sequence[tuple[str, callable]]:
        return [(et, self._on_event) for et in self.event_types]

    def _on_event(self, e: Event) -> None:
        self.store.append(e)

    def close(self) -> None:
        self.store.close()
