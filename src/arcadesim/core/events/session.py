from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from arcadesim.core.events.base import Event


@dataclass(frozen=True, slots=True)
class SessionStarted(Event):
    """
    Emitted when an engine enters Running.
    """

    event_type: ClassVar[str] = "session.started"

    game: str
    session_id: str
    generation: int
    high_score: int


@dataclass(frozen=True, slots=True)
class SessionEnded(Event):
    """
    Emitted exactly once per Running -> Ended transition.

    Carries the final result for external collaborators (dashboard,
    leaderboard) to persist.
    """

    event_type: ClassVar[str] = "session.ended"

    game: str
    session_id: str
    generation: int

    score: int
    tokens_earned: int
    high_score: int
    new_high_score: bool

    reason: str
