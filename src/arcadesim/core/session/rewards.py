from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import structlog

from arcadesim.core.events.base import Event
from arcadesim.core.events.session import SessionEnded

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class SessionResult:
    """
    What an external collaborator (dashboard, leaderboard) would persist.
    """
    game: str
    session_id: str
    generation: int
    score: int
    tokens_earned: int
    high_score: int
    new_high_score: bool
    reason: str


@dataclass(slots=True)
class RewardCollector:
    """
    EventBus component: collects the final result of every ended session.

    Persistence is someone else's job; this only hands results over.
    """
    results: list[SessionResult] = field(default_factory=list)

    def subscriptions(self) -> Sequence[tuple[str, callable]]:
        return [(SessionEnded.event_type, self._on_ended)]

    def _on_ended(self, e: Event) -> None:
        if not isinstance(e, SessionEnded):
            return
        result = SessionResult(
            game=e.game,
            session_id=e.session_id,
            generation=e.generation,
            score=e.score,
            tokens_earned=e.tokens_earned,
            high_score=e.high_score,
            new_high_score=e.new_high_score,
            reason=e.reason,
        )
        self.results.append(result)
        log.info(
            "rewards.session_collected",
            game=e.game,
            generation=e.generation,
            tokens_earned=e.tokens_earned,
        )

    @property
    def latest(self) -> SessionResult | None:
        return self.results[-1] if self.results else None

    @property
    def total_tokens(self) -> int:
        return sum(r.tokens_earned for r in self.results)
