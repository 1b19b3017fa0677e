from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    ENDED = "ended"


@dataclass(frozen=True, slots=True)
class SessionView:
    """
    Read-only copy of the session-level counters, embedded in every snapshot.
    """

    game: str
    session_id: str
    generation: int
    status: SessionStatus
    tick: int
    score: int
    tokens_earned: int
    high_score: int


@dataclass(slots=True)
class SessionState:
    """
    Session counters shared by every engine (owned by composition, not inheritance).

    - generation: bumped by every start(); tags deferred work
    - tick: engine step counter for the current session
    - sequence: monotonic sequence used for event ordering

    Guardrails:
      - next_tick / next_sequence / credit / debit only valid while running
        (prevents "mutation after end" bugs and makes lifecycle explicit)
    """

    game: str
    session_id: str
    status: SessionStatus = SessionStatus.IDLE
    score: int = 0
    tokens_earned: int = 0
    high_score: int = 0
    generation: int = 0
    tick: int = 0
    sequence: int = 0

    @property
    def is_running(self) -> bool:
        return self.status is SessionStatus.RUNNING

    def is_current(self, generation: int) -> bool:
        return self.is_running and self.generation == generation

    def next_tick(self) -> int:
        if not self.is_running:
            raise RuntimeError("cannot advance tick when session is not running")
        self.tick += 1
        return self.tick

    def next_sequence(self) -> int:
        if not self.is_running:
            raise RuntimeError("cannot advance sequence when session is not running")
        self.sequence += 1
        return self.sequence

    def credit(self, *, score: int = 0, tokens: int = 0) -> None:
        if not self.is_running:
            raise RuntimeError("cannot credit a session that is not running")
        if score < 0 or tokens < 0:
            raise ValueError("credit amounts must be >= 0")
        self.score += score
        self.tokens_earned += tokens

    def debit(self, amount: int) -> None:
        if not self.is_running:
            raise RuntimeError("cannot debit a session that is not running")
        if amount < 0 or amount > self.score:
            raise ValueError(f"invalid debit {amount} for score {self.score}")
        self.score -= amount

    def view(self) -> SessionView:
        return SessionView(
            game=self.game,
            session_id=self.session_id,
            generation=self.generation,
            status=self.status,
            tick=self.tick,
            score=self.score,
            tokens_earned=self.tokens_earned,
            high_score=self.high_score,
        )
