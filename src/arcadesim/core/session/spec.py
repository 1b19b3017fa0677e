from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

GameKind = Literal["clicker", "runner", "stacker"]


class SessionSpec(BaseModel):
    """
    Canonical request to create a game session.
    """
    game: GameKind
    seed: Optional[int] = Field(default=None, description="RNG seed (runner spawns)")
    high_score: int = Field(default=0, ge=0, description="High score carried in from a previous visit")
    record: bool = Field(default=True, description="Record events when a record_dir is configured")
