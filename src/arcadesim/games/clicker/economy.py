from __future__ import annotations

from dataclasses import dataclass

from arcadesim.core.engine.state import SessionView


@dataclass(frozen=True, slots=True)
class ClickerConfig:
    session_seconds: int = 60
    tick_interval_ms: float = 1000.0

    # Power-up
    power_up_score_step: int = 500
    power_up_bonus_seconds: int = 10
    power_up_duration_ms: float = 10_000.0

    # Economy
    upgrade_cost: int = 100
    score_per_token: int = 10

    def __post_init__(self) -> None:
        if self.session_seconds <= 0:
            raise ValueError("session_seconds must be > 0")
        if self.tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be > 0")
        if self.power_up_score_step <= 0:
            raise ValueError("power_up_score_step must be > 0")
        if self.upgrade_cost <= 0:
            raise ValueError("upgrade_cost must be > 0")
        if self.score_per_token <= 0:
            raise ValueError("score_per_token must be > 0")


@dataclass(slots=True)
class ClickerState:
    """
    Clicker-only fields; session counters live in SessionState.
    """
    click_power: int = 1
    multiplier: int = 1
    time_remaining: int = 60
    power_up_available: bool = False


@dataclass(frozen=True, slots=True)
class ClickerSnapshot:
    session: SessionView
    click_power: int
    multiplier: int
    time_remaining: int
    power_up_available: bool
    can_upgrade: bool


def click_value(state: ClickerState) -> int:
    return state.click_power * state.multiplier


def unlocks_power_up(score: int, cfg: ClickerConfig) -> bool:
    return score > 0 and score % cfg.power_up_score_step == 0


def convert_to_tokens(score: int, cfg: ClickerConfig) -> int:
    return score // cfg.score_per_token
