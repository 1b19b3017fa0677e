from __future__ import annotations

from typing import ClassVar, Mapping

import structlog

from arcadesim.core.engine.lifecycle import SessionLifecycle
from arcadesim.core.engine.protocol import Action
from arcadesim.core.engine.scheduler import Scheduler
from arcadesim.core.engine.state import SessionState
from arcadesim.core.events.bus import EventBus
from arcadesim.core.events.games import PowerUpActivated, UpgradePurchased
from arcadesim.games.clicker.economy import (
    ClickerConfig,
    ClickerSnapshot,
    ClickerState,
    click_value,
    convert_to_tokens,
    unlocks_power_up,
)

log = structlog.get_logger()


class ClickerEngine:
    """
    Timed click economy ("pump clicker").

    One tick == one second of game clock. Pumping is the only way to gain
    score; upgrades spend it. Tokens are converted from the final score when
    the clock runs out.

    Power-up multiplier resets are deferred on the Scheduler inside the
    session's timer group and tagged with the generation that scheduled them,
    so a reset can never reach a later session.
    """

    game: ClassVar[str] = "clicker"

    def __init__(
        self,
        *,
        bus: EventBus,
        scheduler: Scheduler,
        session_id: str,
        cfg: ClickerConfig | None = None,
        high_score: int = 0,
    ) -> None:
        if high_score < 0:
            raise ValueError("high_score must be >= 0")

        self._bus = bus
        self._scheduler = scheduler
        self._cfg = cfg or ClickerConfig()

        self._session = SessionState(game=self.game, session_id=session_id, high_score=high_score)
        self._lifecycle = SessionLifecycle(bus=bus, state=self._session, scheduler=scheduler)
        self._clicker = ClickerState(time_remaining=self._cfg.session_seconds)

    # ---------------- Introspection ----------------

    @property
    def state(self) -> SessionState:
        return self._session

    @property
    def config(self) -> ClickerConfig:
        return self._cfg

    def tick_interval_ms(self) -> float:
        return self._cfg.tick_interval_ms

    def actions(self) -> Mapping[str, Action]:
        return {
            "pump": self.primary_action,
            "power_up": self.activate_power_up,
            "upgrade": self.purchase_upgrade,
        }

    def snapshot(self) -> ClickerSnapshot:
        return ClickerSnapshot(
            session=self._session.view(),
            click_power=self._clicker.click_power,
            multiplier=self._clicker.multiplier,
            time_remaining=self._clicker.time_remaining,
            power_up_available=self._clicker.power_up_available,
            can_upgrade=self._session.is_running and self._session.score >= self._cfg.upgrade_cost,
        )

    # ---------------- Lifecycle ----------------

    def start(self) -> None:
        self._clicker = ClickerState(time_remaining=self._cfg.session_seconds)
        self._lifecycle.start()

    def close(self) -> None:
        self._lifecycle.close()

    def _end(self) -> None:
        self._lifecycle.end(
            reason="time_up",
            tokens_earned=convert_to_tokens(self._session.score, self._cfg),
        )

    # ---------------- Tick ----------------

    def tick(self, elapsed_ms: float | None = None) -> None:
        if not self._session.is_running:
            return

        self._session.next_tick()
        self._clicker.time_remaining = max(self._clicker.time_remaining - 1, 0)

        if self._clicker.time_remaining == 0:
            self._end()

    # ---------------- Inputs ----------------

    def primary_action(self) -> None:
        if not self._session.is_running:
            return

        self._session.credit(score=click_value(self._clicker))

        if unlocks_power_up(self._session.score, self._cfg):
            self._clicker.power_up_available = True

    def activate_power_up(self) -> None:
        if not self._session.is_running or not self._clicker.power_up_available:
            return

        self._clicker.multiplier *= 2
        self._clicker.time_remaining += self._cfg.power_up_bonus_seconds
        self._clicker.power_up_available = False

        generation = self._session.generation
        self._scheduler.call_later(
            self._cfg.power_up_duration_ms,
            lambda: self._reset_multiplier(generation),
            group=self._lifecycle.timer_group,
        )

        self._bus.publish(
            PowerUpActivated.create(
                session_id=self._session.session_id,
                multiplier=self._clicker.multiplier,
                time_remaining=self._clicker.time_remaining,
                sequence=self._session.next_sequence(),
            )
        )
        log.info(
            "clicker.power_up_activated",
            multiplier=self._clicker.multiplier,
            time_remaining=self._clicker.time_remaining,
        )

    def purchase_upgrade(self) -> None:
        if not self._session.is_running or self._session.score < self._cfg.upgrade_cost:
            return

        self._session.debit(self._cfg.upgrade_cost)
        self._clicker.click_power += 1

        self._bus.publish(
            UpgradePurchased.create(
                session_id=self._session.session_id,
                click_power=self._clicker.click_power,
                score=self._session.score,
                sequence=self._session.next_sequence(),
            )
        )

    # ---------------- Deferred ----------------

    def _reset_multiplier(self, generation: int) -> None:
        if not self._session.is_current(generation):
            log.debug("clicker.stale_multiplier_reset_dropped", generation=generation)
            return
        self._clicker.multiplier = 1
