from __future__ import annotations

from arcadesim.games.runner.entities import PlayerBody, RunnerConfig


def integrate(body: PlayerBody, cfg: RunnerConfig) -> None:
    """
    One frame of semi-implicit Euler: velocity first, then position.
    Landing clamps to the ground and clears the airborne flag.
    """
    body.velocity_y += cfg.gravity
    body.y += body.velocity_y

    if body.y >= cfg.ground_y:
        body.y = cfg.ground_y
        body.velocity_y = 0.0
        body.is_airborne = False


def try_jump(body: PlayerBody, cfg: RunnerConfig) -> bool:
    """
    Launch from the ground. No double jump.
    """
    if body.is_airborne:
        return False
    body.velocity_y = cfg.jump_force
    body.is_airborne = True
    return True
