from __future__ import annotations

from dataclasses import dataclass, replace

from arcadesim.core.engine.state import SessionView
from arcadesim.games.geometry import horizontal_overlap

PALETTE: tuple[str, ...] = ("#ff00ff", "#00ffff", "#ffff00", "#ff6600", "#00ff00", "#ff0066")


@dataclass(frozen=True, slots=True)
class StackerConfig:
    field_width: int = 400
    field_height: int = 600
    block_height: int = 40
    initial_width: int = 200
    step: int = 3

    perfect_tolerance: int = 5
    perfect_points: int = 100
    perfect_tokens: int = 20
    points_per_token: int = 5
    min_width: int = 20

    # Oscillation speed-up
    initial_interval_ms: int = 1000
    min_interval_ms: int = 300
    speedup_ms: int = 100
    speedup_every_levels: int = 5

    palette: tuple[str, ...] = PALETTE

    def __post_init__(self) -> None:
        if self.initial_width > self.field_width:
            raise ValueError("initial_width must fit in field_width")
        if self.step <= 0:
            raise ValueError("step must be > 0")
        if not self.palette:
            raise ValueError("palette must not be empty")
        if not 0 < self.min_interval_ms <= self.initial_interval_ms:
            raise ValueError("interval bounds must satisfy 0 < min <= initial")
        if self.speedup_every_levels <= 0:
            raise ValueError("speedup_every_levels must be > 0")


@dataclass(frozen=True, slots=True)
class Block:
    id: int
    x: int
    y: int
    width: int
    height: int
    color_index: int


@dataclass(frozen=True, slots=True)
class DropOutcome:
    """
    Pure result of dropping `current` onto `last`.

    placed is None when the blocks do not meet.
    """
    overlap: int
    placed: Block | None
    perfect: bool
    points: int
    tokens: int


@dataclass(frozen=True, slots=True)
class StackerSnapshot:
    session: SessionView
    blocks: tuple[Block, ...]
    current_block: Block | None
    direction: int
    level: int
    perfect_stacks: int
    tick_interval_ms: int


def base_block(cfg: StackerConfig) -> Block:
    return Block(
        id=0,
        x=cfg.field_width // 2 - cfg.initial_width // 2,
        y=cfg.field_height - cfg.block_height,
        width=cfg.initial_width,
        height=cfg.block_height,
        color_index=0,
    )


def next_block(last: Block, cfg: StackerConfig) -> Block:
    return Block(
        id=last.id + 1,
        x=0,
        y=last.y - last.height,
        width=last.width,
        height=last.height,
        color_index=(last.id + 1) % len(cfg.palette),
    )


def oscillate(block: Block, direction: int, cfg: StackerConfig) -> tuple[Block, int]:
    """
    Slide one step and bounce off the field edges.
    """
    x = block.x + direction * cfg.step
    if x <= 0:
        x, direction = 0, 1
    elif x + block.width >= cfg.field_width:
        x, direction = cfg.field_width - block.width, -1
    return replace(block, x=x), direction


def resolve_drop(current: Block, last: Block, cfg: StackerConfig) -> DropOutcome:
    overlap = horizontal_overlap(current, last)
    if overlap <= 0:
        return DropOutcome(overlap=overlap, placed=None, perfect=False, points=0, tokens=0)

    placed = replace(current, x=max(current.x, last.x), width=overlap)

    # absolute tolerance, not a ratio
    perfect = abs(overlap - last.width) < cfg.perfect_tolerance
    if perfect:
        points, tokens = cfg.perfect_points, cfg.perfect_tokens
    else:
        points = overlap // 2
        tokens = points // cfg.points_per_token

    return DropOutcome(overlap=overlap, placed=placed, perfect=perfect, points=points, tokens=tokens)


def sped_up_interval(level: int, interval_ms: int, cfg: StackerConfig) -> int:
    if level % cfg.speedup_every_levels != 0:
        return interval_ms
    return max(interval_ms - cfg.speedup_ms, cfg.min_interval_ms)
