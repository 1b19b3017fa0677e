from __future__ import annotations

from typing import Protocol


class Boxed(Protocol):
    """
    Anything with an axis-aligned bounding box (top-left origin, y grows down).
    """

    x: float
    y: float
    width: float
    height: float


def overlaps(a: Boxed, b: Boxed) -> bool:
    """
    Strict AABB intersection: touching edges do not overlap.
    """
    return (
        a.x < b.x + b.width
        and a.x + a.width > b.x
        and a.y < b.y + b.height
        and a.y + a.height > b.y
    )


def horizontal_overlap(a: Boxed, b: Boxed) -> float:
    """
    Signed width of the shared x-interval. <= 0 means the spans do not meet.
    """
    return min(a.x + a.width, b.x + b.width) - max(a.x, b.x)
