"""Rectangle helpers used to validate face framing."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in preview coordinates."""

    min_x: float
    min_y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.min_x + self.width

    @property
    def max_y(self) -> float:
        return self.min_y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return self.min_x + self.width / 2.0, self.min_y + self.height / 2.0

    def inset(self, amount: float) -> "Rect":
        """Shrink width and height by ``amount`` around the same center."""

        width = max(self.width - amount, 0.0)
        height = max(self.height - amount, 0.0)
        cx, cy = self.center
        return Rect(min_x=cx - width / 2.0, min_y=cy - height / 2.0, width=width, height=height)


def contains(outside: Rect, inside: Rect) -> bool:
    """True when every edge of ``inside`` lies within ``outside``."""

    if inside.min_x < outside.min_x:
        return False
    if inside.max_x > outside.max_x:
        return False
    if inside.min_y < outside.min_y:
        return False
    if inside.max_y > outside.max_y:
        return False
    return True


__all__ = ["Rect", "contains"]
