from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .shadow import EdgeWidths


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


def quad_bounds(quad: Sequence[float]) -> Rect:
    """
    Returns the axis-aligned bounds of a quad in [x1, y1, x2, y2, x3, y3, x4, y4] form.
    """
    if len(quad) < 8:
        raise ValueError("quad must have at least 8 numbers")
    xs = [float(v) for v in quad[0::2][:4]]
    ys = [float(v) for v in quad[1::2][:4]]
    return Rect(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))


def outset_rect(rect: Rect, widths: EdgeWidths) -> Rect:
    """
    Grow each side of *rect* by its edge width (negative widths pull that side in).
    """
    return Rect(
        x=rect.x - widths.left,
        y=rect.y - widths.top,
        width=rect.width + widths.left + widths.right,
        height=rect.height + widths.top + widths.bottom,
    )
