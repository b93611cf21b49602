from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Optional

# One color token typically accompanies each shadow layer.
_COLOR_RE = re.compile(r"rgb|#")

# A full number followed by `px` or whitespace. The lookbehind keeps hex color
# digits (`#000 `) and tails of longer numbers from matching on their own.
_NUMBER_RE = re.compile(r"(?<![\w#.\-])-?(?:\d+\.?\d*|\.\d+)(?=px|\s)")


@dataclass(frozen=True)
class BoxShadow:
    h_offset: float = 0.0
    v_offset: float = 0.0
    blur: float = 0.0
    spread: float = 0.0


@dataclass(frozen=True)
class EdgeWidths:
    """
    Approximate visual extent of a shadow beyond each edge of its box.

    Widths may be negative: an offset shadow recedes from the opposite edge.
    """

    top: float
    right: float
    bottom: float
    left: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def count_color_indicators(shadow: str) -> int:
    return len(_COLOR_RE.findall(shadow))


def is_multi_shadow(shadow: str) -> bool:
    """
    Heuristic multi-layer check: more than one `rgb`/`#` color indicator.

    This is not a CSS tokenizer. A single shadow with a named color never trips
    it, and unrelated `rgb` substrings do.
    """
    return count_color_indicators(shadow) > 1


def extract_numeric_tokens(shadow: str) -> list[str]:
    return _NUMBER_RE.findall(shadow)


def parse_box_shadow(shadow: str) -> Optional[BoxShadow]:
    """
    Returns the positional (h_offset, v_offset, blur, spread) values, or None for
    a multi-layer declaration. Tokens past the fourth are ignored.
    """
    if is_multi_shadow(shadow):
        return None
    values = [float(t) for t in extract_numeric_tokens(shadow)[:4]]
    return BoxShadow(*values)


def edge_widths(shadow: BoxShadow) -> EdgeWidths:
    # Blur approximates a Gaussian with a standard deviation of half the blur
    # radius, so a solid edge grows by blur / 2 in every direction.
    half_blur = 0.5 * shadow.blur
    return EdgeWidths(
        top=shadow.spread - shadow.v_offset + half_blur,
        right=shadow.spread + shadow.h_offset + half_blur,
        bottom=shadow.spread + shadow.v_offset + half_blur,
        left=shadow.spread - shadow.h_offset + half_blur,
    )


def box_shadow_widths(shadow: str) -> Optional[EdgeWidths]:
    """
    Approximate per-edge widths for a CSS `box-shadow` value.

    Returns None when the value looks like it holds several shadow layers;
    callers are expected to branch on that. Never raises for string input.
    """
    parsed = parse_box_shadow(shadow)
    if parsed is None:
        return None
    return edge_widths(parsed)
