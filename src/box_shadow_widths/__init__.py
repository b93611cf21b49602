from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from .geometry import Rect, outset_rect, quad_bounds
from .nodriver_dom import ShadowMeasurement, selector_box_shadow, selector_shadow_bounds, selector_shadow_widths
from .session import InspectConfig, ShadowInspector, inspect_page
from .shadow import (
    BoxShadow,
    EdgeWidths,
    box_shadow_widths,
    count_color_indicators,
    edge_widths,
    extract_numeric_tokens,
    is_multi_shadow,
    parse_box_shadow,
)

try:
    __version__ = _pkg_version("box-shadow-widths")
except PackageNotFoundError:  # pragma: no cover - only hit in editable/dev without metadata
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "BoxShadow",
    "EdgeWidths",
    "InspectConfig",
    "Rect",
    "ShadowInspector",
    "ShadowMeasurement",
    "box_shadow_widths",
    "count_color_indicators",
    "edge_widths",
    "extract_numeric_tokens",
    "inspect_page",
    "is_multi_shadow",
    "outset_rect",
    "parse_box_shadow",
    "quad_bounds",
    "selector_box_shadow",
    "selector_shadow_bounds",
    "selector_shadow_widths",
]
