"""
Validation utilities for signature placement.
Fails fast with InvalidField; nothing is ever clamped into range.
"""
from __future__ import annotations

import math
from typing import Any

from core.errors import InvalidField

# Float slack on the right/bottom edge sums (0.7 + 0.3 may be 1.0000000000000002)
EDGE_TOLERANCE = 1e-9


def _require_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidField(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidField(f"{name} must be finite, got {value}")
    return float(value)


def validate_placement_rect(x_pct: float, y_pct: float, w_pct: float, h_pct: float) -> None:
    """
    Validate that a percentage rectangle lies fully on the page.

    Rules:
    - xPct, yPct must be in [0, 1] (top-left corner within page)
    - wPct, hPct must be in (0, 1] (positive size, not exceeding page)
    - xPct + wPct must not exceed 1 (right edge within page)
    - yPct + hPct must not exceed 1 (bottom edge within page)

    Raises:
        InvalidField: if any rule is violated
    """
    x_pct = _require_number("xPct", x_pct)
    y_pct = _require_number("yPct", y_pct)
    w_pct = _require_number("wPct", w_pct)
    h_pct = _require_number("hPct", h_pct)

    if not (0 <= x_pct <= 1):
        raise InvalidField(f"xPct must be in range [0, 1], got {x_pct}")
    if not (0 <= y_pct <= 1):
        raise InvalidField(f"yPct must be in range [0, 1], got {y_pct}")

    if not (0 < w_pct <= 1):
        raise InvalidField(f"wPct must be in range (0, 1], got {w_pct}")
    if not (0 < h_pct <= 1):
        raise InvalidField(f"hPct must be in range (0, 1], got {h_pct}")

    if x_pct + w_pct > 1 + EDGE_TOLERANCE:
        raise InvalidField(
            f"xPct + wPct must not exceed 1 (got {x_pct} + {w_pct} = {x_pct + w_pct})"
        )
    if y_pct + h_pct > 1 + EDGE_TOLERANCE:
        raise InvalidField(
            f"yPct + hPct must not exceed 1 (got {y_pct} + {h_pct} = {y_pct + h_pct})"
        )


def validate_page_number(page: Any) -> int:
    """1-indexed page number; bools and floats are rejected."""
    if isinstance(page, bool) or not isinstance(page, int):
        raise InvalidField(f"page must be an integer, got {page!r}")
    if page < 1:
        raise InvalidField(f"page must be >= 1, got {page}")
    return page


def validate_placement_field(field: Any) -> None:
    """Validate a PlacementField (page number + rectangle)."""
    validate_page_number(field.page)
    validate_placement_rect(field.x_pct, field.y_pct, field.w_pct, field.h_pct)


def validate_dimensions(name: str, width: Any, height: Any) -> None:
    """Page or image dimensions must both be positive and finite."""
    w = _require_number(f"{name} width", width)
    h = _require_number(f"{name} height", height)
    if w <= 0 or h <= 0:
        raise InvalidField(f"{name} dimensions must be positive, got {w} x {h}")
