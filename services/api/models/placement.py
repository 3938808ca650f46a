# services/api/models/placement.py

from __future__ import annotations

from dataclasses import dataclass

from core.validation import validate_dimensions, validate_placement_field


@dataclass(frozen=True)
class PlacementField:
    """
    Requested signature location, page-relative and resolution-independent.

    Percentages are fractions of the page size with a TOP-LEFT origin
    (y grows downwards), which is how the browser reports them.
    """
    page: int          # 1-based
    x_pct: float
    y_pct: float
    w_pct: float
    h_pct: float

    @property
    def page_index(self) -> int:
        return self.page - 1


@dataclass(frozen=True)
class ResolvedBox:
    """Requested box in PDF user space (origin bottom-left, points)."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class DrawRect:
    """Rectangle the image actually occupies inside a ResolvedBox."""
    x: float
    y: float
    width: float
    height: float


def resolve_box(field: PlacementField, page_width: float, page_height: float) -> ResolvedBox:
    """
    Convert a top-left-origin percentage rect into PDF coordinates
    (origin bottom-left). Always recomputed, never cached.
    """
    validate_placement_field(field)
    validate_dimensions("page", page_width, page_height)

    # PDF origin is bottom-left: y_flip = height - (y + h)
    return ResolvedBox(
        x=field.x_pct * page_width,
        y=page_height - (field.y_pct + field.h_pct) * page_height,
        width=field.w_pct * page_width,
        height=field.h_pct * page_height,
    )


def fit_image(box: ResolvedBox, image_width: float, image_height: float) -> DrawRect:
    """
    Scale an image into `box` keeping its aspect ratio, centered.
    Width-limited when the box is relatively narrower than the image,
    height-limited otherwise.
    """
    validate_dimensions("image", image_width, image_height)

    ratio = image_width / image_height
    draw_w = min(box.width, box.height * ratio)
    # (h * r) / r can overshoot h by one ulp
    draw_h = min(draw_w / ratio, box.height)

    return DrawRect(
        x=box.x + (box.width - draw_w) / 2,
        y=box.y + (box.height - draw_h) / 2,
        width=draw_w,
        height=draw_h,
    )


def resolve(
    field: PlacementField,
    page_width: float,
    page_height: float,
    image_width: float,
    image_height: float,
) -> DrawRect:
    """Placement resolver: percentage field + page/image size -> DrawRect."""
    return fit_image(resolve_box(field, page_width, page_height), image_width, image_height)
