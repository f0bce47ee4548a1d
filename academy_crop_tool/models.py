"""
Data models and crop-geometry utilities.

Everything here is pure: no Qt, no Pillow, no engine state.  Coordinates
are floats in viewport (canvas) pixels unless a name says otherwise.
``CropEngine`` strings these functions together into a session and the
Qt widget only paints their results, so the geometry can be tested
without a display.
"""

import math
from dataclasses import dataclass
from enum import Enum

from academy_crop_tool.config import (
    CANVAS_CAP_LANDSCAPE, CANVAS_CAP_PORTRAIT,
    CURSOR_DEFAULT, CURSOR_MOVE, CURSOR_RESIZE_NESW, CURSOR_RESIZE_NWSE,
    HANDLE_SIZE, INITIAL_CROP_FRACTION, MIN_CROP_SIZE, OUTPUT_LONG_EDGE,
)
from academy_crop_tool.errors import DegenerateCropError


# =============================================================================
# Enums
# =============================================================================
class Corner(Enum):
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"

    @property
    def is_left(self) -> bool:
        return self in (Corner.TOP_LEFT, Corner.BOTTOM_LEFT)

    @property
    def is_top(self) -> bool:
        return self in (Corner.TOP_LEFT, Corner.TOP_RIGHT)


class Mode(Enum):
    IDLE = "idle"
    DRAG = "drag"
    RESIZE = "resize"


# =============================================================================
# Data classes
# =============================================================================
@dataclass(frozen=True)
class Viewport:
    """Fixed drawing surface, in whole pixels."""
    width: int
    height: int


@dataclass(frozen=True)
class DisplayTransform:
    """Where the (letterboxed) image is painted inside the viewport."""
    draw_w: float
    draw_h: float
    offset_x: float
    offset_y: float


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in viewport coordinates."""
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def corner_point(self, corner: Corner) -> tuple[float, float]:
        cx = self.x if corner.is_left else self.right
        cy = self.y if corner.is_top else self.bottom
        return cx, cy

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom


@dataclass(frozen=True)
class SourceRect:
    """Crop region in source-image pixels (may be fractional)."""
    x: float
    y: float
    w: float
    h: float

    def box(self) -> tuple[float, float, float, float]:
        """Return a Pillow-style ``(left, upper, right, lower)`` box."""
        return (self.x, self.y, self.x + self.w, self.y + self.h)


@dataclass(frozen=True)
class InteractionState:
    """
    Current pointer interaction.

    For ``Mode.DRAG``, ``ref_x``/``ref_y`` hold the grab offset from the
    crop's top-left corner.  For ``Mode.RESIZE`` they hold the pointer
    position of the previous move event, so deltas are incremental.
    """
    mode: Mode = Mode.IDLE
    corner: Corner | None = None
    ref_x: float = 0.0
    ref_y: float = 0.0


IDLE = InteractionState()


# =============================================================================
# Viewport & display transform
# =============================================================================
def viewport_for_ratio(aspect_ratio: float, size_cap: int | None = None) -> Viewport:
    """Size the canvas for *aspect_ratio*: width is the cap, height follows."""
    if size_cap is None:
        size_cap = CANVAS_CAP_LANDSCAPE if aspect_ratio > 1 else CANVAS_CAP_PORTRAIT
    return Viewport(int(size_cap), int(size_cap / aspect_ratio))


def compute_display_transform(
    img_w: int, img_h: int,
    canvas_w: float, canvas_h: float,
    scale: float = 1.0, rotation: int = 0,
) -> DisplayTransform:
    """Fit the image into the canvas, letterboxing on the short axis.

    A quarter-turn rotation swaps the image dimensions before the aspect
    comparison.  The wider-than-canvas branch pins the image to the left
    edge (``offset_x = 0``) and the other branch pins it to the top, so a
    zoom above 1 grows the image to the right or downwards.
    """
    if rotation % 180 == 90:
        img_w, img_h = img_h, img_w
    image_aspect = img_w / img_h
    canvas_aspect = canvas_w / canvas_h

    if image_aspect > canvas_aspect:
        draw_w = canvas_w * scale
        draw_h = draw_w / image_aspect
        return DisplayTransform(draw_w, draw_h, 0.0, (canvas_h - draw_h) / 2)

    draw_h = canvas_h * scale
    draw_w = draw_h * image_aspect
    return DisplayTransform(draw_w, draw_h, (canvas_w - draw_w) / 2, 0.0)


def paint_rect(
    transform: DisplayTransform, rotation: int,
    canvas_w: float, canvas_h: float,
) -> tuple[float, float, float, float]:
    """Rectangle to draw the unrotated bitmap into, in rotated painter space.

    The renderer rotates its painter by *rotation* degrees about the
    viewport centre; drawing the bitmap into the returned ``(x, y, w, h)``
    then covers exactly the transform's painted region on screen.
    """
    cx = transform.offset_x + transform.draw_w / 2
    cy = transform.offset_y + transform.draw_h / 2
    vx, vy = canvas_w / 2, canvas_h / 2
    dx, dy = cx - vx, cy - vy

    theta = math.radians(rotation)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    px = vx + dx * cos_t + dy * sin_t
    py = vy - dx * sin_t + dy * cos_t

    if rotation % 180 == 90:
        w, h = transform.draw_h, transform.draw_w
    else:
        w, h = transform.draw_w, transform.draw_h
    return px - w / 2, py - h / 2, w, h


# =============================================================================
# Crop placement & clamping
# =============================================================================
def initial_crop(
    transform: DisplayTransform, aspect_ratio: float,
    fraction: float = INITIAL_CROP_FRACTION,
) -> CropRect:
    """Largest crop within *fraction* of the painted region, centred on it."""
    max_w = transform.draw_w * fraction
    max_h = transform.draw_h * fraction

    if max_w / aspect_ratio <= max_h:
        crop_w = max_w
        crop_h = crop_w / aspect_ratio
    else:
        crop_h = max_h
        crop_w = crop_h * aspect_ratio

    return CropRect(
        transform.offset_x + (transform.draw_w - crop_w) / 2,
        transform.offset_y + (transform.draw_h - crop_h) / 2,
        crop_w,
        crop_h,
    )


def clamp_crop(
    crop: CropRect, aspect_ratio: float,
    canvas_w: float, canvas_h: float,
    min_size: float = MIN_CROP_SIZE,
) -> CropRect:
    """Force a caller-supplied rect onto the ratio and into the canvas.

    Width wins over height; it is floored at *min_size*, then shrunk to
    fit the canvas on both axes.
    """
    w = max(min_size, crop.w)
    w = min(w, canvas_w, canvas_h * aspect_ratio)
    h = w / aspect_ratio
    x = max(0.0, min(crop.x, canvas_w - w))
    y = max(0.0, min(crop.y, canvas_h - h))
    return CropRect(x, y, w, h)


# =============================================================================
# Hit testing
# =============================================================================
def hit_test(
    crop: CropRect, px: float, py: float,
    handle_size: float = HANDLE_SIZE,
) -> tuple[Mode, Corner | None]:
    """Classify a pointer position. Corner handles take precedence over the body."""
    half = handle_size / 2
    for corner in Corner:
        cx, cy = crop.corner_point(corner)
        if cx - half <= px <= cx + half and cy - half <= py <= cy + half:
            return Mode.RESIZE, corner
    if crop.contains(px, py):
        return Mode.DRAG, None
    return Mode.IDLE, None


def cursor_hint(mode: Mode, corner: Corner | None) -> str:
    if mode == Mode.RESIZE:
        if corner in (Corner.TOP_LEFT, Corner.BOTTOM_RIGHT):
            return CURSOR_RESIZE_NWSE
        return CURSOR_RESIZE_NESW
    if mode == Mode.DRAG:
        return CURSOR_MOVE
    return CURSOR_DEFAULT


# =============================================================================
# Resize & drag
# =============================================================================
def resize_crop(
    crop: CropRect, corner: Corner, delta_x: float, aspect_ratio: float,
    canvas_w: float, canvas_h: float,
    min_size: float = MIN_CROP_SIZE,
) -> CropRect:
    """Resize from *corner*, keeping the opposite corner fixed.

    Only the horizontal pointer delta drives the size; height is always
    derived from width.  The result is shrunk (never shifted) to stay
    inside the canvas, so the anchor corner does not move.
    """
    if corner.is_left:
        new_w = max(min_size, crop.w - delta_x)
        anchor_x = crop.right
        max_w = anchor_x
    else:
        new_w = max(min_size, crop.w + delta_x)
        anchor_x = crop.x
        max_w = canvas_w - anchor_x

    if corner.is_top:
        anchor_y = crop.bottom
        max_h = anchor_y
    else:
        anchor_y = crop.y
        max_h = canvas_h - anchor_y

    # Clamp to canvas from anchor
    new_w = min(new_w, max_w, max_h * aspect_ratio)
    new_h = new_w / aspect_ratio

    new_x = anchor_x - new_w if corner.is_left else anchor_x
    new_y = max(0.0, anchor_y - new_h) if corner.is_top else anchor_y
    return CropRect(new_x, new_y, new_w, new_h)


def drag_crop(
    crop: CropRect, px: float, py: float,
    grab_x: float, grab_y: float,
    canvas_w: float, canvas_h: float,
) -> CropRect:
    """Move the crop so the grab point follows the pointer, clamped per axis."""
    new_x = max(0.0, min(px - grab_x, canvas_w - crop.w))
    new_y = max(0.0, min(py - grab_y, canvas_h - crop.h))
    return CropRect(new_x, new_y, crop.w, crop.h)


# =============================================================================
# Commit mapping
# =============================================================================
def source_rect(crop: CropRect, transform: DisplayTransform, img_w: int, img_h: int) -> SourceRect:
    """Map a viewport crop onto source-image pixels.

    Raises DegenerateCropError if the mapped region is empty or starts
    beyond the image.
    """
    rel_x = crop.x - transform.offset_x
    rel_y = crop.y - transform.offset_y
    scale_x = img_w / transform.draw_w
    scale_y = img_h / transform.draw_h

    sx = max(0.0, rel_x * scale_x)
    sy = max(0.0, rel_y * scale_y)
    sw = min(img_w - sx, crop.w * scale_x)
    sh = min(img_h - sy, crop.h * scale_y)

    if sx >= img_w or sy >= img_h or sw <= 0 or sh <= 0:
        raise DegenerateCropError(
            f"Crop maps outside the image: source ({sx:.1f}, {sy:.1f}, {sw:.1f}, {sh:.1f}) "
            f"in {img_w}x{img_h}",
            source=(sx, sy, sw, sh),
        )
    return SourceRect(sx, sy, sw, sh)


def output_size(aspect_ratio: float, long_edge: int = OUTPUT_LONG_EDGE) -> tuple[int, int]:
    """Output raster size: *long_edge* on the long side, ratio on the other."""
    if aspect_ratio >= 1:
        return long_edge, max(1, round(long_edge / aspect_ratio))
    return max(1, round(long_edge * aspect_ratio)), long_edge
