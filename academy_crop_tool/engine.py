"""
Crop session engine.

``CropEngine`` owns one source image and one crop rectangle for the
lifetime of a single crop: construct it with the uploaded bytes, feed it
pointer events, zoom and rotation, then ``commit()`` to get the encoded
raster (or ``cancel()`` to drop everything).  All geometry is delegated to
the pure functions in ``models``; this class only holds state and applies
transitions.  It has no Qt dependency, so the widget in ``crop_widget`` is
just one possible front end.
"""

import logging
from dataclasses import replace

from PIL import Image

from academy_crop_tool.config import (
    HANDLE_SIZE, JPEG_QUALITY, JPEG_QUALITY_MAX, JPEG_QUALITY_MIN, MIN_CROP_SIZE,
    OUTPUT_FORMAT_DEFAULT, OUTPUT_FORMATS, OUTPUT_LONG_EDGE,
    ROTATION_MODE_DEFAULT, ROTATION_MODES, ROTATION_STEP,
    ZOOM_MAX, ZOOM_MIN, ZOOM_STEP,
)
from academy_crop_tool.errors import DegenerateCropError, InvalidImageError
from academy_crop_tool.image_io import decode_image, encode_image, render_crop, rotate_clockwise
from academy_crop_tool.models import (
    IDLE, CropRect, DisplayTransform, InteractionState, Mode, SourceRect, Viewport,
    clamp_crop, compute_display_transform, cursor_hint, drag_crop, hit_test,
    initial_crop, output_size, resize_crop, source_rect, viewport_for_ratio,
)
from academy_crop_tool.presets import aspect_label

logger = logging.getLogger(__name__)


class CropEngine:
    """Interactive fixed-aspect crop over one source image."""

    def __init__(
        self,
        image: bytes | Image.Image,
        aspect_ratio: float,
        size_cap: int | None = None,
        *,
        viewport: Viewport | None = None,
        rotation_mode: str = ROTATION_MODE_DEFAULT,
        output_long_edge: int = OUTPUT_LONG_EDGE,
        output_format: str = OUTPUT_FORMAT_DEFAULT,
        jpeg_quality: int = JPEG_QUALITY,
        handle_size: float = HANDLE_SIZE,
        min_size: float = MIN_CROP_SIZE,
    ):
        if aspect_ratio <= 0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio!r}")
        if rotation_mode not in ROTATION_MODES:
            raise ValueError(f"rotation_mode must be one of {ROTATION_MODES}, got {rotation_mode!r}")
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {output_format!r}")
        if not JPEG_QUALITY_MIN <= jpeg_quality <= JPEG_QUALITY_MAX:
            raise ValueError(f"jpeg_quality must be in [{JPEG_QUALITY_MIN}, {JPEG_QUALITY_MAX}]")
        if output_long_edge <= 0:
            raise ValueError(f"output_long_edge must be positive, got {output_long_edge!r}")
        viewport = viewport or viewport_for_ratio(aspect_ratio, size_cap)
        if viewport.width < 1 or viewport.height < 1:
            raise ValueError(
                f"aspect_ratio {aspect_ratio!r} leaves no room in a {viewport.width}x{viewport.height} canvas"
            )

        if isinstance(image, Image.Image):
            if image.width == 0 or image.height == 0:
                raise InvalidImageError("Image has no pixels")
            img = image
        else:
            img = decode_image(bytes(image))

        self._image: Image.Image | None = img
        self._img_w, self._img_h = img.size
        self._aspect_ratio = aspect_ratio
        self._viewport = viewport
        self._rotation_mode = rotation_mode
        self._output_long_edge = output_long_edge
        self._output_format = output_format
        self._jpeg_quality = jpeg_quality
        self._handle_size = handle_size
        self._min_size = min_size

        self._scale = 1.0
        self._rotation = 0
        self._state = IDLE
        self._crop = initial_crop(self.transform, aspect_ratio)

        logger.debug(
            "Crop session: image %dx%d, viewport %dx%d, ratio %s, crop %s",
            self._img_w, self._img_h, self._viewport.width, self._viewport.height,
            self.aspect_label, self._crop,
        )

    # --- Read-only state ---

    @property
    def image(self) -> Image.Image:
        self._check_open()
        return self._image

    @property
    def image_size(self) -> tuple[int, int]:
        return self._img_w, self._img_h

    @property
    def aspect_ratio(self) -> float:
        return self._aspect_ratio

    @property
    def aspect_label(self) -> str:
        return aspect_label(self._aspect_ratio)

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def rotation(self) -> int:
        return self._rotation

    @property
    def rotation_mode(self) -> str:
        return self._rotation_mode

    @property
    def crop(self) -> CropRect:
        return self._crop

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._image is None

    @property
    def transform(self) -> DisplayTransform:
        return compute_display_transform(
            self._img_w, self._img_h,
            self._viewport.width, self._viewport.height,
            self._scale, self._rotation,
        )

    def set_crop(self, crop: CropRect) -> CropRect:
        """Replace the crop, forcing it onto the ratio and into the canvas."""
        self._check_open()
        self._crop = clamp_crop(
            crop, self._aspect_ratio,
            self._viewport.width, self._viewport.height, self._min_size,
        )
        return self._crop

    # --- Pointer interaction ---

    def hit_test(self, x: float, y: float):
        """Classify a pointer position against the current crop (no side effects)."""
        return hit_test(self._crop, x, y, self._handle_size)

    def on_pointer_down(self, x: float, y: float) -> InteractionState:
        self._check_open()
        mode, corner = self.hit_test(x, y)
        if mode == Mode.RESIZE:
            self._state = InteractionState(Mode.RESIZE, corner, x, y)
        elif mode == Mode.DRAG:
            self._state = InteractionState(Mode.DRAG, None, x - self._crop.x, y - self._crop.y)
        else:
            self._state = IDLE
        return self._state

    def on_pointer_move(self, x: float, y: float) -> tuple[CropRect, str]:
        """Apply an active drag or resize; return the crop and a cursor hint.

        The hint describes what lies under the pointer before this move
        is applied, so hovering works the same in every mode.
        """
        self._check_open()
        hint = cursor_hint(*self.hit_test(x, y))
        state = self._state
        vw, vh = self._viewport.width, self._viewport.height

        if state.mode == Mode.RESIZE:
            self._crop = resize_crop(
                self._crop, state.corner, x - state.ref_x, self._aspect_ratio,
                vw, vh, self._min_size,
            )
            self._state = replace(state, ref_x=x, ref_y=y)
        elif state.mode == Mode.DRAG:
            self._crop = drag_crop(self._crop, x, y, state.ref_x, state.ref_y, vw, vh)

        return self._crop, hint

    def on_pointer_up(self) -> None:
        self._state = IDLE

    # --- View controls ---

    def set_zoom(self, delta: float) -> float:
        """Change the zoom factor by *delta*, clamped to [ZOOM_MIN, ZOOM_MAX]."""
        self._check_open()
        self._scale = round(min(ZOOM_MAX, max(ZOOM_MIN, self._scale + delta)), 10)
        logger.debug("Zoom %.2f", self._scale)
        return self._scale

    def zoom_in(self) -> float:
        return self.set_zoom(ZOOM_STEP)

    def zoom_out(self) -> float:
        return self.set_zoom(-ZOOM_STEP)

    def rotate(self) -> int:
        """Turn the view a quarter clockwise, wrapping at 360."""
        self._check_open()
        self._rotation = (self._rotation + ROTATION_STEP) % 360
        logger.debug("Rotation %d°", self._rotation)
        return self._rotation

    # --- Commit / cancel ---

    def _commit_source(self) -> Image.Image:
        # In "visual" mode rotation only affects the preview; the unrotated
        # bitmap is sampled with the rotated transform.
        if self._rotation_mode == "apply":
            return rotate_clockwise(self._image, self._rotation)
        return self._image

    def source_selection(self) -> SourceRect:
        """The crop mapped onto source pixels. Raises DegenerateCropError."""
        self._check_open()
        src_img = self._commit_source()
        return source_rect(self._crop, self.transform, src_img.width, src_img.height)

    def commit_image(self) -> Image.Image:
        """Resample the selection to the output size. Raises DegenerateCropError."""
        self._check_open()
        src_img = self._commit_source()
        try:
            src = source_rect(self._crop, self.transform, src_img.width, src_img.height)
        except DegenerateCropError as exc:
            logger.warning("Commit rejected: %s", exc)
            raise
        size = output_size(self._aspect_ratio, self._output_long_edge)
        return render_crop(src_img, src, size)

    def commit(self) -> bytes:
        """Return the encoded crop. Raises DegenerateCropError; state is unchanged on failure."""
        result = self.commit_image()
        data = encode_image(result, self._output_format, self._jpeg_quality)
        logger.info(
            "Committed %s crop %dx%d (%s, %d bytes)",
            self.aspect_label, result.width, result.height, self._output_format, len(data),
        )
        return data

    def cancel(self) -> None:
        """Drop the image and all state. Further calls raise RuntimeError."""
        if self._image is not None:
            logger.debug("Crop session cancelled")
        self._image = None
        self._state = IDLE

    def _check_open(self) -> None:
        if self._image is None:
            raise RuntimeError("Crop session is closed")
