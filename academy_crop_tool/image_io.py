"""
Qt-free image I/O utilities.

Decodes uploaded bytes (including PSD) into Pillow images, resamples a
source rectangle to the output size, encodes the result, and generates
unique file paths for the command-line front end.
"""

import io
import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError
from psd_tools import PSDImage

from academy_crop_tool.config import (
    JPEG_QUALITY, MAX_UPLOAD_BYTES, PNG_COMPRESS_LEVEL, SUPPORTED_FORMATS,
)
from academy_crop_tool.errors import InvalidImageError
from academy_crop_tool.models import SourceRect

logger = logging.getLogger(__name__)

_PSD_SIGNATURE = b"8BPS"

# Quarter turns, clockwise as seen on screen
_CLOCKWISE_TRANSPOSE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}


def decode_image(data: bytes, max_bytes: int = MAX_UPLOAD_BYTES) -> Image.Image:
    """
    Decode raw upload bytes into a fully loaded Pillow image.

    PSD files are composited with psd-tools; everything else goes through
    Pillow.  EXIF orientation is applied so the image matches what a
    browser would show.  Raises InvalidImageError for empty, oversized,
    unsupported or corrupt payloads.
    """
    if not data:
        raise InvalidImageError("Image data is empty")
    if len(data) > max_bytes:
        raise InvalidImageError(
            f"Image is {len(data)} bytes; the limit is {max_bytes} bytes"
        )

    try:
        if data[:4] == _PSD_SIGNATURE:
            img = PSDImage.open(io.BytesIO(data)).composite()
        else:
            img = Image.open(io.BytesIO(data))
            if img.format not in SUPPORTED_FORMATS:
                raise InvalidImageError(f"Unsupported image format: {img.format}")
            img.load()
            img = ImageOps.exif_transpose(img)
    except InvalidImageError:
        raise
    except (
        UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError,
    ) as exc:
        raise InvalidImageError(f"Could not decode image: {exc}") from exc

    if img is None or img.width == 0 or img.height == 0:
        raise InvalidImageError("Image has no pixels")

    logger.debug("Decoded %s image %dx%d (%d bytes)", img.mode, img.width, img.height, len(data))
    return img


def rotate_clockwise(img: Image.Image, rotation: int) -> Image.Image:
    """Return *img* turned clockwise by a multiple of 90 degrees."""
    method = _CLOCKWISE_TRANSPOSE.get(rotation % 360)
    if method is None:
        return img
    return img.transpose(method)


def render_crop(img: Image.Image, src: SourceRect, size: tuple[int, int]) -> Image.Image:
    """Resample the (fractional) source rectangle of *img* to *size*."""
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if "transparency" in img.info or img.mode in ("LA", "PA") else "RGB")
    return img.resize(size, Image.Resampling.LANCZOS, box=src.box())


def encode_image(img: Image.Image, fmt: str = "JPEG", jpeg_quality: int = JPEG_QUALITY) -> bytes:
    """Encode *img* as JPEG or PNG bytes."""
    buf = io.BytesIO()
    if fmt == "JPEG":
        # JPEG has no alpha; flatten onto white like a canvas export
        if img.mode == "RGBA":
            flat = Image.new("RGB", img.size, (255, 255, 255))
            flat.paste(img, mask=img.getchannel("A"))
            img = flat
        img.convert("RGB").save(buf, "JPEG", quality=jpeg_quality, optimize=True)
    elif fmt == "PNG":
        img.save(buf, "PNG", compress_level=PNG_COMPRESS_LEVEL)
    else:
        raise ValueError(f"Unsupported output format: {fmt}")
    return buf.getvalue()


def output_suffix(fmt: str) -> str:
    return ".jpg" if fmt == "JPEG" else ".png"


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
