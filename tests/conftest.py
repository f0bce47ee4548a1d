import io
import os

import pytest
from PIL import Image

# Qt widget tests run without a display server
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def image_bytes(w: int, h: int, color=(120, 90, 60), fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (w, h), color).save(buf, fmt)
    return buf.getvalue()


def split_image(w: int, h: int) -> Image.Image:
    """Left half red, right half blue."""
    img = Image.new("RGB", (w, h), (0, 0, 255))
    img.paste((255, 0, 0), (0, 0, w // 2, h))
    return img


@pytest.fixture
def wide_png() -> bytes:
    return image_bytes(1600, 900)


@pytest.fixture
def config_tmp(tmp_path, monkeypatch):
    """Point preset persistence at a temporary config directory."""
    monkeypatch.setattr("academy_crop_tool.presets.config_dir", lambda: tmp_path)
    return tmp_path
