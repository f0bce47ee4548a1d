"""
Application constants and configuration.

DEFAULT_PRESETS provides the built-in fallback presets. Runtime presets are
loaded from presets.json via the presets module. All other constants control
crop-editor behaviour, upload limits, and export defaults.

The ``config_dir()`` helper returns the platform-appropriate config
directory and is used by the preset persistence module.
"""

import os
import sys
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "academy-crop-tool"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory

# =============================================================================
# DEFAULT PRESETS — Built-in fallback when presets.json is missing or corrupt
# =============================================================================
DEFAULT_PRESETS = [
    {
        "name": "tournament",
        "label": "Tournament banner",
        "ratio_w": 4,
        "ratio_h": 3,
        "long_edge": 800,
    },
    {
        "name": "achievement",
        "label": "Achievement card",
        "ratio_w": 3,
        "ratio_h": 4,
        "long_edge": 800,
    },
]

# ---------------------------------------------------------------------------
# Viewport
# ---------------------------------------------------------------------------
# Canvas width cap: landscape ratios get a wider canvas than portrait ones
CANVAS_CAP_LANDSCAPE = 500
CANVAS_CAP_PORTRAIT = 400

# ---------------------------------------------------------------------------
# Crop interaction
# ---------------------------------------------------------------------------
# Minimum crop width (viewport pixels); height floor follows from the ratio
MIN_CROP_SIZE = 50

# Side length of the square hit zone around each corner (viewport pixels)
HANDLE_SIZE = 12

# Nudge amounts for arrow keys (viewport pixels)
NUDGE_SMALL = 1
NUDGE_LARGE = 10

# Initial crop covers this fraction of the painted image region
INITIAL_CROP_FRACTION = 0.8

# Zoom factor bounds and button step
ZOOM_MIN = 0.5
ZOOM_MAX = 3.0
ZOOM_STEP = 0.1

# Rotation step (degrees, clockwise)
ROTATION_STEP = 90

# How rotation affects the committed raster
ROTATION_MODES = ["visual", "apply"]
ROTATION_MODE_DEFAULT = "visual"

# Cursor hints reported while hovering
CURSOR_MOVE = "move"
CURSOR_RESIZE_NWSE = "resize-nwse"
CURSOR_RESIZE_NESW = "resize-nesw"
CURSOR_DEFAULT = "default"

# ---------------------------------------------------------------------------
# Input limits
# ---------------------------------------------------------------------------
# Matches the upload limit of the records API (10 MB)
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Pillow format names accepted as input; PSD goes through psd-tools
SUPPORTED_FORMATS = {"JPEG", "PNG", "GIF", "WEBP", "BMP", "TIFF", "PSD"}

# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------
# Long edge of the committed raster (pixels)
OUTPUT_LONG_EDGE = 800

# Output format options
OUTPUT_FORMATS = ["JPEG", "PNG"]
OUTPUT_FORMAT_DEFAULT = "JPEG"

# JPEG export defaults
JPEG_QUALITY = 90
JPEG_QUALITY_MIN = 1
JPEG_QUALITY_MAX = 100

# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9
