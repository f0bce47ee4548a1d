"""
Preset persistence: load, save, and validate crop presets.

A preset names an aspect ratio and output size for one kind of record
(tournament banners are 4:3, achievement cards 3:4).  Runtime presets are
stored in a JSON file in the user's config directory (provided by
``config.config_dir()``).  On first launch (or if the file is
missing/corrupt), the file is created from DEFAULT_PRESETS.  This module
is Qt-free.

The on-disk format uses a versioned envelope::

    {"version": 1, "presets": [ ... ]}
"""

import json
import logging
from copy import deepcopy
from fractions import Fraction
from pathlib import Path

from academy_crop_tool.config import DEFAULT_PRESETS, config_dir

logger = logging.getLogger(__name__)

_PRESETS_FILENAME = "presets.json"
_FORMAT_VERSION = 1

_REQUIRED_KEYS = {"name", "ratio_w", "ratio_h", "long_edge"}
_INT_KEYS = ("ratio_w", "ratio_h", "long_edge")


# =============================================================================
# Aspect-ratio helpers
# =============================================================================
def parse_ratio(text: str) -> float:
    """Parse ``"4:3"``, ``"4/3"`` or ``"1.5"`` into a positive float.

    Raises ValueError on anything else.
    """
    for sep in (":", "/"):
        if sep in text:
            left, right = text.split(sep, 1)
            w, h = float(left), float(right)
            break
    else:
        w, h = float(text), 1.0
    if w <= 0 or h <= 0:
        raise ValueError(f"Aspect ratio must be positive, got {text!r}")
    return w / h


def aspect_label(aspect_ratio: float) -> str:
    """Human-readable ratio. 4/3 → '4:3', 0.75 → '3:4', 1.91 → '1.91:1'"""
    frac = Fraction(aspect_ratio).limit_denominator(32)
    if abs(float(frac) - aspect_ratio) < 1e-9:
        return f"{frac.numerator}:{frac.denominator}"
    if aspect_ratio >= 1:
        return f"{round(aspect_ratio, 2):g}:1"
    return f"1:{round(1 / aspect_ratio, 2):g}"


def preset_ratio(preset: dict) -> float:
    return preset["ratio_w"] / preset["ratio_h"]


# =============================================================================
# Config directory helpers
# =============================================================================
def _presets_path() -> Path:
    """Return the full path to presets.json."""
    return config_dir() / _PRESETS_FILENAME


# =============================================================================
# Validation
# =============================================================================
def validate_presets(data: object) -> list[str]:
    """
    Validate a presets data structure.

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, list):
        errors.append("Presets data must be a list")
        return errors

    names_seen: set[str] = set()

    for i, preset in enumerate(data):
        prefix = f"Preset #{i + 1}"

        if not isinstance(preset, dict):
            errors.append(f"{prefix}: must be a dict")
            continue

        missing = _REQUIRED_KEYS - preset.keys()
        if missing:
            errors.append(f"{prefix}: missing keys: {', '.join(sorted(missing))}")
            continue

        name = preset.get("name", "")
        if not isinstance(name, str) or not name.strip():
            errors.append(f"{prefix}: name must be a non-empty string")
        elif name in names_seen:
            errors.append(f"{prefix}: duplicate name '{name}'")
        else:
            names_seen.add(name)

        label = preset.get("label", "")
        if not isinstance(label, str):
            errors.append(f"{prefix}: label must be a string, got {label!r}")

        # bool is an int subclass; reject it explicitly
        for key in _INT_KEYS:
            val = preset.get(key)
            if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
                errors.append(f"{prefix}: {key} must be a positive integer, got {val!r}")

    return errors


# =============================================================================
# Load / Save
# =============================================================================
def load_presets() -> list[dict]:
    """
    Load presets from presets.json.

    If the file is missing, corrupt, or fails validation, writes the
    defaults and returns them.
    """
    path = _presets_path()

    if not path.exists():
        logger.info("presets.json not found — creating with defaults at %s", path)
        _write_defaults(path)
        return deepcopy(DEFAULT_PRESETS)

    try:
        text = path.read_text(encoding="utf-8")
        raw = json.loads(text)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read presets.json (%s) — restoring defaults", exc)
        _write_defaults(path)
        return deepcopy(DEFAULT_PRESETS)

    if not isinstance(raw, dict) or raw.get("version") != _FORMAT_VERSION or "presets" not in raw:
        logger.warning("presets.json missing version envelope — restoring defaults")
        _write_defaults(path)
        return deepcopy(DEFAULT_PRESETS)

    data = raw["presets"]
    errors = validate_presets(data)
    if errors:
        logger.warning(
            "presets.json validation failed:\n  %s\nRestoring defaults.",
            "\n  ".join(errors),
        )
        _write_defaults(path)
        return deepcopy(DEFAULT_PRESETS)

    return data


def save_presets(presets: list[dict]) -> None:
    """
    Validate and write presets to presets.json in versioned envelope.

    Raises ValueError if validation fails.
    Raises OSError if the file cannot be written.
    """
    errors = validate_presets(presets)
    if errors:
        raise ValueError("Invalid presets data:\n  " + "\n  ".join(errors))

    envelope = {"version": _FORMAT_VERSION, "presets": presets}
    path = _presets_path()
    path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Saved %d preset(s) to %s", len(presets), path)


def find_preset(presets: list[dict], name: str) -> dict | None:
    for preset in presets:
        if preset["name"] == name:
            return preset
    return None


def _write_defaults(path: Path) -> None:
    """Write DEFAULT_PRESETS to the given path in versioned envelope."""
    try:
        envelope = {"version": _FORMAT_VERSION, "presets": deepcopy(DEFAULT_PRESETS)}
        path.write_text(
            json.dumps(envelope, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    except OSError as exc:
        logger.error("Could not write default presets to %s: %s", path, exc)
