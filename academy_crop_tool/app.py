"""
Application entry point and dark-theme stylesheet.

Usage:
    python -m academy_crop_tool PHOTO [--preset tournament | --ratio 4:3] [-o OUT]
    academy-crop PHOTO ...          (after pip install)

Opens the crop dialog for one image and writes the committed raster.
Exit status is 0 on crop, 1 on cancel, 2 on bad input.
"""

import argparse
import logging
import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from academy_crop_tool.config import ROTATION_MODE_DEFAULT, ROTATION_MODES
from academy_crop_tool.crop_dialog import CropDialog
from academy_crop_tool.engine import CropEngine
from academy_crop_tool.image_io import output_suffix, unique_path
from academy_crop_tool.presets import find_preset, load_presets, parse_ratio, preset_ratio

logger = logging.getLogger(__name__)

DARK_STYLESHEET = """
    QDialog { background: #1f2937; }
    QWidget { background: #1f2937; color: #f3f4f6; font-size: 10pt; }
    QLabel { color: #9ca3af; }
    QPushButton { background: #374151; border: 1px solid #4b5563; border-radius: 4px; padding: 4px 10px; }
    QPushButton:hover { background: #4b5563; }
    QPushButton:pressed { background: #111827; }
    QPushButton:disabled { color: #6b7280; }
    QPushButton#accent { background: #eab308; color: #000; font-weight: bold; border-color: #ca8a04; }
    QPushButton#accent:hover { background: #ca8a04; }
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="academy-crop",
        description="Crop a photo to a fixed aspect ratio for tournament or achievement records.",
    )
    parser.add_argument("image", type=Path, help="image file to crop")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--preset", default="tournament", help="preset name from presets.json (default: tournament)")
    group.add_argument("--ratio", help="explicit aspect ratio such as 4:3 or 0.75")
    parser.add_argument("--size-cap", type=int, default=None, help="canvas width in pixels")
    parser.add_argument(
        "--rotation-mode", choices=ROTATION_MODES, default=ROTATION_MODE_DEFAULT,
        help="'visual' rotates the preview only; 'apply' also rotates the output",
    )
    parser.add_argument("-o", "--output", type=Path, default=None, help="output file (default: next to input)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def resolve_target(args: argparse.Namespace) -> tuple[float, int | None]:
    """Return ``(aspect_ratio, long_edge)`` from --ratio or --preset."""
    if args.ratio:
        return parse_ratio(args.ratio), None
    preset = find_preset(load_presets(), args.preset)
    if preset is None:
        raise ValueError(f"Unknown preset: {args.preset}")
    return preset_ratio(preset), preset["long_edge"]


def default_output(image_path: Path, suffix: str) -> Path:
    return image_path.with_name(f"{image_path.stem}-cropped{suffix}")


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        aspect_ratio, long_edge = resolve_target(args)
        kwargs = {"rotation_mode": args.rotation_mode}
        if long_edge:
            kwargs["output_long_edge"] = long_edge
        engine = CropEngine(args.image.read_bytes(), aspect_ratio, args.size_cap, **kwargs)
    except (ValueError, OSError) as exc:
        logger.error("%s", exc)
        sys.exit(2)

    app = QApplication(sys.argv[:1])
    app.setStyleSheet(DARK_STYLESHEET)

    dialog = CropDialog(engine)
    try:
        accepted = dialog.exec()
    except KeyboardInterrupt:
        accepted = False

    data = dialog.result_bytes()
    if not accepted or data is None:
        logger.info("Crop cancelled")
        sys.exit(1)

    out_path = unique_path(args.output or default_output(args.image, output_suffix("JPEG")))
    out_path.write_bytes(data)
    logger.info("Wrote %s", out_path)
    print(out_path)


if __name__ == "__main__":
    main()
