"""
Crop dialog.

Wraps a ``CropCanvas`` with zoom, rotate, cancel and crop controls.  On
accept, ``result_bytes()`` holds the encoded raster that the caller
uploads or writes to disk; on reject nothing is produced.
"""

from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QPushButton, QLabel, QMessageBox,
)
from PyQt6.QtCore import Qt

from academy_crop_tool.config import ZOOM_MAX, ZOOM_MIN
from academy_crop_tool.crop_widget import CropCanvas
from academy_crop_tool.engine import CropEngine
from academy_crop_tool.errors import DegenerateCropError


class CropDialog(QDialog):
    def __init__(self, engine: CropEngine, parent=None):
        super().__init__(parent)
        self._engine = engine
        self._result: bytes | None = None

        self.setWindowTitle(f"Crop Image ({engine.aspect_label} Ratio)")
        self.setModal(True)
        self._build_ui()
        self._update_status()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        layout = QVBoxLayout(self)

        self._canvas = CropCanvas()
        self._canvas.set_engine(self._engine)
        self._canvas.crop_changed.connect(self._update_status)
        layout.addWidget(self._canvas, alignment=Qt.AlignmentFlag.AlignHCenter)

        self._status = QLabel()
        self._status.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._status)

        # --- View controls ---
        controls = QHBoxLayout()
        controls.addStretch()
        self._btn_zoom_out = QPushButton("Zoom Out")
        self._btn_zoom_out.clicked.connect(self._zoom_out)
        controls.addWidget(self._btn_zoom_out)
        self._btn_zoom_in = QPushButton("Zoom In")
        self._btn_zoom_in.clicked.connect(self._zoom_in)
        controls.addWidget(self._btn_zoom_in)
        self._btn_rotate = QPushButton("Rotate")
        self._btn_rotate.clicked.connect(self._rotate)
        controls.addWidget(self._btn_rotate)
        controls.addStretch()
        layout.addLayout(controls)

        # --- Cancel / Crop ---
        actions = QHBoxLayout()
        actions.addStretch()
        btn_cancel = QPushButton("Cancel")
        btn_cancel.clicked.connect(self.reject)
        actions.addWidget(btn_cancel)
        self._btn_crop = QPushButton("Crop Image")
        self._btn_crop.setObjectName("accent")
        self._btn_crop.setDefault(True)
        self._btn_crop.clicked.connect(self._commit)
        actions.addWidget(self._btn_crop)
        layout.addLayout(actions)

    # =========================================================================
    # Actions
    # =========================================================================

    def _zoom_in(self):
        self._engine.zoom_in()
        self._canvas.refresh()

    def _zoom_out(self):
        self._engine.zoom_out()
        self._canvas.refresh()

    def _rotate(self):
        self._engine.rotate()
        self._canvas.refresh()

    def _update_status(self):
        label = self._canvas.selection_label()
        zoom = f"Zoom {self._engine.scale:.0%}"
        rotation = f"Rotation {self._engine.rotation}°"
        selection = f"Selection {label} px" if label else "Selection outside image"
        self._status.setText(f"{selection}  |  {zoom}  |  {rotation}")
        self._btn_zoom_in.setEnabled(self._engine.scale < ZOOM_MAX)
        self._btn_zoom_out.setEnabled(self._engine.scale > ZOOM_MIN)

    def _commit(self):
        try:
            self._result = self._engine.commit()
        except DegenerateCropError as exc:
            QMessageBox.warning(
                self, "Invalid crop area",
                f"The selection does not cover the image.\n\n{exc}",
            )
            return
        self.accept()

    def reject(self):
        self._engine.cancel()
        self._canvas.clear()
        super().reject()

    def result_bytes(self) -> bytes | None:
        return self._result
