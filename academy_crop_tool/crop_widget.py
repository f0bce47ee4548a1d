"""
Interactive crop canvas and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap`` and the ``CropCanvas`` widget.  The widget owns no
geometry of its own: it paints what a ``CropEngine`` reports and forwards
mouse and keyboard input to it.
"""

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF, pyqtSignal
from PyQt6.QtGui import (
    QPainter, QPixmap, QColor, QPen, QBrush, QImage,
    QKeyEvent, QMouseEvent, QPaintEvent,
)

from academy_crop_tool.config import (
    CURSOR_MOVE, CURSOR_RESIZE_NESW, CURSOR_RESIZE_NWSE, HANDLE_SIZE, NUDGE_LARGE, NUDGE_SMALL,
)
from academy_crop_tool.engine import CropEngine
from academy_crop_tool.errors import DegenerateCropError
from academy_crop_tool.models import CropRect, Mode, paint_rect


ACCENT = QColor(234, 179, 8)  # yellow-500

_CURSORS = {
    CURSOR_MOVE: Qt.CursorShape.SizeAllCursor,
    CURSOR_RESIZE_NWSE: Qt.CursorShape.SizeFDiagCursor,
    CURSOR_RESIZE_NESW: Qt.CursorShape.SizeBDiagCursor,
}


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgb = pil_img.convert("RGBA")
    data = img_rgb.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgb.width, img_rgb.height, QImage.Format.Format_RGBA8888)
    # QImage does not own *data*; copy before it goes out of scope
    return QPixmap.fromImage(qimg.copy())


# =============================================================================
# Crop Canvas — fixed-size viewport bound to a CropEngine
# =============================================================================

class CropCanvas(QWidget):
    """Paints the engine's viewport and drives it from mouse/keyboard input."""

    crop_changed = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)
        self.setMouseTracking(True)

        self._engine: CropEngine | None = None
        self._pixmap: QPixmap | None = None

    def set_engine(self, engine: CropEngine):
        """Bind to a crop session and size the widget to its viewport."""
        self._engine = engine
        self._pixmap = pil_to_qpixmap(engine.image)
        self.setFixedSize(engine.viewport.width, engine.viewport.height)
        self.update()

    def has_image(self) -> bool:
        """Return True if an engine is bound and still open."""
        return self._engine is not None and not self._engine.closed

    def clear(self):
        self._engine = None
        self._pixmap = None
        self.unsetCursor()
        self.update()

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(31, 41, 55))

        if not self.has_image():
            painter.setPen(QColor(156, 163, 175))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No image loaded")
            painter.end()
            return

        engine = self._engine
        vw, vh = engine.viewport.width, engine.viewport.height

        # Draw image, rotated about the viewport centre
        painter.save()
        painter.translate(vw / 2, vh / 2)
        painter.rotate(engine.rotation)
        painter.translate(-vw / 2, -vh / 2)
        painter.drawPixmap(QRectF(*paint_rect(engine.transform, engine.rotation, vw, vh)),
                           self._pixmap, QRectF(self._pixmap.rect()))
        painter.restore()

        # Dim everything outside the crop
        crop = engine.crop
        crop_rect = QRectF(crop.x, crop.y, crop.w, crop.h)
        dim = QColor(0, 0, 0, 128)
        painter.fillRect(QRectF(0, 0, vw, crop.y), dim)
        painter.fillRect(QRectF(0, crop.y, crop.x, crop.h), dim)
        painter.fillRect(QRectF(crop.right, crop.y, vw - crop.right, crop.h), dim)
        painter.fillRect(QRectF(0, crop.bottom, vw, vh - crop.bottom), dim)

        # Draw crop border
        painter.setPen(QPen(ACCENT, 2))
        painter.drawRect(crop_rect)

        # Draw rule-of-thirds lines
        pen_thirds = QPen(QColor(255, 255, 255, 80), 1, Qt.PenStyle.DashLine)
        painter.setPen(pen_thirds)
        for i in range(1, 3):
            x = crop.x + crop.w * i / 3
            painter.drawLine(QPointF(x, crop.y), QPointF(x, crop.bottom))
            y = crop.y + crop.h * i / 3
            painter.drawLine(QPointF(crop.x, y), QPointF(crop.right, y))

        # Draw corner handles
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(ACCENT))
        half = HANDLE_SIZE / 2
        for cx, cy in ((crop.x, crop.y), (crop.right, crop.y), (crop.x, crop.bottom), (crop.right, crop.bottom)):
            painter.drawRect(QRectF(cx - half, cy - half, HANDLE_SIZE, HANDLE_SIZE))

        # Draw source-pixel size label
        label = self.selection_label()
        if label:
            painter.setPen(QColor(255, 255, 255))
            painter.drawText(
                crop_rect.adjusted(0, -20, 0, 0).toRect(),
                Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignBottom,
                label,
            )

        painter.end()

    def selection_label(self) -> str:
        """``"W × H"`` of the selection in source pixels, or "" if it is empty."""
        if not self.has_image():
            return ""
        try:
            src = self._engine.source_selection()
        except DegenerateCropError:
            return ""
        return f"{round(src.w)} × {round(src.h)}"

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or not self.has_image():
            return
        pos = event.position()
        self._engine.on_pointer_down(pos.x(), pos.y())

    def mouseMoveEvent(self, event: QMouseEvent):
        if not self.has_image():
            return
        pos = event.position()
        active = self._engine.state.mode != Mode.IDLE
        _, hint = self._engine.on_pointer_move(pos.x(), pos.y())
        self.setCursor(_CURSORS.get(hint, Qt.CursorShape.ArrowCursor))
        if active:
            self.crop_changed.emit()
            self.update()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton and self._engine is not None:
            self._engine.on_pointer_up()

    def leaveEvent(self, event):
        # Leaving the canvas ends any drag, like releasing the button
        if self._engine is not None:
            self._engine.on_pointer_up()
        super().leaveEvent(event)

    # --- Keyboard nudge ---

    def keyPressEvent(self, event: QKeyEvent):
        if not self.has_image():
            return
        amount = NUDGE_LARGE if event.modifiers() & Qt.KeyboardModifier.ShiftModifier else NUDGE_SMALL
        offsets = {
            Qt.Key.Key_Left: (-amount, 0),
            Qt.Key.Key_Right: (amount, 0),
            Qt.Key.Key_Up: (0, -amount),
            Qt.Key.Key_Down: (0, amount),
        }
        offset = offsets.get(event.key())
        if offset is None:
            super().keyPressEvent(event)
            return

        crop = self._engine.crop
        self._engine.set_crop(CropRect(crop.x + offset[0], crop.y + offset[1], crop.w, crop.h))
        self.crop_changed.emit()
        self.update()

    def refresh(self):
        """Repaint after a zoom or rotation change made through the engine."""
        self.crop_changed.emit()
        self.update()
