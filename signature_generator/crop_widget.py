"""
Interactive circular crop viewport, crop dialog and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, the background ``ImageLoaderThread``, the
``CropViewport`` that renders a ``CropSession`` and feeds it pointer input,
and the modal ``CropDialog`` that produces the committed raster.
"""

from pathlib import Path

from PIL import Image
from PyQt6.QtWidgets import (
    QDialog, QDialogButtonBox, QHBoxLayout, QLabel, QSlider, QVBoxLayout, QWidget,
)
from PyQt6.QtCore import Qt, QRectF, pyqtSignal, QThread
from PyQt6.QtGui import (
    QColor, QImage, QMouseEvent, QPainter, QPainterPath, QPaintEvent, QPen, QPixmap,
    QWheelEvent,
)

from signature_generator.config import (
    CIRCLE_DIAMETER, CROP_DIM_COLOR, CROP_VIEWPORT_SIZE, OUTPUT_SIZE,
    WHEEL_ZOOM_STEP, ZOOM_MAX, ZOOM_MIN, ZOOM_STEP,
)
from signature_generator.crop_session import CropSession
from signature_generator.errors import SignatureError
from signature_generator.image_io import open_image


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    # QImage does not own *data*; copy before it goes out of scope
    return QPixmap.fromImage(qimg.copy())


# =============================================================================
# Background image loader
# =============================================================================

class ImageLoaderThread(QThread):
    """Background thread for decoding a photo (large JPEGs, PSDs)."""
    loaded = pyqtSignal(object)  # PIL.Image.Image
    error = pyqtSignal(str)

    def __init__(self, path: Path, parent=None):
        super().__init__(parent)
        self._path = path

    def run(self):
        try:
            self.loaded.emit(open_image(self._path))
        except SignatureError as e:
            self.error.emit(str(e))


# =============================================================================
# Crop viewport
# =============================================================================

class CropViewport(QWidget):
    """Fixed-size viewport showing the image behind a circular crop window."""

    zoom_changed = pyqtSignal(float)

    def __init__(self, session: CropSession, pixmap: QPixmap, parent=None):
        super().__init__(parent)
        self.setFixedSize(int(session.viewport_width), int(session.viewport_height))
        self.setCursor(Qt.CursorShape.OpenHandCursor)
        self._session = session
        self._pixmap = pixmap

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        s = self._session
        dest = QRectF(s.offset_x, s.offset_y, s.display_width, s.display_height)
        painter.drawPixmap(dest, self._pixmap, QRectF(self._pixmap.rect()))

        # Dim everything outside the crop circle
        cx, cy, d, _ = s.circle_rect()
        circle = QRectF(cx, cy, d, d)
        outside = QPainterPath()
        outside.setFillRule(Qt.FillRule.OddEvenFill)
        outside.addRect(QRectF(self.rect()))
        outside.addEllipse(circle)
        painter.fillPath(outside, QColor(*CROP_DIM_COLOR))

        painter.setPen(QPen(QColor(255, 255, 255), 2))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawEllipse(circle)
        painter.end()

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or not self._session.is_active:
            return
        pos = event.position()
        self._session.begin_drag(pos.x(), pos.y())
        self.setCursor(Qt.CursorShape.ClosedHandCursor)

    def mouseMoveEvent(self, event: QMouseEvent):
        if not self._session.is_dragging:
            return
        pos = event.position()
        self._session.update_drag(pos.x(), pos.y())
        self.update()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton:
            self._session.end_drag()
            self.setCursor(Qt.CursorShape.OpenHandCursor)

    def wheelEvent(self, event: QWheelEvent):
        if not self._session.is_active:
            return
        steps = event.angleDelta().y() / 120
        if steps == 0:
            return
        zoom = max(ZOOM_MIN, min(ZOOM_MAX, self._session.zoom + steps * WHEEL_ZOOM_STEP))
        self.set_zoom(zoom)
        self.zoom_changed.emit(zoom)

    def set_zoom(self, zoom: float):
        self._session.set_zoom(zoom)
        self.update()


# =============================================================================
# Crop dialog
# =============================================================================

class CropDialog(QDialog):
    """Modal dialog: drag to position, slide to zoom, save to get the raster."""

    def __init__(self, image: Image.Image, parent: QWidget | None = None,
                 output_size: int = OUTPUT_SIZE):
        super().__init__(parent)
        self.setWindowTitle("Crop Photo")
        self.setModal(True)

        self._session = CropSession.from_image(
            image, CROP_VIEWPORT_SIZE, CROP_VIEWPORT_SIZE,
            circle_diameter=CIRCLE_DIAMETER, output_size=output_size,
        )
        self._image = image
        self._result: Image.Image | None = None

        layout = QVBoxLayout(self)

        hint = QLabel("Drag to reposition, use the slider or mouse wheel to zoom.")
        hint.setStyleSheet("color: #888; font-size: 8pt;")
        layout.addWidget(hint)

        self._viewport = CropViewport(self._session, pil_to_qpixmap(image))
        self._viewport.zoom_changed.connect(self._on_viewport_zoom)
        layout.addWidget(self._viewport, alignment=Qt.AlignmentFlag.AlignHCenter)

        zoom_row = QHBoxLayout()
        zoom_row.addWidget(QLabel("Zoom:"))
        self._zoom_slider = QSlider(Qt.Orientation.Horizontal)
        self._zoom_slider.setRange(_slider_value(ZOOM_MIN), _slider_value(ZOOM_MAX))
        self._zoom_slider.setValue(_slider_value(self._session.zoom))
        self._zoom_slider.valueChanged.connect(self._on_slider_changed)
        zoom_row.addWidget(self._zoom_slider, stretch=1)
        self._zoom_label = QLabel(_zoom_text(self._session.zoom))
        self._zoom_label.setFixedWidth(40)
        zoom_row.addWidget(self._zoom_label)
        layout.addLayout(zoom_row)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _on_slider_changed(self, value: int):
        zoom = value * ZOOM_STEP
        self._viewport.set_zoom(zoom)
        self._zoom_label.setText(_zoom_text(zoom))

    def _on_viewport_zoom(self, zoom: float):
        self._zoom_slider.blockSignals(True)
        self._zoom_slider.setValue(_slider_value(zoom))
        self._zoom_slider.blockSignals(False)
        self._zoom_label.setText(_zoom_text(zoom))

    def accept(self):
        self._result = self._session.commit(self._image)
        super().accept()

    def reject(self):
        self._session.cancel()
        super().reject()

    def cropped_image(self) -> Image.Image | None:
        """The committed raster, or None if the dialog was cancelled."""
        return self._result


def _slider_value(zoom: float) -> int:
    return int(round(zoom / ZOOM_STEP))


def _zoom_text(zoom: float) -> str:
    return f"{zoom:.2f}×"
