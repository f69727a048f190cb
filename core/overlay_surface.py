"""
Transparent drawing surface stacked over the page-display region.
"""

import logging
from typing import List

from PyQt6.QtCore import Qt, QBuffer, QByteArray, QIODevice, QRectF
from PyQt6.QtGui import QImage, QPainter
from PyQt6.QtWidgets import QFrame, QGraphicsScene, QGraphicsView, QWidget

from core.annotation_system import AnnotationObject
from core.config import Config

logger = logging.getLogger(__name__)


class OverlayView(QGraphicsView):
    """Interactive, see-through view of the overlay scene."""

    def __init__(self, scene: QGraphicsScene, parent: QWidget = None):
        super().__init__(scene, parent)
        self.setObjectName(Config.OVERLAY_OBJECT_NAME)
        self.setFrameShape(QFrame.Shape.NoFrame)
        self.setStyleSheet("background: transparent; border: none;")
        self.setBackgroundBrush(Qt.GlobalColor.transparent)
        self.viewport().setAutoFillBackground(False)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.setRenderHint(QPainter.RenderHint.Antialiasing)
        self.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        self.setDragMode(QGraphicsView.DragMode.RubberBandDrag)


class OverlaySurface:
    """A fixed-size scene holding annotation objects in insertion order.

    The surface is owned by :class:`~core.overlay_manager.OverlaySurfaceManager`;
    everything else only reads from it.
    """

    def __init__(self, width: int, height: int, parent: QWidget = None):
        self._width = int(width)
        self._height = int(height)
        self.objects: List[AnnotationObject] = []
        self.scene = QGraphicsScene(0, 0, self._width, self._height)
        self.view = OverlayView(self.scene, parent)
        self.view.setGeometry(0, 0, self._width, self._height)
        self._disposed = False

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def set_size(self, width: int, height: int):
        """Match a new viewport size; objects keep their absolute coordinates."""
        self._width = int(width)
        self._height = int(height)
        self.scene.setSceneRect(0, 0, self._width, self._height)
        self.view.setGeometry(0, 0, self._width, self._height)
        logger.debug("Overlay surface resized to %dx%d", self._width, self._height)

    def add_object(self, obj: AnnotationObject):
        self.objects.append(obj)
        self.scene.addItem(obj.item)

    def selected_objects(self) -> List[AnnotationObject]:
        return [obj for obj in self.objects if obj.is_selected]

    def render_all(self):
        """Repaint the whole surface now."""
        self.scene.update()
        self.view.viewport().update()

    def to_image(self) -> QImage:
        """Render every object 1:1 into a transparent image of the surface size."""
        image = QImage(self._width, self._height, QImage.Format.Format_ARGB32_Premultiplied)
        if image.isNull():
            raise ValueError(f"Cannot rasterize a {self._width}x{self._height} surface")
        image.fill(Qt.GlobalColor.transparent)
        area = QRectF(0, 0, self._width, self._height)
        painter = QPainter(image)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
            self.scene.render(painter, area, area)
        finally:
            painter.end()
        return image

    def to_png_bytes(self) -> bytes:
        """Encode the current surface content as a lossless still image."""
        image = self.to_image()
        data = QByteArray()
        buffer = QBuffer(data)
        buffer.open(QIODevice.OpenModeFlag.WriteOnly)
        try:
            if not image.save(buffer, Config.EXPORT_IMAGE_FORMAT):
                raise ValueError("Encoding the overlay image failed")
        finally:
            buffer.close()
        return bytes(data.data())

    def dispose(self):
        """Release the scene, its items and the view widget."""
        if self._disposed:
            return
        self._disposed = True
        self.objects.clear()
        self.scene.clear()
        self.view.setScene(None)
        self.view.hide()
        self.view.setParent(None)
        self.view.deleteLater()
        self.scene.deleteLater()
