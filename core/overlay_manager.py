"""
Lifecycle of the overlay surface: create, keep sized to the viewport, destroy.
"""

import logging
from typing import Optional

from PyQt6.QtCore import QObject, QEvent, pyqtSignal
from PyQt6.QtWidgets import QGraphicsView, QWidget

from core.config import Config
from core.overlay_surface import OverlaySurface

logger = logging.getLogger(__name__)


class OverlaySurfaceManager(QObject):
    """Owns the single overlay surface attached to a viewport widget.

    The surface size is read from the viewport's rendered box on creation and
    on every viewport resize event, so ``surface.width == viewport.width()``
    and ``surface.height == viewport.height()`` hold after each of them.
    """

    surface_created = pyqtSignal(object)     # OverlaySurface
    surface_resized = pyqtSignal(int, int)   # width, height
    surface_destroyed = pyqtSignal()

    def __init__(self, viewport: QWidget = None, parent: QObject = None):
        super().__init__(parent)
        self.viewport: Optional[QWidget] = viewport
        self.surface: Optional[OverlaySurface] = None
        self._listening = False

    def create(self, viewport: QWidget = None) -> OverlaySurface:
        """Replace any existing surface with a new one covering the viewport."""
        if viewport is not None and viewport is not self.viewport:
            self.destroy()
            self.viewport = viewport
        if self.viewport is None:
            raise ValueError("No viewport to attach the overlay surface to")

        self.destroy()
        self._remove_stray_surfaces()

        width, height = self.viewport.width(), self.viewport.height()
        surface = OverlaySurface(width, height, parent=self.viewport)
        try:
            surface.view.raise_()
            surface.view.show()
            self._acquire_listener()
        except Exception:
            self._release_listener()
            surface.dispose()
            raise

        self.surface = surface
        logger.debug("Overlay surface created at %dx%d", width, height)
        self.surface_created.emit(surface)
        return surface

    def resize(self, surface: OverlaySurface = None):
        """Re-read the viewport size and apply it to the surface."""
        surface = surface or self.surface
        if surface is None or surface.is_disposed or self.viewport is None:
            return
        surface.set_size(self.viewport.width(), self.viewport.height())
        self.surface_resized.emit(surface.width, surface.height)

    def destroy(self):
        """Tear down the current surface; safe when none exists."""
        self._release_listener()
        if self.surface is None:
            return
        self.surface.dispose()
        self.surface = None
        logger.debug("Overlay surface destroyed")
        self.surface_destroyed.emit()

    def live_surface_count(self) -> int:
        """Number of overlay views currently attached to the viewport."""
        if self.viewport is None:
            return 0
        return len(self.viewport.findChildren(QGraphicsView, Config.OVERLAY_OBJECT_NAME))

    def eventFilter(self, watched, event):
        if watched is self.viewport and event.type() == QEvent.Type.Resize:
            self.resize()
        return super().eventFilter(watched, event)

    def _acquire_listener(self):
        if not self._listening:
            self.viewport.installEventFilter(self)
            self._listening = True

    def _release_listener(self):
        if self._listening and self.viewport is not None:
            self.viewport.removeEventFilter(self)
        self._listening = False

    def _remove_stray_surfaces(self):
        for view in self.viewport.findChildren(QGraphicsView, Config.OVERLAY_OBJECT_NAME):
            logger.warning("Removing stray overlay view from viewport")
            view.hide()
            view.setParent(None)
            view.deleteLater()
