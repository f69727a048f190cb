"""
Editor session: the single owner of the loaded document and its overlay.
"""

import logging
from typing import Dict, Optional

from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtWidgets import QWidget

from core.annotation_renderers import RectangleRenderer, TextLabelRenderer
from core.annotation_system import AnnotationManager, AnnotationObject, AnnotationType
from core.config import Config
from core.document_loader import DocumentLoadWorker, declared_media_type, read_document
from core.exceptions import InvalidInputType
from core.export_processor import ExportProcessor
from core.overlay_manager import OverlaySurfaceManager
from core.overlay_surface import OverlaySurface
from core.page_renderer import PageRendererAdapter
from models.DocumentHandle import DocumentHandle
from models.ExportResult import ExportResult

logger = logging.getLogger(__name__)


class EditorSession(QObject):
    """Holds DocumentHandle, PageIndex and PageCount and drives the collaborators.

    Loads are numbered. Only the result of the most recent load is applied;
    a slower, superseded read that finishes late is dropped.
    """

    document_changed = pyqtSignal(object)    # DocumentHandle or None
    page_count_changed = pyqtSignal(int)
    page_index_changed = pyqtSignal(int)
    diagnostic = pyqtSignal(str)

    def __init__(
        self,
        renderer: PageRendererAdapter = None,
        overlay_manager: OverlaySurfaceManager = None,
        annotation_manager: AnnotationManager = None,
        export_processor: ExportProcessor = None,
        parent: QObject = None,
    ):
        super().__init__(parent)
        self.renderer = renderer or PageRendererAdapter()
        self.overlay_manager = overlay_manager or OverlaySurfaceManager()
        self.annotation_manager = annotation_manager or AnnotationManager()
        self.export_processor = export_processor or ExportProcessor()

        self.annotation_manager.register_renderer(AnnotationType.RECTANGLE, RectangleRenderer())
        self.annotation_manager.register_renderer(AnnotationType.TEXT, TextLabelRenderer())

        self.handle: Optional[DocumentHandle] = None
        self.page_index = 0
        self.page_count = 0
        self._generation = 0
        self._workers: Dict[int, DocumentLoadWorker] = {}

        self.renderer.document_loaded.connect(self._on_document_loaded)
        self.renderer.page_changed.connect(self._on_page_changed)
        self.renderer.error_occurred.connect(self._report)

    @property
    def surface(self) -> Optional[OverlaySurface]:
        return self.overlay_manager.surface

    @property
    def generation(self) -> int:
        return self._generation

    def attach_viewport(self, viewport: QWidget):
        """Set the page-display region the overlay is anchored to."""
        if viewport is not self.overlay_manager.viewport:
            self.overlay_manager.destroy()
        self.overlay_manager.viewport = viewport
        if self.handle is not None:
            self.overlay_manager.create(viewport)

    # ----- Loading -----

    def open_file(self, path: str, asynchronous: bool = True) -> Optional[int]:
        """
        Start loading a file.

        Args:
            path: File chosen by the user.
            asynchronous: Read on a worker thread (default) or inline.

        Returns:
            The load generation, or None if the file was rejected.
        """
        media_type = declared_media_type(path)
        if media_type != Config.ACCEPTED_MEDIA_TYPE:
            error = InvalidInputType(path, media_type or None)
            logger.warning("%s", error)
            self._report(str(error))
            return None

        self._generation += 1
        generation = self._generation
        logger.debug("Loading %s as generation %d", path, generation)

        if not asynchronous:
            try:
                handle = read_document(path)
            except (OSError, InvalidInputType) as e:
                self._on_load_failed(generation, f"Could not read {path}: {e}")
                return generation
            self.apply_loaded_document(generation, handle)
            return generation

        self._workers = {g: w for g, w in self._workers.items() if w.isRunning()}
        worker = DocumentLoadWorker(path, generation)
        worker.loaded.connect(self.apply_loaded_document)
        worker.failed.connect(self._on_load_failed)
        self._workers[generation] = worker
        worker.start()
        return generation

    def apply_loaded_document(self, generation: int, handle: DocumentHandle) -> bool:
        """Install a finished load unless a newer load has been started since."""
        if generation != self._generation:
            logger.info(
                "Discarding stale load of %s (generation %d, current %d)",
                handle.file_name, generation, self._generation,
            )
            return False
        self.set_document(handle)
        return True

    def set_document(self, handle: DocumentHandle):
        """Replace the current document and rebuild the overlay for it."""
        if self.handle is not None:
            self.overlay_manager.destroy()
        self.handle = handle
        self.page_index = 0
        self.page_count = 0
        self.document_changed.emit(handle)
        self.page_index_changed.emit(0)

        parsed = self.renderer.render(handle)
        if self.overlay_manager.viewport is not None:
            self.overlay_manager.create()
        if parsed:
            self._report(f"Loaded {handle.file_name} ({self.page_count} pages)")

    def unload(self):
        """Drop the current document; pending loads are superseded."""
        self._generation += 1
        self.overlay_manager.destroy()
        self.renderer.close_document()
        had_document = self.handle is not None
        self.handle = None
        self.page_index = 0
        self.page_count = 0
        if had_document:
            self.document_changed.emit(None)

    def teardown(self):
        """Release everything held by the session (window close)."""
        self.unload()
        for worker in list(self._workers.values()):
            worker.wait()
        self._workers.clear()

    # ----- Navigation -----

    def jump_to_page(self, page_index: int) -> bool:
        return self.renderer.jump_to_page(page_index)

    # ----- Annotation tools -----

    def add_rectangle(self, **opts) -> Optional[AnnotationObject]:
        if self.surface is None:
            self._report("Open a document before adding annotations")
            return None
        return self.annotation_manager.add_rectangle(self.surface, **opts)

    def add_text(self, content: Optional[str] = None, **opts) -> Optional[AnnotationObject]:
        if self.surface is None:
            self._report("Open a document before adding annotations")
            return None
        return self.annotation_manager.add_text(self.surface, content, **opts)

    # ----- Flatten & export -----

    def save(self) -> ExportResult:
        """Flatten the overlay onto the current page and write the result."""
        result = self.export_processor.flatten_and_export(self.handle, self.page_index, self.surface)
        self._report(result.message)
        return result

    # ----- Signal handlers -----

    def _on_document_loaded(self, page_count: int):
        self.page_count = page_count
        self.page_count_changed.emit(page_count)

    def _on_page_changed(self, page_index: int):
        self.page_index = page_index
        self.page_index_changed.emit(page_index)

    def _on_load_failed(self, generation: int, message: str):
        if generation != self._generation:
            logger.debug("Ignoring failure of superseded load %d", generation)
            return
        logger.error(message)
        self._report(message)

    def _report(self, message: str):
        self.diagnostic.emit(message)
