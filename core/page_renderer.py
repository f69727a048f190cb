import logging
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal, QMutex, QMutexLocker
from PyQt6.QtGui import QImage
from models.DocumentHandle import DocumentHandle
from models.DocumentInfo import DocumentInfo
from services.PDFRenderService import PDFRenderService

class PageRendererAdapter(QObject):
    """Thin Qt wrapper around PDFRenderService that tracks pagination."""

    # Signals for UI updates
    document_loaded = pyqtSignal(int)        # page_count
    page_changed = pyqtSignal(int)           # page_index
    error_occurred = pyqtSignal(str)         # error_message

    def __init__(self, service: PDFRenderService = None):
        """
        Initialize with a PDFRenderService instance.
        """
        super().__init__()
        self.service = service or PDFRenderService()
        self._mutex = QMutex()
        self.page_count = 0
        self.current_page = 0
        self.info: Optional[DocumentInfo] = None

    @property
    def document(self):
        """Provide access to the underlying document."""
        return self.service.document

    def render(self, handle: DocumentHandle) -> bool:
        """
        Parse the handle and report its page count.
        """
        with QMutexLocker(self._mutex):
            success = self.service.open_document(handle)
            if success:
                self.info = self.service.get_info()
        if not success:
            self.page_count = 0
            self.current_page = 0
            self.info = None
            self.error_occurred.emit(f"Could not parse {handle.file_name}")
            return False
        self.page_count = self.info.page_count
        self.current_page = 0
        logging.debug(f"PageRendererAdapter.render: {handle.file_name} has {self.page_count} pages")
        self.document_loaded.emit(self.page_count)
        self.page_changed.emit(self.current_page)
        return True

    def jump_to_page(self, page_index: int) -> bool:
        """
        Make page_index the current page; out-of-range requests are ignored.
        """
        if not 0 <= page_index < self.page_count:
            logging.debug(f"PageRendererAdapter.jump_to_page: ignoring {page_index}")
            return False
        if page_index != self.current_page:
            self.current_page = page_index
            self.page_changed.emit(page_index)
        return True

    def render_page(self, page_number: int, zoom_level: float) -> QImage:
        """
        Rasterize a page and convert it to QImage.
        """
        with QMutexLocker(self._mutex):
            try:
                pil_img = self.service.run_all(page_number, zoom_level)
                if pil_img.mode != "RGB":
                    pil_img = pil_img.convert("RGB")
                w, h = pil_img.size
                data = pil_img.tobytes("raw", "RGB")
                # copy() detaches the image from the Python buffer
                qimg = QImage(data, w, h, 3 * w, QImage.Format.Format_RGB888).copy()
                return qimg
            except Exception as e:
                logging.exception("PageRendererAdapter.render_page failed")
                self.error_occurred.emit(str(e))
                return None

    def close_document(self):
        """
        Close the current document and clear state.
        """
        with QMutexLocker(self._mutex):
            self.service.close_document()
        self.page_count = 0
        self.current_page = 0
        self.info = None
