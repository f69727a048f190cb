"""
Main window for the PDF Overlay Redactor.
"""

import logging
import os
import queue
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QStatusBar, QFileDialog,
    QMessageBox, QSplitter, QToolBar, QMenu
)
from PyQt6.QtCore import Qt, QTimer, QThread, pyqtSignal, pyqtSlot
from PyQt6.QtGui import QAction, QKeySequence, QImage
from typing import Callable, Optional

from core.config import Config
from core.editor_session import EditorSession
from core.overlay_surface import OverlaySurface
from core.page_renderer import PageRendererAdapter
from models.DocumentHandle import DocumentHandle
from services.FlattenExportService import FileArtifactSink
from ui.annotation_panel import AnnotationPanel
from ui.export_log import ExportLogWidget
from ui.pdf_viewer import PDFViewerWidget

logger = logging.getLogger(__name__)

APP_TITLE = "PDF Overlay Redactor"


class PDFRenderWorker(QThread):
    """Long-lived thread rasterizing the latest requested page for display."""
    page_rendered = pyqtSignal(QImage, int)
    error_occurred = pyqtSignal(str)

    _STOP = None

    def __init__(self, renderer: PageRendererAdapter):
        super().__init__()
        self.renderer = renderer
        self._requests: "queue.Queue[Optional[tuple[int, float]]]" = queue.Queue()

    @pyqtSlot(int, float)
    def request_render(self, page_number: int, zoom_level: float) -> None:
        """Queue a render; requests not yet picked up are superseded."""
        try:
            while True:
                self._requests.get_nowait()
        except queue.Empty:
            pass
        self._requests.put((page_number, zoom_level))

    def run(self) -> None:
        while True:
            request = self._requests.get()
            if request is self._STOP:
                return
            page_number, zoom_level = request
            image = self.renderer.render_page(page_number, zoom_level)
            if image is None:
                self.error_occurred.emit(f"Failed to render page {page_number + 1}")
                continue
            self.page_rendered.emit(image, page_number)

    def stop(self) -> None:
        self._requests.put(self._STOP)
        self.wait()


class MainWindow(QMainWindow):
    """Viewer, annotation tools and export log around one editor session."""

    def __init__(self, file_path: Optional[str] = None):
        super().__init__()
        self.session = EditorSession(parent=self)

        self.annotation_panel = AnnotationPanel()
        self.pdf_viewer = PDFViewerWidget()
        self.export_log = ExportLogWidget(self)
        self.status_bar = QStatusBar()
        self._build_layout()
        self._build_actions()

        self.render_thread = PDFRenderWorker(self.session.renderer)
        self._render_timer = QTimer(self)
        self._render_timer.setSingleShot(True)
        self._render_timer.setInterval(Config.RENDER_DEBOUNCE_MS)

        self._connect_session()
        self._connect_rendering()
        self._connect_export_log()
        self.session.attach_viewport(self.pdf_viewer.viewport)
        self.render_thread.start()

        self.setWindowTitle(APP_TITLE)
        self.setMinimumSize(Config.DEFAULT_WINDOW_WIDTH // 2, Config.DEFAULT_WINDOW_HEIGHT // 2)
        self.resize(Config.DEFAULT_WINDOW_WIDTH, Config.DEFAULT_WINDOW_HEIGHT)
        self.status_bar.showMessage("Ready - Open a PDF document to start annotating")

        if file_path:
            self._load_pdf(file_path)

    # ----- Construction -----

    def _build_layout(self):
        splitter = QSplitter(Qt.Orientation.Horizontal)
        self.annotation_panel.setMinimumWidth(220)
        self.annotation_panel.setMaximumWidth(320)
        splitter.addWidget(self.annotation_panel)
        splitter.addWidget(self.pdf_viewer)
        splitter.setSizes([260, 940])

        central = QWidget()
        layout = QHBoxLayout(central)
        layout.setContentsMargins(5, 5, 5, 5)
        layout.addWidget(splitter)
        self.setCentralWidget(central)
        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, self.export_log)
        self.setStatusBar(self.status_bar)

    def _action(self, text: str, slot: Callable, shortcut=None,
                menu: Optional[QMenu] = None) -> QAction:
        action = QAction(text, self)
        if shortcut is not None:
            action.setShortcut(shortcut)
        action.triggered.connect(slot)
        if menu is not None:
            menu.addAction(action)
        return action

    def _build_actions(self):
        menubar = self.menuBar()
        file_menu = menubar.addMenu("&File")
        self.open_action = self._action("&Open PDF...", self.open_pdf, QKeySequence.StandardKey.Open, file_menu)
        self.save_action = self._action("&Save PDF", self.save_pdf, QKeySequence.StandardKey.Save, file_menu)
        self._action("Save PDF &To...", self.choose_export_directory, menu=file_menu)
        self._action("&Close PDF", self.session.unload, QKeySequence.StandardKey.Close, file_menu)
        file_menu.addSeparator()
        self._action("E&xit", self.close, QKeySequence.StandardKey.Quit, file_menu)

        view_menu = menubar.addMenu("&View")
        self._action("Zoom &In", self.pdf_viewer.zoom_in, QKeySequence.StandardKey.ZoomIn, view_menu)
        self._action("Zoom &Out", self.pdf_viewer.zoom_out, QKeySequence.StandardKey.ZoomOut, view_menu)
        self._action("&Fit to Width", self.pdf_viewer.fit_to_width, menu=view_menu)
        view_menu.addAction(self.export_log.toggleViewAction())

        tools_menu = menubar.addMenu("&Annotate")
        self.blur_action = self._action("&Blur Text", self._add_rectangle, "Ctrl+B", tools_menu)
        self.text_action = self._action("Add &Text", self._add_text_from_panel, "Ctrl+T", tools_menu)

        help_menu = menubar.addMenu("&Help")
        self._action("&About", self.show_about, menu=help_menu)

        toolbar = QToolBar("Main Toolbar")
        toolbar.addAction(self.open_action)
        toolbar.addAction(self.save_action)
        toolbar.addSeparator()
        toolbar.addAction(self.blur_action)
        toolbar.addAction(self.text_action)
        self.addToolBar(toolbar)
        self._set_document_actions_enabled(False)

    def _connect_session(self):
        self.pdf_viewer.page_requested.connect(self.session.jump_to_page)
        self.annotation_panel.rectangle_requested.connect(self._add_rectangle)
        self.annotation_panel.text_requested.connect(self.session.add_text)
        self.annotation_panel.save_requested.connect(self.save_pdf)
        self.session.document_changed.connect(self._on_document_changed)
        self.session.page_count_changed.connect(self.pdf_viewer.set_total_pages)
        self.session.page_index_changed.connect(self._on_page_changed)
        self.session.diagnostic.connect(self.status_bar.showMessage)
        self.session.overlay_manager.surface_created.connect(self._on_surface_created)

    def _connect_rendering(self):
        self._render_timer.timeout.connect(self._render_current_page)
        self.pdf_viewer.zoom_changed.connect(self._on_zoom_changed)
        self.render_thread.page_rendered.connect(self.pdf_viewer.set_pixmap)
        self.render_thread.error_occurred.connect(self._on_render_error)

    def _connect_export_log(self):
        processor = self.session.export_processor
        processor.step_completed.connect(self.export_log.append_metrics)
        processor.step_failed.connect(self.export_log.append_error)
        processor.export_finished.connect(self.export_log.append_result)

    # ----- File actions -----

    def open_pdf(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Open PDF Document", "", "PDF Files (*.pdf);;All Files (*)")
        if path:
            self._load_pdf(path)

    def _load_pdf(self, file_path: str):
        logger.debug("Opening %s", file_path)
        self.status_bar.showMessage(f"Loading {os.path.basename(file_path)}...")
        self.session.open_file(file_path)

    def save_pdf(self):
        result = self.session.save()
        if not result.success:
            QMessageBox.warning(self, "Save Failed", result.message)

    def choose_export_directory(self):
        directory = QFileDialog.getExistingDirectory(
            self, "Save Annotated PDF To", Config.get_export_directory())
        if directory:
            self.session.export_processor.service.sink = FileArtifactSink(directory)
            self.save_pdf()

    # ----- Annotation actions -----

    def _add_rectangle(self):
        self.session.add_rectangle()

    def _add_text_from_panel(self):
        self.session.add_text(self.annotation_panel.get_label_text())

    def _set_document_actions_enabled(self, enabled: bool):
        for action in (self.save_action, self.blur_action, self.text_action):
            action.setEnabled(enabled)
        self.annotation_panel.set_tools_enabled(enabled)

    def _on_surface_created(self, surface: OverlaySurface):
        surface.scene.changed.connect(lambda _regions: self._refresh_object_list())
        self._refresh_object_list()

    def _refresh_object_list(self):
        surface = self.session.surface
        if surface is not None:
            self.annotation_panel.update_objects(self.session.page_index, surface.objects)

    # ----- Session feedback -----

    def _on_document_changed(self, handle: Optional[DocumentHandle]):
        self._set_document_actions_enabled(handle is not None)
        if handle is None:
            self.pdf_viewer.clear()
            self.annotation_panel.clear_objects()
            self.setWindowTitle(APP_TITLE)
            self.status_bar.showMessage("Document closed")
        else:
            self.setWindowTitle(f"{APP_TITLE} - {handle.file_name}")

    def _on_page_changed(self, page_number: int):
        self.pdf_viewer.set_current_page(page_number)
        self._refresh_object_list()
        self._render_timer.start()

    def _on_zoom_changed(self, zoom_level: float):
        self._render_timer.start()
        self.status_bar.showMessage(f"Zoom: {int(zoom_level * 100)}%")

    def _render_current_page(self):
        if self.session.renderer.document is not None:
            self.render_thread.request_render(
                self.pdf_viewer.get_current_page(), self.pdf_viewer.get_zoom_level())

    def _on_render_error(self, msg: str):
        logger.error(msg)
        self.status_bar.showMessage(f"Error: {msg}")

    def show_about(self):
        QMessageBox.about(
            self,
            f"About {APP_TITLE}",
            f"""
            <h3>{APP_TITLE}</h3>
            <p>Version 1.0.0</p>
            <ul>
                <li>Redaction blocks and text labels drawn over the page</li>
                <li>Drag to move, drag the corner to resize</li>
                <li>Save flattens the overlay into the current page</li>
            </ul>
            """
        )

    def closeEvent(self, event):
        self._render_timer.stop()
        if self.render_thread.isRunning():
            self.render_thread.stop()
        self.session.teardown()
        event.accept()
