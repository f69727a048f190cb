"""
Page viewer: navigation bar, zoom selector and the viewport the overlay covers.
"""

from PyQt6.QtWidgets import (QWidget, QLabel, QVBoxLayout, QHBoxLayout,
                            QToolButton, QSpinBox, QComboBox, QSizePolicy)
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QPixmap, QImage
from typing import Optional

from core.config import Config

EMPTY_VIEWPORT_TEXT = "No PDF loaded\n\nUse File → Open to load a PDF document"
ZOOM_PRESETS = (0.5, 0.75, 1.0, 1.25, 1.5, 2.0, 3.0)


class PDFViewerWidget(QWidget):
    """Shows one page at a time in a fixed-height viewport.

    Page changes are only requested here; the displayed page moves once the
    session confirms it through :meth:`set_current_page`.
    """

    page_requested = pyqtSignal(int)  # page_index
    zoom_changed = pyqtSignal(float)  # zoom_level

    def __init__(self, parent=None):
        super().__init__(parent)
        self.current_page = 0
        self.total_pages = 0
        self.zoom_level = Config.DEFAULT_ZOOM_LEVEL
        self.current_pixmap: Optional[QPixmap] = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 10, 10, 10)
        layout.addLayout(self._build_controls())
        layout.addWidget(self._build_viewport())
        layout.addStretch()
        self._sync_controls()

    def _build_controls(self) -> QHBoxLayout:
        bar = QHBoxLayout()

        self.prev_button = QToolButton()
        self.prev_button.setText("◀")
        self.prev_button.setToolTip("Previous page")
        self.prev_button.clicked.connect(self.previous_page)
        bar.addWidget(self.prev_button)

        self.page_spin = QSpinBox()
        self.page_spin.setKeyboardTracking(False)
        self.page_spin.valueChanged.connect(self._on_page_spin_changed)
        bar.addWidget(self.page_spin)
        self.page_label = QLabel()
        bar.addWidget(self.page_label)

        self.next_button = QToolButton()
        self.next_button.setText("▶")
        self.next_button.setToolTip("Next page")
        self.next_button.clicked.connect(self.next_page)
        bar.addWidget(self.next_button)
        bar.addStretch()

        self.zoom_combo = QComboBox()
        for zoom in ZOOM_PRESETS:
            self.zoom_combo.addItem(f"{int(zoom * 100)}%", zoom)
        self.zoom_combo.setCurrentIndex(ZOOM_PRESETS.index(Config.DEFAULT_ZOOM_LEVEL))
        self.zoom_combo.activated.connect(
            lambda index: self.set_zoom_level(self.zoom_combo.itemData(index)))
        bar.addWidget(self.zoom_combo)

        self.fit_width_button = QToolButton()
        self.fit_width_button.setText("Fit Width")
        self.fit_width_button.clicked.connect(self.fit_to_width)
        bar.addWidget(self.fit_width_button)
        return bar

    def _build_viewport(self) -> QLabel:
        # Sized by the window only, never by the pixmap it shows.
        self.pdf_label = QLabel(EMPTY_VIEWPORT_TEXT)
        self.pdf_label.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.pdf_label.setStyleSheet("QLabel { background-color: white; border: 1px solid #ccc; }")
        self.pdf_label.setWordWrap(True)
        self.pdf_label.setMinimumWidth(Config.VIEWPORT_MIN_WIDTH)
        self.pdf_label.setFixedHeight(Config.VIEWPORT_HEIGHT)
        self.pdf_label.setSizePolicy(QSizePolicy.Policy.Ignored, QSizePolicy.Policy.Fixed)
        return self.pdf_label

    @property
    def viewport(self) -> QLabel:
        """The region the overlay surface must cover."""
        return self.pdf_label

    def set_pixmap(self, image: QImage, page_number: int):
        """Show a rendered page; images for a page no longer current are dropped."""
        if page_number != self.current_page:
            return
        if image is None or image.isNull():
            self.current_pixmap = None
            self.pdf_label.clear()
            self.pdf_label.setText("Error loading page")
            return
        self.current_pixmap = QPixmap.fromImage(image)
        self.pdf_label.setPixmap(self.current_pixmap)

    def set_total_pages(self, total_pages: int):
        self.total_pages = total_pages
        self._sync_controls()

    def set_current_page(self, page_number: int):
        """Reflect the session's current page (0-based)."""
        self.current_page = page_number
        self._sync_controls()

    def previous_page(self):
        if self.current_page > 0:
            self.page_requested.emit(self.current_page - 1)

    def next_page(self):
        if self.current_page < self.total_pages - 1:
            self.page_requested.emit(self.current_page + 1)

    def zoom_in(self):
        self.set_zoom_level(self.zoom_level + Config.ZOOM_STEP)

    def zoom_out(self):
        self.set_zoom_level(self.zoom_level - Config.ZOOM_STEP)

    def set_zoom_level(self, zoom_level: float):
        """Clamp, store and announce a new zoom level."""
        zoom_level = max(Config.MIN_ZOOM, min(Config.MAX_ZOOM, zoom_level))
        if abs(zoom_level - self.zoom_level) <= 0.01:
            return
        self.zoom_level = zoom_level
        text = f"{int(round(zoom_level * 100))}%"
        index = self.zoom_combo.findText(text)
        if index < 0:
            self.zoom_combo.setPlaceholderText(text)
        self.zoom_combo.setCurrentIndex(index)
        self.zoom_changed.emit(zoom_level)

    def fit_to_width(self):
        """Zoom so the page spans the viewport width."""
        if not self.current_pixmap:
            return
        page_width = self.current_pixmap.width() / self.zoom_level
        if page_width > 0:
            self.set_zoom_level(self.pdf_label.width() / page_width)

    def clear(self):
        self.pdf_label.clear()
        self.pdf_label.setText(EMPTY_VIEWPORT_TEXT)
        self.current_pixmap = None
        self.current_page = 0
        self.total_pages = 0
        self._sync_controls()

    def get_current_page(self) -> int:
        return self.current_page

    def get_zoom_level(self) -> float:
        return self.zoom_level

    def _on_page_spin_changed(self, value: int):
        if self.total_pages and value - 1 != self.current_page:
            self.page_requested.emit(value - 1)

    def _sync_controls(self):
        has_pages = self.total_pages > 0
        self.page_spin.blockSignals(True)
        self.page_spin.setRange(1 if has_pages else 0, max(self.total_pages, 0))
        self.page_spin.setValue(self.current_page + 1 if has_pages else 0)
        self.page_spin.blockSignals(False)
        self.page_spin.setEnabled(has_pages)
        self.page_label.setText(f"of {self.total_pages}")
        self.prev_button.setEnabled(self.current_page > 0)
        self.next_button.setEnabled(self.current_page < self.total_pages - 1)
        self.fit_width_button.setEnabled(has_pages)
