"""
Annotation panel widget with the drawing tools and the surface object list.
"""

from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QLabel, QLineEdit,
    QPushButton, QGroupBox, QTextEdit, QSplitter
)
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QFont
from typing import List

from core.annotation_system import AnnotationObject, AnnotationType
from core.config import Config

class AnnotationPanel(QWidget):
    """Left panel widget for annotation tools and surface contents."""

    # Signals
    rectangle_requested = pyqtSignal()
    text_requested = pyqtSignal(str)
    save_requested = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._setup_ui()
        self._setup_connections()
        self.set_tools_enabled(False)

    def _setup_ui(self):
        """Set up the user interface."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 10, 10, 10)

        splitter = QSplitter(Qt.Orientation.Vertical)

        # Drawing tools
        tools_group = QGroupBox("Annotation Tools")
        tools_layout = QVBoxLayout(tools_group)
        self.blur_button = QPushButton("Blur Text")
        self.blur_button.setToolTip("Add a semi-transparent redaction block")
        tools_layout.addWidget(self.blur_button)
        tools_layout.addWidget(QLabel("Label text:"))
        self.text_input = QLineEdit()
        self.text_input.setPlaceholderText(Config.DEFAULT_TEXT)
        tools_layout.addWidget(self.text_input)
        self.add_text_button = QPushButton("Add Text")
        tools_layout.addWidget(self.add_text_button)
        tools_layout.addStretch()
        splitter.addWidget(tools_group)

        # Surface contents
        objects_group = QGroupBox("Annotations on Page")
        objects_layout = QVBoxLayout(objects_group)
        self.objects_text = QTextEdit()
        self.objects_text.setReadOnly(True)
        self.objects_text.setFont(QFont("Courier", 8))
        objects_layout.addWidget(self.objects_text)
        splitter.addWidget(objects_group)

        self.save_button = QPushButton("Save PDF")
        layout.addWidget(splitter)
        layout.addWidget(self.save_button)

    def _setup_connections(self):
        """Set up signal connections."""
        self.blur_button.clicked.connect(self.rectangle_requested.emit)
        self.add_text_button.clicked.connect(
            lambda: self.text_requested.emit(self.get_label_text()))
        self.save_button.clicked.connect(self.save_requested.emit)

    def set_tools_enabled(self, enabled: bool):
        """Enable the tools only while a document is loaded."""
        self.blur_button.setEnabled(enabled)
        self.add_text_button.setEnabled(enabled)
        self.save_button.setEnabled(enabled)

    def get_label_text(self) -> str:
        """Text for the next label, falling back to the default sample text."""
        return self.text_input.text().strip() or Config.DEFAULT_TEXT

    def update_objects(self, page_number: int, objects: List[AnnotationObject]):
        """
        List the objects on the overlay in z-order.

        Args:
            page_number: 0-based index of the page shown under the overlay.
            objects: Objects currently on the surface.
        """
        text = f"Page {page_number + 1}\n" + "="*20 + "\n\n"
        for i, obj in enumerate(objects, start=1):
            x0, y0, x1, y1 = obj.bounds
            if obj.kind == AnnotationType.TEXT:
                label = f"text \"{obj.annotation.text}\""
            else:
                label = "rectangle"
            text += f"{i:2d}. {label}\n    ({x0:.0f}, {y0:.0f}) - ({x1:.0f}, {y1:.0f})\n"
        if not objects:
            text += "No annotations\n"
        self.objects_text.setPlainText(text)

    def clear_objects(self):
        """Clear the object list."""
        self.objects_text.setPlainText("")
