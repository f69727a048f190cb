"""
UI modules for the PDF Overlay Redactor.
"""

from .main_window import MainWindow
from .pdf_viewer import PDFViewerWidget
from .annotation_panel import AnnotationPanel
from .export_log import ExportLogWidget

__all__ = [
    'MainWindow',
    'PDFViewerWidget',
    'AnnotationPanel',
    'ExportLogWidget'
]
