"""
Core modules for the PDF Overlay Redactor.
"""

from .config import Config
from .annotation_system import Annotation, AnnotationManager, AnnotationObject, AnnotationType
from .overlay_manager import OverlaySurfaceManager
from .overlay_surface import OverlaySurface
from .page_renderer import PageRendererAdapter
from .export_processor import ExportProcessor
from .editor_session import EditorSession

__all__ = [
    'Config',
    'Annotation',
    'AnnotationManager',
    'AnnotationObject',
    'AnnotationType',
    'OverlaySurfaceManager',
    'OverlaySurface',
    'PageRendererAdapter',
    'ExportProcessor',
    'EditorSession'
]
