"""
Configuration management for the PDF overlay redactor.
"""

import os
from typing import Dict, Any

class Config:
    """Application configuration settings."""

    # Input / output
    ACCEPTED_MEDIA_TYPE = "application/pdf"
    EXPORT_FILENAME = "annotated-document.pdf"
    EXPORT_IMAGE_FORMAT = "PNG"

    # UI Settings
    DEFAULT_WINDOW_WIDTH = 1200
    DEFAULT_WINDOW_HEIGHT = 800
    VIEWPORT_MIN_WIDTH = 400
    VIEWPORT_HEIGHT = 600
    DEFAULT_ZOOM_LEVEL = 1.0
    MIN_ZOOM = 0.25
    MAX_ZOOM = 5.0
    ZOOM_STEP = 0.25
    RENDER_DEBOUNCE_MS = 150

    # Overlay surface
    OVERLAY_OBJECT_NAME = "pdf-overlay-surface"
    RESIZE_GRIP_SIZE = 10.0
    MIN_ANNOTATION_SIZE = 8.0

    # Annotation defaults
    RECTANGLE_DEFAULTS: Dict[str, Any] = {
        "x": 100.0,
        "y": 100.0,
        "width": 150.0,
        "height": 50.0,
        "fill": "#000000",   # black
        "opacity": 0.5,      # semi-transparent
        "selectable": True,
    }
    TEXT_DEFAULTS: Dict[str, Any] = {
        "x": 150.0,
        "y": 200.0,
        "width": 200.0,
        "font_size": 20,
        "fill": "blue",
        "opacity": 1.0,
        "selectable": True,
    }
    DEFAULT_TEXT = "Sample Text"

    @classmethod
    def get_export_directory(cls) -> str:
        """Get the default directory exported documents are written to."""
        downloads = os.path.join(os.path.expanduser("~"), "Downloads")
        if os.path.isdir(downloads):
            return downloads
        return os.path.abspath(os.getcwd())

    @classmethod
    def get_annotation_defaults(cls, annotation_type: str) -> Dict[str, Any]:
        """Get a copy of the creation defaults for an annotation type."""
        if annotation_type == "rectangle":
            return dict(cls.RECTANGLE_DEFAULTS)
        if annotation_type == "text":
            defaults = dict(cls.TEXT_DEFAULTS)
            defaults["text"] = cls.DEFAULT_TEXT
            return defaults
        raise ValueError(f"Unknown annotation type: {annotation_type}")
