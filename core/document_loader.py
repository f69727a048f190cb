"""
Reading user-selected files into document handles.
"""

import logging
import mimetypes
import os

from PyQt6.QtCore import QThread, pyqtSignal

from core.config import Config
from core.exceptions import InvalidInputType
from models.DocumentHandle import DocumentHandle

logger = logging.getLogger(__name__)


def declared_media_type(path: str) -> str:
    """Media type implied by the file name, or an empty string."""
    media_type, _ = mimetypes.guess_type(path)
    return media_type or ""


def read_document(path: str) -> DocumentHandle:
    """
    Read a PDF file into an immutable handle.

    Args:
        path: Path of the file chosen by the user.

    Returns:
        DocumentHandle with the file's bytes.

    Raises:
        InvalidInputType: if the file is not declared as a PDF.
        OSError: if the file cannot be read.
    """
    file_name = os.path.basename(path)
    media_type = declared_media_type(path)
    if media_type != Config.ACCEPTED_MEDIA_TYPE:
        raise InvalidInputType(file_name, media_type or None)
    with open(path, "rb") as fh:
        data = fh.read()
    logger.debug("Read %d bytes from %s", len(data), path)
    return DocumentHandle(data=data, file_name=file_name, media_type=media_type)


class DocumentLoadWorker(QThread):
    """Reads one file off the UI thread.

    Every worker carries the generation number it was started with, so the
    receiver can tell a superseded load from the current one.
    """

    loaded = pyqtSignal(int, object)   # generation, DocumentHandle
    failed = pyqtSignal(int, str)      # generation, error message

    def __init__(self, path: str, generation: int, parent=None):
        super().__init__(parent)
        self.path = path
        self.generation = generation

    def run(self):
        try:
            handle = read_document(self.path)
        except (OSError, InvalidInputType) as e:
            logger.exception("Reading %s failed", self.path)
            self.failed.emit(self.generation, f"Could not read {self.path}: {e}")
            return
        self.loaded.emit(self.generation, handle)
