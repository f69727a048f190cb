import logging
import os
import shutil
import tempfile
from typing import Callable, Optional, Tuple
import fitz
from core.config import Config
from core.exceptions import (
    DocumentParseError,
    NoDocumentLoaded,
    NoSurface,
    PageIndexOutOfRange,
    SaveFailed,
)
from core.overlay_surface import OverlaySurface
from models.DocumentHandle import DocumentHandle

logger = logging.getLogger(__name__)

# Receives the serialized document and its file name, returns where it went.
ArtifactSink = Callable[[bytes, str], str]


class FileArtifactSink:
    """Writes exported documents into a directory through a temporary file."""

    def __init__(self, directory: str = None):
        self.directory = directory or Config.get_export_directory()

    def __call__(self, data: bytes, file_name: str) -> str:
        os.makedirs(self.directory, exist_ok=True)
        output_path = os.path.join(self.directory, file_name)
        temp_fd, temp_path = tempfile.mkstemp(suffix=".pdf", dir=self.directory)
        try:
            with os.fdopen(temp_fd, "wb") as fh:
                fh.write(data)
            shutil.move(temp_path, output_path)
        except OSError:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
        return output_path


class FlattenExportService:
    """Service implementing the 6-step flatten & export pipeline.

    Steps only read the original handle; the parsed copy is the only thing
    that gets modified, and it is closed by the caller.
    """

    def __init__(self, sink: Optional[ArtifactSink] = None):
        self.sink: ArtifactSink = sink or FileArtifactSink()

    def check_preconditions(self, handle: Optional[DocumentHandle],
                            surface: Optional[OverlaySurface]) -> None:
        """Step 1: A document and a live overlay surface must exist."""
        if handle is None:
            raise NoDocumentLoaded()
        if surface is None or surface.is_disposed:
            raise NoSurface()

    def parse_document(self, handle: DocumentHandle) -> fitz.Document:
        """Step 2: Re-parse the original bytes."""
        try:
            document = fitz.open(stream=handle.data, filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise DocumentParseError(f"Could not parse {handle.file_name}: {e}") from e
        if not document.is_pdf or document.page_count == 0:
            document.close()
            raise DocumentParseError(f"{handle.file_name} is not a valid PDF document")
        return document

    def resolve_page(self, document: fitz.Document, page_index: int) -> fitz.Page:
        """Step 3: Locate the target page by index."""
        if page_index < 0 or page_index >= document.page_count:
            raise PageIndexOutOfRange(page_index, document.page_count)
        return document.load_page(page_index)

    def rasterize_surface(self, surface: OverlaySurface) -> bytes:
        """Step 4: Snapshot the whole overlay surface as PNG at 1:1 scale."""
        try:
            surface.render_all()
            return surface.to_png_bytes()
        except Exception as e:
            raise SaveFailed(f"Rasterizing the overlay failed: {e}") from e

    def embed_image(self, page: fitz.Page, image_data: bytes) -> Tuple[float, float]:
        """Step 5: Draw the raster over the visible page, stretched to its size.

        The overlay was drawn on the page as displayed, so on a page with a
        /Rotate entry the target is mapped back to unrotated coordinates and
        the image is turned by the same angle.
        """
        try:
            rect = page.rect
            target = fitz.Rect(0, 0, rect.width, rect.height) * page.derotation_matrix
            page.insert_image(target, stream=image_data, keep_proportion=False,
                              overlay=True, rotate=page.rotation)
            return rect.width, rect.height
        except Exception as e:
            raise SaveFailed(f"Embedding the overlay into page {page.number} failed: {e}") from e

    def serialize(self, document: fitz.Document) -> bytes:
        """Step 6a: Produce the final byte stream."""
        try:
            return document.tobytes(garbage=3, deflate=True)
        except Exception as e:
            raise SaveFailed(f"Serializing the document failed: {e}") from e

    def deliver(self, data: bytes) -> str:
        """Step 6b: Hand the bytes to the sink under the fixed export name."""
        try:
            return self.sink(data, Config.EXPORT_FILENAME)
        except Exception as e:
            raise SaveFailed(f"Writing {Config.EXPORT_FILENAME} failed: {e}") from e
