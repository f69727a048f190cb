from typing import Optional
import fitz
from PIL import Image
from models.DocumentHandle import DocumentHandle
from models.DocumentInfo import DocumentInfo

class PDFRenderService:
    """Service opening a document handle and rasterizing its pages for display."""

    def __init__(self):
        self.document: fitz.Document | None = None
        self.file_name: str = ""
        self.current_page_num: int = -1
        # State for isolated steps
        self.current_image: Optional[Image.Image] = None

    def open_document(self, handle: DocumentHandle) -> bool:
        """Step 1: Open the handle's bytes and reset state."""
        try:
            self.close_document()
            self.document = fitz.open(stream=handle.data, filetype="pdf")
            if self.document.page_count == 0:
                self.close_document()
                return False
            self.file_name = handle.file_name
            self.current_page_num = -1
            self.current_image = None
            return True
        except (RuntimeError, ValueError):
            self.document = None
            return False

    def close_document(self):
        """Close the current document, if any."""
        if self.document:
            self.document.close()
        self.document = None
        self.file_name = ""
        self.current_page_num = -1
        self.current_image = None

    def get_info(self) -> DocumentInfo:
        """Step 2: Extract document metadata."""
        if not self.document:
            raise ValueError("No document loaded")
        metadata = self.document.metadata or {}
        return DocumentInfo(
            page_count=len(self.document),
            title=metadata.get("title", ""),
            author=metadata.get("author", ""),
            subject=metadata.get("subject", ""),
            file_name=self.file_name,
        )

    def load_page(self, page: int) -> bool:
        """Step 3: Select a specific page."""
        if not self.document or page < 0 or page >= len(self.document):
            return False
        self.current_page_num = page
        self.current_image = None
        return True

    def render_plain(self, zoom: float) -> Image.Image:
        """Step 4: Render the current page as a PIL.Image."""
        if self.current_page_num < 0:
            raise ValueError("No page loaded")
        page = self.document.load_page(self.current_page_num)
        pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        self.current_image = image
        return image

    def run_all(self, page: int, zoom: float) -> Image.Image:
        """
        Convenience method: execute steps 3–4 in sequence.
        """
        if not self.load_page(page):
            raise ValueError(f"Page {page} does not exist")
        return self.render_plain(zoom)
