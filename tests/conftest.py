import os
import sys

# Ensure project root is on sys.path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir)))
# Widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import fitz
import pytest


def write_pdf(path, pages: int = 3, width: float = 595, height: float = 842) -> str:
    """Write a simple PDF with one line of text per page."""
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 72), f"Page {i + 1} confidential text", fontsize=12)
    doc.save(str(path))
    doc.close()
    return str(path)


@pytest.fixture
def pdf_path(tmp_path):
    """Three-page A4 PDF on disk."""
    return write_pdf(tmp_path / "three_pages.pdf")


@pytest.fixture
def captured_artifacts():
    """In-memory artifact sink recording every delivered document."""
    class Sink:
        def __init__(self):
            self.delivered = []

        def __call__(self, data: bytes, file_name: str) -> str:
            self.delivered.append((file_name, data))
            return f"memory://{file_name}"

    return Sink()
