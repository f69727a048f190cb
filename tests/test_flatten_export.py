import os

import fitz
import pytest

from core.annotation_renderers import RectangleRenderer, TextLabelRenderer
from core.annotation_system import AnnotationManager, AnnotationType
from core.config import Config
from core.document_loader import read_document
from core.exceptions import (
    DocumentParseError,
    NoDocumentLoaded,
    NoSurface,
    PageIndexOutOfRange,
    SaveFailed,
)
from core.export_processor import ExportProcessor
from core.overlay_surface import OverlaySurface
from models.DocumentHandle import DocumentHandle
from services.FlattenExportService import FileArtifactSink, FlattenExportService


@pytest.fixture
def surface(qapp):
    surface = OverlaySurface(800, 600)
    tools = AnnotationManager()
    tools.register_renderer(AnnotationType.RECTANGLE, RectangleRenderer())
    tools.register_renderer(AnnotationType.TEXT, TextLabelRenderer())
    tools.add_rectangle(surface)
    tools.add_text(surface, "REDACTED")
    yield surface
    surface.dispose()


@pytest.fixture
def processor(qapp, captured_artifacts):
    return ExportProcessor(FlattenExportService(sink=captured_artifacts))


def _image_counts(data: bytes):
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        return [len(page.get_images()) for page in doc]
    finally:
        doc.close()


def test_flatten_onto_middle_page(pdf_path, surface, processor, captured_artifacts):
    handle = read_document(pdf_path)
    result = processor.flatten_and_export(handle, 1, surface)

    assert result.success, result.message
    assert result.output_path == f"memory://{Config.EXPORT_FILENAME}"
    assert len(captured_artifacts.delivered) == 1
    file_name, data = captured_artifacts.delivered[0]
    assert file_name == "annotated-document.pdf"
    assert result.byte_count == len(data)
    assert _image_counts(data) == [0, 1, 0]


def test_flatten_keeps_page_geometry_and_text(pdf_path, surface, processor, captured_artifacts):
    handle = read_document(pdf_path)
    processor.flatten_and_export(handle, 0, surface)
    _, data = captured_artifacts.delivered[0]

    doc = fitz.open(stream=data, filetype="pdf")
    try:
        assert doc.page_count == 3
        page = doc[0]
        assert (page.rect.width, page.rect.height) == (595, 842)
        assert "Page 1 confidential text" in page.get_text()
        info = page.get_image_info()
        assert len(info) == 1
        x0, y0, x1, y1 = info[0]["bbox"]
        # stretched over the whole page, proportions not kept
        assert (x0, y0) == pytest.approx((0, 0), abs=0.5)
        assert (x1, y1) == pytest.approx((595, 842), abs=0.5)
    finally:
        doc.close()


def test_original_handle_is_untouched(pdf_path, surface, processor):
    handle = read_document(pdf_path)
    original = bytes(handle.data)
    processor.flatten_and_export(handle, 2, surface)
    assert handle.data == original


def test_successive_saves_start_from_original(pdf_path, surface, processor, captured_artifacts):
    handle = read_document(pdf_path)
    processor.flatten_and_export(handle, 1, surface)
    processor.flatten_and_export(handle, 1, surface)
    second = captured_artifacts.delivered[1][1]
    assert _image_counts(second) == [0, 1, 0]


def test_page_index_out_of_range(pdf_path, surface, processor, captured_artifacts):
    handle = read_document(pdf_path)
    result = processor.flatten_and_export(handle, 5, surface)

    assert not result.success
    assert isinstance(result.error, PageIndexOutOfRange)
    assert result.error.page_count == 3
    assert processor.completed_steps == ['check_preconditions', 'parse_document']
    assert captured_artifacts.delivered == []


def test_no_document_loaded(surface, processor, captured_artifacts):
    result = processor.flatten_and_export(None, 0, surface)
    assert isinstance(result.error, NoDocumentLoaded)
    assert processor.completed_steps == []
    assert captured_artifacts.delivered == []


def test_no_surface(pdf_path, processor):
    handle = read_document(pdf_path)
    assert isinstance(processor.flatten_and_export(handle, 0, None).error, NoSurface)


def test_disposed_surface(pdf_path, processor, qapp):
    surface = OverlaySurface(100, 100)
    surface.dispose()
    result = processor.flatten_and_export(read_document(pdf_path), 0, surface)
    assert isinstance(result.error, NoSurface)


def test_unparseable_document(surface, processor, captured_artifacts):
    handle = DocumentHandle(b"%PDF-1.4 this is not really a pdf", "broken.pdf")
    result = processor.flatten_and_export(handle, 0, surface)
    assert isinstance(result.error, DocumentParseError)
    assert captured_artifacts.delivered == []


def test_sink_failure_becomes_save_failed(pdf_path, surface, qapp):
    def failing_sink(data, file_name):
        raise PermissionError("read-only")

    processor = ExportProcessor(FlattenExportService(sink=failing_sink))
    result = processor.flatten_and_export(read_document(pdf_path), 0, surface)
    assert isinstance(result.error, SaveFailed)
    assert "read-only" in result.message
    assert processor.last_successful_step == 'serialize'


def test_run_raises_first_error(pdf_path, processor):
    with pytest.raises(NoSurface):
        processor.run(read_document(pdf_path), 0, None)


def test_step_signals(pdf_path, surface, processor, qtbot):
    completed = []
    processor.step_completed.connect(lambda name, metrics: completed.append((name, metrics)))

    with qtbot.waitSignal(processor.export_finished) as blocker:
        processor.flatten_and_export(read_document(pdf_path), 0, surface)

    assert blocker.args[0].success
    assert [name for name, _ in completed] == [
        'check_preconditions', 'parse_document', 'resolve_page',
        'rasterize_surface', 'embed_image', 'serialize', 'deliver',
    ]
    metrics = dict(completed)
    assert metrics['rasterize_surface']['bytes'] > 0
    assert all(m['time_ms'] >= 0 for m in metrics.values())


def test_step_failed_signal(surface, processor, qtbot):
    with qtbot.waitSignal(processor.step_failed) as blocker:
        processor.flatten_and_export(None, 0, surface)
    step_name, error, context = blocker.args
    assert step_name == 'check_preconditions'
    assert context == {'last_successful': None}


def test_file_sink_writes_export(tmp_path):
    sink = FileArtifactSink(str(tmp_path / "out"))
    path = sink(b"%PDF-1.7 data", Config.EXPORT_FILENAME)

    assert path == os.path.join(str(tmp_path / "out"), "annotated-document.pdf")
    with open(path, "rb") as fh:
        assert fh.read() == b"%PDF-1.7 data"
    assert os.listdir(tmp_path / "out") == ["annotated-document.pdf"]


def test_file_sink_overwrites(tmp_path):
    sink = FileArtifactSink(str(tmp_path))
    sink(b"first", "x.pdf")
    sink(b"second", "x.pdf")
    with open(tmp_path / "x.pdf", "rb") as fh:
        assert fh.read() == b"second"


def test_default_export_directory(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    sink = FileArtifactSink()
    assert sink.directory == Config.get_export_directory()


def _blank_pdf(path, rotation: int) -> str:
    """Two blank A4 pages, the second one carrying a /Rotate entry."""
    doc = fitz.open()
    doc.new_page(width=595, height=842)
    doc.new_page(width=595, height=842).set_rotation(rotation)
    doc.save(str(path))
    doc.close()
    return str(path)


@pytest.mark.parametrize("rotation", [0, 90, 180, 270])
def test_flatten_lands_where_drawn_on_rotated_page(tmp_path, qapp, processor, captured_artifacts, rotation):
    """A block in the overlay's top-left quadrant covers the visible top-left quadrant."""
    surface = OverlaySurface(800, 600)
    tools = AnnotationManager()
    tools.register_renderer(AnnotationType.RECTANGLE, RectangleRenderer())
    tools.add_rectangle(surface, x=0, y=0, width=400, height=300, opacity=1.0)

    handle = read_document(_blank_pdf(tmp_path / f"rotated_{rotation}.pdf", rotation))
    result = processor.flatten_and_export(handle, 1, surface)
    surface.dispose()
    assert result.success, result.message

    doc = fitz.open(stream=captured_artifacts.delivered[0][1], filetype="pdf")
    try:
        page = doc[1]
        assert page.rotation == rotation
        pix = page.get_pixmap()
        w, h = pix.width, pix.height
        assert pix.pixel(w // 4, h // 4) == (0, 0, 0)
        assert pix.pixel(3 * w // 4, h // 4) == (255, 255, 255)
        assert pix.pixel(w // 4, 3 * h // 4) == (255, 255, 255)
        assert pix.pixel(3 * w // 4, 3 * h // 4) == (255, 255, 255)
    finally:
        doc.close()


def test_other_pages_are_unchanged(pdf_path, surface, processor, captured_artifacts):
    processor.flatten_and_export(read_document(pdf_path), 1, surface)

    original = fitz.open(pdf_path)
    exported = fitz.open(stream=captured_artifacts.delivered[0][1], filetype="pdf")
    try:
        for index in (0, 2):
            assert exported[index].get_text() == original[index].get_text()
            assert exported[index].read_contents() == original[index].read_contents()
        assert exported[1].read_contents() != original[1].read_contents()
    finally:
        original.close()
        exported.close()
