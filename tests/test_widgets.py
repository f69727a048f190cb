import pytest

from core.config import Config
from ui.annotation_panel import AnnotationPanel
from ui.export_log import ExportLogWidget
from ui.main_window import MainWindow
from ui.pdf_viewer import PDFViewerWidget


def test_viewer_navigation_requests_pages(qtbot):
    viewer = PDFViewerWidget()
    qtbot.addWidget(viewer)
    viewer.set_total_pages(3)

    with qtbot.assertNotEmitted(viewer.page_requested):
        viewer.previous_page()
    with qtbot.waitSignal(viewer.page_requested) as blocker:
        viewer.next_page()
    assert blocker.args == [1]
    # the viewer only moves once the session confirms
    assert viewer.get_current_page() == 0

    viewer.set_current_page(2)
    assert viewer.page_spin.value() == 3
    assert viewer.page_label.text() == "of 3"
    assert not viewer.next_button.isEnabled()


def test_viewer_zoom_is_clamped(qtbot):
    viewer = PDFViewerWidget()
    qtbot.addWidget(viewer)
    with qtbot.waitSignal(viewer.zoom_changed):
        viewer.set_zoom_level(100.0)
    assert viewer.get_zoom_level() == Config.MAX_ZOOM


def test_viewport_height_is_fixed(qtbot):
    viewer = PDFViewerWidget()
    qtbot.addWidget(viewer)
    assert viewer.viewport.height() == Config.VIEWPORT_HEIGHT


def test_panel_signals(qtbot):
    panel = AnnotationPanel()
    qtbot.addWidget(panel)
    assert not panel.blur_button.isEnabled()
    panel.set_tools_enabled(True)

    with qtbot.waitSignal(panel.rectangle_requested):
        panel.blur_button.click()
    with qtbot.waitSignal(panel.text_requested) as blocker:
        panel.add_text_button.click()
    assert blocker.args == [Config.DEFAULT_TEXT]

    panel.text_input.setText("  Top secret ")
    with qtbot.waitSignal(panel.text_requested) as blocker:
        panel.add_text_button.click()
    assert blocker.args == ["Top secret"]


def test_export_log_records_messages(qtbot):
    log = ExportLogWidget()
    qtbot.addWidget(log)
    log.append_metrics("serialize", {"time_ms": 1.5, "success": True, "bytes": 10})
    log.append_error("deliver", "disk full", {"last_successful": "serialize"})
    text = log.log_widget.toPlainText()
    assert "serialize" in text
    assert "disk full" in text


@pytest.fixture
def window(qtbot, pdf_path, tmp_path, monkeypatch, captured_artifacts):
    monkeypatch.setenv("HOME", str(tmp_path))
    window = MainWindow()
    qtbot.addWidget(window)
    window.session.export_processor.service.sink = captured_artifacts
    window.show()
    qtbot.waitExposed(window)
    return window


def test_main_window_open_annotate_save(window, pdf_path, captured_artifacts):
    window.session.open_file(pdf_path, asynchronous=False)
    assert window.annotation_panel.blur_button.isEnabled()
    assert window.pdf_viewer.total_pages == 3
    surface = window.session.surface
    assert surface.width == window.pdf_viewer.viewport.width()
    assert surface.height == Config.VIEWPORT_HEIGHT

    window.annotation_panel.blur_button.click()
    window.annotation_panel.add_text_button.click()
    assert len(surface.objects) == 2

    window.save_pdf()
    assert captured_artifacts.delivered[0][0] == Config.EXPORT_FILENAME


def test_main_window_close_releases_session(window, pdf_path):
    window.session.open_file(pdf_path, asynchronous=False)
    window.close()
    assert window.session.surface is None
    assert not window.render_thread.isRunning()


def test_viewer_page_spin_requests_jump(qtbot):
    viewer = PDFViewerWidget()
    qtbot.addWidget(viewer)
    assert not viewer.page_spin.isEnabled()
    viewer.set_total_pages(5)

    with qtbot.waitSignal(viewer.page_requested) as blocker:
        viewer.page_spin.setValue(4)
    assert blocker.args == [3]
    # confirming the page must not echo another request
    with qtbot.assertNotEmitted(viewer.page_requested):
        viewer.set_current_page(3)


def test_export_log_groups_a_run(qtbot):
    from models.ExportResult import ExportResult

    log = ExportLogWidget()
    qtbot.addWidget(log)
    log.append_metrics("check_preconditions", {"time_ms": 0.1, "success": True})
    log.append_result(ExportResult(success=True, output_path="/tmp/a.pdf", page_index=1, byte_count=9))

    text = log.log_widget.toPlainText()
    assert text.count("Export started") == 1
    assert "Saved: Saved /tmp/a.pdf (9 bytes)" in text
    assert log.status_label.text() == "Last export: page 2 saved"

    log.clear()
    assert log.log_widget.toPlainText() == ""
