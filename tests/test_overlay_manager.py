import pytest
from PyQt6.QtWidgets import QWidget

from core.annotation_renderers import RectangleRenderer, TextLabelRenderer
from core.annotation_system import AnnotationManager, AnnotationType
from core.overlay_manager import OverlaySurfaceManager


@pytest.fixture
def viewport(qtbot):
    """A visible viewport inside a container, so resizes deliver events at once."""
    container = QWidget()
    qtbot.addWidget(container)
    container.resize(1000, 800)
    region = QWidget(container)
    region.setGeometry(0, 0, 800, 600)
    container.show()
    qtbot.waitExposed(container)
    yield region


@pytest.fixture
def tools():
    manager = AnnotationManager()
    manager.register_renderer(AnnotationType.RECTANGLE, RectangleRenderer())
    manager.register_renderer(AnnotationType.TEXT, TextLabelRenderer())
    return manager


def test_create_matches_viewport_size(viewport):
    manager = OverlaySurfaceManager(viewport)
    surface = manager.create()
    assert (surface.width, surface.height) == (viewport.width(), viewport.height())
    assert surface.view.parent() is viewport
    assert surface.view.geometry().topLeft().x() == 0
    assert surface.view.geometry().topLeft().y() == 0
    manager.destroy()


def test_surface_tracks_every_resize_event(viewport):
    """After each viewport resize the surface has exactly the viewport's size."""
    manager = OverlaySurfaceManager(viewport)
    surface = manager.create()
    for width, height in [(640, 480), (1024, 700), (300, 200), (799, 601)]:
        viewport.resize(width, height)
        assert surface.width == viewport.width() == width
        assert surface.height == viewport.height() == height
        assert surface.view.width() == width
        assert surface.view.height() == height
    manager.destroy()


def test_create_twice_leaves_single_surface(viewport):
    manager = OverlaySurfaceManager(viewport)
    first = manager.create()
    second = manager.create()
    assert first.is_disposed
    assert not second.is_disposed
    assert manager.surface is second
    assert manager.live_surface_count() == 1
    manager.destroy()


def test_two_managers_on_same_viewport_do_not_stack(viewport):
    """A stray overlay left on the viewport is removed before creating."""
    OverlaySurfaceManager(viewport).create()
    manager = OverlaySurfaceManager(viewport)
    manager.create()
    assert manager.live_surface_count() == 1
    manager.destroy()


def test_destroy_without_surface_is_noop(viewport):
    manager = OverlaySurfaceManager(viewport)
    manager.destroy()
    manager.destroy()
    assert manager.surface is None


def test_destroy_unbinds_resize_listener(viewport, qtbot):
    manager = OverlaySurfaceManager(viewport)
    surface = manager.create()
    manager.destroy()
    assert manager.live_surface_count() == 0

    with qtbot.assertNotEmitted(manager.surface_resized):
        viewport.resize(500, 400)
    assert surface.is_disposed
    assert manager.surface is None


def test_resize_keeps_object_coordinates(viewport, tools):
    """Objects are not rescaled when the viewport changes size."""
    manager = OverlaySurfaceManager(viewport)
    surface = manager.create()
    rect = tools.add_rectangle(surface)
    label = tools.add_text(surface)

    viewport.resize(400, 300)

    assert len(surface.objects) == 2
    assert rect.position == (100.0, 100.0)
    assert label.position == (150.0, 200.0)
    manager.destroy()


def test_explicit_resize_reads_viewport(viewport):
    manager = OverlaySurfaceManager(viewport)
    surface = manager.create()
    viewport.removeEventFilter(manager)
    viewport.resize(320, 240)
    manager.resize(surface)
    assert (surface.width, surface.height) == (320, 240)
    manager.destroy()


def test_create_without_viewport_fails(qapp):
    with pytest.raises(ValueError):
        OverlaySurfaceManager().create()
