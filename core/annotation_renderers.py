from PyQt6.QtCore import Qt, QRectF
from PyQt6.QtGui import QBrush, QColor, QFont, QPen
from PyQt6.QtWidgets import QGraphicsItem, QGraphicsRectItem, QGraphicsTextItem, QStyle

from core.annotation_system import AnnotationRenderer, Annotation
from core.config import Config


def _to_qcolor(name: str, opacity: float) -> QColor:
    """Convert a CSS/SVG color name or hex string plus opacity to a QColor."""
    color = QColor(name)
    if not color.isValid():
        raise ValueError(f"Invalid fill color: {name!r}")
    color.setAlphaF(opacity)
    return color


class ResizeGripMixin:
    """Bottom-right drag grip shared by the annotation items.

    Items using it provide ``resize_to(width, height)``. The grip only reacts
    on movable items, so locked objects keep their size as well as position.
    """

    _resizing = False

    def _grip_rect(self) -> QRectF:
        bounds = self.boundingRect()
        size = Config.RESIZE_GRIP_SIZE
        return QRectF(bounds.right() - size, bounds.bottom() - size, size, size)

    def _grip_enabled(self) -> bool:
        return bool(self.flags() & QGraphicsItem.GraphicsItemFlag.ItemIsMovable)

    def mousePressEvent(self, event):
        if (event.button() == Qt.MouseButton.LeftButton and self._grip_enabled()
                and self._grip_rect().contains(event.pos())):
            self._resizing = True
            self.setSelected(True)
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._resizing:
            origin = self.boundingRect().topLeft()
            self.resize_to(event.pos().x() - origin.x(), event.pos().y() - origin.y())
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if self._resizing:
            self._resizing = False
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def _strip_selection(self, option, widget):
        # Scene snapshots are painted without a widget; keep selection chrome out of them.
        if widget is None:
            option.state &= ~QStyle.StateFlag.State_Selected


class RectangleItem(ResizeGripMixin, QGraphicsRectItem):
    """Filled rectangle, used for redaction blocks."""

    def __init__(self, annotation: Annotation):
        super().__init__(0.0, 0.0, annotation.width, annotation.height)
        self.setPos(annotation.x, annotation.y)
        self.setBrush(QBrush(_to_qcolor(annotation.fill, annotation.opacity)))
        self.setPen(QPen(Qt.PenStyle.NoPen))
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIsSelectable, annotation.selectable)
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIsMovable, annotation.selectable)

    def resize_to(self, width: float, height: float):
        minimum = Config.MIN_ANNOTATION_SIZE
        rect = self.rect()
        self.setRect(QRectF(rect.left(), rect.top(), max(minimum, width), max(minimum, height)))

    def paint(self, painter, option, widget=None):
        self._strip_selection(option, widget)
        super().paint(painter, option, widget)


class TextLabelItem(ResizeGripMixin, QGraphicsTextItem):
    """Plain text label wrapped to a fixed bounding width."""

    def __init__(self, annotation: Annotation):
        super().__init__(annotation.text)
        self.setPos(annotation.x, annotation.y)
        font = QFont()
        font.setPixelSize(int(annotation.font_size))
        self.setFont(font)
        self.setDefaultTextColor(_to_qcolor(annotation.fill, annotation.opacity))
        self.setTextWidth(annotation.width)
        self.setTextInteractionFlags(Qt.TextInteractionFlag.NoTextInteraction)
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIsSelectable, annotation.selectable)
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIsMovable, annotation.selectable)

    def resize_to(self, width: float, height: float):
        # Height follows the wrapped text; only the bounding width is adjustable.
        self.setTextWidth(max(Config.MIN_ANNOTATION_SIZE, width))

    def paint(self, painter, option, widget=None):
        self._strip_selection(option, widget)
        super().paint(painter, option, widget)


class RectangleRenderer(AnnotationRenderer):
    """Renders rectangle annotations as movable, resizable filled boxes."""

    def create_item(self, annotation: Annotation) -> QGraphicsItem:
        return RectangleItem(annotation)


class TextLabelRenderer(AnnotationRenderer):
    """Renders text annotations as movable labels."""

    def create_item(self, annotation: Annotation) -> QGraphicsItem:
        return TextLabelItem(annotation)
