from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from enum import Enum
from typing import List, Dict, Any, Optional, Tuple
import logging

from PyQt6.QtWidgets import QGraphicsItem

from core.config import Config

logger = logging.getLogger(__name__)


class AnnotationType(Enum):
    RECTANGLE = "rectangle"
    TEXT = "text"


@dataclass
class Annotation:
    """Creation-time description of an annotation object.

    Geometry is in overlay surface pixels and is not checked against the
    surface bounds: objects may sit partly or fully outside it.
    """
    annotation_type: AnnotationType
    x: float
    y: float
    width: float
    height: float = 0.0
    fill: str = "#000000"
    opacity: float = 1.0
    selectable: bool = True
    text: Optional[str] = None
    font_size: int = 0

    def __post_init__(self):
        """Validate annotation data."""
        if self.annotation_type == AnnotationType.TEXT:
            if self.text is None:
                raise ValueError("Text annotations must have text content")
            if self.font_size <= 0:
                raise ValueError("Text annotations must have a positive font size")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"Opacity must be within [0, 1], got {self.opacity}")

    @classmethod
    def create(cls, annotation_type: AnnotationType, **overrides) -> "Annotation":
        """Build an annotation from the configured defaults plus overrides."""
        allowed = {f.name for f in fields(cls)} - {"annotation_type"}
        unknown = set(overrides) - allowed
        if unknown:
            raise TypeError(f"Unknown annotation options: {sorted(unknown)}")
        values = Config.get_annotation_defaults(annotation_type.value)
        values.update(overrides)
        return cls(annotation_type=annotation_type, **values)


class AnnotationObject:
    """A live annotation on an overlay surface.

    Wraps the graphics item that draws it, so position and bounds always
    reflect the latest drag or resize made by the user.
    """

    def __init__(self, annotation: Annotation, item: QGraphicsItem):
        self.annotation = annotation
        self.item = item

    @property
    def kind(self) -> AnnotationType:
        return self.annotation.annotation_type

    @property
    def position(self) -> Tuple[float, float]:
        pos = self.item.pos()
        return pos.x(), pos.y()

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Scene bounds as (x0, y0, x1, y1)."""
        rect = self.item.sceneBoundingRect()
        return rect.left(), rect.top(), rect.right(), rect.bottom()

    @property
    def is_selected(self) -> bool:
        return self.item.isSelected()

    def __repr__(self) -> str:
        x, y = self.position
        return f"AnnotationObject({self.kind.value}, x={x:.1f}, y={y:.1f})"


class AnnotationRenderer(ABC):
    """Abstract base for turning an annotation into a surface item."""

    @abstractmethod
    def create_item(self, annotation: Annotation) -> QGraphicsItem:
        """Create the graphics item for a single annotation."""
        pass


class AnnotationManager:
    """Annotation tools: creates objects on the active overlay surface.

    One renderer is registered per :class:`AnnotationType`. Objects are only
    ever appended, so z-order on the surface is insertion order.
    """

    def __init__(self):
        self.renderers: Dict[AnnotationType, AnnotationRenderer] = {}

    def register_renderer(self, annotation_type: AnnotationType, renderer: AnnotationRenderer):
        """Register an annotation renderer."""
        self.renderers[annotation_type] = renderer

    def add_annotation(self, surface, annotation: Annotation) -> AnnotationObject:
        """Append an annotation to the surface and repaint it immediately."""
        renderer = self.renderers.get(annotation.annotation_type)
        if renderer is None:
            raise KeyError(f"No renderer registered for {annotation.annotation_type.value}")
        item = renderer.create_item(annotation)
        obj = AnnotationObject(annotation, item)
        surface.add_object(obj)
        surface.render_all()
        logging.debug(
            f"AnnotationManager.add_annotation: added {obj!r}, surface now has {len(surface.objects)} objects"
        )
        return obj

    def add_rectangle(self, surface, **opts) -> AnnotationObject:
        """Add a redaction rectangle (semi-transparent black by default)."""
        annotation = Annotation.create(AnnotationType.RECTANGLE, **opts)
        return self.add_annotation(surface, annotation)

    def add_text(self, surface, content: Optional[str] = None, **opts) -> AnnotationObject:
        """Add a text label ("Sample Text" in blue by default)."""
        if content is not None:
            opts["text"] = content
        annotation = Annotation.create(AnnotationType.TEXT, **opts)
        return self.add_annotation(surface, annotation)

    def get_annotations(self, surface) -> List[Annotation]:
        """Get the creation data of every object on a surface, in z-order."""
        return [obj.annotation for obj in surface.objects]
