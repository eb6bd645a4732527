"""Annotation model: the vector shapes drawn over a screenshot.

All coordinates live in the intrinsic pixel space of the source image, never
in on-screen display pixels. That keeps the drawing surface and the
compositor in agreement no matter how the image is scaled on screen.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Union

from .config import DEFAULT_ANNOTATION_COLOR, DEFAULT_THICKNESS

AnnotationKind = Literal["rect", "arrow", "freehand", "text"]


def generate_id() -> str:
    """Short random identifier for annotations and screens."""
    return uuid.uuid4().hex[:9]


@dataclass(frozen=True)
class RectAnnotation:
    """Outlined rectangle. Width/height may be negative (drag up or left)."""

    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    color: str = DEFAULT_ANNOTATION_COLOR
    thickness: int = DEFAULT_THICKNESS
    id: str = field(default_factory=generate_id)

    kind: AnnotationKind = field(default="rect", init=False)


@dataclass(frozen=True)
class ArrowAnnotation:
    """Single segment stored as (x1, y1, x2, y2), head at the second point."""

    points: tuple[float, float, float, float]
    color: str = DEFAULT_ANNOTATION_COLOR
    thickness: int = DEFAULT_THICKNESS
    id: str = field(default_factory=generate_id)

    kind: AnnotationKind = field(default="arrow", init=False)

    @property
    def start(self) -> tuple[float, float]:
        return self.points[0], self.points[1]

    @property
    def end(self) -> tuple[float, float]:
        return self.points[2], self.points[3]


@dataclass(frozen=True)
class FreehandAnnotation:
    """Pen stroke as a flat (x0, y0, x1, y1, ...) sequence."""

    points: tuple[float, ...]
    color: str = DEFAULT_ANNOTATION_COLOR
    thickness: int = DEFAULT_THICKNESS
    id: str = field(default_factory=generate_id)

    kind: AnnotationKind = field(default="freehand", init=False)

    @property
    def point_count(self) -> int:
        return len(self.points) // 2

    @property
    def is_drawable(self) -> bool:
        """A stroke needs at least two points to render."""
        return self.point_count >= 2

    def pairs(self) -> list[tuple[float, float]]:
        return [(self.points[i], self.points[i + 1]) for i in range(0, len(self.points) - 1, 2)]


@dataclass(frozen=True)
class TextAnnotation:
    """Note anchored at (x, y), drawn below the anchor point."""

    x: float
    y: float
    text: str
    color: str = DEFAULT_ANNOTATION_COLOR
    thickness: int = 2
    id: str = field(default_factory=generate_id)

    kind: AnnotationKind = field(default="text", init=False)


Annotation = Union[RectAnnotation, ArrowAnnotation, FreehandAnnotation, TextAnnotation]


def annotation_to_dict(ann: Annotation) -> dict[str, Any]:
    """Serialize an annotation to the persisted JSON shape.

    The shape is flat: ``{id, type, x, y, width?, height?, points?, color,
    text?, thickness}``. Arrow and freehand annotations carry their first
    point in ``x``/``y`` as well.
    """
    data: dict[str, Any] = {
        "id": ann.id,
        "type": ann.kind,
        "color": ann.color,
        "thickness": ann.thickness,
    }
    if isinstance(ann, RectAnnotation):
        data.update(x=ann.x, y=ann.y, width=ann.width, height=ann.height)
    elif isinstance(ann, (ArrowAnnotation, FreehandAnnotation)):
        data.update(x=ann.points[0], y=ann.points[1], points=list(ann.points))
    elif isinstance(ann, TextAnnotation):
        data.update(x=ann.x, y=ann.y, text=ann.text)
    return data


def annotation_from_dict(data: dict[str, Any]) -> Annotation:
    """Build an annotation from its persisted JSON shape.

    Raises:
        ValueError: If ``type`` is unknown or required fields are missing
    """
    kind = data.get("type")
    common: dict[str, Any] = {
        "color": data.get("color") or DEFAULT_ANNOTATION_COLOR,
        "thickness": int(data.get("thickness") or DEFAULT_THICKNESS),
    }
    if data.get("id"):
        common["id"] = str(data["id"])

    if kind == "rect":
        return RectAnnotation(
            x=float(data.get("x", 0)),
            y=float(data.get("y", 0)),
            width=float(data.get("width") or 0),
            height=float(data.get("height") or 0),
            **common,
        )
    if kind == "arrow":
        points = [float(p) for p in data.get("points") or []]
        if len(points) != 4:
            raise ValueError(f"Arrow annotation needs 4 coordinates, got {len(points)}")
        return ArrowAnnotation(points=(points[0], points[1], points[2], points[3]), **common)
    if kind == "freehand":
        points = [float(p) for p in data.get("points") or []]
        return FreehandAnnotation(points=tuple(points), **common)
    if kind == "text":
        text = data.get("text") or ""
        if not text:
            raise ValueError("Text annotation needs a non-empty note")
        return TextAnnotation(
            x=float(data.get("x", 0)),
            y=float(data.get("y", 0)),
            text=str(text),
            **common,
        )
    raise ValueError(f"Unknown annotation type: {kind!r}")


def annotations_from_list(items: list[dict[str, Any]]) -> tuple[Annotation, ...]:
    return tuple(annotation_from_dict(item) for item in items)


def annotations_to_list(annotations: tuple[Annotation, ...]) -> list[dict[str, Any]]:
    return [annotation_to_dict(ann) for ann in annotations]
