"""Pointer-driven drawing surface.

The surface turns a serial stream of pointer events into annotations. It
holds one optional draft (the shape under construction) and hands every
committed shape to its owner through ``on_update`` as a brand new tuple, so
readers holding the previous tuple never see it change.

Every change to the committed set, the draft, or the image size triggers a
full redraw of the overlay: committed annotations in order, draft last.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from enum import Enum

from PIL import Image

from .annotations import (
    Annotation,
    ArrowAnnotation,
    FreehandAnnotation,
    RectAnnotation,
    TextAnnotation,
)
from .config import DEFAULT_ANNOTATION_COLOR, DEFAULT_THICKNESS
from .coords import Point, SurfaceNotMeasuredError, SurfaceRect, to_intrinsic
from .render import SURFACE_STYLE, RenderStyle, render_overlay


class ToolType(str, Enum):
    """Active drawing tool."""

    SELECT = "SELECT"
    PEN = "PEN"
    RECT = "RECT"
    ARROW = "ARROW"
    TEXT = "TEXT"


class SurfaceState(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"


AnnotationsCallback = Callable[[tuple[Annotation, ...]], None]
PromptCallback = Callable[[str], "str | None"]


class DrawingSurface:
    """Annotation canvas over a single screenshot."""

    def __init__(
        self,
        annotations: tuple[Annotation, ...] = (),
        *,
        on_update: AnnotationsCallback | None = None,
        prompt: PromptCallback | None = None,
        image_size: tuple[int, int] = (0, 0),
        tool: ToolType = ToolType.SELECT,
        color: str = DEFAULT_ANNOTATION_COLOR,
        style: RenderStyle = SURFACE_STYLE,
    ) -> None:
        self._annotations: tuple[Annotation, ...] = tuple(annotations)
        self._draft: Annotation | None = None
        self._image_size = image_size
        self._bounds: SurfaceRect | None = None
        self._on_update = on_update
        self._prompt = prompt
        self.tool = tool
        self.color = color
        self.style = style
        self.state = SurfaceState.IDLE
        self.redraw_count = 0
        self.canvas: Image.Image | None = None
        self._redraw()

    # --- Inputs from the host ---

    @property
    def annotations(self) -> tuple[Annotation, ...]:
        return self._annotations

    @property
    def draft(self) -> Annotation | None:
        return self._draft

    @property
    def image_size(self) -> tuple[int, int]:
        return self._image_size

    def set_annotations(self, annotations: tuple[Annotation, ...]) -> None:
        """Replace the committed set (e.g. the owning screen changed)."""
        annotations = tuple(annotations)
        if annotations == self._annotations:
            return
        self._annotations = annotations
        self._redraw()

    def set_image_size(self, width: int, height: int) -> None:
        """Called once the source image is decoded and its size is known."""
        if (width, height) == self._image_size:
            return
        self._image_size = (width, height)
        self._redraw()

    def set_bounds(self, bounds: SurfaceRect) -> None:
        """Record the on-screen rectangle the surface currently occupies."""
        self._bounds = bounds

    @property
    def is_measured(self) -> bool:
        width, height = self._image_size
        return (
            self._bounds is not None and self._bounds.is_measured and width > 0 and height > 0
        )

    def _map(self, client_x: float, client_y: float) -> Point:
        if self._bounds is None:
            raise SurfaceNotMeasuredError("Surface bounds have not been set")
        width, height = self._image_size
        return to_intrinsic(client_x, client_y, self._bounds, width, height)

    # --- Pointer events ---

    def pointer_down(self, client_x: float, client_y: float) -> None:
        if self.tool is ToolType.SELECT or not self.is_measured:
            return
        # A new gesture never starts on top of an uncommitted one
        if self._draft is not None:
            self._commit()

        x, y = self._map(client_x, client_y)
        self.state = SurfaceState.DRAWING

        if self.tool is ToolType.TEXT:
            text = self._prompt("Enter annotation note:") if self._prompt else None
            if text:
                self._publish(
                    (*self._annotations, TextAnnotation(x=x, y=y, text=text, color=self.color))
                )
            self.state = SurfaceState.IDLE
            return

        if self.tool is ToolType.RECT:
            self._draft = RectAnnotation(x=x, y=y, color=self.color, thickness=DEFAULT_THICKNESS)
        elif self.tool is ToolType.ARROW:
            self._draft = ArrowAnnotation(points=(x, y, x, y), color=self.color)
        elif self.tool is ToolType.PEN:
            self._draft = FreehandAnnotation(points=(x, y), color=self.color)
        self._redraw()

    def pointer_move(self, client_x: float, client_y: float) -> None:
        if self.state is not SurfaceState.DRAWING or self._draft is None:
            return
        if not self.is_measured:
            return
        x, y = self._map(client_x, client_y)
        draft = self._draft

        if isinstance(draft, RectAnnotation):
            self._draft = replace(draft, width=x - draft.x, height=y - draft.y)
        elif isinstance(draft, ArrowAnnotation):
            self._draft = replace(draft, points=(draft.points[0], draft.points[1], x, y))
        elif isinstance(draft, FreehandAnnotation):
            self._draft = replace(draft, points=(*draft.points, x, y))
        self._redraw()

    def pointer_up(self) -> None:
        self._commit()

    def pointer_leave(self) -> None:
        self._commit()

    def _commit(self) -> None:
        draft = self._draft
        self.state = SurfaceState.IDLE
        if draft is None:
            return
        self._draft = None
        if isinstance(draft, FreehandAnnotation) and not draft.is_drawable:
            # Single click with the pen: nothing to keep
            self._redraw()
            return
        self._publish((*self._annotations, draft))

    def _publish(self, annotations: tuple[Annotation, ...]) -> None:
        self._annotations = annotations
        if self._on_update:
            self._on_update(annotations)
        self._redraw()

    # --- Rendering ---

    def _redraw(self) -> None:
        width, height = self._image_size
        self.redraw_count += 1
        if width <= 0 or height <= 0:
            self.canvas = None
            return
        layers = self._annotations if self._draft is None else (*self._annotations, self._draft)
        self.canvas = render_overlay((width, height), layers, self.style)

    def preview(self, image: Image.Image) -> Image.Image:
        """Overlay the current canvas on ``image`` for display."""
        base = image.convert("RGBA")
        if self.canvas is None or self.canvas.size != base.size:
            return base
        return Image.alpha_composite(base, self.canvas)
