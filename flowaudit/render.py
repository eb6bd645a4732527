"""Rendering rules shared by the drawing surface and the compositor.

Both draw the same geometry; they differ only in a few cosmetic choices
(translucent rect fill and smaller text on screen, bigger text when burned
into the image sent for analysis), captured by :class:`RenderStyle`.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .annotations import (
    Annotation,
    ArrowAnnotation,
    FreehandAnnotation,
    RectAnnotation,
    TextAnnotation,
)
from .config import DEFAULT_ANNOTATION_COLOR

if TYPE_CHECKING:
    from .extract import UXRisk

ARROW_HEAD_LENGTH = 15.0
ARROW_HEAD_ANGLE = math.pi / 6  # 30 degrees each side

BOLD_FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")


@dataclass(frozen=True)
class RenderStyle:
    """Cosmetic parameters for drawing annotations."""

    rect_fill: tuple[int, int, int, int] | None
    font_size: int
    text_offset: int
    text_color: str = "red"


# On-screen overlay: rect gets a 10% red wash, notes are smaller
SURFACE_STYLE = RenderStyle(rect_fill=(255, 0, 0, 26), font_size=16, text_offset=20)

# Burned into the image sent to the model
COMPOSITE_STYLE = RenderStyle(rect_fill=None, font_size=24, text_offset=24)


def arrowhead_points(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    length: float = ARROW_HEAD_LENGTH,
    half_angle: float = ARROW_HEAD_ANGLE,
) -> tuple[tuple[float, float], tuple[float, float]]:
    """Return the two outer ends of the chevron drawn at (x2, y2)."""
    angle = math.atan2(y2 - y1, x2 - x1)
    left = (x2 - length * math.cos(angle - half_angle), y2 - length * math.sin(angle - half_angle))
    right = (x2 - length * math.cos(angle + half_angle), y2 - length * math.sin(angle + half_angle))
    return left, right


def rect_corners(ann: RectAnnotation) -> list[tuple[float, float]]:
    """Corners in drawing order. Negative extents are kept as-is."""
    x2 = ann.x + ann.width
    y2 = ann.y + ann.height
    return [(ann.x, ann.y), (x2, ann.y), (x2, y2), (ann.x, y2)]


@lru_cache(maxsize=8)
def get_bold_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Bold font at ``size`` px, Pillow's bundled font if no system font exists."""
    for candidate in BOLD_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def resolve_color(color: str) -> tuple[int, ...]:
    try:
        return ImageColor.getrgb(color)
    except ValueError:
        return ImageColor.getrgb(DEFAULT_ANNOTATION_COLOR)


def draw_annotation(draw: ImageDraw.ImageDraw, ann: Annotation, style: RenderStyle) -> None:
    """Draw a single annotation with the given style."""
    if not isinstance(ann, (RectAnnotation, ArrowAnnotation, FreehandAnnotation, TextAnnotation)):
        raise TypeError(f"Unsupported annotation: {ann!r}")

    color = resolve_color(ann.color)
    width = max(1, int(round(ann.thickness)))

    if isinstance(ann, RectAnnotation):
        corners = rect_corners(ann)
        if style.rect_fill is not None:
            draw.polygon(corners, fill=style.rect_fill)
        draw.line([*corners, corners[0]], fill=color, width=width, joint="curve")

    elif isinstance(ann, ArrowAnnotation):
        x1, y1, x2, y2 = ann.points
        draw.line([(x1, y1), (x2, y2)], fill=color, width=width)
        left, right = arrowhead_points(x1, y1, x2, y2)
        draw.line([(x2, y2), left], fill=color, width=width)
        draw.line([(x2, y2), right], fill=color, width=width)

    elif isinstance(ann, FreehandAnnotation):
        if not ann.is_drawable:
            return
        draw.line(ann.pairs(), fill=color, width=width, joint="curve")

    elif isinstance(ann, TextAnnotation):
        if not ann.text:
            return
        font = get_bold_font(style.font_size)
        position = (ann.x, ann.y + style.text_offset)
        # Anchor on the baseline, like a canvas fillText call
        if isinstance(font, ImageFont.FreeTypeFont):
            draw.text(position, ann.text, fill=style.text_color, font=font, anchor="ls")
        else:
            draw.text(position, ann.text, fill=style.text_color, font=font)


def draw_annotations(
    draw: ImageDraw.ImageDraw, annotations: Iterable[Annotation], style: RenderStyle
) -> None:
    """Draw annotations in order; later ones end up on top."""
    for ann in annotations:
        draw_annotation(draw, ann, style)


def render_overlay(
    size: tuple[int, int],
    annotations: Iterable[Annotation],
    style: RenderStyle = SURFACE_STYLE,
) -> Image.Image:
    """Render annotations onto a fresh transparent layer of ``size``."""
    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    draw_annotations(ImageDraw.Draw(layer), annotations, style)
    return layer


def render_risk_overlay(
    image: Image.Image, risks: Iterable[UXRisk], screen_index: int | None = None
) -> Image.Image:
    """
    Draw numbered risk boxes over a copy of ``image``.

    Risk boxes arrive on the 0-1000 normalized scale and are projected back
    onto the real image size. Numbering follows the order of ``risks`` so it
    matches the risk list shown next to the image.

    Args:
        image: Source screenshot
        risks: Extracted risks
        screen_index: If given, only risks targeting this screen are drawn

    Returns:
        New RGBA image with boxes and badges
    """
    base = image.convert("RGBA")
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    font = get_bold_font(14)

    for number, risk in enumerate(risks, 1):
        if risk.bounding_box is None:
            continue
        if screen_index is not None and risk.screen_index != screen_index:
            continue
        left, top, right, bottom = risk.bounding_box.to_pixels(*base.size)
        draw.rectangle(
            (left, top, right, bottom),
            fill=(239, 68, 68, 26),
            outline=(239, 68, 68, 255),
            width=4,
        )

        radius = 12
        cx, cy = right, top
        draw.ellipse(
            (cx - radius, cy - radius, cx + radius, cy + radius),
            fill=(220, 38, 38, 255),
            outline=(255, 255, 255, 255),
            width=2,
        )
        if isinstance(font, ImageFont.FreeTypeFont):
            draw.text((cx, cy), str(number), fill="white", font=font, anchor="mm")
        else:
            draw.text((cx - 4, cy - 6), str(number), fill="white", font=font)

    return Image.alpha_composite(base, layer)
