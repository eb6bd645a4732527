"""Pointer coordinates to intrinsic image pixels.

The drawing surface may be displayed at any size; annotations are always
stored in the image's own pixel grid. Each axis is scaled independently and
no rounding is applied, so fractional positions survive the whole pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass

Point = tuple[float, float]


class SurfaceNotMeasuredError(ValueError):
    """Raised when mapping against a surface with no displayed size yet."""


@dataclass(frozen=True)
class SurfaceRect:
    """On-screen bounding rectangle of the drawing surface."""

    left: float
    top: float
    width: float
    height: float

    @property
    def is_measured(self) -> bool:
        return self.width > 0 and self.height > 0


def _scale_factors(
    rect: SurfaceRect, intrinsic_width: float, intrinsic_height: float
) -> tuple[float, float]:
    if not rect.is_measured:
        raise SurfaceNotMeasuredError(
            f"Surface has no displayed size ({rect.width}x{rect.height})"
        )
    return intrinsic_width / rect.width, intrinsic_height / rect.height


def to_intrinsic(
    client_x: float,
    client_y: float,
    rect: SurfaceRect,
    intrinsic_width: float,
    intrinsic_height: float,
) -> Point:
    """
    Map a pointer position to intrinsic image coordinates.

    Args:
        client_x: Pointer X in on-screen pixels
        client_y: Pointer Y in on-screen pixels
        rect: Current on-screen bounds of the surface
        intrinsic_width: Image width in its own pixels
        intrinsic_height: Image height in its own pixels

    Returns:
        (x, y) in intrinsic pixels

    Raises:
        SurfaceNotMeasuredError: If the surface has zero displayed size
    """
    scale_x, scale_y = _scale_factors(rect, intrinsic_width, intrinsic_height)
    return (client_x - rect.left) * scale_x, (client_y - rect.top) * scale_y


def to_display(
    point: Point,
    rect: SurfaceRect,
    intrinsic_width: float,
    intrinsic_height: float,
) -> Point:
    """Inverse of :func:`to_intrinsic`."""
    scale_x, scale_y = _scale_factors(rect, intrinsic_width, intrinsic_height)
    return point[0] / scale_x + rect.left, point[1] / scale_y + rect.top
