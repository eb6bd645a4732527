"""
flowaudit - Annotate UX flow screenshots and audit them.

Draw over screenshots, burn the annotations in, request an audit report and
recover scores, severity counts, risks and screen names from it.
"""

__version__ = "0.1.0"

# Export key modules for external use
from .annotations import (
    Annotation,
    ArrowAnnotation,
    FreehandAnnotation,
    RectAnnotation,
    TextAnnotation,
)
from .compositor import CompositeResult, composite, composite_all
from .coords import SurfaceRect, to_intrinsic
from .extract import (
    ReportMetrics,
    UXRisk,
    get_report_metrics,
    get_risks_from_report,
    get_screen_names_from_report,
)
from .surface import DrawingSurface, ToolType

__all__ = [
    "Annotation",
    "ArrowAnnotation",
    "CompositeResult",
    "DrawingSurface",
    "FreehandAnnotation",
    "RectAnnotation",
    "ReportMetrics",
    "SurfaceRect",
    "TextAnnotation",
    "ToolType",
    "UXRisk",
    "__version__",
    "composite",
    "composite_all",
    "get_report_metrics",
    "get_risks_from_report",
    "get_screen_names_from_report",
    "to_intrinsic",
]
