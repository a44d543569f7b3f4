"""Content and watermark models."""

from .content import (
    Alignment,
    ContentElement,
    ElementKind,
    Footprint,
    ImageData,
    StyleHints,
    TableCell,
    TableData,
    TableRow,
)
from .watermark import (
    CornerType,
    PageRangeType,
    PositionType,
    TransparencyType,
    WatermarkInstance,
    WatermarkSettings,
)

__all__ = [
    "Alignment",
    "ContentElement",
    "ElementKind",
    "Footprint",
    "ImageData",
    "StyleHints",
    "TableCell",
    "TableData",
    "TableRow",
    "CornerType",
    "PageRangeType",
    "PositionType",
    "TransparencyType",
    "WatermarkInstance",
    "WatermarkSettings",
]
