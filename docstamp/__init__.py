"""
docstamp - paginated, watermarked PDF rendering for extracted documents.

Takes the structured markup extracted from a word-processing document,
rebuilds an ordered content model, paginates it with density-aware page-break
heuristics and composites configurable watermarks onto every page.

Main Components:
- MarkupParser: markup → ordered content elements
- PaginationEngine: layout estimation, break scoring, page walk
- WatermarkCompositor: per-page watermark resolution and drawing
- WatermarkPipeline: top-level entry point with fallback document
"""

__version__ = "0.3.0"

from .config import PageConfig, ProcessingOptions, ProgressEvent
from .exceptions import (
    DocStampError,
    ExtractionError,
    LayoutError,
    MediaError,
    RenderingError,
    SettingsError,
)
from .models import ContentElement, ElementKind, WatermarkInstance, WatermarkSettings
from .pipeline import ProcessingResult, WatermarkPipeline, process_document
from .session import RenderSession

__all__ = [
    "__version__",
    "PageConfig",
    "ProcessingOptions",
    "ProgressEvent",
    "DocStampError",
    "ExtractionError",
    "LayoutError",
    "MediaError",
    "RenderingError",
    "SettingsError",
    "ContentElement",
    "ElementKind",
    "WatermarkInstance",
    "WatermarkSettings",
    "ProcessingResult",
    "WatermarkPipeline",
    "process_document",
    "RenderSession",
]
