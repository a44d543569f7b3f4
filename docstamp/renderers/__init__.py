"""Rendering surfaces, element drawing and the watermark compositor."""

from .element_renderer import ElementRenderer
from .fallback import render_fallback
from .reportlab_surface import ReportLabSurface
from .surface import DrawCommand, RecordedPage, RecordingSurface, RenderingSurface
from .watermark_renderer import PageContext, WatermarkCompositor

__all__ = [
    "ElementRenderer",
    "render_fallback",
    "ReportLabSurface",
    "DrawCommand",
    "RecordedPage",
    "RecordingSurface",
    "RenderingSurface",
    "PageContext",
    "WatermarkCompositor",
]
