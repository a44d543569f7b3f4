"""
Watermark pipeline - main entry point for processing a document.

Flow:
1. Markup → MarkupParser → ordered ContentElements
2. ContentElements → PaginationEngine (density, estimation, break scoring, plan)
3. Planned pages → rendering surface, each page composited by WatermarkCompositor
4. Any failure → one-page processing notice, still watermarked

Example:
    >>> from docstamp import WatermarkPipeline
    >>> pipeline = WatermarkPipeline({"text": "CONFIDENTIAL", "opacity": 30})
    >>> result = pipeline.process(html)
    >>> Path("out.pdf").write_bytes(result.artifact)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from .config import ProcessingOptions, ProgressEvent
from .engine.pagination_manager import PaginationEngine, PaginationResult
from .exceptions import RenderingError
from .models.watermark import WatermarkSettings
from .parser.markup_parser import MarkupParser
from .renderers.fallback import render_fallback
from .renderers.reportlab_surface import ReportLabSurface
from .renderers.surface import RenderingSurface
from .renderers.watermark_renderer import WatermarkCompositor
from .session import RenderSession

logger = logging.getLogger(__name__)

SurfaceFactory = Callable[[RenderSession], RenderingSurface]


def reportlab_surface_factory(session: RenderSession) -> RenderingSurface:
    return ReportLabSurface(cache=session.cache)


@dataclass
class ProcessingResult:
    """Outcome of one ``process`` call. ``artifact`` is always renderable."""
    artifact: bytes
    page_count: int
    used_fallback: bool = False
    pagination: Optional[PaginationResult] = None
    error: Optional[BaseException] = None
    events: List[ProgressEvent] = field(default_factory=list)
    surface: Optional[RenderingSurface] = None


class WatermarkPipeline:
    """
    Converts extracted markup into a paginated, watermarked artifact.

    Args:
        settings: Watermark settings, or a settings dictionary
        options: Processing options (page geometry, thresholds, progress callback)
        surface_factory: Creates a fresh rendering surface per document
            (ReportLab PDF by default)

    Raises:
        SettingsError: If a settings dictionary holds invalid values
    """

    def __init__(
        self,
        settings: Union[WatermarkSettings, Dict[str, Any], None] = None,
        options: Optional[ProcessingOptions] = None,
        surface_factory: Optional[SurfaceFactory] = None,
    ):
        if settings is None or isinstance(settings, dict):
            settings = WatermarkSettings.from_dict(settings)
        self.settings = settings
        self.options = options or ProcessingOptions()
        self.surface_factory = surface_factory or reportlab_surface_factory

    def process(self, markup: Union[bytes, str]) -> ProcessingResult:
        """
        Process one document.

        Never fails with a half-written artifact: any error is logged and
        replaced by the processing-notice document.

        Args:
            markup: Extracted HTML (or plain text) of the document

        Returns:
            ProcessingResult with the artifact bytes

        Raises:
            RenderingError: Only if even the fallback document cannot be built
        """
        compositor = WatermarkCompositor(self.settings)
        with RenderSession(self.options) as session:
            try:
                return self._run(markup, session, compositor)
            except Exception as e:
                logger.error(f"Document processing failed, rendering fallback document: {e}", exc_info=True)
                return self._fallback(session, compositor, e)

    def _run(self, markup: Union[bytes, str], session: RenderSession,
             compositor: WatermarkCompositor) -> ProcessingResult:
        parser = MarkupParser(min_text_length=self.options.min_text_length)
        parser.load(markup)
        session.report("extraction", 15)

        elements = parser.build()
        session.report("parsing", 35)

        surface = self.surface_factory(session)
        pagination = PaginationEngine(session).run(elements, surface, compositor)
        artifact = surface.finish()
        session.report("finalize", 100)

        logger.info(f"Document processed: {pagination.page_count} pages, {len(artifact)} bytes")
        return ProcessingResult(
            artifact=artifact,
            page_count=pagination.page_count,
            pagination=pagination,
            events=list(session.events),
            surface=surface,
        )

    def _fallback(self, session: RenderSession, compositor: WatermarkCompositor,
                  error: BaseException) -> ProcessingResult:
        try:
            surface = self.surface_factory(session)
            artifact = render_fallback(surface, compositor, self.options.page_config, error)
        except Exception as e:
            raise RenderingError("Fallback document could not be rendered", str(e)) from e
        return ProcessingResult(
            artifact=artifact,
            page_count=1,
            used_fallback=True,
            error=error,
            events=list(session.events),
            surface=surface,
        )


def process_document(
    markup: Union[bytes, str],
    settings: Union[WatermarkSettings, Dict[str, Any], None] = None,
    options: Optional[ProcessingOptions] = None,
) -> bytes:
    """
    Render markup to a watermarked PDF.

    Returns:
        PDF bytes (the fallback notice if processing failed)
    """
    return WatermarkPipeline(settings, options).process(markup).artifact
