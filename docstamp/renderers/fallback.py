"""
Processing-notice fallback document.

Produced in place of the real artifact when the pipeline fails, so callers
always receive a renderable, watermarked document.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..config import PageConfig
from ..exceptions import DocStampError
from .surface import RenderingSurface
from .watermark_renderer import PageContext, WatermarkCompositor

logger = logging.getLogger(__name__)

NOTICE_TITLE = "Document Processing Notice"
NOTICE_LINES = (
    "The document could not be laid out and was replaced by this notice.",
    "Please verify the source file and submit it again.",
)
GENERIC_REASON = "An internal processing error occurred."

NOTICE_X = 50.0


def notice_lines(error: Optional[BaseException] = None) -> List[Tuple[str, str, float, Tuple[float, float, float]]]:
    """Lines of the notice as ``(text, font, size, colour)`` tuples."""
    if isinstance(error, DocStampError):
        reason = f"Reason: {error.message}"
    else:
        reason = GENERIC_REASON
    lines = [(NOTICE_TITLE, "Helvetica-Bold", 18.0, (0.2, 0.2, 0.2))]
    lines.extend((text, "Helvetica", 12.0, (0.4, 0.4, 0.4)) for text in NOTICE_LINES)
    lines.append((reason, "Helvetica", 10.0, (0.6, 0.6, 0.6)))
    return lines


def render_fallback(
    surface: RenderingSurface,
    compositor: WatermarkCompositor,
    page_config: Optional[PageConfig] = None,
    error: Optional[BaseException] = None,
) -> bytes:
    """
    Draw the one-page processing notice and watermark it.

    The notice is always watermarked: page range and conditional rules do
    not apply to it.

    Args:
        surface: Fresh rendering surface
        compositor: Compositor built from the caller's watermark settings
        page_config: Page geometry (US Letter by default)
        error: The failure that triggered the fallback

    Returns:
        The finished artifact bytes
    """
    page_config = page_config or PageConfig()
    surface.begin_page(page_config)

    y = page_config.height - 100.0
    for index, (text, font_name, font_size, color) in enumerate(notice_lines(error)):
        surface.draw_text(text, NOTICE_X, y, font_name, font_size, color)
        y -= 40.0 if index == 0 else 20.0

    instances = compositor.composite(
        surface, PageContext(number=1, is_last=True, page_config=page_config), gated=False
    )
    surface.end_page()
    logger.info(f"Fallback document rendered with {len(instances)} watermark(s)")
    return surface.finish()
