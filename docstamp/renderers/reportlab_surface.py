"""ReportLab-backed rendering surface producing a PDF artifact."""

from __future__ import annotations

import hashlib
import logging
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdf_canvas

from ..config import PageConfig
from ..exceptions import MediaError, RenderingError
from ..models.content import ImageData
from ..utils.cache import SessionCache
from .surface import BLACK, RGB, RenderingSurface

logger = logging.getLogger(__name__)


class ReportLabSurface(RenderingSurface):
    """
    Draws pages onto a ReportLab canvas backed by an in-memory buffer.

    Args:
        cache: Session cache for decoded image readers
        title: Document title stored in the PDF metadata
    """

    def __init__(self, cache: Optional[SessionCache] = None, title: str = "Watermarked document"):
        self.cache = cache
        self._buffer = BytesIO()
        self.canvas = pdf_canvas.Canvas(self._buffer)
        self.canvas.setTitle(title)
        self.canvas.setCreator("docstamp")
        self._page_open = False
        self.page_count = 0
        self._bytes: Optional[bytes] = None

    def begin_page(self, page_config: PageConfig) -> None:
        if self._page_open:
            raise RenderingError("Page already open", f"page {self.page_count}")
        self.canvas.setPageSize((page_config.width, page_config.height))
        self._page_open = True
        self.page_count += 1

    def end_page(self) -> None:
        if not self._page_open:
            raise RenderingError("No page open")
        self.canvas.showPage()
        self._page_open = False

    def draw_text(self, text: str, x: float, y: float, font_name: str, font_size: float,
                  color: RGB = BLACK) -> None:
        self.canvas.setFillColor(colors.Color(*color))
        self.canvas.setFont(font_name, font_size)
        self.canvas.drawString(x, y, text)

    def draw_watermark_text(self, text: str, x: float, y: float, font_name: str, font_size: float,
                            color: RGB, opacity: float, rotation_deg: float) -> None:
        canvas = self.canvas
        canvas.saveState()
        watermark_color = colors.Color(color[0], color[1], color[2], alpha=opacity)
        canvas.setFillColor(watermark_color)
        canvas.setStrokeColor(watermark_color)

        # Translate to the anchor and rotate
        canvas.translate(x, y)
        canvas.rotate(rotation_deg)
        canvas.setFont(font_name, font_size)

        text_width = canvas.stringWidth(text, font_name, font_size)
        canvas.drawString(-text_width / 2, -font_size / 2, text)
        canvas.restoreState()

    def draw_image(self, image: ImageData, x: float, y: float, width: float, height: float) -> None:
        if not image.payload:
            raise MediaError("Image has no decodable payload", image.mime_type)
        reader = self._image_reader(image.payload)
        try:
            self.canvas.drawImage(reader, x, y, width=width, height=height, mask="auto")
        except Exception as e:
            raise MediaError("Image could not be embedded", str(e)) from e

    def _image_reader(self, payload: bytes) -> ImageReader:
        def load() -> ImageReader:
            try:
                reader = ImageReader(BytesIO(payload))
                reader.getSize()
            except Exception as e:
                raise MediaError("Image payload could not be decoded", str(e)) from e
            return reader

        if self.cache is None:
            return load()
        key = ("image-reader", hashlib.sha1(payload).hexdigest())
        return self.cache.get_or_set(key, load)

    def draw_rect(self, x: float, y: float, width: float, height: float,
                  stroke_color: Optional[RGB] = BLACK, fill_color: Optional[RGB] = None,
                  line_width: float = 1.0) -> None:
        canvas = self.canvas
        canvas.saveState()
        canvas.setLineWidth(line_width)
        if stroke_color is not None:
            canvas.setStrokeColor(colors.Color(*stroke_color))
        if fill_color is not None:
            canvas.setFillColor(colors.Color(*fill_color))
        canvas.rect(x, y, width, height, stroke=int(stroke_color is not None), fill=int(fill_color is not None))
        canvas.restoreState()

    def finish(self) -> bytes:
        if self._bytes is not None:
            return self._bytes
        if self._page_open:
            self.end_page()
        self.canvas.save()
        self._bytes = self._buffer.getvalue()
        logger.debug(f"PDF finalized: {self.page_count} pages, {len(self._bytes)} bytes")
        return self._bytes
