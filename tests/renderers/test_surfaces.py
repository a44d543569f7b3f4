"""
Tests for rendering surfaces.
"""

import json
import re

import pytest

from docstamp.config import PageConfig
from docstamp.exceptions import MediaError, RenderingError
from docstamp.models.content import ImageData
from docstamp.renderers.reportlab_surface import ReportLabSurface
from docstamp.renderers.surface import RecordingSurface
from docstamp.utils.cache import SessionCache


def pdf_page_count(data):
    return len(re.findall(rb"/Type\s*/Page\b", data))


class TestReportLabSurface:
    """Test the PDF surface."""

    def test_produces_pdf(self):
        surface = ReportLabSurface()
        surface.begin_page(PageConfig())
        surface.draw_text("Hello", 72, 700, "Helvetica", 12)
        surface.draw_watermark_text("CONFIDENTIAL", 306, 396, "Helvetica", 48, (0.1, 0.2, 0.7), 0.3, -45)
        surface.draw_rect(72, 500, 100, 25, fill_color=(0.95, 0.95, 0.95))
        surface.end_page()
        data = surface.finish()

        assert data.startswith(b"%PDF")
        assert pdf_page_count(data) == 1

    def test_page_count_and_idempotent_finish(self):
        surface = ReportLabSurface()
        for _ in range(3):
            surface.begin_page(PageConfig())
            surface.draw_text("Page", 72, 700, "Helvetica", 12)
            surface.end_page()
        data = surface.finish()

        assert surface.page_count == 3
        assert pdf_page_count(data) == 3
        assert surface.finish() is data

    def test_draws_png(self, png_bytes):
        surface = ReportLabSurface(cache=SessionCache())
        image = ImageData(payload=png_bytes, mime_type="image/png", original_width=40, original_height=20)
        surface.begin_page(PageConfig())
        surface.draw_image(image, 72, 600, 40, 20)
        surface.draw_image(image, 72, 500, 40, 20)
        surface.end_page()

        assert surface.cache.hits == 1
        assert surface.finish().startswith(b"%PDF")

    def test_bad_image_raises_media_error(self):
        surface = ReportLabSurface()
        surface.begin_page(PageConfig())

        with pytest.raises(MediaError):
            surface.draw_image(ImageData(payload=b"not an image", mime_type="image/png"), 72, 600, 40, 20)
        with pytest.raises(MediaError):
            surface.draw_image(ImageData(payload=b"", mime_type="image/png"), 72, 600, 40, 20)

    def test_page_misuse(self):
        surface = ReportLabSurface()
        with pytest.raises(RenderingError):
            surface.end_page()
        surface.begin_page(PageConfig())
        with pytest.raises(RenderingError):
            surface.begin_page(PageConfig())


class TestRecordingSurface:
    """Test the recording surface."""

    def test_records_commands(self):
        surface = RecordingSurface()
        surface.begin_page(PageConfig())
        surface.draw_text("Hello", 72, 700, "Helvetica", 12)
        surface.draw_watermark_text("WM", 306, 396, "Helvetica", 48, (0, 0, 0), 0.3, -45)
        surface.end_page()
        summary = json.loads(surface.finish())

        assert surface.finished
        assert surface.pages[0].texts == ["Hello"]
        assert summary == [{"number": 1, "width": 612, "height": 792, "texts": ["Hello"], "watermarks": ["WM"]}]

    def test_draw_outside_page(self):
        with pytest.raises(RenderingError):
            RecordingSurface().draw_text("x", 0, 0, "Helvetica", 12)

    def test_empty_image_payload(self):
        surface = RecordingSurface()
        surface.begin_page(PageConfig())
        with pytest.raises(MediaError):
            surface.draw_image(ImageData(payload=b"", mime_type="image/png"), 0, 0, 10, 10)
