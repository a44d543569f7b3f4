"""
Integration tests for the watermark pipeline.
"""

import json

import pytest

from docstamp import ProcessingOptions, WatermarkPipeline, process_document
from docstamp.exceptions import ExtractionError, RenderingError, SettingsError
from docstamp.renderers.fallback import NOTICE_TITLE

REPORT_HTML = """
<html><body>
<h1>Annual Report</h1>
<p>This report summarises the results of the last financial year.</p>
<table>
  <tr><th>Quarter</th><th>Revenue</th></tr>
  <tr><td>Q1</td><td>100</td></tr>
  <tr><td>Q2</td><td>120</td></tr>
</table>
<ul><li>Growth continued</li><li>Costs were stable</li></ul>
</body></html>
"""


class TestProcess:
    """Test successful processing."""

    def test_pdf_artifact(self):
        result = WatermarkPipeline({"text": "INTERNAL"}).process(REPORT_HTML)

        assert not result.used_fallback
        assert result.artifact.startswith(b"%PDF")
        assert result.page_count == 1

    def test_process_document_helper(self):
        assert process_document(REPORT_HTML.encode("utf-8")).startswith(b"%PDF")

    def test_pages_are_watermarked(self, recording_pipeline, sectioned_html):
        result = recording_pipeline({"template": "draft"}).process(sectioned_html)
        pages = result.surface.pages

        assert result.page_count == len(pages) >= 2
        for page in pages:
            assert [c.params["text"] for c in page.watermarks] == [
                f"DRAFT COPY - Page {page.number} - DO NOT DISTRIBUTE"
            ]

    def test_content_order_in_output(self, recording_pipeline):
        result = recording_pipeline().process(REPORT_HTML)
        texts = result.surface.pages[0].texts

        assert texts.index("Annual Report") < texts.index("Q1") < texts.index("• Growth continued")

    def test_missing_image_rendered_as_placeholder(self, recording_pipeline):
        html = '<p>The company logo is shown below.</p><img alt="Logo" src="logo.png">'
        result = recording_pipeline().process(html)

        assert not result.used_fallback
        assert "[Image: Logo]" in result.surface.pages[0].texts

    def test_embedded_image_drawn(self, recording_pipeline, png_data_url):
        html = f'<p>The company logo is shown below.</p><img alt="Logo" src="{png_data_url}">'
        result = recording_pipeline().process(html)
        images = result.surface.pages[0].ops("image")

        assert len(images) == 1
        assert (images[0].params["width"], images[0].params["height"]) == (40, 20)

    def test_odd_page_range(self, recording_pipeline, sectioned_html):
        result = recording_pipeline({"pageSpecific": {"pageRange": "odd"}}).process(sectioned_html)

        for page in result.surface.pages:
            assert bool(page.watermarks) == (page.number % 2 == 1)

    def test_progress_events(self):
        events = []
        options = ProcessingOptions(progress_callback=events.append)
        WatermarkPipeline(options=options).process(REPORT_HTML)

        assert [(e.stage, e.percent) for e in events[:3]] == [
            ("extraction", 15), ("parsing", 35), ("analysis", 60),
        ]
        assert events[-1].stage == "finalize"
        assert events[-1].percent == 100
        percents = [e.percent for e in events]
        assert percents == sorted(percents)

    def test_independent_sessions(self, recording_pipeline):
        pipeline = recording_pipeline()
        first = pipeline.process(REPORT_HTML)
        second = pipeline.process(REPORT_HTML)

        assert json.loads(first.artifact) == json.loads(second.artifact)
        assert first.surface is not second.surface


class TestFallback:
    """Test the processing-notice fallback."""

    def test_corrupt_input(self, recording_pipeline):
        result = recording_pipeline({"text": "SECRET"}).process("<p>too short</p>")

        assert result.used_fallback
        assert result.page_count == 1
        assert isinstance(result.error, ExtractionError)
        page = result.surface.pages[0]
        assert page.texts[0] == NOTICE_TITLE
        assert any(text.startswith("Reason: Extracted text is too short") for text in page.texts)
        assert [c.params["text"] for c in page.watermarks] == ["SECRET"]

    @pytest.mark.parametrize("page_specific", [
        {"pageRange": "even"},
        {"pageRange": [2]},
        {"conditional": {"hasTables": True}},
        {"conditional": {"hasImages": True}},
    ])
    def test_notice_ignores_page_rules(self, recording_pipeline, page_specific):
        """The notice page is watermarked even when page rules would skip it."""
        settings = {"text": "SECRET", "pageSpecific": page_specific}
        result = recording_pipeline(settings).process("<p>tiny</p>")

        assert result.used_fallback
        assert [c.params["text"] for c in result.surface.pages[0].watermarks] == ["SECRET"]

    def test_corrupt_input_pdf(self):
        result = WatermarkPipeline().process(b"\x00\x01")

        assert result.used_fallback
        assert result.artifact.startswith(b"%PDF")

    def test_internal_error_uses_generic_reason(self, recording_pipeline, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr("docstamp.pipeline.PaginationEngine.run", explode)
        result = recording_pipeline().process(REPORT_HTML)

        assert result.used_fallback
        assert isinstance(result.error, RuntimeError)
        assert "An internal processing error occurred." in result.surface.pages[0].texts

    def test_fallback_failure_raises(self):
        def broken_surface(session):
            raise RuntimeError("no surface")

        pipeline = WatermarkPipeline(surface_factory=broken_surface)
        with pytest.raises(RenderingError) as exc_info:
            pipeline.process(REPORT_HTML)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_failing_progress_callback_falls_back(self, recording_pipeline):
        def callback(event):
            if event.stage == "parsing":
                raise ValueError("listener failed")

        result = recording_pipeline(progress_callback=callback).process(REPORT_HTML)

        assert result.used_fallback
        assert isinstance(result.error, ValueError)


def test_invalid_settings_rejected_up_front():
    with pytest.raises(SettingsError):
        WatermarkPipeline({"position": {"type": "diagonal"}})
