"""
Pytest configuration for docstamp
"""

import base64
import logging
import sys
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from docstamp.config import ProcessingOptions
from docstamp.pipeline import WatermarkPipeline
from docstamp.renderers.surface import RecordingSurface


@pytest.fixture(autouse=True)
def configure_logging():
    """Configure logging for tests to avoid handler leakage between tests."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))

    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.WARNING)

    yield

    root_logger.handlers.clear()


@pytest.fixture
def temp_dir(tmp_path):
    """Temporary directory for file-based tests."""
    return Path(tmp_path)


@pytest.fixture
def png_bytes():
    """A small 40x20 PNG image."""
    buffer = BytesIO()
    Image.new("RGB", (40, 20), (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def recording_pipeline():
    """Factory for pipelines that draw onto a RecordingSurface."""
    def factory(settings=None, **options):
        return WatermarkPipeline(
            settings,
            ProcessingOptions(**options),
            surface_factory=lambda session: RecordingSurface(),
        )
    return factory


@pytest.fixture
def sectioned_html():
    """Three sections, 40 short paragraphs and one 12-row table."""
    parts = []
    counter = 0
    for section, count in ((1, 13), (2, 13), (3, 14)):
        parts.append(f"<h{section}>Section {section} heading</h{section}>")
        for _ in range(count):
            counter += 1
            parts.append(f"<p>Short paragraph number {counter}.</p>")
        if section == 2:
            rows = "".join(f"<tr><td>Item {i}</td><td>{i * 10}</td></tr>" for i in range(11))
            parts.append(f"<table><tr><th>Item</th><th>Value</th></tr>{rows}</table>")
    return "<html><body>" + "".join(parts) + "</body></html>"


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    logging.raiseExceptions = False


def pytest_collection_modifyitems(config, items):
    """Mark end-to-end modules as integration tests and the rest as unit tests."""
    for item in items:
        if item.path.name in ("test_pipeline.py", "test_cli.py"):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
