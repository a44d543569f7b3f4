"""
Configuration objects for docstamp.

Page geometry is expressed in PDF points (1/72 inch). The defaults describe a
US Letter page with one-inch margins, which leaves a 468 x 648 pt content box.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from .engine.geometry import Margins, Size

# US Letter, 8.5" x 11" at 72 DPI
LETTER = Size(612.0, 792.0)
DEFAULT_MARGIN = 72.0

# Extraction below this many characters means the source was empty or corrupt
MIN_TEXT_LENGTH = 20

# Elements between two pagination progress reports
PROGRESS_INTERVAL = 10


@dataclass(slots=True, frozen=True)
class PageConfig:
    """Static page configuration used before density analysis adjusts it."""
    page_size: Size = LETTER
    margins: Margins = Margins.uniform(DEFAULT_MARGIN)

    @property
    def width(self) -> float:
        return self.page_size.width

    @property
    def height(self) -> float:
        return self.page_size.height

    @property
    def content_width(self) -> float:
        """Usable horizontal space between the left and right margins."""
        return self.page_size.width - self.margins.left - self.margins.right

    @property
    def content_height(self) -> float:
        """Usable vertical space between the top and bottom margins."""
        return self.page_size.height - self.margins.top - self.margins.bottom

    @property
    def content_top(self) -> float:
        """Top of the content area in PDF coordinates (origin bottom-left)."""
        return self.page_size.height - self.margins.top


@dataclass(slots=True, frozen=True)
class ProgressEvent:
    """Observational progress checkpoint handed to the caller's callback."""
    stage: str
    percent: int


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass(slots=True)
class ProcessingOptions:
    """Per-call processing options."""
    page_config: PageConfig = field(default_factory=PageConfig)
    min_text_length: int = MIN_TEXT_LENGTH
    progress_interval: int = PROGRESS_INTERVAL
    progress_callback: Optional[ProgressCallback] = None
