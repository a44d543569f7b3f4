"""
Content density analysis and the pagination strategy derived from it.

Denser documents get taller pages, tighter margins and tighter spacing so
they do not spread over an excessive number of pages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ..config import PageConfig
from ..models.content import ContentElement, ElementKind
from .geometry import Margins, Size

logger = logging.getLogger(__name__)

HIGH_IMAGE_DENSITY = 0.2
HIGH_TABLE_DENSITY = 0.15
HIGH_TEXT_DENSITY = 200.0
MEDIUM_IMAGE_DENSITY = 0.1
MEDIUM_TABLE_DENSITY = 0.05
MEDIUM_TEXT_DENSITY = 100.0

PAGE_HEIGHT_FACTOR = {"high": 1.2, "medium": 1.1, "low": 1.0}
MARGIN_FACTOR = {"high": 0.8, "medium": 0.9, "low": 1.0}

DEFAULT_MAX_ELEMENTS = 100
# Image or table share above which fewer elements fit on a page
HEAVY_DENSITY = 0.1
IMAGE_HEAVY_MAX_ELEMENTS = 50
TABLE_HEAVY_MAX_ELEMENTS = 30


class Complexity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(slots=True, frozen=True)
class ContentDensityMetrics:
    """
    Document-wide density classification.

    Attributes:
        text_density: Average characters per paragraph/heading
        image_density: Share of elements that are images
        table_density: Share of elements that are tables
        complexity: Overall low/medium/high classification
        element_count: Number of elements analysed
    """
    text_density: float
    image_density: float
    table_density: float
    complexity: Complexity
    element_count: int = 0


@dataclass(slots=True, frozen=True)
class PaginationStrategy:
    """Pagination parameters fixed for the whole page-break walk."""
    page_width: float
    page_height: float
    margin_top: float
    margin_bottom: float
    margin_left: float
    margin_right: float
    line_spacing: float
    paragraph_spacing: float
    max_elements_per_page: int

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right

    @property
    def usable_height(self) -> float:
        """Vertical budget of one page."""
        return self.page_height - self.margin_top - self.margin_bottom

    @property
    def page_config(self) -> PageConfig:
        """Physical page configuration the renderer draws on."""
        return PageConfig(
            page_size=Size(self.page_width, self.page_height),
            margins=Margins(
                top=self.margin_top,
                bottom=self.margin_bottom,
                left=self.margin_left,
                right=self.margin_right,
            ),
        )

    @property
    def spacing_scale(self) -> float:
        """Factor applied to per-kind trailing spacing (12 pt is the baseline)."""
        return self.paragraph_spacing / 12.0


def classify(text_density: float, image_density: float, table_density: float) -> Complexity:
    if image_density > HIGH_IMAGE_DENSITY or table_density > HIGH_TABLE_DENSITY or text_density > HIGH_TEXT_DENSITY:
        return Complexity.HIGH
    if image_density > MEDIUM_IMAGE_DENSITY or table_density > MEDIUM_TABLE_DENSITY or text_density > MEDIUM_TEXT_DENSITY:
        return Complexity.MEDIUM
    return Complexity.LOW


def analyze_density(elements: Sequence[ContentElement]) -> ContentDensityMetrics:
    """
    Classify document complexity from element composition.

    Args:
        elements: Content elements in document order

    Returns:
        ContentDensityMetrics for the document
    """
    total = len(elements)
    if not total:
        return ContentDensityMetrics(0.0, 0.0, 0.0, Complexity.LOW, 0)

    text_lengths = [len(element.text) for element in elements if element.is_text]
    text_density = sum(text_lengths) / len(text_lengths) if text_lengths else 0.0
    image_density = sum(1 for e in elements if e.kind is ElementKind.IMAGE) / total
    table_density = sum(1 for e in elements if e.kind is ElementKind.TABLE) / total

    metrics = ContentDensityMetrics(
        text_density=text_density,
        image_density=image_density,
        table_density=table_density,
        complexity=classify(text_density, image_density, table_density),
        element_count=total,
    )
    logger.info(
        f"Content density: {metrics.complexity.value} "
        f"(text={text_density:.1f}, images={image_density:.2f}, tables={table_density:.2f})"
    )
    return metrics


def create_strategy(metrics: ContentDensityMetrics, page_config: PageConfig) -> PaginationStrategy:
    """
    Derive the pagination strategy for a document.

    Args:
        metrics: Density classification of the document
        page_config: Base page configuration

    Returns:
        PaginationStrategy with adjusted page height, margins and spacing
    """
    level = metrics.complexity.value
    margin_factor = MARGIN_FACTOR[level]

    if metrics.image_density > HEAVY_DENSITY:
        max_elements = IMAGE_HEAVY_MAX_ELEMENTS
    elif metrics.table_density > HEAVY_DENSITY:
        max_elements = TABLE_HEAVY_MAX_ELEMENTS
    else:
        max_elements = DEFAULT_MAX_ELEMENTS

    high = metrics.complexity is Complexity.HIGH
    strategy = PaginationStrategy(
        page_width=page_config.width,
        page_height=page_config.height * PAGE_HEIGHT_FACTOR[level],
        margin_top=page_config.margins.top * margin_factor,
        margin_bottom=page_config.margins.bottom * margin_factor,
        margin_left=page_config.margins.left,
        margin_right=page_config.margins.right,
        line_spacing=14.0 if high else 16.0,
        paragraph_spacing=8.0 if high else 12.0,
        max_elements_per_page=max_elements,
    )
    logger.debug(f"Pagination strategy: {strategy}")
    return strategy
