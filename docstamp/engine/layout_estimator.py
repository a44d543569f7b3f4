"""
Layout estimator.

Assigns every content element an estimated rendered footprint: wrapped lines
and height for text, column widths and row heights for tables, scaled display
size for images. Estimation depends only on the element and the pagination
strategy; results are new immutable elements.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.content import (
    ContentElement,
    ElementKind,
    Footprint,
    ImageData,
    TableCell,
    TableData,
    TableRow,
)
from ..utils.cache import SessionCache
from .density import PaginationStrategy
from .text_metrics import wrap_text

logger = logging.getLogger(__name__)

HEADING_FONT_SIZES: Dict[int, float] = {1: 20.0, 2: 18.0, 3: 16.0, 4: 14.0, 5: 13.0, 6: 12.0}
BODY_FONT_SIZE = 12.0
HEADING_LEADING_FACTOR = 0.5
LIST_INDENT = 18.0

# Trailing space after each kind, at the baseline 12 pt paragraph spacing
KIND_SPACING: Dict[ElementKind, float] = {
    ElementKind.HEADING: 12.0,
    ElementKind.PARAGRAPH: 8.0,
    ElementKind.LIST: 4.0,
    ElementKind.TABLE: 16.0,
    ElementKind.IMAGE: 12.0,
    ElementKind.SPACER: 0.0,
}

TABLE_FONT_SIZE = 11.0
TABLE_LINE_HEIGHT = 14.0
TABLE_CELL_PADDING = 8.0
TABLE_BORDER_WIDTH = 1.0
TABLE_MIN_ROW_HEIGHT = 25.0
TABLE_ROW_PADDING = 10.0
TABLE_CHAR_WIDTH = 6.0
TABLE_MIN_COLUMN_WIDTH = 60.0
TABLE_MAX_COLUMN_WIDTH = 150.0

IMAGE_MARGIN = 10.0
IMAGE_MAX_WIDTH_FRACTION = 0.8
IMAGE_MAX_HEIGHT_FRACTION = 0.6
SYNTHETIC_WIDTH_RANGE = (200.0, 600.0)
SYNTHETIC_HEIGHT_RANGE = (150.0, 450.0)

MIN_HEIGHT = 1.0


def heading_font_size(level: Optional[int]) -> float:
    return HEADING_FONT_SIZES.get(level or 1, BODY_FONT_SIZE)


def font_size_for(element: ContentElement) -> float:
    if element.kind is ElementKind.HEADING:
        return heading_font_size(element.level)
    if element.kind is ElementKind.TABLE:
        return TABLE_FONT_SIZE
    return BODY_FONT_SIZE


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def synthetic_image_size(payload: bytes) -> Tuple[float, float]:
    """
    Approximate image dimensions from the encoded payload size.

    Uses the base64-encoded length, so the estimate matches what an inline
    data URL would carry. This is not a decode.
    """
    encoded_length = 4 * math.ceil(len(payload) / 3)
    decoded = 0.75 * encoded_length
    width = _clamp(2.0 * math.sqrt(decoded), *SYNTHETIC_WIDTH_RANGE)
    height = _clamp(1.5 * math.sqrt(decoded), *SYNTHETIC_HEIGHT_RANGE)
    return width, height


def allocate_column_widths(table: TableData, available_width: float) -> Tuple[float, ...]:
    """
    Allocate column widths proportionally to each column's longest cell.

    Naive widths are ``min(len * 6 + 16, 150)`` floored at 60; when their
    total exceeds ``available_width`` all columns are scaled down uniformly.
    """
    columns = table.column_count
    if not columns:
        return ()
    longest = [0] * columns
    for row in table.rows:
        for index, cell in enumerate(row.cells):
            longest[index] = max(longest[index], len(cell.text))

    widths = [
        max(TABLE_MIN_COLUMN_WIDTH, min(length * TABLE_CHAR_WIDTH + 2 * TABLE_CELL_PADDING, TABLE_MAX_COLUMN_WIDTH))
        for length in longest
    ]
    total = sum(widths)
    if total > available_width:
        scale = available_width / total
        widths = [width * scale for width in widths]
    return tuple(widths)


def table_row_height(line_count: int) -> float:
    """Height of a table row holding ``line_count`` wrapped lines in its tallest cell."""
    return max(TABLE_MIN_ROW_HEIGHT, line_count * TABLE_LINE_HEIGHT + TABLE_ROW_PADDING)


class LayoutEstimator:
    """
    Computes estimated footprints for content elements.

    Args:
        strategy: Pagination strategy supplying widths and spacing
        cache: Optional session cache for wrapped-line memoisation
    """

    def __init__(self, strategy: PaginationStrategy, cache: Optional[SessionCache] = None):
        self.strategy = strategy
        self.cache = cache

    def estimate_all(self, elements: Sequence[ContentElement]) -> List[ContentElement]:
        estimated = [self.estimate(element) for element in elements]
        logger.debug(f"Estimated {len(estimated)} elements, total height {sum(e.estimated_height for e in estimated):.1f}pt")
        return estimated

    def estimate(self, element: ContentElement) -> ContentElement:
        """
        Return a copy of ``element`` with ``estimated_height`` and ``footprint`` set.

        Heights are always positive; degenerate input gets a minimal height.
        """
        if element.kind is ElementKind.TABLE and element.table is not None:
            return self._estimate_table(element)
        if element.kind is ElementKind.IMAGE and element.image is not None:
            return self._estimate_image(element)
        return self._estimate_text(element)

    def spacing_after(self, kind: ElementKind) -> float:
        return KIND_SPACING[kind] * self.strategy.spacing_scale

    def line_height(self, font_size: float) -> float:
        return self.strategy.line_spacing * font_size / BODY_FONT_SIZE

    def _estimate_text(self, element: ContentElement) -> ContentElement:
        font_size = font_size_for(element)
        line_height = self.line_height(font_size)
        spacing = self.spacing_after(element.kind)

        if element.kind is ElementKind.SPACER:
            footprint = Footprint(font_size=font_size, line_height=line_height, spacing_after=spacing)
            return replace(element, estimated_height=max(MIN_HEIGHT, line_height + spacing), footprint=footprint)

        indent = LIST_INDENT * (element.level or 1) if element.kind is ElementKind.LIST else 0.0
        width = max(1.0, self.strategy.content_width - indent)
        lines = wrap_text(element.text, width, font_size, self.cache)
        leading = font_size * HEADING_LEADING_FACTOR if element.kind is ElementKind.HEADING else 0.0

        footprint = Footprint(
            font_size=font_size,
            line_height=line_height,
            lines=lines,
            leading=leading,
            spacing_after=spacing,
            indent=indent,
        )
        height = leading + len(lines) * line_height + spacing
        return replace(element, estimated_height=max(MIN_HEIGHT, height), footprint=footprint)

    def _estimate_table(self, element: ContentElement) -> ContentElement:
        table = element.table
        widths = allocate_column_widths(table, self.strategy.content_width)

        rows: List[TableRow] = []
        row_heights: List[float] = []
        row_lines: List[Tuple[Tuple[str, ...], ...]] = []
        for row in table.rows:
            cells = tuple(replace(cell, estimated_width=widths[index]) for index, cell in enumerate(row.cells))
            wrapped = tuple(
                wrap_text(cell.text, max(1.0, cell.estimated_width - 2 * TABLE_CELL_PADDING), TABLE_FONT_SIZE, self.cache)
                for cell in cells
            )
            tallest = max((len(lines) for lines in wrapped), default=0)
            rows.append(replace(row, cells=cells))
            row_lines.append(wrapped)
            row_heights.append(table_row_height(tallest))

        spacing = self.spacing_after(ElementKind.TABLE)
        footprint = Footprint(
            font_size=TABLE_FONT_SIZE,
            line_height=TABLE_LINE_HEIGHT,
            spacing_after=spacing,
            column_widths=widths,
            row_heights=tuple(row_heights),
            row_lines=tuple(row_lines),
        )
        borders = (len(rows) + 1) * TABLE_BORDER_WIDTH
        height = sum(row_heights) + borders + spacing
        return replace(
            element,
            table=TableData(rows=tuple(rows)),
            estimated_height=max(MIN_HEIGHT, height),
            footprint=footprint,
        )

    def _estimate_image(self, element: ContentElement) -> ContentElement:
        image = element.image
        if image.has_known_size:
            width, height = image.original_width, image.original_height
        else:
            width, height = synthetic_image_size(image.payload)
            logger.debug(f"Synthesized image size {width:.0f}x{height:.0f} from {len(image.payload)} payload bytes")

        max_width = self.strategy.content_width * IMAGE_MAX_WIDTH_FRACTION
        max_height = self.strategy.usable_height * IMAGE_MAX_HEIGHT_FRACTION
        scale = min(1.0, max_width / width, max_height / height)

        sized: ImageData = replace(
            image,
            original_width=width,
            original_height=height,
            display_width=width * scale,
            display_height=height * scale,
        )
        spacing = self.spacing_after(ElementKind.IMAGE)
        footprint = Footprint(
            font_size=BODY_FONT_SIZE,
            line_height=self.line_height(BODY_FONT_SIZE),
            leading=IMAGE_MARGIN,
            spacing_after=IMAGE_MARGIN + spacing,
        )
        total = IMAGE_MARGIN + sized.display_height + IMAGE_MARGIN + spacing
        return replace(element, image=sized, estimated_height=max(MIN_HEIGHT, total), footprint=footprint)


def estimate_elements(
    elements: Sequence[ContentElement],
    strategy: PaginationStrategy,
    cache: Optional[SessionCache] = None,
) -> List[ContentElement]:
    """Estimate footprints for a whole element sequence."""
    return LayoutEstimator(strategy, cache).estimate_all(elements)
