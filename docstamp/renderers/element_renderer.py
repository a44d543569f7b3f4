"""
Element renderer.

Draws the placements of one planned page onto a rendering surface: wrapped
text lines, bordered tables and images. Elements split across pages are
drawn slice by slice.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..engine.density import PaginationStrategy
from ..engine.layout_estimator import TABLE_BORDER_WIDTH, TABLE_CELL_PADDING, table_row_height
from ..engine.page_plan import PagePlan, Placement
from ..engine.text_metrics import estimate_text_width
from ..exceptions import MediaError
from ..models.content import Alignment, ContentElement, ElementKind
from .surface import BLACK, RGB, RenderingSurface

logger = logging.getLogger(__name__)

HEADING_COLOR: RGB = (0.1, 0.1, 0.1)
PLACEHOLDER_COLOR: RGB = (0.45, 0.45, 0.45)
TABLE_BORDER_COLOR: RGB = (0.7, 0.7, 0.7)
TABLE_HEADER_FILL: RGB = (0.95, 0.95, 0.95)

FONT_VARIANTS = {
    (False, False): "Helvetica",
    (True, False): "Helvetica-Bold",
    (False, True): "Helvetica-Oblique",
    (True, True): "Helvetica-BoldOblique",
}


def text_font(bold: bool, italic: bool) -> str:
    return FONT_VARIANTS[(bool(bold), bool(italic))]


def aligned_x(alignment: Alignment, left: float, available: float, width: float) -> float:
    """Horizontal start of a run of ``width`` points inside ``available``."""
    if alignment is Alignment.CENTER:
        return left + max(0.0, (available - width) / 2)
    if alignment is Alignment.RIGHT:
        return left + max(0.0, available - width)
    return left


class ElementRenderer:
    """
    Renders planned pages element by element.

    Args:
        surface: Target rendering surface
        strategy: Pagination strategy (page geometry)
    """

    def __init__(self, surface: RenderingSurface, strategy: PaginationStrategy):
        self.surface = surface
        self.strategy = strategy
        page_config = strategy.page_config
        self.left = page_config.margins.left
        self.content_width = page_config.content_width
        self.top = page_config.content_top

    def render_page(self, plan: PagePlan, elements: Sequence[ContentElement]) -> None:
        y = self.top
        for placement in plan.placements:
            element = elements[placement.element_index]
            self.render_placement(element, placement, y)
            y -= placement.height

    def render_placement(self, element: ContentElement, placement: Placement, top: float) -> None:
        """Draw one placement whose box starts at ``top``."""
        if element.kind is ElementKind.SPACER or element.footprint is None:
            return
        if element.kind is ElementKind.TABLE and element.table is not None:
            self._render_table(element, placement, top)
        elif element.kind is ElementKind.IMAGE and element.image is not None:
            self._render_image(element, top)
        else:
            self._render_text(element, placement, top)

    def _render_text(self, element: ContentElement, placement: Placement, top: float) -> None:
        footprint = element.footprint
        lines = footprint.lines[placement.start:placement.stop]
        y = top - (footprint.leading if placement.start == 0 else 0.0)
        heading = element.kind is ElementKind.HEADING
        font_name = text_font(element.style.bold or heading, element.style.italic)
        color = HEADING_COLOR if heading else BLACK
        left = self.left + footprint.indent
        available = self.content_width - footprint.indent

        for line in lines:
            width = estimate_text_width(line, footprint.font_size)
            x = aligned_x(element.style.alignment, left, available, width)
            self.surface.draw_text(line, x, y - footprint.font_size, font_name, footprint.font_size, color)
            y -= footprint.line_height

    def _render_table(self, element: ContentElement, placement: Placement, top: float) -> None:
        footprint = element.footprint
        widths = footprint.column_widths
        stop = placement.stop if placement.stop is not None else len(element.table.rows)
        y = top - TABLE_BORDER_WIDTH

        for row_index in range(placement.start, stop):
            row = element.table.rows[row_index]
            if placement.line_stop is not None:
                row_height = table_row_height(placement.line_stop - placement.line_start)
            else:
                row_height = footprint.row_heights[row_index]
            x = self.left
            for column, width in enumerate(widths):
                cell = row.cells[column] if column < len(row.cells) else None
                header = cell.is_header if cell is not None else row.is_header
                self.surface.draw_rect(
                    x, y - row_height, width, row_height,
                    stroke_color=TABLE_BORDER_COLOR,
                    fill_color=TABLE_HEADER_FILL if header else None,
                    line_width=TABLE_BORDER_WIDTH,
                )
                if cell is not None:
                    font_name = text_font(cell.is_header, False)
                    baseline = y - TABLE_CELL_PADDING - footprint.font_size
                    for line in footprint.row_lines[row_index][column][placement.line_start:placement.line_stop]:
                        line_width = estimate_text_width(line, footprint.font_size)
                        line_x = aligned_x(cell.alignment, x + TABLE_CELL_PADDING,
                                           width - 2 * TABLE_CELL_PADDING, line_width)
                        self.surface.draw_text(line, line_x, baseline, font_name, footprint.font_size)
                        baseline -= footprint.line_height
                x += width
            y -= row_height + TABLE_BORDER_WIDTH

    def _render_image(self, element: ContentElement, top: float) -> None:
        image = element.image
        y = top - element.footprint.leading
        x = aligned_x(image.alignment, self.left, self.content_width, image.display_width)
        try:
            self.surface.draw_image(image, x, y - image.display_height, image.display_width, image.display_height)
        except MediaError as e:
            logger.warning(f"Skipping image at element {element.source_index}: {e}")
            placeholder = f"[Image: {image.alt_text}]"
            font_size = element.footprint.font_size
            width = estimate_text_width(placeholder, font_size)
            self.surface.draw_text(
                placeholder,
                aligned_x(image.alignment, self.left, self.content_width, width),
                y - font_size,
                text_font(False, True),
                font_size,
                PLACEHOLDER_COLOR,
            )
