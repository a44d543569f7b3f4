"""
Pagination engine.

Consumes estimated content elements in order, decides where pages break and
drives the rendering surface page by page, handing every finished page to the
watermark compositor.

Flow:
1. Density analysis selects the pagination strategy
2. The layout estimator sizes every element
3. Break candidates are scored once over the whole sequence
4. ``plan`` walks the sequence and places elements on pages (pure)
5. ``run`` renders the plan and composites each page
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

from ..exceptions import LayoutError
from ..models.content import ContentElement, ElementKind, Footprint
from ..renderers.element_renderer import ElementRenderer
from ..renderers.surface import RenderingSurface
from ..renderers.watermark_renderer import PageContext, WatermarkCompositor
from ..session import RenderSession
from .break_scoring import PageBreakCandidate, score_breaks
from .density import ContentDensityMetrics, PaginationStrategy, analyze_density, create_strategy
from .layout_estimator import TABLE_BORDER_WIDTH, TABLE_ROW_PADDING, LayoutEstimator, table_row_height
from .page_plan import PagePlan, Placement

logger = logging.getLogger(__name__)

OPTIMAL_BREAK_SCORE = 70
NEARBY_BREAK_SCORE = 60
NEARBY_WINDOW = 2
LARGE_TABLE_HEIGHT = 300.0
LARGE_IMAGE_HEIGHT = 400.0

PROGRESS_START = 65
PROGRESS_END = 90


@dataclass(slots=True)
class RenderedPage:
    """Record of one page emitted to the rendering surface."""
    number: int
    element_indices: Tuple[int, ...]
    is_continuation: bool = False
    watermark_count: int = 0


@dataclass(slots=True)
class PaginationResult:
    pages: List[RenderedPage]
    break_indices: List[int]
    strategy: PaginationStrategy
    metrics: ContentDensityMetrics
    elements: List[ContentElement] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)


@dataclass(slots=True)
class _PageState:
    placements: List[Placement] = field(default_factory=list)
    used: float = 0.0
    is_continuation: bool = False
    break_reason: str = "start"

    @property
    def first_index(self) -> Optional[int]:
        return self.placements[0].element_index if self.placements else None


class PaginationEngine:
    """
    Page-break state machine for one document.

    Args:
        session: Processing session (cache and progress reporting)
    """

    def __init__(self, session: Optional[RenderSession] = None):
        self.session = session or RenderSession()

    def prepare(
        self, elements: Sequence[ContentElement]
    ) -> Tuple[List[ContentElement], ContentDensityMetrics, PaginationStrategy, List[PageBreakCandidate]]:
        """
        Run density analysis, estimation and break scoring.

        Returns:
            Estimated elements, density metrics, strategy and break candidates
        """
        metrics = analyze_density(elements)
        strategy = create_strategy(metrics, self.session.page_config)
        estimated = LayoutEstimator(strategy, self.session.cache).estimate_all(elements)
        candidates = score_breaks(estimated)
        return estimated, metrics, strategy, candidates

    def plan(
        self,
        elements: Sequence[ContentElement],
        strategy: PaginationStrategy,
        candidates: Sequence[PageBreakCandidate],
    ) -> Tuple[List[PagePlan], List[int]]:
        """
        Place estimated elements on pages.

        Deterministic: the same elements and strategy always give the same
        pages and break indices.

        Args:
            elements: Estimated content elements
            strategy: Pagination strategy
            candidates: Break candidates, one per element

        Returns:
            Page plans and the element indices at which new pages start
        """
        usable = strategy.usable_height
        if usable <= 0 or strategy.content_width <= 0:
            raise LayoutError("Page has no usable content area", f"{strategy.content_width:.1f}x{usable:.1f}pt")
        if len(candidates) != len(elements):
            raise LayoutError("Break candidates do not match elements", f"{len(candidates)} != {len(elements)}")
        pages: List[PagePlan] = []
        breaks: List[int] = []
        page = _PageState()

        def close(next_state: _PageState) -> _PageState:
            pages.append(PagePlan(
                number=len(pages) + 1,
                placements=tuple(page.placements),
                used_height=page.used,
                is_continuation=page.is_continuation,
                break_reason=page.break_reason,
            ))
            return next_state

        for index, element in enumerate(elements):
            height = element.estimated_height
            reason = self._break_reason(index, element, page, usable, strategy, candidates)

            if reason == "nearby_optimal":
                target = self._nearby_break(index, page, candidates)
                moved = [p for p in page.placements if p.element_index >= target]
                kept = [p for p in page.placements if p.element_index < target]
                page.placements = kept
                page.used = sum(p.height for p in kept)
                page = close(_PageState(placements=moved, used=sum(p.height for p in moved), break_reason=reason))
                breaks.append(target)
                logger.debug(f"Break moved back to element {target} (score {candidates[target].score})")
                if page.used + height > usable:
                    page = close(_PageState(break_reason="space_constraint"))
                    breaks.append(index)
            elif reason is not None:
                page = close(_PageState(break_reason=reason))
                breaks.append(index)
                logger.debug(f"Page break before element {index}: {reason}")

            if height > usable and element.kind in (ElementKind.PARAGRAPH, ElementKind.HEADING,
                                                    ElementKind.LIST, ElementKind.TABLE):
                fragments = self._split(index, element, usable)
                logger.info(f"Element {index} ({element.kind.value}) is taller than a page, "
                            f"continuing over {len(fragments)} pages")
                for fragment in fragments[:-1]:
                    page.placements.append(fragment)
                    page.used += fragment.height
                    page = close(_PageState(is_continuation=True, break_reason="continuation"))
                page.placements.append(fragments[-1])
                page.used += fragments[-1].height
            else:
                page.placements.append(Placement(element_index=index, height=height))
                page.used += height

        if page.placements or not pages:
            close(_PageState())

        logger.info(f"Planned {len(pages)} pages for {len(elements)} elements, breaks at {breaks}")
        return pages, breaks

    def _break_reason(
        self,
        index: int,
        element: ContentElement,
        page: _PageState,
        usable: float,
        strategy: PaginationStrategy,
        candidates: Sequence[PageBreakCandidate],
    ) -> Optional[str]:
        if not page.placements:
            return None
        height = element.estimated_height
        if candidates[index].score > OPTIMAL_BREAK_SCORE:
            return "optimal_break"
        if height > usable - page.used:
            if self._nearby_break(index, page, candidates) is not None:
                return "nearby_optimal"
            return "space_constraint"
        if len(page.placements) >= strategy.max_elements_per_page:
            return "element_limit"
        if element.kind is ElementKind.TABLE and height > LARGE_TABLE_HEIGHT:
            return "large_table"
        if element.kind is ElementKind.IMAGE and height > LARGE_IMAGE_HEIGHT:
            return "large_image"
        return None

    @staticmethod
    def _nearby_break(index: int, page: _PageState, candidates: Sequence[PageBreakCandidate]) -> Optional[int]:
        """
        Find an earlier well-scored break within the look-around window.

        The current page must keep at least one element, and elements that
        continue from a previous page are never moved.
        """
        first = page.first_index
        if first is None or page.is_continuation:
            return None
        best: Optional[int] = None
        for target in range(max(first + 1, index - NEARBY_WINDOW), index):
            if candidates[target].score > NEARBY_BREAK_SCORE:
                if best is None or candidates[target].score >= candidates[best].score:
                    best = target
        return best

    def _split(self, index: int, element: ContentElement, usable: float) -> List[Placement]:
        footprint = element.footprint
        if footprint is None:
            raise LayoutError("Element has not been estimated", f"element {index}")
        if element.kind is ElementKind.TABLE:
            return self._split_rows(index, footprint, usable)

        line_height = footprint.line_height
        total = len(footprint.lines)
        fragments: List[Placement] = []
        start = 0
        while start < total:
            budget = usable - (footprint.leading if start == 0 else 0.0)
            count = max(1, int(budget // line_height))
            stop = min(total, start + count)
            height = (footprint.leading if start == 0 else 0.0) + (stop - start) * line_height
            if stop == total:
                height += footprint.spacing_after
            fragments.append(Placement(index, height, start, stop, continued=start > 0))
            start = stop
        return fragments

    @staticmethod
    def _split_rows(index: int, footprint: Footprint, usable: float) -> List[Placement]:
        row_heights = footprint.row_heights
        fragments: List[Placement] = []
        start = 0
        while start < len(row_heights):
            if row_heights[start] + 2 * TABLE_BORDER_WIDTH > usable:
                fragments.extend(_split_row_lines(index, start, footprint, usable))
                start += 1
                continue
            height = TABLE_BORDER_WIDTH
            stop = start
            while stop < len(row_heights) and height + row_heights[stop] + TABLE_BORDER_WIDTH <= usable:
                height += row_heights[stop] + TABLE_BORDER_WIDTH
                stop += 1
            fragments.append(Placement(index, height, start, stop, continued=start > 0))
            start = stop
        fragments[-1] = replace(fragments[-1], height=fragments[-1].height + footprint.spacing_after)
        return fragments

    def run(
        self,
        elements: Sequence[ContentElement],
        surface: RenderingSurface,
        compositor: Optional[WatermarkCompositor] = None,
    ) -> PaginationResult:
        """
        Paginate and render a document.

        Args:
            elements: Content elements in document order
            surface: Rendering surface receiving the pages
            compositor: Watermark compositor applied to every finished page

        Returns:
            PaginationResult describing the emitted pages
        """
        estimated, metrics, strategy, candidates = self.prepare(elements)
        plans, breaks = self.plan(estimated, strategy, candidates)
        self.session.report("analysis", 60)

        renderer = ElementRenderer(surface, strategy)
        page_config = strategy.page_config
        interval = max(1, self.session.options.progress_interval)
        total = max(1, len(estimated))
        placed = 0
        rendered: List[RenderedPage] = []

        self.session.report("pagination", PROGRESS_START)
        for plan in plans:
            surface.begin_page(page_config)
            renderer.render_page(plan, estimated)

            watermark_count = 0
            if compositor is not None:
                context = PageContext(
                    number=plan.number,
                    is_last=plan.number == len(plans),
                    elements=tuple(estimated[i] for i in plan.element_indices),
                    page_config=page_config,
                )
                watermark_count = len(compositor.composite(surface, context))
            surface.end_page()

            rendered.append(RenderedPage(
                number=plan.number,
                element_indices=plan.element_indices,
                is_continuation=plan.is_continuation,
                watermark_count=watermark_count,
            ))
            for placement in plan.placements:
                if not self._completes_element(placement, estimated[placement.element_index]):
                    continue
                placed += 1
                if placed % interval == 0:
                    self.session.report("pagination", PROGRESS_START + (PROGRESS_END - PROGRESS_START) * placed / total)

        self.session.report("pagination", PROGRESS_END)
        logger.info(f"Rendered {len(rendered)} pages ({metrics.complexity.value} complexity)")
        return PaginationResult(
            pages=rendered,
            break_indices=breaks,
            strategy=strategy,
            metrics=metrics,
            elements=estimated,
        )

    @staticmethod
    def _completes_element(placement: Placement, element: ContentElement) -> bool:
        """True for the placement holding the last line or row of its element."""
        footprint = element.footprint
        if placement.stop is None or footprint is None:
            return True
        if element.kind is ElementKind.TABLE:
            last_row = placement.stop - 1
            if placement.line_stop is not None and placement.line_stop < _row_line_count(footprint, last_row):
                return False
            return placement.stop >= len(footprint.row_heights)
        return placement.stop >= len(footprint.lines)


def _row_line_count(footprint: Footprint, row: int) -> int:
    return max((len(lines) for lines in footprint.row_lines[row]), default=0)


def _split_row_lines(index: int, row: int, footprint: Footprint, usable: float) -> List[Placement]:
    """Slice one table row taller than a page by the wrapped lines of its cells."""
    line_count = _row_line_count(footprint, row)
    per_slice = max(1, int((usable - 2 * TABLE_BORDER_WIDTH - TABLE_ROW_PADDING) // footprint.line_height))
    fragments: List[Placement] = []
    for line_start in range(0, line_count, per_slice):
        line_stop = min(line_count, line_start + per_slice)
        fragments.append(Placement(
            index,
            table_row_height(line_stop - line_start) + 2 * TABLE_BORDER_WIDTH,
            row,
            row + 1,
            continued=row > 0 or line_start > 0,
            line_start=line_start,
            line_stop=line_stop,
        ))
    return fragments
