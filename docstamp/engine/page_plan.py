"""Page plan records produced by the pagination engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(slots=True, frozen=True)
class Placement:
    """
    One element, or a slice of it, placed on a page.

    For an element split across pages ``start``/``stop`` slice its wrapped
    lines (text) or rows (tables); ``stop`` is None for the whole remainder.
    A table row taller than a page is placed one slice at a time, with
    ``line_start``/``line_stop`` slicing the wrapped lines of its cells.
    """
    element_index: int
    height: float
    start: int = 0
    stop: Optional[int] = None
    continued: bool = False
    line_start: int = 0
    line_stop: Optional[int] = None

    @property
    def is_fragment(self) -> bool:
        return self.continued or self.start > 0 or self.stop is not None


@dataclass(slots=True, frozen=True)
class PagePlan:
    number: int
    placements: Tuple[Placement, ...]
    used_height: float
    is_continuation: bool = False
    break_reason: str = "start"

    @property
    def element_indices(self) -> Tuple[int, ...]:
        seen: List[int] = []
        for placement in self.placements:
            if placement.element_index not in seen:
                seen.append(placement.element_index)
        return tuple(seen)
