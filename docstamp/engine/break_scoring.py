"""
Page-break desirability scoring.

Every element index gets a score in [0, 100] rating how good a place it is to
start a new page immediately before that element.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..models.content import ContentElement, ElementKind

logger = logging.getLogger(__name__)

BASE_SCORE = 50
HEADING_BONUS = 30
BETWEEN_PARAGRAPHS_BONUS = 10
SECTION_END_BONUS = 20
TABLE_PENALTY = 40
IMAGE_PENALTY = 20
ORPHAN_WIDOW_PENALTY = 15
SECTION_LOOKAHEAD = 3

# Paragraph length treated as one line when no footprint is available
SHORT_PARAGRAPH_CHARS = 80


@dataclass(slots=True, frozen=True)
class PageBreakCandidate:
    element_index: int
    score: int
    reason: str


def is_short_paragraph(element: Optional[ContentElement]) -> bool:
    """A paragraph that renders as a single line."""
    if element is None or element.kind is not ElementKind.PARAGRAPH:
        return False
    if element.footprint is not None:
        return len(element.footprint.lines) <= 1
    return len(element.text) <= SHORT_PARAGRAPH_CHARS


def score_break(elements: Sequence[ContentElement], index: int) -> PageBreakCandidate:
    """Score breaking immediately before ``elements[index]``."""
    element = elements[index]
    previous = elements[index - 1] if index > 0 else None
    score = BASE_SCORE
    reasons: List[str] = []

    if element.kind is ElementKind.HEADING:
        score += HEADING_BONUS
        reasons.append("heading")
    if previous is not None and previous.kind is ElementKind.PARAGRAPH and element.kind is ElementKind.PARAGRAPH:
        score += BETWEEN_PARAGRAPHS_BONUS
        reasons.append("between_paragraphs")
    if 0 < index < len(elements) - 1:
        upcoming = elements[index + 1:index + 1 + SECTION_LOOKAHEAD]
        if any(e.kind is ElementKind.HEADING for e in upcoming):
            score += SECTION_END_BONUS
            reasons.append("before_section")
    if element.kind is ElementKind.TABLE:
        score -= TABLE_PENALTY
        reasons.append("avoid_table_break")
    if element.kind is ElementKind.IMAGE:
        score -= IMAGE_PENALTY
        reasons.append("avoid_image_break")
    if index > 0 and (is_short_paragraph(element) or is_short_paragraph(previous)):
        score -= ORPHAN_WIDOW_PENALTY
        reasons.append("avoid_orphan_widow")

    return PageBreakCandidate(
        element_index=index,
        score=max(0, min(100, score)),
        reason=",".join(reasons) or "standard",
    )


def score_breaks(elements: Sequence[ContentElement]) -> List[PageBreakCandidate]:
    """
    Score every element index of a document.

    Args:
        elements: Estimated content elements in document order

    Returns:
        One candidate per element, indexed by element position
    """
    candidates = [score_break(elements, index) for index in range(len(elements))]
    strong = sum(1 for c in candidates if c.score > 70)
    logger.debug(f"Scored {len(candidates)} break candidates ({strong} above 70)")
    return candidates
