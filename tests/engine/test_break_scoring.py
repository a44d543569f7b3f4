"""
Tests for page-break scoring.
"""

from docstamp.engine.break_scoring import is_short_paragraph, score_break, score_breaks
from docstamp.models.content import ContentElement, ElementKind, Footprint

LONG_TEXT = "word " * 40


def para(text=LONG_TEXT):
    return ContentElement(kind=ElementKind.PARAGRAPH, text=text)


def heading(text="Section"):
    return ContentElement(kind=ElementKind.HEADING, text=text, level=2)


class TestScoreBreak:
    """Test individual scoring rules."""

    def test_heading_and_section_bonuses(self):
        elements = [para(), para(), heading(), para()]
        scores = [c.score for c in score_breaks(elements)]

        # index 1: between paragraphs, heading ahead; index 2: heading
        assert scores[1] == 80
        assert scores[2] == 80
        assert scores[3] == 50

    def test_table_penalty(self):
        elements = [para(), ContentElement(kind=ElementKind.TABLE, text="t"), para()]
        candidate = score_break(elements, 1)

        assert candidate.score == 10
        assert "avoid_table_break" in candidate.reason

    def test_image_and_orphan_penalty(self):
        elements = [para("Short."), ContentElement(kind=ElementKind.IMAGE), para()]
        assert score_break(elements, 1).score == 15

    def test_short_paragraph_penalty(self):
        elements = [para(), para("One short line.")]
        assert score_break(elements, 1).score == 45

    def test_first_element_has_no_lookahead_bonus(self):
        elements = [para(), heading(), para()]
        assert score_break(elements, 0).score == 50

    def test_last_element_has_no_lookahead_bonus(self):
        elements = [heading(), para(), para()]
        assert score_break(elements, 2).score == 60

    def test_scores_clamped(self):
        elements = [heading(), heading(), heading(), heading(), para("x")]
        for candidate in score_breaks(elements):
            assert 0 <= candidate.score <= 100

    def test_one_candidate_per_element(self):
        elements = [para() for _ in range(7)]
        candidates = score_breaks(elements)

        assert [c.element_index for c in candidates] == list(range(7))


class TestShortParagraph:
    """Test single-line paragraph detection."""

    def test_uses_footprint_when_available(self):
        one_line = ContentElement(
            kind=ElementKind.PARAGRAPH, text=LONG_TEXT,
            footprint=Footprint(font_size=12, line_height=16, lines=("only line",)),
        )
        two_lines = ContentElement(
            kind=ElementKind.PARAGRAPH, text="x",
            footprint=Footprint(font_size=12, line_height=16, lines=("a", "b")),
        )

        assert is_short_paragraph(one_line)
        assert not is_short_paragraph(two_lines)

    def test_non_paragraphs_are_not_short(self):
        assert not is_short_paragraph(heading("x"))
        assert not is_short_paragraph(None)
