"""
Tests for character-count text metrics.
"""

import pytest

from docstamp.engine.text_metrics import (
    break_long_word,
    chars_per_line,
    estimate_text_width,
    wrap_text,
)
from docstamp.utils.cache import SessionCache


class TestTextMetrics:
    """Test width approximation and wrapping."""

    def test_chars_per_line(self):
        assert chars_per_line(468, 12) == 70
        assert chars_per_line(1, 12) == 1

    def test_estimate_text_width(self):
        assert estimate_text_width("abcd", 10) == pytest.approx(22.0)

    def test_wrap_respects_line_length(self):
        text = "lorem ipsum dolor sit amet " * 20
        lines = wrap_text(text, 200, 12)

        assert len(lines) > 1
        assert all(len(line) <= chars_per_line(200, 12) for line in lines)
        assert " ".join(lines) == " ".join(text.split())

    def test_wrap_blank_text(self):
        assert wrap_text("", 468, 12) == ()
        assert wrap_text("   ", 468, 12) == ()

    def test_long_word_hyphenated(self):
        assert break_long_word("abcdefghij", 4) == ["abc-", "def-", "ghi-", "j"]
        assert break_long_word("short", 10) == ["short"]

    def test_long_word_wrapped_within_width(self):
        lines = wrap_text("x" * 200, 100, 12)

        assert len(lines) > 1
        assert all(len(line) <= chars_per_line(100, 12) for line in lines)

    def test_wrap_is_memoised(self):
        cache = SessionCache()
        first = wrap_text("some text to wrap", 100, 12, cache)
        second = wrap_text("some text to wrap", 100, 12, cache)

        assert first == second
        assert cache.hits == 1
        assert cache.misses == 1
