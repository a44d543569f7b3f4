"""
Character-count text metrics.

Glyph widths are approximated as a fixed fraction of the font size; there is
no kerning or real glyph measurement. Good enough to budget page height.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from ..utils.cache import SessionCache

# Average glyph width as a fraction of the font size
CHAR_WIDTH_FACTOR = 0.55
HYPHEN = "-"


def char_width(font_size: float) -> float:
    return font_size * CHAR_WIDTH_FACTOR


def chars_per_line(width: float, font_size: float) -> int:
    """Number of average-width characters that fit in ``width`` points."""
    if font_size <= 0:
        return max(1, int(width))
    return max(1, int(width / char_width(font_size)))


def estimate_text_width(text: str, font_size: float) -> float:
    return len(text) * char_width(font_size)


def break_long_word(word: str, max_chars: int) -> List[str]:
    """
    Hard-break a word longer than a line into hyphenated chunks.

    Every chunk except the last ends with ``-`` and is at most ``max_chars``
    long including the hyphen.
    """
    if len(word) <= max_chars:
        return [word]
    if max_chars < 2:
        return list(word)
    step = max_chars - 1
    chunks = [word[i:i + step] + HYPHEN for i in range(0, len(word), step)]
    chunks[-1] = chunks[-1][:-1]
    return chunks


def _wrap(text: str, max_chars: int) -> Tuple[str, ...]:
    lines: List[str] = []
    current = ""
    for word in text.split():
        for piece in break_long_word(word, max_chars):
            if not current:
                current = piece
            elif len(current) + 1 + len(piece) <= max_chars:
                current = f"{current} {piece}"
            else:
                lines.append(current)
                current = piece
    if current:
        lines.append(current)
    return tuple(lines)


def wrap_text(
    text: str,
    width: float,
    font_size: float,
    cache: Optional[SessionCache] = None,
) -> Tuple[str, ...]:
    """
    Greedy word wrap into lines that fit ``width`` at ``font_size``.

    Args:
        text: Text to wrap (whitespace is normalized)
        width: Available width in points
        font_size: Font size in points
        cache: Optional session cache memoising results

    Returns:
        Wrapped lines; empty for blank text
    """
    max_chars = chars_per_line(width, font_size)
    if cache is None:
        return _wrap(text, max_chars)
    return cache.get_or_set(("wrap", text, max_chars), lambda: _wrap(text, max_chars))
