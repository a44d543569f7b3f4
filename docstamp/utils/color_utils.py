"""
Colour parsing helpers.

Converts CSS-style colour strings into normalized RGB float triples suitable
for ReportLab's ``colors.Color``.
"""

from typing import Optional, Tuple
import re
import logging

logger = logging.getLogger(__name__)

RGB = Tuple[float, float, float]

# #1e40af
DEFAULT_RGB: RGB = (0.12, 0.25, 0.69)

NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "navy": (0, 0, 128),
    "orange": (255, 165, 0),
}

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def hex_to_rgb(value: str) -> Optional[Tuple[int, int, int]]:
    """
    Convert a ``#rrggbb`` or ``#rgb`` string to integer RGB.

    Returns:
        Tuple of 0-255 integers, or None if the string is not a hex colour
    """
    match = _HEX_RE.match(value.strip())
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def parse_color(value: Optional[str], default: RGB = DEFAULT_RGB) -> RGB:
    """
    Parse a colour string into RGB floats in [0, 1].

    Args:
        value: Hex colour or one of the supported colour names
        default: Colour returned when ``value`` cannot be parsed

    Returns:
        (r, g, b) floats
    """
    if not value:
        return default
    text = str(value).strip().lower()
    rgb = NAMED_COLORS.get(text) or hex_to_rgb(text)
    if rgb is None:
        logger.warning(f"Unparsable colour '{value}', using default")
        return default
    return rgb[0] / 255.0, rgb[1] / 255.0, rgb[2] / 255.0
