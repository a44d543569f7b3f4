"""Utility helpers: session cache, colour parsing, rich logging."""

from .cache import SessionCache
from .color_utils import DEFAULT_RGB, parse_color
from .rich_logger import RichLogger, setup_logging

__all__ = ["SessionCache", "DEFAULT_RGB", "parse_color", "RichLogger", "setup_logging"]
