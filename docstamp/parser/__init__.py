"""Markup parsing into the ordered content model."""

from .markup_parser import MarkupParser, build_content_elements

__all__ = ["MarkupParser", "build_content_elements"]
