"""
Watermark compositor.

Resolves concrete watermark instances for a finished page (text, position,
rotation, opacity, font, colour) and draws them with optional shadow and
outline passes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..config import PageConfig
from ..engine.geometry import Size
from ..models.content import ContentElement, ElementKind
from ..models.watermark import (
    CornerType,
    PageRangeType,
    PositionType,
    Template,
    TransparencyType,
    WatermarkInstance,
    WatermarkSettings,
)
from ..utils.color_utils import parse_color
from .surface import RenderingSurface

logger = logging.getLogger(__name__)

CENTER_ROTATION = -45.0
TEXT_WIDTH_FACTOR = 0.6
TEXT_HEIGHT_FACTOR = 1.2
CORNER_MARGIN_FACTOR = 0.05
SHADOW_OPACITY_FACTOR = 0.3
OUTLINE_OPACITY_FACTOR = 0.5
BLUR_OPACITY_FACTOR = 0.25

SHORT_CONTENT = 500
MEDIUM_CONTENT = 2000

FONT_FAMILIES = {
    "helvetica": ("Helvetica", "Helvetica-Bold"),
    "times": ("Times-Roman", "Times-Bold"),
    "courier": ("Courier", "Courier-Bold"),
}


@dataclass(slots=True, frozen=True)
class PageContext:
    """A finished page as seen by the compositor."""
    number: int
    is_last: bool
    elements: Tuple[ContentElement, ...] = ()
    page_config: PageConfig = PageConfig()

    @property
    def has_images(self) -> bool:
        return any(e.kind is ElementKind.IMAGE for e in self.elements)

    @property
    def has_tables(self) -> bool:
        return any(e.kind is ElementKind.TABLE for e in self.elements)

    @property
    def text_length(self) -> int:
        return sum(len(e.text) for e in self.elements if e.is_text)

    @property
    def content_length(self) -> str:
        """Bucket the page's paragraph and heading text volume."""
        length = self.text_length
        if length < SHORT_CONTENT:
            return "short"
        if length < MEDIUM_CONTENT:
            return "medium"
        return "long"


def clamp_opacity(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


class WatermarkCompositor:
    """
    Draws watermark instances onto finished pages.

    The compositor only ever draws; it never changes the content model or
    pagination state.

    Args:
        settings: Document-wide watermark settings
    """

    def __init__(self, settings: Optional[WatermarkSettings] = None):
        self.settings = settings or WatermarkSettings()
        self.font_size = self.settings.font_size_points
        self.font_name = self._select_font()
        self.color = parse_color(self.settings.color)

    def _select_font(self) -> str:
        family = (self.settings.style.font_family or "helvetica").lower()
        if family not in FONT_FAMILIES:
            logger.warning(f"Unknown watermark font family '{family}', using helvetica")
            family = "helvetica"
        regular, bold = FONT_FAMILIES[family]
        return bold if self.settings.is_large else regular

    # Page gate

    def applies_to_page(self, context: PageContext) -> bool:
        """
        Evaluate the page range and conditional content rules for a page.

        Args:
            context: The finished page

        Returns:
            True if watermarks are drawn on this page
        """
        page_specific = self.settings.page_specific
        if page_specific is None:
            return True

        page_range = page_specific.page_range
        number = context.number
        if isinstance(page_range, tuple):
            in_range = number in page_range
        elif page_range is PageRangeType.FIRST:
            in_range = number == 1
        elif page_range is PageRangeType.LAST:
            in_range = context.is_last
        elif page_range is PageRangeType.ODD:
            in_range = number % 2 == 1
        elif page_range is PageRangeType.EVEN:
            in_range = number % 2 == 0
        else:
            in_range = True
        if not in_range:
            return False

        conditional = page_specific.conditional
        if conditional is None:
            return True
        if conditional.has_images is not None and conditional.has_images != context.has_images:
            return False
        if conditional.has_tables is not None and conditional.has_tables != context.has_tables:
            return False
        if conditional.content_length and conditional.content_length != context.content_length:
            return False
        return True

    # Resolution

    def resolve_text(self, page_number: int) -> str:
        """Watermark text for a page: custom text, then template, then the base text."""
        settings = self.settings
        if settings.page_specific is not None and settings.page_specific.custom_text:
            return settings.page_specific.custom_text.replace("{pageNumber}", str(page_number))

        template = settings.template
        if template is Template.CORPORATE:
            return f"CONFIDENTIAL - Corporate - Page {page_number}"
        if template is Template.CONFIDENTIAL:
            return f"CONFIDENTIAL DOCUMENT - {page_number}"
        if template is Template.DRAFT:
            return f"DRAFT COPY - Page {page_number} - DO NOT DISTRIBUTE"
        if template is Template.CUSTOM:
            return f"{settings.text} - {page_number}"
        return settings.text.replace("{pageNumber}", str(page_number))

    def resolve_positions(self, text: str, page_size: Size) -> List[Tuple[float, float, float]]:
        """
        Resolve ``(x, y, rotation_deg)`` anchors for the configured position type.

        Anchors are text centres. Text extent is approximated from the
        character count.
        """
        width, height = page_size.width, page_size.height
        position = self.settings.position
        text_width = len(text) * self.font_size * TEXT_WIDTH_FACTOR

        if position.type is PositionType.CENTER:
            anchors = [(width / 2, height / 2, CENTER_ROTATION)]
        elif position.type is PositionType.CORNER:
            x, y = self._corner_anchor(position.corner, text_width, page_size)
            anchors = [(x + position.offset[0], y + position.offset[1], 0.0)]
        elif position.type is PositionType.CUSTOM:
            rotation = self.settings.style.rotation_deg or 0.0
            anchors = [(x, y, rotation) for x, y in position.coordinates]
        else:
            anchors = [(width / 2, height / 2, CENTER_ROTATION)]
            for corner in (CornerType.TOP_LEFT, CornerType.TOP_RIGHT, CornerType.BOTTOM_LEFT, CornerType.BOTTOM_RIGHT):
                x, y = self._corner_anchor(corner, text_width, page_size)
                anchors.append((x, y, 0.0))

        override = self.settings.style.rotation_deg
        if override is not None:
            anchors = [(x, y, override) for x, y, _ in anchors]
        return anchors

    def _corner_anchor(self, corner: CornerType, text_width: float, page_size: Size) -> Tuple[float, float]:
        width, height = page_size.width, page_size.height
        margin = min(width, height) * CORNER_MARGIN_FACTOR
        text_height = self.font_size * TEXT_HEIGHT_FACTOR
        half_font = self.font_size / 2

        if corner in (CornerType.TOP_LEFT, CornerType.BOTTOM_LEFT):
            x = margin + text_width / 2
        else:
            x = width - margin - text_width / 2
        if corner in (CornerType.TOP_LEFT, CornerType.TOP_RIGHT):
            y = height - margin - text_height + half_font
        else:
            y = margin + half_font
        return x, y

    def resolve_opacity(self, x: float, y: float, page_size: Size) -> float:
        """
        Opacity in [0, 1] for an instance anchored at ``x, y``.

        Gradient varies sinusoidally with the horizontal position; fade falls
        off with distance from the page centre.
        """
        settings = self.settings
        base = settings.opacity / 100.0
        transparency = settings.transparency
        if transparency is None:
            return clamp_opacity(base)

        if transparency.type is TransparencyType.GRADIENT:
            if transparency.start is None or transparency.end is None:
                return clamp_opacity(base)
            factor = math.sin((x / page_size.width) * math.pi)
            opacity = (transparency.start + (transparency.end - transparency.start) * factor) / 100.0
        elif transparency.type is TransparencyType.FADE:
            value = transparency.value if transparency.value is not None else settings.opacity
            distance = math.hypot(x - page_size.width / 2, y - page_size.height / 2)
            opacity = (value / 100.0) * (1.0 - distance / page_size.half_diagonal)
        else:
            value = transparency.value if transparency.value is not None else settings.opacity
            opacity = value / 100.0
        return clamp_opacity(opacity)

    def resolve_instances(self, context: PageContext, gated: bool = True) -> List[WatermarkInstance]:
        """
        Resolve every watermark instance for a page.

        Args:
            context: The finished page
            gated: Apply the page range and conditional rules

        Returns:
            Instances to draw; empty when the page gate rejects the page
        """
        if gated and not self.applies_to_page(context):
            logger.debug(f"Watermark skipped on page {context.number}")
            return []

        page_size = context.page_config.page_size
        text = self.resolve_text(context.number)
        return [
            WatermarkInstance(
                text=text,
                x=x,
                y=y,
                rotation_deg=rotation,
                opacity=self.resolve_opacity(x, y, page_size),
                font_name=self.font_name,
                font_size=self.font_size,
                color=self.color,
            )
            for x, y, rotation in self.resolve_positions(text, page_size)
        ]

    # Drawing

    def composite(self, surface: RenderingSurface, context: PageContext,
                  gated: bool = True) -> List[WatermarkInstance]:
        """
        Draw the page's watermark instances onto the surface.

        Each instance is drawn as an optional shadow pass, an optional
        outline pass and then the main text. A blurred shadow adds a ring of
        fainter passes around the shadow offset. With ``gated=False`` the
        page range and conditional rules are ignored.

        Returns:
            The instances drawn
        """
        instances = self.resolve_instances(context, gated=gated)
        style = self.settings.style
        for instance in instances:
            if style.shadow is not None:
                shadow = style.shadow
                shadow_color = parse_color(shadow.color)
                if shadow.blur > 0:
                    for dx, dy in _outline_offsets(shadow.blur / 2):
                        self._draw(surface, instance, shadow.offset_x + dx, shadow.offset_y + dy,
                                   shadow_color, SHADOW_OPACITY_FACTOR * BLUR_OPACITY_FACTOR)
                self._draw(surface, instance, shadow.offset_x, shadow.offset_y,
                           shadow_color, SHADOW_OPACITY_FACTOR)
            if style.outline is not None:
                step = style.outline.width or 1.0
                outline_color = parse_color(style.outline.color)
                for dx, dy in _outline_offsets(step):
                    self._draw(surface, instance, dx, dy, outline_color, OUTLINE_OPACITY_FACTOR)
            self._draw(surface, instance, 0.0, 0.0, instance.color, 1.0)
        if instances:
            logger.debug(f"Composited {len(instances)} watermark(s) on page {context.number}")
        return instances

    @staticmethod
    def _draw(surface: RenderingSurface, instance: WatermarkInstance, dx: float, dy: float,
              color: Tuple[float, float, float], opacity_factor: float) -> None:
        surface.draw_watermark_text(
            instance.text,
            instance.x + dx,
            instance.y + dy,
            instance.font_name,
            instance.font_size,
            color,
            clamp_opacity(instance.opacity * opacity_factor),
            instance.rotation_deg,
        )


def _outline_offsets(step: float) -> Sequence[Tuple[float, float]]:
    """The eight offsets surrounding the origin at distance ``step``."""
    return [(dx * step, dy * step) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if dx or dy]
