"""Rendering surface contract and an in-memory recording implementation."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..config import PageConfig
from ..exceptions import MediaError, RenderingError
from ..models.content import ImageData

RGB = Tuple[float, float, float]
BLACK: RGB = (0.0, 0.0, 0.0)


class RenderingSurface(ABC):
    """
    Page-drawing primitives driven by the pagination engine.

    Coordinates are PDF points with the origin at the bottom-left corner.
    """

    @abstractmethod
    def begin_page(self, page_config: PageConfig) -> None:
        """Open a new page with the given geometry."""

    @abstractmethod
    def end_page(self) -> None:
        """Finish the current page."""

    @abstractmethod
    def draw_text(self, text: str, x: float, y: float, font_name: str, font_size: float,
                  color: RGB = BLACK) -> None:
        """Draw a single line of text with its baseline starting at ``x, y``."""

    @abstractmethod
    def draw_watermark_text(self, text: str, x: float, y: float, font_name: str, font_size: float,
                            color: RGB, opacity: float, rotation_deg: float) -> None:
        """Draw semi-transparent text centred on ``x, y`` and rotated about it."""

    @abstractmethod
    def draw_image(self, image: ImageData, x: float, y: float, width: float, height: float) -> None:
        """
        Draw an image with its bottom-left corner at ``x, y``.

        Raises:
            MediaError: If the payload cannot be decoded or embedded
        """

    @abstractmethod
    def draw_rect(self, x: float, y: float, width: float, height: float,
                  stroke_color: Optional[RGB] = BLACK, fill_color: Optional[RGB] = None,
                  line_width: float = 1.0) -> None:
        """Draw a rectangle with its bottom-left corner at ``x, y``."""

    @abstractmethod
    def finish(self) -> bytes:
        """Finalize the artifact and return its bytes."""


@dataclass
class DrawCommand:
    op: str
    params: Dict[str, Any]


@dataclass
class RecordedPage:
    number: int
    width: float
    height: float
    commands: List[DrawCommand] = field(default_factory=list)

    def ops(self, op: str) -> List[DrawCommand]:
        return [command for command in self.commands if command.op == op]

    @property
    def texts(self) -> List[str]:
        return [command.params["text"] for command in self.ops("text")]

    @property
    def watermarks(self) -> List[DrawCommand]:
        return self.ops("watermark")


class RecordingSurface(RenderingSurface):
    """
    Surface that records draw calls instead of producing a document.

    Used for planning and tests. Images without a payload fail like an
    undecodable image would on a real surface.
    """

    def __init__(self):
        self.pages: List[RecordedPage] = []
        self._current: Optional[RecordedPage] = None
        self.finished = False

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def _record(self, op: str, **params: Any) -> None:
        if self._current is None:
            raise RenderingError("Draw call outside of a page", op)
        self._current.commands.append(DrawCommand(op, params))

    def begin_page(self, page_config: PageConfig) -> None:
        if self._current is not None:
            raise RenderingError("Page already open", f"page {self._current.number}")
        self._current = RecordedPage(len(self.pages) + 1, page_config.width, page_config.height)
        self.pages.append(self._current)

    def end_page(self) -> None:
        if self._current is None:
            raise RenderingError("No page open")
        self._current = None

    def draw_text(self, text, x, y, font_name, font_size, color=BLACK):
        self._record("text", text=text, x=x, y=y, font_name=font_name, font_size=font_size, color=color)

    def draw_watermark_text(self, text, x, y, font_name, font_size, color, opacity, rotation_deg):
        self._record("watermark", text=text, x=x, y=y, font_name=font_name, font_size=font_size,
                     color=color, opacity=opacity, rotation_deg=rotation_deg)

    def draw_image(self, image, x, y, width, height):
        if not image.payload:
            raise MediaError("Image has no decodable payload", image.mime_type)
        self._record("image", mime_type=image.mime_type, x=x, y=y, width=width, height=height)

    def draw_rect(self, x, y, width, height, stroke_color=BLACK, fill_color=None, line_width=1.0):
        self._record("rect", x=x, y=y, width=width, height=height,
                     stroke_color=stroke_color, fill_color=fill_color, line_width=line_width)

    def finish(self) -> bytes:
        if self._current is not None:
            self.end_page()
        self.finished = True
        summary = [
            {"number": page.number, "width": page.width, "height": page.height,
             "texts": page.texts, "watermarks": [c.params["text"] for c in page.watermarks]}
            for page in self.pages
        ]
        return json.dumps(summary).encode("utf-8")
