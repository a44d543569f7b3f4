"""
Content model for docstamp.

Typed, immutable content elements produced by the markup parser and enriched
by the layout estimator. Element order is document order; duplicate text is
valid and carries no identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class ElementKind(str, Enum):
    """Block-level content kinds."""
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    IMAGE = "image"
    SPACER = "spacer"


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    JUSTIFY = "justify"

    @classmethod
    def parse(cls, value: Optional[str], default: "Alignment") -> "Alignment":
        if not value:
            return default
        value = value.strip().lower()
        if value == "centre":
            value = "center"
        try:
            return cls(value)
        except ValueError:
            return default


@dataclass(slots=True, frozen=True)
class StyleHints:
    bold: bool = False
    italic: bool = False
    alignment: Alignment = Alignment.LEFT


@dataclass(slots=True, frozen=True)
class TableCell:
    text: str
    is_header: bool = False
    alignment: Alignment = Alignment.LEFT
    estimated_width: float = 0.0


@dataclass(slots=True, frozen=True)
class TableRow:
    cells: Tuple[TableCell, ...]
    is_header: bool = False


@dataclass(slots=True, frozen=True)
class TableData:
    rows: Tuple[TableRow, ...]

    @property
    def column_count(self) -> int:
        return max((len(row.cells) for row in self.rows), default=0)

    @property
    def has_headers(self) -> bool:
        return any(row.is_header for row in self.rows)

    def plain_text(self) -> str:
        return " ".join(cell.text for row in self.rows for cell in row.cells if cell.text)


@dataclass(slots=True, frozen=True)
class ImageData:
    """
    Image payload and its dimensions.

    ``original_width``/``original_height`` are ``None`` when the true pixel
    size is unknown; the layout estimator then synthesizes them. Display
    dimensions are filled in by the estimator.
    """
    payload: bytes
    mime_type: str
    original_width: Optional[float] = None
    original_height: Optional[float] = None
    display_width: float = 0.0
    display_height: float = 0.0
    alt_text: str = "Embedded image"
    alignment: Alignment = Alignment.CENTER

    @property
    def aspect_ratio(self) -> float:
        if self.original_width and self.original_height:
            return self.original_width / self.original_height
        if self.display_height:
            return self.display_width / self.display_height
        return 1.0

    @property
    def has_known_size(self) -> bool:
        return bool(self.original_width and self.original_height)


@dataclass(slots=True, frozen=True)
class Footprint:
    """Rendered footprint computed by the layout estimator."""
    font_size: float
    line_height: float
    lines: Tuple[str, ...] = ()
    leading: float = 0.0
    spacing_after: float = 0.0
    column_widths: Tuple[float, ...] = ()
    row_heights: Tuple[float, ...] = ()
    row_lines: Tuple[Tuple[Tuple[str, ...], ...], ...] = ()
    indent: float = 0.0


@dataclass(slots=True, frozen=True)
class ContentElement:
    kind: ElementKind
    text: str = ""
    level: Optional[int] = None
    style: StyleHints = field(default_factory=StyleHints)
    estimated_height: float = 0.0
    source_index: int = 0
    table: Optional[TableData] = None
    image: Optional[ImageData] = None
    footprint: Optional[Footprint] = None

    @property
    def is_text(self) -> bool:
        """Paragraph and heading text counts toward density and length buckets."""
        return self.kind in (ElementKind.PARAGRAPH, ElementKind.HEADING)
