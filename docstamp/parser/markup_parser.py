"""
Markup parser - builds the ordered content model from extracted HTML.

Handles:
- Headings, paragraphs, list items, tables, images and spacers
- Style hints (bold, italic, alignment) from inline markup and CSS
- Plain-text input and loose text split on blank lines
- Rejection of empty or corrupt sources
"""

from __future__ import annotations

import base64
import binascii
import codecs
import logging
import re
from io import BytesIO
from typing import Iterable, List, Optional, Tuple, Union

from lxml import etree
from lxml import html as lxml_html
from PIL import Image, UnidentifiedImageError

from ..config import MIN_TEXT_LENGTH
from ..exceptions import ExtractionError
from ..models.content import (
    Alignment,
    ContentElement,
    ElementKind,
    ImageData,
    StyleHints,
    TableCell,
    TableData,
    TableRow,
)

logger = logging.getLogger(__name__)

HEADING_TAGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}
PARAGRAPH_TAGS = {"p", "pre"}
LIST_TAGS = {"ul", "ol"}
INLINE_TAGS = {
    "span", "a", "strong", "b", "em", "i", "u", "s", "sup", "sub", "small",
    "font", "code", "mark", "label", "abbr", "cite", "q", "br",
}
SKIPPED_TAGS = {"script", "style", "head", "title", "meta", "link", "noscript"}

SUPPORTED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
DEFAULT_ALT_TEXT = "Embedded image"
BULLET = "•"

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+/-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)
_TEXT_ALIGN_RE = re.compile(r"text-align\s*:\s*([a-z]+)", re.IGNORECASE)
_BLANK_LINE_RE = re.compile(r"\n\s*\n")
_DIMENSION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:px)?\s*$")
_XML_DECLARATION_RE = re.compile(r"^\ufeff?\s*<\?xml[^>]*\?>", re.IGNORECASE)
_ENCODING_RE = re.compile(r"""encoding\s*=\s*["']([\w.:-]+)["']""", re.IGNORECASE)


def normalize_text(text: Optional[str]) -> str:
    """Collapse all runs of whitespace to single spaces."""
    return " ".join((text or "").split())


def split_blocks(text: str) -> List[str]:
    """Split raw text on blank lines into normalized, non-empty blocks."""
    return [block for block in (normalize_text(part) for part in _BLANK_LINE_RE.split(text)) if block]


def decode_markup(markup: bytes) -> str:
    """
    Decode markup bytes, honouring an XML encoding declaration.

    Falls back to UTF-8 (with a byte-order mark stripped) when no
    declaration names a known codec.
    """
    encoding = "utf-8-sig"
    head = markup[:200].decode("ascii", errors="replace")
    declaration = _XML_DECLARATION_RE.match(head)
    if declaration:
        match = _ENCODING_RE.search(declaration.group(0))
        if match:
            try:
                encoding = codecs.lookup(match.group(1)).name
            except LookupError:
                logger.warning(f"Unknown declared encoding '{match.group(1)}', decoding as UTF-8")
    if encoding == "utf-8":
        encoding = "utf-8-sig"
    return markup.decode(encoding, errors="replace")


class MarkupParser:
    """
    Walks a parsed HTML tree in document order and emits ``ContentElement``s.

    Every element carries ``source_index``, its position in the source tree:
    ``2 * n`` for the n-th node in pre-order, ``2 * n + 1`` for text that
    follows node n. Output order therefore equals source order.
    """

    def __init__(self, min_text_length: int = MIN_TEXT_LENGTH):
        self.min_text_length = min_text_length
        self._positions: dict = {}
        self._last_descendant: dict = {}
        self._elements: List[ContentElement] = []
        self._pending: List[str] = []
        self._pending_index: Optional[int] = None
        self._body = None
        self._plain_text: Optional[str] = None

    def parse(self, markup: Union[bytes, str]) -> List[ContentElement]:
        """
        Parse markup into an ordered list of content elements.

        Args:
            markup: HTML produced by a document-to-markup extractor, or plain text

        Returns:
            Content elements in document order

        Raises:
            ExtractionError: If the source is empty, unparsable, or carries
                less text than the configured minimum
        """
        self.load(markup)
        return self.build()

    def load(self, markup: Union[bytes, str]) -> str:
        """
        Parse the source and validate the amount of extracted text.

        Returns:
            The whitespace-normalized extracted text

        Raises:
            ExtractionError: If the source is empty, unparsable or too short
        """
        if isinstance(markup, bytes):
            markup = decode_markup(markup)
        if not isinstance(markup, str):
            raise ExtractionError("Unsupported markup input", type(markup).__name__)

        if "<" not in markup:
            self._body = None
            self._plain_text = markup
            text = normalize_text(markup)
        else:
            self._body = self._load_body(markup)
            self._plain_text = None
            text = normalize_text(self._body.text_content())
        self._check_length(text)
        logger.debug(f"Extracted {len(text)} characters of text")
        return text

    def build(self) -> List[ContentElement]:
        """
        Walk the loaded source and emit content elements in document order.

        Returns:
            Content elements; never empty for accepted input
        """
        if self._plain_text is not None:
            elements = self._plain_text_elements(self._plain_text, 0)
            logger.info(f"Parsed plain-text input into {len(elements)} paragraphs")
            return elements
        if self._body is None:
            raise ExtractionError("No markup loaded")

        body = self._body
        self._reset(body)
        self._walk_container(body)
        self._flush_pending()
        elements = self._elements

        if not elements:
            logger.warning("No block structure recognized, falling back to plain-text paragraphs")
            elements = self._plain_text_elements(body.text_content(), 1)

        logger.info(f"Parsed {len(elements)} content elements")
        return elements

    # Source loading

    def _load_body(self, markup: str):
        # lxml rejects str input that carries an XML encoding declaration
        markup = _XML_DECLARATION_RE.sub("", markup, count=1)
        try:
            document = lxml_html.document_fromstring(markup)
        except (etree.ParserError, etree.XMLSyntaxError, ValueError) as e:
            raise ExtractionError("Markup could not be parsed", str(e)) from e

        body = document.find("body")
        if body is None:
            body = document
        for node in list(body.iter(*SKIPPED_TAGS)):
            node.drop_tree()
        for br in body.iter("br"):
            br.tail = "\n" + (br.tail or "")
        return body

    def _check_length(self, text: str) -> None:
        if len(text) < self.min_text_length:
            raise ExtractionError(
                "Extracted text is too short, the document is likely empty or corrupt",
                f"{len(text)} characters (minimum {self.min_text_length})",
            )

    def _reset(self, body) -> None:
        self._positions = {}
        self._last_descendant = {}
        self._elements = []
        self._pending = []
        self._pending_index = None
        ordered = list(body.iter())
        for position, node in enumerate(ordered):
            self._positions[node] = position
        for node in ordered:
            last = node
            for last in node.iter():
                pass
            self._last_descendant[node] = self._positions[last]

    def _plain_text_elements(self, text: str, base_index: int) -> List[ContentElement]:
        return [
            ContentElement(
                kind=ElementKind.PARAGRAPH,
                text=block,
                style=StyleHints(alignment=Alignment.JUSTIFY),
                source_index=base_index,
            )
            for block in split_blocks(text)
        ]

    # Tree walk

    def _node_index(self, node) -> int:
        return 2 * self._positions[node]

    def _text_index(self, node, tail: bool) -> int:
        anchor = self._last_descendant[node] if tail else self._positions[node]
        return 2 * anchor + 1

    def _emit(self, element: ContentElement) -> None:
        self._flush_pending()
        self._elements.append(element)

    def _buffer(self, text: Optional[str], index: int) -> None:
        if not text or not text.strip():
            if text and _BLANK_LINE_RE.search(text):
                self._pending.append("\n\n")
            return
        if self._pending_index is None:
            self._pending_index = index
        self._pending.append(text)

    def _flush_pending(self) -> None:
        if self._pending_index is None:
            self._pending = []
            return
        for block in split_blocks("".join(self._pending)):
            self._elements.append(ContentElement(
                kind=ElementKind.PARAGRAPH,
                text=block,
                style=StyleHints(alignment=Alignment.JUSTIFY),
                source_index=self._pending_index,
            ))
        self._pending = []
        self._pending_index = None

    def _walk_container(self, node) -> None:
        self._buffer(node.text, self._text_index(node, tail=False))
        for child in node:
            self._walk_node(child)
            self._buffer(child.tail, self._text_index(child, tail=True))

    def _walk_node(self, node) -> None:
        if not isinstance(node.tag, str):
            return
        tag = node.tag.lower()

        if tag in HEADING_TAGS:
            self._text_block(node, ElementKind.HEADING, level=HEADING_TAGS[tag])
        elif tag in PARAGRAPH_TAGS:
            if "list-item" in (node.get("class") or "").split():
                self._text_block(node, ElementKind.LIST, level=1, marker=BULLET)
            else:
                self._text_block(node, ElementKind.PARAGRAPH)
        elif tag == "blockquote":
            self._text_block(node, ElementKind.PARAGRAPH, italic=True)
        elif tag in LIST_TAGS:
            self._list(node, level=1)
        elif tag == "table":
            self._table(node)
        elif tag == "img":
            self._emit(self._image(node))
        elif tag == "hr":
            self._emit(ContentElement(kind=ElementKind.SPACER, source_index=self._node_index(node)))
        elif tag in INLINE_TAGS and not self._has_images(node):
            self._buffer(node.text_content(), self._node_index(node))
        else:
            self._walk_container(node)

    def _text_block(
        self,
        node,
        kind: ElementKind,
        level: Optional[int] = None,
        marker: Optional[str] = None,
        italic: bool = False,
        text: Optional[str] = None,
    ) -> None:
        if text is None:
            text = normalize_text(node.text_content())
        images = [self._image(img) for img in _own_images(node)]

        if not text:
            if images:
                for image in images:
                    self._emit(image)
            elif kind is ElementKind.PARAGRAPH:
                self._emit(ContentElement(kind=ElementKind.SPACER, source_index=self._node_index(node)))
            return

        default_alignment = Alignment.JUSTIFY if kind is ElementKind.PARAGRAPH else Alignment.LEFT
        bold = kind is ElementKind.HEADING or self._fully_wrapped(node, text, ("strong", "b"))
        style = StyleHints(
            bold=bold,
            italic=italic or self._fully_wrapped(node, text, ("em", "i")),
            alignment=self._alignment(node, default_alignment),
        )
        self._emit(ContentElement(
            kind=kind,
            text=f"{marker} {text}" if marker else text,
            level=level,
            style=style,
            source_index=self._node_index(node),
        ))
        for image in images:
            self._emit(image)

    def _list(self, node, level: int) -> None:
        ordered = node.tag.lower() == "ol"
        number = _start_number(node)
        self._buffer(node.text, self._text_index(node, tail=False))
        for item in node:
            tag = item.tag.lower() if isinstance(item.tag, str) else None
            if tag in LIST_TAGS:
                self._list(item, level + 1)
            elif tag == "li":
                nested = [child for child in item if isinstance(child.tag, str) and child.tag.lower() in LIST_TAGS]
                own_text = normalize_text(" ".join(_text_outside(item, nested)))
                marker = f"{number}." if ordered else BULLET
                number += 1
                self._text_block(item, ElementKind.LIST, level=level, marker=marker, text=own_text)
                for sublist in nested:
                    self._list(sublist, level + 1)
            elif tag is not None:
                self._walk_node(item)
            # Loose text between items is kept as paragraph text
            self._buffer(item.tail, self._text_index(item, tail=True))

    def _table(self, node) -> None:
        rows: List[TableRow] = []
        for tr in node.xpath("./tr|./thead/tr|./tbody/tr|./tfoot/tr"):
            in_head = tr.getparent().tag.lower() == "thead"
            cells = []
            for cell in tr.xpath("./td|./th"):
                is_header = in_head or cell.tag.lower() == "th"
                cells.append(TableCell(
                    text=normalize_text(cell.text_content()),
                    is_header=is_header,
                    alignment=Alignment.CENTER if is_header else self._alignment(cell, Alignment.LEFT),
                ))
            if cells:
                rows.append(TableRow(cells=tuple(cells), is_header=all(c.is_header for c in cells)))

        if not rows:
            logger.warning(f"Dropping table at position {self._node_index(node)}: no rows parsed")
            return

        self._emit(ContentElement(
            kind=ElementKind.TABLE,
            text=TableData(rows=tuple(rows)).plain_text(),
            style=StyleHints(alignment=self._alignment(node, Alignment.LEFT)),
            source_index=self._node_index(node),
            table=TableData(rows=tuple(rows)),
        ))
        logger.debug(f"Parsed table with {len(rows)} rows")

    def _image(self, node) -> ContentElement:
        alt = normalize_text(node.get("alt")) or DEFAULT_ALT_TEXT
        payload, mime_type = decode_image_source(node.get("src") or "")
        width = _dimension(node.get("width"))
        height = _dimension(node.get("height"))
        if (width is None or height is None) and payload:
            probed = probe_image_size(payload)
            if probed:
                width, height = probed

        image = ImageData(
            payload=payload,
            mime_type=mime_type,
            original_width=width if width and height else None,
            original_height=height if width and height else None,
            alt_text=alt,
            alignment=self._alignment(node, Alignment.CENTER),
        )
        return ContentElement(
            kind=ElementKind.IMAGE,
            text=alt,
            style=StyleHints(alignment=image.alignment),
            source_index=self._node_index(node),
            image=image,
        )

    # Style helpers

    @staticmethod
    def _has_images(node) -> bool:
        return next(node.iter("img"), None) is not None

    @staticmethod
    def _fully_wrapped(node, text: str, tags: Tuple[str, ...]) -> bool:
        if node.tag.lower() in tags:
            return True
        condition = " or ".join(f"self::{tag}" for tag in tags)
        ancestors = " or ".join(f"ancestor::{tag}" for tag in tags)
        wrapped = node.xpath(f".//*[{condition}][not({ancestors})]")
        if not wrapped:
            return False
        return normalize_text(" ".join(el.text_content() for el in wrapped)) == text

    @staticmethod
    def _alignment(node, default: Alignment) -> Alignment:
        value = node.get("align")
        if not value:
            match = _TEXT_ALIGN_RE.search(node.get("style") or "")
            value = match.group(1) if match else None
        return Alignment.parse(value, default)


def _own_images(node) -> List:
    """Images inside ``node`` that do not belong to a nested list."""
    owned = []
    for img in node.iter("img"):
        parent = img.getparent()
        while parent is not None and parent is not node:
            if isinstance(parent.tag, str) and parent.tag.lower() in LIST_TAGS:
                break
            parent = parent.getparent()
        else:
            owned.append(img)
    return owned


def _text_outside(node, excluded: Iterable) -> List[str]:
    """Collect the text of ``node`` skipping the subtrees in ``excluded``."""
    excluded = list(excluded)
    parts = [node.text or ""]
    for child in node:
        if child not in excluded:
            parts.append(child.text_content() if isinstance(child.tag, str) else "")
        parts.append(child.tail or "")
    return parts


def _start_number(node) -> int:
    try:
        return int(node.get("start", "1"))
    except ValueError:
        return 1


def _dimension(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    match = _DIMENSION_RE.match(value)
    if not match:
        return None
    number = float(match.group(1))
    return number if number > 0 else None


def decode_image_source(src: str) -> Tuple[bytes, str]:
    """
    Decode an ``img`` source into payload bytes and MIME type.

    Only base64 ``data:`` URLs with a supported image type produce a payload;
    anything else yields an empty payload, rendered later as a placeholder.
    """
    match = _DATA_URL_RE.match(src.strip())
    if not match:
        if src:
            logger.debug(f"Image source is not an inline data URL: {src[:60]}")
        return b"", "application/octet-stream"

    mime_type = (match.group("mime") or "").lower()
    if mime_type == "image/jpg":
        mime_type = "image/jpeg"
    if mime_type not in SUPPORTED_IMAGE_TYPES:
        logger.warning(f"Unsupported image type '{mime_type}', image will render as a placeholder")
        return b"", mime_type or "application/octet-stream"
    if not match.group("b64"):
        logger.warning("Image data URL is not base64-encoded, image will render as a placeholder")
        return b"", mime_type

    try:
        payload = base64.b64decode("".join(match.group("data").split()), validate=False)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Image payload could not be decoded: {e}")
        return b"", mime_type
    return payload, mime_type


def probe_image_size(payload: bytes) -> Optional[Tuple[float, float]]:
    """Read pixel dimensions from the image header with Pillow."""
    try:
        with Image.open(BytesIO(payload)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.debug(f"Image header probe failed: {e}")
        return None
    if width <= 0 or height <= 0:
        return None
    return float(width), float(height)


def build_content_elements(markup: Union[bytes, str], min_text_length: int = MIN_TEXT_LENGTH) -> List[ContentElement]:
    """
    Build the ordered content model from markup.

    Args:
        markup: Extracted HTML or plain text
        min_text_length: Minimum normalized text length accepted

    Returns:
        Content elements in document order
    """
    return MarkupParser(min_text_length=min_text_length).parse(markup)
