"""
Watermark settings model.

Handles watermark configuration, validation, and loading from the JSON shape
used by upload front-ends (camelCase keys) as well as snake_case dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

from ..exceptions import SettingsError

logger = logging.getLogger(__name__)

FONT_SIZE_POINTS = {
    "small": 36.0,
    "medium": 48.0,
    "large": 64.0,
}

DEFAULT_TEXT = "CONFIDENTIAL"
DEFAULT_COLOR = "#1e40af"
DEFAULT_OPACITY = 30.0


class PositionType(str, Enum):
    CENTER = "center"
    CORNER = "corner"
    CUSTOM = "custom"
    MULTIPLE = "multiple"


class CornerType(str, Enum):
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"


class TransparencyType(str, Enum):
    UNIFORM = "uniform"
    GRADIENT = "gradient"
    FADE = "fade"


class PageRangeType(str, Enum):
    ALL = "all"
    FIRST = "first"
    LAST = "last"
    ODD = "odd"
    EVEN = "even"


class Template(str, Enum):
    CORPORATE = "corporate"
    CONFIDENTIAL = "confidential"
    DRAFT = "draft"
    CUSTOM = "custom"


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, so camelCase and snake_case both load."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _enum(enum_cls, value: Any, what: str):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise SettingsError(f"Invalid {what}", f"{value!r} (expected one of: {allowed})")


def _number(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise SettingsError(f"Invalid {what}", repr(value))
    try:
        return float(value)
    except ValueError:
        raise SettingsError(f"Invalid {what}", repr(value))


def _point(value: Any, what: str) -> Tuple[float, float]:
    if isinstance(value, dict):
        return _number(value.get("x", 0), what), _number(value.get("y", 0), what)
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return _number(value[0], what), _number(value[1], what)
    raise SettingsError(f"Invalid {what}", repr(value))


@dataclass(slots=True)
class WatermarkPosition:
    type: PositionType = PositionType.CENTER
    corner: CornerType = CornerType.BOTTOM_RIGHT
    coordinates: List[Tuple[float, float]] = field(default_factory=list)
    offset: Tuple[float, float] = (0.0, 0.0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatermarkPosition":
        position = cls(type=_enum(PositionType, _pick(data, "type", default="center"), "position type"))
        corner = _pick(data, "corner")
        if corner is not None:
            position.corner = _enum(CornerType, corner, "corner")
        position.coordinates = [_point(item, "coordinate") for item in _pick(data, "coordinates", default=[])]
        offset = _pick(data, "offset")
        if offset is not None:
            position.offset = _point(offset, "offset")
        return position


@dataclass(slots=True)
class ShadowEffect:
    offset_x: float = 2.0
    offset_y: float = -2.0
    color: str = "#000000"
    blur: float = 0.0


@dataclass(slots=True)
class OutlineEffect:
    width: float = 1.0
    color: str = "#000000"


@dataclass(slots=True)
class WatermarkStyle:
    font_family: str = "helvetica"
    rotation_deg: Optional[float] = None
    shadow: Optional[ShadowEffect] = None
    outline: Optional[OutlineEffect] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatermarkStyle":
        style = cls(font_family=str(_pick(data, "fontFamily", "font_family", default="helvetica")).lower())
        rotation = _pick(data, "rotationDeg", "rotation_deg", "rotation")
        if rotation is not None:
            style.rotation_deg = _number(rotation, "rotation")

        effects = _pick(data, "effects", default={}) or {}
        shadow = effects.get("shadow")
        if shadow:
            style.shadow = ShadowEffect(
                offset_x=_number(_pick(shadow, "offsetX", "offset_x", default=2.0), "shadow offset"),
                offset_y=_number(_pick(shadow, "offsetY", "offset_y", default=-2.0), "shadow offset"),
                color=str(_pick(shadow, "color", default="#000000")),
                blur=_number(_pick(shadow, "blur", default=0.0), "shadow blur"),
            )
        outline = effects.get("outline")
        if outline:
            style.outline = OutlineEffect(
                width=_number(_pick(outline, "width", default=1.0), "outline width"),
                color=str(_pick(outline, "color", default="#000000")),
            )
        return style


@dataclass(slots=True)
class WatermarkTransparency:
    """
    Opacity variation across the page.

    ``value`` is the flat opacity (0-100) for uniform and fade transparency;
    gradient transparency interpolates between ``start`` and ``end``.
    """
    type: TransparencyType = TransparencyType.UNIFORM
    value: Optional[float] = None
    start: Optional[float] = None
    end: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatermarkTransparency":
        transparency = cls(type=_enum(TransparencyType, _pick(data, "type", default="uniform"), "transparency type"))
        value = _pick(data, "value")
        if isinstance(value, dict):
            transparency.start = _number(value.get("start", 0), "gradient start")
            transparency.end = _number(value.get("end", 0), "gradient end")
        elif value is not None:
            transparency.value = _number(value, "transparency value")
        return transparency


@dataclass(slots=True)
class ConditionalRules:
    has_images: Optional[bool] = None
    has_tables: Optional[bool] = None
    content_length: Optional[str] = None


@dataclass(slots=True)
class PageSpecific:
    page_range: Union[PageRangeType, Tuple[int, ...]] = PageRangeType.ALL
    conditional: Optional[ConditionalRules] = None
    custom_text: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageSpecific":
        raw_range = _pick(data, "pageRange", "page_range", default="all")
        if isinstance(raw_range, (list, tuple)):
            page_range: Union[PageRangeType, Tuple[int, ...]] = tuple(int(_number(n, "page number")) for n in raw_range)
        else:
            page_range = _enum(PageRangeType, raw_range, "page range")

        conditional = None
        raw_conditional = _pick(data, "conditional")
        if raw_conditional:
            length = _pick(raw_conditional, "contentLength", "content_length")
            if length is not None and length not in ("short", "medium", "long"):
                raise SettingsError("Invalid content length bucket", repr(length))
            conditional = ConditionalRules(
                has_images=_pick(raw_conditional, "hasImages", "has_images"),
                has_tables=_pick(raw_conditional, "hasTables", "has_tables"),
                content_length=length,
            )
        return cls(
            page_range=page_range,
            conditional=conditional,
            custom_text=_pick(data, "customText", "custom_text"),
        )


@dataclass(slots=True)
class WatermarkSettings:
    """
    Document-wide watermark configuration.

    ``opacity`` is expressed on a 0-100 scale. Out-of-range values are kept
    as given; the compositor clamps every resolved instance into [0, 1].
    """
    text: str = DEFAULT_TEXT
    opacity: float = DEFAULT_OPACITY
    font_size: Union[str, float] = "medium"
    color: str = DEFAULT_COLOR
    position: WatermarkPosition = field(default_factory=WatermarkPosition)
    style: WatermarkStyle = field(default_factory=WatermarkStyle)
    transparency: Optional[WatermarkTransparency] = None
    page_specific: Optional[PageSpecific] = None
    template: Optional[Template] = None

    @property
    def font_size_points(self) -> float:
        """Font size in points, mapping the named sizes."""
        if isinstance(self.font_size, (int, float)):
            return float(self.font_size)
        return FONT_SIZE_POINTS.get(str(self.font_size).lower(), FONT_SIZE_POINTS["medium"])

    @property
    def is_large(self) -> bool:
        return self.font_size == "large" or self.font_size_points >= FONT_SIZE_POINTS["large"]

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "WatermarkSettings":
        """
        Create settings from a dictionary.

        Args:
            data: Settings dictionary (camelCase or snake_case keys)

        Returns:
            WatermarkSettings instance

        Raises:
            SettingsError: If a value cannot be interpreted
        """
        data = data or {}
        if not isinstance(data, dict):
            raise SettingsError("Watermark settings must be a mapping", type(data).__name__)

        font_size = _pick(data, "fontSize", "font_size", default="medium")
        if isinstance(font_size, str) and font_size.lower() not in FONT_SIZE_POINTS:
            font_size = _number(font_size, "font size")
        elif not isinstance(font_size, str):
            font_size = _number(font_size, "font size")

        settings = cls(
            text=str(_pick(data, "text", default=DEFAULT_TEXT)),
            opacity=_number(_pick(data, "opacity", default=DEFAULT_OPACITY), "opacity"),
            font_size=font_size.lower() if isinstance(font_size, str) else font_size,
            color=str(_pick(data, "color", default=DEFAULT_COLOR)),
        )
        if not 0.0 <= settings.opacity <= 100.0:
            logger.warning(f"Watermark opacity {settings.opacity} outside 0-100, resolved values will be clamped")

        position = _pick(data, "position")
        if position:
            settings.position = WatermarkPosition.from_dict(position)
        style = _pick(data, "style")
        if style:
            settings.style = WatermarkStyle.from_dict(style)
        transparency = _pick(data, "transparency")
        if transparency:
            settings.transparency = WatermarkTransparency.from_dict(transparency)
        page_specific = _pick(data, "pageSpecific", "page_specific")
        if page_specific:
            settings.page_specific = PageSpecific.from_dict(page_specific)
        template = _pick(data, "template")
        if template:
            settings.template = _enum(Template, template, "template")

        logger.debug(f"Watermark settings loaded: text='{settings.text}', position={settings.position.type.value}")
        return settings

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert settings to the camelCase dictionary shape.

        Returns:
            Dictionary representation
        """
        data: Dict[str, Any] = {
            "text": self.text,
            "opacity": self.opacity,
            "fontSize": self.font_size,
            "color": self.color,
            "position": {
                "type": self.position.type.value,
                "corner": self.position.corner.value,
                "coordinates": [{"x": x, "y": y} for x, y in self.position.coordinates],
                "offset": {"x": self.position.offset[0], "y": self.position.offset[1]},
            },
            "style": {"fontFamily": self.style.font_family},
        }
        if self.style.rotation_deg is not None:
            data["style"]["rotation"] = self.style.rotation_deg
        effects: Dict[str, Any] = {}
        if self.style.shadow:
            shadow = self.style.shadow
            effects["shadow"] = {"offsetX": shadow.offset_x, "offsetY": shadow.offset_y,
                                 "color": shadow.color, "blur": shadow.blur}
        if self.style.outline:
            effects["outline"] = {"width": self.style.outline.width, "color": self.style.outline.color}
        if effects:
            data["style"]["effects"] = effects
        if self.transparency:
            if self.transparency.type is TransparencyType.GRADIENT:
                value: Any = {"start": self.transparency.start, "end": self.transparency.end}
            else:
                value = self.transparency.value
            data["transparency"] = {"type": self.transparency.type.value, "value": value}
        if self.page_specific:
            page_range = self.page_specific.page_range
            entry: Dict[str, Any] = {
                "pageRange": list(page_range) if isinstance(page_range, tuple) else page_range.value,
            }
            if self.page_specific.custom_text:
                entry["customText"] = self.page_specific.custom_text
            conditional = self.page_specific.conditional
            if conditional:
                entry["conditional"] = {
                    key: value for key, value in (
                        ("hasImages", conditional.has_images),
                        ("hasTables", conditional.has_tables),
                        ("contentLength", conditional.content_length),
                    ) if value is not None
                }
            data["pageSpecific"] = entry
        if self.template:
            data["template"] = self.template.value
        return data


@dataclass(slots=True, frozen=True)
class WatermarkInstance:
    """
    One resolved watermark drawn on one page.

    ``x``/``y`` are the centre anchor of the text in PDF coordinates; the text
    is rotated about that anchor. ``opacity`` is always within [0, 1].
    """
    text: str
    x: float
    y: float
    rotation_deg: float
    opacity: float
    font_name: str
    font_size: float
    color: Tuple[float, float, float]
