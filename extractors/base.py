"""
Shared primitives for style and variable extraction.

Holds the color normalizer, the token name generator, the closed type
enums used for dispatch, and the record dataclasses every extractor returns.
"""

import inspect
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_GRID_COUNT = 12
DEFAULT_GRID_GUTTER = 20
DEFAULT_GRID_MARGIN = 0
DEFAULT_FONT_WEIGHT = 400

# Longest keywords first so "semibold" wins over "bold".
FONT_WEIGHT_KEYWORDS: List[Tuple[str, int]] = [
    ('extralight', 200),
    ('ultralight', 200),
    ('extrabold', 800),
    ('ultrabold', 800),
    ('semibold', 600),
    ('demibold', 600),
    ('regular', 400),
    ('medium', 500),
    ('normal', 400),
    ('hairline', 100),
    ('heavy', 800),
    ('black', 900),
    ('light', 300),
    ('thin', 100),
    ('book', 400),
    ('bold', 700),
]

ALIAS_TYPE = 'VARIABLE_ALIAS'


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ExtractionError(ValueError):
    """A field of a single style or variable could not be converted."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class StyleType(str, Enum):
    """Type tag carried by every exported style record."""
    SOLID = "solid"
    LINEAR = "linear"
    RADIAL = "radial"
    ANGULAR = "angular"
    DIAMOND = "diamond"
    TEXT = "text"
    EFFECT = "effect"
    GRID = "grid"
    IMAGE = "image"
    UNSUPPORTED = "unsupported"


class PaintType(str, Enum):
    """Figma paint types understood by the paint extractor."""
    SOLID = "SOLID"
    GRADIENT_LINEAR = "GRADIENT_LINEAR"
    GRADIENT_RADIAL = "GRADIENT_RADIAL"
    GRADIENT_ANGULAR = "GRADIENT_ANGULAR"
    GRADIENT_DIAMOND = "GRADIENT_DIAMOND"
    IMAGE = "IMAGE"
    UNSUPPORTED = "UNSUPPORTED"

    @classmethod
    def parse(cls, value: Any) -> 'PaintType':
        try:
            return cls(value)
        except ValueError:
            return cls.UNSUPPORTED


class EffectType(str, Enum):
    """Figma effect types. Only shadows produce CSS."""
    DROP_SHADOW = "DROP_SHADOW"
    INNER_SHADOW = "INNER_SHADOW"
    LAYER_BLUR = "LAYER_BLUR"
    BACKGROUND_BLUR = "BACKGROUND_BLUR"
    UNSUPPORTED = "UNSUPPORTED"

    @classmethod
    def parse(cls, value: Any) -> 'EffectType':
        try:
            return cls(value)
        except ValueError:
            return cls.UNSUPPORTED

    @property
    def is_shadow(self) -> bool:
        return self in (EffectType.DROP_SHADOW, EffectType.INNER_SHADOW)


class VariableType(str, Enum):
    """Resolved variable type, keyed by Figma's ``resolvedType``."""
    COLOR = "COLOR"
    FLOAT = "FLOAT"
    STRING = "STRING"
    BOOLEAN = "BOOLEAN"
    UNSUPPORTED = "UNSUPPORTED"

    @classmethod
    def parse(cls, value: Any) -> 'VariableType':
        try:
            return cls(value)
        except ValueError:
            return cls.UNSUPPORTED

    @property
    def tag(self) -> str:
        return self.value.lower()

    @property
    def bucket(self) -> str:
        """Name of the output list this type is grouped under."""
        return VARIABLE_BUCKETS[self]


VARIABLE_BUCKETS: Dict[VariableType, str] = {
    VariableType.COLOR: 'colors',
    VariableType.FLOAT: 'numbers',
    VariableType.STRING: 'strings',
    VariableType.BOOLEAN: 'booleans',
}


# ---------------------------------------------------------------------------
# Number helpers
# ---------------------------------------------------------------------------

def is_number(value: Any) -> bool:
    """True for finite ints/floats. Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round (halves go up)."""
    return int(math.floor(value + 0.5))


def format_number(value: float, digits: int = 2) -> str:
    """Format a number for CSS output without trailing zeros."""
    rounded = round(float(value), digits)
    if rounded == 0:
        return '0'
    if rounded.is_integer():
        return str(int(rounded))
    return f"{rounded:.{digits}f}".rstrip('0').rstrip('.')


def clean_number(value: float, digits: int = 4) -> float:
    """Round a number for structured output, collapsing integral floats."""
    rounded = round(float(value), digits)
    if rounded.is_integer():
        return int(rounded)
    return rounded


# ---------------------------------------------------------------------------
# Color normalizer
# ---------------------------------------------------------------------------

def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class ColorValue:
    """A validated color with channels in the [0, 1] source range."""
    r: float
    g: float
    b: float
    a: float = 1.0
    # set when the unrounded alpha was below 1
    translucent: bool = False

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return (
            round_half_up(self.r * 255),
            round_half_up(self.g * 255),
            round_half_up(self.b * 255),
        )

    @property
    def hex(self) -> str:
        r, g, b = self.rgb
        return f"#{r:02x}{g:02x}{b:02x}"

    @property
    def rgba(self) -> str:
        r, g, b = self.rgb
        return f"rgba({r}, {g}, {b}, {format_number(self.a)})"

    @property
    def opaque(self) -> bool:
        return self.a >= 1 and not self.translucent

    @property
    def css(self) -> str:
        """Hex when fully opaque, otherwise rgba, even if alpha rounds to 1."""
        if not self.opaque:
            return self.rgba
        return self.hex

    def to_dict(self) -> Dict[str, str]:
        return {'hex': self.hex, 'rgba': self.rgba}


def normalize_color(color: Any, opacity: Optional[float] = None) -> Optional[ColorValue]:
    """Convert a Figma ``{r, g, b, a?}`` color into a ColorValue.

    Returns None when the input is not a color object or any channel is
    missing or not a finite number. Callers must drop the owning record
    rather than substitute black.

    ``opacity`` (a paint-level multiplier) is folded into alpha.
    """
    if not isinstance(color, dict):
        return None

    channels = []
    for key in ('r', 'g', 'b'):
        value = color.get(key)
        if not is_number(value):
            return None
        channels.append(_clamp(float(value)))

    alpha = color.get('a', 1)
    if alpha is None:
        alpha = 1
    if not is_number(alpha):
        return None
    if opacity is not None:
        if not is_number(opacity):
            return None
        alpha = alpha * opacity

    alpha = _clamp(float(alpha))
    return ColorValue(r=channels[0], g=channels[1], b=channels[2], a=round(alpha, 2), translucent=alpha < 1)


# ---------------------------------------------------------------------------
# Token name generator
# ---------------------------------------------------------------------------

_DISALLOWED_TOKEN_CHARS = re.compile(r'[^a-z0-9\s_-]')
_WHITESPACE = re.compile(r'\s+')
_UNDERSCORE_RUNS = re.compile(r'_{2,}')
_HYPHEN_RUNS = re.compile(r'-{2,}')
_EDGE_SEPARATORS = re.compile(r'^[-_]+|[-_]+$')


def slugify(name: Optional[str]) -> str:
    """Turn a display name such as ``"Brand / Primary"`` into ``brand-primary``.

    Tokens are not unique: two display names may map to the same token.
    """
    if not name:
        return ''
    token = name.lower()
    token = _DISALLOWED_TOKEN_CHARS.sub('', token)
    token = _WHITESPACE.sub('-', token)
    token = _UNDERSCORE_RUNS.sub('_', token)
    token = _HYPHEN_RUNS.sub('-', token)
    return _EDGE_SEPARATORS.sub('', token)


def kebab_case(value: str) -> str:
    """``SMALL_CAPS_FORCED`` -> ``small-caps-forced``."""
    return value.strip().lower().replace('_', '-').replace(' ', '-')


# ---------------------------------------------------------------------------
# Style records
# ---------------------------------------------------------------------------

def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class GradientStop:
    position: float
    color: ColorValue

    @property
    def css(self) -> str:
        return f"{self.color.css} {format_number(self.position * 100)}%"

    def to_dict(self) -> Dict[str, Any]:
        return {'position': clean_number(self.position), 'color': self.color.to_dict()}


@dataclass(frozen=True)
class PaintStyleRecord:
    name: str
    token: str
    type: StyleType
    description: Optional[str] = None
    opacity: float = 1
    color: Optional[ColorValue] = None
    stops: Tuple[GradientStop, ...] = ()
    angle: Optional[int] = None
    css: Optional[str] = None
    value: Optional[str] = None
    paint_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'name': self.name,
            'token': self.token,
            'description': self.description or None,
            'type': self.type.value,
            'opacity': clean_number(self.opacity),
        }
        if self.color is not None:
            data['hex'] = self.color.hex
            data['rgba'] = self.color.rgba
        if self.stops:
            data['gradientStops'] = [stop.to_dict() for stop in self.stops]
        data['angle'] = self.angle
        data['value'] = self.value
        data['css'] = self.css
        data['paintType'] = self.paint_type
        return _compact(data)


@dataclass(frozen=True)
class TextStyleRecord:
    name: str
    token: str
    font_family: str
    font_style: str
    font_weight: int
    font_size: float
    italic: bool = False
    description: Optional[str] = None
    line_height: Any = None
    letter_spacing: Optional[str] = None
    text_case: Optional[str] = None
    text_decoration: Optional[str] = None
    paragraph_spacing: Optional[float] = None
    paragraph_indent: Optional[float] = None
    type: StyleType = StyleType.TEXT

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'name': self.name,
            'token': self.token,
            'description': self.description or None,
            'type': self.type.value,
            'fontFamily': self.font_family,
            'fontStyle': self.font_style,
            'fontWeight': self.font_weight,
            'fontSize': clean_number(self.font_size),
            'italic': self.italic,
            'lineHeight': self.line_height,
            'letterSpacing': self.letter_spacing,
            'textCase': self.text_case,
            'textDecoration': self.text_decoration,
            'paragraphSpacing': self.paragraph_spacing,
            'paragraphIndent': self.paragraph_indent,
        })


@dataclass(frozen=True)
class EffectEntry:
    type: str
    visible: bool
    radius: float = 0
    spread: float = 0
    offset: Optional[Tuple[float, float]] = None
    color: Optional[ColorValue] = None
    blend_mode: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'type': self.type,
            'visible': self.visible,
            'radius': clean_number(self.radius),
            'color': self.color.rgba if self.color else None,
            'offset': None,
            'spread': clean_number(self.spread),
            'blendMode': self.blend_mode,
        }
        if self.offset is not None:
            data['offset'] = {'x': clean_number(self.offset[0]), 'y': clean_number(self.offset[1])}
        return data


@dataclass(frozen=True)
class EffectStyleRecord:
    name: str
    token: str
    effects: Tuple[EffectEntry, ...]
    description: Optional[str] = None
    css: Optional[str] = None
    type: StyleType = StyleType.EFFECT

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'name': self.name,
            'token': self.token,
            'description': self.description or None,
            'type': self.type.value,
            'effects': [effect.to_dict() for effect in self.effects],
            'css': self.css,
        })


@dataclass(frozen=True)
class GridEntry:
    pattern: str
    count: int = DEFAULT_GRID_COUNT
    gutter: float = DEFAULT_GRID_GUTTER
    margin: float = DEFAULT_GRID_MARGIN
    alignment: Optional[str] = None
    section_size: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'pattern': self.pattern,
            'count': self.count,
            'gutter': clean_number(self.gutter),
            'margin': clean_number(self.margin),
            'alignment': self.alignment,
            'sectionSize': clean_number(self.section_size) if self.section_size is not None else None,
        })


@dataclass(frozen=True)
class GridStyleRecord:
    name: str
    token: str
    grids: Tuple[GridEntry, ...]
    description: Optional[str] = None
    type: StyleType = StyleType.GRID

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'name': self.name,
            'token': self.token,
            'description': self.description or None,
            'type': self.type.value,
            'grids': [grid.to_dict() for grid in self.grids],
        })


# ---------------------------------------------------------------------------
# Variable records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VariableRecord:
    name: str
    token: str
    type: VariableType
    collection: str
    value: Any
    values: Optional[Dict[str, Any]] = None
    description: Optional[str] = None
    scopes: Tuple[str, ...] = ()
    hidden_from_publishing: bool = False
    collection_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'name': self.name,
            'token': self.token,
            'type': self.type.tag,
            'collection': self.collection,
            'description': self.description or None,
            'scopes': list(self.scopes),
            'hiddenFromPublishing': self.hidden_from_publishing,
            'value': self.value,
        }
        if self.values is not None:
            data['values'] = dict(self.values)
        return _compact(data)


# ---------------------------------------------------------------------------
# Raw record helpers
# ---------------------------------------------------------------------------

def style_identity(raw: Dict[str, Any]) -> Tuple[str, str, Optional[str]]:
    """Return ``(name, token, description)`` for a raw style or variable."""
    name = raw.get('name') or ''
    if not isinstance(name, str):
        raise ExtractionError(f"name must be a string, got {type(name).__name__}")
    description = raw.get('description')
    if description is not None and not isinstance(description, str):
        description = str(description)
    return name, slugify(name), description


@dataclass
class ExtractionFailure:
    """One style or variable that could not be converted."""
    category: str
    name: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {'category': self.category, 'name': self.name, 'reason': self.reason}


@dataclass
class ExtractionBatch:
    """Records and failures collected from one raw list."""
    records: List[Any] = field(default_factory=list)
    failures: List[ExtractionFailure] = field(default_factory=list)
    skipped: int = 0


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable; sources may be sync or async."""
    if inspect.isawaitable(value):
        return await value
    return value
