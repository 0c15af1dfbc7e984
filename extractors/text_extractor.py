"""
Text style extraction.

Percent-based units are always converted to ratios: a 150% line height
becomes ``1.5`` and a -2% letter spacing becomes ``-0.02em``.
"""

import re
from typing import Any, Dict, Optional

from extractors.base import (
    DEFAULT_FONT_WEIGHT,
    FONT_WEIGHT_KEYWORDS,
    ExtractionError,
    TextStyleRecord,
    clean_number,
    format_number,
    is_number,
    kebab_case,
    style_identity,
)


_WEIGHT_NUMBER = re.compile(r'(?<!\d)([1-9]\d{2})(?!\d)')
_STYLE_SEPARATORS = re.compile(r'[\s_-]+')


def parse_font_weight(font_style: Optional[str]) -> int:
    """Map a font style name (``"Semi Bold Italic"``) to a CSS weight."""
    if not font_style:
        return DEFAULT_FONT_WEIGHT
    compact = _STYLE_SEPARATORS.sub('', font_style.lower())
    for keyword, weight in FONT_WEIGHT_KEYWORDS:
        if keyword in compact:
            return weight
    match = _WEIGHT_NUMBER.search(font_style)
    if match:
        return int(match.group(1))
    return DEFAULT_FONT_WEIGHT


def is_italic(font_style: Optional[str]) -> bool:
    if not font_style:
        return False
    lowered = font_style.lower()
    return 'italic' in lowered or 'oblique' in lowered


def _unit_value(raw: Dict[str, Any], field: str) -> float:
    value = raw.get('value')
    if not is_number(value):
        raise ExtractionError(f"{field} value is not a number: {value!r}")
    return float(value)


def convert_line_height(raw: Any) -> Any:
    """``{unit, value}`` -> ``"normal"``, ``"24px"`` or a unitless ratio."""
    if raw is None:
        return None
    if is_number(raw):
        return f"{format_number(raw)}px"
    if not isinstance(raw, dict):
        raise ExtractionError(f"unrecognised lineHeight: {raw!r}")

    unit = raw.get('unit', 'AUTO')
    if unit == 'AUTO':
        return 'normal'
    if unit == 'PIXELS':
        return f"{format_number(_unit_value(raw, 'lineHeight'))}px"
    if unit == 'PERCENT':
        return clean_number(_unit_value(raw, 'lineHeight') / 100)
    raise ExtractionError(f"unknown lineHeight unit: {unit!r}")


def convert_letter_spacing(raw: Any) -> Optional[str]:
    """``{unit, value}`` -> ``"0.5px"`` or ``"-0.02em"``."""
    if raw is None:
        return None
    if is_number(raw):
        return f"{format_number(raw)}px"
    if not isinstance(raw, dict):
        raise ExtractionError(f"unrecognised letterSpacing: {raw!r}")

    unit = raw.get('unit', 'PIXELS')
    if unit == 'PIXELS':
        return f"{format_number(_unit_value(raw, 'letterSpacing'))}px"
    if unit == 'PERCENT':
        return f"{format_number(_unit_value(raw, 'letterSpacing') / 100, digits=4)}em"
    raise ExtractionError(f"unknown letterSpacing unit: {unit!r}")


def _non_default(value: Any, default: str) -> Optional[str]:
    if not value or value == default:
        return None
    return kebab_case(str(value))


def _non_zero(value: Any) -> Optional[float]:
    if is_number(value) and value != 0:
        return clean_number(value)
    return None


def extract_text_style(style: Dict[str, Any]) -> Optional[TextStyleRecord]:
    """Convert a raw text style into a TextStyleRecord.

    Raises ExtractionError when the font family or size is missing, since
    a text style without them cannot be rendered.
    """
    name, token, description = style_identity(style)

    font_name = style.get('fontName') or {}
    family = font_name.get('family') if isinstance(font_name, dict) else None
    if not family:
        raise ExtractionError("text style has no font family")
    font_style = font_name.get('style') or 'Regular'

    font_size = style.get('fontSize')
    if not is_number(font_size):
        raise ExtractionError(f"fontSize is not a number: {font_size!r}")

    return TextStyleRecord(
        name=name,
        token=token,
        description=description,
        font_family=family,
        font_style=font_style,
        font_weight=parse_font_weight(font_style),
        font_size=font_size,
        italic=is_italic(font_style),
        line_height=convert_line_height(style.get('lineHeight')),
        letter_spacing=convert_letter_spacing(style.get('letterSpacing')),
        text_case=_non_default(style.get('textCase'), 'ORIGINAL'),
        text_decoration=_non_default(style.get('textDecoration'), 'NONE'),
        paragraph_spacing=_non_zero(style.get('paragraphSpacing')),
        paragraph_indent=_non_zero(style.get('paragraphIndent')),
    )
