"""
Paint (color) style extraction.

Only the first paint of a style is exported. Solid paints become hex/rgba
colors, gradients become an ordered stop list plus a CSS gradient string,
and image or unknown paints degrade to a placeholder record.
"""

import math
from typing import Any, Dict, List, Optional

from extractors.base import (
    ExtractionError,
    GradientStop,
    PaintStyleRecord,
    PaintType,
    StyleType,
    is_number,
    normalize_color,
    round_half_up,
    style_identity,
)


GRADIENT_STYLE_TYPES = {
    PaintType.GRADIENT_LINEAR: StyleType.LINEAR,
    PaintType.GRADIENT_RADIAL: StyleType.RADIAL,
    PaintType.GRADIENT_ANGULAR: StyleType.ANGULAR,
    PaintType.GRADIENT_DIAMOND: StyleType.DIAMOND,
}

IMAGE_PLACEHOLDER = 'image'
TRANSPARENT_PLACEHOLDER = 'transparent'


def _paint_opacity(paint: Dict[str, Any]) -> float:
    opacity = paint.get('opacity')
    if opacity is None:
        return 1
    if not is_number(opacity):
        raise ExtractionError(f"paint opacity is not a number: {opacity!r}")
    return max(0.0, min(1.0, float(opacity)))


def gradient_angle(transform: Any) -> int:
    """Angle in whole degrees from a 2x2 (or 2x3) gradient transform."""
    if not transform:
        return 0
    try:
        a = transform[0][0]
        b = transform[0][1]
    except (IndexError, KeyError, TypeError):
        raise ExtractionError(f"malformed gradientTransform: {transform!r}")
    if not (is_number(a) and is_number(b)):
        raise ExtractionError(f"malformed gradientTransform: {transform!r}")
    return round_half_up(math.degrees(math.atan2(b, a)))


def extract_gradient_stops(raw_stops: Any) -> List[GradientStop]:
    """Keep stops with a valid color, in source order."""
    stops = []
    for stop in raw_stops or []:
        if not isinstance(stop, dict):
            continue
        color = normalize_color(stop.get('color'))
        if color is None:
            continue
        position = stop.get('position', 0)
        if not is_number(position):
            continue
        stops.append(GradientStop(position=max(0.0, min(1.0, float(position))), color=color))
    return stops


def gradient_to_css(paint_type: PaintType, stops: List[GradientStop], angle: int = 0) -> str:
    """Build the CSS gradient function for an already validated stop list."""
    stops_str = ', '.join(stop.css for stop in stops)

    if paint_type == PaintType.GRADIENT_LINEAR:
        return f"linear-gradient({angle}deg, {stops_str})"
    elif paint_type == PaintType.GRADIENT_RADIAL:
        return f"radial-gradient(circle, {stops_str})"
    elif paint_type == PaintType.GRADIENT_ANGULAR:
        return f"conic-gradient({stops_str})"
    # Diamond gradients have no CSS equivalent; approximate as radial
    return f"radial-gradient(ellipse, {stops_str})"


def extract_paint_style(style: Dict[str, Any]) -> Optional[PaintStyleRecord]:
    """Convert a raw paint style into a PaintStyleRecord.

    Returns None when the style has no paints, the solid color is invalid,
    or a gradient has no stop with a valid color.
    """
    paints = style.get('paints') or []
    if not paints:
        return None

    paint = paints[0]
    if not isinstance(paint, dict):
        raise ExtractionError(f"paint is not an object: {paint!r}")

    name, token, description = style_identity(style)
    raw_type = paint.get('type')
    paint_type = PaintType.parse(raw_type)
    opacity = _paint_opacity(paint)

    if paint_type == PaintType.SOLID:
        color = normalize_color(paint.get('color'), opacity=opacity)
        if color is None:
            return None
        # opacity < 1 keeps the rgba form to preserve alpha
        value = color.css
        return PaintStyleRecord(
            name=name,
            token=token,
            description=description,
            type=StyleType.SOLID,
            opacity=opacity,
            color=color,
            value=value,
        )

    if paint_type in GRADIENT_STYLE_TYPES:
        stops = extract_gradient_stops(paint.get('gradientStops'))
        if not stops:
            return None
        angle = None
        if paint_type == PaintType.GRADIENT_LINEAR:
            angle = gradient_angle(paint.get('gradientTransform'))
        css = gradient_to_css(paint_type, stops, angle or 0)
        return PaintStyleRecord(
            name=name,
            token=token,
            description=description,
            type=GRADIENT_STYLE_TYPES[paint_type],
            opacity=opacity,
            stops=tuple(stops),
            angle=angle,
            css=css,
            value=css,
        )

    if paint_type == PaintType.IMAGE:
        return PaintStyleRecord(
            name=name,
            token=token,
            description=description,
            type=StyleType.IMAGE,
            opacity=opacity,
            value=IMAGE_PLACEHOLDER,
            css=TRANSPARENT_PLACEHOLDER,
            paint_type=PaintType.IMAGE.value,
        )

    return PaintStyleRecord(
        name=name,
        token=token,
        description=description,
        type=StyleType.UNSUPPORTED,
        opacity=opacity,
        value=TRANSPARENT_PLACEHOLDER,
        css=TRANSPARENT_PLACEHOLDER,
        paint_type=str(raw_type) if raw_type is not None else None,
    )
