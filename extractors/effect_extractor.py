"""
Effect style extraction (shadows and blurs).

Every effect is kept in the structured list; only visible drop and inner
shadows with a usable color contribute to the ``box-shadow`` CSS.
"""

from typing import Any, Dict, List, Optional

from extractors.base import (
    EffectEntry,
    EffectStyleRecord,
    EffectType,
    ExtractionError,
    format_number,
    is_number,
    normalize_color,
    style_identity,
)


def _number(effect: Dict[str, Any], key: str) -> float:
    value = effect.get(key)
    if value is None:
        return 0
    if not is_number(value):
        raise ExtractionError(f"effect {key} is not a number: {value!r}")
    return value


def parse_effect(effect: Dict[str, Any]) -> EffectEntry:
    """Convert one raw effect. Invalid colors become None, not an error."""
    if not isinstance(effect, dict):
        raise ExtractionError(f"effect is not an object: {effect!r}")

    offset = None
    raw_offset = effect.get('offset')
    if isinstance(raw_offset, dict):
        offset = (raw_offset.get('x', 0), raw_offset.get('y', 0))
        if not all(is_number(v) for v in offset):
            raise ExtractionError(f"effect offset is not numeric: {raw_offset!r}")

    return EffectEntry(
        type=str(effect.get('type', EffectType.UNSUPPORTED.value)),
        visible=effect.get('visible', True) is not False,
        radius=_number(effect, 'radius'),
        spread=_number(effect, 'spread'),
        offset=offset,
        color=normalize_color(effect.get('color')),
        blend_mode=effect.get('blendMode'),
    )


def shadow_to_css(entry: EffectEntry) -> Optional[str]:
    """``"2px 4px 8px 0px rgba(0, 0, 0, 0.5)"``, or None if not a usable shadow."""
    if not EffectType.parse(entry.type).is_shadow:
        return None
    if not entry.visible or entry.color is None:
        return None
    x, y = entry.offset or (0, 0)
    inset = 'inset ' if entry.type == EffectType.INNER_SHADOW.value else ''
    return (
        f"{inset}{format_number(x)}px {format_number(y)}px "
        f"{format_number(entry.radius)}px {format_number(entry.spread)}px {entry.color.rgba}"
    )


def effects_to_css(entries: List[EffectEntry]) -> Optional[str]:
    shadows = [css for css in (shadow_to_css(e) for e in entries) if css]
    if not shadows:
        return None
    return f"box-shadow: {', '.join(shadows)};"


def extract_effect_style(style: Dict[str, Any]) -> Optional[EffectStyleRecord]:
    """Convert a raw effect style. Styles without effects yield None."""
    raw_effects = style.get('effects') or []
    if not raw_effects:
        return None

    name, token, description = style_identity(style)
    entries = [parse_effect(effect) for effect in raw_effects]

    return EffectStyleRecord(
        name=name,
        token=token,
        description=description,
        effects=tuple(entries),
        css=effects_to_css(entries),
    )
