"""Extraction of Figma styles and variables into normalized token records."""

from extractors.base import (
    ColorValue,
    ExtractionError,
    ExtractionFailure,
    GradientStop,
    StyleType,
    VariableType,
    normalize_color,
    slugify,
)
from extractors.effect_extractor import extract_effect_style
from extractors.grid_extractor import extract_grid_style
from extractors.paint_extractor import extract_paint_style
from extractors.text_extractor import extract_text_style
from extractors.variable_extractor import AliasResolver, CollectionIndex, extract_variable

__all__ = [
    'AliasResolver',
    'CollectionIndex',
    'ColorValue',
    'ExtractionError',
    'ExtractionFailure',
    'GradientStop',
    'StyleType',
    'VariableType',
    'extract_effect_style',
    'extract_grid_style',
    'extract_paint_style',
    'extract_text_style',
    'extract_variable',
    'normalize_color',
    'slugify',
]
