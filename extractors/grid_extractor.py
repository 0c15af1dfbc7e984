"""Layout grid style extraction."""

from typing import Any, Dict, Optional

from extractors.base import (
    DEFAULT_GRID_COUNT,
    DEFAULT_GRID_GUTTER,
    DEFAULT_GRID_MARGIN,
    ExtractionError,
    GridEntry,
    GridStyleRecord,
    is_number,
    style_identity,
)


def _grid_number(grid: Dict[str, Any], key: str, default: float) -> float:
    value = grid.get(key)
    if value is None:
        return default
    if not is_number(value):
        raise ExtractionError(f"grid {key} is not a number: {value!r}")
    return value


def parse_grid(grid: Dict[str, Any]) -> GridEntry:
    if not isinstance(grid, dict):
        raise ExtractionError(f"layout grid is not an object: {grid!r}")

    alignment = grid.get('alignment')
    section_size = grid.get('sectionSize')
    return GridEntry(
        pattern=str(grid.get('pattern', 'COLUMNS')).lower(),
        count=int(_grid_number(grid, 'count', DEFAULT_GRID_COUNT)),
        gutter=_grid_number(grid, 'gutterSize', DEFAULT_GRID_GUTTER),
        margin=_grid_number(grid, 'offset', DEFAULT_GRID_MARGIN),
        alignment=str(alignment).lower() if alignment else None,
        section_size=section_size if is_number(section_size) else None,
    )


def extract_grid_style(style: Dict[str, Any]) -> Optional[GridStyleRecord]:
    """Convert a raw grid style. Styles without layout grids yield None."""
    raw_grids = style.get('layoutGrids') or style.get('grids') or []
    if not raw_grids:
        return None

    name, token, description = style_identity(style)
    return GridStyleRecord(
        name=name,
        token=token,
        description=description,
        grids=tuple(parse_grid(grid) for grid in raw_grids),
    )
