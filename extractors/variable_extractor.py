"""
Variable extraction.

Resolves per-mode values (following alias chains through an AliasResolver),
coerces them by the variable's resolved type and names each mode through the
owning collection. Variables with no usable mode value are dropped.
"""

import math
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

import structlog

from extractors.base import (
    ALIAS_TYPE,
    ExtractionError,
    VariableRecord,
    VariableType,
    is_number,
    maybe_await,
    normalize_color,
    style_identity,
)

logger = structlog.get_logger(__name__)

UNKNOWN_COLLECTION = 'Unknown'
DEFAULT_MAX_ALIAS_DEPTH = 10

VariableLookup = Callable[[str], Union[Optional[Dict[str, Any]], Awaitable[Optional[Dict[str, Any]]]]]


class AliasResolutionError(ExtractionError):
    """An alias could not be followed to a literal value."""


# ---------------------------------------------------------------------------
# Collections and modes
# ---------------------------------------------------------------------------

def synthesized_mode_name(mode_id: str) -> str:
    return f"Mode {mode_id}"


class CollectionIndex:
    """Read-only lookup of collections and their mode names for one run."""

    def __init__(self, collections: Iterable[Dict[str, Any]]):
        self._collections: Dict[str, Dict[str, Any]] = {}
        self._mode_names: Dict[str, Dict[str, str]] = {}
        for collection in collections:
            if not isinstance(collection, dict) or not collection.get('id'):
                continue
            collection_id = collection['id']
            self._collections[collection_id] = collection
            self._mode_names[collection_id] = {
                mode.get('modeId'): mode.get('name')
                for mode in collection.get('modes') or []
                if isinstance(mode, dict) and mode.get('modeId') and mode.get('name')
            }

    def __len__(self) -> int:
        return len(self._collections)

    def __contains__(self, collection_id: object) -> bool:
        return isinstance(collection_id, str) and collection_id in self._collections

    def collection_name(self, collection_id: Optional[str]) -> str:
        collection = self._collections.get(collection_id)
        if collection is None:
            return UNKNOWN_COLLECTION
        return collection.get('name') or UNKNOWN_COLLECTION

    def mode_names(self, collection_id: Optional[str]) -> List[str]:
        """Declared mode names of a collection, in declaration order."""
        return list(self._mode_names.get(collection_id, {}).values())

    def mode_name(self, collection_id: Optional[str], mode_id: str) -> Tuple[str, bool]:
        """Return ``(display name, synthesized?)`` for a mode id."""
        name = self._mode_names.get(collection_id, {}).get(mode_id)
        if name:
            return name, False
        return synthesized_mode_name(mode_id), True


# ---------------------------------------------------------------------------
# Alias resolution
# ---------------------------------------------------------------------------

def is_alias(value: Any) -> bool:
    return isinstance(value, dict) and value.get('type') == ALIAS_TYPE


def _mode_value(variable: Dict[str, Any], mode_id: str) -> Tuple[bool, Any]:
    values = variable.get('valuesByMode') or {}
    if mode_id in values:
        return True, values[mode_id]
    # Fall back to the target's first mode
    for value in values.values():
        return True, value
    return False, None


class AliasResolver:
    """Follows alias chains for one export run.

    Targets are looked up in the run's variable list first, then through
    ``lookup`` (the source's ``resolve_variable_by_id``). Results of source
    lookups are cached, including misses.
    """

    def __init__(
        self,
        variables: Iterable[Dict[str, Any]],
        lookup: Optional[VariableLookup] = None,
        max_depth: int = DEFAULT_MAX_ALIAS_DEPTH,
    ):
        self._known: Dict[str, Optional[Dict[str, Any]]] = {
            v['id']: v for v in variables if isinstance(v, dict) and v.get('id')
        }
        self._lookup = lookup
        self.max_depth = max_depth

    async def get_variable(self, variable_id: str) -> Optional[Dict[str, Any]]:
        if variable_id in self._known:
            return self._known[variable_id]
        target = None
        if self._lookup is not None:
            target = await maybe_await(self._lookup(variable_id))
        self._known[variable_id] = target
        return target

    async def resolve(self, value: Any, mode_id: str, origin_id: Optional[str] = None) -> Any:
        """Follow ``value`` until it is a literal.

        Raises AliasResolutionError on a missing target, a cycle, or a chain
        longer than ``max_depth``.
        """
        visited: Set[str] = {origin_id} if origin_id else set()
        hops = 0
        while is_alias(value):
            target_id = value.get('id')
            if not target_id:
                raise AliasResolutionError("alias without a target id")
            if target_id in visited:
                raise AliasResolutionError(f"alias cycle through {target_id}")
            if hops >= self.max_depth:
                raise AliasResolutionError(f"alias chain deeper than {self.max_depth}")
            visited.add(target_id)
            hops += 1

            target = await self.get_variable(target_id)
            if target is None:
                raise AliasResolutionError(f"alias target {target_id} not found")
            found, value = _mode_value(target, mode_id)
            if not found:
                raise AliasResolutionError(f"alias target {target_id} has no values")
        return value


# ---------------------------------------------------------------------------
# Type coercion
# ---------------------------------------------------------------------------

_MISSING = object()


def coerce_value(resolved_type: VariableType, value: Any) -> Any:
    """Clean a literal mode value. Returns ``_MISSING`` when it is unusable."""
    if resolved_type == VariableType.COLOR:
        color = normalize_color(value)
        if color is None:
            return _MISSING
        return color.css

    if resolved_type == VariableType.FLOAT:
        if is_number(value):
            return value
        if isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                return _MISSING
            if not math.isfinite(number):
                return _MISSING
            return int(number) if number.is_integer() else number
        return _MISSING

    if resolved_type == VariableType.STRING:
        if value is None or value == '':
            return _MISSING
        return value

    if resolved_type == VariableType.BOOLEAN:
        if value is None:
            return _MISSING
        return value

    return _MISSING


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def variable_key(variable: Dict[str, Any], collections: CollectionIndex) -> Tuple[str, str]:
    """Identity used for duplicate suppression: ``(collection name, name)``."""
    return (
        collections.collection_name(variable.get('variableCollectionId')),
        variable.get('name') or '',
    )


async def extract_variable(
    variable: Dict[str, Any],
    collections: CollectionIndex,
    resolver: AliasResolver,
) -> Optional[VariableRecord]:
    """Convert a raw variable into a VariableRecord.

    Modes whose value is an unresolvable alias or fails type coercion are
    skipped. Returns None if no mode survives or the type is unsupported.
    """
    name, token, description = style_identity(variable)
    resolved_type = VariableType.parse(variable.get('resolvedType'))
    if resolved_type == VariableType.UNSUPPORTED:
        logger.debug("variable_type_unsupported", variable=name,
                     resolved_type=variable.get('resolvedType'))
        return None

    collection_id = variable.get('variableCollectionId')
    values_by_mode = variable.get('valuesByMode') or {}
    if not isinstance(values_by_mode, dict):
        raise ExtractionError(f"valuesByMode is not an object: {values_by_mode!r}")

    values: Dict[str, Any] = {}
    any_named_mode = False
    for mode_id, raw_value in values_by_mode.items():
        try:
            literal = await resolver.resolve(raw_value, mode_id, origin_id=variable.get('id'))
        except AliasResolutionError as e:
            logger.debug("variable_alias_unresolved", variable=name, mode_id=mode_id, reason=str(e))
            continue

        cleaned = coerce_value(resolved_type, literal)
        if cleaned is _MISSING:
            logger.debug("variable_value_skipped", variable=name, mode_id=mode_id,
                         resolved_type=resolved_type.value)
            continue

        mode_name, synthesized = collections.mode_name(collection_id, mode_id)
        any_named_mode = any_named_mode or not synthesized
        values.setdefault(mode_name, cleaned)

    if not values:
        return None

    scopes = variable.get('scopes') or ()
    return VariableRecord(
        name=name,
        token=token,
        type=resolved_type,
        collection=collections.collection_name(collection_id),
        collection_id=collection_id,
        value=next(iter(values.values())),
        values=values if len(values) > 1 or any_named_mode else None,
        description=description,
        scopes=tuple(scopes),
        hidden_from_publishing=bool(variable.get('hiddenFromPublishing', False)),
    )
