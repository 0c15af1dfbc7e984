"""
Export orchestrator.

``run_export`` fetches every raw list from a design source concurrently, runs
the extractors over them in source order and assembles one ExportDocument.
Only the fetch stage is fatal; a style or variable that fails to convert is
logged, recorded in ``metadata.failures`` and left out.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import structlog

from exporters.errors import ExportFetchError, SourceError
from exporters.options import ExportOptions, VariableLayout
from exporters.sources import DesignSource
from extractors.base import (
    VARIABLE_BUCKETS,
    ExtractionBatch,
    ExtractionFailure,
    VariableRecord,
    maybe_await,
)
from extractors.effect_extractor import extract_effect_style
from extractors.grid_extractor import extract_grid_style
from extractors.paint_extractor import extract_paint_style
from extractors.text_extractor import extract_text_style
from extractors.variable_extractor import (
    AliasResolver,
    CollectionIndex,
    extract_variable,
    variable_key,
)

logger = structlog.get_logger(__name__)

STYLE_CATEGORIES = ('colors', 'textStyles', 'effects', 'grids')


# ============================================================================
# Export document
# ============================================================================

@dataclass(frozen=True)
class ExportDocument:
    """Result of one export run."""
    styles: Dict[str, List[Any]]
    variables: Dict[str, Any]
    metadata: Dict[str, Any]
    layout: VariableLayout = VariableLayout.FLAT
    failures: List[ExtractionFailure] = field(default_factory=list)

    def iter_variables(self) -> List[VariableRecord]:
        """All exported variables in output order, regardless of layout."""
        if self.layout == VariableLayout.FLAT:
            groups = [self.variables]
        else:
            groups = list(self.variables.values())
        records = []
        for group in groups:
            for bucket in VARIABLE_BUCKETS.values():
                records.extend(group.get(bucket, []))
        return records

    def to_dict(self) -> Dict[str, Any]:
        styles = {
            category: [record.to_dict() for record in records]
            for category, records in self.styles.items()
        }
        if self.layout == VariableLayout.FLAT:
            variables = _buckets_to_dict(self.variables)
        else:
            variables = {
                name: {**_buckets_to_dict(group), 'modes': group.get('modes', [])}
                for name, group in self.variables.items()
            }
        return {'styles': styles, 'variables': variables, 'metadata': self.metadata}


def _buckets_to_dict(group: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    return {
        bucket: [record.to_dict() for record in group.get(bucket, [])]
        for bucket in VARIABLE_BUCKETS.values()
    }


def _empty_buckets() -> Dict[str, List[VariableRecord]]:
    return {bucket: [] for bucket in VARIABLE_BUCKETS.values()}


# ============================================================================
# Fetch stage
# ============================================================================

@dataclass
class RawInputs:
    paint_styles: List[Dict[str, Any]]
    text_styles: List[Dict[str, Any]]
    effect_styles: List[Dict[str, Any]]
    grid_styles: List[Dict[str, Any]]
    variables: List[Dict[str, Any]]
    collections: List[Dict[str, Any]]
    file_name: str
    file_key: str


def describe_fetch_error(e: Exception) -> str:
    """Format fetch errors for user-friendly messages."""
    if isinstance(e, httpx.HTTPStatusError):
        status = e.response.status_code
        if status == 401:
            return "Invalid Figma API token. Check your FIGMA_ACCESS_TOKEN environment variable."
        elif status == 403:
            return "Access denied. You don't have permission to read this file or its variables."
        elif status == 404:
            return "File not found. Check the file key."
        elif status == 429:
            return "Rate limit exceeded. Please wait before making more requests."
        return f"Figma API returned status {status}"
    elif isinstance(e, httpx.TimeoutException):
        return "Request timed out. The file might be too large."
    elif isinstance(e, (ValueError, SourceError)):
        return str(e)
    return f"{type(e).__name__}: {str(e)}"


async def _query(method: Callable[[], Any]) -> Any:
    return await maybe_await(method())


async def fetch_inputs(source: DesignSource) -> RawInputs:
    """Start every source query before awaiting any of them.

    Raises ExportFetchError if any query fails or returns something other
    than a list.
    """
    try:
        results = await asyncio.gather(
            _query(source.list_paint_styles),
            _query(source.list_text_styles),
            _query(source.list_effect_styles),
            _query(source.list_grid_styles),
            _query(source.list_variables),
            _query(source.list_variable_collections),
            _query(source.document_name),
            _query(source.document_key),
        )
    except Exception as e:
        logger.error("export_fetch_failed", error=str(e), error_type=type(e).__name__)
        raise ExportFetchError(describe_fetch_error(e)) from e

    lists = results[:6]
    for label, value in zip(('paint styles', 'text styles', 'effect styles', 'grid styles',
                             'variables', 'variable collections'), lists):
        if not isinstance(value, list):
            raise ExportFetchError(f"Source returned no {label} list (got {type(value).__name__})")

    return RawInputs(*lists, file_name=results[6] or 'Untitled', file_key=results[7] or '')


# ============================================================================
# Extraction stage
# ============================================================================

def _display_name(raw: Any) -> str:
    if isinstance(raw, dict):
        return str(raw.get('name') or raw.get('id') or '<unnamed>')
    return '<invalid>'


def extract_all(
    items: List[Dict[str, Any]],
    extractor: Callable[[Dict[str, Any]], Any],
    category: str,
) -> ExtractionBatch:
    """Run ``extractor`` over ``items`` in order, collecting records and failures."""
    batch = ExtractionBatch()
    for raw in items:
        try:
            if not isinstance(raw, dict):
                raise TypeError(f"expected an object, got {type(raw).__name__}")
            record = extractor(raw)
        except Exception as e:
            name = _display_name(raw)
            logger.warning("style_extraction_failed", category=category, style=name, error=str(e))
            batch.failures.append(ExtractionFailure(category=category, name=name, reason=str(e)))
            continue
        if record is None:
            batch.skipped += 1
            continue
        batch.records.append(record)
    return batch


async def extract_variables(
    variables: List[Dict[str, Any]],
    collections: CollectionIndex,
    resolver: AliasResolver,
) -> ExtractionBatch:
    """Extract variables in order, dropping repeats of ``(collection, name)``."""
    batch = ExtractionBatch()
    seen = set()
    for raw in variables:
        name = _display_name(raw)
        try:
            if not isinstance(raw, dict):
                raise TypeError(f"expected an object, got {type(raw).__name__}")
            key = variable_key(raw, collections)
            if key in seen:
                logger.debug("variable_duplicate_dropped", collection=key[0], variable=key[1])
                batch.skipped += 1
                continue
            seen.add(key)
            record = await extract_variable(raw, collections, resolver)
        except Exception as e:
            logger.warning("variable_extraction_failed", variable=name, error=str(e))
            batch.failures.append(ExtractionFailure(category='variables', name=name, reason=str(e)))
            continue
        if record is None:
            batch.skipped += 1
            continue
        batch.records.append(record)
    return batch


def group_flat(records: List[VariableRecord]) -> Dict[str, List[VariableRecord]]:
    grouped = _empty_buckets()
    for record in records:
        grouped[record.type.bucket].append(record)
    return grouped


def group_by_collection(
    records: List[VariableRecord],
    collections: CollectionIndex,
    raw_collections: List[Dict[str, Any]],
) -> Dict[str, Dict[str, Any]]:
    """Group by collection name, then type. Empty collections are dropped."""
    grouped: Dict[str, Dict[str, Any]] = {}
    for collection in raw_collections:
        if not isinstance(collection, dict):
            continue
        name = collections.collection_name(collection.get('id'))
        if name not in grouped:
            grouped[name] = {**_empty_buckets(), 'modes': collections.mode_names(collection.get('id'))}
    for record in records:
        group = grouped.setdefault(record.collection, {**_empty_buckets(), 'modes': []})
        group[record.type.bucket].append(record)

    return {
        name: group for name, group in grouped.items()
        if any(group[bucket] for bucket in VARIABLE_BUCKETS.values())
    }


# ============================================================================
# Metadata
# ============================================================================

def build_metadata(
    inputs: RawInputs,
    styles: Dict[str, List[Any]],
    variable_records: List[VariableRecord],
    exported_collections: int,
    failures: List[ExtractionFailure],
    options: ExportOptions,
    skipped: Optional[Dict[str, int]] = None,
) -> Dict[str, Any]:
    style_counts = {category: len(records) for category, records in styles.items()}
    style_counts['total'] = sum(style_counts.values())

    variable_counts = {bucket: 0 for bucket in VARIABLE_BUCKETS.values()}
    for record in variable_records:
        variable_counts[record.type.bucket] += 1
    variable_counts['total'] = len(variable_records)

    return {
        'fileName': inputs.file_name,
        'fileKey': inputs.file_key,
        'exportDate': datetime.now(timezone.utc).isoformat(),
        'variableLayout': options.variable_layout.value,
        'totalStyles': style_counts['total'],
        'totalVariables': variable_counts['total'],
        'counts': {
            'styles': style_counts,
            'variables': variable_counts,
            'collections': {
                'found': len(inputs.collections),
                'exported': exported_collections,
            },
            'skipped': dict(skipped or {}),
        },
        'failures': [failure.to_dict() for failure in failures],
    }


# ============================================================================
# Entry point
# ============================================================================

async def run_export(source: DesignSource, options: Optional[ExportOptions] = None) -> ExportDocument:
    """Extract every style and variable from ``source`` into one document.

    Raises:
        ExportFetchError: the source could not deliver its raw records.
    """
    options = options or ExportOptions()
    inputs = await fetch_inputs(source)
    logger.info(
        "export_fetched",
        file_name=inputs.file_name,
        paint_styles=len(inputs.paint_styles),
        text_styles=len(inputs.text_styles),
        effect_styles=len(inputs.effect_styles),
        grid_styles=len(inputs.grid_styles),
        variables=len(inputs.variables),
        collections=len(inputs.collections),
    )

    failures: List[ExtractionFailure] = []
    # records left out by policy (no paints, duplicates, no usable mode)
    skipped: Dict[str, int] = {category: 0 for category in (*STYLE_CATEGORIES, 'variables')}
    styles: Dict[str, List[Any]] = {category: [] for category in STYLE_CATEGORIES}
    if options.include_styles:
        for category, items, extractor in (
            ('colors', inputs.paint_styles, extract_paint_style),
            ('textStyles', inputs.text_styles, extract_text_style),
            ('effects', inputs.effect_styles, extract_effect_style),
            ('grids', inputs.grid_styles, extract_grid_style),
        ):
            batch = extract_all(items, extractor, category)
            styles[category] = batch.records
            failures.extend(batch.failures)
            skipped[category] = batch.skipped

    collections = CollectionIndex(inputs.collections)
    variable_records: List[VariableRecord] = []
    if options.include_variables:
        resolver = AliasResolver(
            inputs.variables,
            lookup=source.resolve_variable_by_id,
            max_depth=options.max_alias_depth,
        )
        batch = await extract_variables(inputs.variables, collections, resolver)
        variable_records = batch.records
        failures.extend(batch.failures)
        skipped['variables'] = batch.skipped

    if options.variable_layout == VariableLayout.BY_COLLECTION:
        variables = group_by_collection(variable_records, collections, inputs.collections)
    else:
        variables = group_flat(variable_records)
    # only declared collections count; the Unknown bucket is not one
    exported_collections = len({
        record.collection_id for record in variable_records if record.collection_id in collections
    })

    metadata = build_metadata(
        inputs, styles, variable_records, exported_collections, failures, options, skipped
    )
    logger.info(
        "export_completed",
        file_name=inputs.file_name,
        styles=metadata['totalStyles'],
        variables=metadata['totalVariables'],
        failures=len(failures),
    )
    return ExportDocument(
        styles=styles,
        variables=variables,
        metadata=metadata,
        layout=options.variable_layout,
        failures=failures,
    )
