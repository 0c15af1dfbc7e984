"""
Design sources: where raw styles, variables and collections come from.

A source exposes the raw records in the shape of the Figma plugin API
(``paints``, ``fontName``, ``effects``, ``layoutGrids``, ``valuesByMode`` ...).
Methods may be plain functions or coroutines; the orchestrator awaits
whatever it gets back.

Two implementations are provided:

- SnapshotSource: a JSON snapshot, e.g. dumped by a plugin.
- FigmaRestSource: the Figma REST API, adapted to the plugin shape.
"""

import asyncio
import json
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Union

import httpx
import structlog

from exporters.errors import SourceError
from exporters.options import DEFAULT_TIMEOUT, get_api_base, get_figma_token

logger = structlog.get_logger(__name__)

RawRecord = Dict[str, Any]
MaybeAwaitable = Union[Any, Awaitable[Any]]

# Figma caps the length of the ids query string
NODE_BATCH_SIZE = 100


class DesignSource(Protocol):
    """Inbound boundary consumed by ``run_export``."""

    def list_paint_styles(self) -> MaybeAwaitable: ...

    def list_text_styles(self) -> MaybeAwaitable: ...

    def list_effect_styles(self) -> MaybeAwaitable: ...

    def list_grid_styles(self) -> MaybeAwaitable: ...

    def list_variables(self) -> MaybeAwaitable: ...

    def list_variable_collections(self) -> MaybeAwaitable: ...

    def resolve_variable_by_id(self, variable_id: str) -> MaybeAwaitable: ...

    def document_name(self) -> MaybeAwaitable: ...

    def document_key(self) -> MaybeAwaitable: ...


def _as_record_list(value: Any, section: str) -> List[RawRecord]:
    if value is None:
        return []
    if isinstance(value, dict):
        # REST responses key records by id
        value = list(value.values())
    if not isinstance(value, list):
        raise SourceError(f"'{section}' must be a list, got {type(value).__name__}")
    return value


# ============================================================================
# Snapshot source
# ============================================================================

class SnapshotSource:
    """Serves raw records from an in-memory snapshot document.

    Expected keys: ``name``, ``key``, ``paintStyles``, ``textStyles``,
    ``effectStyles``, ``gridStyles``, ``variables``, ``variableCollections``.
    Missing sections are treated as empty.
    """

    def __init__(self, snapshot: Dict[str, Any]):
        if not isinstance(snapshot, dict):
            raise SourceError("snapshot must be a JSON object")
        self._snapshot = snapshot
        self._variables_by_id: Optional[Dict[str, RawRecord]] = None

    @classmethod
    def from_file(cls, path: str) -> 'SnapshotSource':
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return cls(json.load(f))
        except json.JSONDecodeError as e:
            raise SourceError(f"snapshot {path} is not valid JSON: {e}") from e
        except OSError as e:
            raise SourceError(f"cannot read snapshot {path}: {e}") from e

    def _section(self, key: str) -> List[RawRecord]:
        return _as_record_list(self._snapshot.get(key), key)

    def list_paint_styles(self) -> List[RawRecord]:
        return self._section('paintStyles')

    def list_text_styles(self) -> List[RawRecord]:
        return self._section('textStyles')

    def list_effect_styles(self) -> List[RawRecord]:
        return self._section('effectStyles')

    def list_grid_styles(self) -> List[RawRecord]:
        return self._section('gridStyles')

    def list_variables(self) -> List[RawRecord]:
        return self._section('variables')

    def list_variable_collections(self) -> List[RawRecord]:
        return self._section('variableCollections')

    def resolve_variable_by_id(self, variable_id: str) -> Optional[RawRecord]:
        if self._variables_by_id is None:
            self._variables_by_id = {
                v.get('id'): v for v in self.list_variables() if isinstance(v, dict)
            }
        return self._variables_by_id.get(variable_id)

    def document_name(self) -> str:
        return self._snapshot.get('name') or 'Untitled'

    def document_key(self) -> str:
        return self._snapshot.get('key') or ''


# ============================================================================
# Figma REST source
# ============================================================================

def _gradient_transform(handles: List[Dict[str, float]]) -> Optional[List[List[float]]]:
    """Build a transform whose first row points along the gradient handles."""
    if not handles or len(handles) < 2:
        return None
    start, end = handles[0], handles[1]
    dx = end.get('x', 0) - start.get('x', 0)
    dy = end.get('y', 0) - start.get('y', 0)
    return [[dx, dy, start.get('x', 0)], [-dy, dx, start.get('y', 0)]]


def _rest_paint(fill: Dict[str, Any]) -> Dict[str, Any]:
    paint = dict(fill)
    if paint.get('type', '').startswith('GRADIENT_') and 'gradientTransform' not in paint:
        transform = _gradient_transform(paint.get('gradientHandlePositions', []))
        if transform is not None:
            paint['gradientTransform'] = transform
    return paint


def _rest_font_style(style: Dict[str, Any]) -> str:
    """Recover a plugin-style font style name (``"SemiBold Italic"``)."""
    postscript = style.get('fontPostScriptName') or ''
    if '-' in postscript:
        name = postscript.rsplit('-', 1)[1]
    else:
        name = str(style.get('fontWeight', 400))
    if style.get('italic') and 'italic' not in name.lower():
        name = f"{name} Italic"
    return name


def _rest_line_height(style: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    unit = style.get('lineHeightUnit', 'INTRINSIC_%')
    if unit == 'PIXELS' and style.get('lineHeightPx') is not None:
        return {'unit': 'PIXELS', 'value': style['lineHeightPx']}
    if unit == 'FONT_SIZE_%' and style.get('lineHeightPercentFontSize') is not None:
        return {'unit': 'PERCENT', 'value': style['lineHeightPercentFontSize']}
    return {'unit': 'AUTO'}


def rest_node_to_style(meta: Dict[str, Any], node: Dict[str, Any]) -> RawRecord:
    """Adapt a REST style definition node to the plugin API shape."""
    style_type = meta.get('style_type')
    record: RawRecord = {
        'id': meta.get('node_id'),
        'key': meta.get('key'),
        'name': meta.get('name') or node.get('name', ''),
        'description': meta.get('description', ''),
    }

    if style_type == 'FILL':
        record['paints'] = [_rest_paint(f) for f in node.get('fills', []) if isinstance(f, dict)]
    elif style_type == 'TEXT':
        style = node.get('style', {})
        record.update({
            'fontName': {'family': style.get('fontFamily'), 'style': _rest_font_style(style)},
            'fontSize': style.get('fontSize'),
            'lineHeight': _rest_line_height(style),
            'letterSpacing': {'unit': 'PIXELS', 'value': style.get('letterSpacing', 0)},
            'textCase': style.get('textCase', 'ORIGINAL'),
            'textDecoration': style.get('textDecoration', 'NONE'),
            'paragraphSpacing': style.get('paragraphSpacing', 0),
            'paragraphIndent': style.get('paragraphIndent', 0),
        })
    elif style_type == 'EFFECT':
        record['effects'] = node.get('effects', [])
    elif style_type == 'GRID':
        record['layoutGrids'] = node.get('layoutGrids', [])
    return record


class FigmaRestSource:
    """Reads styles and local variables of one file through the REST API.

    Each endpoint is requested at most once; concurrent callers share the
    in-flight request.

    Usage::

        async with FigmaRestSource(file_key) as source:
            document = await run_export(source)
    """

    def __init__(
        self,
        file_key: str,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        api_base: Optional[str] = None,
    ):
        self.file_key = file_key
        self._owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(
                base_url=api_base or get_api_base(),
                headers={"X-Figma-Token": token or get_figma_token()},
                timeout=DEFAULT_TIMEOUT,
            )
        self._client = client
        self._file_task: Optional[asyncio.Future] = None
        self._styles_task: Optional[asyncio.Future] = None
        self._variables_task: Optional[asyncio.Future] = None

    async def __aenter__(self) -> 'FigmaRestSource':
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make authenticated request to Figma API."""
        response = await self._client.get(endpoint, params=params)
        response.raise_for_status()
        return response.json()

    # -- loaders -----------------------------------------------------------

    async def _load_file(self) -> Dict[str, Any]:
        return await self._request(f"files/{self.file_key}", params={"depth": 1})

    async def _load_styles(self) -> Dict[str, List[RawRecord]]:
        data = await self._request(f"files/{self.file_key}/styles")
        metas = [m for m in data.get('meta', {}).get('styles', []) if m.get('node_id')]
        grouped: Dict[str, List[RawRecord]] = {'FILL': [], 'TEXT': [], 'EFFECT': [], 'GRID': []}
        if not metas:
            return grouped

        node_ids = [m['node_id'] for m in metas]
        batches = [node_ids[i:i + NODE_BATCH_SIZE] for i in range(0, len(node_ids), NODE_BATCH_SIZE)]
        responses = await asyncio.gather(*(
            self._request(f"files/{self.file_key}/nodes", params={"ids": ','.join(batch)})
            for batch in batches
        ))
        nodes: Dict[str, Dict[str, Any]] = {}
        for response in responses:
            for node_id, entry in (response.get('nodes') or {}).items():
                if entry and entry.get('document'):
                    nodes[node_id] = entry['document']

        for meta in metas:
            node = nodes.get(meta['node_id'])
            if node is None:
                logger.warning("style_node_missing", style=meta.get('name'), node_id=meta['node_id'])
                continue
            bucket = grouped.get(meta.get('style_type'))
            if bucket is not None:
                bucket.append(rest_node_to_style(meta, node))
        return grouped

    async def _load_variables(self) -> Dict[str, Any]:
        data = await self._request(f"files/{self.file_key}/variables/local")
        meta = data.get('meta', {})
        return {
            'variables': _as_record_list(meta.get('variables'), 'variables'),
            'variableCollections': _as_record_list(meta.get('variableCollections'), 'variableCollections'),
        }

    def _file(self) -> asyncio.Future:
        if self._file_task is None:
            self._file_task = asyncio.ensure_future(self._load_file())
        return self._file_task

    def _styles(self) -> asyncio.Future:
        if self._styles_task is None:
            self._styles_task = asyncio.ensure_future(self._load_styles())
        return self._styles_task

    def _variables(self) -> asyncio.Future:
        if self._variables_task is None:
            self._variables_task = asyncio.ensure_future(self._load_variables())
        return self._variables_task

    # -- DesignSource ------------------------------------------------------

    async def list_paint_styles(self) -> List[RawRecord]:
        return (await self._styles())['FILL']

    async def list_text_styles(self) -> List[RawRecord]:
        return (await self._styles())['TEXT']

    async def list_effect_styles(self) -> List[RawRecord]:
        return (await self._styles())['EFFECT']

    async def list_grid_styles(self) -> List[RawRecord]:
        return (await self._styles())['GRID']

    async def list_variables(self) -> List[RawRecord]:
        return (await self._variables())['variables']

    async def list_variable_collections(self) -> List[RawRecord]:
        return (await self._variables())['variableCollections']

    async def resolve_variable_by_id(self, variable_id: str) -> Optional[RawRecord]:
        for variable in await self.list_variables():
            if variable.get('id') == variable_id:
                return variable
        return None

    async def document_name(self) -> str:
        return (await self._file()).get('name') or 'Untitled'

    async def document_key(self) -> str:
        return self.file_key
