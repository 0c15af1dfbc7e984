"""Export orchestration, design sources and serializers."""

from exporters.errors import ExportFetchError, SourceError, TokenExportError
from exporters.options import ExportOptions, OutputFormat, VariableLayout
from exporters.orchestrator import ExportDocument, run_export
from exporters.serializers import serialize, to_css, to_js_module, to_json
from exporters.sources import DesignSource, FigmaRestSource, SnapshotSource

__all__ = [
    'DesignSource',
    'ExportDocument',
    'ExportFetchError',
    'ExportOptions',
    'FigmaRestSource',
    'OutputFormat',
    'SnapshotSource',
    'SourceError',
    'TokenExportError',
    'VariableLayout',
    'run_export',
    'serialize',
    'to_css',
    'to_js_module',
    'to_json',
]
