#!/usr/bin/env python3
"""
Figma Tokens MCP Server - export design styles and variables as tokens.

This server provides tools to turn a Figma file's design system into
developer-consumable tokens:
- Paint, text, effect and grid styles
- Variables (color, number, string, boolean) with per-mode values
- Output as JSON, CSS custom properties or a JavaScript module

Sources are either the Figma REST API or a JSON snapshot on disk.
"""

import json
import logging
import os
import re
import sys
from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel, Field, field_validator, ConfigDict
from mcp.server.fastmcp import FastMCP

from exporters.errors import TokenExportError
from exporters.options import ExportOptions, OutputFormat, VariableLayout
from exporters.orchestrator import ExportDocument, run_export
from exporters.serializers import serialize
from exporters.sources import FigmaRestSource, SnapshotSource

# ============================================================================
# Constants
# ============================================================================

CHARACTER_LIMIT = 25000
OUTPUT_EXTENSIONS = {
    OutputFormat.JSON: "json",
    OutputFormat.CSS: "css",
    OutputFormat.JS: "js",
}

# ============================================================================
# Initialize MCP Server
# ============================================================================

mcp = FastMCP("figma_tokens_mcp")

logger = structlog.get_logger(__name__)


def configure_logging() -> None:
    """Send structured logs to stderr; stdout carries the stdio transport."""
    level_name = os.environ.get("FIGMA_TOKENS_LOG_LEVEL", "INFO").upper()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


# ============================================================================
# Enums and Types
# ============================================================================

class ResponseFormat(str, Enum):
    """Format of the summary returned when output is written to a file."""
    MARKDOWN = "markdown"
    JSON = "json"


# ============================================================================
# Pydantic Input Models
# ============================================================================

class TokenOutputInput(BaseModel):
    """Output settings shared by the export tools."""
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    output_format: OutputFormat = Field(
        default=OutputFormat.JSON,
        description="Output format: 'json', 'css' (custom properties) or 'js' (ES module)"
    )
    variable_layout: VariableLayout = Field(
        default=VariableLayout.FLAT,
        description="'flat' groups variables by type, 'by_collection' by collection then type"
    )
    max_alias_depth: int = Field(
        default=10,
        description="Maximum alias hops followed when resolving a variable value (1-50)",
        ge=1,
        le=50
    )
    include_styles: bool = Field(default=True, description="Include paint, text, effect and grid styles")
    include_variables: bool = Field(default=True, description="Include variables")
    output_path: Optional[str] = Field(
        default=None,
        description="Write the export to this file and return a summary instead of the content"
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Summary format when output_path is set: 'markdown' or 'json'"
    )

    @field_validator('output_path')
    @classmethod
    def expand_output_path(cls, v: Optional[str]) -> Optional[str]:
        return os.path.expanduser(v) if v else None

    def export_options(self) -> ExportOptions:
        return ExportOptions(
            variable_layout=self.variable_layout,
            max_alias_depth=self.max_alias_depth,
            include_styles=self.include_styles,
            include_variables=self.include_variables,
        )


class FigmaExportTokensInput(TokenOutputInput):
    """Input model for exporting tokens through the Figma REST API."""

    file_key: str = Field(
        ...,
        description="Figma file key (from URL: figma.com/design/FILE_KEY/...)",
        min_length=10,
        max_length=50
    )

    @field_validator('file_key', mode='before')
    @classmethod
    def validate_file_key(cls, v: str) -> str:
        # Extract file key from URL if full URL provided; length bounds apply to the key
        if isinstance(v, str) and 'figma.com' in v:
            match = re.search(r'figma\.com/(?:design|file)/([a-zA-Z0-9]+)', v)
            if match:
                return match.group(1)
            raise ValueError("Could not extract file key from Figma URL")
        return v


class SnapshotExportTokensInput(TokenOutputInput):
    """Input model for exporting tokens from a JSON snapshot file."""

    snapshot_path: str = Field(
        ...,
        description="Path to a JSON snapshot with paintStyles, textStyles, effectStyles, "
                    "gridStyles, variables and variableCollections",
        min_length=1
    )

    @field_validator('snapshot_path')
    @classmethod
    def expand_snapshot_path(cls, v: str) -> str:
        return os.path.expanduser(v)


# ============================================================================
# Helper Functions
# ============================================================================

def _handle_error(e: Exception) -> str:
    """Format export errors for user-friendly messages."""
    if isinstance(e, (TokenExportError, ValueError)):
        return f"Error: {str(e)}"
    return f"Error: {type(e).__name__}: {str(e)}"


def _summary(document: ExportDocument, path: str, response_format: ResponseFormat) -> str:
    metadata = document.metadata
    counts = metadata['counts']
    if response_format == ResponseFormat.JSON:
        return json.dumps({
            'status': 'success',
            'path': path,
            'fileName': metadata['fileName'],
            'counts': counts,
            'failures': metadata['failures'],
        }, indent=2)

    styles = counts['styles']
    variables = counts['variables']
    lines = [
        f"# Tokens exported: {metadata['fileName']}",
        f"**Written to:** `{path}`",
        f"**Exported:** {metadata['exportDate']}",
        "",
        "## Styles",
        f"- Colors: {styles['colors']}",
        f"- Text styles: {styles['textStyles']}",
        f"- Effects: {styles['effects']}",
        f"- Grids: {styles['grids']}",
        "",
        "## Variables",
        f"- Colors: {variables['colors']}",
        f"- Numbers: {variables['numbers']}",
        f"- Strings: {variables['strings']}",
        f"- Booleans: {variables['booleans']}",
        f"- Collections: {counts['collections']['exported']} of {counts['collections']['found']}",
    ]
    if metadata['failures']:
        lines.append("")
        lines.append("## Skipped with errors")
        for failure in metadata['failures']:
            lines.append(f"- **{failure['name']}** ({failure['category']}): {failure['reason']}")
    return "\n".join(lines)


def _deliver(document: ExportDocument, params: TokenOutputInput) -> str:
    """Serialize the document and either return it or write it to disk."""
    content = serialize(document, params.output_format)

    if params.output_path:
        path = params.output_path
        if os.path.isdir(path):
            path = os.path.join(path, f"tokens.{OUTPUT_EXTENSIONS[params.output_format]}")
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        logger.info("export_written", path=path, size=len(content))
        return _summary(document, path, params.response_format)

    if len(content) > CHARACTER_LIMIT:
        return (
            content[:CHARACTER_LIMIT]
            + f"\n\n... (truncated at {CHARACTER_LIMIT} characters; set output_path to get the full export)"
        )
    return content


# ============================================================================
# Tools
# ============================================================================

@mcp.tool(
    name="figma_export_tokens",
    annotations={
        "title": "Export Design Tokens",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def figma_export_tokens(params: FigmaExportTokensInput) -> str:
    """
    Export styles and variables of a Figma file as design tokens.

    Reads published paint, text, effect and grid styles plus local variables
    and collections, resolves variable aliases per mode, and serializes the
    result. A style or variable that cannot be converted is skipped and
    listed under metadata.failures; the export itself only fails when the
    file cannot be read.

    Args:
        params: FigmaExportTokensInput containing:
            - file_key (str): Figma file key or full URL
            - output_format: 'json', 'css' or 'js'
            - variable_layout: 'flat' or 'by_collection'
            - output_path (Optional[str]): write to file instead of returning content

    Returns:
        str: Serialized tokens, a summary when written to a file, or an error message

    Examples:
        - "Export tokens of file XYZ123 as CSS" -> file_key="XYZ123", output_format="css"
        - Group by collection: variable_layout="by_collection"
    """
    try:
        async with FigmaRestSource(params.file_key) as source:
            document = await run_export(source, params.export_options())
        return _deliver(document, params)

    except Exception as e:
        return _handle_error(e)


@mcp.tool(
    name="figma_export_snapshot_tokens",
    annotations={
        "title": "Export Design Tokens from Snapshot",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False
    }
)
async def figma_export_snapshot_tokens(params: SnapshotExportTokensInput) -> str:
    """
    Export design tokens from a JSON snapshot of a Figma document.

    The snapshot uses the plugin API shape (paints, fontName, effects,
    layoutGrids, valuesByMode), e.g. as dumped by a Figma plugin. Useful
    offline and for files whose variables the REST API cannot read.

    Args:
        params: SnapshotExportTokensInput containing:
            - snapshot_path (str): path to the snapshot JSON file
            - output_format: 'json', 'css' or 'js'
            - variable_layout: 'flat' or 'by_collection'
            - output_path (Optional[str]): write to file instead of returning content

    Returns:
        str: Serialized tokens, a summary when written to a file, or an error message
    """
    try:
        source = SnapshotSource.from_file(params.snapshot_path)
        document = await run_export(source, params.export_options())
        return _deliver(document, params)

    except Exception as e:
        return _handle_error(e)


# ============================================================================
# Entry Point
# ============================================================================

def main() -> None:
    configure_logging()
    mcp.run()


if __name__ == "__main__":
    main()
