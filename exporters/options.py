"""Export configuration."""

import os
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

FIGMA_API_BASE = "https://api.figma.com/v1"
DEFAULT_TIMEOUT = 30.0


class VariableLayout(str, Enum):
    """How exported variables are grouped."""
    FLAT = "flat"
    BY_COLLECTION = "by_collection"


class OutputFormat(str, Enum):
    """Serialization format of an export document."""
    JSON = "json"
    CSS = "css"
    JS = "js"


class ExportOptions(BaseModel):
    """Options for a single export run."""
    model_config = ConfigDict(validate_assignment=True, frozen=True)

    variable_layout: VariableLayout = Field(
        default=VariableLayout.FLAT,
        description="'flat' groups variables by type, 'by_collection' by collection then type"
    )
    max_alias_depth: int = Field(
        default=10,
        description="Maximum number of alias hops followed for a single value",
        ge=1,
        le=50
    )
    include_styles: bool = Field(default=True, description="Export paint, text, effect and grid styles")
    include_variables: bool = Field(default=True, description="Export variables")


def get_api_base() -> str:
    """Figma REST base URL, overridable for proxies and tests."""
    return os.environ.get("FIGMA_API_BASE", FIGMA_API_BASE).rstrip('/')


def get_figma_token() -> str:
    """Get Figma API token from environment."""
    token = os.environ.get("FIGMA_ACCESS_TOKEN") or os.environ.get("FIGMA_TOKEN")
    if not token:
        raise ValueError(
            "Figma API token not found. Set FIGMA_ACCESS_TOKEN or FIGMA_TOKEN environment variable. "
            "Get your token from: https://www.figma.com/developers/api#access-tokens"
        )
    return token
