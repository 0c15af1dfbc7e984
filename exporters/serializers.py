"""
Serializers for export documents.

These only format values the extractors already computed. CSS and JS
output carry one entry per variable using its default (first) mode value.
"""

import json
import re
from typing import Any, List, Set

from exporters.options import OutputFormat, VariableLayout
from exporters.orchestrator import ExportDocument
from extractors.base import VariableType, slugify

_IDENTIFIER_PARTS = re.compile(r'[-_]+')

JS_RESERVED_WORDS = frozenset({
    'arguments', 'await', 'break', 'case', 'catch', 'class', 'const', 'continue',
    'debugger', 'default', 'delete', 'do', 'else', 'enum', 'eval', 'export',
    'extends', 'false', 'finally', 'for', 'function', 'if', 'implements',
    'import', 'in', 'instanceof', 'interface', 'let', 'new', 'null', 'package',
    'private', 'protected', 'public', 'return', 'static', 'super', 'switch',
    'this', 'throw', 'true', 'try', 'typeof', 'undefined', 'var', 'void',
    'while', 'with', 'yield',
})


def to_json(document: ExportDocument, indent: int = 2) -> str:
    return json.dumps(document.to_dict(), indent=indent, ensure_ascii=False)


def _css_value(variable_type: VariableType, value: Any) -> str:
    if variable_type == VariableType.BOOLEAN:
        return 'true' if value else 'false'
    if variable_type == VariableType.STRING:
        return json.dumps(str(value), ensure_ascii=False)
    return str(value)


def to_css(document: ExportDocument, selector: str = ':root') -> str:
    """Render variables as CSS custom properties."""
    lines: List[str] = [
        f"/* {document.metadata.get('fileName', '')} - exported {document.metadata.get('exportDate', '')} */",
        f"{selector} {{",
    ]
    for record in document.iter_variables():
        if not record.token:
            continue
        lines.append(f"  --{record.token}: {_css_value(record.type, record.value)};")
    lines.append("}")
    return "\n".join(lines) + "\n"


def js_identifier(token: str) -> str:
    """``brand-primary`` -> ``brandPrimary``.

    Leading digits and reserved words get a ``_`` prefix.
    """
    parts = [p for p in _IDENTIFIER_PARTS.split(token) if p]
    if not parts:
        return ''
    identifier = parts[0] + ''.join(p[:1].upper() + p[1:] for p in parts[1:])
    if identifier[0].isdigit() or identifier in JS_RESERVED_WORDS:
        identifier = f"_{identifier}"
    return identifier


def to_js_module(document: ExportDocument) -> str:
    """Render variables as an ES module of named constants.

    In the by-collection layout names are prefixed with the collection
    token. A name already taken gets a numeric suffix (``primary2``).
    """
    lines: List[str] = [f"// {document.metadata.get('fileName', '')} - exported {document.metadata.get('exportDate', '')}"]
    used: Set[str] = set()
    for record in document.iter_variables():
        if not record.token:
            continue
        token = record.token
        if document.layout == VariableLayout.BY_COLLECTION:
            token = f"{slugify(record.collection)}-{token}"
        base = js_identifier(token)
        identifier, n = base, 2
        while identifier in used:
            identifier = f"{base}{n}"
            n += 1
        used.add(identifier)
        lines.append(f"export const {identifier} = {json.dumps(record.value, ensure_ascii=False)};")
    return "\n".join(lines) + "\n"


def serialize(document: ExportDocument, output_format: OutputFormat = OutputFormat.JSON) -> str:
    if output_format == OutputFormat.CSS:
        return to_css(document)
    elif output_format == OutputFormat.JS:
        return to_js_module(document)
    return to_json(document)
