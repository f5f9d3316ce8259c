"""
Serialization of generated documents.

JSON output matches JSON.stringify(doc, null, 2). YAML output is written
with PyYAML's safe dumper and parses back to the same value as the JSON.
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

import yaml


FORMATS = ('json', 'yaml')


@dataclass
class ExportResult:
    """Serialized document ready to be written or downloaded."""
    format: str
    content: str
    filename: str

    @property
    def size(self) -> int:
        return len(self.content.encode('utf-8'))


def _as_dict(document: Any) -> Any:
    """Accept an OpenAPIDocument or an already rendered dictionary."""
    if hasattr(document, 'to_dict'):
        return document.to_dict()
    return document


def to_json(document: Any) -> str:
    """Serialize as 2-space indented JSON."""
    return json.dumps(_as_dict(document), indent=2, ensure_ascii=False)


def to_yaml(document: Any) -> str:
    """Serialize as block-style YAML, keeping key order."""
    return yaml.safe_dump(
        _as_dict(document),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=120,
    )


def sanitize_filename(name: str) -> str:
    """
    Make a title safe for use as a filename.

    Characters outside [a-zA-Z0-9_-] become "-", runs of "-" collapse,
    leading/trailing "-" are trimmed and the result is lower-cased.

    Example:
        sanitize_filename("My Shop API (v2)") → "my-shop-api-v2"
    """
    result = re.sub(r'[^a-zA-Z0-9_-]', '-', name)
    result = re.sub(r'-+', '-', result).strip('-').lower()
    return result or 'api'


def export_filename(title: str, fmt: str, target_version: str = '3.0') -> str:
    """{sanitized-title}-openapi.{json|yaml} (-openapi-v2 for Swagger 2.0)."""
    suffix = '-openapi-v2' if target_version == '2.0' else '-openapi'
    return f"{sanitize_filename(title)}{suffix}.{fmt}"


def serialize(document: Any, fmt: str) -> str:
    """
    Serialize in the requested format.

    Raises:
        ValueError: If fmt is not json or yaml
    """
    if fmt == 'json':
        return to_json(document)
    if fmt == 'yaml':
        return to_yaml(document)
    raise ValueError(f"Unsupported format {fmt!r}, expected one of {list(FORMATS)}")


def export_document(document: Any, fmt: str = 'yaml', filename: Optional[str] = None) -> ExportResult:
    """
    Serialize a document and name it.

    Args:
        document: OpenAPIDocument or rendered dictionary
        fmt: json or yaml
        filename: Explicit filename (defaults to the title-based convention)
    """
    rendered = _as_dict(document)
    if filename is None:
        title = (rendered.get('info') or {}).get('title') or 'api'
        target = '2.0' if rendered.get('swagger') else '3.0'
        filename = export_filename(str(title), fmt, target)
    return ExportResult(format=fmt, content=serialize(rendered, fmt), filename=filename)


def export_records(records: Iterable[Any], now: Optional[datetime] = None) -> ExportResult:
    """Dump raw exchange records as JSON with export metadata."""
    now = now or datetime.now(timezone.utc)
    items = [r.to_dict() if hasattr(r, 'to_dict') else r for r in records]
    data: Dict[str, Any] = {
        'exportTime': now.isoformat(),
        'totalRecords': len(items),
        'records': items,
    }
    return ExportResult(
        format='json',
        content=json.dumps(data, indent=2, ensure_ascii=False),
        filename=f"api-records-{now.strftime('%Y-%m-%d')}.json",
    )
