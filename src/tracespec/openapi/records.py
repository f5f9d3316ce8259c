"""
Exchange records and generation options.

An ExchangeRecord is one captured request/response pair. Records are
built once from capture dictionaries and never mutated afterwards; every
body is normalized to a plain JSON value (None, bool, int, float, str,
list, dict) on the way in so the schema code only ever sees that closed
set of types.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Tuple

import yaml

from ..common.utils import safe_json_parse


SUPPORTED_TARGET_VERSIONS = ('3.0', '2.0')
AUTO_SERVER_URL = 'auto'

_MISSING = object()


def to_json_value(value: Any) -> Any:
    """
    Convert an arbitrary Python value to a plain JSON value.

    Tuples become lists, mapping keys become strings and anything that is
    not a JSON type is rendered with str().
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, dict):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return str(value)


def _decode_body(value: Any) -> Any:
    """Decode a captured body; JSON text holding an object or array is parsed."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode('utf-8', errors='replace')
    if isinstance(value, str):
        if not value.strip():
            return None
        parsed = safe_json_parse(value, default=_MISSING)
        if isinstance(parsed, (dict, list)):
            return parsed
        return value
    return to_json_value(value)


def _normalize_headers(headers: Any) -> Dict[str, str]:
    """
    Lower-case header names.

    Accepts a mapping or a list of {"name"/"key": ..., "value": ...}
    entries (HAR and Postman layouts).
    """
    if not headers:
        return {}

    items: List[Tuple[Any, Any]] = []
    if isinstance(headers, dict):
        items = list(headers.items())
    elif isinstance(headers, list):
        for entry in headers:
            if isinstance(entry, dict):
                name = entry.get('name', entry.get('key'))
                if name:
                    items.append((name, entry.get('value', '')))

    normalized: Dict[str, str] = {}
    for name, value in items:
        key = str(name).strip().lower()
        if key and key not in normalized:
            normalized[key] = '' if value is None else str(value)
    return normalized


def _parse_timestamp(data: Dict[str, Any]) -> int:
    """Epoch milliseconds from 'timestamp' (number) or 'time' (ISO-8601)."""
    ts = data.get('timestamp')
    if isinstance(ts, (int, float)) and not isinstance(ts, bool):
        return int(ts)

    iso = data.get('time') or data.get('startedDateTime')
    if isinstance(iso, str) and iso:
        try:
            parsed = datetime.fromisoformat(iso.replace('Z', '+00:00'))
        except ValueError:
            return 0
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp() * 1000)

    return 0


def _first_present(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass(frozen=True)
class ExchangeRecord:
    """One captured HTTP request/response pair."""

    method: str
    url: str
    id: str = ''
    timestamp: int = 0
    request_headers: Dict[str, str] = field(default_factory=dict)
    request_body: Any = None
    response_status: int = 0
    response_headers: Dict[str, str] = field(default_factory=dict)
    response_body: Any = None
    response_time_ms: int = 0
    custom_tags: Tuple[str, ...] = ()
    custom_title: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: Optional[int] = None) -> 'ExchangeRecord':
        """
        Create an ExchangeRecord from a capture dictionary.

        Both the recorder layout (requestHeaders, responseStatus, ...) and
        the capture proxy raw log layout (req_headers, status, ...) are
        accepted.

        Args:
            data: Capture dictionary
            index: Position in the capture file, used as id fallback

        Returns:
            ExchangeRecord
        """
        record_id = data.get('id')
        if not record_id:
            record_id = str(index) if index is not None else uuid.uuid4().hex

        status = _first_present(data, 'responseStatus', 'status', 'response_status', default=0)
        try:
            status = int(status)
        except (TypeError, ValueError):
            status = 0

        response_time = _first_present(data, 'responseTime', 'responseTimeMs', 'duration_ms', 'duration', default=0)
        try:
            response_time = max(0, int(response_time))
        except (TypeError, ValueError):
            response_time = 0

        tags = data.get('customTags') or data.get('custom_tags') or []
        if isinstance(tags, str):
            tags = [tags]

        title = data.get('customTitle') or data.get('custom_title') or None

        return cls(
            id=str(record_id),
            timestamp=_parse_timestamp(data),
            method=str(data.get('method', 'GET')),
            url=str(data.get('url', '')),
            request_headers=_normalize_headers(
                _first_present(data, 'requestHeaders', 'headers', 'req_headers', default={})
            ),
            request_body=_decode_body(_first_present(data, 'requestBody', 'req_body', 'request_body')),
            response_status=status,
            response_headers=_normalize_headers(
                _first_present(data, 'responseHeaders', 'resp_headers', 'response_headers', default={})
            ),
            response_body=_decode_body(_first_present(data, 'responseBody', 'resp_body', 'response_body')),
            response_time_ms=response_time,
            custom_tags=tuple(str(t) for t in tags),
            custom_title=str(title) if title else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in the recorder layout."""
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'method': self.method,
            'url': self.url,
            'requestHeaders': dict(self.request_headers),
            'requestBody': self.request_body,
            'responseStatus': self.response_status,
            'responseHeaders': dict(self.response_headers),
            'responseBody': self.response_body,
            'responseTime': self.response_time_ms,
            'customTags': list(self.custom_tags),
            'customTitle': self.custom_title,
        }


@dataclass
class GenerationOptions:
    """Options for synthesizing an OpenAPI document from records."""

    title: str = 'Recorded API'
    version: str = '1.0.0'
    description: Optional[str] = None
    server_url: Optional[str] = None  # None or "auto" = derive from records
    include_examples: bool = True
    parameterize_urls: bool = True
    target_version: str = '3.0'  # 3.0 or 2.0
    sanitize: bool = False

    def __post_init__(self):
        if self.target_version not in SUPPORTED_TARGET_VERSIONS:
            raise ValueError(
                f"Unsupported target version {self.target_version!r}, "
                f"expected one of {list(SUPPORTED_TARGET_VERSIONS)}"
            )

    @property
    def uses_auto_server(self) -> bool:
        return not self.server_url or self.server_url == AUTO_SERVER_URL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GenerationOptions':
        """Create options from a dictionary (snake_case or camelCase keys)."""
        defaults = cls()
        return cls(
            title=str(data.get('title', defaults.title)),
            version=str(data.get('version', defaults.version)),
            description=data.get('description'),
            server_url=_first_present(data, 'server_url', 'serverUrl', default=None),
            include_examples=bool(_first_present(data, 'include_examples', 'includeExamples',
                                                 default=defaults.include_examples)),
            parameterize_urls=bool(_first_present(data, 'parameterize_urls', 'parameterizeUrls',
                                                  default=defaults.parameterize_urls)),
            target_version=str(_first_present(data, 'target_version', 'targetVersion',
                                              default=defaults.target_version)),
            sanitize=bool(data.get('sanitize', defaults.sanitize)),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'GenerationOptions':
        """Load options from a YAML file (optionally nested under 'generation')."""
        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if 'generation' in data:
            data = data['generation'] or {}
        return cls.from_dict(data)
