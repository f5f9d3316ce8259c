"""
TraceSpec Common Utilities

Shared utilities and helpers used across TraceSpec modules.
"""

from .utils import safe_json_parse, base_content_type, CaptureLoader, load_structured_file
from .url_utils import URLParts, parse_url, normalize_host

__all__ = [
    'safe_json_parse',
    'base_content_type',
    'CaptureLoader',
    'load_structured_file',
    'URLParts',
    'parse_url',
    'normalize_host'
]
