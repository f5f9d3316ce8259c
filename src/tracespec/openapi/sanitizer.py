"""
Example-data sanitizing.

Captured examples often carry credentials. When sanitizing is enabled,
every example value is passed through DataSanitizer before it is written
into a generated document.
"""

import re
from typing import Any


REDACTED = '[REDACTED]'

# "token=abc", "password: hunter2" inside free text
SENSITIVE_ASSIGNMENT = re.compile(
    r'\b(?:token|password|secret|key)\s*[:=]\s*[^\s,}&]+',
    re.IGNORECASE
)

# Object keys whose values are always masked
SENSITIVE_KEY = re.compile(
    r'(pass(word|wd)?|secret|token|api[-_]?key|credentials?)$',
    re.IGNORECASE
)

SENSITIVE_HEADERS = {
    'authorization',
    'proxy-authorization',
    'cookie',
    'set-cookie',
    'x-api-key',
    'x-auth-token',
    'x-csrf-token',
    'x-session-id',
}


class DataSanitizer:
    """Redacts credentials from example values."""

    def sanitize_value(self, value: Any) -> Any:
        """Redact key=value style secrets inside a string."""
        if isinstance(value, str):
            return SENSITIVE_ASSIGNMENT.sub(REDACTED, value)
        return value

    def sanitize_object(self, obj: Any) -> Any:
        """Recursively sanitize a JSON value, returning a new value."""
        if isinstance(obj, dict):
            sanitized = {}
            for key, value in obj.items():
                if SENSITIVE_KEY.search(str(key)) and value is not None and not isinstance(value, (dict, list)):
                    sanitized[key] = REDACTED
                else:
                    sanitized[key] = self.sanitize_object(value)
            return sanitized
        if isinstance(obj, list):
            return [self.sanitize_object(item) for item in obj]
        return self.sanitize_value(obj)

    def sanitize_header(self, name: str, value: Any) -> Any:
        """Mask the whole value of credential-carrying headers."""
        if name.lower() in SENSITIVE_HEADERS:
            return REDACTED
        return self.sanitize_value(value)
