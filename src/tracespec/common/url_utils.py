"""
TraceSpec URL Utilities

Shared URL parsing helpers. A captured URL is only "parseable" when it is
absolute: it must carry both a scheme and a network location.
"""

from urllib.parse import urlsplit, parse_qsl, SplitResult
from typing import List, Optional, Tuple


class URLParts:
    """Parsed view of an absolute URL."""

    def __init__(self, split: SplitResult):
        self._split = split

    @property
    def scheme(self) -> str:
        return self._split.scheme

    @property
    def netloc(self) -> str:
        return self._split.netloc

    @property
    def hostname(self) -> str:
        return self._split.hostname or ''

    @property
    def path(self) -> str:
        return self._split.path or '/'

    @property
    def query(self) -> str:
        return self._split.query

    @property
    def base_url(self) -> str:
        """scheme://host[:port] of the URL."""
        return f"{self.scheme}://{self.netloc}"

    def query_items(self) -> List[Tuple[str, str]]:
        """Query parameters in order of appearance, blank values kept."""
        return parse_qsl(self.query, keep_blank_values=True)


def parse_url(url: str) -> Optional[URLParts]:
    """
    Parse an absolute URL.

    Args:
        url: URL string from a captured record

    Returns:
        URLParts, or None if the URL is not an absolute http(s)-style URL
    """
    if not isinstance(url, str) or not url:
        return None

    try:
        split = urlsplit(url.strip())
        # Accessing hostname/port validates brackets and port numbers
        split.hostname
        split.port
    except ValueError:
        return None

    if not split.scheme or not split.netloc:
        return None

    return URLParts(split)


def normalize_host(host: str) -> str:
    """
    Reduce a host-like string to a bare lower-cased hostname.

    Strips a scheme, any path, a leading "www." and a trailing port.

    Examples:
        https://www.Example.com:8443/users → example.com
        api.example.com → api.example.com
    """
    value = host.strip()
    lowered = value.lower()
    if lowered.startswith('http://'):
        value = value[7:]
    elif lowered.startswith('https://'):
        value = value[8:]

    value = value.split('/', 1)[0]
    if value.lower().startswith('www.'):
        value = value[4:]

    head, sep, port = value.rpartition(':')
    if sep and port.isdigit():
        value = head

    return value.strip().lower()
