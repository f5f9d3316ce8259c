"""
Filtering logic for TraceSpec exports.

Decides which captured records go into a generated document based on
host matching (exact, wildcard), regex patterns, static assets, CORS
preflight requests and response status codes.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..common.url_utils import parse_url
from ..openapi.records import ExchangeRecord


STATIC_EXTENSIONS = (
    '.js', '.mjs', '.css', '.map',
    '.png', '.jpg', '.jpeg', '.gif', '.svg', '.ico', '.webp', '.avif',
    '.woff', '.woff2', '.ttf', '.otf', '.eot',
    '.mp4', '.webm', '.mp3', '.wav',
)


@dataclass
class FilterConfig:
    """Filter settings, usually read from the 'filters' section of a config file."""
    hosts: List[str] = field(default_factory=list)
    regex: Optional[str] = None
    exclude_static: bool = False
    exclude_preflight: bool = True
    status_codes: List[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FilterConfig':
        """Create a FilterConfig from a dictionary."""
        hosts = data.get('hosts', [])
        if isinstance(hosts, str):
            hosts = [h.strip() for h in hosts.split(',') if h.strip()]

        return cls(
            hosts=list(hosts),
            regex=data.get('regex') or None,
            exclude_static=bool(data.get('exclude_static', False)),
            exclude_preflight=bool(data.get('exclude_preflight', True)),
            status_codes=[int(code) for code in data.get('status_codes', [])],
        )


class RecordFilter:
    """
    Handles filtering logic to determine which records are exported.

    Supports:
    - Exact host matching (e.g., "api.example.com")
    - Wildcard matching (e.g., "*.example.com")
    - Regex pattern matching on URL and host
    - Dropping static assets and CORS preflight requests
    - Keeping only selected response status codes
    """

    def __init__(
        self,
        host_filters: Optional[List[str]] = None,
        regex_pattern: Optional[str] = None,
        exclude_static: bool = False,
        exclude_preflight: bool = True,
        status_codes: Optional[Iterable[int]] = None
    ):
        """
        Initialize the filter.

        Args:
            host_filters: List of hosts to match (supports wildcards)
            regex_pattern: Optional regex pattern to match against URLs
            exclude_static: Drop requests for scripts, styles, images and fonts
            exclude_preflight: Drop OPTIONS requests
            status_codes: Keep only these response status codes (empty = all)
        """
        self.host_filters = list(host_filters or [])
        self.regex_pattern = None
        self.exclude_static = exclude_static
        self.exclude_preflight = exclude_preflight
        self.status_codes = set(status_codes or [])

        if regex_pattern:
            try:
                self.regex_pattern = re.compile(regex_pattern)
            except re.error as e:
                print(f"Invalid regex pattern: {e}", flush=True)

    @classmethod
    def from_config(cls, config: FilterConfig) -> 'RecordFilter':
        return cls(
            host_filters=config.hosts,
            regex_pattern=config.regex,
            exclude_static=config.exclude_static,
            exclude_preflight=config.exclude_preflight,
            status_codes=config.status_codes,
        )

    def matches_host(self, host: str, url: str) -> Optional[str]:
        """
        Check the host and regex filters (OR logic).

        Returns:
            Reason of the first matching filter, "" when no host/regex
            filter is configured, or None when nothing matched
        """
        if not self.host_filters and not self.regex_pattern:
            return ""

        for filter_host in self.host_filters:
            # Exact match: filter_host == host
            if filter_host == host:
                return f"exact match: {filter_host}"

            # Wildcard match: *.example.com matches api.example.com and example.com itself
            if filter_host.startswith('*.'):
                domain = filter_host[2:]
                if host.endswith('.' + domain) or host == domain:
                    return f"wildcard match: {filter_host}"

        if self.regex_pattern:
            if self.regex_pattern.search(url) or self.regex_pattern.search(host):
                return f"regex match: {self.regex_pattern.pattern}"

        return None

    def should_include(self, record: ExchangeRecord, verbose: bool = False) -> bool:
        """
        Determine if a record should be exported.

        Args:
            record: Captured exchange record
            verbose: If True, print filtering decisions

        Returns:
            True if the record should be exported, False otherwise
        """
        parts = parse_url(record.url)
        host = parts.hostname if parts else ''
        path = parts.path.lower() if parts else ''

        reason = None
        if self.exclude_preflight and record.method.upper() == 'OPTIONS':
            reason = "CORS preflight"
        elif self.exclude_static and path.endswith(STATIC_EXTENSIONS):
            reason = "static asset"
        elif self.status_codes and record.response_status not in self.status_codes:
            reason = f"status {record.response_status}"

        match_reason = None if reason else self.matches_host(host, record.url)
        included = match_reason is not None

        if verbose:
            if included:
                detail = f" ({match_reason})" if match_reason else ""
                print(f"✅ [INCLUDE] {record.method} {record.url}{detail}", flush=True)
            else:
                print(f"❌ [SKIP] {record.method} {record.url} ({reason or 'no filter matched'})", flush=True)

        return included

    def filter(self, records: Iterable[ExchangeRecord], verbose: bool = False) -> List[ExchangeRecord]:
        """Records that pass every filter, original order kept."""
        return [r for r in records if self.should_include(r, verbose)]
