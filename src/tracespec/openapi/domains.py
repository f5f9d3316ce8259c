"""
Per-domain export.

Captures usually span several hosts (the API, an auth service, a CDN).
MultiDomainExporter builds one document per host and either returns them
separately or merges them into a single OpenAPI 3 document.
"""

import logging
from collections import Counter, OrderedDict
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..common.url_utils import parse_url, normalize_host
from .builder import DocumentBuilder
from .merger import DocumentMerger
from .records import ExchangeRecord, GenerationOptions
from .serializers import ExportResult, export_document, serialize


logger = logging.getLogger("tracespec.openapi")

UNKNOWN_DOMAIN = 'unknown'


def record_domain(record: ExchangeRecord) -> str:
    """Host of the record's URL without "www.", or "unknown"."""
    parts = parse_url(record.url)
    if parts is None or not parts.hostname:
        return UNKNOWN_DOMAIN
    return normalize_host(parts.hostname)


def group_records_by_domain(records: Iterable[ExchangeRecord]) -> Dict[str, List[ExchangeRecord]]:
    """Group records by domain, first-seen order."""
    groups: Dict[str, List[ExchangeRecord]] = OrderedDict()
    for record in records:
        groups.setdefault(record_domain(record), []).append(record)
    return groups


def main_domain(records: Iterable[ExchangeRecord]) -> str:
    """Most frequent domain (first seen wins ties), or "api" without records."""
    counts = Counter(record_domain(r) for r in records)
    if not counts:
        return 'api'
    return counts.most_common(1)[0][0]


class MultiDomainExporter:
    """
    Exports records grouped by domain.

    Titles per domain come from the caller (for example an auto-naming
    service); domains without a title are called "<domain> API".

    Example:
        exporter = MultiDomainExporter(GenerationOptions(version="2.1.0"))
        for result in exporter.export_by_domains(records):
            Path(result.filename).write_text(result.content)
    """

    def __init__(
        self,
        options: Optional[GenerationOptions] = None,
        titles: Optional[Dict[str, str]] = None,
        fmt: str = 'yaml',
        merger: Optional[DocumentMerger] = None
    ):
        self.options = options or GenerationOptions()
        self.titles = titles or {}
        self.fmt = fmt
        self.merger = merger or DocumentMerger()

    def options_for(self, domain: str) -> GenerationOptions:
        """Generation options for one domain: own title, servers from its records."""
        return replace(
            self.options,
            title=self.titles.get(domain) or f"{domain} API",
            server_url=None,
        )

    def documents_by_domain(self, records: Iterable[ExchangeRecord]) -> Dict[str, dict]:
        """Rendered document per domain."""
        documents = OrderedDict()
        for domain, domain_records in group_records_by_domain(records).items():
            builder = DocumentBuilder(self.options_for(domain))
            documents[domain] = builder.build(domain_records).to_dict()
            logger.info(f"Built document for {domain} from {len(domain_records)} record(s)")
        return documents

    def export_by_domains(self, records: Iterable[ExchangeRecord]) -> List[ExportResult]:
        """One ExportResult per domain."""
        records = list(records)
        return [
            export_document(document, self.fmt)
            for document in self.documents_by_domain(records).values()
        ]

    def export_merged(self, records: Iterable[ExchangeRecord], now: Optional[datetime] = None) -> ExportResult:
        """
        Merge every domain's document into one OpenAPI 3 file.

        The file is named {main-domain}-{YYYYMMDD_HHMMSS}.{ext}.

        Raises:
            ValueError: If there are no records to export
        """
        records = list(records)
        if not records:
            raise ValueError("No records to export")

        documents = self.documents_by_domain(records)
        merged = self.merger.merge_all(documents.values())
        if len(documents) > 1:
            merged['info'] = {
                'title': self.options.title,
                'version': self.options.version,
                'description': self.options.description or
                f"Merged API documentation for {', '.join(documents)}",
            }

        stamp = (now or datetime.now()).strftime('%Y%m%d_%H%M%S')
        filename = f"{main_domain(records)}-{stamp}.{self.fmt}"
        return ExportResult(format=self.fmt, content=serialize(merged, self.fmt), filename=filename)
