"""
OpenAPI document assembly.

DocumentBuilder partitions records by (path template, method), asks the
OperationSynthesizer for one operation per partition and assembles the
top-level document: info, servers, tags, paths and components.

The synthesized model is version-neutral; OpenAPIDocument.to_dict()
renders it as OpenAPI 3.0 or Swagger 2.0 depending on the options.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..common.url_utils import parse_url
from .operations import Operation, OperationSynthesizer
from .paths import PathTemplater
from .records import ExchangeRecord, GenerationOptions
from .sanitizer import DataSanitizer


logger = logging.getLogger("tracespec.openapi")

OPENAPI_VERSION = '3.0.3'
SWAGGER_VERSION = '2.0'
DEFAULT_DESCRIPTION = 'API documentation generated from recorded requests'


@dataclass
class OpenAPIDocument:
    """Synthesized API description, independent of the output version."""

    info: Dict[str, str]
    servers: List[str] = field(default_factory=list)
    tags: List[Dict[str, str]] = field(default_factory=list)
    paths: Dict[str, Dict[str, Operation]] = field(default_factory=dict)
    options: GenerationOptions = field(default_factory=GenerationOptions)

    @property
    def operation_count(self) -> int:
        return sum(len(methods) for methods in self.paths.values())

    def operation_keys(self) -> List[Tuple[str, str]]:
        """(path, method) pairs in document order."""
        return [(path, method) for path, methods in self.paths.items() for method in methods]

    def to_dict(self) -> Dict[str, Any]:
        """Render as a plain OpenAPI 3.0 or Swagger 2.0 dictionary."""
        target = self.options.target_version
        include_examples = self.options.include_examples
        sanitizer = DataSanitizer() if self.options.sanitize else None

        paths = {
            path: {
                method: operation.to_openapi(target, include_examples, sanitizer)
                for method, operation in methods.items()
            }
            for path, methods in self.paths.items()
        }
        tags = [dict(tag) for tag in self.tags]

        if target == '2.0':
            doc: Dict[str, Any] = {
                'swagger': SWAGGER_VERSION,
                'info': dict(self.info),
            }
            doc.update(self._swagger2_server_fields())
            doc['tags'] = tags
            doc['paths'] = paths
            doc['definitions'] = {}
            return doc

        return {
            'openapi': OPENAPI_VERSION,
            'info': dict(self.info),
            'servers': [{'url': url} for url in self.servers],
            'tags': tags,
            'paths': paths,
            'components': {},
        }

    def _swagger2_server_fields(self) -> Dict[str, Any]:
        """host, basePath and schemes derived from the server list."""
        fields: Dict[str, Any] = {}
        schemes: List[str] = []

        for url in self.servers:
            parts = parse_url(url)
            if parts is None:
                continue
            if 'host' not in fields:
                fields['host'] = parts.netloc
                base_path = parts.path.rstrip('/')
                if base_path:
                    fields['basePath'] = base_path
            if parts.scheme not in schemes:
                schemes.append(parts.scheme)

        if schemes:
            fields['schemes'] = schemes
        return fields


class DocumentBuilder:
    """
    Builds an OpenAPIDocument from exchange records.

    Each build() call works on its own local structures, so one builder
    (or several) may be used for independent record sets concurrently.

    Example:
        options = GenerationOptions(title="Shop API", version="1.0.0")
        document = DocumentBuilder(options).build(records)
        print(to_yaml(document))
    """

    def __init__(
        self,
        options: Optional[GenerationOptions] = None,
        synthesizer: Optional[OperationSynthesizer] = None
    ):
        self.options = options or GenerationOptions()
        self.templater = PathTemplater(parameterize=self.options.parameterize_urls)
        self.synthesizer = synthesizer or OperationSynthesizer(templater=self.templater)

    def build(self, records: Iterable[ExchangeRecord]) -> OpenAPIDocument:
        """
        Build the document.

        Zero records yield a valid document with empty paths.
        """
        records = list(records)
        if not records:
            logger.info("No records to export, building empty document")

        paths: Dict[str, Dict[str, Operation]] = OrderedDict()
        for (path, method), group in self.partition(records).items():
            operation = self.synthesizer.synthesize(path, method, group)
            paths.setdefault(path, OrderedDict())[method] = operation

        document = OpenAPIDocument(
            info={
                'title': self.options.title,
                'version': self.options.version,
                'description': self.options.description or DEFAULT_DESCRIPTION,
            },
            servers=self.servers(records),
            tags=self.document_tags(paths),
            paths=paths,
            options=self.options,
        )

        logger.info(
            f"Built document '{self.options.title}' with {len(paths)} path(s), "
            f"{document.operation_count} operation(s) from {len(records)} record(s)"
        )
        return document

    def partition(self, records: Iterable[ExchangeRecord]) -> Dict[Tuple[str, str], List[ExchangeRecord]]:
        """Group records by (path template, lower-cased method), first-seen order."""
        groups: Dict[Tuple[str, str], List[ExchangeRecord]] = OrderedDict()
        for record in records:
            template = self.templater.template(record.url).template
            groups.setdefault((template, record.method.lower()), []).append(record)
        return groups

    def servers(self, records: Iterable[ExchangeRecord]) -> List[str]:
        """
        Server URLs for the document.

        An explicit server URL (other than "auto") is used alone; otherwise
        every distinct scheme://host seen in the records, first-seen order.
        """
        if not self.options.uses_auto_server:
            return [self.options.server_url]

        servers: List[str] = []
        for record in records:
            parts = parse_url(record.url)
            if parts is None:
                continue
            if parts.base_url not in servers:
                servers.append(parts.base_url)
        return servers

    @staticmethod
    def document_tags(paths: Dict[str, Dict[str, Operation]]) -> List[Dict[str, str]]:
        """Top-level tag list: every operation tag with endpoint count and methods."""
        stats: Dict[str, Dict[str, Any]] = OrderedDict()
        for methods in paths.values():
            for method, operation in methods.items():
                for tag in operation.tags:
                    entry = stats.setdefault(tag, {'count': 0, 'methods': []})
                    entry['count'] += 1
                    if method.upper() not in entry['methods']:
                        entry['methods'].append(method.upper())

        return [
            {
                'name': tag,
                'description': f"Endpoints: {entry['count']}, Methods: {', '.join(entry['methods'])}",
            }
            for tag, entry in stats.items()
        ]
