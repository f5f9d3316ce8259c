"""
Operation synthesis.

Combines every record captured for one (path template, method) pair into
a single OpenAPI operation: summary, description, tags, parameters,
request body and one response per observed status code.
"""

import logging
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from ..common.url_utils import parse_url, normalize_host
from ..common.utils import base_content_type
from .parameters import Parameter, ParameterExtractor, RequestBody, count_observed_parameters
from .paths import PathTemplater
from .records import ExchangeRecord
from .sanitizer import DataSanitizer
from .schema import Schema, SchemaInferencer, SchemaMerger


logger = logging.getLogger("tracespec.openapi")

UNGROUPED_TAG = 'ungrouped'

# Tag filtering: domain-looking and IPv4 tags are not real groups
DOMAIN_LIKE_TAG = re.compile(r'^[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
IPV4_TAG = re.compile(r'^\d{1,3}(\.\d{1,3}){3}$')

ACTION_WORDS = {
    'get': 'Get',
    'post': 'Create',
    'put': 'Update',
    'patch': 'Update',
    'delete': 'Delete',
}

STATUS_DESCRIPTIONS = {
    200: 'Successful response',
    201: 'Resource created successfully',
    204: 'No content',
    400: 'Bad request',
    401: 'Unauthorized',
    403: 'Forbidden',
    404: 'Resource not found',
    405: 'Method not allowed',
    422: 'Validation error',
    500: 'Internal server error',
    502: 'Bad gateway',
    503: 'Service unavailable',
}

IMPORTANT_RESPONSE_HEADERS = {
    'content-type',
    'cache-control',
    'etag',
    'last-modified',
    'location',
    'set-cookie',
    'x-rate-limit-remaining',
    'x-total-count',
    'x-pagination-page',
}


def status_description(status: int) -> str:
    """Canned description for well-known codes, else "HTTP <code>"."""
    return STATUS_DESCRIPTIONS.get(status, f"HTTP {status}")


def is_important_response_header(name: str) -> bool:
    lowered = name.lower()
    return lowered in IMPORTANT_RESPONSE_HEADERS or lowered.startswith('x-')


def resolve_tags(record: ExchangeRecord) -> List[str]:
    """
    Resolve the operation tags for a record.

    Custom tags are kept unless they look like a host: equal to the
    request's own host, an IPv4 address or a domain name. When nothing
    survives the ungrouped tag is returned.

    Examples:
        customTags ["users"]      → ["users"]
        customTags ["api.x.com"]  → ["ungrouped"]
        no customTags             → ["ungrouped"]
    """
    parts = parse_url(record.url)
    host = normalize_host(parts.hostname) if parts else ''

    valid: List[str] = []
    for tag in record.custom_tags:
        tag = tag.strip()
        if not tag or tag in valid:
            continue
        candidate = normalize_host(tag)
        if host and candidate == host:
            continue
        if IPV4_TAG.match(candidate) or DOMAIN_LIKE_TAG.match(candidate):
            continue
        valid.append(tag)

    return valid or [UNGROUPED_TAG]


def select_representative(records: Sequence[ExchangeRecord]) -> ExchangeRecord:
    """
    Pick the record used for summary and tags.

    The most recent 2xx record wins. Without any 2xx record, the record
    with the most observed parameters (query parameters plus top-level
    body fields) wins. Ties keep the earliest record.
    """
    successful = [r for r in records if 200 <= r.response_status < 300]
    if successful:
        best = successful[0]
        for record in successful[1:]:
            if record.timestamp > best.timestamp:
                best = record
        return best

    best = records[0]
    best_count = count_observed_parameters(best)
    for record in records[1:]:
        count = count_observed_parameters(record)
        if count > best_count:
            best, best_count = record, count
    return best


def _format_timestamp(ms: int) -> str:
    try:
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat(timespec='seconds')
    except (OverflowError, ValueError, OSError):
        # Out of datetime range, e.g. microseconds stored as milliseconds
        return f"{ms} ms"


@dataclass
class Response:
    """One documented response status."""

    description: str
    sample_count: int = 0
    content: Dict[str, Schema] = field(default_factory=dict)
    examples: Dict[str, Any] = field(default_factory=dict)
    headers: List[str] = field(default_factory=list)


@dataclass
class Operation:
    """OpenAPI operation synthesized from one group of records."""

    method: str
    path: str
    summary: str
    description: str
    parameters: List[Parameter] = field(default_factory=list)
    responses: Dict[str, Response] = field(default_factory=dict)
    tags: List[str] = field(default_factory=lambda: [UNGROUPED_TAG])
    request_body: Optional[RequestBody] = None

    def to_openapi(
        self,
        target_version: str = '3.0',
        include_examples: bool = True,
        sanitizer: Optional[DataSanitizer] = None
    ) -> Dict[str, Any]:
        """Render as an OpenAPI (3.0) or Swagger (2.0) operation object."""
        if target_version == '2.0':
            return self._to_swagger2(include_examples, sanitizer)

        def example_of(value):
            return sanitizer.sanitize_object(value) if sanitizer else value

        out: Dict[str, Any] = {
            'summary': self.summary,
            'description': self.description,
            'tags': list(self.tags),
            'parameters': [p.to_openapi('3.0', include_examples, sanitizer) for p in self.parameters],
        }

        if self.request_body is not None:
            content = {}
            for content_type, schema in self.request_body.content.items():
                media: Dict[str, Any] = {'schema': schema.to_openapi('3.0')}
                if include_examples and content_type in self.request_body.examples:
                    media['example'] = example_of(self.request_body.examples[content_type])
                content[content_type] = media
            out['requestBody'] = {
                'description': 'Request body based on recorded requests',
                'required': True,
                'content': content,
            }

        responses = {}
        for status, response in self.responses.items():
            rendered: Dict[str, Any] = {'description': response.description}
            if response.headers:
                rendered['headers'] = {
                    name: {
                        'description': f"Response header observed in {response.sample_count} response(s)",
                        'schema': {'type': 'string'},
                    }
                    for name in response.headers
                }
            if response.content:
                content = {}
                for content_type, schema in response.content.items():
                    media = {'schema': schema.to_openapi('3.0')}
                    if include_examples and content_type in response.examples:
                        media['example'] = example_of(response.examples[content_type])
                    content[content_type] = media
                rendered['content'] = content
            responses[status] = rendered
        out['responses'] = responses

        return out

    def _to_swagger2(self, include_examples: bool, sanitizer: Optional[DataSanitizer]) -> Dict[str, Any]:
        def example_of(value):
            return sanitizer.sanitize_object(value) if sanitizer else value

        parameters = [p.to_openapi('2.0', include_examples, sanitizer) for p in self.parameters]
        out: Dict[str, Any] = {
            'summary': self.summary,
            'description': self.description,
            'tags': list(self.tags),
        }

        if self.request_body is not None and self.request_body.content:
            schema = next(iter(self.request_body.content.values()))
            parameters.append({
                'name': 'body',
                'in': 'body',
                'required': True,
                'description': 'Request body',
                'schema': schema.to_openapi('2.0'),
            })
            out['consumes'] = list(self.request_body.content.keys())

        out['parameters'] = parameters

        produces: List[str] = []
        responses = {}
        for status, response in self.responses.items():
            rendered: Dict[str, Any] = {'description': response.description}
            if response.content:
                schema = next(iter(response.content.values()))
                rendered['schema'] = schema.to_openapi('2.0')
                for ct in response.content:
                    if ct not in produces:
                        produces.append(ct)
                if include_examples and response.examples:
                    rendered['examples'] = {ct: example_of(ex) for ct, ex in response.examples.items()}
            if response.headers:
                rendered['headers'] = {
                    name: {
                        'type': 'string',
                        'description': f"Response header observed in {response.sample_count} response(s)",
                    }
                    for name in response.headers
                }
            responses[status] = rendered

        if produces:
            out['produces'] = produces
        out['responses'] = responses
        return out


class OperationSynthesizer:
    """Builds one Operation from all records of a (path template, method) group."""

    def __init__(
        self,
        templater: Optional[PathTemplater] = None,
        inferencer: Optional[SchemaInferencer] = None,
        merger: Optional[SchemaMerger] = None
    ):
        self.templater = templater or PathTemplater()
        self.inferencer = inferencer or SchemaInferencer()
        self.merger = merger or SchemaMerger()
        self.extractor = ParameterExtractor(self.templater, self.inferencer, self.merger)

    def synthesize(self, path: str, method: str, records: Sequence[ExchangeRecord]) -> Operation:
        """
        Synthesize the operation for one group.

        Args:
            path: Path template shared by the records
            method: HTTP method (any case)
            records: Non-empty list of records of this group

        Returns:
            Operation

        Raises:
            ValueError: If records is empty (a partitioning bug upstream)
        """
        if not records:
            raise ValueError(f"Cannot synthesize operation {method.upper()} {path} from zero records")

        method = method.lower()
        representative = select_representative(records)
        logger.debug(f"Synthesizing {method.upper()} {path} from {len(records)} record(s)")

        return Operation(
            method=method,
            path=path,
            summary=self.summary(representative, method, path),
            description=self.description(records),
            parameters=self.extractor.extract(records),
            request_body=self.extractor.request_body(records),
            responses=self.responses(records),
            tags=resolve_tags(representative),
        )

    @staticmethod
    def summary(record: ExchangeRecord, method: str, path: str) -> str:
        """
        Custom title, else "<Action> <resource>".

        Examples:
            GET /users/{id}  → "Get id"
            POST /users      → "Create users"
            HEAD /           → "HEAD root"
        """
        if record.custom_title:
            return record.custom_title

        segments = [s for s in path.split('/') if s]
        if not segments:
            return f"{method.upper()} root"

        resource = segments[-1].replace('{', '').replace('}', '')
        action = ACTION_WORDS.get(method.lower(), method.upper())
        return f"{action} {resource}"

    @staticmethod
    def description(records: Sequence[ExchangeRecord]) -> str:
        """Sample count, first/last seen and the observed status codes."""
        statuses = sorted({r.response_status for r in records})
        timestamps = [r.timestamp for r in records]

        return (
            f"This endpoint was recorded from {len(records)} request(s). "
            f"First seen: {_format_timestamp(min(timestamps))}, "
            f"Last seen: {_format_timestamp(max(timestamps))}. "
            f"Response status codes observed: {', '.join(str(s) for s in statuses)}."
        )

    def responses(self, records: Sequence[ExchangeRecord]) -> Dict[str, Response]:
        """One Response per status code, ordered by status code."""
        by_status: Dict[int, List[ExchangeRecord]] = OrderedDict()
        for record in records:
            by_status.setdefault(record.response_status, []).append(record)

        responses: Dict[str, Response] = {}
        for status in sorted(by_status):
            status_records = by_status[status]
            response = Response(
                description=status_description(status),
                sample_count=len(status_records),
            )

            bodies: Dict[str, List[Any]] = OrderedDict()
            for record in status_records:
                for name in record.response_headers:
                    if is_important_response_header(name) and name not in response.headers:
                        response.headers.append(name)
                if record.response_body is not None:
                    content_type = base_content_type(record.response_headers.get('content-type'))
                    bodies.setdefault(content_type, []).append(record.response_body)

            for content_type, samples in bodies.items():
                response.content[content_type] = self.merger.merge_values(samples, self.inferencer)
                response.examples[content_type] = samples[0]

            responses[str(status)] = response

        return responses
