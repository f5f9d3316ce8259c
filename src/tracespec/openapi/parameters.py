"""
Parameter and request-body extraction.

ParameterExtractor walks every record of one (path template, method)
group and collects path, query and header parameters, each exactly once.
The first record that shows a parameter decides its schema and example.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl

from ..common.url_utils import parse_url
from ..common.utils import base_content_type
from .paths import PathTemplater
from .records import ExchangeRecord
from .sanitizer import DataSanitizer
from .schema import Schema, SchemaInferencer, SchemaMerger, STRING


logger = logging.getLogger("tracespec.openapi")

PATH = 'path'
QUERY = 'query'
HEADER = 'header'

FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded'


@dataclass(frozen=True)
class Parameter:
    """A single operation parameter."""

    name: str
    location: str  # path, query or header
    required: bool
    schema: Schema
    example: Any = None
    description: str = ''

    @property
    def key(self) -> Tuple[str, str]:
        return (self.location, self.name)

    def to_openapi(
        self,
        target_version: str = '3.0',
        include_examples: bool = True,
        sanitizer: Optional[DataSanitizer] = None
    ) -> Dict[str, Any]:
        """Render as an OpenAPI parameter object."""
        out: Dict[str, Any] = {
            'name': self.name,
            'in': self.location,
            'required': self.required,
            'description': self.description,
        }

        if target_version == '2.0':
            # Swagger 2.0 non-body parameters carry their type inline
            out.update(self.schema.to_openapi(target_version))
        else:
            out['schema'] = self.schema.to_openapi(target_version)

        if include_examples and self.example is not None:
            example = self.example
            if sanitizer is not None:
                if self.location == HEADER:
                    example = sanitizer.sanitize_header(self.name, example)
                else:
                    example = sanitizer.sanitize_object(example)
            out['x-example' if target_version == '2.0' else 'example'] = example

        return out


@dataclass
class RequestBody:
    """Request body content observed for one operation, keyed by content type."""

    content: Dict[str, Schema] = field(default_factory=dict)
    examples: Dict[str, Any] = field(default_factory=dict)


def decode_form_body(body: Any, content_type: str) -> Any:
    """Turn a url-encoded form string into a field mapping."""
    if content_type == FORM_CONTENT_TYPE and isinstance(body, str):
        return dict(parse_qsl(body, keep_blank_values=True))
    return body


class ParameterExtractor:
    """Builds the deduplicated parameter list for one operation."""

    def __init__(
        self,
        templater: Optional[PathTemplater] = None,
        inferencer: Optional[SchemaInferencer] = None,
        merger: Optional[SchemaMerger] = None
    ):
        self.templater = templater or PathTemplater()
        self.inferencer = inferencer or SchemaInferencer()
        self.merger = merger or SchemaMerger()

    def extract(self, records: Sequence[ExchangeRecord]) -> List[Parameter]:
        """
        Collect path, query and header parameters.

        Per record the order is path, query, header. Deduplication is
        first-seen-wins on (location, name). Records whose URL does not
        parse contribute headers only.

        Args:
            records: Records sharing one path template and method

        Returns:
            Ordered list of unique parameters
        """
        parameters: Dict[Tuple[str, str], Parameter] = {}

        def add(param: Parameter):
            if param.key not in parameters:
                parameters[param.key] = param

        for record in records:
            template = self.templater.template(record.url)

            if template.parsed:
                for path_param in template.parameters:
                    add(Parameter(
                        name=path_param.name,
                        location=PATH,
                        required=True,
                        schema=Schema(kind=path_param.type, format=path_param.format or None),
                        example=path_param.example,
                        description=f"Path parameter extracted from {template.template}",
                    ))

                parts = parse_url(record.url)
                for name, raw in parts.query_items():
                    value, schema = self.inferencer.infer_literal(raw)
                    add(Parameter(
                        name=name,
                        location=QUERY,
                        required=False,
                        schema=schema,
                        example=value,
                        description="Query parameter observed in requests",
                    ))
            else:
                logger.warning(f"Skipping path/query parameters for unparseable URL: {record.url!r}")

            for name, value in record.request_headers.items():
                add(Parameter(
                    name=name,
                    location=HEADER,
                    required=False,
                    schema=Schema(kind=STRING),
                    example=value,
                    description=f"Request header: {name}",
                ))

        return list(parameters.values())

    def request_body(self, records: Sequence[ExchangeRecord]) -> Optional[RequestBody]:
        """
        Derive the request body from every record that sent one.

        Bodies are grouped by base content type (default application/json)
        and each group's schemas are merged.

        Returns:
            RequestBody, or None if no record carried a body
        """
        bodies: Dict[str, List[Any]] = {}

        for record in records:
            if record.request_body is None:
                continue
            content_type = base_content_type(record.request_headers.get('content-type'))
            body = decode_form_body(record.request_body, content_type)
            bodies.setdefault(content_type, []).append(body)

        if not bodies:
            return None

        result = RequestBody()
        for content_type, samples in bodies.items():
            result.content[content_type] = self.merger.merge_values(samples, self.inferencer)
            result.examples[content_type] = samples[0]
        return result


def count_observed_parameters(record: ExchangeRecord) -> int:
    """Query parameter count plus top-level request body field count."""
    count = 0
    parts = parse_url(record.url)
    if parts is not None:
        count += len(parts.query_items())
    if isinstance(record.request_body, dict):
        count += len(record.request_body)
    return count
