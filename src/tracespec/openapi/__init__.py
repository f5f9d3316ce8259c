"""
TraceSpec OpenAPI Synthesis

Turns captured HTTP exchanges into OpenAPI documents and merges
existing OpenAPI documents.

Features:
- Path templating ({id}, {uuid}) and parameter extraction
- JSON-Schema inference and merging across samples
- One operation per (path template, method) with per-status responses
- OpenAPI 3.0 output, or a Swagger 2.0 rendering of the same model
- Merging of OpenAPI 3 / Swagger 2.0 documents
- Per-domain and merged multi-domain export
"""

from .records import ExchangeRecord, GenerationOptions, to_json_value
from .paths import PathTemplater, PathTemplate, PathParameter
from .schema import Schema, SchemaInferencer, SchemaMerger
from .sanitizer import DataSanitizer
from .parameters import Parameter, ParameterExtractor, RequestBody
from .operations import Operation, OperationSynthesizer, Response, resolve_tags
from .builder import OpenAPIDocument, DocumentBuilder
from .merger import DocumentMerger, MergeResult, upgrade_to_openapi3
from .serializers import (
    ExportResult,
    to_json,
    to_yaml,
    serialize,
    sanitize_filename,
    export_filename,
    export_document,
    export_records,
)
from .domains import MultiDomainExporter, group_records_by_domain

__all__ = [
    'ExchangeRecord',
    'GenerationOptions',
    'to_json_value',
    'PathTemplater',
    'PathTemplate',
    'PathParameter',
    'Schema',
    'SchemaInferencer',
    'SchemaMerger',
    'DataSanitizer',
    'Parameter',
    'ParameterExtractor',
    'RequestBody',
    'Operation',
    'OperationSynthesizer',
    'Response',
    'resolve_tags',
    'OpenAPIDocument',
    'DocumentBuilder',
    'DocumentMerger',
    'MergeResult',
    'upgrade_to_openapi3',
    'ExportResult',
    'to_json',
    'to_yaml',
    'serialize',
    'sanitize_filename',
    'export_filename',
    'export_document',
    'export_records',
    'MultiDomainExporter',
    'group_records_by_domain',
]
