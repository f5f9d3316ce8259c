"""
TraceSpec Export

Command-line export of generated OpenAPI documents: record filtering,
file writers and the tracespec entry point.
"""

from .filters import FilterConfig, RecordFilter
from .exporters import OpenAPIExporter, DomainExporter, MergeExporter, RawRecordsExporter

__all__ = [
    'FilterConfig',
    'RecordFilter',
    'OpenAPIExporter',
    'DomainExporter',
    'MergeExporter',
    'RawRecordsExporter',
]
