"""
File export for TraceSpec.

Writes generated documents to disk:
- OpenAPI 3.0 / Swagger 2.0 documents built from captured records
- One document per captured domain, or all domains merged into one
- Merged OpenAPI documents from existing JSON/YAML files
- Raw record dumps
"""

from pathlib import Path
from typing import List, Optional

from ..common.utils import load_structured_file
from ..openapi.builder import DocumentBuilder
from ..openapi.domains import MultiDomainExporter
from ..openapi.merger import DocumentMerger
from ..openapi.records import ExchangeRecord, GenerationOptions
from ..openapi.serializers import ExportResult, export_document, export_records, serialize


def format_for_path(output_path: str, default: str = 'yaml') -> str:
    """Output format implied by a file extension (.json, .yaml, .yml)."""
    suffix = Path(output_path).suffix.lower()
    if suffix == '.json':
        return 'json'
    if suffix in ('.yaml', '.yml'):
        return 'yaml'
    return default


def write_result(content: str, output_path: str) -> Path:
    """
    Write text to output_path, creating parent directories.

    Raises:
        OSError: If the directory or file cannot be written
    """
    output_file = Path(output_path)
    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"❌ Error creating directory {output_file.parent}: {e}", flush=True)
        raise

    try:
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(content)
    except OSError as e:
        print(f"❌ Error writing to {output_path}: {e}", flush=True)
        raise

    return output_file


class OpenAPIExporter:
    """
    Exports captured records as an OpenAPI 3.0 (or Swagger 2.0) document.
    """

    @staticmethod
    def export(records: List[ExchangeRecord], output_path: str,
               options: Optional[GenerationOptions] = None, fmt: Optional[str] = None) -> Optional[ExportResult]:
        """
        Build a document from records and write it to output_path.

        Args:
            records: Captured exchange records
            output_path: Where to save the document
            options: Generation options (title, version, target version, ...)
            fmt: json or yaml (defaults to the output file extension)

        Returns:
            The written ExportResult, or None when there was nothing to export
        """
        if not records:
            print("⚠️  No records to export", flush=True)
            return None

        options = options or GenerationOptions()
        fmt = fmt or format_for_path(output_path)

        document = DocumentBuilder(options).build(records)
        result = export_document(document, fmt, filename=Path(output_path).name)
        write_result(result.content, output_path)

        label = 'Swagger 2.0' if options.target_version == '2.0' else 'OpenAPI 3.0'
        print(f"✓ Exported {label} document with {len(document.paths)} paths, "
              f"{document.operation_count} operations → {output_path}", flush=True)
        return result


class DomainExporter:
    """
    Exports captured records grouped by domain.
    """

    @staticmethod
    def export_by_domain(records: List[ExchangeRecord], output_dir: str,
                         options: Optional[GenerationOptions] = None, fmt: str = 'yaml') -> List[Path]:
        """
        Write one document per domain into output_dir.

        Files are named after each domain's title
        ({sanitized-title}-openapi.{ext}).
        """
        if not records:
            print("⚠️  No records to export", flush=True)
            return []

        exporter = MultiDomainExporter(options, fmt=fmt)
        written = []
        for result in exporter.export_by_domains(records):
            path = write_result(result.content, str(Path(output_dir) / result.filename))
            print(f"✓ Exported {result.filename} ({result.size / 1024:.1f} KB) → {path}", flush=True)
            written.append(path)
        return written

    @staticmethod
    def export_merged(records: List[ExchangeRecord], output_dir: str,
                      options: Optional[GenerationOptions] = None, fmt: str = 'yaml') -> Optional[Path]:
        """Merge every domain's document and write it into output_dir."""
        if not records:
            print("⚠️  No records to export", flush=True)
            return None

        result = MultiDomainExporter(options, fmt=fmt).export_merged(records)
        path = write_result(result.content, str(Path(output_dir) / result.filename))
        print(f"✓ Exported merged document ({result.size / 1024:.1f} KB) → {path}", flush=True)
        return path


class MergeExporter:
    """
    Merges existing OpenAPI documents (JSON or YAML files).
    """

    @staticmethod
    def export(input_paths: List[str], output_path: str, fmt: Optional[str] = None) -> dict:
        """
        Merge the documents in input_paths (first file wins conflicts).

        Raises:
            FileNotFoundError: If an input file doesn't exist
            ValueError: If fewer than two inputs are given
        """
        if len(input_paths) < 2:
            raise ValueError("At least two documents are required for merging")

        merger = DocumentMerger()
        merged = None
        for path in input_paths:
            document = load_structured_file(path)
            if merged is None:
                merged = document
                continue
            report = merger.merge_with_report(merged, document)
            for warning in report.warnings:
                print(f"⚠️  {path}: {warning}", flush=True)
            print(f"   {path}: {len(report.added)} added, {len(report.merged)} merged operations", flush=True)
            merged = report.document

        fmt = fmt or format_for_path(output_path)
        write_result(serialize(merged, fmt), output_path)
        print(f"✓ Merged {len(input_paths)} documents ({len(merged.get('paths', {}))} paths) → {output_path}",
              flush=True)
        return merged


class RawRecordsExporter:
    """
    Exports records as a raw JSON dump.
    """

    @staticmethod
    def export(records: List[ExchangeRecord], output_path: str) -> Path:
        result = export_records(records)
        path = write_result(result.content, output_path)

        # Show file size for user feedback
        file_size = path.stat().st_size / 1024
        print(f"✓ Exported raw records ({file_size:.1f} KB) → {output_path}", flush=True)
        return path
