#!/usr/bin/env python3
"""
TraceSpec - OpenAPI documents from captured HTTP traffic

Builds an OpenAPI 3.0 (or Swagger 2.0) document from capture files
written by the capture proxy or the browser recorder, and merges
existing OpenAPI documents.

Usage:
    tracespec build captures.json -o openapi.yaml --title "Shop API"
    tracespec merge shop.yaml auth.json -o combined.yaml
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .. import __version__
from ..common.utils import CaptureLoader, load_structured_file
from ..openapi.records import GenerationOptions
from .exporters import DomainExporter, MergeExporter, OpenAPIExporter, RawRecordsExporter
from .filters import FilterConfig, RecordFilter


logger = logging.getLogger("tracespec")


# ============================================================================
# COMMAND-LINE INTERFACE
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser.

    Returns:
        ArgumentParser with the build and merge subcommands
    """
    parser = argparse.ArgumentParser(
        prog='tracespec',
        description="TraceSpec - OpenAPI documents from captured HTTP traffic",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build an OpenAPI 3.0 document
  %(prog)s build captures.json -o openapi.yaml
  %(prog)s build captures.json -o openapi.json --title "Shop API" --version 2.1.0

  # Swagger 2.0 output, examples redacted
  %(prog)s build captures.json -o swagger.json --swagger2 --sanitize

  # Only some hosts (comma-separated, wildcards allowed)
  %(prog)s build captures.json -o api.yaml --filter-host "*.example.com"
  %(prog)s build captures.json -o api.yaml --filter-regex "/api/v[0-9]+/"

  # One document per domain, or all domains merged (OUT is a directory)
  %(prog)s build captures.json -o out/ --by-domain
  %(prog)s build captures.json -o out/ --merge-domains

  # Settings from a config file (generation: and filters: sections)
  %(prog)s build captures.json -o api.yaml --config tracespec.yaml

  # Merge existing documents (the first file wins conflicts)
  %(prog)s merge shop.yaml auth.json -o combined.yaml
        """
    )
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}",
                        dest='program_version')
    parser.add_argument('--verbose', action='store_true', help='Verbose output (debug logging, filter decisions)')
    parser.add_argument('--quiet', action='store_true', help='Reduce logging output')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # --- BUILD command ---
    build_cmd = subparsers.add_parser('build', help='Build an OpenAPI document from capture files')
    build_cmd.add_argument('captures', nargs='+', help='Capture JSON file(s)')
    build_cmd.add_argument('-o', '--output', required=True,
                           help='Output file (directory with --by-domain/--merge-domains)')
    build_cmd.add_argument('--format', choices=['json', 'yaml'],
                           help='Output format (default: from the output extension, else yaml)')
    build_cmd.add_argument('--config', metavar='FILE', help='YAML config with generation: and filters: sections')
    build_cmd.add_argument('--title', help='API title (default: Recorded API)')
    build_cmd.add_argument('--version', dest='api_version', help='API version (default: 1.0.0)')
    build_cmd.add_argument('--description', help='API description')
    build_cmd.add_argument('--server-url', dest='server_url',
                           help='Server URL, or "auto" to derive servers from the captures')
    build_cmd.add_argument('--no-examples', action='store_true', help='Leave examples out of the document')
    build_cmd.add_argument('--no-parameterize', action='store_true',
                           help='Keep concrete paths instead of {id}/{uuid} templates')
    build_cmd.add_argument('--swagger2', action='store_true', help='Write Swagger 2.0 instead of OpenAPI 3.0')
    build_cmd.add_argument('--sanitize', action='store_true', help='Redact credentials in examples')
    domain_group = build_cmd.add_mutually_exclusive_group()
    domain_group.add_argument('--by-domain', action='store_true', help='Write one document per captured domain')
    domain_group.add_argument('--merge-domains', action='store_true',
                              help='Write all domains merged into one document')
    build_cmd.add_argument('--filter-host', dest='filter_host', default='', metavar='HOSTS',
                           help='Only these hosts (comma-separated). Supports wildcards: example.com,*.api.com')
    build_cmd.add_argument('--filter-regex', dest='filter_regex', default='', metavar='PATTERN',
                           help='Only records matching this regex (applied to URL and host)')
    build_cmd.add_argument('--exclude-static', action='store_true',
                           help='Drop scripts, stylesheets, images and fonts')
    build_cmd.add_argument('--records-out', dest='records_out', metavar='PATH',
                           help='Also dump the filtered records as raw JSON')

    # --- MERGE command ---
    merge_parser = subparsers.add_parser('merge', help='Merge OpenAPI documents (JSON or YAML)')
    merge_parser.add_argument('documents', nargs='+', help='OpenAPI 3.x or Swagger 2.0 files (at least two)')
    merge_parser.add_argument('-o', '--output', required=True, help='Output file')
    merge_parser.add_argument('--format', choices=['json', 'yaml'],
                              help='Output format (default: from the output extension, else yaml)')

    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Set up console logging for the tracespec logger hierarchy."""
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.ERROR)
    else:
        logger.setLevel(logging.WARNING)


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Read the optional YAML config file."""
    if not config_path:
        return {}
    data = load_structured_file(config_path) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return data


def resolve_options(args: argparse.Namespace, config: Dict[str, Any]) -> GenerationOptions:
    """Generation options from the config file, overridden by command-line flags."""
    options = GenerationOptions.from_dict(config.get('generation') or {})

    overrides: Dict[str, Any] = {}
    if args.title:
        overrides['title'] = args.title
    if args.api_version:
        overrides['version'] = args.api_version
    if args.description:
        overrides['description'] = args.description
    if args.server_url:
        overrides['server_url'] = args.server_url
    if args.no_examples:
        overrides['include_examples'] = False
    if args.no_parameterize:
        overrides['parameterize_urls'] = False
    if args.swagger2:
        overrides['target_version'] = '2.0'
    if args.sanitize:
        overrides['sanitize'] = True

    return replace(options, **overrides) if overrides else options


def resolve_filter(args: argparse.Namespace, config: Dict[str, Any]) -> RecordFilter:
    """Record filter from the config file, overridden by command-line flags."""
    filter_config = FilterConfig.from_dict(config.get('filters') or {})

    if args.filter_host:
        filter_config.hosts = [h.strip() for h in args.filter_host.split(',') if h.strip()]
    if args.filter_regex:
        filter_config.regex = args.filter_regex
    if args.exclude_static:
        filter_config.exclude_static = True

    return RecordFilter.from_config(filter_config)


def load_records(capture_paths: List[str]) -> list:
    """Load and concatenate records from every capture file."""
    records = []
    for path in capture_paths:
        loaded = CaptureLoader(path).load_records()
        logger.info(f"Loaded {len(loaded)} record(s) from {path}")
        records.extend(loaded)
    return records


# ============================================================================
# COMMANDS
# ============================================================================

def cmd_build(args: argparse.Namespace) -> int:
    """
    Build OpenAPI document(s) from capture files.

    Returns:
        Process exit code
    """
    try:
        config = load_config(args.config)
        options = resolve_options(args, config)
        records = load_records(args.captures)
    except (OSError, ValueError) as e:
        print(f"❌ Failed to load captures: {e}", flush=True)
        return 1

    record_filter = resolve_filter(args, config)
    filtered = record_filter.filter(records, verbose=args.verbose)
    if len(filtered) < len(records):
        print(f"   Filtered {len(records)} → {len(filtered)} records", flush=True)

    if not filtered:
        print("⚠️  No records to export", flush=True)
        return 1

    try:
        if args.by_domain:
            DomainExporter.export_by_domain(filtered, args.output, options, fmt=args.format or 'yaml')
        elif args.merge_domains:
            DomainExporter.export_merged(filtered, args.output, options, fmt=args.format or 'yaml')
        else:
            OpenAPIExporter.export(filtered, args.output, options, fmt=args.format)

        if args.records_out:
            RawRecordsExporter.export(filtered, args.records_out)
    except OSError:
        return 1

    return 0


def cmd_merge(args: argparse.Namespace) -> int:
    """
    Merge OpenAPI documents.

    Returns:
        Process exit code
    """
    try:
        MergeExporter.export(args.documents, args.output, fmt=args.format)
    except (OSError, ValueError) as e:
        print(f"❌ Merge failed: {e}", flush=True)
        return 1
    return 0


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose, quiet=args.quiet)

    if args.command == 'build':
        return cmd_build(args)
    elif args.command == 'merge':
        return cmd_merge(args)

    parser.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
