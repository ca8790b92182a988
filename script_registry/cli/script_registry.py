"""
Command line entry point: generate registry artifacts, check coverage,
and search a written index.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from script_registry.core.config import RegistryConfig, load_config
from script_registry.core.coverage import CoverageReport
from script_registry.core.models import SearchFilters
from script_registry.core.registry_builder import DuplicateElementError
from script_registry.core.report import GenerationResult, generate, write_artifacts
from script_registry.core.search_index import load_search_index, search


def _setup_logging(config: RegistryConfig) -> None:
    level = getattr(logging, str(config.log_level).upper(), logging.INFO)
    logging.basicConfig(level=level, stream=sys.stderr)


def _resolve_config(args: argparse.Namespace) -> RegistryConfig:
    cli_overrides = {}
    if getattr(args, "source", None):
        cli_overrides['source_file'] = args.source
    if getattr(args, "output_dir", None):
        cli_overrides['output_dir'] = args.output_dir

    config = load_config(config_path=getattr(args, "config", None), cli_args=cli_overrides)
    _setup_logging(config)
    return config


def _progress_factory(args: argparse.Namespace):
    if getattr(args, "no_progress", False):
        return None
    return lambda total: tqdm(total=total, desc="Parsing declarations", unit="line")


def _source_path(config: RegistryConfig) -> Optional[Path]:
    if not config.source_file:
        print("❌ Error: no source file given and 'source_file' is not set in the config.", file=sys.stderr)
        return None
    source = Path(config.source_file)
    if not source.is_file():
        print(f"❌ Error: source file not found: {source}", file=sys.stderr)
        return None
    return source


def _print_coverage(coverage: CoverageReport, threshold: float) -> None:
    print("\n📐 Parse coverage:")
    for kind, expected in coverage.expected.items():
        pct = coverage.percentage(kind)
        if pct is None:
            continue
        marker = "⚠️ " if pct < threshold else "✓"
        print(f"   {marker} {kind}: {coverage.parsed.get(kind, 0)}/{expected} ({pct}%)")
    if coverage.overall is not None:
        print(f"   Overall: {coverage.overall}%")
    for kind, reasons in coverage.skip_reasons.items():
        for reason, count in reasons.items():
            print(f"   Skipped {count} {kind}: {reason}")
    if coverage.duplicate_ids:
        print(f"   Duplicate ids: {', '.join(coverage.duplicate_ids)}")


def _print_counts(result: GenerationResult) -> None:
    registry = result.registry
    print(f"   Found {registry.metadata.total_elements} elements in {len(registry.modules)} modules")
    for name, module in registry.modules.items():
        print(f"   - {name} v{module.version}: {len(module.elements)} elements")


def _run_generate(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    source = _source_path(config)
    if source is None:
        return 1

    print(f"🚀 Generating API registry from {source}")
    try:
        result = generate(source, config, progress_factory=_progress_factory(args))
    except DuplicateElementError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    _print_counts(result)
    paths = write_artifacts(result, config)
    print("\n💾 Artifacts written:")
    for name, path in paths.items():
        print(f"   {name}: {path}")

    _print_coverage(result.coverage, config.coverage_warning_threshold)
    print("\n✅ Registry generation complete!")
    return 0


def _run_coverage(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    source = _source_path(config)
    if source is None:
        return 1

    try:
        result = generate(source, config, progress_factory=_progress_factory(args))
    except DuplicateElementError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.coverage.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_coverage(result.coverage, config.coverage_warning_threshold)
    return 0


def _run_search(args: argparse.Namespace) -> int:
    index_path = Path(args.index)
    if not index_path.is_file():
        print(f"❌ Error: search index not found: {index_path}", file=sys.stderr)
        return 1

    index = load_search_index(index_path)
    filters = SearchFilters(
        query=args.query or "",
        types=args.type or [],
        modules=args.module or [],
        categories=args.category or [],
        tags=args.tag or [],
        include_deprecated=not args.no_deprecated,
        include_experimental=not args.no_experimental,
    )
    result = search(index, filters, limit=args.limit, offset=args.offset)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(f"\n🔍 {result.total} matches" + (f" for '{filters.query}'" if filters.query else ""))
    for i, element in enumerate(result.elements, start=args.offset + 1):
        flags = []
        if element.deprecated:
            flags.append("deprecated")
        if element.experimental:
            flags.append("experimental")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"{i}. {element.name} ({element.kind}){suffix}")
        print(f"   ID: {element.id}")
        if element.signature:
            print(f"   Signature: {element.signature}")
        if element.description:
            print(f"   {element.description}")
    return 0


def _add_source_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "source",
        nargs='?',
        default=None,
        help="Path to the declaration file. If not provided, uses 'source_file' from config.",
    )
    parser.add_argument("--config", help="Path to configuration YAML file (default: registry.config.yaml)")
    parser.add_argument("--no-progress", action="store_true", help="Do not show a progress bar while parsing.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Script registry CLI: parse API declaration files into a registry and search index."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Parse a declaration file and write registry artifacts")
    _add_source_args(gen)
    gen.add_argument("--output-dir", help="Directory for generated artifacts (overrides config)")
    gen.set_defaults(func=_run_generate)

    cov = subparsers.add_parser("coverage", help="Report how many declarations were parsed")
    _add_source_args(cov)
    cov.add_argument("--json", action="store_true", help="Print the coverage report as JSON.")
    cov.set_defaults(func=_run_coverage)

    srch = subparsers.add_parser("search", help="Search a generated search index")
    srch.add_argument("query", nargs='?', default="", help="Case-insensitive text to match.")
    srch.add_argument("--index", required=True, help="Path to a generated search index JSON file.")
    srch.add_argument("--type", nargs='*', default=None,
                      choices=["enum", "class", "interface", "function", "type", "constant"],
                      help="Only include these element kinds.")
    srch.add_argument("--module", nargs='*', default=None, help="Only include these modules.")
    srch.add_argument("--category", nargs='*', default=None, help="Only include these categories.")
    srch.add_argument("--tag", nargs='*', default=None, help="Only include elements with these tags.")
    srch.add_argument("--no-deprecated", action="store_true", help="Exclude deprecated elements.")
    srch.add_argument("--no-experimental", action="store_true", help="Exclude experimental elements.")
    srch.add_argument("--limit", type=int, default=20, help="Number of results to return.")
    srch.add_argument("--offset", type=int, default=0, help="Number of results to skip.")
    srch.add_argument("--json", action="store_true", help="Print the raw search result as JSON.")
    srch.set_defaults(func=_run_search)

    return parser


def main(argv=None):
    """Main entry point for the registry CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except Exception as e:
        print(f"\n❌ An unexpected error occurred: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
