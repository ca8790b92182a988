"""
End-to-end generation: parse, build, summarize, write.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import RegistryConfig
from .coverage import CoverageReport, compute_coverage
from .declaration_parser import DeclarationParser, ParseResult
from .models import EXPORT_BUCKETS, ScriptRegistry, SearchIndex
from .registry_builder import build_registry
from .search_index import build_search_index


@dataclass
class GenerationResult:
    parse_result: ParseResult
    registry: ScriptRegistry
    search_index: SearchIndex
    coverage: CoverageReport

    def summary(self) -> Dict[str, Any]:
        return build_summary(self.registry, self.coverage)


def _sorted_counts(counts: Dict[str, int], label: str):
    return [
        {label: key, "count": count}
        for key, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]


def build_summary(registry: ScriptRegistry, coverage: Optional[CoverageReport] = None) -> Dict[str, Any]:
    """Human-readable overview of a registry, suitable for diff review."""
    modules = []
    for name, module in registry.modules.items():
        modules.append({
            "name": name,
            "version": module.version,
            "elementCount": len(module.elements),
            "types": [
                {"type": kind, "count": len(module.exports[bucket])}
                for kind, bucket in EXPORT_BUCKETS.items()
                if module.exports[bucket]
            ],
        })

    elements_by_type: Dict[str, int] = {}
    for element in registry.index.values():
        elements_by_type[element.kind] = elements_by_type.get(element.kind, 0) + 1

    summary = {
        "generatedAt": registry.metadata.generated_at,
        "sourceFile": registry.metadata.source_file,
        "totalElements": registry.metadata.total_elements,
        "modules": modules,
        "elementsByType": _sorted_counts(elements_by_type, "type"),
        "categories": _sorted_counts({k: len(v) for k, v in registry.categories.items()}, "category"),
        "tags": _sorted_counts({k: len(v) for k, v in registry.tags.items()}, "tag"),
    }
    if coverage is not None:
        summary["coverage"] = coverage.to_dict()
    return summary


def _write_json(path: Path, data: Any):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logging.info(f"Wrote {path}")


def write_artifacts(result: GenerationResult, config: RegistryConfig) -> Dict[str, Path]:
    """
    Write the registry, search index and summary report as JSON.

    Returns:
        Mapping of artifact name to the path written
    """
    paths = {
        "registry": config.registry_path(),
        "search_index": config.search_index_path(),
        "summary": config.summary_path(),
    }
    _write_json(paths["registry"], result.registry.to_dict())
    _write_json(paths["search_index"], result.search_index.to_dict())
    _write_json(paths["summary"], result.summary())
    return paths


def generate(
    source_file: Union[str, Path],
    config: Optional[RegistryConfig] = None,
    progress_factory=None,
) -> GenerationResult:
    """
    Parse ``source_file`` and build every derived structure.

    Raises:
        FileNotFoundError: If the source file does not exist
        DuplicateElementError: Under the ``error`` duplicate policy
    """
    config = config or RegistryConfig()
    parser = DeclarationParser(config)
    parse_result = parser.parse_file(source_file, progress_factory=progress_factory)

    registry = build_registry(
        parse_result.elements,
        config,
        source_file=str(source_file),
        modules_seen=parse_result.modules_seen(),
        detected_versions=parse_result.detected_versions(),
    )
    coverage = compute_coverage(
        parse_result.source_text,
        registry,
        parse_result.outcomes,
        warning_threshold=config.coverage_warning_threshold,
    )
    return GenerationResult(
        parse_result=parse_result,
        registry=registry,
        search_index=build_search_index(registry),
        coverage=coverage,
    )
