"""
Unified interface for turning API declaration files into a registry.

This module provides a small, consistent API over the parsing pipeline:
parse a declaration file, build the registry and search index from it, and
query the result.
"""

from pathlib import Path
from typing import List, Optional, Union

# Core data models
from .models import (
    ApiElement,
    ApiEnumValue,
    ApiMethod,
    ApiParameter,
    ApiProperty,
    CodeExample,
    ModuleRegistry,
    ParseOutcome,
    ScriptRegistry,
    SearchableElement,
    SearchFilters,
    SearchIndex,
    SearchResult,
)
from .config import RegistryConfig, load_config
from .declaration_parser import DeclarationParser, ParseResult
from .registry_builder import DuplicateElementError, build_registry
from .search_index import build_search_index, load_search_index, search
from .registry_query import RegistryQuery
from .coverage import CoverageReport, compute_coverage
from .report import GenerationResult, build_summary, generate, write_artifacts

# Type alias for file paths
FilePath = Union[str, Path]


def parse_text(text: str, config: Optional[RegistryConfig] = None) -> List[ApiElement]:
    """
    Parse declaration text held in memory.

    Example:
        >>> elements = parse_text("export type Foo = string;")
        >>> elements[0].id
        '@minecraft/server.Foo'
    """
    return DeclarationParser(config).parse_text(text).elements


def registry_from_text(text: str, config: Optional[RegistryConfig] = None) -> ScriptRegistry:
    """Parse declaration text and assemble a registry from it."""
    result = DeclarationParser(config).parse_text(text)
    return build_registry(
        result.elements,
        config,
        source_file=result.source_name,
        modules_seen=result.modules_seen(),
        detected_versions=result.detected_versions(),
    )


__all__ = [
    # Core models
    'ApiElement',
    'ApiEnumValue',
    'ApiMethod',
    'ApiParameter',
    'ApiProperty',
    'CodeExample',
    'ModuleRegistry',
    'ParseOutcome',
    'ScriptRegistry',
    'SearchableElement',
    'SearchFilters',
    'SearchIndex',
    'SearchResult',

    # Configuration
    'RegistryConfig',
    'load_config',

    # Pipeline
    'DeclarationParser',
    'ParseResult',
    'DuplicateElementError',
    'build_registry',
    'build_search_index',
    'load_search_index',
    'search',
    'RegistryQuery',
    'CoverageReport',
    'compute_coverage',
    'GenerationResult',
    'build_summary',
    'generate',
    'write_artifacts',

    # Convenience functions
    'parse_text',
    'registry_from_text',

    # Type aliases
    'FilePath',
]
