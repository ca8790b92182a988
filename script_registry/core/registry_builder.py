"""
Registry assembly.

Folds the parsed element list into a ScriptRegistry: the global id index,
per-module registries bucketed by kind, and the category/tag inverted
indexes.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from .config import PARSER_VERSION, RegistryConfig
from .models import (
    EXPORT_BUCKETS,
    ApiElement,
    ModuleRegistry,
    RegistryMetadata,
    ScriptRegistry,
)


class DuplicateElementError(ValueError):
    """Two declarations resolved to the same element id."""

    def __init__(self, element_id: str):
        super().__init__(f"Duplicate element id: {element_id}")
        self.element_id = element_id


def index_elements(elements: Iterable[ApiElement], policy: str = "last_wins") -> Tuple[Dict[str, ApiElement], List[str]]:
    """
    Build the global id -> element index.

    Under ``last_wins`` the later element replaces the earlier one but keeps
    its position in the index; under ``first_wins`` later duplicates are
    dropped; under ``error`` the first duplicate raises.

    Returns:
        Tuple of (index, duplicate ids in first-seen order)
    """
    index: Dict[str, ApiElement] = {}
    duplicates: List[str] = []
    for element in elements:
        if element.id in index:
            if policy == "error":
                raise DuplicateElementError(element.id)
            if element.id not in duplicates:
                duplicates.append(element.id)
            if policy == "first_wins":
                continue
        index[element.id] = element
    return index, duplicates


def _append(bucket_map: Dict[str, List[str]], key: str, element_id: str):
    bucket_map.setdefault(key, []).append(element_id)


def build_registry(
    elements: List[ApiElement],
    config: Optional[RegistryConfig] = None,
    source_file: str = "",
    modules_seen: Optional[List[str]] = None,
    detected_versions: Optional[Dict[str, str]] = None,
    generated_at: Optional[str] = None,
) -> ScriptRegistry:
    """
    Assemble a ScriptRegistry from parsed elements.

    Args:
        elements: Parsed elements in source order
        config: Registry configuration (module tables, duplicate policy)
        source_file: Source identifier recorded in the metadata
        modules_seen: Modules the scan encountered, in first-seen order
        detected_versions: Module versions stated in the source
        generated_at: ISO timestamp; defaults to now (UTC)

    Raises:
        DuplicateElementError: If ``config.duplicate_policy`` is ``error``
            and two elements share an id.
    """
    config = config or RegistryConfig()
    detected_versions = detected_versions or {}

    index, duplicates = index_elements(elements, config.duplicate_policy)
    for element_id in duplicates:
        logging.warning(f"Duplicate element id {element_id} resolved by {config.duplicate_policy}")

    module_names: List[str] = list(modules_seen or [])
    for element in index.values():
        if element.module not in module_names:
            module_names.append(element.module)

    modules: Dict[str, ModuleRegistry] = {
        name: ModuleRegistry(
            module=name,
            version=detected_versions.get(name) or config.version_for(name),
            description=config.description_for(name),
        )
        for name in module_names
    }

    categories: Dict[str, List[str]] = {}
    tags: Dict[str, List[str]] = {}
    for element in index.values():
        module = modules[element.module]
        module.elements.append(element)
        module.exports[EXPORT_BUCKETS[element.kind]].append(element)
        for category in element.categories:
            _append(categories, category, element.id)
        for tag in element.tags:
            _append(tags, tag, element.id)

    metadata = RegistryMetadata(
        generated_at=generated_at or datetime.now(timezone.utc).isoformat(),
        source_file=source_file,
        total_elements=len(index),
        modules=module_names,
        parser_version=PARSER_VERSION,
    )
    logging.info(f"Built registry: {len(index)} elements across {len(modules)} modules")
    return ScriptRegistry(
        metadata=metadata,
        modules=modules,
        index=index,
        categories=categories,
        tags=tags,
        duplicate_ids=duplicates,
    )
