"""
Search index construction and faceted search.
"""

import json
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, List, Union

from .models import (
    ApiElement,
    ScriptRegistry,
    SearchableElement,
    SearchFilters,
    SearchIndex,
    SearchResult,
)


def summarize_element(element: ApiElement) -> SearchableElement:
    """Independent, compact projection of one element."""
    return SearchableElement(
        id=element.id,
        name=element.name,
        kind=element.kind,
        module=element.module,
        description=element.description,
        categories=list(element.categories),
        tags=list(element.tags),
        keywords=list(element.keywords),
        signature=element.signature(),
        deprecated=element.deprecated,
        experimental=element.experimental,
    )


def build_search_index(registry: ScriptRegistry) -> SearchIndex:
    """One summary per indexed element plus category/tag/module/kind counts."""
    index = SearchIndex()
    for element in registry.index.values():
        summary = summarize_element(element)
        index.elements.append(summary)
        _count(index.categories, summary.categories)
        _count(index.tags, summary.tags)
        _count(index.modules, [summary.module])
        _count(index.types, [summary.kind])
    return index


def load_search_index(path: Union[str, Path]) -> SearchIndex:
    with open(path, 'r', encoding='utf-8') as f:
        return SearchIndex.from_dict(json.load(f))


def _count(counter: Dict[str, int], keys: Iterable[str]):
    for key in keys:
        counter[key] = counter.get(key, 0) + 1


def _matches_query(element: SearchableElement, query: str) -> bool:
    haystacks = [element.name, element.description or "", element.module] + element.keywords
    return any(query in text.lower() for text in haystacks)


def _any_of(selected: List[str], values: Iterable[str]) -> bool:
    return not selected or any(value in selected for value in values)


def matches(element: SearchableElement, filters: SearchFilters) -> bool:
    """True if the element passes every facet of ``filters``."""
    query = filters.query.strip().lower()
    if query and not _matches_query(element, query):
        return False
    if not _any_of(filters.types, [element.kind]):
        return False
    if not _any_of(filters.modules, [element.module]):
        return False
    if not _any_of(filters.categories, element.categories):
        return False
    if not _any_of(filters.tags, element.tags):
        return False
    if element.deprecated and not filters.include_deprecated:
        return False
    if element.experimental and not filters.include_experimental:
        return False
    return True


def _rank(element: SearchableElement, query: str):
    name = element.name.lower()
    if query and name == query:
        group = 0
    elif query and name.startswith(query):
        group = 1
    else:
        group = 2
    return group, name, element.id


def search(index: SearchIndex, filters: SearchFilters, limit: int = 50, offset: int = 0) -> SearchResult:
    """
    Filter and rank index summaries.

    Results are ordered exact name match first, then name-prefix matches,
    then alphabetically. ``total`` and ``available_filters`` describe the
    full match set before ``offset``/``limit`` are applied.
    """
    query = filters.query.strip().lower()
    matched = sorted(
        (e for e in index.elements if matches(e, filters)),
        key=lambda e: _rank(e, query),
    )

    available = {
        "types": Counter(e.kind for e in matched),
        "modules": Counter(e.module for e in matched),
        "categories": Counter(c for e in matched for c in e.categories),
        "tags": Counter(t for e in matched for t in e.tags),
    }
    return SearchResult(
        elements=matched[offset:offset + limit],
        total=len(matched),
        filters=filters,
        available_filters={facet: dict(counts) for facet, counts in available.items()},
    )
