"""
Core data models for API elements extracted from declaration files.

This module contains the data structures for parsed declarations, the
assembled registry, and the flattened search index. Serialization uses
camelCase keys so the written artifacts can be embedded as static data.
"""

from typing import List, Dict, Any, Optional, Union
from dataclasses import dataclass, field

# Kind-plural labels, also used as the first category of every element
KIND_LABELS = {
    "enum": "Enums",
    "class": "Classes",
    "interface": "Interfaces",
    "function": "Functions",
    "type": "Types",
    "constant": "Constants",
}

# ModuleRegistry.exports buckets, keyed by element kind
EXPORT_BUCKETS = {
    "enum": "enums",
    "class": "classes",
    "interface": "interfaces",
    "function": "functions",
    "type": "types",
    "constant": "constants",
    "event": "events",
}


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class ApiParameter:
    """A single parameter of a function or method."""
    name: str
    type: str
    optional: bool = False
    default_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "name": self.name,
            "type": self.type,
            "optional": self.optional,
            "defaultValue": self.default_value,
        })


@dataclass
class ApiProperty:
    """A property of a class or interface."""
    name: str
    type: str
    description: Optional[str] = None
    readonly: bool = False
    optional: bool = False
    is_static: bool = False
    accessibility: str = "public"

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "readonly": self.readonly,
            "optional": self.optional,
            "isStatic": self.is_static,
            "accessibility": self.accessibility,
        })


@dataclass
class ApiMethod:
    """A method of a class."""
    name: str
    parameters: List[ApiParameter] = field(default_factory=list)
    return_type: str = "void"
    description: Optional[str] = None
    is_static: bool = False
    accessibility: str = "public"
    signature: str = ""
    tags: List[str] = field(default_factory=list)  # e.g. ['@throws This function can throw errors.']

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
            "returnType": self.return_type,
            "isStatic": self.is_static,
            "accessibility": self.accessibility,
            "signature": self.signature,
            "tags": list(self.tags),
        })


@dataclass
class ApiEnumValue:
    """One member of an enum."""
    name: str
    value: Union[int, str]
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "name": self.name,
            "value": self.value,
            "description": self.description,
        })


@dataclass
class CodeExample:
    """A fenced code example taken from an @example documentation tag."""
    title: str
    code: str
    imports: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "code": self.code, "imports": list(self.imports)}


@dataclass
class ApiElement:
    """One parsed top-level declaration."""
    id: str
    name: str
    kind: str  # enum | class | interface | function | type | constant
    module: str
    raw_definition: str
    description: Optional[str] = None
    raw_doc_comment: Optional[str] = None

    # Kind-specific payload
    enum_values: Optional[List[ApiEnumValue]] = None
    extends: Optional[str] = None
    implements: Optional[List[str]] = None
    properties: Optional[List[ApiProperty]] = None
    methods: Optional[List[ApiMethod]] = None
    parameters: Optional[List[ApiParameter]] = None
    return_type: Optional[str] = None
    type_definition: Optional[str] = None

    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    examples: List[CodeExample] = field(default_factory=list)
    stability: str = "stable"  # stable | experimental | deprecated

    @property
    def deprecated(self) -> bool:
        return self.stability == "deprecated"

    @property
    def experimental(self) -> bool:
        return self.stability == "experimental"

    def signature(self) -> Optional[str]:
        """One-line signature used by search summaries, if the kind has one."""
        if self.kind == "function" and self.parameters is not None:
            params = ", ".join(
                f"{p.name}{'?' if p.optional and p.default_value is None else ''}: {p.type}"
                for p in self.parameters
            )
            return f"{self.name}({params}): {self.return_type}"
        if self.kind == "type":
            return self.type_definition
        if self.kind == "constant" and self.type_definition:
            return f"{self.name}: {self.type_definition}"
        if self.kind == "class" and self.methods:
            return self.methods[0].signature
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.kind,
            "module": self.module,
            "description": self.description,
            "definition": self.raw_definition,
            "jsdoc": self.raw_doc_comment,
            "enumValues": [v.to_dict() for v in self.enum_values] if self.enum_values is not None else None,
            "extends": self.extends,
            "implements": list(self.implements) if self.implements is not None else None,
            "properties": [p.to_dict() for p in self.properties] if self.properties is not None else None,
            "methods": [m.to_dict() for m in self.methods] if self.methods is not None else None,
            "parameters": [p.to_dict() for p in self.parameters] if self.parameters is not None else None,
            "returnType": self.return_type,
            "typeDefinition": self.type_definition,
            "categories": list(self.categories),
            "tags": list(self.tags),
            "keywords": list(self.keywords),
            "examples": [e.to_dict() for e in self.examples] if self.examples else None,
            "stability": self.stability,
        }
        return _drop_none(data)


@dataclass
class ParseOutcome:
    """
    Result of one declaration attempt.

    Exactly one of `element` / `skip_reason` is set. `next_index` is the
    line index the scan loop continues from.
    """
    kind: str
    line_index: int
    next_index: int
    element: Optional[ApiElement] = None
    skip_reason: Optional[str] = None

    @property
    def parsed(self) -> bool:
        return self.element is not None

    @classmethod
    def ok(cls, element: ApiElement, line_index: int, next_index: int) -> "ParseOutcome":
        return cls(kind=element.kind, line_index=line_index, next_index=next_index, element=element)

    @classmethod
    def skipped(cls, kind: str, line_index: int, reason: str) -> "ParseOutcome":
        return cls(kind=kind, line_index=line_index, next_index=line_index + 1, skip_reason=reason)


@dataclass
class ModuleRegistry:
    """All elements of one module, in source order and bucketed by kind."""
    module: str
    version: str
    description: Optional[str] = None
    elements: List[ApiElement] = field(default_factory=list)
    exports: Dict[str, List[ApiElement]] = field(
        default_factory=lambda: {bucket: [] for bucket in EXPORT_BUCKETS.values()}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module,
            "version": self.version,
            "description": self.description,
            "elements": [e.to_dict() for e in self.elements],
            "exports": {
                bucket: [e.to_dict() for e in items]
                for bucket, items in self.exports.items()
            },
        }


@dataclass
class RegistryMetadata:
    generated_at: str
    source_file: str
    total_elements: int
    modules: List[str] = field(default_factory=list)
    parser_version: str = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "sourceFile": self.source_file,
            "totalElements": self.total_elements,
            "modules": list(self.modules),
            "parserVersion": self.parser_version,
        }


@dataclass
class ScriptRegistry:
    """The full parse result of one declaration file."""
    metadata: RegistryMetadata
    modules: Dict[str, ModuleRegistry] = field(default_factory=dict)
    index: Dict[str, ApiElement] = field(default_factory=dict)
    categories: Dict[str, List[str]] = field(default_factory=dict)
    tags: Dict[str, List[str]] = field(default_factory=dict)
    duplicate_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "modules": {name: m.to_dict() for name, m in self.modules.items()},
            "index": {element_id: e.to_dict() for element_id, e in self.index.items()},
            "categories": {k: list(v) for k, v in self.categories.items()},
            "tags": {k: list(v) for k, v in self.tags.items()},
        }


@dataclass
class SearchableElement:
    """Compact, independent summary of an element for search UIs."""
    id: str
    name: str
    kind: str
    module: str
    description: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    signature: Optional[str] = None
    deprecated: bool = False
    experimental: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "name": self.name,
            "type": self.kind,
            "module": self.module,
            "description": self.description,
            "categories": list(self.categories),
            "tags": list(self.tags),
            "keywords": list(self.keywords),
            "signature": self.signature,
            "deprecated": self.deprecated,
            "experimental": self.experimental,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchableElement":
        return cls(
            id=data["id"],
            name=data["name"],
            kind=data["type"],
            module=data["module"],
            description=data.get("description"),
            categories=list(data.get("categories", [])),
            tags=list(data.get("tags", [])),
            keywords=list(data.get("keywords", [])),
            signature=data.get("signature"),
            deprecated=bool(data.get("deprecated", False)),
            experimental=bool(data.get("experimental", False)),
        )


@dataclass
class SearchIndex:
    """Flat summaries plus per-facet counts."""
    elements: List[SearchableElement] = field(default_factory=list)
    categories: Dict[str, int] = field(default_factory=dict)
    tags: Dict[str, int] = field(default_factory=dict)
    modules: Dict[str, int] = field(default_factory=dict)
    types: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements": [e.to_dict() for e in self.elements],
            "categories": dict(self.categories),
            "tags": dict(self.tags),
            "modules": dict(self.modules),
            "types": dict(self.types),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchIndex":
        return cls(
            elements=[SearchableElement.from_dict(e) for e in data.get("elements", [])],
            categories=dict(data.get("categories", {})),
            tags=dict(data.get("tags", {})),
            modules=dict(data.get("modules", {})),
            types=dict(data.get("types", {})),
        )


@dataclass
class SearchFilters:
    """Filter options for searching the index. Empty lists mean 'no filter'."""
    query: str = ""
    types: List[str] = field(default_factory=list)
    modules: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    include_deprecated: bool = True
    include_experimental: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "types": list(self.types),
            "modules": list(self.modules),
            "categories": list(self.categories),
            "tags": list(self.tags),
            "includeDeprecated": self.include_deprecated,
            "includeExperimental": self.include_experimental,
        }


@dataclass
class SearchResult:
    elements: List[SearchableElement]
    total: int
    filters: SearchFilters
    available_filters: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements": [e.to_dict() for e in self.elements],
            "total": self.total,
            "filters": self.filters.to_dict(),
            "availableFilters": {k: dict(v) for k, v in self.available_filters.items()},
        }
