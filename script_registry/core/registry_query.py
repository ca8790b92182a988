"""
Read-only queries over a built registry.

These back the component picker (lookup by id and by category/tag facets)
and code completion (name-prefix lookup and members of a class or
interface, including inherited ones).
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .models import ApiElement, ApiMethod, ApiProperty, ScriptRegistry
from .utils import split_parameters

GENERIC_SUFFIX_PATTERN = re.compile(r'<.*>$')
MEMBER_CONTAINER_KINDS = ("class", "interface")


@dataclass
class ResolvedMember:
    """A property or method together with the type that declares it."""
    owner_id: str
    member: Union[ApiProperty, ApiMethod]

    @property
    def member_kind(self) -> str:
        return "method" if isinstance(self.member, ApiMethod) else "property"

    def to_dict(self) -> Dict[str, Any]:
        data = self.member.to_dict()
        data["kind"] = self.member_kind
        data["declaredIn"] = self.owner_id
        return data


def simple_type_name(reference: str) -> str:
    """``mod.Base<T>`` -> ``Base``"""
    name = GENERIC_SUFFIX_PATTERN.sub('', reference.strip())
    return name.rsplit('.', 1)[-1].strip()


class RegistryQuery:
    """Lookups over one ScriptRegistry. Never mutates it."""

    def __init__(self, registry: ScriptRegistry):
        self.registry = registry
        self._by_name: Dict[str, List[ApiElement]] = {}
        for element in registry.index.values():
            self._by_name.setdefault(element.name, []).append(element)

    def get(self, element_id: str) -> Optional[ApiElement]:
        return self.registry.index.get(element_id)

    def by_category(self, label: str) -> List[ApiElement]:
        return [self.registry.index[i] for i in self.registry.categories.get(label, [])]

    def by_tag(self, tag: str) -> List[ApiElement]:
        return [self.registry.index[i] for i in self.registry.tags.get(tag, [])]

    def modules(self) -> List[str]:
        return list(self.registry.modules.keys())

    def complete(
        self,
        prefix: str,
        kinds: Optional[List[str]] = None,
        module: Optional[str] = None,
        limit: int = 20,
    ) -> List[ApiElement]:
        """
        Elements whose name starts with ``prefix`` (case-insensitive).

        Ordered exact match first, then shorter names, then alphabetically.
        """
        needle = prefix.lower()
        candidates = [
            e for e in self.registry.index.values()
            if e.name.lower().startswith(needle)
            and (not kinds or e.kind in kinds)
            and (module is None or e.module == module)
        ]
        candidates.sort(key=lambda e: (e.name.lower() != needle, len(e.name), e.name.lower(), e.id))
        return candidates[:limit]

    def find_type(self, type_name: str) -> Optional[ApiElement]:
        """Class or interface by full id or simple name; first declared wins."""
        element = self.registry.index.get(type_name)
        if element and element.kind in MEMBER_CONTAINER_KINDS:
            return element
        for candidate in self._by_name.get(simple_type_name(type_name), []):
            if candidate.kind in MEMBER_CONTAINER_KINDS:
                return candidate
        return None

    def _parents(self, element: ApiElement) -> List[ApiElement]:
        if not element.extends:
            return []
        parents = []
        for reference in split_parameters(element.extends):
            parent = self.find_type(simple_type_name(reference))
            if parent:
                parents.append(parent)
        return parents

    def members_of(self, type_name: str, include_inherited: bool = True) -> Optional[List[ResolvedMember]]:
        """
        Properties and methods of a class or interface.

        Inherited members are gathered breadth-first along ``extends``; a
        member name already seen on a nearer type hides the inherited one.

        Returns:
            Members in declaration order (own first), or None if the type is unknown
        """
        root = self.find_type(type_name)
        if root is None:
            return None

        members: List[ResolvedMember] = []
        seen_names = set()
        visited = set()
        queue = [root]
        while queue:
            current = queue.pop(0)
            if current.id in visited:
                continue
            visited.add(current.id)
            for member in list(current.properties or []) + list(current.methods or []):
                if member.name in seen_names:
                    continue
                seen_names.add(member.name)
                members.append(ResolvedMember(owner_id=current.id, member=member))
            if include_inherited:
                queue.extend(self._parents(current))
        return members
