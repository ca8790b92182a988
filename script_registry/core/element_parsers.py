"""
Element parsers for top-level declarations.

Each parser is a pure function ``(lines, index, context) -> ParseOutcome``.
A parser either produces one ApiElement together with the index just past
the last line it consumed, or reports why the declaration was skipped.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .classifier import DeclarationKind
from .doc_comment import DocComment
from .models import (
    KIND_LABELS,
    ApiElement,
    ApiEnumValue,
    ApiMethod,
    ApiProperty,
    ParseOutcome,
)
from .utils import (
    count_braces,
    extract_balanced,
    is_comment_line,
    lookback_member_doc,
    parse_parameters,
    split_parameters,
    clean_enum_value,
)

ENUM_PATTERN = re.compile(r'^export\s+enum\s+(\w+)\b')
ENUM_MEMBER_PATTERN = re.compile(r'^(\w+)\s*=\s*([^,]+?)\s*(?:,.*|//.*)?$')
CLASS_PATTERN = re.compile(
    r'^export\s+class\s+(\w+)(?:<[^{]*?>)?'
    r'(?:\s+extends\s+([\w.]+(?:<[^{]*?>)?))?'
    r'(?:\s+implements\s+([^{]+?))?\s*(?:\{.*)?$'
)
INTERFACE_PATTERN = re.compile(
    r'^export\s+interface\s+(\w+)(?:<[^{]*?>)?(?:\s+extends\s+([^{]+?))?\s*(?:\{.*)?$'
)
FUNCTION_PATTERN = re.compile(r'^export\s+function\s+(\w+)\s*(?:<[^(]*>)?\s*(?=\()')
TYPE_PATTERN = re.compile(r'^export\s+type\s+(\w+)(?:<[^=]*>)?\s*=\s*(.+?)\s*;?\s*$')
CONSTANT_PATTERN = re.compile(r'^export\s+declare\s+const\s+(\w+)\s*:\s*(.+?)\s*;\s*$')

PROPERTY_PATTERN = re.compile(r'^(?:public\s+)?((?:(?:readonly|static)\s+)*)(\w+)(\?)?\s*:\s*(.+?)\s*;?\s*$')
METHOD_PATTERN = re.compile(r'^(?:public\s+)?(static\s+)?(\w+)(\?)?\s*(?:<[^(]*>)?\s*(?=\()')
RETURN_TYPE_PATTERN = re.compile(r'^\s*:\s*([^;{]+?)\s*[;{]?\s*$')
OBJECT_RETURN_TYPE_PATTERN = re.compile(r'^\s*:\s*(\{.*\})\s*;?\s*$')
EXCLUDED_MEMBER_PATTERN = re.compile(r'^(?:(?:private|protected)\b|constructor\s*\(|\[Symbol\.)')


@dataclass
class DeclarationContext:
    """What a parser needs beyond the lines themselves."""
    module: str
    module_category: str
    doc: Optional[DocComment] = None
    lookback_limit: int = 50


ElementParser = Callable[[List[str], int, DeclarationContext], ParseOutcome]


def _build_element(name: str, kind: str, ctx: DeclarationContext, raw_definition: str, **payload) -> ApiElement:
    doc = ctx.doc
    return ApiElement(
        id=f"{ctx.module}.{name}",
        name=name,
        kind=kind,
        module=ctx.module,
        raw_definition=raw_definition,
        description=doc.description() if doc else None,
        raw_doc_comment=doc.text if doc else None,
        categories=[KIND_LABELS[kind], ctx.module_category],
        tags=doc.tags() if doc else [],
        keywords=[name.lower(), kind],
        examples=doc.examples() if doc else [],
        stability=doc.stability() if doc else "stable",
        **payload,
    )


def _find_body_end(lines: List[str], index: int) -> Optional[int]:
    """
    Index of the line where the brace depth returns to zero.

    Depth is seeded from the declaration line itself. Returns None when the
    declaration has no body, the depth goes negative, or the file ends first.
    """
    if '{' not in lines[index]:
        return None
    depth = count_braces(lines[index])
    if depth == 0:
        return index
    if depth < 0:
        return None
    for j in range(index + 1, len(lines)):
        depth += count_braces(lines[j])
        if depth < 0:
            return None
        if depth == 0:
            return j
    return None


def _body_member_lines(lines: List[str], index: int, end: int):
    """Yield (line index, trimmed line) for lines directly inside the body."""
    depth = count_braces(lines[index])
    for j in range(index + 1, end):
        if depth == 1:
            yield j, lines[j].strip()
        depth += count_braces(lines[j])


def _is_member_candidate(trimmed: str) -> bool:
    if not trimmed or is_comment_line(trimmed) or trimmed in ('{', '}'):
        return False
    return not EXCLUDED_MEMBER_PATTERN.match(trimmed)


def _return_type(text: str) -> Optional[str]:
    """Return type after a closing parameter list; inline object types run to the last ``}``."""
    returns = RETURN_TYPE_PATTERN.match(text) or OBJECT_RETURN_TYPE_PATTERN.match(text)
    return returns.group(1).strip() if returns else None


def parse_property(lines: List[str], index: int, lookback_limit: int) -> Optional[ApiProperty]:
    """Parse a ``[readonly] [static] name[?]: type;`` member line."""
    trimmed = lines[index].strip()
    if not _is_member_candidate(trimmed) or ':' not in trimmed or '(' in trimmed:
        return None
    # Multi-line object types are not recovered
    if count_braces(trimmed) != 0:
        return None
    match = PROPERTY_PATTERN.match(trimmed)
    if not match:
        return None
    modifiers, name, optional, type_text = match.groups()
    modifier_set = set(modifiers.split())
    description, _ = lookback_member_doc(lines, index, lookback_limit)
    return ApiProperty(
        name=name,
        type=type_text.strip(),
        description=description,
        readonly='readonly' in modifier_set,
        optional=bool(optional),
        is_static='static' in modifier_set,
        accessibility="public",
    )


def parse_method(lines: List[str], index: int, lookback_limit: int) -> Optional[ApiMethod]:
    """Parse a ``[static] name(params): returnType`` member line."""
    trimmed = lines[index].strip()
    if not _is_member_candidate(trimmed) or '(' not in trimmed or '):' not in trimmed.replace(') :', '):'):
        return None
    match = METHOD_PATTERN.match(trimmed)
    if not match:
        return None
    is_static, name, _ = match.groups()
    balanced = extract_balanced(trimmed, match.end())
    if not balanced:
        return None
    param_span, after = balanced
    return_type = _return_type(trimmed[after:])
    if not return_type:
        return None
    description, tags = lookback_member_doc(lines, index, lookback_limit)
    return ApiMethod(
        name=name,
        parameters=parse_parameters(param_span),
        return_type=return_type,
        description=description,
        is_static=bool(is_static),
        accessibility="public",
        signature=f"{name}{param_span}: {return_type}",
        tags=tags,
    )


def parse_enum(lines: List[str], index: int, ctx: DeclarationContext) -> ParseOutcome:
    """Parse ``export enum Name {`` through the line that is exactly ``}``."""
    kind = DeclarationKind.ENUM.value
    match = ENUM_PATTERN.match(lines[index].strip())
    if not match:
        return ParseOutcome.skipped(kind, index, "malformed enum declaration")
    name = match.group(1)

    if lines[index].rstrip().endswith('}'):
        end = index
    else:
        end = next((j for j in range(index + 1, len(lines)) if lines[j].strip() == '}'), None)
        if end is None:
            return ParseOutcome.skipped(kind, index, "unterminated enum body")

    values = []
    for j in range(index + 1, end):
        trimmed = lines[j].strip()
        if is_comment_line(trimmed):
            continue
        member = ENUM_MEMBER_PATTERN.match(trimmed)
        if not member:
            continue
        description, _ = lookback_member_doc(lines, j, ctx.lookback_limit)
        values.append(ApiEnumValue(
            name=member.group(1),
            value=clean_enum_value(member.group(2)),
            description=description,
        ))

    element = _build_element(
        name, kind, ctx, "\n".join(lines[index:end + 1]),
        enum_values=values,
    )
    return ParseOutcome.ok(element, index, end + 1)


def parse_class(lines: List[str], index: int, ctx: DeclarationContext) -> ParseOutcome:
    """Parse ``export class Name [extends Base] [implements A, B] {`` and its body."""
    kind = DeclarationKind.CLASS.value
    match = CLASS_PATTERN.match(lines[index].strip())
    if not match:
        return ParseOutcome.skipped(kind, index, "malformed class declaration")
    name, base, implemented = match.groups()

    end = _find_body_end(lines, index)
    if end is None:
        return ParseOutcome.skipped(kind, index, "unbalanced class body")

    properties = []
    methods = []
    for j, trimmed in _body_member_lines(lines, index, end):
        if '(' in trimmed and '):' in trimmed.replace(') :', '):'):
            method = parse_method(lines, j, ctx.lookback_limit)
            if method:
                methods.append(method)
        elif ':' in trimmed:
            prop = parse_property(lines, j, ctx.lookback_limit)
            if prop:
                properties.append(prop)

    element = _build_element(
        name, kind, ctx, "\n".join(lines[index:end + 1]),
        extends=base.strip() if base else None,
        implements=split_parameters(implemented) if implemented else None,
        properties=properties,
        methods=methods,
    )
    return ParseOutcome.ok(element, index, end + 1)


def parse_interface(lines: List[str], index: int, ctx: DeclarationContext) -> ParseOutcome:
    """Parse ``export interface Name [extends A, B] {`` and its property lines."""
    kind = DeclarationKind.INTERFACE.value
    match = INTERFACE_PATTERN.match(lines[index].strip())
    if not match:
        return ParseOutcome.skipped(kind, index, "malformed interface declaration")
    name, extended = match.groups()

    end = _find_body_end(lines, index)
    if end is None:
        return ParseOutcome.skipped(kind, index, "unbalanced interface body")

    properties = []
    for j, _ in _body_member_lines(lines, index, end):
        prop = parse_property(lines, j, ctx.lookback_limit)
        if prop:
            properties.append(prop)

    element = _build_element(
        name, kind, ctx, "\n".join(lines[index:end + 1]),
        extends=extended.strip() if extended else None,
        properties=properties,
    )
    return ParseOutcome.ok(element, index, end + 1)


def parse_function(lines: List[str], index: int, ctx: DeclarationContext) -> ParseOutcome:
    """Parse a single-line ``export function name(params): returnType``."""
    kind = DeclarationKind.FUNCTION.value
    trimmed = lines[index].strip()
    match = FUNCTION_PATTERN.match(trimmed)
    if not match:
        return ParseOutcome.skipped(kind, index, "malformed function declaration")
    balanced = extract_balanced(trimmed, match.end())
    if not balanced:
        return ParseOutcome.skipped(kind, index, "unterminated parameter list")
    param_span, after = balanced
    return_type = _return_type(trimmed[after:])
    if not return_type:
        return ParseOutcome.skipped(kind, index, "missing return type")

    element = _build_element(
        match.group(1), kind, ctx, lines[index],
        parameters=parse_parameters(param_span),
        return_type=return_type,
    )
    return ParseOutcome.ok(element, index, index + 1)


def parse_type_alias(lines: List[str], index: int, ctx: DeclarationContext) -> ParseOutcome:
    """Parse a single-line ``export type Name = definition;``."""
    kind = DeclarationKind.TYPE.value
    match = TYPE_PATTERN.match(lines[index].strip())
    if not match:
        return ParseOutcome.skipped(kind, index, "malformed type alias")
    element = _build_element(
        match.group(1), kind, ctx, lines[index],
        type_definition=match.group(2).strip(),
    )
    return ParseOutcome.ok(element, index, index + 1)


def parse_constant(lines: List[str], index: int, ctx: DeclarationContext) -> ParseOutcome:
    """Parse a single-line ``export declare const name: type;``."""
    kind = DeclarationKind.CONSTANT.value
    match = CONSTANT_PATTERN.match(lines[index].strip())
    if not match:
        return ParseOutcome.skipped(kind, index, "malformed constant declaration")
    element = _build_element(
        match.group(1), kind, ctx, lines[index],
        type_definition=match.group(2).strip(),
    )
    return ParseOutcome.ok(element, index, index + 1)


ELEMENT_PARSERS: Dict[DeclarationKind, ElementParser] = {
    DeclarationKind.ENUM: parse_enum,
    DeclarationKind.CLASS: parse_class,
    DeclarationKind.INTERFACE: parse_interface,
    DeclarationKind.FUNCTION: parse_function,
    DeclarationKind.TYPE: parse_type_alias,
    DeclarationKind.CONSTANT: parse_constant,
}
