"""
Shared utility functions for declaration parsing.

This module contains pure helpers used by the element parsers: bracket-aware
parameter splitting, balanced parenthesis extraction, enum value
normalization, documentation comment stripping and member documentation
lookback.
"""

import re
from typing import List, Optional, Tuple, Union

from .models import ApiParameter

PARAMETER_PATTERN = re.compile(r'^(?:\.\.\.)?(\w+)(\?)?\s*:\s*(.+?)(?:\s*=(?!>)\s*(.+))?$')
IMPORT_PATTERN = re.compile(r'''import\s+.*from\s+["']([^"']+)["']''')
COMMENT_PREFIX_PATTERN = re.compile(r'^\s*\*\s?')


# --- Parameter List Splitting ---

def split_parameters(param_list: str) -> List[str]:
    """
    Split a parenthesized parameter list into top-level parameter substrings.

    Commas nested inside ``()`` or ``<>`` (tracked together) or ``[]``
    (tracked separately) do not split. The outer parentheses, when present,
    are removed first.

    Args:
        param_list: Text such as ``(a: Map<string, number>, b: number)``

    Returns:
        List of trimmed parameter substrings, empty for ``()``
    """
    text = param_list.strip()
    if text.startswith('(') and text.endswith(')'):
        text = text[1:-1]

    params = []
    current = ""
    paren_depth = 0
    bracket_depth = 0

    for i, char in enumerate(text):
        if char in '(<':
            paren_depth += 1
        elif char == ')':
            paren_depth -= 1
        elif char == '>':
            # '=>' of a function type is not a closing angle bracket
            if i == 0 or text[i - 1] != '=':
                paren_depth -= 1
        elif char == '[':
            bracket_depth += 1
        elif char == ']':
            bracket_depth -= 1

        if char == ',' and paren_depth == 0 and bracket_depth == 0:
            params.append(current.strip())
            current = ""
        else:
            current += char

    if current.strip():
        params.append(current.strip())

    return [p for p in params if p]


def parse_parameters(param_list: str) -> List[ApiParameter]:
    """
    Parse a parenthesized parameter list into ApiParameter records.

    A parameter is optional when it carries ``?`` or a default value.
    Substrings that do not look like ``name: type`` are dropped.
    """
    parameters = []
    for param in split_parameters(param_list):
        match = PARAMETER_PATTERN.match(param)
        if not match:
            continue
        name, optional, type_text, default = match.groups()
        default = default.strip() if default else None
        parameters.append(ApiParameter(
            name=name,
            type=type_text.strip(),
            optional=bool(optional) or default is not None,
            default_value=default,
        ))
    return parameters


def extract_balanced(text: str, start: int) -> Optional[Tuple[str, int]]:
    """
    Extract the parenthesized span beginning at ``text[start]``.

    Args:
        text: Source text
        start: Index of an opening ``(``

    Returns:
        Tuple of (span including both parentheses, index just past the span),
        or None when the parenthesis is never closed
    """
    if start >= len(text) or text[start] != '(':
        return None

    depth = 0
    for i in range(start, len(text)):
        char = text[i]
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth == 0:
                return text[start:i + 1], i + 1
    return None


# --- Value and Text Normalization ---

def clean_enum_value(value: str) -> Union[int, str]:
    """Strip separators and quotes; integers become int."""
    cleaned = value.replace(',', '').replace(';', '').strip()
    try:
        return int(cleaned)
    except ValueError:
        pass
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in ('"', "'", '`'):
        return cleaned[1:-1]
    return cleaned


def strip_comment_line(line: str) -> str:
    """
    Remove documentation comment decoration from one line.

    Leading ``/**``, trailing ``*/`` and one leading ``* `` are removed.
    Indentation after the asterisk is kept so code examples survive.
    """
    text = line.strip()
    if text.startswith('/**'):
        text = text[3:].lstrip()
    if text.endswith('*/'):
        text = text[:-2]
    return COMMENT_PREFIX_PATTERN.sub('', text, count=1).rstrip()


def normalize_whitespace(text: str) -> str:
    return " ".join(text.split())


def is_comment_line(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith('/**') or stripped.startswith('*') or stripped.startswith('//')


def count_braces(line: str) -> int:
    """Net brace change of a line (opening minus closing)."""
    return line.count('{') - line.count('}')


def extract_imports(code: str) -> List[str]:
    """Module specifiers of every ``import ... from "X"`` line."""
    imports = []
    for line in code.split('\n'):
        match = IMPORT_PATTERN.search(line)
        if match:
            imports.append(match.group(1))
    return imports


# --- Member Documentation Lookback ---

def lookback_member_doc(lines: List[str], index: int, limit: int) -> Tuple[Optional[str], List[str]]:
    """
    Find the @remarks description documenting the member at ``lines[index]``.

    Walks upward while lines are comment lines, at most ``limit`` lines. When
    an ``@remarks`` line is found, the comment lines after it up to the next
    tag form the description, and later ``@``-tagged lines are returned as
    auxiliary tags.

    Args:
        lines: All source lines
        index: Index of the member line
        limit: Maximum number of lines to walk upward

    Returns:
        Tuple of (description or None, tag lines)
    """
    lowest = max(-1, index - 1 - limit)
    for i in range(index - 1, lowest, -1):
        prev = lines[i].strip()
        if not is_comment_line(prev) or prev.startswith('//'):
            return None, []
        text = strip_comment_line(prev).strip()
        if not text.startswith('@remarks'):
            continue

        description_parts = []
        remainder = text[len('@remarks'):].strip()
        if remainder:
            description_parts.append(remainder)
        tags: List[str] = []
        in_tags = False
        for j in range(i + 1, index):
            raw = lines[j].strip()
            if raw.startswith('*/') or not raw.startswith('*'):
                break
            content = strip_comment_line(raw).strip()
            if content.startswith('@'):
                in_tags = True
                tags.append(content)
            elif not in_tags and content:
                description_parts.append(content)
        description = normalize_whitespace(" ".join(description_parts))
        return (description or None), tags
    return None, []
