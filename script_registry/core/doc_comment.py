"""
Documentation comment collection.

The collector accumulates one ``/** ... */`` block at a time and keeps it
after the block closes so the next declaration can attach it. Everything it
reports (description, tags, stability, examples) is derived from the
retained text on demand.
"""

import re
from enum import Enum
from typing import List, Optional

from .models import CodeExample
from .utils import strip_comment_line, normalize_whitespace, extract_imports

# Literal marker -> tag, in reporting order
TAG_MARKERS = (
    ("@preview", "preview"),
    ("@deprecated", "deprecated"),
    ("@experimental", "experimental"),
    ("@beta", "beta"),
    ("read-only mode", "readonly-restricted"),
)

EXAMPLE_LANGUAGES = {"typescript", "ts", "javascript", "js"}
FENCE_PATTERN = re.compile(r'^```\s*(\w*)\s*$')


class CollectorState(Enum):
    IDLE = "idle"
    IN_BLOCK = "in_block"


class CommentCollector:
    """Collects the documentation block preceding a declaration."""

    def __init__(self):
        self.state = CollectorState.IDLE
        self.buffer: List[str] = []

    @property
    def in_block(self) -> bool:
        return self.state == CollectorState.IN_BLOCK

    def has_pending(self) -> bool:
        return bool(self.buffer) and not self.in_block

    def feed(self, trimmed: str) -> bool:
        """
        Offer one trimmed line to the collector.

        Returns:
            True if the line was consumed as documentation
        """
        if self.state == CollectorState.IDLE:
            if not trimmed.startswith('/**'):
                return False
            # A new block replaces any unattached one
            self.buffer = [trimmed]
            if not trimmed.endswith('*/'):
                self.state = CollectorState.IN_BLOCK
            return True

        self.buffer.append(trimmed)
        if trimmed.endswith('*/'):
            self.state = CollectorState.IDLE
        return True

    def clear(self) -> None:
        if not self.in_block:
            self.buffer = []

    def raw(self) -> Optional[str]:
        if not self.buffer:
            return None
        return "\n".join(self.buffer)

    def take(self) -> Optional["DocComment"]:
        """Hand the retained block to a declaration and clear it."""
        if not self.has_pending():
            return None
        doc = DocComment(list(self.buffer))
        self.buffer = []
        return doc


class DocComment:
    """A closed documentation block and the fields derived from it."""

    def __init__(self, lines: List[str]):
        self.lines = lines
        self.text = "\n".join(lines)
        self._content = [strip_comment_line(line) for line in lines]

    def description(self) -> Optional[str]:
        """@remarks sections if present, otherwise the untagged prose lines."""
        remarks = []
        capturing = False
        in_fence = False
        for content in self._content:
            stripped = content.strip()
            if stripped.startswith('```'):
                in_fence = not in_fence
                continue
            if in_fence:
                continue
            if stripped.startswith('@remarks'):
                capturing = True
                remainder = stripped[len('@remarks'):].strip()
                if remainder:
                    remarks.append(remainder)
            elif stripped.startswith('@'):
                capturing = False
            elif capturing and stripped:
                remarks.append(stripped)
        if remarks:
            return normalize_whitespace(" ".join(remarks)) or None

        prose = []
        in_tag = False
        in_fence = False
        for content in self._content:
            stripped = content.strip()
            if stripped.startswith('```'):
                in_fence = not in_fence
                continue
            if in_fence:
                continue
            if stripped.startswith('@'):
                in_tag = True
                continue
            if in_tag:
                continue
            if stripped:
                prose.append(stripped)
        return normalize_whitespace(" ".join(prose)) or None

    def tags(self) -> List[str]:
        return [tag for marker, tag in TAG_MARKERS if marker in self.text]

    def stability(self) -> str:
        if "@deprecated" in self.text:
            return "deprecated"
        if "@preview" in self.text or "@experimental" in self.text or "@beta" in self.text:
            return "experimental"
        return "stable"

    def examples(self) -> List[CodeExample]:
        """Fenced TypeScript/JavaScript blocks following @example tags."""
        examples = []
        i = 0
        while i < len(self._content):
            stripped = self._content[i].strip()
            if not stripped.startswith('@example'):
                i += 1
                continue

            title = stripped[len('@example'):].strip() or "Example"
            j = i + 1
            while j < len(self._content) and not self._content[j].strip():
                j += 1
            fence = FENCE_PATTERN.match(self._content[j].strip()) if j < len(self._content) else None
            if not fence:
                i = j
                continue

            language = fence.group(1).lower()
            body = []
            k = j + 1
            while k < len(self._content) and not self._content[k].strip().startswith('```'):
                body.append(self._content[k])
                k += 1

            if language in EXAMPLE_LANGUAGES:
                code = "\n".join(body).strip()
                examples.append(CodeExample(title=title, code=code, imports=extract_imports(code)))
            i = k + 1
        return examples
