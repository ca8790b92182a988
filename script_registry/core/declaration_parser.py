"""
Line-oriented declaration scanner.

Walks a declaration file top to bottom, tracking the current module and the
most recent documentation block, and dispatches every declaration line to
the element parser for its kind.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .classifier import classify_line
from .config import RegistryConfig
from .doc_comment import CommentCollector
from .element_parsers import ELEMENT_PARSERS, DeclarationContext
from .models import ApiElement, ParseOutcome
from .module_context import ModuleContext


@dataclass
class ParseResult:
    """Everything one scan produced, in source order."""
    source_name: str
    lines: List[str]
    elements: List[ApiElement] = field(default_factory=list)
    outcomes: List[ParseOutcome] = field(default_factory=list)
    module_context: Optional[ModuleContext] = None

    @property
    def source_text(self) -> str:
        return "\n".join(self.lines)

    @property
    def skipped(self) -> List[ParseOutcome]:
        return [o for o in self.outcomes if not o.parsed]

    def modules_seen(self) -> List[str]:
        return list(self.module_context.seen) if self.module_context else []

    def detected_versions(self) -> Dict[str, str]:
        return self.module_context.version_map() if self.module_context else {}


class DeclarationParser:
    """Parses declaration text into ApiElements."""

    def __init__(self, config: Optional[RegistryConfig] = None, enable_performance_monitoring: bool = True):
        self.config = config or RegistryConfig()
        self.enable_performance_monitoring = enable_performance_monitoring
        self.performance_metrics = {
            "total_lines": 0,
            "total_elements": 0,
            "skipped_declarations": 0,
            "parse_time": 0.0,
            "io_time": 0.0,
        }

    def parse_lines(self, lines: List[str], source_name: str = "<memory>", progress=None) -> ParseResult:
        """
        Scan ``lines`` once and parse every recognized declaration.

        Args:
            lines: Source lines without trailing newlines
            source_name: Name recorded in logs and the registry metadata
            progress: Optional object with an ``update(n)`` method (e.g. tqdm)

        Returns:
            ParseResult with elements and per-declaration outcomes in source order
        """
        start_time = time.time()
        result = ParseResult(source_name=source_name, lines=lines)
        ctx = ModuleContext.start(self.config.default_module, self.config.allowed_modules)
        collector = CommentCollector()

        i = 0
        while i < len(lines):
            line = lines[i]
            ctx = ctx.advance(line)
            trimmed = line.strip()

            if collector.feed(trimmed):
                i = self._step(i, i + 1, progress)
                continue

            kind = classify_line(trimmed)
            if kind is None:
                # Anything but a blank line separates a doc block from its declaration
                if trimmed:
                    collector.clear()
                i = self._step(i, i + 1, progress)
                continue

            decl_ctx = DeclarationContext(
                module=ctx.current,
                module_category=self.config.category_for(ctx.current),
                doc=collector.take(),
                lookback_limit=self.config.doc_lookback_limit,
            )
            outcome = ELEMENT_PARSERS[kind](lines, i, decl_ctx)
            result.outcomes.append(outcome)
            if outcome.parsed:
                result.elements.append(outcome.element)
            else:
                logging.debug(f"Skipped {outcome.kind} at {source_name}:{i + 1}: {outcome.skip_reason}")

            for j in range(i + 1, outcome.next_index):
                ctx = ctx.advance(lines[j])
            i = self._step(i, outcome.next_index, progress)

        result.module_context = ctx

        if self.enable_performance_monitoring:
            self.performance_metrics["total_lines"] += len(lines)
            self.performance_metrics["total_elements"] += len(result.elements)
            self.performance_metrics["skipped_declarations"] += len(result.skipped)
            self.performance_metrics["parse_time"] += time.time() - start_time

        logging.info(
            f"Parsed {len(result.elements)} declarations from {source_name} "
            f"({len(result.skipped)} skipped, {len(result.modules_seen())} modules)"
        )
        return result

    def parse_text(self, text: str, source_name: str = "<memory>", progress=None) -> ParseResult:
        return self.parse_lines(text.splitlines(), source_name, progress)

    def parse_file(self, file_path: Union[str, Path], progress_factory=None) -> ParseResult:
        """
        Read and parse one declaration file.

        Args:
            file_path: Path to the declaration file
            progress_factory: Optional callable ``(total) -> progress`` such as
                ``lambda total: tqdm(total=total, desc="Parsing")``

        Raises:
            FileNotFoundError: If the file does not exist. Nothing is parsed.
        """
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFoundError(f"Source file not found: {path}")

        io_start = time.time()
        text = path.read_text(encoding="utf-8")
        if self.enable_performance_monitoring:
            self.performance_metrics["io_time"] += time.time() - io_start

        lines = text.splitlines()
        logging.info(f"Reading {len(lines)} lines from {path}")
        if progress_factory is None:
            return self.parse_lines(lines, str(path))
        with progress_factory(len(lines)) as progress:
            return self.parse_lines(lines, str(path), progress)

    @staticmethod
    def _step(current: int, next_index: int, progress) -> int:
        if progress is not None:
            progress.update(next_index - current)
        return next_index
