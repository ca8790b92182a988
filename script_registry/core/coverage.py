"""
Parse coverage reporting.

Counts top-level declaration keywords directly in the source text and
compares them with what made it into the registry. Skip reasons recorded
by the element parsers explain the difference.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .models import ParseOutcome, ScriptRegistry

# Kinds with a textual line-start count
COVERAGE_PATTERNS = {
    "enum": re.compile(r'^export enum ', re.MULTILINE),
    "class": re.compile(r'^export class ', re.MULTILINE),
    "interface": re.compile(r'^export interface ', re.MULTILINE),
    "function": re.compile(r'^export function ', re.MULTILINE),
}


def _percentage(parsed: int, expected: int) -> Optional[float]:
    if expected == 0:
        return None
    return round(parsed / expected * 100, 1)


@dataclass
class CoverageReport:
    expected: Dict[str, int] = field(default_factory=dict)
    parsed: Dict[str, int] = field(default_factory=dict)
    skip_reasons: Dict[str, Dict[str, int]] = field(default_factory=dict)
    duplicate_ids: List[str] = field(default_factory=list)

    def percentage(self, kind: str) -> Optional[float]:
        return _percentage(self.parsed.get(kind, 0), self.expected.get(kind, 0))

    @property
    def percentages(self) -> Dict[str, Optional[float]]:
        return {kind: self.percentage(kind) for kind in self.expected}

    @property
    def overall(self) -> Optional[float]:
        return _percentage(
            sum(self.parsed.get(kind, 0) for kind in self.expected),
            sum(self.expected.values()),
        )

    def below(self, threshold: float) -> List[str]:
        """Kinds whose coverage is under ``threshold`` percent."""
        return [
            kind for kind, pct in self.percentages.items()
            if pct is not None and pct < threshold
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expected": dict(self.expected),
            "parsed": dict(self.parsed),
            "percentages": self.percentages,
            "overall": self.overall,
            "skipReasons": {k: dict(v) for k, v in self.skip_reasons.items()},
            "duplicateIds": list(self.duplicate_ids),
        }


def count_expected(source_text: str) -> Dict[str, int]:
    return {kind: len(pattern.findall(source_text)) for kind, pattern in COVERAGE_PATTERNS.items()}


def compute_coverage(
    source_text: str,
    registry: ScriptRegistry,
    outcomes: Iterable[ParseOutcome] = (),
    warning_threshold: Optional[float] = None,
) -> CoverageReport:
    """
    Compare textual declaration counts against parsed counts per kind.

    Args:
        source_text: The raw declaration file contents
        registry: The registry built from it
        outcomes: Per-declaration outcomes from the scan, for skip reasons
        warning_threshold: Log a warning for kinds below this percentage

    Returns:
        CoverageReport; advisory only, nothing here raises
    """
    report = CoverageReport(
        expected=count_expected(source_text),
        duplicate_ids=list(registry.duplicate_ids),
    )
    for element in registry.index.values():
        report.parsed[element.kind] = report.parsed.get(element.kind, 0) + 1

    for outcome in outcomes:
        if outcome.parsed:
            continue
        reasons = report.skip_reasons.setdefault(outcome.kind, {})
        reasons[outcome.skip_reason] = reasons.get(outcome.skip_reason, 0) + 1

    if warning_threshold is not None:
        for kind in report.below(warning_threshold):
            logging.warning(
                f"Low parse coverage for {kind}: {report.parsed.get(kind, 0)}/{report.expected[kind]} "
                f"({report.percentage(kind)}%)"
            )
    return report
