"""Coverage totals recomputed from a parsed document.

The parser stores declared rates as-is. This module counts lines and
branches itself so declared figures can be cross-checked.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cobertura.models import CoverageDocument

logger = logging.getLogger(__name__)


@dataclass
class CoverageSummary:
    """Aggregate counts over every class-level line of a document."""

    packages: int = 0
    classes: int = 0
    lines_valid: int = 0
    lines_covered: int = 0
    branches_valid: int = 0
    branches_covered: int = 0

    @property
    def line_rate(self) -> float:
        """Return covered/valid lines (0.0 to 1.0), 1.0 when there are none."""
        if self.lines_valid == 0:
            return 1.0
        return self.lines_covered / self.lines_valid

    @property
    def branch_rate(self) -> float:
        """Return covered/valid branches (0.0 to 1.0), 1.0 when there are none."""
        if self.branches_valid == 0:
            return 1.0
        return self.branches_covered / self.branches_valid


def summarize(document: CoverageDocument) -> CoverageSummary:
    """Count packages, classes, lines and branches in *document*."""
    summary = CoverageSummary(
        packages=len(document.packages),
        classes=sum(1 for _ in document.classes()),
    )
    for line in document.lines():
        summary.lines_valid += 1
        if line.is_covered:
            summary.lines_covered += 1
        counts = line.branch_counts()
        if counts is not None:
            taken, total = counts
            summary.branches_covered += taken
            summary.branches_valid += total
    return summary


@dataclass
class CheckResult:
    """Outcome of comparing declared figures against recomputed ones."""

    declared_line_rate: float
    computed_line_rate: float
    computed_branch_rate: float
    tolerance: float
    rate_compared: bool = True
    """False when the document has no class lines to recompute a rate from."""

    problems: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.problems


def check_document(
    document: CoverageDocument,
    *,
    tolerance: float,
    line_threshold: float = 0.0,
    branch_threshold: float = 0.0,
) -> CheckResult:
    """Cross-check declared coverage against recomputed totals.

    Declared rates are rounded by most producers, so the line rates are
    compared within *tolerance* rather than exactly. Thresholds are
    percentages; 0 disables them.
    """
    summary = summarize(document)
    result = CheckResult(
        declared_line_rate=document.line_rate,
        computed_line_rate=summary.line_rate,
        computed_branch_rate=summary.branch_rate,
        tolerance=tolerance,
    )

    if summary.lines_valid == 0:
        logger.debug("No class lines in document; skipping line-rate comparison")
        result.rate_compared = False
    elif not math.isclose(document.line_rate, summary.line_rate, rel_tol=0.0, abs_tol=tolerance):
        result.problems.append(
            f"Declared line-rate {document.line_rate:.4f} differs from computed "
            f"{summary.line_rate:.4f} by more than {tolerance}"
        )

    line_pct = summary.line_rate * 100.0
    if line_threshold and line_pct < line_threshold:
        result.problems.append(
            f"Line coverage {line_pct:.2f}% is below threshold {line_threshold:.2f}%"
        )

    branch_pct = summary.branch_rate * 100.0
    if branch_threshold and branch_pct < branch_threshold:
        result.problems.append(
            f"Branch coverage {branch_pct:.2f}% is below threshold {branch_threshold:.2f}%"
        )

    return result
