"""
Aggregation of parsed reports.

:class:`ReportAggregator` files each :class:`Report` into a bucket keyed by
context and commit type and collects breaking-change notes across all
reports. It is meant to be fed from a single thread; it holds no locks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Tuple

from vc_changelog.changelog.report_model import CommitType, Report


@dataclass
class ContextReports:
    """Reports of one context, split by commit type."""

    features: List[Report] = field(default_factory=list)
    fixes: List[Report] = field(default_factory=list)

    def bucket(self, commit_type: CommitType) -> List[Report]:
        if commit_type is CommitType.FEATURE:
            return self.features
        return self.fixes

    def __bool__(self) -> bool:
        return bool(self.features or self.fixes)


class ReportAggregator:
    """Collects reports for rendering.

    Attributes
    ----------
    reports : Dict[str, ContextReports]
        Mapping of context (``""`` for ungrouped reports) to its buckets.
    breaking_changes : List[str]
        Breaking-change entries of every added report, in ``add`` order.
    """

    def __init__(self) -> None:
        self.reports: Dict[str, ContextReports] = {}
        self.breaking_changes: List[str] = []

    def add(self, report: Report) -> None:
        """File ``report`` under its context and commit type."""
        self.breaking_changes.extend(report.breaking_changes)
        entry = self.reports.setdefault(report.context, ContextReports())
        entry.bucket(report.commit_type).append(report)

    def extend(self, reports: Iterable[Report]) -> None:
        for report in reports:
            self.add(report)

    def contexts(self) -> Iterator[Tuple[str, ContextReports]]:
        """Yield ``(context, buckets)`` pairs in lexicographic context order."""
        for context in sorted(self.reports):
            yield context, self.reports[context]

    def __len__(self) -> int:
        return sum(len(c.features) + len(c.fixes) for c in self.reports.values())
