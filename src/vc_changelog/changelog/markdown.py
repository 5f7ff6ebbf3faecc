"""
Markdown rendering of an aggregated changelog.

The output is built from blocks (headings and paragraphs) joined by blank
lines. Rendering does not modify the aggregator, so rendering the same
aggregator twice gives identical text.
"""

from __future__ import annotations

from typing import List

from vc_changelog.changelog.aggregator import ReportAggregator
from vc_changelog.changelog.report_model import Report


BREAKING_CHANGES_HEADING = "### BREAKING CHANGES"


def _report_blocks(report: Report) -> List[str]:
    blocks = [report.header]
    if report.description is not None:
        blocks.append(report.description)
    return blocks


def _section_blocks(context: str, title: str, reports: List[Report]) -> List[str]:
    if not reports:
        return []
    if context:
        blocks = [f"#### {title}"]
    else:
        blocks = [f"### General {title}"]
    for report in reports:
        blocks.extend(_report_blocks(report))
    return blocks


def render(aggregator: ReportAggregator) -> str:
    """Render ``aggregator`` as Markdown.

    Contexts appear in lexicographic order. The ungrouped context gets no
    heading of its own; its sections are titled ``General Features`` and
    ``General Fixes``. Breaking changes from every context follow at the
    end. An empty aggregator renders to an empty string.
    """
    blocks: List[str] = []
    for context, entry in aggregator.contexts():
        if not entry:
            continue
        if context:
            blocks.append(f"### {context}")
        blocks.extend(_section_blocks(context, "Features", entry.features))
        blocks.extend(_section_blocks(context, "Fixes", entry.fixes))

    if aggregator.breaking_changes:
        blocks.append(BREAKING_CHANGES_HEADING)
        blocks.extend(aggregator.breaking_changes)

    if not blocks:
        return ""
    return "\n\n".join(blocks) + "\n"
