"""
Data models for changelog reports.

A :class:`Report` is the structured form of a single commit message that
follows the ``type(context): subject`` convention. Reports are built once
by :func:`vc_changelog.changelog.commit_parser.parse_report` and are not
modified afterwards.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Tuple


class CommitType(enum.Enum):
    """Changelog section a report is filed under."""

    FEATURE = "feature"
    FIX = "fix"


@dataclass(frozen=True)
class Report:
    """Representation of one parsed commit message.

    Attributes
    ----------
    header : str
        Trimmed subject line, never empty.
    commit_type : CommitType
        Whether the commit is a feature or a fix.
    context : str
        Grouping label taken from the parentheses after the type token.
        An empty string means the report is ungrouped.
    description : Optional[str]
        Free-text body, if the message carried an unlabeled section.
    related_issues, solved_issues, breaking_changes : Tuple[str, ...]
        Entries of the ``Related:``, ``Solves:`` and ``Breaking Changes:``
        bullet lists, in source order.
    """

    header: str
    commit_type: CommitType
    context: str = ""
    description: Optional[str] = None
    related_issues: Tuple[str, ...] = field(default_factory=tuple)
    solved_issues: Tuple[str, ...] = field(default_factory=tuple)
    breaking_changes: Tuple[str, ...] = field(default_factory=tuple)
