"""
Parser for structured commit messages.

The grammar is deliberately tolerant. A message looks like::

    feat(cmd/update): Insert some stuff

    Free text describing the change.

    Solves:
     - #12
     - #13

    Breaking Changes:
     - the --foo flag was removed

The headline selects the commit type and optional context. Body sections
are separated by blank lines; sections whose first line is one of the
recognised labels are read as bullet lists, any other section becomes the
description. Messages that do not fit the grammar yield ``None`` and never
raise.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple

from vc_changelog.changelog.report_model import CommitType, Report


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# Compiled at import time and only read afterwards, so they are safe to use
# from every worker thread.
SECTION_SPLITTER = re.compile(r"\n\s*\n")
BULLET_SPLITTER = re.compile(r"\s+-\s+")

TYPE_TOKENS: Dict[str, CommitType] = {
    "feat": CommitType.FEATURE,
    "feature": CommitType.FEATURE,
    "fix": CommitType.FIX,
}

SOLVES_LABELS = frozenset({"solves:"})
RELATED_LABELS = frozenset({"related:"})
BREAKING_LABELS = frozenset({"breaking_changes:", "breaking changes:"})


def parse_bullet_list(section: str) -> List[str]:
    """Return the entries of a labeled bullet list.

    The first fragment is the label line and is dropped. Entries may span
    several lines; only the ``" - "`` separators delimit them.
    """
    return BULLET_SPLITTER.split(section)[1:]


def _split_type_and_context(token: str) -> Optional[Tuple[CommitType, str]]:
    type_part, paren, context = token.partition("(")
    commit_type = TYPE_TOKENS.get(type_part.strip().lower())
    if commit_type is None:
        return None
    if paren and context.endswith(")"):
        context = context[:-1]
    return commit_type, context


def parse_report(raw_message: str) -> Optional[Report]:
    """Parse a raw commit message into a :class:`Report`.

    Parameters
    ----------
    raw_message : str
        The full commit message as stored in the repository.

    Returns
    -------
    Optional[Report]
        The parsed report, or ``None`` if the headline is not of the form
        ``type(context): subject`` with a ``feat``/``feature``/``fix`` type.
    """
    sections = SECTION_SPLITTER.split(raw_message)
    headline = sections[0]

    headline_parts = headline.split(":")
    if len(headline_parts) < 2:
        return None

    type_and_context = _split_type_and_context(headline_parts[0])
    if type_and_context is None:
        return None
    commit_type, context = type_and_context

    header = ":".join(headline_parts[1:]).strip()
    if not header:
        return None

    description: Optional[str] = None
    related: List[str] = []
    solved: List[str] = []
    breaking: List[str] = []

    for section in sections[1:]:
        section = section.strip()
        if not section:
            continue
        label = section.splitlines()[0].strip().lower()
        if label in SOLVES_LABELS:
            solved = parse_bullet_list(section)
        elif label in RELATED_LABELS:
            related = parse_bullet_list(section)
        elif label in BREAKING_LABELS:
            breaking = parse_bullet_list(section)
        else:
            # Later unlabeled sections replace earlier ones.
            description = section

    return Report(
        header=header,
        commit_type=commit_type,
        context=context,
        description=description,
        related_issues=tuple(related),
        solved_issues=tuple(solved),
        breaking_changes=tuple(breaking),
    )
