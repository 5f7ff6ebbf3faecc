"""
Selection of the commits a changelog is built from.

Three modes are supported:

* no revision: every commit reachable from ``HEAD`` that is not reachable
  from the most recently authored tag;
* ``REV``: the full ancestry of ``REV``;
* ``A..B``: commits reachable from ``B`` but not from ``A``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from vc_changelog.vcs.git_client import GitClient, GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


RANGE_SEPARATOR = ".."


@dataclass
class RevisionSet:
    """Commit ids to examine, in traversal order.

    ``base_tag`` is the tag used as lower bound in automatic mode.
    ``no_tags`` is set when automatic mode found nothing to start from.
    """

    commits: List[str] = field(default_factory=list)
    base_tag: Optional[str] = None
    no_tags: bool = False


def find_latest_tag(client: GitClient) -> Optional[Tuple[str, str]]:
    """Return ``(tag, commit id)`` of the tag whose commit was authored last.

    Tags that do not point to a commit are skipped. When several tags have
    the same timestamp, the one listed last wins.
    """
    tagged = []
    for tag, sha in client.list_tag_commits():
        if sha is None:
            logger.debug("Skipping tag %s: does not point to a commit", tag)
            continue
        tagged.append((tag, sha))

    if not tagged:
        return None
    timestamps = client.commit_timestamps(sha for _, sha in tagged)
    candidates = [(timestamps[sha], tag, sha) for tag, sha in tagged]
    candidates.sort(key=lambda item: item[0])
    _, tag, sha = candidates[-1]
    logger.debug("Latest tag is %s (%s)", tag, sha)
    return tag, sha


def enumerate_revisions(client: GitClient, revision: Optional[str] = None) -> RevisionSet:
    """Compute the commits to scan.

    Parameters
    ----------
    client : GitClient
        Client for the repository to scan.
    revision : Optional[str]
        A revision or ``A..B`` range, or ``None`` for automatic mode.

    Raises
    ------
    GitError
        If ``revision`` cannot be resolved.
    """
    if revision is None:
        latest = find_latest_tag(client)
        if latest is None:
            logger.warning("no tags found")
            return RevisionSet(no_tags=True)
        tag, sha = latest
        commits = client.rev_list(["HEAD"], exclude=[sha])
        logger.debug("%d commit(s) since tag %s", len(commits), tag)
        return RevisionSet(commits=commits, base_tag=tag)

    if RANGE_SEPARATOR in revision:
        # git rev-list understands A..B directly; a bad side fails the call.
        commits = client.rev_list([revision])
    else:
        if client.resolve_commit(revision) is None:
            raise GitError(f"unknown revision: {revision}")
        commits = client.rev_list([revision])
    logger.debug("%d commit(s) in %s", len(commits), revision)
    return RevisionSet(commits=commits)
