"""
Version control system (VCS) integration.

This package contains the Git client used to list tags, resolve
revisions, walk history and read commit messages. The generator never
writes to the repository.
"""

from .git_client import CommitInfo, CommitLookupError, CommitReader, GitClient, GitError  # noqa: F401
