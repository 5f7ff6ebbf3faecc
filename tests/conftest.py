import os
import shutil
import subprocess
from pathlib import Path

import pytest


def _git(repo: Path, *args: str, env=None) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        check=True,
        env=env,
    )
    return result.stdout.strip()


class GitRepoBuilder:
    """Builds a throwaway Git repository with controlled author dates."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._clock = 1_600_000_000
        _git(root, "init", "-q")
        _git(root, "config", "user.name", "Test User")
        _git(root, "config", "user.email", "test@example.com")
        _git(root, "config", "commit.gpgsign", "false")
        _git(root, "config", "tag.gpgsign", "false")

    def commit(self, message: str, author_time=None) -> str:
        self._clock += 60
        stamp = f"@{author_time if author_time is not None else self._clock} +0000"
        env = dict(os.environ, GIT_AUTHOR_DATE=stamp, GIT_COMMITTER_DATE=stamp)
        _git(self.root, "commit", "-q", "--allow-empty", "-m", message, env=env)
        return _git(self.root, "rev-parse", "HEAD")

    def tag(self, name: str, rev: str = "HEAD", annotated: bool = False) -> None:
        if annotated:
            _git(self.root, "tag", "-a", name, "-m", name, rev)
        else:
            _git(self.root, "tag", name, rev)

    def git(self, *args: str) -> str:
        return _git(self.root, *args)

    def raw_commit(self, headers: bytes, message: bytes, parent: str = "HEAD") -> str:
        """Store a hand-written commit object on top of ``parent`` and move HEAD to it.

        ``headers`` holds everything after the tree and parent lines.
        """
        parent_sha = _git(self.root, "rev-parse", parent)
        tree = _git(self.root, "rev-parse", f"{parent}^{{tree}}")
        raw = f"tree {tree}\nparent {parent_sha}\n".encode() + headers + b"\n" + message
        result = subprocess.run(
            ["git", "hash-object", "-t", "commit", "-w", "--literally", "--stdin"],
            cwd=self.root,
            input=raw,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=True,
        )
        sha = result.stdout.decode().strip()
        _git(self.root, "update-ref", "HEAD", sha)
        return sha


@pytest.fixture
def git_repo(tmp_path):
    """A fresh, empty Git repository; skipped when git is unavailable."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    repo = tmp_path / "repo"
    repo.mkdir()
    return GitRepoBuilder(repo)
