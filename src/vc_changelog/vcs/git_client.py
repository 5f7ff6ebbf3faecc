"""
Git client implementation for vc_changelog.

This module wraps the read-only Git operations the changelog generator
needs: listing tags, resolving revisions, walking history and reading
commit messages. All commands go through ``git`` subprocesses so that unit
tests can mock them easily.

:class:`GitClient` runs one short-lived command per call. Reading many
commit objects is done with :class:`CommitReader`, which keeps a single
``git cat-file --batch`` process open. A reader owns its process and must
not be shared between threads.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Dict, Iterable, List, Optional, Tuple


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


TAG_PREFIX = "refs/tags/"


@dataclass(frozen=True)
class CommitInfo:
    """Message and author time of a single commit.

    ``author_time`` is ``None`` when the author line has no usable
    timestamp; the message is still returned.
    """

    sha: str
    message: str
    author_time: Optional[int]


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class CommitLookupError(GitError):
    """Raised when a commit id cannot be read from the object store."""

    def __init__(self, sha: str, reason: str) -> None:
        super().__init__(f"unable to look up commit {sha}: {reason}")
        self.sha = sha
        self.reason = reason


def _decode_message(message: bytes, encoding: Optional[str]) -> str:
    if encoding:
        try:
            return message.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            logger.debug("Cannot decode message as %s; falling back to UTF-8", encoding)
    return message.decode("utf-8", errors="replace")


def parse_commit_object(sha: str, raw: bytes) -> CommitInfo:
    """Split a raw commit object into its message and author timestamp.

    Parameters
    ----------
    sha : str
        Id of the commit, used for logging.
    raw : bytes
        Commit object as printed by ``git cat-file commit``: header lines,
        a blank line, then the message. The message is decoded with the
        codec named by the ``encoding`` header, UTF-8 otherwise.
    """
    headers, _, message = raw.partition(b"\n\n")
    author_time = None
    encoding = None
    for line in headers.decode("utf-8", errors="replace").splitlines():
        if line.startswith("author "):
            # author Name <email> 1700000000 +0100
            fields = line.rsplit(" ", 2)
            try:
                author_time = int(fields[1])
            except (IndexError, ValueError):
                logger.debug("Commit %s has a malformed author line: %r", sha, line)
        elif line.startswith("encoding "):
            encoding = line[len("encoding "):].strip()
    return CommitInfo(sha=sha, message=_decode_message(message, encoding), author_time=author_time)


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def is_repo(path: Path) -> bool:
        """Return True if the given path is the root of a Git repository."""
        return (path / ".git").exists()

    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if GitClient.is_repo(current):
                return current
            if current.parent == current:
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(
        self, args: List[str], check: bool = True, input: Optional[str] = None
    ) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        ``input`` is passed to the command's standard input.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is True.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                input=input,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            logger.error("Git executable not found: %s", e)
            raise GitError(f"git is not installed or not on PATH: {e}") from e

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    # ------------------------------------------------------------------
    # Tags and revisions
    # ------------------------------------------------------------------
    def list_tag_commits(self) -> List[Tuple[str, Optional[str]]]:
        """Return ``(tag, commit id)`` for every tag, sorted by refname.

        A single ``for-each-ref`` call lists each tag with its target and,
        for annotated tags, the target of the tag object. The commit id is
        ``None`` for tags that do not point to a commit.
        """
        result = self._run(
            [
                "for-each-ref",
                "--sort=refname",
                "--format=%(refname) %(objecttype) %(objectname) %(*objecttype) %(*objectname)",
                TAG_PREFIX.rstrip("/"),
            ],
            check=True,
        )
        tags: List[Tuple[str, Optional[str]]] = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            fields = (line.split(" ") + [""] * 5)[:5]
            refname, object_type, object_name, peeled_type, peeled_name = fields
            name = refname[len(TAG_PREFIX):] if refname.startswith(TAG_PREFIX) else refname
            if object_type == "commit":
                tags.append((name, object_name))
            elif object_type == "tag" and peeled_type == "commit":
                tags.append((name, peeled_name))
            elif object_type == "tag" and peeled_type == "tag":
                # Tag of a tag; let rev-parse peel the whole chain.
                tags.append((name, self.resolve_commit(TAG_PREFIX + name)))
            else:
                tags.append((name, None))
        return tags

    def resolve_commit(self, revision: str) -> Optional[str]:
        """Resolve ``revision`` to a full commit id.

        Returns ``None`` if the name does not exist or does not point
        (possibly through an annotated tag) to a commit.
        """
        result = self._run(
            ["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"],
            check=False,
        )
        sha = result.stdout.strip()
        if result.returncode != 0 or not sha:
            return None
        return sha

    def commit_timestamps(self, shas: Iterable[str]) -> Dict[str, int]:
        """Return the author timestamp of each commit in ``shas``.

        All commits are looked up with one ``git log --no-walk --stdin``
        call.
        """
        wanted = list(dict.fromkeys(shas))
        if not wanted:
            return {}
        result = self._run(
            ["log", "--no-walk=unsorted", "--stdin", "--format=%H %at"],
            check=True,
            input="\n".join(wanted) + "\n",
        )
        timestamps: Dict[str, int] = {}
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            sha, _, stamp = line.partition(" ")
            try:
                timestamps[sha] = int(stamp)
            except ValueError as e:
                raise GitError(f"unexpected timestamp for {sha}: {stamp!r}") from e
        missing = [sha for sha in wanted if sha not in timestamps]
        if missing:
            raise GitError(f"no timestamp for commit(s): {', '.join(missing)}")
        return timestamps

    def rev_list(self, include: Iterable[str], exclude: Iterable[str] = ()) -> List[str]:
        """List commits reachable from ``include`` but not from ``exclude``.

        Each entry of ``include`` may itself be a range such as ``A..B``;
        ``git rev-list`` applies the usual reachability rules. Commits are
        returned in traversal order, newest first.

        Raises
        ------
        GitError
            If any revision cannot be resolved.
        """
        args = ["rev-list"]
        args.extend(include)
        args.extend(f"^{rev}" for rev in exclude)
        args.append("--")
        result = self._run(args, check=True)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def open_reader(self) -> "CommitReader":
        """Return a new, unopened :class:`CommitReader` for this repository."""
        return CommitReader(self.repo_root)


class CommitReader:
    """Reads commit objects through a long-running ``git cat-file --batch``.

    Use as a context manager; the process is started on enter and stopped
    on exit::

        with client.open_reader() as reader:
            info = reader.read(sha)
    """

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root
        self._proc: Optional[subprocess.Popen] = None

    def __enter__(self) -> "CommitReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def open(self) -> None:
        if self._proc is not None:
            return
        logger.debug("Starting git cat-file --batch in %s", self.repo_root)
        try:
            self._proc = subprocess.Popen(
                ["git", "cat-file", "--batch"],
                cwd=self.repo_root,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            logger.error("Git executable not found: %s", e)
            raise GitError(f"git is not installed or not on PATH: {e}") from e

    def close(self) -> None:
        proc = self._proc
        if proc is None:
            return
        self._proc = None
        if proc.stdin:
            proc.stdin.close()
        proc.wait()
        for stream in (proc.stdout, proc.stderr):
            if stream:
                stream.close()
        logger.debug("git cat-file --batch exited with %s", proc.returncode)

    def read(self, sha: str) -> CommitInfo:
        """Return the :class:`CommitInfo` for ``sha``.

        Raises
        ------
        CommitLookupError
            If the object is missing or is not a commit.
        """
        if self._proc is None:
            raise GitError("commit reader is not open")
        stdin: IO[bytes] = self._proc.stdin  # type: ignore[assignment]
        stdout: IO[bytes] = self._proc.stdout  # type: ignore[assignment]
        try:
            stdin.write(sha.encode("ascii") + b"\n")
            stdin.flush()
            header = stdout.readline().decode("utf-8", errors="replace").strip()
        except (OSError, UnicodeEncodeError) as e:
            raise CommitLookupError(sha, str(e)) from e

        # "<sha> <type> <size>" or "<name> missing"
        fields = header.split()
        if len(fields) != 3:
            raise CommitLookupError(sha, header or "no response from git cat-file")
        _, object_type, size = fields
        body = stdout.read(int(size) + 1)[:-1]
        if object_type != "commit":
            raise CommitLookupError(sha, f"object is a {object_type}, not a commit")
        return parse_commit_object(sha, body)
