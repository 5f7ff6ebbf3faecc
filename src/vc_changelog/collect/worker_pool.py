"""
Concurrent collection of reports from commit ids.

A fixed number of worker threads share a job queue of commit ids. Each
worker opens its own :class:`~vc_changelog.vcs.git_client.CommitReader`,
reads the message of every id it takes, parses it and sends the resulting
report to a results queue that the calling thread drains.

Reports reach the consumer in completion order. Every result carries the
index of its commit in the input so callers can restore traversal order.

A commit that cannot be read stops the whole collection: the worker sends
a failure item, the consumer tells the other workers to stop and raises
:class:`CollectionError`.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, List, Optional, Sequence, Union

from vc_changelog.changelog.commit_parser import parse_report
from vc_changelog.changelog.report_model import Report


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class CollectionError(Exception):
    """Raised when a worker fails to read a commit."""

    def __init__(self, sha: str, cause: BaseException) -> None:
        if sha:
            super().__init__(f"failed to read commit {sha}: {cause}")
        else:
            super().__init__(f"failed to open commit reader: {cause}")
        self.sha = sha
        self.cause = cause


@dataclass(frozen=True)
class CollectedReport:
    """A parsed report together with the commit it came from."""

    index: int
    sha: str
    report: Report


@dataclass(frozen=True)
class _WorkerFailure:
    sha: str
    error: BaseException


class _WorkerDone:
    pass


_STOP = object()

ResultItem = Union[CollectedReport, _WorkerFailure, _WorkerDone]


ReaderFactory = Callable[[], ContextManager[Any]]


def available_parallelism() -> int:
    """Number of CPUs this process may run on.

    Honours CPU affinity where the platform exposes it.
    """
    if hasattr(os, "sched_getaffinity"):
        try:
            return max(1, len(os.sched_getaffinity(0)))
        except OSError:
            logger.debug("sched_getaffinity failed; using cpu_count")
    return os.cpu_count() or 1


def pool_size(job_count: int, requested: Optional[int] = None) -> int:
    """Return the number of workers to start for ``job_count`` jobs.

    Defaults to one less than the number of usable CPUs, at least one. Never more
    workers than jobs; no workers at all for no jobs.
    """
    if job_count <= 0:
        return 0
    if requested is None:
        requested = available_parallelism() - 1
    return min(max(1, requested), job_count)


def _worker(
    name: str,
    jobs: "queue.Queue",
    results: "queue.Queue",
    reader_factory: ReaderFactory,
    stop: threading.Event,
) -> None:
    try:
        with reader_factory() as reader:
            while not stop.is_set():
                job = jobs.get()
                if job is _STOP:
                    break
                index, sha = job
                try:
                    info = reader.read(sha)
                except Exception as exc:
                    logger.error("%s: lookup of %s failed: %s", name, sha, exc)
                    results.put(_WorkerFailure(sha, exc))
                    break
                if not info.message.strip():
                    logger.debug("%s: %s has an empty message", name, sha)
                    continue
                report = parse_report(info.message)
                if report is None:
                    logger.debug("%s: %s does not follow the commit convention", name, sha)
                    continue
                results.put(CollectedReport(index=index, sha=sha, report=report))
    except Exception as exc:
        logger.error("%s: reader failed: %s", name, exc)
        results.put(_WorkerFailure("", exc))
    finally:
        results.put(_WorkerDone())


def collect_reports(
    commit_ids: Sequence[str],
    reader_factory: ReaderFactory,
    workers: Optional[int] = None,
) -> List[CollectedReport]:
    """Read and parse ``commit_ids`` concurrently.

    Parameters
    ----------
    commit_ids : Sequence[str]
        Commit ids to examine. The position of an id is reported back as
        :attr:`CollectedReport.index`.
    reader_factory : Callable
        Called once per worker; must return a context manager yielding an
        object with a ``read(sha) -> CommitInfo`` method.
    workers : Optional[int]
        Requested worker count, see :func:`pool_size`.

    Returns
    -------
    List[CollectedReport]
        Reports in the order workers produced them. Commits with empty or
        unparseable messages are left out.

    Raises
    ------
    CollectionError
        If any commit could not be read.
    """
    size = pool_size(len(commit_ids), workers)
    if size == 0:
        return []

    jobs: "queue.Queue" = queue.Queue()
    results: "queue.Queue[ResultItem]" = queue.Queue()
    stop = threading.Event()

    for index, sha in enumerate(commit_ids):
        jobs.put((index, sha))
    for _ in range(size):
        jobs.put(_STOP)

    logger.debug("Collecting %d commit(s) with %d worker(s)", len(commit_ids), size)
    threads = [
        threading.Thread(
            target=_worker,
            args=(f"worker-{n}", jobs, results, reader_factory, stop),
            name=f"vc_changelog-worker-{n}",
            daemon=True,
        )
        for n in range(size)
    ]
    for thread in threads:
        thread.start()

    collected: List[CollectedReport] = []
    failure: Optional[_WorkerFailure] = None
    running = size
    while running:
        item = results.get()
        if isinstance(item, _WorkerDone):
            running -= 1
        elif isinstance(item, _WorkerFailure):
            if failure is None:
                failure = item
                stop.set()
        elif failure is None:
            collected.append(item)

    for thread in threads:
        thread.join()

    if failure is not None:
        raise CollectionError(failure.sha, failure.error)
    return collected
