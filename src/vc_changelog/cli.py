"""
Command line interface for the vc_changelog tool.

This module defines the ``main`` function used as the entry point of the
``vcchangelog`` command. It locates the repository, loads the
configuration, selects the commits to scan, collects their reports
concurrently and prints the rendered changelog to standard output.
Diagnostics go to standard error so the changelog can be piped.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import click

from vc_changelog import __version__
from vc_changelog.changelog.aggregator import ReportAggregator
from vc_changelog.changelog.markdown import render
from vc_changelog.collect.revisions import enumerate_revisions
from vc_changelog.collect.worker_pool import CollectedReport, CollectionError, collect_reports
from vc_changelog.config.loader import ORDER_TRAVERSAL, ConfigError, load_config
from vc_changelog.vcs.git_client import GitClient, GitError

# Create a module-level logger. Attach a null handler and disable
# propagation to avoid logging errors when the root logger's stream is
# closed (such as during unit tests).
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_INVALID_USAGE = 2
EXIT_NO_REPO = 3
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6


# ---------------------------------------------------------------------------
# Status display utilities (all on stderr)
# ---------------------------------------------------------------------------

def print_info(message: str, indent: int = 0):
    """Print an info message."""
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}", err=True)


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    prefix = "  " * indent
    click.echo(f"{prefix}⚠ {message}", err=True)


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✗ {message}", err=True)


def _propagate_package_logs() -> None:
    """Let the package loggers reach the handlers configured by the CLI."""
    for name, item in list(logging.root.manager.loggerDict.items()):
        if name.split(".")[0] == "vc_changelog" and isinstance(item, logging.Logger):
            item.propagate = True


# ---------------------------------------------------------------------------
# Core functionality
# ---------------------------------------------------------------------------

def build_changelog(collected: List[CollectedReport], order: str = ORDER_TRAVERSAL) -> str:
    """Aggregate collected reports and render them as Markdown.

    With ``order == "traversal"`` reports are added in the order their
    commits were enumerated, which makes the output independent of thread
    scheduling. Any other value keeps the order the workers finished in.
    """
    if order == ORDER_TRAVERSAL:
        collected = sorted(collected, key=lambda item: item.index)
    aggregator = ReportAggregator()
    aggregator.extend(item.report for item in collected)
    logger.debug("Aggregated %d report(s) in %d context(s)", len(aggregator), len(aggregator.reports))
    return render(aggregator)


@click.command()
@click.argument("revision", required=False)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    help="Number of worker threads (default: CPU count minus one).",
)
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="vcchangelog")
def main(revision: Optional[str], workers: Optional[int], verbose: bool) -> None:
    """Generate a Markdown changelog from commit messages.

    Without REVISION, every commit since the most recently authored tag is
    scanned. REVISION may name a single revision (its full history is
    scanned) or a range A..B.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        force=True,
    )
    if verbose:
        _propagate_package_logs()

    ctx = click.get_current_context(silent=True)

    try:
        repo_root = GitClient.find_repo_root(Path.cwd())
        if repo_root is None:
            print_error("No Git repository found in current directory or parent directories.")
            raise click.exceptions.Exit(EXIT_NO_REPO)
        logger.debug("Repository root: %s", repo_root)

        try:
            config = load_config(repo_root)
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)

        client = GitClient(repo_root)

        try:
            revisions = enumerate_revisions(client, revision)
        except GitError as exc:
            print_error(f"Unable to resolve revisions: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)

        if revisions.no_tags:
            print_info("no tags found. exiting")
            raise click.exceptions.Exit(EXIT_SUCCESS)

        try:
            collected = collect_reports(
                revisions.commits,
                client.open_reader,
                workers=workers if workers is not None else config["workers"],
            )
        except CollectionError as exc:
            print_error(f"Repository error: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)

        logger.debug("%d of %d commit(s) produced a report", len(collected), len(revisions.commits))

        output = build_changelog(collected, config["order"])
        if output:
            click.echo(output, nl=False)

        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        raise
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)
