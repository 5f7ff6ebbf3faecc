"""
Collection of reports from repository history.

:mod:`vc_changelog.collect.revisions` decides which commits to scan and
:mod:`vc_changelog.collect.worker_pool` reads and parses them concurrently.
"""

from .revisions import RevisionSet, enumerate_revisions  # noqa: F401
from .worker_pool import CollectedReport, CollectionError, collect_reports, pool_size  # noqa: F401
