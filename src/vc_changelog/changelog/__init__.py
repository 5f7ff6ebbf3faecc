"""
Changelog model, parsing and rendering.

See :mod:`vc_changelog.changelog.commit_parser` for the commit message
grammar, :mod:`vc_changelog.changelog.aggregator` for grouping and
:mod:`vc_changelog.changelog.markdown` for the output format.
"""

from .report_model import CommitType, Report  # noqa: F401
from .commit_parser import parse_report  # noqa: F401
from .aggregator import ReportAggregator  # noqa: F401
from .markdown import render  # noqa: F401
