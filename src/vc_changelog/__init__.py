"""
Top-level package for vc_changelog.

vc_changelog builds a Markdown changelog from commit messages that follow
the ``type(context): subject`` convention. The command line entry point
lives in :mod:`vc_changelog.cli`.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
