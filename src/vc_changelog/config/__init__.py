"""
Configuration loading for vc_changelog.

See :mod:`vc_changelog.config.loader` for the file format.
"""

from .loader import ConfigError, load_config  # noqa: F401
