"""
Configuration loader for vc_changelog.

Settings are read from an optional JSON file named
``.changelog_config.json`` in the repository root. A missing file means
all defaults apply. A file that is not valid JSON or holds values of the
wrong type raises :class:`ConfigError`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings in environments
# where the CLI has not configured logging.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


CONFIG_FILENAME = ".changelog_config.json"

ORDER_TRAVERSAL = "traversal"
ORDER_COMPLETION = "completion"

DEFAULTS: Dict[str, Any] = {
    "workers": None,
    "order": ORDER_TRAVERSAL,
}


class ConfigError(Exception):
    """Raised when the configuration file is malformed or invalid."""

    pass


def load_config(repo_root: Path) -> Dict[str, Any]:
    """Load the changelog configuration for ``repo_root``.

    Returns
    -------
    Dict[str, Any]
        The validated configuration with keys:
        - workers (int or None): worker thread count, None for CPU-based
        - order (str): ``"traversal"`` or ``"completion"``

    Raises
    ------
    ConfigError
        If the file exists but is malformed or invalid.
    """
    config = dict(DEFAULTS)
    config_path = repo_root / CONFIG_FILENAME

    if not config_path.exists():
        logger.debug("No configuration file at %s; using defaults", config_path)
        return config

    try:
        content = config_path.read_text(encoding="utf-8")
        data = json.loads(content)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {config_path.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path.name} must contain a JSON object")

    workers = data.get("workers")
    if workers is not None:
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ConfigError("'workers' must be a positive integer")
        config["workers"] = workers

    if "order" in data:
        if data["order"] not in (ORDER_TRAVERSAL, ORDER_COMPLETION):
            raise ConfigError(
                f"'order' must be '{ORDER_TRAVERSAL}' or '{ORDER_COMPLETION}'"
            )
        config["order"] = data["order"]

    unknown = sorted(set(data) - set(DEFAULTS))
    if unknown:
        logger.debug("Ignoring unknown configuration keys: %s", unknown)

    logger.debug("Loaded configuration from %s: %s", config_path, config)
    return config
