"""Startup guard — validates configured directories before any work starts.

Runs once, before the ledger is replayed or any worker exists, and fails
hard (raises ``StartupConfigError``) listing every violation at once.
"""

from __future__ import annotations

import logging
from pathlib import Path

from buildforge.models.config import BuildConfig

logger = logging.getLogger(__name__)


class StartupConfigError(RuntimeError):
    """Raised when a configured directory does not exist.

    The process must exit; nothing has been scheduled yet.
    """


def required_directories(config: BuildConfig) -> dict[str, Path]:
    dirs = {
        "build_parent_dir": config.build_parent_dir,
        "main_repo": config.main_repo,
    }
    if config.output is not None:
        dirs["output.parent_dir"] = config.output.parent_dir
    return dirs


def enforce_startup_constraints(config: BuildConfig) -> None:
    """Check that every directory the run depends on exists.

    Raises
    ------
    StartupConfigError
        If any configured directory is missing or not a directory.
    """
    violations = [
        f"{field} `{path}` is not a directory"
        for field, path in required_directories(config).items()
        if not Path(path).is_dir()
    ]
    if violations:
        raise StartupConfigError("; ".join(violations))
    logger.debug("Startup directories present: %s", required_directories(config))
