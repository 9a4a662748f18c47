"""Runtime settings — env-driven process knobs.

The build configuration proper (repositories, commands, output movement)
lives in ``config.json`` and is modelled by ``buildforge.models.config``.
This module holds the settings that tune the runner process itself and can
be overridden via ``BUILDFORGE_*`` environment variables or a ``.env`` file.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RunnerSettings(BaseSettings):
    """Process settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export BUILDFORGE_LOG_LEVEL=DEBUG
        export BUILDFORGE_POLL_INTERVAL_SECONDS=30
        export BUILDFORGE_LEDGER_PATH=/data/already-built.txt
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDFORGE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Default file locations (CLI options take precedence)
    config_path: Path = Path("config.json")
    ledger_path: Path = Path("already-built.txt")

    # Scheduler backoff when a full polling pass saw no results
    poll_interval_seconds: float = Field(default=5.0, ge=0)
