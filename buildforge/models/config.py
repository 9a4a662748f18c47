"""Build configuration models, loaded once from ``config.json``."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from buildforge.models.build import CommandSpec, RemoteRef


class ConfigLoadError(RuntimeError):
    """Raised when the configuration file is missing, unreadable or invalid."""


class OutputMovement(BaseModel):
    """Where to move (a subset of) the build artifacts after a success.

    Matches of each ``to_move`` glob, relative to the working copy, are moved
    into ``parent_dir/<sha>/``.
    """

    model_config = ConfigDict(frozen=True)

    parent_dir: Path
    to_move: list[str] = []


class BuildConfig(BaseModel):
    """Project-level configuration for the builder."""

    model_config = ConfigDict(frozen=True)

    # maximum number of concurrent local workers; None runs nothing
    num_local_builders: int | None = None
    # a directory is created in here for each commit being built
    build_parent_dir: Path
    # the canonical repository every working copy is cloned from
    main_repo: Path
    build_commands: list[CommandSpec] = []
    output: OutputMovement | None = None
    pull_from: RemoteRef | None = None
    # unix timestamp; commits older than this are never built
    earliest_build: int | None = None
    when_finished: list[CommandSpec] = []

    @property
    def worker_count(self) -> int:
        return self.num_local_builders or 0

    @classmethod
    def load(cls, path: Path) -> BuildConfig:
        """Parse and validate the JSON configuration at *path*.

        Raises
        ------
        ConfigLoadError
            If the file cannot be read or does not match the schema.
        """
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigLoadError(f"couldn't open {path} ({exc})") from exc

        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise ConfigLoadError(f"{path} is invalid: {exc}") from exc
