"""Main Typer application.

Entry point: ``buildforge`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from buildforge.config import RunnerSettings
from buildforge.core.artifacts import ArtifactRelocationError
from buildforge.core.commit_walker import CommitWalker
from buildforge.core.git import CommandExecutionError, GitRepo
from buildforge.core.ledger import BuildLedger, LedgerError
from buildforge.core.scheduler import Scheduler
from buildforge.core.startup_guard import StartupConfigError, enforce_startup_constraints
from buildforge.core.vcs import RepositoryError
from buildforge.models.config import BuildConfig, ConfigLoadError
from buildforge.monitor.renderer import BuildRenderer

logger = logging.getLogger(__name__)

console = Console()

# Errors that end the run with a message and a non-zero exit status.
FATAL_ERRORS: tuple[type[Exception], ...] = (
    ConfigLoadError,
    StartupConfigError,
    LedgerError,
    RepositoryError,
    ArtifactRelocationError,
    CommandExecutionError,
)

app = typer.Typer(
    name="buildforge",
    help="Build every unbuilt commit reachable from HEAD, newest first.",
    rich_markup_mode="rich",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def run_builds(
    config: BuildConfig,
    ledger_path: Path,
    *,
    renderer: BuildRenderer,
    poll_interval: float,
) -> None:
    """Validate *config*, replay the ledger and build until nothing is left."""
    enforce_startup_constraints(config)

    with BuildLedger(ledger_path) as ledger:
        already_built = ledger.load()
        renderer.startup(len(already_built), config.worker_count)

        main_repo = GitRepo(config.main_repo)
        walker = CommitWalker(
            main_repo,
            ledger,
            already_built,
            pull_remote=config.pull_from,
            earliest_build=config.earliest_build,
        )
        scheduler = Scheduler.from_config(
            config,
            walker,
            main_repo,
            renderer=renderer,
            poll_interval=poll_interval,
        )
        scheduler.run()

    renderer.print_summary()


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def build(
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (default ./config.json).",
    ),
    already_built_path: Path = typer.Option(
        None,
        "--already-built",
        "-a",
        help="File of hashes already built (default ./already-built.txt).",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (default from BUILDFORGE_LOG_LEVEL, else INFO).",
    ),
    poll_interval: float = typer.Option(
        None,
        "--poll-interval",
        min=0,
        help="Seconds to wait when no worker has finished (default 5).",
    ),
) -> None:
    """Build unbuilt commits from HEAD backwards in a pool of local workers."""
    renderer = BuildRenderer(console=console)
    try:
        settings = RunnerSettings()
    except ValidationError as exc:
        renderer.error(f"invalid BUILDFORGE_* settings: {exc}")
        raise typer.Exit(code=1) from exc
    configure_logging(log_level or settings.log_level)

    config_path = config_path or settings.config_path
    already_built_path = already_built_path or settings.ledger_path
    if poll_interval is None:
        poll_interval = settings.poll_interval_seconds

    try:
        config = BuildConfig.load(config_path)
        run_builds(
            config,
            already_built_path,
            renderer=renderer,
            poll_interval=poll_interval,
        )
    except FATAL_ERRORS as exc:
        logger.debug("fatal error", exc_info=True)
        renderer.error(str(exc))
        raise typer.Exit(code=1) from exc


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
