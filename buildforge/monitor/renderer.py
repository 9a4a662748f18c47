"""Rich terminal output for build runs.

Color scheme
------------
- green     : build succeeded
- red       : build failed
- cyan      : build started
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from buildforge.models.build import BuildStatus, Sha


class BuildRenderer:
    """Prints one line per build event and a summary when the run ends.

    Worker threads call ``building()``; everything else is called from the
    scheduler thread, which owns the tallies.

    Parameters
    ----------
    console:
        Rich Console instance. A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.succeeded: list[Sha] = []
        self.failed: list[Sha] = []

    def startup(self, already_built: int, max_workers: int) -> None:
        self.console.print(f"Found {already_built} already built commits")
        self.console.print(f"Running with max {max_workers} workers")

    def building(self, sha: Sha) -> None:
        self.console.print(f"[cyan]Building[/cyan] {sha.value}")

    def finished(self, sha: Sha, status: BuildStatus) -> None:
        if status is BuildStatus.SUCCESS:
            self.succeeded.append(sha)
            self.console.print(f"[green]{sha.value} succeeded.[/green]")
        else:
            self.failed.append(sha)
            self.console.print(f"[red]{sha.value} failed.[/red]")

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def summary(self) -> Panel:
        """Render the tallies of this run as a Rich Panel."""
        table = Table(show_header=True, header_style="bold")
        table.add_column("Outcome")
        table.add_column("Commits", justify="right")
        table.add_row("[green]succeeded[/green]", str(len(self.succeeded)))
        table.add_row("[red]failed[/red]", str(len(self.failed)))
        table.add_row("total", str(len(self.succeeded) + len(self.failed)))
        return Panel(table, title="[bold]Build run complete[/bold]", border_style="cyan")

    def print_summary(self) -> None:
        self.console.print(self.summary())
