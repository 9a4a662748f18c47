"""Task worker — builds one commit at a time on its own thread.

Each worker is paired with the scheduler through two channels: build
instructions flow in, build results flow out. The worker blocks on its
inbound channel, builds whatever it is told to, and sends back exactly one
result per instruction. When the scheduler hangs up the inbound channel the
worker finishes its current build (there is no mid-build cancellation) and
exits; on exit, for any reason, it hangs up its outbound channel so the
scheduler can observe the departure.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from pathlib import Path

from buildforge.core.channel import Channel, ChannelClosed
from buildforge.core.git import CommandExecutionError
from buildforge.core.vcs import RepositoryError, VersionControlPort
from buildforge.models.build import (
    BuildCommit,
    BuildFailure,
    BuildInstruction,
    BuildResult,
    BuildSuccess,
    CommandSpec,
    LocalLocation,
    Sha,
)

logger = logging.getLogger(__name__)


def run_build(repo: VersionControlPort, commands: Sequence[CommandSpec]) -> bool:
    """Run *commands* in order inside *repo*, stopping at the first failure."""
    for command in commands:
        try:
            output = repo.exec(command.name, list(command.args))
        except CommandExecutionError as exc:
            logger.warning("build command %s could not start: %s", command, exc)
            return False
        logger.debug("%s exited with %d", command, output.returncode)
        if not output.success:
            logger.warning(
                "build command %s failed with %d: %s %s",
                command,
                output.returncode,
                output.stdout.strip(),
                output.stderr.strip(),
            )
            return False
    return True


class TaskWorker:
    """A build worker running on a dedicated daemon thread.

    Parameters
    ----------
    build_dir:
        Parent directory; the working copy for commit ``<sha>`` lives at
        ``build_dir/<sha>``.
    canonical_repo:
        Repository every working copy is derived from. Shared read-only
        between workers.
    build_commands:
        Commands run, in order, inside each working copy.
    on_build_start:
        Optional callback invoked on the worker thread as each build starts.
    name:
        Thread name, for logs.
    """

    def __init__(
        self,
        build_dir: Path,
        canonical_repo: VersionControlPort,
        build_commands: Sequence[CommandSpec],
        *,
        on_build_start: Callable[[Sha], None] | None = None,
        name: str = "task-worker",
    ) -> None:
        self._build_dir = Path(build_dir)
        self._canonical_repo = canonical_repo
        self._build_commands = tuple(build_commands)
        self._on_build_start = on_build_start

        self._instructions: Channel[BuildInstruction] = Channel()
        self._results: Channel[BuildResult] = Channel()

        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def name(self) -> str:
        return self._thread.name

    # ------------------------------------------------------------------
    # Scheduler side
    # ------------------------------------------------------------------

    def send(self, instruction: BuildInstruction) -> None:
        self._instructions.send(instruction)

    def try_recv(self) -> BuildResult | None:
        """Poll for a result without blocking.

        Raises
        ------
        ChannelClosed
            If the worker has exited and every result has been collected.
        """
        return self._results.try_recv()

    def shutdown(self) -> None:
        """Hang up the instruction channel; the worker exits when idle."""
        self._instructions.close()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    # ------------------------------------------------------------------
    # Worker thread
    # ------------------------------------------------------------------

    def _run(self) -> None:
        try:
            while True:
                try:
                    instruction = self._instructions.recv()
                except ChannelClosed:
                    logger.debug("%s: scheduler hung up, exiting", self.name)
                    break

                result = self.execute(instruction)
                logger.debug("%s finished a build with %s", self.name, result)
                self._results.send(result)
        finally:
            self._results.close()

    def execute(self, instruction: BuildInstruction) -> BuildResult:
        """Carry out one instruction and return its result."""
        if isinstance(instruction, BuildCommit):
            return self._build_commit(instruction.sha)
        raise TypeError(f"unsupported instruction {instruction!r}")

    def _build_commit(self, sha: Sha) -> BuildResult:
        if self._on_build_start is not None:
            self._on_build_start(sha)
        logger.info("%s: building %s", self.name, sha.value)

        # build_dir/0088119922aa33bb...77ff
        commit_dir = self._build_dir / sha.value
        try:
            working_copy = self._canonical_repo.new_subrepo(commit_dir)
            checked_out = working_copy.checkout(sha.value)
        except (RepositoryError, CommandExecutionError) as exc:
            logger.warning("no working copy for %s: %s", sha.value, exc)
            return BuildFailure(sha=sha)

        if not checked_out:
            return BuildFailure(sha=sha)

        if run_build(working_copy, self._build_commands):
            return BuildSuccess(sha=sha, location=LocalLocation(path=working_copy.path))
        return BuildFailure(sha=sha)
