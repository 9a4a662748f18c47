"""Scheduler — the orchestration loop tying the walker to the worker pool.

The scheduler thread is the sole caller of the ``CommitWalker`` and hence
the sole writer of the ledger. Workers only ever see their own channels.

Loop, until the pool is empty:

1. Poll every live worker for a result without blocking, in pool order.
2. A hung-up worker is retired without re-dispatch.
3. A failure is recorded; a success has its artifacts relocated (if
   configured) and is recorded. Either way the worker is handed the next
   unbuilt commit, or retired if there is none.
4. If the whole pass produced nothing, sleep for the poll interval.

Once the pool drains, the ``when_finished`` commands run once.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol

from buildforge.core.artifacts import relocate_artifacts
from buildforge.core.channel import ChannelClosed
from buildforge.core.commit_walker import CommitWalker
from buildforge.core.git import CommandExecutionError, run_spec
from buildforge.core.task_worker import TaskWorker
from buildforge.core.vcs import VersionControlPort
from buildforge.models.build import (
    BuildCommit,
    BuildInstruction,
    BuildResult,
    BuildStatus,
    BuildSuccess,
    CommandSpec,
)
from buildforge.models.config import BuildConfig, OutputMovement
from buildforge.monitor.renderer import BuildRenderer

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 5.0


class WorkerHandle(Protocol):
    """What the scheduler needs from a worker. ``TaskWorker`` satisfies it."""

    @property
    def name(self) -> str: ...

    def send(self, instruction: BuildInstruction) -> None: ...

    def try_recv(self) -> BuildResult | None: ...

    def shutdown(self) -> None: ...


def run_when_finished(commands: Sequence[CommandSpec]) -> None:
    """Run the post-completion commands once, best-effort."""
    for command in commands:
        logger.debug("Running %s", command)
        try:
            output = run_spec(command)
        except CommandExecutionError as exc:
            logger.error("%s failed: %s", command.name, exc)
            continue
        if not output.success:
            logger.error(
                "%s failed with %d: %s", command.name, output.returncode, output.stderr.strip()
            )


class Scheduler:
    """Owns the worker pool and drives builds to completion.

    Parameters
    ----------
    walker:
        Source of unbuilt commits and sink for completed builds.
    worker_factory:
        Called with the worker index to create each worker.
    max_workers:
        Upper bound on the pool size.
    output:
        Artifact relocation settings, or ``None`` to leave working copies.
    when_finished:
        Commands run once the pool is empty.
    renderer:
        Terminal output. A default ``BuildRenderer`` is used if omitted.
    poll_interval:
        Seconds to sleep after a polling pass that produced no results.
    sleep:
        Injected for tests.
    """

    def __init__(
        self,
        walker: CommitWalker,
        worker_factory: Callable[[int], WorkerHandle],
        max_workers: int,
        *,
        output: OutputMovement | None = None,
        when_finished: Sequence[CommandSpec] = (),
        renderer: BuildRenderer | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.walker = walker
        self._worker_factory = worker_factory
        self._max_workers = max_workers
        self._output = output
        self._when_finished = tuple(when_finished)
        self.renderer = renderer or BuildRenderer()
        self._poll_interval = poll_interval
        self._sleep = sleep

        # a worker is in here iff it is building (or just finished) a commit
        self.workers: list[WorkerHandle] = []

    @classmethod
    def from_config(
        cls,
        config: BuildConfig,
        walker: CommitWalker,
        canonical_repo: VersionControlPort,
        *,
        renderer: BuildRenderer | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> Scheduler:
        """Build a scheduler whose workers are local ``TaskWorker`` threads."""
        renderer = renderer or BuildRenderer()
        build_dir = Path(config.build_parent_dir)
        commands = tuple(config.build_commands)

        def factory(index: int) -> TaskWorker:
            return TaskWorker(
                build_dir,
                canonical_repo,
                commands,
                on_build_start=renderer.building,
                name=f"worker-{index}",
            )

        return cls(
            walker,
            factory,
            config.worker_count,
            output=config.output,
            when_finished=config.when_finished,
            renderer=renderer,
            poll_interval=poll_interval,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> int:
        """Create up to ``max_workers`` workers, each with a commit to build.

        Returns the number of workers started. No worker is created idle.
        """
        for index in range(self._max_workers):
            sha = self.walker.find_unbuilt_commit()
            if sha is None:
                logger.info("No more commits to build")
                break
            worker = self._worker_factory(index)
            logger.info("Sending %s to %s", sha.value, worker.name)
            worker.send(BuildCommit(sha=sha))
            self.workers.append(worker)
        return len(self.workers)

    def run(self) -> None:
        """Start the pool and loop until every worker has retired."""
        try:
            self.start()
            while self.workers:
                if not self.poll_once():
                    self._sleep(self._poll_interval)
        finally:
            for worker in self.workers:
                worker.shutdown()

        logger.info("No more builds, running when_finished")
        run_when_finished(self._when_finished)

    def poll_once(self) -> bool:
        """Service every worker once, in pool order.

        Returns ``True`` if any worker produced a result or hung up.
        """
        found_a_message = False
        survivors: list[WorkerHandle] = []

        for worker in self.workers:
            try:
                result = worker.try_recv()
            except ChannelClosed:
                logger.debug("Removing %s, other end hung up", worker.name)
                found_a_message = True
                continue

            if result is None:
                survivors.append(worker)
                continue

            found_a_message = True
            self._handle_result(result)

            if self._dispatch_next(worker):
                survivors.append(worker)

        self.workers = survivors
        return found_a_message

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _handle_result(self, result: BuildResult) -> None:
        self.renderer.finished(result.sha, result.status)

        if isinstance(result, BuildSuccess) and self._output is not None:
            # raises ArtifactRelocationError, which ends the run
            relocate_artifacts(result.location, result.sha, self._output)

        self.walker.register_built(result.sha, result.status is BuildStatus.SUCCESS)

    def _dispatch_next(self, worker: WorkerHandle) -> bool:
        """Give *worker* its next commit; retire it if there is none."""
        sha = self.walker.find_unbuilt_commit()
        if sha is None:
            logger.debug("Retiring %s, nothing left to build", worker.name)
            worker.shutdown()
            return False
        logger.info("Sending %s to %s", sha.value, worker.name)
        worker.send(BuildCommit(sha=sha))
        return True
