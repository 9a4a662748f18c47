"""Commit walker — a stateful cursor over the first-parent ancestry of HEAD.

The walker owns the three pieces of scheduling state that must stay
consistent with each other:

- ``next_candidate``: where the next search starts.
- ``in_progress``: commits handed out and not yet registered as built.
- ``already_built``: commits recorded in the ledger.

``in_progress`` and ``already_built`` never overlap, and a commit is handed
out at most once while it is in progress or after it has been built. Only
the scheduler thread calls into the walker, so none of this is locked.
"""

from __future__ import annotations

import logging

from buildforge.core.ledger import BuildLedger
from buildforge.core.vcs import RepositoryError, VersionControlPort
from buildforge.models.build import BuildStatus, RemoteRef, Sha

logger = logging.getLogger(__name__)


class CommitWalker:
    """Yields unbuilt commits from HEAD backwards, newest first.

    Parameters
    ----------
    repo:
        The canonical repository to walk.
    ledger:
        Ledger that receives a record for every registered build.
    already_built:
        Commits already recorded in *ledger* (usually ``ledger.load()``).
    pull_remote:
        When set, the repository is pulled before every search and the
        cursor jumps to the new HEAD if it moved.
    earliest_build:
        Unix timestamp; the walk stops for good at the first commit whose
        committer time is older than this.

    Raises
    ------
    RepositoryError
        If HEAD cannot be resolved.
    """

    def __init__(
        self,
        repo: VersionControlPort,
        ledger: BuildLedger,
        already_built: set[Sha],
        pull_remote: RemoteRef | None = None,
        earliest_build: int | None = None,
    ) -> None:
        self._repo = repo
        self._ledger = ledger
        self._pull_remote = pull_remote
        self._earliest_build = earliest_build

        self.next_candidate: Sha | None = self._resolve_head("Missing HEAD")
        self.in_progress: set[Sha] = set()
        self.already_built: set[Sha] = set(already_built)

    def _resolve_head(self, message: str) -> Sha:
        head = self._repo.rev_parse("HEAD")
        if head is None:
            raise RepositoryError(f"{message} in {self._repo.path}")
        return head

    def _too_old(self, sha: Sha) -> bool:
        if self._earliest_build is None:
            return False
        ctime = self._repo.commit_time(sha)
        if ctime is None:
            raise RepositoryError(f"could not resolve the commit time of {sha.value}")
        return ctime < self._earliest_build

    def _refresh_from_remote(self) -> None:
        if self._pull_remote is None:
            return
        old_head = self._resolve_head("Missing current HEAD")
        self._repo.pull(self._pull_remote)
        new_head = self._resolve_head("Missing new HEAD")
        if new_head != old_head:
            logger.info(
                "HEAD moved from %s to %s after pull, restarting walk",
                old_head.value,
                new_head.value,
            )
            self.next_candidate = new_head

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_unbuilt_commit(self) -> Sha | None:
        """Return the next commit that is neither built nor in progress.

        The returned commit is marked in progress and the cursor moves to
        its parent. ``None`` means nothing is left to build; once the age
        cutoff or the root commit is reached the cursor stays empty until
        a pull moves HEAD.
        """
        self._refresh_from_remote()

        candidate = self.next_candidate
        self.next_candidate = None
        while candidate is not None:
            if self._too_old(candidate):
                logger.info("%s is too old, not building", candidate.value)
                return None

            parent = self._repo.parent_commit(candidate)

            if candidate not in self.already_built and candidate not in self.in_progress:
                self.in_progress.add(candidate)
                self.next_candidate = parent
                return candidate

            candidate = parent
        return None

    def register_built(self, sha: Sha, success: bool) -> None:
        """Record that *sha* finished building, successfully or not."""
        status = BuildStatus.SUCCESS if success else BuildStatus.FAILURE
        self.in_progress.discard(sha)
        self._ledger.append(sha, status)
        self.already_built.add(sha)
        logger.debug("Registered %s as %s", sha.value, status.value)
