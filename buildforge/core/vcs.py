"""Version-control port consumed by the walker and the workers.

``GitRepo`` is the production implementation; tests supply in-memory fakes.
Any object with these methods satisfies the protocol.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from buildforge.models.build import CommandOutput, RemoteRef, Sha


class RepositoryError(RuntimeError):
    """Raised when a repository query that the walk depends on cannot be answered."""


@runtime_checkable
class VersionControlPort(Protocol):
    """Operations on one working tree.

    Query methods return ``None`` / ``False`` when the underlying tool
    reports failure; they only raise when the tool cannot be run at all.
    """

    path: Path

    def rev_parse(self, rev: str) -> Sha | None:
        """Resolve a revision to a commit id."""
        ...

    def parent_commit(self, sha: Sha) -> Sha | None:
        """Return the first parent of *sha*, or ``None`` for a root commit."""
        ...

    def commit_time(self, sha: Sha) -> int | None:
        """Return the committer timestamp of *sha* as unix seconds."""
        ...

    def checkout(self, rev: str) -> bool:
        ...

    def pull(self, remote: RemoteRef) -> bool:
        ...

    def new_subrepo(self, dest: Path) -> VersionControlPort:
        """Return a working copy at *dest*, reusing one that already exists."""
        ...

    def exec(self, name: str, args: list[str]) -> CommandOutput:
        """Run an arbitrary command in the root of this working tree."""
        ...
