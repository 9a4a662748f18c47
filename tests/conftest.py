"""Shared test fixtures for Buildforge."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from buildforge.core.ledger import BuildLedger
from buildforge.models.build import BuildResult, CommandOutput, RemoteRef, Sha


@dataclass
class FakeHistory:
    """In-memory commit graph shared by a FakeRepo and its working copies."""

    head: Sha | None
    parents: dict[Sha, Sha | None] = field(default_factory=dict)
    times: dict[Sha, int] = field(default_factory=dict)
    # heads that successive pulls will move HEAD to
    pending_heads: list[Sha] = field(default_factory=list)
    # commits whose build commands exit non-zero
    broken: set[Sha] = field(default_factory=set)
    # commits that cannot be checked out
    bad_checkouts: set[Sha] = field(default_factory=set)
    pulls: list[RemoteRef] = field(default_factory=list)
    subrepos: list[Path] = field(default_factory=list)
    commands: list[tuple[Path, str, tuple[str, ...]]] = field(default_factory=list)

    def add(self, sha: Sha, parent: Sha | None, ctime: int) -> None:
        self.parents[sha] = parent
        self.times[sha] = ctime


class FakeRepo:
    """VersionControlPort implementation backed by a FakeHistory."""

    def __init__(self, path: Path, history: FakeHistory) -> None:
        self.path = Path(path)
        self.history = history
        self.checked_out: Sha | None = None

    def rev_parse(self, rev: str) -> Sha | None:
        if rev == "HEAD":
            return self.history.head
        sha = Sha(value=rev)
        return sha if sha in self.history.parents else None

    def parent_commit(self, sha: Sha) -> Sha | None:
        return self.history.parents.get(sha)

    def commit_time(self, sha: Sha) -> int | None:
        return self.history.times.get(sha)

    def checkout(self, rev: str) -> bool:
        sha = Sha(value=rev)
        if sha in self.history.bad_checkouts:
            return False
        self.checked_out = sha
        return True

    def pull(self, remote: RemoteRef) -> bool:
        self.history.pulls.append(remote)
        if self.history.pending_heads:
            self.history.head = self.history.pending_heads.pop(0)
        return True

    def new_subrepo(self, dest: Path) -> FakeRepo:
        dest = Path(dest)
        dest.mkdir(parents=True, exist_ok=True)
        self.history.subrepos.append(dest)
        return FakeRepo(dest, self.history)

    def exec(self, name: str, args: list[str]) -> CommandOutput:
        self.history.commands.append((self.path, name, tuple(args)))
        if self.checked_out in self.history.broken:
            return CommandOutput(returncode=2, stderr="build broke")
        return CommandOutput(returncode=0, stdout="ok")


def sha(value: str) -> Sha:
    return Sha(value=value)


def linear_history(*names: str, start_time: int = 1_000) -> FakeHistory:
    """Build a first-parent chain; *names* run newest first.

    Each commit is 100 seconds newer than its parent.
    """
    commits = [sha(n) for n in names]
    history = FakeHistory(head=commits[0] if commits else None)
    for index, commit in enumerate(commits):
        parent = commits[index + 1] if index + 1 < len(commits) else None
        history.add(commit, parent, start_time + 100 * (len(commits) - index))
    return history


def wait_for_result(worker, timeout: float = 5.0) -> BuildResult:
    """Poll a worker until it produces a result."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        result = worker.try_recv()
        if result is not None:
            return result
        time.sleep(0.01)
    raise AssertionError("worker produced no result in time")


@pytest.fixture
def history() -> FakeHistory:
    """H -> P1 -> P2 -> P3, H newest."""
    return linear_history("H", "P1", "P2", "P3")


@pytest.fixture
def repo(tmp_path: Path, history: FakeHistory) -> FakeRepo:
    main = tmp_path / "main"
    main.mkdir()
    return FakeRepo(main, history)


@pytest.fixture
def ledger_path(tmp_path: Path) -> Path:
    return tmp_path / "already-built.txt"


@pytest.fixture
def ledger(ledger_path: Path):
    """Provide a fresh BuildLedger in a temp directory."""
    with BuildLedger(ledger_path) as ledger:
        yield ledger


@pytest.fixture
def make_repo(tmp_path: Path) -> Callable[[FakeHistory], FakeRepo]:
    """Factory fixture: a FakeRepo rooted in the temp directory."""

    def _factory(history: FakeHistory) -> FakeRepo:
        main = tmp_path / "main"
        main.mkdir(exist_ok=True)
        return FakeRepo(main, history)

    return _factory


@pytest.fixture
def make_history() -> Callable[..., FakeHistory]:
    """Factory fixture: a linear FakeHistory, names newest first."""
    return linear_history


@pytest.fixture
def wait_for() -> Callable[..., BuildResult]:
    return wait_for_result
