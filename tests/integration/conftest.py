"""Fixtures for tests that drive a real ``git`` executable."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

BASE_TIME = 1_600_000_000


def git(cwd: Path, *args: str, when: int | None = None) -> str:
    """Run git in *cwd* with a throwaway identity and return its stdout."""
    env = dict(os.environ)
    if when is not None:
        env["GIT_AUTHOR_DATE"] = env["GIT_COMMITTER_DATE"] = f"@{when} +0000"
    completed = subprocess.run(
        [
            "git",
            "-c", "user.name=Build Bot",
            "-c", "user.email=bot@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        env=env,
        capture_output=True,
        text=True,
        check=True,
    )
    return completed.stdout.strip()


class GitFixture:
    """A scratch repository that records the sha of every commit it makes."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.commits: list[str] = []
        path.mkdir(parents=True, exist_ok=True)
        git(path, "init", "-q")

    def commit(self, files: dict[str, str], message: str) -> str:
        for name, content in files.items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        git(self.path, "add", "-A")
        when = BASE_TIME + 100 * len(self.commits)
        git(self.path, "commit", "-q", "-m", message, when=when)
        sha = git(self.path, "rev-parse", "HEAD")
        self.commits.append(sha)
        return sha

    def time_of(self, sha: str) -> int:
        return BASE_TIME + 100 * self.commits.index(sha)


@pytest.fixture
def make_git_repo(tmp_path: Path) -> Callable[[str], GitFixture]:
    def _factory(name: str = "repo") -> GitFixture:
        return GitFixture(tmp_path / name)

    return _factory


@pytest.fixture
def project(make_git_repo) -> GitFixture:
    """Three commits: good, broken, fixed."""
    repo = make_git_repo("repo")
    repo.commit({"build.sh": "echo one > out.txt\n"}, "first")
    repo.commit({"build.sh": "exit 1\n"}, "break the build")
    repo.commit({"build.sh": "echo three > out.txt\n"}, "fix the build")
    return repo
