"""Git-backed version-control port.

Every operation shells out to the ``git`` executable with the repository as
working directory and captures its output. Failed queries are logged at
warning level with the captured output and reported as ``None`` / ``False``.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from buildforge.core.vcs import RepositoryError
from buildforge.models.build import CommandOutput, CommandSpec, RemoteRef, Sha

logger = logging.getLogger(__name__)


class CommandExecutionError(RuntimeError):
    """Raised when an external executable cannot be started at all."""


def run_command(
    name: str, args: list[str], cwd: Path | None = None
) -> CommandOutput:
    """Run ``name args...`` to completion and capture its output.

    A non-zero exit is not an error here; callers inspect
    ``CommandOutput.success``.
    """
    try:
        completed = subprocess.run(
            [name, *args],
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            errors="replace",
        )
    except OSError as exc:
        raise CommandExecutionError(f"could not run {name!r}: {exc}") from exc
    return CommandOutput(
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )


def run_spec(spec: CommandSpec, cwd: Path | None = None) -> CommandOutput:
    return run_command(spec.name, list(spec.args), cwd=cwd)


class GitRepo:
    """A git working tree at ``path``.

    The path is trusted to be a git repository; nothing is validated
    until the first command runs.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"GitRepo({str(self.path)!r})"

    def new_subrepo(self, dest: Path) -> GitRepo:
        """Clone this repository into *dest*, or reuse *dest* if it exists.

        Raises
        ------
        RepositoryError
            If *dest* exists but is not a directory, or the clone fails.
        """
        dest = Path(dest)
        if dest.exists():
            if not dest.is_dir():
                raise RepositoryError(
                    f"creating a working copy at a non-directory {dest}"
                )
            logger.info("%s already exists, reusing", dest)
        else:
            output = run_command("git", ["clone", str(self.path), str(dest)])
            if not output.success:
                raise RepositoryError(
                    f"couldn't copy {self.path} to {dest}: "
                    f"{output.stdout.strip()} {output.stderr.strip()}"
                )
        return GitRepo(dest)

    def rev_parse(self, rev: str) -> Sha | None:
        output = self.exec("git", ["rev-parse", rev])
        if output.success:
            return Sha(value=output.stdout.strip())
        logger.warning(
            "rev-parse %s failed with %d: %s %s",
            rev,
            output.returncode,
            output.stdout.strip(),
            output.stderr.strip(),
        )
        return None

    def parent_commit(self, sha: Sha) -> Sha | None:
        return self.rev_parse(f"{sha.value}^")

    def checkout(self, rev: str) -> bool:
        output = self.exec("git", ["checkout", rev])
        if not output.success:
            logger.warning(
                "checkout %s failed with %d: %s %s",
                rev,
                output.returncode,
                output.stdout.strip(),
                output.stderr.strip(),
            )
        return output.success

    def pull(self, remote: RemoteRef) -> bool:
        output = self.exec("git", ["pull", remote.name, remote.branch])
        if not output.success:
            logger.warning(
                "pull %s %s failed with %d: %s %s",
                remote.name,
                remote.branch,
                output.returncode,
                output.stdout.strip(),
                output.stderr.strip(),
            )
        return output.success

    def commit_time(self, sha: Sha) -> int | None:
        """Committer date of *sha* as a unix timestamp, ``None`` on failure."""
        output = self.exec("git", ["log", sha.value, "-1", "--format=%ct"])
        text = output.stdout.strip()
        if not output.success or not text:
            logger.warning(
                "commit time lookup for %s failed with %d: %s",
                sha.value,
                output.returncode,
                output.stderr.strip(),
            )
            return None
        try:
            return int(text)
        except ValueError:
            logger.warning("unparseable commit time %r for %s", text, sha.value)
            return None

    def exec(self, name: str, args: list[str]) -> CommandOutput:
        """Run the given command with the given args in the root of this repo."""
        return run_command(name, args, cwd=self.path)
