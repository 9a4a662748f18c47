"""Build data model — commit identities, instructions, locations and results.

All models are frozen Pydantic v2 models. Tagged values follow the same
shape throughout: a ``*Kind`` enum, a base model carrying the kind, and one
subclass per variant, with a ``*_TYPE_MAP`` registry for dispatch.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class Sha(BaseModel):
    """Identity of one commit, as printed by ``git rev-parse``."""

    model_config = ConfigDict(frozen=True)

    value: str

    def __str__(self) -> str:
        return self.value


class RemoteRef(BaseModel):
    """A remote name and branch pair, used only as a pull target."""

    model_config = ConfigDict(frozen=True)

    name: str
    branch: str


class CommandSpec(BaseModel):
    """An executable name plus its ordered arguments."""

    model_config = ConfigDict(frozen=True)

    name: str
    args: list[str] = []

    def argv(self) -> list[str]:
        return [self.name, *self.args]

    def __str__(self) -> str:
        return " ".join(self.argv())


class CommandOutput(BaseModel):
    """Exit status and captured output of one external command."""

    model_config = ConfigDict(frozen=True)

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


# ---------------------------------------------------------------------------
# Instructions (scheduler -> worker)
# ---------------------------------------------------------------------------


class InstructionKind(str, Enum):
    BUILD_COMMIT = "build_commit"


class BuildInstruction(BaseModel):
    """Base for everything a worker can be asked to do."""

    model_config = ConfigDict(frozen=True)

    instruction_kind: InstructionKind


class BuildCommit(BuildInstruction):
    """Check out ``sha`` in a dedicated working copy and build it."""

    instruction_kind: InstructionKind = InstructionKind.BUILD_COMMIT
    sha: Sha


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


class LocationKind(str, Enum):
    LOCAL = "local"


class BuildLocation(BaseModel):
    """Where the artifacts of a finished build live.

    Only ``LocalLocation`` exists today; a remote builder would add its own
    kind and subclass here without touching the scheduler's dispatch.
    """

    model_config = ConfigDict(frozen=True)

    location_kind: LocationKind


class LocalLocation(BuildLocation):
    """Artifacts sit in a working copy on this machine."""

    location_kind: LocationKind = LocationKind.LOCAL
    path: Path

    def __str__(self) -> str:
        return f"Local({self.path})"


# ---------------------------------------------------------------------------
# Results (worker -> scheduler)
# ---------------------------------------------------------------------------


class BuildStatus(str, Enum):
    """Outcome of a build, as written to the ledger."""

    SUCCESS = "success"
    FAILURE = "failure"


class BuildResult(BaseModel):
    """Base for worker results. Exactly one is emitted per instruction."""

    model_config = ConfigDict(frozen=True)

    status: BuildStatus
    sha: Sha


class BuildSuccess(BuildResult):
    status: BuildStatus = BuildStatus.SUCCESS
    location: BuildLocation


class BuildFailure(BuildResult):
    status: BuildStatus = BuildStatus.FAILURE


RESULT_TYPE_MAP: dict[BuildStatus, type[BuildResult]] = {
    BuildStatus.SUCCESS: BuildSuccess,
    BuildStatus.FAILURE: BuildFailure,
}


class LedgerRecord(BaseModel):
    """One line of the already-built ledger: ``<sha>:<status>``."""

    model_config = ConfigDict(frozen=True)

    sha: Sha
    status: str  # normally a BuildStatus value; unknown values are kept verbatim

    def to_line(self) -> str:
        return f"{self.sha.value}:{self.status}\n"

    @classmethod
    def from_line(cls, line: str) -> LedgerRecord:
        value, _, status = line.partition(":")
        return cls(sha=Sha(value=value), status=status)
