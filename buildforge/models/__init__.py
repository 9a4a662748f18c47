"""Buildforge data models — all Pydantic v2, all frozen (immutable)."""

from buildforge.models.build import (
    RESULT_TYPE_MAP,
    BuildCommit,
    BuildFailure,
    BuildInstruction,
    BuildLocation,
    BuildResult,
    BuildStatus,
    BuildSuccess,
    CommandOutput,
    CommandSpec,
    InstructionKind,
    LedgerRecord,
    LocalLocation,
    LocationKind,
    RemoteRef,
    Sha,
)
from buildforge.models.config import BuildConfig, ConfigLoadError, OutputMovement

__all__ = [
    # identities
    "Sha",
    "RemoteRef",
    # commands
    "CommandSpec",
    "CommandOutput",
    # instructions
    "InstructionKind",
    "BuildInstruction",
    "BuildCommit",
    # locations
    "LocationKind",
    "BuildLocation",
    "LocalLocation",
    # results
    "BuildStatus",
    "BuildResult",
    "BuildSuccess",
    "BuildFailure",
    "RESULT_TYPE_MAP",
    # ledger
    "LedgerRecord",
    # config
    "BuildConfig",
    "OutputMovement",
    "ConfigLoadError",
]
