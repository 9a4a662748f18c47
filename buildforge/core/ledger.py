"""Append-only already-built ledger.

The ledger is the source of truth for which commits must never be built
again. It is a plain text file with one ``<sha>:<status>`` record per line.
Both ``success`` and ``failure`` records count as built.

Design:
- Append-only: the file is opened in append+read mode and never rewritten.
- Every ``append()`` is flushed and fsynced before it returns.
- Single writer: only the scheduler thread appends, so there is no locking.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import IO

from buildforge.models.build import BuildStatus, LedgerRecord, Sha

logger = logging.getLogger(__name__)


class LedgerError(RuntimeError):
    """Raised when the ledger cannot be read or a record cannot be persisted."""


class BuildLedger:
    """Already-built ledger backed by an append-only text file.

    Parameters
    ----------
    path:
        Path to the ledger file. Created empty if it does not exist.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        try:
            self._file: IO[str] = open(  # noqa: SIM115 - held open until close()
                self._path, "a+", encoding="utf-8"
            )
        except OSError as exc:
            raise LedgerError(f"Error opening {self._path}: {exc}") from exc

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def records(self) -> list[LedgerRecord]:
        """Replay every record in the file, in the order written."""
        try:
            self._file.seek(0)
            text = self._file.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise LedgerError(f"{self._path} could not be read: {exc}") from exc

        records: list[LedgerRecord] = []
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            records.append(LedgerRecord.from_line(line))
        return records

    def load(self) -> set[Sha]:
        """Return every commit in the ledger, regardless of its status."""
        built = {record.sha for record in self.records()}
        logger.debug("Loaded %d built commits from %s", len(built), self._path)
        return built

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append(self, sha: Sha, status: BuildStatus) -> LedgerRecord:
        """Persist one record. This is the ONLY write method."""
        record = LedgerRecord(sha=sha, status=status.value)
        try:
            self._file.write(record.to_line())
            self._file.flush()
            os.fsync(self._file.fileno())
        except (OSError, ValueError) as exc:
            raise LedgerError(
                f"failed to record {sha.value}:{status.value} in {self._path}: {exc}"
            ) from exc
        return record

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> BuildLedger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
