"""Artifact relocation — move selected build outputs out of a working copy.

Runs on the scheduler thread after a successful build. Any failure here
means the output pipeline itself is broken, so it is reported as
``ArtifactRelocationError`` and never degraded into a build failure.
"""

from __future__ import annotations

import glob
import logging
import shutil
from pathlib import Path

from buildforge.models.build import BuildLocation, LocalLocation, Sha
from buildforge.models.config import OutputMovement

logger = logging.getLogger(__name__)


class ArtifactRelocationError(RuntimeError):
    """Raised when build artifacts cannot be moved into the output directory."""


def expand_patterns(root: Path, patterns: list[str]) -> list[Path]:
    """Glob-expand each pattern relative to *root*, keeping pattern order."""
    matches: list[Path] = []
    for pattern in patterns:
        found = sorted(glob.glob(str(root / pattern)))
        if not found:
            logger.debug("%s matched nothing in %s", pattern, root)
        matches.extend(Path(p) for p in found)
    return matches


def relocate_artifacts(
    location: BuildLocation, sha: Sha, output: OutputMovement
) -> Path:
    """Move the configured artifacts for *sha* and discard the working copy.

    Returns the destination directory ``output.parent_dir/<sha>``.
    """
    if not isinstance(location, LocalLocation):
        raise ArtifactRelocationError(
            f"cannot relocate artifacts from {location.location_kind.value} location"
        )

    working_copy = location.path
    destination = Path(output.parent_dir) / sha.value

    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArtifactRelocationError(
            f"mkdir failed on {destination}: {exc}"
        ) from exc

    sources = expand_patterns(working_copy, output.to_move)
    if not sources:
        raise ArtifactRelocationError(
            f"nothing in {working_copy} matched {output.to_move}"
        )

    for source in sources:
        target = destination / source.name
        try:
            # a file left by an earlier, unrecorded relocation is replaced
            if target.is_file() and not source.is_dir():
                target.unlink()
            shutil.move(str(source), str(destination))
        except (OSError, shutil.Error) as exc:
            raise ArtifactRelocationError(
                f"moving {source} to {destination} failed: {exc}"
            ) from exc
        logger.debug("moved %s -> %s", source, target)

    try:
        shutil.rmtree(working_copy)
    except OSError as exc:
        raise ArtifactRelocationError(
            f"removing {working_copy} failed: {exc}"
        ) from exc

    logger.info("Relocated %d artifact(s) for %s to %s", len(sources), sha.value, destination)
    return destination
