"""Buildforge: continuous commit builder.

Walks a git repository's first-parent history backwards from HEAD and
builds every commit not yet recorded in the already-built ledger, using a
bounded pool of local worker threads:

  - Commit walker with an age cutoff and optional pull-before-search
  - Thread-per-worker pool fed through half-closable channels
  - Append-only ledger; failed builds are recorded and never retried
  - Optional relocation of selected artifacts after each success
"""

__version__ = "0.1.0"
__description__ = "Continuous commit builder with an append-only build ledger"

from buildforge.core.commit_walker import CommitWalker
from buildforge.core.scheduler import Scheduler
from buildforge.cli.app import app as cli

__all__ = ["CommitWalker", "Scheduler", "cli", "__version__"]
