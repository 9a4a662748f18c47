"""Buildforge CLI — Typer-based command-line interface.

Provides the ``buildforge`` command, which loads ``config.json``, replays
the already-built ledger and builds every unbuilt commit reachable from
HEAD. All output uses Rich for formatted terminal display.
"""
