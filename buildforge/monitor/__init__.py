"""Terminal output for build runs."""

from buildforge.monitor.renderer import BuildRenderer

__all__ = ["BuildRenderer"]
