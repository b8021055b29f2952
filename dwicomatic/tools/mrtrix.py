"""Wrappers for MRtrix3 commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .base import Tool, ToolSpec


@dataclass
class MrtrixTool(Tool):
    """Run an output-producing MRtrix3 command.

    ``force`` appends ``-force`` (overwrite existing outputs) and
    ``nthreads`` appends ``-nthreads N``; both are standard options shared
    by every MRtrix3 command.
    """

    command: str
    args: Sequence[str] = field(default_factory=list)
    force: bool = False
    nthreads: int | None = None

    def build_spec(self) -> ToolSpec:  # type: ignore[override]
        """Return the command specification with the shared options applied."""
        args = [str(a) for a in self.args]
        if self.nthreads is not None:
            args += ["-nthreads", str(self.nthreads)]
        if self.force:
            args.append("-force")
        return ToolSpec(self.command, tuple(args))


def mrinfo(image: str, *options: str) -> ToolSpec:
    """Return an ``mrinfo`` query; queries write nothing and take no ``-force``."""
    return ToolSpec("mrinfo", (image, *options))


def mrview(image: str, *options: str, viewer: str = "mrview") -> ToolSpec:
    """Return a viewer invocation for visual QC."""
    return ToolSpec(viewer, (image, *options))
