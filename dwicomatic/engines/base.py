"""Execution back-ends for running external neuroimaging tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Sequence


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one external tool invocation.

    ``stdout`` and ``stderr`` are only populated for captured runs; streamed
    runs leave them empty.
    """

    returncode: int
    stdout: str = ""
    stderr: str = ""


class ToolRunner(ABC):
    """Abstract tool runner.

    Concrete implementations launch processes (natively or inside a
    container) that run external neuroimaging tools.  The interface is
    intentionally small so that tests can substitute deterministic fakes.
    """

    @abstractmethod
    def run(
        self,
        name: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> ToolResult:
        """Run *name* with *args* and block until it exits.

        Args:
            name: Executable name (e.g. ``mrconvert``).
            args: Command line arguments passed to the tool.
            cwd: Working directory for the process.
            capture: Capture stdout/stderr instead of streaming to the console.
            env: Extra environment variables for the tool.

        Returns:
            :class:`ToolResult` describing the exit status and captured output.
            A non-zero status is reported, never raised.
        """
        raise NotImplementedError

    @abstractmethod
    def launch(
        self,
        name: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
    ) -> None:
        """Start *name* detached from the pipeline and return immediately."""
        raise NotImplementedError

    def require(self, names: Iterable[str]) -> None:
        """Check that every tool in *names* can be executed.

        The default implementation performs no check.
        """
        return None
