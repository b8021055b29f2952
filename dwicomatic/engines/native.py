"""Run tools installed on the host ``$PATH``."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import structlog

from ..utils.errors import ExternalToolError
from .base import ToolResult, ToolRunner

log = structlog.get_logger()


class NativeRunner(ToolRunner):
    """Run MRtrix3/FSL binaries directly on the host."""

    def run(
        self,
        name: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> ToolResult:
        """Execute *name* synchronously.

        Streamed runs inherit the terminal so that interactive prompts (such
        as the DICOM series picker of ``mrconvert``) and progress bars reach
        the user.

        Returns:
            :class:`ToolResult`; ``127`` when the executable is not found.
        """
        cmd = [name, *(str(a) for a in args)]
        log.info("tool.run", cmd=" ".join(cmd), cwd=str(cwd) if cwd else None)
        full_env = {**os.environ, **env} if env else None
        try:
            if capture:
                proc = subprocess.run(
                    cmd, cwd=cwd, env=full_env, capture_output=True, text=True
                )
            else:
                proc = subprocess.run(cmd, cwd=cwd, env=full_env)
        except FileNotFoundError:
            log.error("tool.missing", tool=name)
            return ToolResult(127, "", f"{name}: command not found")
        return ToolResult(proc.returncode, proc.stdout or "", proc.stderr or "")

    def launch(
        self,
        name: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
    ) -> None:
        """Start *name* in its own session with stdio detached."""
        cmd = [name, *(str(a) for a in args)]
        log.info("tool.launch", cmd=" ".join(cmd))
        subprocess.Popen(
            cmd,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

    def require(self, names: Iterable[str]) -> None:
        """Raise if any tool in *names* is not on ``$PATH``.

        Raises:
            ExternalToolError: For the first missing executable.
        """
        for name in names:
            if shutil.which(name) is None:
                raise ExternalToolError(
                    name,
                    127,
                    f"{name} not found on $PATH – install MRtrix3/FSL or use --runner docker.",
                )
