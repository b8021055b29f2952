"""Docker execution engine."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import structlog

from ..utils.errors import ExternalToolError
from .base import ToolResult, ToolRunner

log = structlog.get_logger()


class DockerRunner(ToolRunner):
    """Run tools inside an MRtrix3 container.

    Host directories listed in *mounts* are bind-mounted at identical paths
    so that command arguments need no translation.
    """

    def __init__(
        self,
        image: str,
        *,
        mounts: Sequence[Path] = (),
        platform: str | None = None,
    ) -> None:
        """Configure the engine.

        Args:
            image: Container reference such as ``mrtrix3/mrtrix3:3.0.4``.
            mounts: Host directories made visible inside the container.
            platform: Optional ``docker --platform`` value.
        """
        self.image = image
        self.mounts = tuple(Path(m) for m in mounts)
        self.platform = platform

    def build_cmd(
        self,
        name: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        tty: bool = False,
    ) -> list[str]:
        """Return the ``docker run`` vector for one tool invocation.

        ``-i`` is always passed so that ``mrconvert`` can prompt for a DICOM
        series; ``-t`` only when *tty* is set.
        """
        cmd: list[str] = ["docker", "run", "--rm", "-i"]
        if tty:
            cmd.append("-t")
        if self.platform:
            cmd += ["--platform", self.platform]
        for host in self.mounts:
            cmd += ["-v", f"{host}:{host}"]
        for key, value in (env or {}).items():
            cmd += ["-e", f"{key}={value}"]
        if cwd is not None:
            cmd += ["-w", str(cwd)]
        cmd.append(self.image)
        cmd.append(name)
        cmd.extend(str(a) for a in args)
        return cmd

    def run(
        self,
        name: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        env: Mapping[str, str] | None = None,
    ) -> ToolResult:
        """Execute *name* inside the container and wait for it.

        A pseudo-terminal is requested only for streamed runs whose stdin is a
        terminal; Docker refuses ``-t`` otherwise.
        """
        tty = not capture and sys.stdin is not None and sys.stdin.isatty()
        cmd = self.build_cmd(name, args, cwd=cwd, env=env, tty=tty)
        log.info("docker.run", image=self.image, tool=name, args=list(map(str, args)))
        try:
            if capture:
                proc = subprocess.run(cmd, capture_output=True, text=True)
            else:
                proc = subprocess.run(cmd)
        except FileNotFoundError:
            log.error("docker.missing")
            return ToolResult(127, "", "docker: command not found")
        if proc.returncode != 0:
            log.error("docker.failed", image=self.image, tool=name, returncode=proc.returncode)
        return ToolResult(proc.returncode, proc.stdout or "", proc.stderr or "")

    def launch(
        self,
        name: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
    ) -> None:
        """Skip viewers: containers have no display attached."""
        log.warning("docker.viewer-skipped", tool=name, args=list(map(str, args)))

    def require(self, names: Iterable[str]) -> None:
        """Check that the ``docker`` client is available.

        Raises:
            ExternalToolError: If ``docker`` is missing on the host.
        """
        try:
            subprocess.run(
                ["docker", "--version"],
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as exc:
            raise ExternalToolError("docker", 127, "docker not found on $PATH") from exc
        except subprocess.CalledProcessError as exc:
            raise ExternalToolError("docker", exc.returncode, exc.stderr or "") from exc
