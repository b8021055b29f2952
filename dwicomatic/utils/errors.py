"""Custom exceptions used across the diffusion preprocessing pipeline."""

from __future__ import annotations

import click


class UsageError(click.UsageError):
    """Raised for an invalid command-line invocation.

    Click reports usage problems with status ``2``; the pipeline uses the
    single failure status ``1`` for every abort path.
    """

    exit_code = 1


class PipelineError(RuntimeError):
    """Raised when the pipeline encounters an unrecoverable issue."""

    pass


class ConfigError(PipelineError):
    """Raised when the YAML stage settings fail validation."""

    pass


class AcquisitionError(PipelineError):
    """Raised when input data fails a b-value or phase-encoding precondition."""

    pass


class ExternalToolError(PipelineError):
    """Raised when a delegated tool is missing or exits with a non-zero status.

    Attributes:
        tool: Executable name.
        returncode: Exit status reported by the tool (``127`` when missing).
        stderr: Captured error output, if any.
    """

    def __init__(self, tool: str, returncode: int, stderr: str = "") -> None:
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        msg = f"{tool} exited with status {returncode}"
        if stderr.strip():
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)
