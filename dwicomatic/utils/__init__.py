"""
Public façade for the *utils* package.

Anything imported here becomes part of the *stable* public API.
"""

from __future__ import annotations

from .display import echo_banner, echo_command, echo_stage, echo_success, echo_warning
from .errors import (
    AcquisitionError,
    ConfigError,
    ExternalToolError,
    PipelineError,
    UsageError,
)

__all__: list[str] = [
    "echo_banner",
    "echo_command",
    "echo_stage",
    "echo_success",
    "echo_warning",
    "AcquisitionError",
    "ConfigError",
    "ExternalToolError",
    "PipelineError",
    "UsageError",
]
