"""Execution engines."""

from .base import ToolResult, ToolRunner
from .docker import DockerRunner
from .native import NativeRunner

__all__ = ["ToolResult", "ToolRunner", "DockerRunner", "NativeRunner"]
