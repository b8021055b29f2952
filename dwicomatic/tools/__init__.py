"""Wrappers for external preprocessing tools."""

from .base import Tool, ToolSpec
from .fsl import Bet2Tool
from .mrtrix import MrtrixTool, mrinfo, mrview

__all__ = [
    "Tool",
    "ToolSpec",
    "Bet2Tool",
    "MrtrixTool",
    "mrinfo",
    "mrview",
]
