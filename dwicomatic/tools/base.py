"""Base classes for external tool invocations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence


@dataclass(frozen=True)
class ToolSpec:
    """Specification returned by :meth:`Tool.build_spec`.

    Attributes mirror the arguments of :meth:`ToolRunner.run` for
    convenience; *env* holds variables set on top of the inherited
    environment.
    """

    name: str
    args: Sequence[str]
    env: Mapping[str, str] = field(default_factory=dict)

    def argv(self) -> list[str]:
        """Return the full command vector ``[name, *args]``."""
        return [self.name, *(str(a) for a in self.args)]


class Tool:
    """Base class for wrappers around external utilities."""

    def build_spec(self) -> ToolSpec:
        """Return a :class:`ToolSpec` describing how to run this tool."""
        raise NotImplementedError
