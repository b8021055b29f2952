"""Run configuration handed to the pipeline driver.

The CLI builds one :class:`PipelineConfig` per invocation; the driver never
reads flags from anywhere else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .schema import PipelineSettings


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Immutable container for one pipeline run."""

    dicom_dir: Path
    output_dir: Path
    force: bool = False
    color: bool = True
    viewers: bool = True
    settings: PipelineSettings = field(default_factory=PipelineSettings)

    @property
    def echo_color(self) -> bool | None:
        """Colour argument for Click helpers: ``False`` disables, ``None`` auto-detects."""
        return None if self.color else False

    def series_path(self, series: str | None) -> Path:
        """Return the DICOM path for *series* (the whole directory when unset)."""
        if series is None:
            return self.dicom_dir
        return self.dicom_dir / series
