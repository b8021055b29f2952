"""Wrappers for FSL commands."""

from __future__ import annotations

from dataclasses import dataclass

from .base import Tool, ToolSpec


@dataclass
class Bet2Tool(Tool):
    """Run FSL ``bet2`` brain extraction and write a binary mask.

    ``bet2`` has no overwrite option; it always replaces existing outputs.
    ``FSLOUTPUTTYPE`` is pinned to ``NIFTI_GZ`` so that :attr:`mask_file`
    names the file actually written.
    """

    in_file: str
    out_prefix: str
    frac: float = 0.35

    def build_spec(self) -> ToolSpec:  # type: ignore[override]
        """Return the ``bet2 <in> <out> -m -f <frac>`` specification."""
        return ToolSpec(
            "bet2",
            (self.in_file, self.out_prefix, "-m", "-f", f"{self.frac:g}"),
            env={"FSLOUTPUTTYPE": "NIFTI_GZ"},
        )

    @property
    def mask_file(self) -> str:
        """Path of the mask image that ``bet2 -m`` writes."""
        return f"{self.out_prefix}_mask.nii.gz"
