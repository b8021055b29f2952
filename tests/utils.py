"""Test helpers for dwicomatic modules."""

from __future__ import annotations

from pathlib import Path

from dwicomatic.config import PipelineConfig, PipelineSettings
from dwicomatic.engines.base import ToolResult, ToolRunner
from dwicomatic.pipelines.stages import B0_RAW, DWI_RAW


class FakeRunner(ToolRunner):
    """Tool runner that records commands and answers ``mrinfo`` queries.

    Args:
        b0_bvalues: ``mrinfo -shell_bvalues`` output for the b=0 series.
        b0_pe: PhaseEncodingDirection of the b=0 series; ``None`` when absent.
        dwi_bvalues: ``mrinfo -shell_bvalues`` output for the DWI series.
        dwi_pe: PhaseEncodingDirection of the DWI series; ``None`` when absent.
        fail_on: Tool name that exits with *fail_status*.
        fail_status: Exit status reported for *fail_on*.
        launch_error: Exception raised by :meth:`launch` when set.
    """

    def __init__(
        self,
        *,
        b0_bvalues: str = "0",
        b0_pe: str | None = "j",
        dwi_bvalues: str = "0 1000 2000",
        dwi_pe: str | None = "j-",
        fail_on: str | None = None,
        fail_status: int = 1,
        launch_error: Exception | None = None,
    ) -> None:
        self.meta = {
            B0_RAW: (b0_bvalues, b0_pe),
            DWI_RAW: (dwi_bvalues, dwi_pe),
        }
        self.fail_on = fail_on
        self.fail_status = fail_status
        self.launch_error = launch_error
        self.calls: list[list[str]] = []
        self.launched: list[list[str]] = []
        self.required: list[str] = []
        self.cwds: set[Path | None] = set()
        self.envs: dict[str, dict] = {}

    def run(self, name, args, *, cwd=None, capture=False, env=None):
        cmd = [name, *(str(a) for a in args)]
        self.calls.append(cmd)
        self.cwds.add(cwd)
        if env:
            self.envs[name] = dict(env)
        if name == "mrinfo":
            bvalues, pe = self.meta.get(cmd[1], ("", None))
            if "-shell_bvalues" in cmd:
                return ToolResult(0, f"{bvalues} \n")
            if "-property" in cmd:
                return ToolResult(0, f"{pe}\n" if pe else "\n")
            return ToolResult(0, "")
        if name == self.fail_on:
            return ToolResult(self.fail_status, "", f"{name}: failed")
        return ToolResult(0)

    def launch(self, name, args, *, cwd=None):
        if self.launch_error is not None:
            raise self.launch_error
        self.launched.append([name, *(str(a) for a in args)])

    def require(self, names):
        self.required = list(names)

    # ------------------------------------------------------------------ #
    def tools(self) -> list[str]:
        """Return the executed tool names, excluding ``mrinfo`` queries."""
        return [c[0] for c in self.calls if c[0] != "mrinfo"]

    def commands(self, name: str) -> list[list[str]]:
        """Return every recorded invocation of *name*."""
        return [c for c in self.calls if c[0] == name]


def make_config(tmp_path: Path, **kwargs) -> PipelineConfig:
    """Create a DICOM folder under *tmp_path* and return a matching config."""
    dicom = tmp_path / "dicom"
    dicom.mkdir(exist_ok=True)
    settings = kwargs.pop("settings", PipelineSettings())
    kwargs.setdefault("viewers", True)
    return PipelineConfig(
        dicom_dir=dicom,
        output_dir=tmp_path / "out",
        settings=settings,
        **kwargs,
    )
