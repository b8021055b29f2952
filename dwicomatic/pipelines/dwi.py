"""Diffusion MRI preprocessing driver.

Sequences twelve MRtrix3/FSL stages for a single subject:

1. import the b=0 reference (PA) and check it is a b=0 series acquired PA;
2. import the diffusion series (AP) and check its phase-encoding, its b=0
   volumes and that it holds at least two shells;
3. – 12. denoise, remove Gibbs ringing, build the reverse-PE b=0 pair,
   correct distortions, estimate responses, upsample, mask, fit tensors and
   metrics, and run multi-tissue CSD.

The only data-dependent branch is the tissue model of the final stage.  The
first failing check or tool aborts the run; partial outputs stay on disk.
Viewers are started detached for visual QC and never awaited.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from ..config.pipeline import PipelineConfig
from ..engines.base import ToolRunner
from ..tools import ToolSpec, mrinfo
from ..utils.display import echo_banner, echo_command, echo_stage, echo_success, echo_warning
from ..utils.errors import AcquisitionError, ExternalToolError
from .stages import B0_RAW, DWI_RAW, Stage, TissueModel, plan_stage, required_tools

log = structlog.get_logger()


@dataclass
class PipelineResult:
    """Summary of a completed run."""

    output_dir: Path
    shells: list[float] = field(default_factory=list)
    model: TissueModel | None = None
    completed: list[Stage] = field(default_factory=list)


# --------------------------------------------------------------------------- #
# Metadata queries                                                            #
# --------------------------------------------------------------------------- #
def query_info(
    runner: ToolRunner, image: str, *options: str, cwd: Path | None = None
) -> str:
    """Return the stripped stdout of ``mrinfo <image> <options>``.

    Raises:
        ExternalToolError: If ``mrinfo`` fails.
    """
    spec = mrinfo(image, *options)
    res = runner.run(spec.name, spec.args, cwd=cwd, capture=True)
    if res.returncode != 0:
        raise ExternalToolError(spec.name, res.returncode, res.stderr)
    return res.stdout.strip()


def count_shells(runner: ToolRunner, image: str, *, cwd: Path | None = None) -> list[float]:
    """Return the shell b-values of *image* in ascending order.

    Raises:
        AcquisitionError: If the reported b-values cannot be parsed.
    """
    out = query_info(runner, image, "-shell_bvalues", cwd=cwd)
    try:
        return sorted(float(tok) for tok in out.split())
    except ValueError as exc:
        raise AcquisitionError(f"{image}: unreadable shell b-values {out!r}") from exc


# --------------------------------------------------------------------------- #
# Acquisition checks                                                          #
# --------------------------------------------------------------------------- #
def validate_shell_zero(
    runner: ToolRunner,
    image: str,
    *,
    threshold: float = 10.0,
    cwd: Path | None = None,
) -> list[float]:
    """Check that *image* is a true b=0 reference.

    Returns:
        The shell b-values reported for *image*.

    Raises:
        AcquisitionError: If the image has no diffusion scheme or its lowest
            b-value exceeds *threshold*.
    """
    shells = count_shells(runner, image, cwd=cwd)
    if not shells:
        raise AcquisitionError(f"{image}: no diffusion gradient information found")
    if len(shells) > 1:
        log.warning("bzero.multiple-shells", image=image, shells=shells)
    if shells[0] > threshold:
        raise AcquisitionError(
            f"{image}: lowest b-value {shells[0]:g} exceeds {threshold:g} – "
            "not a b=0 reference series"
        )
    log.info("bzero.ok", image=image, bvalue=shells[0])
    return shells


def validate_phase_encoding(
    runner: ToolRunner,
    image: str,
    expected: str,
    *,
    cwd: Path | None = None,
    color: bool | None = None,
) -> str | None:
    """Compare the embedded PhaseEncodingDirection of *image* to *expected*.

    Missing metadata only produces a warning and the check is skipped, while
    a present but different value is fatal.

    Returns:
        The direction found in the header, or ``None`` when absent.

    Raises:
        AcquisitionError: If the direction is present and differs.
    """
    found = query_info(runner, image, "-property", "PhaseEncodingDirection", cwd=cwd)
    if not found:
        log.warning("pe.missing", image=image, expected=expected)
        echo_warning(
            f"{image}: no PhaseEncodingDirection in header – direction check skipped",
            color=color,
        )
        return None
    if found != expected:
        raise AcquisitionError(
            f"{image}: PhaseEncodingDirection is {found!r}, expected {expected!r} – "
            "wrong series selected?"
        )
    log.info("pe.ok", image=image, direction=found)
    return found


def validate_dwi_shells(
    runner: ToolRunner,
    image: str,
    *,
    threshold: float = 10.0,
    cwd: Path | None = None,
) -> list[float]:
    """Check that *image* has b=0 volumes and at least two shells.

    Returns:
        The shell b-values, lowest first.

    Raises:
        AcquisitionError: On a missing b=0 shell or fewer than two shells.
    """
    shells = count_shells(runner, image, cwd=cwd)
    if not shells or shells[0] > threshold:
        lowest = f"{shells[0]:g}" if shells else "none"
        raise AcquisitionError(
            f"{image}: lowest b-value {lowest} exceeds {threshold:g} – no b=0 volumes"
        )
    if len(shells) < 2:
        raise AcquisitionError(
            f"{image}: found {len(shells)} shell(s); at least 2 are required"
        )
    log.info("dwi.shells", image=image, shells=shells)
    return shells


def branch_on_shell_count(count: int) -> TissueModel:
    """Select the deconvolution model: WM/GM/CSF above two shells, else WM/CSF."""
    return TissueModel.THREE_TISSUE if count > 2 else TissueModel.TWO_TISSUE


# --------------------------------------------------------------------------- #
# Execution                                                                   #
# --------------------------------------------------------------------------- #
def run_stage(
    runner: ToolRunner,
    spec: ToolSpec,
    *,
    cwd: Path | None = None,
    color: bool | None = None,
) -> None:
    """Run one tool synchronously.

    Raises:
        ExternalToolError: If the tool exits with a non-zero status.
    """
    echo_command(spec.argv(), color=color)
    res = runner.run(spec.name, spec.args, cwd=cwd, env=spec.env or None)
    if res.returncode != 0:
        log.error("tool.failed", tool=spec.name, returncode=res.returncode)
        raise ExternalToolError(spec.name, res.returncode, res.stderr)


def launch_viewer(runner: ToolRunner, spec: ToolSpec, *, cwd: Path | None = None) -> None:
    """Start a QC viewer without waiting; a failed launch is only logged."""
    try:
        runner.launch(spec.name, spec.args, cwd=cwd)
    except OSError as exc:
        log.warning("viewer.failed", tool=spec.name, error=str(exc))


def run_pipeline(cfg: PipelineConfig, runner: ToolRunner) -> PipelineResult:
    """Run every stage in order and return the run summary.

    Args:
        cfg: Immutable run configuration.
        runner: Tool runner used for every external invocation.

    Returns:
        :class:`PipelineResult` with the detected shells and tissue model.

    Raises:
        AcquisitionError: If an input series fails a precondition.
        ExternalToolError: If a tool is missing or fails.
    """
    out = cfg.output_dir
    out.mkdir(parents=True, exist_ok=True)
    color = cfg.echo_color
    s = cfg.settings

    runner.require(required_tools(cfg))

    result = PipelineResult(output_dir=out)
    total = len(Stage)
    echo_banner(f"dwicomatic | {cfg.dicom_dir} → {out}", color=color)
    log.info("pipeline.start", dicom=str(cfg.dicom_dir), output=str(out), force=cfg.force)

    for stage in Stage:
        plan = plan_stage(stage, cfg, result.model)
        echo_stage(stage.number, total, stage.heading, color=color)
        log.info("stage.start", stage=stage.value, number=stage.number)

        for spec in plan.commands:
            run_stage(runner, spec, cwd=out, color=color)

        if stage is Stage.IMPORT_B0:
            validate_shell_zero(runner, B0_RAW, threshold=s.bzero_threshold, cwd=out)
            validate_phase_encoding(runner, B0_RAW, s.b0_pe_dir, cwd=out, color=color)
        elif stage is Stage.IMPORT_DWI:
            validate_phase_encoding(runner, DWI_RAW, s.dwi_pe_dir, cwd=out, color=color)
            result.shells = validate_dwi_shells(
                runner, DWI_RAW, threshold=s.bzero_threshold, cwd=out
            )
            result.model = branch_on_shell_count(len(result.shells))
            log.info("tissue-model", model=result.model.value, shells=len(result.shells))

        if plan.viewer is not None and cfg.viewers:
            launch_viewer(runner, plan.viewer, cwd=out)

        result.completed.append(stage)
        log.info("stage.done", stage=stage.value)

    echo_success(
        f"Completed {total} stages ({result.model.value if result.model else '?'} model) in {out}",
        color=color,
    )
    log.info("pipeline.done", output=str(out))
    return result
