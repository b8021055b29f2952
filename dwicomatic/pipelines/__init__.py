"""Pipeline stages and the driver that sequences them."""

from .dwi import (
    PipelineResult,
    branch_on_shell_count,
    count_shells,
    launch_viewer,
    run_pipeline,
    run_stage,
    validate_dwi_shells,
    validate_phase_encoding,
    validate_shell_zero,
)
from .stages import Stage, StagePlan, TissueModel, plan_stage

__all__ = [
    "PipelineResult",
    "branch_on_shell_count",
    "count_shells",
    "launch_viewer",
    "run_pipeline",
    "run_stage",
    "validate_dwi_shells",
    "validate_phase_encoding",
    "validate_shell_zero",
    "Stage",
    "StagePlan",
    "TissueModel",
    "plan_stage",
]
