"""
Pydantic model for the stage parameters consumed by the pipeline.

Defaults reproduce the historical shell script exactly (upsampling voxel size
1.3 mm, ``bet2`` fractional threshold 0.35, b=0 tolerance 10 s/mm²) so a run
without any YAML override behaves identically.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# MRtrix3 encodes phase-encoding as an image axis with optional polarity.
PhaseEncoding = Literal["i", "i-", "j", "j-", "k", "k-"]


class PipelineSettings(BaseModel):
    """Immutable stage settings.

    Unknown keys are rejected so that misspelled YAML options fail loudly
    instead of silently falling back to defaults.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # --------------------------- acquisition checks ---------------------- #
    bzero_threshold: float = Field(
        10.0, ge=0, description="Largest b-value still treated as b=0"
    )
    b0_pe_dir: PhaseEncoding = Field(
        "j", description="Expected PhaseEncodingDirection of the b=0 series (PA)"
    )
    dwi_pe_dir: PhaseEncoding = Field(
        "j-", description="Expected PhaseEncodingDirection of the DWI series (AP)"
    )

    # --------------------------- DICOM series ---------------------------- #
    b0_series: Optional[str] = Field(
        None, description="Sub-path of the DICOM directory holding the b=0 series"
    )
    dwi_series: Optional[str] = Field(
        None, description="Sub-path of the DICOM directory holding the DWI series"
    )

    # --------------------------- stage parameters ------------------------ #
    degibbs_axes: str = "0,1"
    pe_dir: Literal["AP", "PA", "LR", "RL", "IS", "SI"] = "AP"
    readout_time: Optional[float] = Field(None, gt=0)
    eddy_options: str = " --slm=linear --data_is_shelled"
    voxel_size: float = Field(1.3, gt=0)
    bet_f: float = Field(0.35, gt=0, lt=1)

    # --------------------------- execution ------------------------------- #
    nthreads: Optional[int] = Field(None, ge=0)
    viewer: str = "mrview"
    docker_image: str = "mrtrix3/mrtrix3:3.0.4"
