"""Stage catalogue of the diffusion preprocessing pipeline.

Each :class:`Stage` maps to a :class:`StagePlan` – the external commands it
runs, in order, plus an optional viewer for visual QC.  Planning is pure: it
only depends on the run configuration and, for the final stage, on the tissue
model selected from the DWI shell count.  All file names are relative to the
output directory, which is the working directory of every tool.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..config.pipeline import PipelineConfig
from ..tools import Bet2Tool, MrtrixTool, ToolSpec, mrview

# ─────────────────────────────────────────────────────────────────────────────
# Intermediate files
# ─────────────────────────────────────────────────────────────────────────────
B0_RAW = "b0_PA_raw.mif"
DWI_RAW = "dwi_AP_raw.mif"
NOISE = "noise.mif"
DWI_DEN = "dwi_den.mif"
RESIDUAL = "residual.mif"
DWI_UNR = "dwi_den_unr.mif"
B0_AP_ALL = "b0_AP_all.mif"
B0_AP = "b0_AP.mif"
B0_PA = "b0_PA.mif"
B0_PAIR = "b0_pair.mif"
DWI_PREPROC = "dwi_preproc.mif"
WM_RESPONSE = "wm.txt"
GM_RESPONSE = "gm.txt"
CSF_RESPONSE = "csf.txt"
VOXELS = "voxels.mif"
DWI_UP = "dwi_upsampled.mif"
B0_UP_ALL = "b0_upsampled_all.mif"
MEAN_B0_UP = "mean_b0_upsampled.mif"
MEAN_B0_UP_NII = "mean_b0_upsampled.nii.gz"
BET_PREFIX = "mean_b0_brain"
MASK = "mask.mif"
TENSOR = "tensor.mif"
FA = "fa.mif"
MD = "md.mif"
AD = "ad.mif"
RD = "rd.mif"
EIGENVECTOR = "ev.mif"
WM_FOD = "wmfod.mif"
GM_FOD = "gmfod.mif"
CSF_FOD = "csffod.mif"


class Stage(str, Enum):
    """The twelve pipeline stages in execution order."""

    IMPORT_B0 = "import-b0"
    IMPORT_DWI = "import-dwi"
    DENOISE = "denoise"
    DEGIBBS = "degibbs"
    B0_PAIR = "b0-pair"
    PREPROC = "preproc"
    RESPONSE = "response"
    UPSAMPLE = "upsample"
    MASK = "mask"
    TENSOR = "tensor"
    METRICS = "metrics"
    FOD = "fod"

    @property
    def number(self) -> int:
        """1-based position of the stage in the sequence."""
        return list(Stage).index(self) + 1

    @property
    def heading(self) -> str:
        """Human-readable stage heading."""
        return _TITLES[self]


_TITLES: dict[Stage, str] = {
    Stage.IMPORT_B0: "Import b=0 reference (PA)",
    Stage.IMPORT_DWI: "Import diffusion-weighted series (AP)",
    Stage.DENOISE: "MP-PCA denoising",
    Stage.DEGIBBS: "Gibbs ringing removal",
    Stage.B0_PAIR: "Reverse phase-encoding b=0 pair",
    Stage.PREPROC: "Susceptibility, eddy-current and motion correction",
    Stage.RESPONSE: "Response function estimation",
    Stage.UPSAMPLE: "Upsampling",
    Stage.MASK: "Brain mask",
    Stage.TENSOR: "Tensor fit",
    Stage.METRICS: "Tensor metrics",
    Stage.FOD: "Constrained spherical deconvolution",
}


class TissueModel(str, Enum):
    """Deconvolution model selected from the number of b-value shells."""

    TWO_TISSUE = "wm-csf"
    THREE_TISSUE = "wm-gm-csf"


@dataclass(frozen=True)
class StagePlan:
    """Commands executed by one stage, plus an optional QC viewer."""

    stage: Stage
    commands: tuple[ToolSpec, ...]
    viewer: ToolSpec | None = None


def _mrtrix(cfg: PipelineConfig, command: str, *args: str) -> ToolSpec:
    """Build an MRtrix3 invocation carrying the run-wide shared options."""
    return MrtrixTool(
        command,
        list(args),
        force=cfg.force,
        nthreads=cfg.settings.nthreads,
    ).build_spec()


def _view(cfg: PipelineConfig, image: str, *options: str) -> ToolSpec:
    return mrview(image, *options, viewer=cfg.settings.viewer)


def plan_stage(
    stage: Stage,
    cfg: PipelineConfig,
    model: TissueModel | None = None,
) -> StagePlan:
    """Return the :class:`StagePlan` for *stage*.

    Args:
        stage: Stage to plan.
        cfg: Run configuration (force flag, settings, input paths).
        model: Tissue model; required for :attr:`Stage.FOD` only.

    Returns:
        The commands and viewer of the stage.

    Raises:
        ValueError: If :attr:`Stage.FOD` is planned without a tissue model.
    """
    s = cfg.settings

    if stage is Stage.IMPORT_B0:
        src = str(cfg.series_path(s.b0_series))
        return StagePlan(stage, (_mrtrix(cfg, "mrconvert", src, B0_RAW),))

    if stage is Stage.IMPORT_DWI:
        src = str(cfg.series_path(s.dwi_series))
        return StagePlan(stage, (_mrtrix(cfg, "mrconvert", src, DWI_RAW),))

    if stage is Stage.DENOISE:
        return StagePlan(
            stage,
            (
                _mrtrix(cfg, "dwidenoise", DWI_RAW, DWI_DEN, "-noise", NOISE),
                _mrtrix(cfg, "mrcalc", DWI_RAW, DWI_DEN, "-subtract", RESIDUAL),
            ),
            viewer=_view(cfg, RESIDUAL),
        )

    if stage is Stage.DEGIBBS:
        return StagePlan(
            stage,
            (_mrtrix(cfg, "mrdegibbs", DWI_DEN, DWI_UNR, "-axes", s.degibbs_axes),),
            viewer=_view(cfg, DWI_UNR),
        )

    if stage is Stage.B0_PAIR:
        # The first half of the pair must share the DWI phase-encoding.
        return StagePlan(
            stage,
            (
                _mrtrix(cfg, "dwiextract", DWI_UNR, B0_AP_ALL, "-bzero"),
                _mrtrix(cfg, "mrmath", B0_AP_ALL, "mean", B0_AP, "-axis", "3"),
                _mrtrix(cfg, "mrmath", B0_RAW, "mean", B0_PA, "-axis", "3"),
                _mrtrix(cfg, "mrcat", B0_AP, B0_PA, B0_PAIR, "-axis", "3"),
            ),
            viewer=_view(cfg, B0_PAIR),
        )

    if stage is Stage.PREPROC:
        args = [
            DWI_UNR,
            DWI_PREPROC,
            "-pe_dir",
            s.pe_dir,
            "-rpe_pair",
            "-se_epi",
            B0_PAIR,
            "-eddy_options",
            s.eddy_options,
        ]
        if s.readout_time is not None:
            args += ["-readout_time", f"{s.readout_time:g}"]
        return StagePlan(
            stage,
            (_mrtrix(cfg, "dwifslpreproc", *args),),
            viewer=_view(cfg, DWI_PREPROC, "-overlay.load", DWI_UNR),
        )

    if stage is Stage.RESPONSE:
        return StagePlan(
            stage,
            (
                _mrtrix(
                    cfg,
                    "dwi2response",
                    "dhollander",
                    DWI_PREPROC,
                    WM_RESPONSE,
                    GM_RESPONSE,
                    CSF_RESPONSE,
                    "-voxels",
                    VOXELS,
                ),
            ),
            viewer=_view(cfg, DWI_PREPROC, "-overlay.load", VOXELS),
        )

    if stage is Stage.UPSAMPLE:
        return StagePlan(
            stage,
            (
                _mrtrix(
                    cfg, "mrgrid", DWI_PREPROC, "regrid", DWI_UP, "-voxel", f"{s.voxel_size:g}"
                ),
            ),
        )

    if stage is Stage.MASK:
        bet = Bet2Tool(MEAN_B0_UP_NII, BET_PREFIX, frac=s.bet_f)
        return StagePlan(
            stage,
            (
                _mrtrix(cfg, "dwiextract", DWI_UP, B0_UP_ALL, "-bzero"),
                _mrtrix(cfg, "mrmath", B0_UP_ALL, "mean", MEAN_B0_UP, "-axis", "3"),
                _mrtrix(cfg, "mrconvert", MEAN_B0_UP, MEAN_B0_UP_NII),
                bet.build_spec(),
                _mrtrix(cfg, "mrconvert", bet.mask_file, MASK, "-datatype", "bit"),
            ),
            viewer=_view(cfg, MEAN_B0_UP, "-overlay.load", MASK),
        )

    if stage is Stage.TENSOR:
        return StagePlan(
            stage,
            (_mrtrix(cfg, "dwi2tensor", DWI_UP, TENSOR, "-mask", MASK),),
        )

    if stage is Stage.METRICS:
        return StagePlan(
            stage,
            (
                _mrtrix(
                    cfg,
                    "tensor2metric",
                    TENSOR,
                    "-mask",
                    MASK,
                    "-fa",
                    FA,
                    "-adc",
                    MD,
                    "-ad",
                    AD,
                    "-rd",
                    RD,
                    "-vector",
                    EIGENVECTOR,
                ),
            ),
            viewer=_view(cfg, FA),
        )

    if stage is Stage.FOD:
        if model is None:
            raise ValueError("the deconvolution stage needs a tissue model")
        pairs = [WM_RESPONSE, WM_FOD]
        if model is TissueModel.THREE_TISSUE:
            pairs += [GM_RESPONSE, GM_FOD]
        pairs += [CSF_RESPONSE, CSF_FOD]
        return StagePlan(
            stage,
            (_mrtrix(cfg, "dwi2fod", "msmt_csd", DWI_UP, *pairs, "-mask", MASK),),
            viewer=_view(cfg, FA, "-odf.load_sh", WM_FOD),
        )

    raise ValueError(f"unknown stage: {stage!r}")  # pragma: no cover


def required_tools(cfg: PipelineConfig) -> list[str]:
    """Return every executable the stage plans invoke, without viewers.

    Viewers are best effort, so a missing viewer never blocks a run.
    """
    names: list[str] = ["mrinfo"]
    for stage in Stage:
        plan = plan_stage(stage, cfg, TissueModel.THREE_TISSUE)
        for spec in plan.commands:
            if spec.name not in names:
                names.append(spec.name)
    return names
