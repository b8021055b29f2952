"""Expose the Click command for the ``dwicomatic-cli`` script.

The module:

* declares a single Click *command* called :pyfunc:`main`;
* validates the two positional directories and the global flags;
* sets up logging via :pyfunc:`dwicomatic.utils.logging.setup_logging`;
* loads the stage settings and freezes everything into a
  :class:`~dwicomatic.config.PipelineConfig`;
* runs the pipeline and maps failures onto exit statuses.
"""

from __future__ import annotations

import signal
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator

import click
import structlog

from dwicomatic import __version__
from dwicomatic.config import PipelineConfig, load_settings
from dwicomatic.engines import DockerRunner, NativeRunner, ToolRunner
from dwicomatic.pipelines import run_pipeline
from dwicomatic.utils.errors import ExternalToolError, PipelineError, UsageError
from dwicomatic.utils.logging import setup_logging

log = structlog.get_logger()


class PipelineCommand(click.Command):
    """Click command that reports usage errors with exit status ``1``."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        """Parse *args*, re-raising Click's usage failures as :class:`UsageError`."""
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            raise UsageError(exc.format_message(), ctx=exc.ctx or ctx) from exc


# ─────────────────────────────────────────────────────────────────────────────
# Context settings: show “-h/--help” and default values in the help text.
# ─────────────────────────────────────────────────────────────────────────────
_CTX: Dict[str, Any] = dict(
    help_option_names=["-h", "--help"],
    show_default=True,
    max_content_width=120,
)


def _build_runner(kind: str, cfg: PipelineConfig) -> ToolRunner:
    """Return the tool runner selected with ``--runner``."""
    if kind == "docker":
        return DockerRunner(cfg.settings.docker_image, mounts=(cfg.dicom_dir, cfg.output_dir))
    return NativeRunner()


def _exit_status(exc: PipelineError) -> int:
    """Return the process status for *exc*: the tool's own status when usable."""
    if isinstance(exc, ExternalToolError) and 0 < exc.returncode < 256:
        return exc.returncode
    return 1


@contextmanager
def _trap_signals() -> Iterator[None]:
    """Turn SIGINT/SIGTERM into a logged exit; partial outputs are kept."""

    def _handler(signum, frame):  # noqa: ARG001 – signal handler signature
        log.warning("pipeline.interrupted", signal=signal.Signals(signum).name)
        raise SystemExit(128 + signum)

    previous = {
        sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


@click.command(
    cls=PipelineCommand,
    context_settings=_CTX,
    help="""\b
dwicomatic-cli – diffusion MRI preprocessing with MRtrix3 and FSL.

Converts the b=0 (PA) and diffusion-weighted (AP) series found in DICOM_DIR,
then denoises, removes Gibbs ringing, corrects distortions, estimates
response functions, upsamples, masks, fits tensors and runs multi-tissue CSD
inside OUTPUT_DIR.
""",
)
@click.version_option(__version__)
@click.argument(
    "dicom_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("-f", "--force", is_flag=True, help="Overwrite existing outputs (passes -force to MRtrix3).")
@click.option("--no-color", is_flag=True, help="Disable coloured diagnostic output.")
@click.option("--no-viewer", is_flag=True, help="Do not open QC viewer windows.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file overriding the stage settings.",
)
@click.option("--runner", type=click.Choice(["native", "docker"]), default="native")
@click.option("--nthreads", type=click.IntRange(min=0), help="Threads for MRtrix3 commands.")
@click.option("-v", "--verbose", is_flag=True, help="INFO-level console output.")
@click.option("--debug", is_flag=True, help="DEBUG console output.")
@click.option(
    "--save-logfile",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Mirror console output into this plain-text file.",
)
def main(  # noqa: D401 – Click requires the callback to be named “main”.
    dicom_dir: Path,
    output_dir: Path,
    force: bool,
    no_color: bool,
    no_viewer: bool,
    config_path: Path | None,
    runner: str,
    nthreads: int | None,
    verbose: bool,
    debug: bool,
    save_logfile: Path | None,
) -> None:
    """Root command executed by *dwicomatic-cli*.

    Raises:
        click.ClickException: When the settings are invalid, an acquisition
            check fails or an external tool fails.  The exit status is ``1``
            or the failing tool's own status.
    """
    dicom_dir = dicom_dir.expanduser().resolve()
    output_dir = output_dir.expanduser().resolve()
    output_dir.mkdir(parents=True, exist_ok=True)

    # Logging must be configured before any output is produced ----------------
    setup_logging(
        output_dir=output_dir,
        verbose=verbose,
        debug=debug,
        color=not no_color,
        extra_text_log=save_logfile,
    )

    try:
        settings = load_settings(
            config_path=config_path,
            output_dir=output_dir,
            overrides={"nthreads": nthreads},
        )
    except PipelineError as exc:
        raise click.ClickException(str(exc)) from exc

    cfg = PipelineConfig(
        dicom_dir=dicom_dir,
        output_dir=output_dir,
        force=force,
        color=not no_color,
        viewers=not no_viewer,
        settings=settings,
    )

    with _trap_signals():
        try:
            run_pipeline(cfg, _build_runner(runner, cfg))
        except PipelineError as exc:
            log.error("pipeline.aborted", error=str(exc))
            abort = click.ClickException(str(exc))
            abort.exit_code = _exit_status(exc)
            raise abort from exc


# The public symbol exported by this module.  Required for ``python -m`` entry-points.
cli = main
__all__: list[str] = ["main"]
