"""
Package-level logging configuration.

* Rich console output on *stderr* (colourised unless disabled).
* Rotating **JSON** log file inside ``<output>/logs/`` (or
  ``$DWICOMATIC_LOG_DIR`` when set).
* Optional plain-text mirror controlled via ``--save-logfile`` on the CLI.

The public helper :func:`setup_logging` wires everything and should be the
sole entry-point used by the CLI.
"""

from __future__ import annotations

import atexit
import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer as StructlogConsoleRenderer
from structlog.stdlib import LoggerFactory

__all__ = ["setup_logging"]


_SHARED_PROCESSORS: list = [
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.add_log_level,
]


def _formatter(renderer) -> logging.Formatter:
    """Return a formatter that renders structlog and plain stdlib records with *renderer*."""
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_SHARED_PROCESSORS,
    )


# --------------------------------------------------------------------------- #
# Internal helpers – file-based handlers                                      #
# --------------------------------------------------------------------------- #
def _json_file_handler(output_dir: Path | None, level: int) -> logging.Handler:
    """Return a rotating *JSON* file handler.

    Args:
        output_dir: Pipeline output directory; determines the log directory
            when ``DWICOMATIC_LOG_DIR`` is not set.
        level: Log-level for the handler.

    Returns:
        Handler writing rotating logs under ``output_dir/logs``, the directory
        named by ``DWICOMATIC_LOG_DIR`` or the package-local ``logs/`` folder
        when no output directory is supplied.
    """
    env_dir = os.environ.get("DWICOMATIC_LOG_DIR")

    if env_dir:
        logdir = Path(env_dir).expanduser()
    elif output_dir is not None:
        logdir = output_dir / "logs"
    else:
        logdir = Path(__file__).resolve().parents[1] / "logs"
    logdir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=logdir / "dwicomatic.log",
        maxBytes=5_000_000,  # ~5 MB before rollover
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _plain_text_file_handler(
    path: Optional[Path], level: int
) -> logging.Handler | None:
    """Return a plain-text file handler or *None* when *path* is *None*."""
    if path is None:
        return None

    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8", mode="a")
    handler.setLevel(level)
    # Ensure the buffer is flushed on interpreter exit.
    atexit.register(handler.close)
    return handler


# --------------------------------------------------------------------------- #
# Public API – main entry-point                                               #
# --------------------------------------------------------------------------- #
def setup_logging(
    *,
    output_dir: Path | None = None,
    verbose: bool = False,
    debug: bool = False,
    color: bool = True,
    extra_text_log: Optional[Path] = None,
) -> None:
    """Configure rich console logging and optional file mirrors.

    Args:
        output_dir: Pipeline output directory used for the JSON log location.
        verbose: Emit INFO-level messages to the console.
        debug: Emit DEBUG-level messages plus rich tracebacks.
        color: Colourise console output. Rich additionally drops colour when
            stderr is not a terminal.
        extra_text_log: Optional path for a plain-text mirror of console output.
    """
    console_lvl = (
        logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    )
    file_lvl = logging.DEBUG if debug else logging.INFO

    # The JSON file always gets JSONRenderer, whatever the console uses.
    console_renderer = (
        StructlogConsoleRenderer(colors=color)
        if verbose or debug
        else structlog.processors.JSONRenderer()
    )

    handlers: list[logging.Handler] = []

    # --- Rich console handler on the diagnostic stream --------------------------
    console = RichHandler(
        console=Console(stderr=True, no_color=not color, highlight=color),
        level=console_lvl,
        rich_tracebacks=debug,
        tracebacks_show_locals=False,
        markup=False,
    )
    console.setFormatter(_formatter(console_renderer))
    handlers.append(console)

    # --- Rotating JSON log inside the output directory ---------------------------
    json_handler = _json_file_handler(output_dir, file_lvl)
    json_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    handlers.append(json_handler)

    # --- Optional plain-text logfile -------------------------------------------
    txt_handler = _plain_text_file_handler(extra_text_log, console_lvl)
    if txt_handler:
        txt_handler.setFormatter(_formatter(StructlogConsoleRenderer(colors=False)))
        handlers.append(txt_handler)

    # --- Configure root logger --------------------------------------------------
    # ``force`` replaces handlers from an earlier call in the same process.
    logging.basicConfig(
        level=logging.DEBUG,
        handlers=handlers,
        format="%(message)s",
        force=True,
    )

    # --- structlog binds --------------------------------------------------------
    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            min(console_lvl, file_lvl)
        ),
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=False,
    )
