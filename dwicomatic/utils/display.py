"""Utility functions to print formatted CLI messages for progress updates.

Every helper writes to *stderr* so that the diagnostic stream carries the
whole run narrative.  ``color=False`` strips ANSI styling; ``None`` lets Click
decide based on whether the stream is a terminal.
"""

from __future__ import annotations

import click

__all__ = ["echo_banner", "echo_stage", "echo_success", "echo_warning", "echo_command"]


def echo_banner(text: str, *, color: bool | None = None) -> None:
    """Print a colourful banner announcing the run.

    Args:
        text: Banner text.
        color: Colour override forwarded to :func:`click.secho`.
    """
    click.secho(f"\n=== {text} ===", fg="cyan", err=True, color=color)


def echo_stage(number: int, total: int, title: str, *, color: bool | None = None) -> None:
    """Echo a numbered stage header such as ``[3/12] Denoising``."""
    click.secho(f"\n  — [{number}/{total}] {title} —", fg="magenta", err=True, color=color)


def echo_command(argv: list[str], *, color: bool | None = None) -> None:
    """Echo an external command line before it runs."""
    click.secho(f"    $ {' '.join(argv)}", dim=True, err=True, color=color)


def echo_success(text: str, *, color: bool | None = None) -> None:
    """Echo a green success message prefixed with a tick."""
    click.secho(f"✓ {text}", fg="green", err=True, color=color)


def echo_warning(text: str, *, color: bool | None = None) -> None:
    """Echo a yellow warning line."""
    click.secho(f"! {text}", fg="yellow", err=True, color=color)
