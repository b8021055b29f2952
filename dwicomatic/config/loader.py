"""
YAML configuration loader.

This helper locates, reads, merges, and validates *pipeline.yaml* before
returning a :class:`dwicomatic.config.schema.PipelineSettings` instance.

Search precedence (first match wins)
1. An explicit path argument (``--config`` on the CLI).
2. ``<output>/code/config/pipeline.yaml`` – run-local override.
3. The packaged default shipped inside the wheel.
"""

from __future__ import annotations

from importlib.resources import as_file, files
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..utils.errors import ConfigError
from .schema import PipelineSettings

# --------------------------------------------------------------------------- #
# Wheel-internal fallback (works even from a zipped wheel)                    #
# --------------------------------------------------------------------------- #
try:
    _DEFAULT_PIPELINE = files("dwicomatic.resources") / "default_pipeline.yaml"
except ModuleNotFoundError:
    _DEFAULT_PIPELINE = (
        Path(__file__).resolve().parent.parent / "resources" / "default_pipeline.yaml"
    )


def _output_local(root: Optional[str | Path], name: str) -> Optional[Path]:
    """Return ``<root>/code/config/<name>`` or *None* if *root* is ``None``."""
    if root is None:
        return None
    return Path(root).expanduser().resolve() / "code" / "config" / name


def _first_existing(*candidates: Optional[Path]) -> Optional[Path]:
    """Return the first path in *candidates* that exists on disk."""
    for p in candidates:
        if p is not None and p.exists():
            return p
    return None


def _load_yaml(path: Path) -> dict:
    """Read a YAML file.

    Raises:
        ConfigError: If the document is not a mapping or cannot be parsed.
    """
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML – {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return data


def _resolve_yaml(
    explicit: Optional[Path],
    output_dir: Optional[Path],
    fname: str,
    fallback,
) -> Path:
    """Resolve a YAML path for *fname* according to the documented precedence."""
    resolved = _first_existing(explicit, _output_local(output_dir, fname))
    if resolved is None:
        with as_file(fallback) as p:
            resolved = p
    return resolved


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #
def load_settings(
    *,
    config_path: Optional[str | Path] = None,
    output_dir: Optional[str | Path] = None,
    overrides: dict | None = None,
) -> PipelineSettings:
    """Return a fully validated :class:`PipelineSettings`.

    Keys may appear at the top level or under a ``defaults:`` mapping;
    top-level keys win.  Non-``None`` entries of *overrides* (CLI options)
    win over both.

    Args:
        config_path: Explicit YAML path. ``None`` triggers the search sequence
            described in the module doc-string.
        output_dir: Pipeline output directory used for the run-local override.
        overrides: Values supplied on the command line.

    Returns:
        A :class:`PipelineSettings` object ready for downstream use.

    Raises:
        ConfigError: When the merged YAML fails validation.
    """
    output_dir = Path(output_dir).expanduser().resolve() if output_dir else None
    config_path = Path(config_path).expanduser().resolve() if config_path else None

    path = _resolve_yaml(config_path, output_dir, "pipeline.yaml", _DEFAULT_PIPELINE)
    data = _load_yaml(path)

    defaults = data.get("defaults") or {}
    merged: dict = {**defaults, **{k: v for k, v in data.items() if k != "defaults"}}
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return PipelineSettings(**merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path} – {exc}") from exc
