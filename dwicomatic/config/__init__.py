"""
Configuration package façade.

* :func:`load_settings` – Parse and validate *pipeline.yaml* into a
  :class:`PipelineSettings` instance.
* :class:`PipelineSettings` – Pydantic model holding the stage parameters.
* :class:`PipelineConfig` – Immutable per-run configuration for the driver.
"""

from .loader import load_settings  # noqa: F401
from .pipeline import PipelineConfig  # noqa: F401
from .schema import PipelineSettings  # noqa: F401

__all__: list[str] = ["load_settings", "PipelineConfig", "PipelineSettings"]
