"""
dwicomatic package initialisation.

The module performs two small tasks:

1. **Expose the version string**
   ``dwicomatic.__version__`` is resolved at import-time from the installed
   distribution metadata.

2. **Re-export the public settings loader**
   :func:`dwicomatic.config.load_settings` is available at the top level::

       from dwicomatic import load_settings
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("dwicomatic")
except PackageNotFoundError:
    # Source tree without an installed wheel.
    __version__ = "0.0.0"

from .config import load_settings  # noqa: E402 – deliberate late import

__all__: list[str] = ["load_settings", "__version__"]
