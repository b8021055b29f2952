"""
Module entry-point that makes the package runnable with

    python -m dwicomatic
    python -m dwicomatic.cli

The behaviour is identical to the *dwicomatic-cli* console script because the
Click command imported below performs all argument handling.
"""

from dwicomatic.cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
