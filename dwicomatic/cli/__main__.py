"""Allow ``python -m dwicomatic.cli``."""

from dwicomatic.cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
