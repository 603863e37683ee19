"""Allow ``python -m fleetsync``."""

from fleetsync.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
