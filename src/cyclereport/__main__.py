"""Allow running as ``python -m cyclereport``."""

from cyclereport.cli import main

if __name__ == "__main__":
    main()
