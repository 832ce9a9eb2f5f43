"""Entry point for ``python -m geotopo``."""

from geotopo.cli import main

if __name__ == "__main__":
    main()
