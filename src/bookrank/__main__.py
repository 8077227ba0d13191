"""Allow running the CLI with ``python -m bookrank``."""

from .cli import main

if __name__ == "__main__":
    main()
