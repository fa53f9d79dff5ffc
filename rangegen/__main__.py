"""Entry point for ``python -m rangegen``."""

from rangegen.cli import main

if __name__ == "__main__":
    main()
