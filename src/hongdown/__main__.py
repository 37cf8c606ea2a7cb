"""Allow running as ``python -m hongdown``."""

from hongdown.cli import app

if __name__ == "__main__":
    app()
