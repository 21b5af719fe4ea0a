"""Entry point for ``python -m novelcraft``."""

from novelcraft.cli import cli

if __name__ == "__main__":
    cli()
