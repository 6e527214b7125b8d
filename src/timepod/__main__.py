"""Allow ``python -m timepod``."""

from timepod.cli.main import cli

if __name__ == "__main__":
    cli()
