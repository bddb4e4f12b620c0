"""Allow running the tool with ``python -m accessiguard``."""

from accessiguard.cli import cli

if __name__ == "__main__":
    cli(prog_name="accessiguard")
