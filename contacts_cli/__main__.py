"""
Entry point for running contacts_cli as a module.

Usage:
    python -m contacts_cli --help
    python -m contacts_cli contacts export --account me@example.com
"""

from contacts_cli.cli import cli

if __name__ == "__main__":
    cli()
