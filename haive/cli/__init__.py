"""
Click CLI framework for haive.
"""

from __future__ import annotations

import sys

import click

from haive.cli.helpers import verbose_callback
from haive.cli_commands import register_all_commands
from haive.config.settings import VERSION
from haive.utils.logging import log_error


def _build_cli() -> click.Group:
    cli = click.Group(
        name="haive",
        help="""haive: per-branch development environments

Pair git worktrees and branches with their own database, cloned from the
project's default one, and point each checkout's env file at it.

Examples:
    haive isolate create feature/auth
    haive checkout feature/auth --create
    haive db clone app app_feature_auth
    haive db dump
    haive serve
""",
    )
    cli = click.version_option(version=VERSION, prog_name="haive")(cli)
    cli = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose output (show INFO messages)",
        callback=verbose_callback,
        expose_value=False,
        is_eager=True,
    )(cli)

    register_all_commands(cli)
    return cli


cli = _build_cli()


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        log_error("Operation cancelled by user")
        sys.exit(1)
    except Exception as exc:
        log_error(f"Unexpected error: {exc}")
        sys.exit(1)


__all__ = ["cli", "main"]
