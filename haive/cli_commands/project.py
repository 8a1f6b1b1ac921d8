"""
Project inspection and per-worktree stack commands.
"""

from __future__ import annotations

import click

from haive import api
from haive.cli.helpers import add_json_option, add_verbose_option, command_wrapper
from haive.utils.logging import console, is_quiet, log_success, log_warning, print_plain


def register_commands(cli) -> None:
    """Register info, init, serve and stop commands."""

    @cli.command()
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def info(json: bool):
        """Show the resolved configuration and project files."""
        result = api.info()
        if not json:
            print_plain(f"Project root: {result.project_root}")
            print_plain(f"Config: {result.config_path or 'none'}")
            if result.config_error:
                log_warning(result.config_error)
            if result.config:
                database = result.config.get("database") or {}
                worktree = result.config.get("worktree") or {}
                if database:
                    print_plain(f"Database service: {database.get('service')}")
                if worktree:
                    print_plain(f"Worktrees: {worktree.get('base_path')}")
            print_plain(f"Env files: {', '.join(result.env_files) or 'none'}")
            print_plain(f"Compose file: {result.compose_file or 'none'}")
        return result

    @cli.command()
    @click.option("--write", is_flag=True, default=False, help="Write the suggestion to haive.yaml")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def init(write: bool, json: bool):
        """Inspect the project and suggest a configuration."""
        result = api.init(write=write)
        if not json and not write and not is_quiet():
            console.print(result.suggested_config, markup=False, highlight=False)
        return result

    @cli.command()
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def serve(json: bool):
        """Start the current worktree's compose stack."""
        result = api.serve()
        log_success(f"{result.project_name} running at {result.url}")
        return result

    @cli.command()
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def stop(json: bool):
        """Stop the current worktree's compose stack."""
        result = api.stop()
        log_success(f"{result.project_name} stopped")
        return result
