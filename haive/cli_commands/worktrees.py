"""
Worktree lifecycle haive CLI commands.
"""

from __future__ import annotations

import click
from rich.table import Table

from haive import api
from haive.cli.helpers import add_json_option, add_verbose_option, command_wrapper
from haive.utils.logging import console, is_quiet, log_success


def register_commands(cli) -> None:
    """Register worktree management commands."""

    @cli.group()
    def worktree():
        """Manage git worktrees."""

    @worktree.command("list")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def list_(json: bool):
        """List git worktrees of the repository."""
        worktrees = api.list_worktrees()
        if not json and not is_quiet():
            table = Table(show_header=True, header_style="bold")
            table.add_column("Branch")
            table.add_column("Path")
            table.add_column("Head")
            for info in worktrees:
                branch = f"{info.branch} (main)" if info.is_main else info.branch
                table.add_row(branch, info.path, info.head[:8])
            console.print(table)
        return worktrees

    @worktree.command()
    @click.argument("branch_name")
    @click.option("--new-branch/--existing-branch", default=None,
                  help="Force creating a new branch or checking out an existing one")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def create(branch_name: str, new_branch, json: bool):
        """Create a worktree for BRANCH_NAME."""
        result = api.create_worktree(branch_name, new_branch=new_branch)
        log_success(f"Worktree created at {result.path}")
        return result

    @worktree.command()
    @click.argument("branch_name")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def remove(branch_name: str, json: bool):
        """Remove the worktree of BRANCH_NAME."""
        result = api.remove_worktree(branch_name)
        log_success(f"Worktree removed: {result.path}")
        return result
