"""
Branch and worktree workflows pairing checkouts with databases.
"""

from __future__ import annotations

from typing import Optional

import click

from haive import api
from haive.cli.helpers import add_json_option, add_verbose_option, command_wrapper
from haive.core.results import CheckoutResult
from haive.utils.logging import log_info, log_success


def _report_checkout(result: CheckoutResult) -> None:
    if result.cloned:
        log_info(f"Database {result.database} cloned")
    elif result.created:
        log_info(f"Database {result.database} created")
    log_success(f"On branch {result.branch} with database {result.database}")


def register_commands(cli) -> None:
    """Register checkout, switch and isolated worktree commands."""

    @cli.command()
    @click.argument("branch_name")
    @click.option("--create", "-b", is_flag=True, default=False, help="Create the branch")
    @click.option("--clone-from", help="Database to clone from (main/master mean the default one)")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def checkout(branch_name: str, create: bool, clone_from: Optional[str], json: bool):
        """Check out BRANCH_NAME and point the env file at its database."""
        result = api.checkout(branch_name, create=create, clone_from=clone_from)
        _report_checkout(result)
        return result

    @cli.command()
    @click.option("--clone-from", help="Database to clone from (main/master mean the default one)")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def switch(clone_from: Optional[str], json: bool):
        """Pair the current branch with its database."""
        result = api.switch(clone_from=clone_from)
        _report_checkout(result)
        return result

    @cli.group()
    def isolate():
        """Worktrees with their own database."""

    @isolate.command()
    @click.argument("branch_name")
    @click.option("--new-branch/--existing-branch", default=None,
                  help="Force creating a new branch or checking out an existing one")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def create(branch_name: str, new_branch, json: bool):
        """Create a worktree for BRANCH_NAME and clone its database."""
        result = api.create_isolated_worktree(branch_name, new_branch=new_branch)
        if not result.error:
            suffix = f" with database {result.database}" if result.database else ""
            log_success(f"Worktree created at {result.path}{suffix}")
        return result

    @isolate.command()
    @click.argument("branch_name")
    @click.option("--drop-db", is_flag=True, default=False, help="Also drop the worktree database")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def remove(branch_name: str, drop_db: bool, json: bool):
        """Remove the worktree of BRANCH_NAME and optionally its database."""
        result = api.remove_isolated_worktree(branch_name, drop_db=drop_db)
        if not result.error:
            suffix = f" and dropped {result.database}" if result.dropped else ""
            log_success(f"Removed worktree {result.path}{suffix}")
        return result
