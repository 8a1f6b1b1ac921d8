"""
Database haive CLI commands.
"""

from __future__ import annotations

from typing import Optional, Tuple

import click
from rich.table import Table

from haive import api
from haive.cli.helpers import add_json_option, add_verbose_option, command_wrapper
from haive.utils.logging import console, is_quiet, log_success, print_plain, show_progress


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def register_commands(cli) -> None:
    """Register database commands."""

    @cli.group()
    def db():
        """Dump, clone and manage project databases."""

    @db.command()
    @click.argument("db_name", required=False)
    @click.option("--table", "-t", "tables", multiple=True, help="Only dump this table (repeatable)")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def dump(db_name: Optional[str], tables: Tuple[str, ...], json: bool):
        """Dump DB_NAME (default: the configured database) to the dumps directory."""
        with show_progress(f"Dumping {db_name or 'default database'}..."):
            result = api.dump(db_name, list(tables) or None)
        log_success(f"Dumped {result.database} to {result.path} "
                    f"({_format_size(result.size)}, {result.duration:.1f}s)")
        return result

    @db.command()
    @click.argument("db_name")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def create(db_name: str, json: bool):
        """Create an empty database."""
        result = api.create_db(db_name)
        log_success(f"Database {result.database} created")
        return result

    @db.command("import")
    @click.argument("db_name")
    @click.argument("sql_file")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def import_(db_name: str, sql_file: str, json: bool):
        """Import SQL_FILE into DB_NAME."""
        result = api.import_db(db_name, sql_file)
        log_success(f"Imported {result.path} into {result.database} ({result.duration:.1f}s)")
        return result

    @db.command()
    @click.argument("db_name")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def drop(db_name: str, json: bool):
        """Drop a database. The configured default database is never dropped."""
        result = api.drop_db(db_name)
        log_success(f"Database {result.database} dropped")
        return result

    @db.command("list")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def list_(json: bool):
        """List databases on the configured server."""
        result = api.list_dbs()
        if not json:
            for database in result.databases:
                marker = " (default)" if database.is_default else ""
                print_plain(f"{database.name}{marker}")
        return result

    @db.command()
    @click.argument("source")
    @click.argument("target")
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def clone(source: str, target: str, json: bool):
        """Clone SOURCE into a new database TARGET."""
        with show_progress(f"Cloning {source} into {target}..."):
            result = api.clone_db(source, target)
        log_success(f"Cloned {result.source} into {result.target} "
                    f"({_format_size(result.size)}, {result.duration:.1f}s)")
        return result

    @db.command()
    @add_json_option
    @add_verbose_option
    @command_wrapper()
    def dumps(json: bool):
        """List dump files, newest first."""
        result = api.list_dumps()
        if not json and not is_quiet():
            if not result.dumps:
                print_plain(f"No dumps in {result.path}")
                return result
            table = Table(show_header=True, header_style="bold")
            table.add_column("File")
            table.add_column("Database")
            table.add_column("Size", justify="right")
            table.add_column("Modified")
            for dump_file in result.dumps:
                table.add_row(dump_file.name, dump_file.database, _format_size(dump_file.size),
                              dump_file.modified.strftime("%Y-%m-%d %H:%M"))
            console.print(table)
        return result
