"""
Database operations executed inside the compose database service.

Engine command vectors are wrapped in ``docker compose ... exec -T <service>``
and run from the project root. Every call blocks until the client exits and
nothing is retried.
"""

import subprocess
import time
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..config.settings import COMPOSE_COMMAND, SYSTEM_DATABASES
from ..exceptions import CommandError, ErrorCode, ExecutionError
from ..utils.logging import log_info, log_success
from .dsn import ParsedDSN
from .engines import DatabaseEngine
from .results import DatabaseInfo, DumpResult, ImportResult


def redact_command(cmd: Sequence[str]) -> List[str]:
    """Hide inline ``-p<password>`` arguments for logging."""
    return ["-p****" if arg.startswith("-p") and len(arg) > 2 else arg for arg in cmd]


def _decode(output: Optional[bytes]) -> str:
    if not output:
        return ""
    return output.decode("utf-8", errors="replace")


class DatabaseManager:
    """Runs database client commands through the compose service."""

    def __init__(self, engine: DatabaseEngine, service: str, compose_files: Sequence[str],
                 project_root: Union[str, Path], project_name: Optional[str] = None):
        """Initialize database manager.

        Args:
            engine: Command builder for the database family
            service: Compose service running the database client
            compose_files: Compose files passed with ``-f``, relative to project_root
            project_root: Working directory for compose invocations
            project_name: Optional compose project name override
        """
        self.engine = engine
        self.service = service
        self.compose_files = list(compose_files)
        self.project_root = Path(project_root)
        self.project_name = project_name

    def _build_exec_command(self, engine_cmd: Sequence[str]) -> List[str]:
        cmd = list(COMPOSE_COMMAND)
        if self.project_name:
            cmd.extend(["-p", self.project_name])
        for compose_file in self.compose_files:
            cmd.extend(["-f", compose_file])
        cmd.extend(["exec", "-T", self.service])
        cmd.extend(engine_cmd)
        return cmd

    def _run(self, engine_cmd: Sequence[str], context: str, stdin=None) -> str:
        """Run a client command capturing combined output."""
        cmd = self._build_exec_command(engine_cmd)
        log_info(f"Running: {' '.join(redact_command(cmd))}")
        result = subprocess.run(
            cmd,
            stdin=stdin,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=self.project_root,
        )
        output = _decode(result.stdout)
        if result.returncode != 0:
            raise ExecutionError.from_process(context, redact_command(cmd), output)
        return output

    def dump(self, dsn: ParsedDSN, dest_path: Path, tables: Optional[Sequence[str]] = None) -> DumpResult:
        """Dump ``dsn.database`` into ``dest_path``.

        Only stdout is written to the file; client warnings on stderr are kept
        for the error message.
        """
        cmd = self._build_exec_command(self.engine.build_dump_command(dsn, tables))
        log_info(f"Running: {' '.join(redact_command(cmd))}")

        started = time.monotonic()
        result = subprocess.run(cmd, capture_output=True, cwd=self.project_root)
        if result.returncode != 0:
            raise ExecutionError.from_process(
                f"Dump of database '{dsn.database}' failed", redact_command(cmd), _decode(result.stderr)
            )

        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        dest_path.write_bytes(result.stdout)
        duration = time.monotonic() - started

        log_success(f"Dumped {dsn.database} to {dest_path}")
        return DumpResult(
            database=dsn.database,
            path=str(dest_path),
            size=len(result.stdout),
            duration=duration,
        )

    def create_database(self, dsn: ParsedDSN, db_name: str) -> None:
        self._run(self.engine.build_create_command(dsn, db_name), f"Failed to create database '{db_name}'")
        log_success(f"Database {db_name} created")

    def drop_database(self, dsn: ParsedDSN, db_name: str) -> None:
        self._run(self.engine.build_drop_command(dsn, db_name), f"Failed to drop database '{db_name}'")
        log_success(f"Database {db_name} dropped")

    def import_database(self, dsn: ParsedDSN, db_name: str, source_path: Path) -> ImportResult:
        """Stream an SQL file into ``db_name``.

        Raises:
            CommandError: FILE_NOT_FOUND if ``source_path`` does not exist
            ExecutionError: if the client exits non-zero
        """
        source_path = Path(source_path)
        if not source_path.is_file():
            raise CommandError(
                f"SQL file not found: {source_path}",
                error_code=ErrorCode.FILE_NOT_FOUND,
                details={"path": str(source_path)},
            )

        started = time.monotonic()
        with open(source_path, "rb") as sql_file:
            self._run(
                self.engine.build_import_command(dsn, db_name),
                f"Failed to import {source_path.name} into '{db_name}'",
                stdin=sql_file,
            )
        duration = time.monotonic() - started

        log_success(f"Imported {source_path.name} into {db_name}")
        return ImportResult(database=db_name, path=str(source_path), duration=duration)

    def list_databases(self, dsn: ParsedDSN) -> List[DatabaseInfo]:
        """List user databases, flagging the DSN's default database."""
        cmd = self._build_exec_command(self.engine.build_list_command(dsn))
        log_info(f"Running: {' '.join(redact_command(cmd))}")
        result = subprocess.run(cmd, capture_output=True, cwd=self.project_root)
        if result.returncode != 0:
            raise ExecutionError.from_process("Failed to list databases", redact_command(cmd), _decode(result.stderr))

        return [
            DatabaseInfo(name=name, is_default=name == dsn.database)
            for name in self.engine.parse_list_output(_decode(result.stdout))
            if name not in SYSTEM_DATABASES
        ]

    def database_exists(self, dsn: ParsedDSN, db_name: str) -> bool:
        return any(db.name == db_name for db in self.list_databases(dsn))
