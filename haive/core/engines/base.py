"""
Database engine abstraction.

Engines are pure command builders: given a parsed DSN they return the
argument vector for a client binary. They never run anything.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..dsn import ParsedDSN


class DatabaseEngine(ABC):
    """Abstract base class for database engines."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name of the engine."""

    @abstractmethod
    def build_dump_command(self, dsn: ParsedDSN, tables: Optional[Sequence[str]] = None) -> List[str]:
        """Build the command dumping ``dsn.database`` to stdout.

        Args:
            dsn: Connection data of the database to dump
            tables: Optional subset of tables to dump

        Returns:
            Argument vector for the dump client
        """

    @abstractmethod
    def build_create_command(self, dsn: ParsedDSN, db_name: str) -> List[str]:
        """Build the command creating ``db_name``."""

    @abstractmethod
    def build_import_command(self, dsn: ParsedDSN, db_name: str) -> List[str]:
        """Build the command reading SQL from stdin into ``db_name``."""

    @abstractmethod
    def build_drop_command(self, dsn: ParsedDSN, db_name: str) -> List[str]:
        """Build the command dropping ``db_name``."""

    @abstractmethod
    def build_list_command(self, dsn: ParsedDSN) -> List[str]:
        """Build the command listing databases, one per output line."""

    def parse_list_output(self, output: str) -> List[str]:
        """Split list command output into database names."""
        return [line.strip() for line in output.splitlines() if line.strip()]
