"""
MySQL and MariaDB command builders.
"""

from typing import List, Optional, Sequence

from ..dsn import ParsedDSN
from .base import DatabaseEngine

LIST_HEADER = "Database"


class MySQLEngine(DatabaseEngine):
    """MySQL-family engine; MariaDB uses its own branded client binaries."""

    def __init__(self, is_mariadb: bool = False):
        self.is_mariadb = is_mariadb

    @property
    def name(self) -> str:
        return "MariaDB" if self.is_mariadb else "MySQL"

    @property
    def client_binary(self) -> str:
        return "mariadb" if self.is_mariadb else "mysql"

    @property
    def dump_binary(self) -> str:
        return "mariadb-dump" if self.is_mariadb else "mysqldump"

    def _connection_args(self, dsn: ParsedDSN) -> List[str]:
        return ["-h", dsn.host, "-u", dsn.user, f"-p{dsn.password}"]

    def build_dump_command(self, dsn: ParsedDSN, tables: Optional[Sequence[str]] = None) -> List[str]:
        cmd = [self.dump_binary] + self._connection_args(dsn) + [dsn.database]
        if tables:
            cmd.extend(tables)
        return cmd

    def build_create_command(self, dsn: ParsedDSN, db_name: str) -> List[str]:
        return [self.client_binary] + self._connection_args(dsn) + ["-e", f"CREATE DATABASE `{db_name}`"]

    def build_import_command(self, dsn: ParsedDSN, db_name: str) -> List[str]:
        return [self.client_binary] + self._connection_args(dsn) + [db_name]

    def build_drop_command(self, dsn: ParsedDSN, db_name: str) -> List[str]:
        return [self.client_binary] + self._connection_args(dsn) + ["-e", f"DROP DATABASE `{db_name}`"]

    def build_list_command(self, dsn: ParsedDSN) -> List[str]:
        return [self.client_binary] + self._connection_args(dsn) + ["-e", "SHOW DATABASES"]

    def parse_list_output(self, output: str) -> List[str]:
        names = super().parse_list_output(output)
        # `mysql -e` prints a column header when stdout is not a tty
        return [name for name in names if name != LIST_HEADER]
