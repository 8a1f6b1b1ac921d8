"""
Database engine implementations for haive.

Engines are selected by the engine family inferred from the DSN. Supporting
another database means registering one more ``DatabaseEngine``.
"""

from typing import Callable, Dict

from ...exceptions import CommandError, ErrorCode
from .base import DatabaseEngine
from .mysql import MySQLEngine

_engines: Dict[str, Callable[[], DatabaseEngine]] = {}


def register_engine(name: str, factory: Callable[[], DatabaseEngine]) -> None:
    """Register an engine factory under an engine family name."""
    _engines[name.lower()] = factory


def get_available_engines() -> list:
    return list(_engines.keys())


def get_engine(engine_name: str) -> DatabaseEngine:
    """Create the engine for a DSN's inferred engine family.

    Raises:
        CommandError: CONFIG_INVALID for an engine nobody registered
    """
    factory = _engines.get((engine_name or "").lower())
    if factory is None:
        raise CommandError(
            f"Unsupported database engine '{engine_name}' "
            f"(available: {', '.join(get_available_engines())})",
            error_code=ErrorCode.CONFIG_INVALID,
        )
    return factory()


register_engine("mysql", lambda: MySQLEngine(is_mariadb=False))
register_engine("mariadb", lambda: MySQLEngine(is_mariadb=True))

__all__ = ["DatabaseEngine", "MySQLEngine", "get_engine", "register_engine", "get_available_engines"]
