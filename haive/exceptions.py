"""
Custom exception hierarchy for haive.

Errors are categorized by a stable ``error_code`` so callers can branch on
meaning instead of message text. Orchestration layers raise these and the
CLI layer turns them into output and exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


class ErrorCode:
    """Stable error codes shared by every layer."""

    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"
    INVALID_NAME = "INVALID_NAME"
    PATH_TRAVERSAL = "PATH_TRAVERSAL"
    DB_NOT_ALLOWED = "DB_NOT_ALLOWED"
    DB_IS_DEFAULT = "DB_IS_DEFAULT"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    INVALID_WORKTREE = "INVALID_WORKTREE"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    HOOK_FAILED = "HOOK_FAILED"


@dataclass
class HaiveError(Exception):
    """Base exception carrying structured error metadata."""

    message: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    exit_code: int = 1

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


class CommandError(HaiveError):
    """Raised when validation or configuration rejects an operation."""


class ExecutionError(HaiveError):
    """Raised when an external process (git, docker, db client) fails."""

    @classmethod
    def from_process(cls, message: str, command: list, output: str) -> "ExecutionError":
        output = (output or "").strip()
        full_message = f"{message}: {output}" if output else message
        return cls(
            full_message,
            error_code=ErrorCode.EXECUTION_FAILED,
            details={"command": command, "output": output},
        )


class HookError(HaiveError):
    """Raised when a fail-fast hook aborts an operation."""
