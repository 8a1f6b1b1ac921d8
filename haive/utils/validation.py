"""
Validation utilities for haive.

Pure predicates guarding every mutating operation. The ``check_*`` variants
raise ``CommandError`` with a stable error code so workflows can fail before
any external process is started.
"""

import fnmatch
import os
import re
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from ..config.settings import BRANCH_NAME_PATTERN, DATABASE_NAME_PATTERN
from ..exceptions import CommandError, ErrorCode


def validate_branch_name(branch_name: str) -> bool:
    """Validate branch name format."""
    if not branch_name:
        return False
    return re.fullmatch(BRANCH_NAME_PATTERN, branch_name) is not None


def check_branch_name(branch_name: str) -> None:
    """Raise INVALID_NAME unless ``branch_name`` is a valid branch name."""
    if not validate_branch_name(branch_name):
        raise CommandError(
            f"Invalid branch name '{branch_name}': only letters, digits, '_', '-' and '/' are allowed",
            error_code=ErrorCode.INVALID_NAME,
            details={"branch": branch_name},
        )


def is_path_within(path: Union[str, Path], base: Union[str, Path]) -> bool:
    """Check that ``path`` is ``base`` or one of its descendants.

    Both paths are made absolute and normalized first; symlinks are not
    resolved.
    """
    abs_path = os.path.abspath(path)
    abs_base = os.path.abspath(base)
    try:
        relative = os.path.relpath(abs_path, abs_base)
    except ValueError:
        # Different drives on Windows
        return False
    return ".." not in Path(relative).parts


def check_path_traversal(path: Union[str, Path], base: Union[str, Path]) -> None:
    """Raise PATH_TRAVERSAL if ``path`` escapes ``base``."""
    if not is_path_within(path, base):
        raise CommandError(
            f"Path '{path}' escapes base directory '{base}'",
            error_code=ErrorCode.PATH_TRAVERSAL,
            details={"path": str(path), "base": str(base)},
        )


def sanitize_worktree_name(branch_name: str) -> Tuple[str, str]:
    """Derive directory-safe and database-safe names from a branch.

    Returns:
        Tuple of (directory name, database name), e.g. ``feature/new-auth``
        becomes ``("feature-new-auth", "feature_new_auth")``.
    """
    dir_name = branch_name.replace("/", "-")
    db_name = branch_name.replace("/", "_").replace("-", "_")
    return dir_name, db_name


def validate_database_name(db_name: str) -> bool:
    """Letters, digits, '_' and '-' only."""
    return bool(db_name) and re.fullmatch(DATABASE_NAME_PATTERN, db_name) is not None


def check_database_name(db_name: str) -> None:
    """Raise INVALID_NAME unless ``db_name`` is safe to quote as an identifier."""
    if not validate_database_name(db_name):
        raise CommandError(
            f"Invalid database name '{db_name}': only letters, digits, '_' and '-' are allowed",
            error_code=ErrorCode.INVALID_NAME,
            details={"database": db_name},
        )


def match_allowed_pattern(db_name: str, allowed: Iterable[str]) -> Optional[str]:
    """Return the first allow-list pattern matching ``db_name``."""
    for pattern in allowed:
        if fnmatch.fnmatchcase(db_name, pattern):
            return pattern
    return None


def is_database_allowed(db_name: str, allowed: Iterable[str]) -> bool:
    """Check a database name against glob patterns (case-sensitive)."""
    return match_allowed_pattern(db_name, allowed) is not None


def check_database_allowed(db_name: str, allowed: Iterable[str]) -> None:
    """Raise DB_NOT_ALLOWED unless a pattern matches ``db_name``."""
    allowed = list(allowed)
    if not is_database_allowed(db_name, allowed):
        raise CommandError(
            f"Database '{db_name}' is not in the allowed list {allowed}",
            error_code=ErrorCode.DB_NOT_ALLOWED,
            details={"database": db_name, "allowed": allowed},
        )


def is_not_default_db(db_name: str, default_db: str) -> None:
    """Raise DB_IS_DEFAULT when ``db_name`` is the configured default database."""
    if db_name == default_db:
        raise CommandError(
            f"Refusing to operate on default database '{db_name}'",
            error_code=ErrorCode.DB_IS_DEFAULT,
            details={"database": db_name},
        )
