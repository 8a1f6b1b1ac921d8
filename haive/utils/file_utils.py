"""
File utilities for haive.

Helpers for .gitignore maintenance, compose file discovery and copying
untracked files (env files, local config) into new worktrees.
"""

import fnmatch
import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from ..config.settings import COMPOSE_FILE_NAMES, GITIGNORE_HEADER
from .logging import log_info, log_success, log_warning


def read_gitignore_file(project_root: Path) -> Optional[List[str]]:
    """Read .gitignore lines, or None when the file does not exist."""
    gitignore_path = project_root / ".gitignore"
    if not gitignore_path.exists():
        return None
    return gitignore_path.read_text(encoding="utf-8").splitlines()


def add_to_gitignore(project_root: Path, entry: str) -> bool:
    """Add a directory entry to .gitignore once.

    Args:
        project_root: Directory holding .gitignore
        entry: Path relative to project_root, e.g. ``.worktrees``

    Returns:
        True if the entry was added, False if it was already present
    """
    entry = entry.replace("\\", "/").strip().rstrip("/")
    lines = read_gitignore_file(project_root) or []

    for line in lines:
        if line.strip() in (entry, f"/{entry}", f"{entry}/", f"/{entry}/"):
            log_info(f"Entry '{entry}' already exists in .gitignore")
            return False

    content = "\n".join(lines)
    if content:
        content += "\n"
    content += f"{GITIGNORE_HEADER}\n{entry}/\n"

    (project_root / ".gitignore").write_text(content, encoding="utf-8")
    log_success(f"Added '{entry}/' to .gitignore")
    return True


def find_compose_files(project_root: Path) -> List[Path]:
    """Find default compose files in the project root."""
    return [project_root / name for name in COMPOSE_FILE_NAMES if (project_root / name).exists()]


def is_excluded(relative_path: str, exclude_patterns: Sequence[str]) -> bool:
    """Check a path against exclude patterns.

    A pattern either matches the whole relative path as a glob, or ends with
    ``/`` and excludes everything below that directory.
    """
    for pattern in exclude_patterns:
        if fnmatch.fnmatchcase(relative_path, pattern):
            return True
        if pattern.endswith("/") and relative_path.startswith(pattern) and len(relative_path) > len(pattern):
            return True
    return False


def collect_copy_candidates(source_dir: Path, include: Sequence[str],
                            exclude: Sequence[str] = ()) -> List[str]:
    """Resolve include globs (``**`` allowed) to relative paths, minus excludes."""
    matches = set()
    for pattern in include:
        try:
            found = list(source_dir.glob(pattern))
        except ValueError as e:
            log_warning(f"Invalid copy pattern '{pattern}': {e}")
            continue
        for path in found:
            relative = path.relative_to(source_dir).as_posix()
            if not is_excluded(relative, exclude):
                matches.add(relative)
    return sorted(matches)


def copy_worktree_files(source_dir: Path, dest_dir: Path, include: Sequence[str],
                        exclude: Sequence[str] = ()) -> List[str]:
    """Copy matching files from the main checkout into a worktree.

    Failures are logged per file and never raised. File permissions are
    preserved.

    Returns:
        Relative paths that were copied
    """
    copied: List[str] = []
    for relative in collect_copy_candidates(source_dir, include, exclude):
        source_path = source_dir / relative
        dest_path = dest_dir / relative
        try:
            if source_path.is_dir():
                dest_path.mkdir(parents=True, exist_ok=True)
                continue
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source_path, dest_path)
            copied.append(relative)
        except OSError as e:
            log_warning(f"Failed to copy {relative}: {e}")
            continue

    if copied:
        log_info(f"Copied {len(copied)} file(s) into {dest_dir}")
    return copied
