"""
Environment file utilities for haive.

This module loads ``KEY=VALUE`` files, resolves ``${VAR}`` placeholders and
rewrites a single variable inside an env file.
"""

import os
import re
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from ..config.settings import ENV_FILES
from ..exceptions import CommandError, ErrorCode
from .logging import log_info, log_warning

PLACEHOLDER_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def load_env_file(env_path: Path) -> Dict[str, str]:
    """Load and parse an env file.

    Parses a file with the following rules:
    - Lines starting with # are comments (ignored)
    - Empty lines are ignored
    - Lines with format KEY=VALUE are parsed, an ``export`` prefix is allowed
    - Whitespace around keys and values is stripped, matching quotes removed
    - Lines without = are ignored

    Args:
        env_path: Path to env file

    Returns:
        Dictionary of key-value pairs, or empty dict if the file doesn't
        exist or can't be read
    """
    env_vars: Dict[str, str] = {}

    if not env_path.exists():
        return env_vars

    try:
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                if key.startswith("export "):
                    key = key[len("export "):].strip()
                if key:
                    env_vars[key] = _unquote(value.strip())
    except (IOError, OSError) as e:
        log_warning(f"Failed to read env file at {env_path}: {e}")
        return {}

    return env_vars


def build_lookup(project_root: Path, env_files: Iterable[str] = ENV_FILES,
                 environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Merge variables so that the process environment wins over env files.

    ``env_files`` are listed highest priority first.
    """
    lookup: Dict[str, str] = {}
    for name in reversed(list(env_files)):
        lookup.update(load_env_file(project_root / name))
    lookup.update(os.environ if environ is None else environ)
    return lookup


def resolve_env_placeholders(value: str, project_root: Path,
                             environ: Optional[Mapping[str, str]] = None) -> str:
    """Replace ``${VAR}`` references in ``value``.

    Sources are the process environment, then ``.env.local``, then ``.env``
    in ``project_root``. A reference with no value anywhere is left verbatim.
    """
    if "${" not in value:
        return value

    lookup = build_lookup(project_root, environ=environ)

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name in lookup:
            return lookup[name]
        log_info(f"Environment variable {name} is not set, leaving placeholder")
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, value)


def patch_env_file(env_path: Path, var_name: str, value: str, create: bool = False) -> bool:
    """Set ``var_name=value`` in an env file.

    The first line assigning ``var_name`` is rewritten; if there is none the
    assignment is appended. Other lines are preserved as-is.

    Args:
        create: Write a new file holding only the assignment when
            ``env_path`` is missing

    Returns:
        True if an existing line was replaced, False if it was appended

    Raises:
        CommandError: FILE_NOT_FOUND if ``env_path`` does not exist and
            ``create`` is False
    """
    if not env_path.exists():
        if create:
            env_path.write_text(f"{var_name}={value}\n", encoding="utf-8")
            log_info(f"Created {env_path} with {var_name}")
            return False
        raise CommandError(
            f"Env file not found: {env_path}",
            error_code=ErrorCode.FILE_NOT_FOUND,
            details={"path": str(env_path)},
        )

    lines = env_path.read_text(encoding="utf-8").split("\n")
    assignment = f"{var_name}={value}"
    replaced = False
    for index, line in enumerate(lines):
        if line.startswith(f"{var_name}="):
            lines[index] = assignment
            replaced = True
            break

    if not replaced:
        if lines and lines[-1] == "":
            lines.insert(len(lines) - 1, assignment)
        else:
            lines.append(assignment)

    env_path.write_text("\n".join(lines), encoding="utf-8")
    log_info(f"{'Updated' if replaced else 'Added'} {var_name} in {env_path}")
    return replaced


def list_env_var_names(env_path: Path) -> list:
    """Return variable names defined in an env file, in file order."""
    return list(load_env_file(env_path).keys())
