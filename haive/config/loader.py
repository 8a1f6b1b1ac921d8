"""
Configuration discovery and parsing.

``load_config`` walks from the start directory up to the filesystem root and,
at every level, tries each entry of ``CONFIG_CANDIDATES`` in priority order.
The first document that parses and contains recognizable sections wins. It
keeps no state between calls.
"""

import json
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..core.dsn import parse_dsn
from ..exceptions import CommandError, ErrorCode
from ..utils.env_loader import resolve_env_placeholders
from ..utils.logging import log_info
from .models import (
    CopyConfig,
    DatabaseConfig,
    DatabaseHooks,
    DockerConfig,
    EnvConfig,
    HaiveConfig,
    ProjectConfig,
    ServeConfig,
    WorktreeConfig,
    WorktreeHooks,
)
from .settings import (
    CONFIG_CANDIDATES,
    DEFAULT_DUMPS_PATH,
    DEFAULT_ENV_FILE,
    DEFAULT_ENV_VAR_NAME,
    ConfigCandidate,
)

SECTION_KEYS = ("project", "docker", "database", "worktree", "worktrees", "serve")


class ConfigParseError(Exception):
    """A candidate file exists but could not be parsed."""


def _invalid(message: str, config_path: Optional[Path] = None) -> CommandError:
    details = {"config_path": str(config_path)} if config_path else None
    return CommandError(message, error_code=ErrorCode.CONFIG_INVALID, details=details)


def has_content(data: Any) -> bool:
    """Check that a parsed document carries at least one haive section."""
    return isinstance(data, dict) and any(data.get(key) for key in SECTION_KEYS)


def parse_document(path: Path, candidate: ConfigCandidate) -> Dict[str, Any]:
    """Parse one candidate file into a plain dict.

    Namespaced candidates are first read as ``{"<namespace>": {...}}`` and
    fall back to the direct document when the wrapper is absent or empty.

    Raises:
        ConfigParseError: if the file can't be read or parsed
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigParseError(f"failed to read {path}: {e}") from e

    try:
        if candidate.format == "toml":
            data = tomllib.loads(text)
        elif candidate.format == "yaml":
            data = yaml.safe_load(text)
        elif candidate.format == "json":
            data = json.loads(text)
        else:
            raise ConfigParseError(f"unknown config format '{candidate.format}'")
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigParseError(f"invalid {candidate.format.upper()} in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigParseError(f"{path} must contain a mapping at the top level")

    if candidate.namespace:
        wrapped = data.get(candidate.namespace)
        if has_content(wrapped):
            return wrapped
    return data


def _section(data: Dict[str, Any], key: str, config_path: Path) -> Optional[Dict[str, Any]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise _invalid(f"'{key}' must be a table/mapping", config_path)
    return value


def _string(section: Dict[str, Any], key: str, name: str, config_path: Path, default: str = "") -> str:
    value = section.get(key, default)
    if value is None:
        return default
    if not isinstance(value, str):
        raise _invalid(f"{name}.{key} must be a string", config_path)
    return value


def _string_list(section: Optional[Dict[str, Any]], keys: Union[str, tuple], name: str,
                 config_path: Path) -> tuple:
    if not section:
        return ()
    if isinstance(keys, str):
        keys = (keys,)
    for key in keys:
        if key in section and section[key] is not None:
            value = section[key]
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise _invalid(f"{name}.{key} must be a list of strings", config_path)
            return tuple(value)
    return ()


def _build_database(section: Dict[str, Any], project_root: Path, config_path: Path) -> DatabaseConfig:
    service = _string(section, "service", "database", config_path)
    dsn = _string(section, "dsn", "database", config_path)
    allowed = _string_list(section, "allowed", "database", config_path)

    if not service:
        raise _invalid("database.service is required", config_path)
    if not dsn:
        raise _invalid("database.dsn is required", config_path)
    if not allowed:
        raise _invalid('database.allowed is required (e.g. ["myapp", "myapp_*"])', config_path)

    hooks = _section(section, "hooks", config_path) or {}
    return DatabaseConfig(
        service=service,
        dsn=resolve_env_placeholders(dsn, project_root),
        allowed=allowed,
        dumps_path=_string(section, "dumps_path", "database", config_path) or DEFAULT_DUMPS_PATH,
        hooks=DatabaseHooks(
            pre_drop=_string_list(hooks, ("preDrop", "pre_drop"), "database.hooks", config_path),
            post_clone=_string_list(hooks, ("postClone", "post_clone"), "database.hooks", config_path),
        ),
    )


def _default_db_prefix(database: Optional[DatabaseConfig]) -> str:
    if database is None:
        return ""
    try:
        parsed = parse_dsn(database.dsn)
    except CommandError:
        return ""
    return f"{parsed.database}_wt_" if parsed.database else ""


def _build_worktree(section: Dict[str, Any], database: Optional[DatabaseConfig],
                    config_path: Path) -> WorktreeConfig:
    base_path = _string(section, "base_path", "worktree", config_path)
    if not base_path:
        raise _invalid("worktree.base_path is required", config_path)

    db_per_worktree = section.get("db_per_worktree", False)
    if not isinstance(db_per_worktree, bool):
        raise _invalid("worktree.db_per_worktree must be a boolean", config_path)

    copy_section = _section(section, "copy", config_path)
    copy = None
    if copy_section is not None:
        copy = CopyConfig(
            include=_string_list(copy_section, "include", "worktree.copy", config_path),
            exclude=_string_list(copy_section, "exclude", "worktree.copy", config_path),
        )

    hooks = _section(section, "hooks", config_path) or {}

    env_section = _section(section, "env", config_path)
    env = None
    if env_section is not None:
        if database is None:
            raise _invalid("worktree.env requires a database section", config_path)
        env = EnvConfig(
            file=_string(env_section, "file", "worktree.env", config_path) or DEFAULT_ENV_FILE,
            var_name=_string(env_section, "var_name", "worktree.env", config_path) or DEFAULT_ENV_VAR_NAME,
        )

    return WorktreeConfig(
        base_path=base_path,
        db_per_worktree=db_per_worktree,
        db_prefix=_string(section, "db_prefix", "worktree", config_path) or _default_db_prefix(database),
        copy=copy,
        hooks=WorktreeHooks(
            post_create=_string_list(hooks, ("postCreate", "post_create"), "worktree.hooks", config_path),
            pre_remove=_string_list(hooks, ("preRemove", "pre_remove"), "worktree.hooks", config_path),
            post_remove=_string_list(hooks, ("postRemove", "post_remove"), "worktree.hooks", config_path),
        ),
        env=env,
    )


def build_config(data: Dict[str, Any], project_root: Path, config_path: Path) -> HaiveConfig:
    """Validate a parsed document and build the typed configuration.

    Raises:
        CommandError: CONFIG_INVALID when a section breaks an invariant
    """
    project = _section(data, "project", config_path) or {}
    docker = _section(data, "docker", config_path) or {}

    database_section = _section(data, "database", config_path)
    database = None
    if database_section is not None:
        database = _build_database(database_section, project_root, config_path)

    # `worktrees` is the legacy spelling of the section
    worktree_section = _section(data, "worktree", config_path)
    if worktree_section is None:
        worktree_section = _section(data, "worktrees", config_path)
    worktree = None
    if worktree_section is not None:
        worktree = _build_worktree(worktree_section, database, config_path)

    serve_section = _section(data, "serve", config_path)
    serve = None
    if serve_section is not None:
        serve = ServeConfig(compose_files=_string_list(serve_section, "compose_files", "serve", config_path))

    return HaiveConfig(
        project_root=project_root,
        config_path=config_path,
        project=ProjectConfig(
            name=_string(project, "name", "project", config_path),
            type=_string(project, "type", "project", config_path),
        ),
        docker=DockerConfig(
            compose_files=_string_list(docker, "compose_files", "docker", config_path),
            project_name=_string(docker, "project_name", "docker", config_path) or None,
        ),
        database=database,
        worktree=worktree,
        serve=serve,
    )


def load_config(start_dir: Optional[Union[str, Path]] = None) -> HaiveConfig:
    """Find and load the configuration for ``start_dir``.

    Args:
        start_dir: Directory to start searching from (defaults to cwd)

    Returns:
        The validated configuration of the nearest config file

    Raises:
        CommandError: CONFIG_MISSING if no candidate file exists anywhere,
            CONFIG_INVALID if files exist but none parses with content, or
            if the winning file breaks a section invariant
    """
    search_dir = Path(os.path.abspath(start_dir or os.getcwd()))
    found_files: List[Path] = []
    last_error: Optional[ConfigParseError] = None

    for directory in (search_dir, *search_dir.parents):
        for candidate in CONFIG_CANDIDATES:
            path = directory / candidate.relative_path
            if not path.is_file():
                continue
            found_files.append(path)

            try:
                data = parse_document(path, candidate)
            except ConfigParseError as e:
                log_info(f"Skipping config file {path}: {e}")
                last_error = e
                continue

            if not has_content(data):
                log_info(f"Skipping config file {path}: no haive sections")
                continue

            log_info(f"Using config file {path}")
            return build_config(data, directory, path)

    if found_files and last_error is not None:
        raise CommandError(
            f"No valid config found: {last_error}",
            error_code=ErrorCode.CONFIG_INVALID,
            details={"files": [str(p) for p in found_files]},
        )

    raise CommandError(
        f"Config file not found in {search_dir} or parent directories "
        f"(tried {', '.join(c.relative_path for c in CONFIG_CANDIDATES)})",
        error_code=ErrorCode.CONFIG_MISSING,
    )
