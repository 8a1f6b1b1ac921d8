"""
Project-level operations for haive: info, init, serve and stop.

``init`` only inspects the project to pre-fill a suggested config; ``serve``
and ``stop`` start or stop a worktree's own compose project.
"""

import json
import re
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from ..config.loader import load_config
from ..config.models import HaiveConfig
from ..config.settings import (
    COMPOSE_COMMAND,
    DEFAULT_COMPOSE_PROJECT,
    DEFAULT_DUMPS_PATH,
    ENV_FILES,
    SERVE_HOST_SUFFIX,
)
from ..exceptions import CommandError, ErrorCode, ExecutionError
from ..utils.env_loader import list_env_var_names, load_env_file
from ..utils.file_utils import find_compose_files
from ..utils.logging import log_info, log_success, log_warning
from .dsn import parse_dsn
from .git_manager import GitManager
from .results import InitSuggestion, ProjectInfo, ServeResult, StopResult

DATABASE_IMAGE_HINTS = ("mysql", "mariadb", "postgres")

SUGGESTED_CONFIG_FILE = "haive.yaml"


def compose_project_name(base_name: Optional[str], branch_name: str) -> str:
    """Compose project name of a served worktree, e.g. ``app-wt-feature-x``."""
    sanitized = branch_name.replace("/", "-").replace("_", "-").lower()
    return f"{base_name or DEFAULT_COMPOSE_PROJECT}-wt-{sanitized}"


def detect_compose_services(project_root: Path) -> Tuple[List[str], Dict[str, str]]:
    """Read services (name -> image) from the first parseable compose file."""
    for compose_file in find_compose_files(project_root):
        try:
            with open(compose_file) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            log_warning(f"Could not read {compose_file.name}: {e}")
            continue
        services = data.get("services") if isinstance(data, dict) else None
        if not isinstance(services, dict):
            continue
        return [compose_file.name], {
            name: (service or {}).get("image", "") if isinstance(service, dict) else ""
            for name, service in services.items()
        }
    return [], {}


def detect_database_service(services: Dict[str, str]) -> Optional[str]:
    for name, image in services.items():
        if any(hint in (image or "").lower() for hint in DATABASE_IMAGE_HINTS):
            return name
    for name in services:
        if name.lower() in ("database", "db") + DATABASE_IMAGE_HINTS:
            return name
    return None


def detect_project_type(project_root: Path) -> str:
    """Guess the framework from composer.json."""
    composer_path = project_root / "composer.json"
    if not composer_path.exists():
        return "generic"
    try:
        composer = json.loads(composer_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return "generic"
    if not isinstance(composer, dict):
        return "generic"

    requires = composer.get("require") or {}
    if "laravel/framework" in requires or str(composer.get("type", "")).lower() == "laravel":
        return "laravel"
    if "symfony/framework-bundle" in requires or str(composer.get("type", "")).lower() in ("project", "symfony"):
        return "symfony"
    return "generic"


class ProjectOrchestrator:
    """Project inspection and per-worktree container control."""

    def __init__(self, start_dir: Optional[Union[str, Path]] = None,
                 git_manager: Optional[GitManager] = None):
        self.start_dir = Path(start_dir or ".").absolute()
        self.git_manager = git_manager or GitManager(self.start_dir)

    def info(self) -> ProjectInfo:
        """Summarize config, env files and compose presence.

        A missing config is not an error here. An invalid one is reported in
        ``config_error`` so the rest of the project can still be inspected.
        """
        config: Optional[HaiveConfig] = None
        config_path: Optional[str] = None
        config_error: Optional[str] = None
        try:
            config = load_config(self.start_dir)
            config_path = str(config.config_path)
        except CommandError as e:
            if e.error_code == ErrorCode.CONFIG_INVALID:
                details = e.details or {}
                config_error = e.message
                config_path = details.get("config_path") or next(iter(details.get("files", [])), None)
            elif e.error_code != ErrorCode.CONFIG_MISSING:
                raise

        project_root = config.project_root if config else self.start_dir
        compose_files = find_compose_files(project_root)
        return ProjectInfo(
            project_root=str(project_root),
            config_path=config_path,
            config=config.to_dict() if config else None,
            env_files=[name for name in reversed(ENV_FILES) if (project_root / name).exists()],
            compose_file=compose_files[0].name if compose_files else None,
            config_error=config_error,
        )

    def _suggest_database_name(self, project_root: Path) -> str:
        database_url = load_env_file(project_root / ".env").get("DATABASE_URL", "")
        if database_url:
            try:
                parsed = parse_dsn(database_url)
                if parsed.database:
                    return parsed.database
            except CommandError:
                pass
        return re.sub(r"[^A-Za-z0-9_]", "_", project_root.name).lower()

    def init(self, write: bool = False) -> InitSuggestion:
        """Inspect the project and suggest a config.

        Args:
            write: Also write the suggestion to ``haive.yaml`` when it doesn't exist
        """
        project_root = self.start_dir
        compose_files, services = detect_compose_services(project_root)
        database_service = detect_database_service(services)
        project_type = detect_project_type(project_root)
        env_vars = list_env_var_names(project_root / ".env")

        suggestion: Dict[str, Any] = {
            "project": {"name": project_root.name, "type": project_type},
            "docker": {"compose_files": compose_files or ["docker-compose.yml"]},
        }
        if database_service:
            db_name = self._suggest_database_name(project_root)
            suggestion["database"] = {
                "service": database_service,
                "dsn": "${DATABASE_URL}",
                "allowed": [db_name, f"{db_name}_*"],
                "dumps_path": DEFAULT_DUMPS_PATH,
            }
        suggestion["worktree"] = {
            "base_path": ".worktrees",
            "db_per_worktree": bool(database_service),
        }
        if (project_root / ".env.local").exists():
            suggestion["worktree"]["copy"] = {"include": [".env.local"]}
            if database_service:
                suggestion["worktree"]["env"] = {"file": ".env.local", "var_name": "DATABASE_URL"}

        suggested_config = yaml.dump(suggestion, default_flow_style=False, sort_keys=False)

        if write:
            target = project_root / SUGGESTED_CONFIG_FILE
            if target.exists():
                log_warning(f"{target.name} already exists, not overwriting")
            else:
                target.write_text(suggested_config, encoding="utf-8")
                log_success(f"Wrote suggested config to {target}")

        return InitSuggestion(
            project_root=str(project_root),
            project_name=project_root.name,
            project_type=project_type,
            compose_files=compose_files,
            services=sorted(services),
            database_service=database_service,
            env_vars=env_vars,
            suggested_config=suggested_config,
        )

    def _serve_context(self) -> Tuple[Path, str, HaiveConfig, List[str]]:
        worktree_dir = Path(self.git_manager.get_toplevel())
        if not GitManager.is_worktree_checkout(worktree_dir):
            raise CommandError(
                "Not in a worktree directory",
                error_code=ErrorCode.INVALID_WORKTREE,
                details={"path": str(worktree_dir)},
            )
        branch_name = self.git_manager.get_current_branch(worktree_dir)

        config = load_config(worktree_dir)
        if config.serve is None or not config.serve.compose_files:
            raise CommandError(
                "[serve] section not configured or compose_files is empty",
                error_code=ErrorCode.CONFIG_MISSING,
            )
        return worktree_dir, branch_name, config, list(config.serve.compose_files)

    def _run_compose(self, worktree_dir: Path, compose_files: List[str], project_name: str,
                     args: List[str]) -> None:
        cmd = list(COMPOSE_COMMAND)
        for compose_file in compose_files:
            cmd.extend(["-f", compose_file])
        cmd.extend(["-p", project_name, *args])
        log_info(f"Running: {' '.join(cmd)}")
        result = subprocess.run(cmd, capture_output=True, text=True, cwd=worktree_dir)
        if result.returncode != 0:
            raise ExecutionError.from_process(
                f"docker compose {' '.join(args)} failed", cmd, result.stderr or result.stdout
            )

    def serve(self) -> ServeResult:
        """Start the current worktree's containers under their own project name."""
        worktree_dir, branch_name, config, compose_files = self._serve_context()
        for compose_file in compose_files:
            if not (worktree_dir / compose_file).exists():
                raise CommandError(
                    f"Compose file not found: {compose_file}",
                    error_code=ErrorCode.CONFIG_INVALID,
                    details={"path": str(worktree_dir / compose_file)},
                )

        project_name = compose_project_name(config.docker.project_name, branch_name)
        self._run_compose(worktree_dir, compose_files, project_name, ["up", "-d"])

        hostname = f"{project_name}-{SERVE_HOST_SUFFIX}"
        log_success(f"Started {project_name}")
        return ServeResult(
            branch=branch_name,
            path=str(worktree_dir),
            project_name=project_name,
            hostname=hostname,
            url=f"http://{hostname}",
        )

    def stop(self) -> StopResult:
        worktree_dir, branch_name, config, compose_files = self._serve_context()
        project_name = compose_project_name(config.docker.project_name, branch_name)
        self._run_compose(worktree_dir, compose_files, project_name, ["down"])
        log_success(f"Stopped {project_name}")
        return StopResult(branch=branch_name, project_name=project_name)
