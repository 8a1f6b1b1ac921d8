"""
Typed configuration model for haive.

Instances are built by ``haive.config.loader`` and never mutated afterwards.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ProjectConfig:
    name: str = ""
    type: str = ""


@dataclass(frozen=True)
class DockerConfig:
    compose_files: Tuple[str, ...] = ()
    project_name: Optional[str] = None


@dataclass(frozen=True)
class DatabaseHooks:
    pre_drop: Tuple[str, ...] = ()
    post_clone: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DatabaseConfig:
    service: str
    dsn: str
    allowed: Tuple[str, ...]
    dumps_path: str
    hooks: DatabaseHooks = field(default_factory=DatabaseHooks)


@dataclass(frozen=True)
class CopyConfig:
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()


@dataclass(frozen=True)
class WorktreeHooks:
    post_create: Tuple[str, ...] = ()
    pre_remove: Tuple[str, ...] = ()
    post_remove: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EnvConfig:
    file: str
    var_name: str


@dataclass(frozen=True)
class WorktreeConfig:
    base_path: str
    db_per_worktree: bool = False
    db_prefix: str = ""
    copy: Optional[CopyConfig] = None
    hooks: WorktreeHooks = field(default_factory=WorktreeHooks)
    env: Optional[EnvConfig] = None


@dataclass(frozen=True)
class ServeConfig:
    compose_files: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HaiveConfig:
    """Root configuration aggregate."""

    project_root: Path
    config_path: Path
    project: ProjectConfig = field(default_factory=ProjectConfig)
    docker: DockerConfig = field(default_factory=DockerConfig)
    database: Optional[DatabaseConfig] = None
    worktree: Optional[WorktreeConfig] = None
    serve: Optional[ServeConfig] = None

    @property
    def worktree_base_dir(self) -> Optional[Path]:
        """Absolute directory holding worktrees, if a worktree section exists."""
        if self.worktree is None:
            return None
        return self.resolve_path(self.worktree.base_path)

    @property
    def dumps_dir(self) -> Optional[Path]:
        if self.database is None:
            return None
        return self.resolve_path(self.database.dumps_path)

    def resolve_path(self, path: str) -> Path:
        """Resolve a config path relative to the project root."""
        candidate = Path(path).expanduser()
        if candidate.is_absolute():
            return candidate
        return self.project_root / candidate

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["project_root"] = str(self.project_root)
        data["config_path"] = str(self.config_path)
        return data
