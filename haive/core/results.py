"""
Result records returned by haive operations.

Multi-stage workflows always return whatever succeeded; ``error`` is set when
a later stage failed after an earlier one completed.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


class _Result:
    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
        return data


@dataclass(frozen=True)
class WorktreeInfo(_Result):
    path: str
    branch: str
    head: str = ""
    is_main: bool = False


@dataclass(frozen=True)
class WorktreeCreateResult(_Result):
    path: str
    branch: str
    new_branch: bool
    copied_files: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class WorktreeRemoveResult(_Result):
    path: str
    branch: str


@dataclass(frozen=True)
class WorkflowCreateResult(_Result):
    path: str
    branch: str
    new_branch: bool
    database: Optional[str] = None
    cloned: bool = False
    env_patched: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class WorkflowRemoveResult(_Result):
    path: str
    branch: str
    database: Optional[str] = None
    dropped: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class DumpResult(_Result):
    database: str
    path: str
    size: int
    duration: float


@dataclass(frozen=True)
class CreateResult(_Result):
    database: str


@dataclass(frozen=True)
class ImportResult(_Result):
    database: str
    path: str
    duration: float


@dataclass(frozen=True)
class DropResult(_Result):
    database: str


@dataclass(frozen=True)
class DatabaseInfo(_Result):
    name: str
    is_default: bool = False


@dataclass(frozen=True)
class DatabaseListResult(_Result):
    engine: str
    databases: List[DatabaseInfo]


@dataclass(frozen=True)
class CloneResult(_Result):
    source: str
    target: str
    size: int
    duration: float


@dataclass(frozen=True)
class DumpFileInfo(_Result):
    name: str
    path: str
    database: str
    size: int
    modified: datetime


@dataclass(frozen=True)
class DumpsListResult(_Result):
    path: str
    dumps: List[DumpFileInfo]

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "dumps": [dump.to_dict() for dump in self.dumps]}


@dataclass(frozen=True)
class CheckoutResult(_Result):
    branch: str
    database: str
    created: bool = False
    cloned: bool = False
    env_patched: bool = False


@dataclass(frozen=True)
class ServeResult(_Result):
    branch: str
    path: str
    project_name: str
    hostname: str
    url: str


@dataclass(frozen=True)
class StopResult(_Result):
    branch: str
    project_name: str


@dataclass(frozen=True)
class ProjectInfo(_Result):
    project_root: str
    config_path: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    env_files: List[str] = field(default_factory=list)
    compose_file: Optional[str] = None
    config_error: Optional[str] = None


@dataclass(frozen=True)
class InitSuggestion(_Result):
    project_root: str
    project_name: str
    project_type: str
    compose_files: List[str]
    services: List[str]
    database_service: Optional[str]
    env_vars: List[str]
    suggested_config: str
