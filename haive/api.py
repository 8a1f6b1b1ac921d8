"""
Public operations of haive.

Each function is one synchronous call that loads the configuration for
``start_dir`` (default: the current directory), runs the operation and
returns a result record or raises a ``HaiveError``.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

from .core.database_orchestrator import DatabaseOrchestrator
from .core.git_manager import GitManager
from .core.project_orchestrator import ProjectOrchestrator
from .core.results import (
    CheckoutResult,
    CloneResult,
    CreateResult,
    DatabaseListResult,
    DropResult,
    DumpResult,
    DumpsListResult,
    ImportResult,
    InitSuggestion,
    ProjectInfo,
    ServeResult,
    StopResult,
    WorkflowCreateResult,
    WorkflowRemoveResult,
    WorktreeCreateResult,
    WorktreeInfo,
    WorktreeRemoveResult,
)
from .core.worktree_orchestrator import WorktreeOrchestrator

PathLike = Union[str, Path, None]


def info(start_dir: PathLike = None) -> ProjectInfo:
    return ProjectOrchestrator(start_dir).info()


def init(start_dir: PathLike = None, write: bool = False) -> InitSuggestion:
    return ProjectOrchestrator(start_dir).init(write=write)


def list_worktrees(start_dir: PathLike = None) -> List[WorktreeInfo]:
    """List git worktrees; works without a haive config."""
    return GitManager(Path(start_dir or ".")).list_worktrees()


def create_worktree(branch: str, new_branch: Optional[bool] = None,
                    start_dir: PathLike = None) -> WorktreeCreateResult:
    return WorktreeOrchestrator.from_directory(start_dir).create_worktree(branch, new_branch=new_branch)


def remove_worktree(branch: str, start_dir: PathLike = None) -> WorktreeRemoveResult:
    return WorktreeOrchestrator.from_directory(start_dir).remove_worktree(branch)


def create_isolated_worktree(branch: str, new_branch: Optional[bool] = None,
                             start_dir: PathLike = None) -> WorkflowCreateResult:
    return WorktreeOrchestrator.from_directory(start_dir).create_isolated_worktree(branch, new_branch=new_branch)


def remove_isolated_worktree(branch: str, drop_db: bool = False,
                             start_dir: PathLike = None) -> WorkflowRemoveResult:
    return WorktreeOrchestrator.from_directory(start_dir).remove_isolated_worktree(branch, drop_db=drop_db)


def dump(db_name: Optional[str] = None, tables: Optional[Sequence[str]] = None,
         start_dir: PathLike = None) -> DumpResult:
    return DatabaseOrchestrator.from_directory(start_dir).dump(db_name, tables)


def create_db(db_name: str, start_dir: PathLike = None) -> CreateResult:
    return DatabaseOrchestrator.from_directory(start_dir).create_db(db_name)


def import_db(db_name: str, sql_path: Union[str, Path], start_dir: PathLike = None) -> ImportResult:
    return DatabaseOrchestrator.from_directory(start_dir).import_db(db_name, sql_path)


def drop_db(db_name: str, start_dir: PathLike = None) -> DropResult:
    return DatabaseOrchestrator.from_directory(start_dir).drop_db(db_name)


def list_dbs(start_dir: PathLike = None) -> DatabaseListResult:
    return DatabaseOrchestrator.from_directory(start_dir).list_dbs()


def clone_db(source: Optional[str], target: str, start_dir: PathLike = None) -> CloneResult:
    return DatabaseOrchestrator.from_directory(start_dir).clone_db(source, target)


def list_dumps(start_dir: PathLike = None) -> DumpsListResult:
    return DatabaseOrchestrator.from_directory(start_dir).list_dumps()


def checkout(branch: str, create: bool = False, clone_from: Optional[str] = None,
             start_dir: PathLike = None) -> CheckoutResult:
    return DatabaseOrchestrator.from_directory(start_dir).checkout(branch, create=create, clone_from=clone_from)


def switch(clone_from: Optional[str] = None, start_dir: PathLike = None) -> CheckoutResult:
    return DatabaseOrchestrator.from_directory(start_dir).switch(clone_from=clone_from)


def serve(start_dir: PathLike = None) -> ServeResult:
    return ProjectOrchestrator(start_dir).serve()


def stop(start_dir: PathLike = None) -> StopResult:
    return ProjectOrchestrator(start_dir).stop()
