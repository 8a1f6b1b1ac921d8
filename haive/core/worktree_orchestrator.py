"""
Core worktree orchestration for haive.

This module contains the worktree workflows used by both the CLI and the
api module: plain create/remove/list and the isolated variants that pair
each worktree with its own database. Validation failures are raised before
git runs; later failures in isolated workflows are reported on the result.
"""

from pathlib import Path
from typing import List, Optional, Union

from ..config.loader import load_config
from ..config.models import HaiveConfig, WorktreeConfig
from ..exceptions import CommandError, ErrorCode, HaiveError, HookError
from ..utils.file_utils import add_to_gitignore, copy_worktree_files
from ..utils.logging import log_info, log_phase, log_success, log_warning
from ..utils.validation import (
    check_branch_name,
    check_path_traversal,
    is_path_within,
    sanitize_worktree_name,
)
from .database_orchestrator import DatabaseOrchestrator
from .git_manager import GitManager
from .hook_manager import HookContext, HookManager, HookPolicy
from .results import (
    WorkflowCreateResult,
    WorkflowRemoveResult,
    WorktreeCreateResult,
    WorktreeInfo,
    WorktreeRemoveResult,
)


class WorktreeOrchestrator:
    """Core worktree orchestration - used by the CLI and the api module."""

    def __init__(self, config: HaiveConfig, git_manager: Optional[GitManager] = None,
                 hook_manager: Optional[HookManager] = None,
                 database_orchestrator: Optional[DatabaseOrchestrator] = None):
        self.config = config
        self.project_root = config.project_root
        self.git_manager = git_manager or GitManager(self.project_root)
        self.hook_manager = hook_manager or HookManager(self.project_root)
        self.database_orchestrator = database_orchestrator or DatabaseOrchestrator(
            config, git_manager=self.git_manager, hook_manager=self.hook_manager
        )

    @classmethod
    def from_directory(cls, start_dir: Optional[Union[str, Path]] = None) -> "WorktreeOrchestrator":
        return cls(load_config(start_dir))

    @property
    def worktree(self) -> WorktreeConfig:
        if self.config.worktree is None:
            raise CommandError(
                "Worktrees are not configured. Add worktree.base_path to your config first",
                error_code=ErrorCode.CONFIG_MISSING,
            )
        return self.config.worktree

    @property
    def base_dir(self) -> Path:
        return self.config.resolve_path(self.worktree.base_path)

    def worktree_path(self, branch_name: str) -> Path:
        dir_name, _db_name = sanitize_worktree_name(branch_name)
        return self.base_dir / dir_name

    def _hook_context(self, branch_name: str, worktree_path: Optional[Path] = None) -> HookContext:
        dir_name, _db_name = sanitize_worktree_name(branch_name)
        return HookContext(
            repo_root=str(self.project_root),
            project_name=self.config.project.name or self.project_root.name,
            worktree_path=str(worktree_path) if worktree_path else "",
            worktree_name=dir_name,
            branch=branch_name,
        )

    def validate_new_worktree(self, branch_name: str) -> Path:
        """Check that a worktree can be created for ``branch_name``.

        Returns:
            The path the worktree will be created at

        Raises:
            CommandError: INVALID_WORKTREE, INVALID_NAME or PATH_TRAVERSAL
        """
        if not branch_name:
            raise CommandError("Branch name cannot be empty", error_code=ErrorCode.INVALID_WORKTREE)
        check_branch_name(branch_name)

        worktree_path = self.worktree_path(branch_name)
        check_path_traversal(worktree_path, self.base_dir)

        for existing in self.git_manager.list_worktrees():
            if existing.branch == branch_name or Path(existing.path).resolve() == worktree_path.resolve():
                raise CommandError(
                    f"Worktree for branch {branch_name} already exists at {existing.path}",
                    error_code=ErrorCode.INVALID_WORKTREE,
                    details={"branch": branch_name, "path": existing.path},
                )

        if worktree_path.exists():
            raise CommandError(
                f"Directory {worktree_path} already exists",
                error_code=ErrorCode.INVALID_WORKTREE,
                details={"path": str(worktree_path)},
            )

        return worktree_path

    def _ensure_gitignored(self) -> None:
        base_dir = self.base_dir
        if base_dir == self.project_root or not is_path_within(base_dir, self.project_root):
            return
        try:
            add_to_gitignore(self.project_root, base_dir.relative_to(self.project_root).as_posix())
        except (OSError, ValueError) as e:
            log_warning(f"Could not update .gitignore: {e}")

    def list_worktrees(self) -> List[WorktreeInfo]:
        return self.git_manager.list_worktrees()

    def create_worktree(self, branch_name: str, new_branch: Optional[bool] = None) -> WorktreeCreateResult:
        """Create a worktree for a branch.

        Args:
            branch_name: Branch to check out
            new_branch: Create the branch; when None it is created only if it
                doesn't exist yet

        Returns:
            WorktreeCreateResult with the path and the files copied into it
        """
        worktree_path = self.validate_new_worktree(branch_name)
        if new_branch is None:
            new_branch = not self.git_manager.branch_exists(branch_name)
            if new_branch:
                log_info(f"Branch {branch_name} doesn't exist, creating it")

        log_phase(f"Creating worktree for {branch_name}")
        try:
            worktree_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CommandError(
                f"Failed to create worktree directory: {e}",
                error_code=ErrorCode.INVALID_WORKTREE,
            ) from e
        self._ensure_gitignored()

        self.git_manager.add_worktree(worktree_path, branch_name, new_branch=new_branch)

        copied: List[str] = []
        copy = self.worktree.copy
        if copy is not None and copy.include:
            copied = copy_worktree_files(self.project_root, worktree_path, copy.include, copy.exclude)

        if self.worktree.hooks.post_create:
            self.hook_manager.execute_hooks(
                self.worktree.hooks.post_create,
                self._hook_context(branch_name, worktree_path),
                worktree_path,
                HookPolicy.BEST_EFFORT,
            )

        log_success(f"Worktree ready at {worktree_path}")
        return WorktreeCreateResult(
            path=str(worktree_path),
            branch=branch_name,
            new_branch=new_branch,
            copied_files=copied,
        )

    def remove_worktree(self, branch_name: str) -> WorktreeRemoveResult:
        """Remove a worktree; preRemove hooks can abort the removal."""
        check_branch_name(branch_name)
        worktree_path = self.worktree_path(branch_name)
        check_path_traversal(worktree_path, self.base_dir)

        if self.worktree.hooks.pre_remove:
            try:
                self.hook_manager.execute_hooks(
                    self.worktree.hooks.pre_remove,
                    self._hook_context(branch_name, worktree_path),
                    self.project_root,
                    HookPolicy.FAIL_FAST,
                )
            except HookError as e:
                raise HookError(
                    f"preRemove hook prevented removal: {e.message}",
                    error_code=e.error_code,
                    details=e.details,
                ) from e

        log_phase(f"Removing worktree for {branch_name}")
        self.git_manager.remove_worktree(worktree_path)

        if self.worktree.hooks.post_remove:
            self.hook_manager.execute_hooks(
                self.worktree.hooks.post_remove,
                self._hook_context(branch_name),
                self.project_root,
                HookPolicy.BEST_EFFORT,
            )

        return WorktreeRemoveResult(path=str(worktree_path), branch=branch_name)

    def create_isolated_worktree(self, branch_name: str,
                                 new_branch: Optional[bool] = None) -> WorkflowCreateResult:
        """Create a worktree and, when enabled, a dedicated database for it.

        Worktree failures raise. Once the worktree exists, a failing clone or
        env patch is returned in ``error`` alongside what succeeded.
        """
        created = self.create_worktree(branch_name, new_branch=new_branch)
        result = WorkflowCreateResult(
            path=created.path,
            branch=created.branch,
            new_branch=created.new_branch,
        )

        if not self.worktree.db_per_worktree or self.config.database is None:
            return result

        databases = self.database_orchestrator
        try:
            target = databases.worktree_database_name(branch_name)
            clone = databases.clone_db(None, target)
        except HaiveError as e:
            error = f"worktree created but database clone failed: {e.message}"
            log_warning(error)
            return WorkflowCreateResult(
                path=created.path,
                branch=created.branch,
                new_branch=created.new_branch,
                error=error,
            )

        try:
            env_patched = databases.assign_database(Path(created.path), clone.target, isolated=True)
        except (HaiveError, OSError) as e:
            error = f"worktree and database created but env file patch failed: {e}"
            log_warning(error)
            return WorkflowCreateResult(
                path=created.path,
                branch=created.branch,
                new_branch=created.new_branch,
                database=clone.target,
                cloned=True,
                error=error,
            )

        return WorkflowCreateResult(
            path=created.path,
            branch=created.branch,
            new_branch=created.new_branch,
            database=clone.target,
            cloned=True,
            env_patched=env_patched,
        )

    def remove_isolated_worktree(self, branch_name: str, drop_db: bool = False) -> WorkflowRemoveResult:
        """Remove a worktree, then optionally drop its dedicated database.

        A database outside the allow-list was never created, so that case is
        skipped silently. Removal is never rolled back.
        """
        removed = self.remove_worktree(branch_name)
        result = WorkflowRemoveResult(path=removed.path, branch=removed.branch)

        if not drop_db or self.config.database is None:
            return result

        databases = self.database_orchestrator
        target = databases.worktree_database_name(branch_name)
        try:
            databases.drop_db(target)
        except CommandError as e:
            if e.error_code == ErrorCode.DB_NOT_ALLOWED:
                log_info(f"Database {target} is not allowed, nothing to drop")
                return result
            return self._drop_failed(removed, target, e)
        except HaiveError as e:
            return self._drop_failed(removed, target, e)

        return WorkflowRemoveResult(path=removed.path, branch=removed.branch, database=target, dropped=True)

    @staticmethod
    def _drop_failed(removed: WorktreeRemoveResult, target: str, e: HaiveError) -> WorkflowRemoveResult:
        error = f"worktree removed but database drop failed: {e.message}"
        log_warning(error)
        return WorkflowRemoveResult(path=removed.path, branch=removed.branch, database=target, error=error)
