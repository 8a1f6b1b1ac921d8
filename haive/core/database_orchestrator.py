"""
Core database orchestration for haive.

Validates database names against the configured allow-list before any
external process runs, then drives ``DatabaseManager``. Also pairs git
branches with databases for checkout/switch.
"""

import os
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from ..config.loader import load_config
from ..config.models import DatabaseConfig, HaiveConfig
from ..config.settings import (
    DEFAULT_BRANCHES,
    DEFAULT_ENV_FILE,
    DEFAULT_ENV_VAR_NAME,
    DUMP_TIMESTAMP_FORMAT,
    GIT_CONFIG_DATABASE_KEY,
)
from ..exceptions import CommandError, ErrorCode, HaiveError, HookError
from ..utils.env_loader import patch_env_file
from ..utils.logging import log_info, log_success, log_warning
from ..utils.validation import (
    check_branch_name,
    check_database_allowed,
    check_database_name,
    is_not_default_db,
    sanitize_worktree_name,
)
from .database_manager import DatabaseManager
from .dsn import ParsedDSN, parse_dsn
from .engines import get_engine
from .git_manager import GitManager
from .hook_manager import HookContext, HookManager, HookPolicy
from .results import (
    CheckoutResult,
    CloneResult,
    CreateResult,
    DatabaseListResult,
    DropResult,
    DumpFileInfo,
    DumpResult,
    DumpsListResult,
    ImportResult,
)


def parse_dump_filename(filename: str) -> Optional[str]:
    """Return the database name of ``<db>_<timestamp>.sql``, else None."""
    if not filename.endswith(".sql"):
        return None
    stem = filename[: -len(".sql")]
    if "_" not in stem:
        return None
    db_name, _timestamp = stem.rsplit("_", 1)
    return db_name or None


class DatabaseOrchestrator:
    """Core database orchestration - used by the CLI and the api module."""

    def __init__(self, config: HaiveConfig, git_manager: Optional[GitManager] = None,
                 hook_manager: Optional[HookManager] = None):
        self.config = config
        self.project_root = config.project_root
        self.git_manager = git_manager or GitManager(self.project_root)
        self.hook_manager = hook_manager or HookManager(self.project_root)

    @classmethod
    def from_directory(cls, start_dir: Optional[Union[str, Path]] = None) -> "DatabaseOrchestrator":
        return cls(load_config(start_dir))

    @property
    def database(self) -> DatabaseConfig:
        if self.config.database is None:
            raise CommandError(
                "Database is not configured. Add a [database] section to your config first",
                error_code=ErrorCode.CONFIG_MISSING,
            )
        return self.config.database

    @property
    def project_name(self) -> str:
        return self.config.project.name or self.project_root.name

    def parsed_dsn(self) -> ParsedDSN:
        return parse_dsn(self.database.dsn)

    def _database_manager(self, dsn: ParsedDSN) -> DatabaseManager:
        return DatabaseManager(
            engine=get_engine(dsn.engine),
            service=self.database.service,
            compose_files=self.config.docker.compose_files,
            project_root=self.project_root,
            project_name=self.config.docker.project_name,
        )

    def _hook_context(self, **values: str) -> HookContext:
        return HookContext(repo_root=str(self.project_root), project_name=self.project_name, **values)

    def _check_allowed(self, *db_names: str) -> None:
        for db_name in db_names:
            check_database_name(db_name)
            check_database_allowed(db_name, self.database.allowed)

    def dump(self, db_name: Optional[str] = None, tables: Optional[Sequence[str]] = None) -> DumpResult:
        """Dump a database to ``<dumps_path>/<db>_<YYYY-MM-DDTHH-MM>.sql``."""
        dsn = self.parsed_dsn()
        db_name = db_name or dsn.database
        self._check_allowed(db_name)

        timestamp = datetime.now().strftime(DUMP_TIMESTAMP_FORMAT)
        dest_path = self.config.dumps_dir / f"{db_name}_{timestamp}.sql"
        return self._database_manager(dsn).dump(dsn.with_database(db_name), dest_path, tables)

    def create_db(self, db_name: str) -> CreateResult:
        self._check_allowed(db_name)
        dsn = self.parsed_dsn()
        self._database_manager(dsn).create_database(dsn, db_name)
        return CreateResult(database=db_name)

    def import_db(self, db_name: str, sql_path: Union[str, Path]) -> ImportResult:
        """Import an SQL file into an allowed database.

        Relative paths are resolved against the project root.
        """
        self._check_allowed(db_name)
        sql_path = self.config.resolve_path(str(sql_path))
        if not sql_path.is_file():
            raise CommandError(
                f"SQL file not found: {sql_path}",
                error_code=ErrorCode.FILE_NOT_FOUND,
                details={"path": str(sql_path)},
            )
        dsn = self.parsed_dsn()
        return self._database_manager(dsn).import_database(dsn, db_name, sql_path)

    def drop_db(self, db_name: str) -> DropResult:
        """Drop an allowed, non-default database after running preDrop hooks."""
        self._check_allowed(db_name)
        dsn = self.parsed_dsn()
        is_not_default_db(db_name, dsn.database)

        if self.database.hooks.pre_drop:
            context = self._hook_context(
                database_name=db_name,
                database_url=dsn.with_database(db_name).to_url(),
            )
            try:
                self.hook_manager.execute_hooks(
                    self.database.hooks.pre_drop, context, self.project_root, HookPolicy.FAIL_FAST
                )
            except HookError as e:
                raise HookError(
                    f"preDrop hook prevented drop: {e.message}",
                    error_code=e.error_code,
                    details=e.details,
                ) from e

        self._database_manager(dsn).drop_database(dsn, db_name)
        return DropResult(database=db_name)

    def list_dbs(self) -> DatabaseListResult:
        dsn = self.parsed_dsn()
        manager = self._database_manager(dsn)
        return DatabaseListResult(engine=manager.engine.name, databases=manager.list_databases(dsn))

    def _drop_quietly(self, manager: DatabaseManager, dsn: ParsedDSN, db_name: str) -> None:
        try:
            manager.drop_database(dsn, db_name)
        except HaiveError as e:
            log_warning(f"Cleanup of database {db_name} failed: {e.message}")

    def clone_db(self, source: Optional[str], target: str) -> CloneResult:
        """Clone ``source`` (default database when empty) into ``target``.

        The target is created first; if the dump or import fails it is
        dropped again and the temporary dump file is removed.
        """
        dsn = self.parsed_dsn()
        source = source or dsn.database
        self._check_allowed(source, target)

        manager = self._database_manager(dsn)
        started = time.monotonic()
        manager.create_database(dsn, target)

        temp_path = Path(tempfile.gettempdir()) / f"clone_{target}_{time.time_ns()}.sql"
        try:
            try:
                dump = manager.dump(dsn.with_database(source), temp_path)
            except (HaiveError, OSError):
                self._drop_quietly(manager, dsn, target)
                raise

            try:
                manager.import_database(dsn, target, temp_path)
            except (HaiveError, OSError):
                self._drop_quietly(manager, dsn, target)
                raise
        finally:
            if temp_path.exists():
                os.unlink(temp_path)

        result = CloneResult(
            source=source,
            target=target,
            size=dump.size,
            duration=time.monotonic() - started,
        )
        log_success(f"Cloned {source} into {target}")

        if self.database.hooks.post_clone:
            context = self._hook_context(
                database_name=target,
                database_url=dsn.with_database(target).to_url(),
                source_database=source,
                target_database=target,
            )
            self.hook_manager.execute_hooks(
                self.database.hooks.post_clone, context, self.project_root, HookPolicy.BEST_EFFORT
            )

        return result

    def list_dumps(self) -> DumpsListResult:
        """List ``<db>_<timestamp>.sql`` files in the dumps directory, newest first."""
        dumps_dir = self.config.resolve_path(self.database.dumps_path)
        if not dumps_dir.is_dir():
            return DumpsListResult(path=str(dumps_dir), dumps=[])

        dumps: List[DumpFileInfo] = []
        for path in dumps_dir.glob("*.sql"):
            db_name = parse_dump_filename(path.name)
            if db_name is None or not path.is_file():
                continue
            stat = path.stat()
            dumps.append(DumpFileInfo(
                name=path.name,
                path=str(path),
                database=db_name,
                size=stat.st_size,
                modified=datetime.fromtimestamp(stat.st_mtime),
            ))

        dumps.sort(key=lambda dump: dump.modified, reverse=True)
        return DumpsListResult(path=str(dumps_dir), dumps=dumps)

    def database_for_branch(self, branch_name: str) -> str:
        """Map a branch to its database.

        Primary branches use the configured default database; every other
        branch gets ``<db_prefix><db-safe branch>``.
        """
        if branch_name in DEFAULT_BRANCHES:
            return self.parsed_dsn().database
        return self.worktree_database_name(branch_name)

    def worktree_database_name(self, branch_name: str) -> str:
        """Database dedicated to a branch: ``<db_prefix><db-safe branch>``."""
        worktree = self.config.worktree
        if worktree and worktree.db_prefix:
            prefix = worktree.db_prefix
        else:
            prefix = f"{self.parsed_dsn().database}_wt_"
        _dir_name, db_suffix = sanitize_worktree_name(branch_name)
        return f"{prefix}{db_suffix}"

    def resolve_clone_source(self, clone_from: Optional[str]) -> Optional[str]:
        """A primary branch name stands for the default database."""
        if not clone_from:
            return None
        if clone_from in DEFAULT_BRANCHES:
            return self.parsed_dsn().database
        return clone_from

    def assign_database(self, checkout_path: Path, db_name: str, isolated: bool = False) -> bool:
        """Point a checkout at ``db_name``.

        Records the database in the checkout's local git config and rewrites
        the env file's DSN. The project checkout is only patched when
        ``worktree.env`` is configured and its file exists. An isolated
        worktree always gets the assignment, in ``.env.local``/``DATABASE_URL``
        unless ``worktree.env`` says otherwise, and the file is created when
        missing.

        Returns:
            True if an env file was patched
        """
        self.git_manager.set_local_config(GIT_CONFIG_DATABASE_KEY, db_name, cwd=checkout_path)

        env = self.config.worktree.env if self.config.worktree else None
        if env is None and not isolated:
            return False
        env_file = env.file if env else DEFAULT_ENV_FILE
        var_name = env.var_name if env else DEFAULT_ENV_VAR_NAME

        new_dsn = self.parsed_dsn().with_database(db_name).to_url()
        patch_env_file(Path(checkout_path) / env_file, var_name, new_dsn, create=isolated)
        return True

    def _ensure_database(self, target: str, source: Optional[str]) -> Tuple[bool, bool]:
        dsn = self.parsed_dsn()
        if target == dsn.database:
            if source and source != target:
                log_warning(f"Not cloning into default database {target}")
            return False, False

        manager = self._database_manager(dsn)
        if manager.database_exists(dsn, target):
            if source:
                log_warning(f"Database {target} already exists, not cloning from {source}")
            return False, False

        if source:
            self.clone_db(source, target)
            return True, True

        manager.create_database(dsn, target)
        return True, False

    def _pair_database(self, branch_name: str, clone_from: Optional[str]) -> CheckoutResult:
        target = self.database_for_branch(branch_name)
        source = self.resolve_clone_source(clone_from)
        created, cloned = self._ensure_database(target, source)

        try:
            env_patched = self.assign_database(self.project_root, target)
        except CommandError as e:
            if e.error_code != ErrorCode.FILE_NOT_FOUND:
                raise
            log_warning(f"{e.message}, DSN not updated")
            env_patched = False

        log_success(f"Using database {target} for {branch_name}")
        return CheckoutResult(
            branch=branch_name,
            database=target,
            created=created,
            cloned=cloned,
            env_patched=env_patched,
        )

    def checkout(self, branch_name: str, create: bool = False,
                 clone_from: Optional[str] = None) -> CheckoutResult:
        """Check out a branch and switch to its database.

        Names are validated before git runs.
        """
        check_branch_name(branch_name)
        target = self.database_for_branch(branch_name)
        source = self.resolve_clone_source(clone_from)
        self._check_allowed(target, *([source] if source else []))

        self.git_manager.checkout(branch_name, create=create)
        return self._pair_database(branch_name, clone_from)

    def switch(self, clone_from: Optional[str] = None) -> CheckoutResult:
        """Switch the database for the branch currently checked out."""
        branch_name = self.git_manager.get_current_branch(self.project_root)
        if branch_name == "HEAD":
            raise CommandError(
                "HEAD is detached, check out a branch first",
                error_code=ErrorCode.INVALID_NAME,
            )
        log_info(f"Current branch: {branch_name}")
        target = self.database_for_branch(branch_name)
        source = self.resolve_clone_source(clone_from)
        self._check_allowed(target, *([source] if source else []))
        return self._pair_database(branch_name, clone_from)
