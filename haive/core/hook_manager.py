"""
Lifecycle hook execution for haive.

Hooks are configured command strings. An entry containing a path separator
is a script resolved against the project root; anything else runs through
``sh -c``. ``HookPolicy`` decides what a failing hook does: pre-hooks use
FAIL_FAST and abort the operation, post-hooks use BEST_EFFORT and only warn.
"""

import os
import subprocess
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from ..exceptions import ErrorCode, HookError
from ..utils.logging import log_info, log_warning


class HookPolicy(Enum):
    FAIL_FAST = "fail_fast"
    BEST_EFFORT = "best_effort"


@dataclass
class HookContext:
    """Values exported to a single hook invocation."""

    repo_root: str = ""
    project_name: str = ""
    worktree_path: str = ""
    worktree_name: str = ""
    branch: str = ""
    database_name: str = ""
    database_url: str = ""
    source_database: str = ""
    target_database: str = ""

    ENV_NAMES = {
        "repo_root": "REPO_ROOT",
        "project_name": "PROJECT_NAME",
        "worktree_path": "WORKTREE_PATH",
        "worktree_name": "WORKTREE_NAME",
        "branch": "BRANCH",
        "database_name": "DATABASE_NAME",
        "database_url": "DATABASE_URL",
        "source_database": "SOURCE_DATABASE",
        "target_database": "TARGET_DATABASE",
    }

    def context_vars(self) -> Dict[str, str]:
        """Return the non-empty fields under their environment names."""
        return {
            self.ENV_NAMES[f.name]: str(getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name)
        }

    def to_env(self, base: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Process environment (or ``base``) plus the context variables."""
        env = dict(os.environ if base is None else base)
        env.update(self.context_vars())
        return env


def is_script_hook(hook: str) -> bool:
    """Check if a hook entry names a script rather than a shell command."""
    return "/" in hook or "\\" in hook


class HookManager:
    """Runs configured hooks for haive operations."""

    def __init__(self, project_root: Union[str, Path]):
        self.project_root = Path(project_root)

    def _fail(self, message: str, policy: HookPolicy, hook: str, output: str = "") -> None:
        if policy is HookPolicy.FAIL_FAST:
            raise HookError(
                message,
                error_code=ErrorCode.HOOK_FAILED,
                details={"hook": hook, "output": output},
            )
        log_warning(message)

    def _build_command(self, hook: str, policy: HookPolicy) -> Optional[List[str]]:
        if not is_script_hook(hook):
            return ["sh", "-c", hook]

        script_path = Path(hook)
        if not script_path.is_absolute():
            script_path = self.project_root / script_path
        if not script_path.exists():
            self._fail(f"Hook script not found: {script_path}", policy, hook)
            return None
        return [str(script_path)]

    def execute_hook(self, hook: str, context: HookContext, working_dir: Union[str, Path],
                     policy: HookPolicy) -> bool:
        """Run one hook.

        Returns:
            True if the hook ran and exited zero

        Raises:
            HookError: under FAIL_FAST when the script is missing or fails
        """
        cmd = self._build_command(hook, policy)
        if cmd is None:
            return False

        log_info(f"Running hook: {hook}")
        try:
            result = subprocess.run(
                cmd,
                cwd=str(working_dir),
                env=context.to_env(),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as e:
            self._fail(f"Hook '{hook}' could not be started: {e}", policy, hook)
            return False

        for line in (result.stdout or "").splitlines():
            log_info(f"  {line}")

        if result.returncode != 0:
            self._fail(
                f"Hook '{hook}' failed with exit code {result.returncode}",
                policy,
                hook,
                result.stdout or "",
            )
            return False
        return True

    def execute_hooks(self, hooks: Sequence[str], context: HookContext,
                      working_dir: Union[str, Path], policy: HookPolicy) -> int:
        """Run hooks in order.

        Args:
            hooks: Configured hook entries
            context: Values exported to each hook
            working_dir: Directory hooks run in
            policy: FAIL_FAST stops at the first failure and raises,
                BEST_EFFORT logs a warning and continues

        Returns:
            Number of hooks that succeeded
        """
        succeeded = 0
        for hook in hooks:
            if self.execute_hook(hook, context, working_dir, policy):
                succeeded += 1
        return succeeded
