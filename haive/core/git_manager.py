"""
Git worktree management for haive.

Thin synchronous wrappers around the git CLI. Every failure is raised as an
``ExecutionError`` carrying git's stderr.
"""

import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..exceptions import ExecutionError
from ..utils.logging import log_info, log_success
from .results import WorktreeInfo


def parse_worktree_list(output: str, toplevel: str) -> List[WorktreeInfo]:
    """Parse ``git worktree list --porcelain`` output.

    Records are separated by blank lines; each has a ``worktree`` line, a
    ``HEAD`` line and either ``branch refs/heads/<name>`` or ``detached``.
    """
    worktrees: List[WorktreeInfo] = []
    record: dict = {}

    def flush() -> None:
        if record.get("path"):
            worktrees.append(WorktreeInfo(
                path=record["path"],
                branch=record.get("branch", ""),
                head=record.get("head", ""),
                is_main=record["path"] == toplevel,
            ))
        record.clear()

    for line in output.splitlines():
        line = line.strip()
        if not line:
            flush()
        elif line.startswith("worktree "):
            flush()
            record["path"] = line[len("worktree "):].strip()
        elif line.startswith("HEAD "):
            record["head"] = line[len("HEAD "):].strip()
        elif line.startswith("branch "):
            branch = line[len("branch "):].strip()
            record["branch"] = branch[len("refs/heads/"):] if branch.startswith("refs/heads/") else branch
        elif line == "detached":
            record["branch"] = "detached"
    flush()

    return worktrees


class GitManager:
    """Manages git operations for haive."""

    def __init__(self, project_root: Union[str, Path]):
        """Initialize Git manager.

        Args:
            project_root: Repository directory every command runs in
        """
        self.project_root = Path(project_root)

    def _run_git(self, args: Sequence[str], cwd: Optional[Path] = None,
                 check: bool = True) -> subprocess.CompletedProcess:
        cmd = ["git", *args]
        log_info(f"Running: {' '.join(cmd)}")
        result = subprocess.run(cmd, capture_output=True, text=True, cwd=cwd or self.project_root)
        if check and result.returncode != 0:
            raise ExecutionError.from_process(f"git {args[0]} failed", cmd, result.stderr or result.stdout)
        return result

    def list_worktrees(self) -> List[WorktreeInfo]:
        """List all git worktrees, flagging the primary checkout.

        Returns:
            List of WorktreeInfo, enumerated fresh from git
        """
        listing = self._run_git(["worktree", "list", "--porcelain"])
        toplevel = self.get_toplevel()
        return parse_worktree_list(listing.stdout, toplevel)

    def get_toplevel(self) -> str:
        return self._run_git(["rev-parse", "--show-toplevel"]).stdout.strip()

    def add_worktree(self, worktree_path: Path, branch_name: str, new_branch: bool = False) -> None:
        """Create a git worktree.

        Args:
            worktree_path: Directory to check the worktree out into
            branch_name: Branch to check out (or create)
            new_branch: Create ``branch_name`` from HEAD instead of checking out
                an existing branch
        """
        if new_branch:
            args = ["worktree", "add", "-b", branch_name, str(worktree_path)]
        else:
            args = ["worktree", "add", str(worktree_path), branch_name]
        self._run_git(args)
        log_success(f"Git worktree created for {branch_name} at {worktree_path}")

    def remove_worktree(self, worktree_path: Path) -> None:
        """Remove a git worktree. Uncommitted changes are discarded."""
        self._run_git(["worktree", "remove", str(worktree_path), "--force"])
        log_success(f"Git worktree removed: {worktree_path}")

    def branch_exists(self, branch_name: str) -> bool:
        """Check if a local branch exists."""
        result = self._run_git(
            ["rev-parse", "--verify", "--quiet", f"refs/heads/{branch_name}"], check=False
        )
        return result.returncode == 0

    def get_current_branch(self, cwd: Optional[Path] = None) -> str:
        """Get the branch checked out in ``cwd`` (defaults to the project root)."""
        return self._run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd).stdout.strip()

    def checkout(self, branch_name: str, create: bool = False) -> None:
        args = ["checkout", "-b", branch_name] if create else ["checkout", branch_name]
        self._run_git(args)
        log_success(f"Checked out {branch_name}")

    def set_local_config(self, key: str, value: str, cwd: Optional[Path] = None) -> None:
        """Set a key in the repository-local git config of ``cwd``."""
        self._run_git(["config", "--local", key, value], cwd=cwd)

    @staticmethod
    def is_worktree_checkout(path: Path) -> bool:
        """A linked worktree has a ``.git`` file instead of a directory."""
        return (Path(path) / ".git").is_file()
