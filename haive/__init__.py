"""
haive: per-branch development environments for compose-based projects.

Creates git worktrees, gives each one its own database cloned from the
default one, and points the worktree's env file at it.
"""

from .config.settings import VERSION

__version__ = VERSION
