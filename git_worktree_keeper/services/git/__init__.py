"""Git-related services for git-worktree-keeper."""

from .porcelain import parse_worktree_list
from .runner import CommandRunner
from .worktrees import WorktreeService

__all__ = [
    "CommandRunner",
    "WorktreeService",
    "parse_worktree_list",
]
