"""Services for git-worktree-keeper."""

from .git import CommandRunner, WorktreeService, parse_worktree_list
from .tracker import OpenWorktreeTracker
from .safety import SafetyCheckPolicy
from .display_service import DisplayService

__all__ = [
    "CommandRunner",
    "WorktreeService",
    "parse_worktree_list",
    "OpenWorktreeTracker",
    "SafetyCheckPolicy",
    "DisplayService",
]
