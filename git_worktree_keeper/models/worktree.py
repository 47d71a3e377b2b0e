"""Worktree data models."""

import os
from dataclasses import dataclass
from typing import Optional

from git_worktree_keeper.constants import SHORT_HASH_LENGTH


@dataclass(frozen=True)
class WorktreeInfo:
    """Information about a git worktree."""

    path: str
    branch: Optional[str]  # None = detached HEAD
    commit_hash: str
    is_main: bool  # Is this the main working tree?
    is_dirty: bool = False
    has_unpushed_commits: bool = False  # False also when there is no upstream

    @property
    def display_name(self) -> str:
        """Branch name, or the last path segment for a detached worktree."""
        if self.branch:
            return self.branch
        return os.path.basename(self.path.rstrip("/\\")) or self.path

    @property
    def short_hash(self) -> str:
        return self.commit_hash[:SHORT_HASH_LENGTH]

    def __str__(self) -> str:
        """String representation of worktree."""
        main_marker = " (main)" if self.is_main else ""
        return f"{self.display_name} @ {self.path}{main_marker} [{self.short_hash}]"
