"""Data models for git-worktree-keeper."""

from .worktree import WorktreeInfo
from .result import ErrorKind, Result
from .session import Session

__all__ = ["WorktreeInfo", "ErrorKind", "Result", "Session"]
