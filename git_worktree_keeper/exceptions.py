"""Custom exceptions for git-worktree-keeper.

Expected failures (git errors, missing repository, open worktrees) are
returned as ``Result`` values; these exceptions signal misuse.
"""

from typing import Optional


class WorktreeKeeperError(Exception):
    """Base exception for all git-worktree-keeper errors."""
    pass


class WorktreeOperationError(WorktreeKeeperError):
    """Exception raised when a failed operation result is unwrapped."""

    def __init__(self, operation: str, path: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.path = path
        self.message = message

        error_msg = f"Worktree operation '{operation}' failed"
        if path:
            error_msg += f" for '{path}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class SchedulerError(WorktreeKeeperError):
    """Exception raised when work is scheduled on a context that cannot run it."""
    pass
