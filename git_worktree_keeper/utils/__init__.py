"""Utility functions for git-worktree-keeper.

This package provides utility modules:
- threading: execution contexts, the background scheduler and worker sizing
"""

from .threading import (
    ExecutionContext,
    Scheduler,
    get_optimal_worker_count,
    is_free_threading_enabled,
)

__all__ = [
    "ExecutionContext",
    "Scheduler",
    "get_optimal_worker_count",
    "is_free_threading_enabled",
]
