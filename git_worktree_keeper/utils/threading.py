"""Threading utilities: execution contexts, background scheduling and worker sizing.

Callers never inspect which thread they are on. Every thread has a *declared*
execution context: worker threads owned by a ``Scheduler`` declare
``BACKGROUND`` when they start, everything else is ``FOREGROUND`` unless it
declares otherwise with ``Scheduler.declare``.
"""

import os
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Optional, TypeVar

from git_worktree_keeper.exceptions import SchedulerError
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_declared = threading.local()


class ExecutionContext(Enum):
    """Where a piece of work is allowed to run."""

    FOREGROUND = "foreground"  # Latency sensitive, must never block on git
    BACKGROUND = "background"  # May block


def current_context() -> ExecutionContext:
    """Return the execution context declared by the calling thread."""
    return getattr(_declared, "context", ExecutionContext.FOREGROUND)


def is_free_threading_enabled() -> bool:
    """Detect if Python is running with free-threading enabled.

    Returns:
        True if running on Python 3.13+ with the GIL disabled
    """
    is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
    return is_gil_enabled is not None and not is_gil_enabled()


def get_optimal_worker_count(user_specified: Optional[int] = None) -> int:
    """Calculate optimal worker count based on threading mode and CPU count.

    Args:
        user_specified: User-specified worker count, if provided

    Returns:
        Number of workers for git subprocess fan-out
    """
    if user_specified is not None and user_specified > 0:
        return user_specified

    cpu_count = os.cpu_count() or 1

    if is_free_threading_enabled():
        return min(64, cpu_count * 2)

    # Work is dominated by waiting on git processes
    return min(32, cpu_count + 4)


class Scheduler:
    """Runs units of work on the execution context they require."""

    def __init__(self, max_workers: Optional[int] = None, name: str = "worktree-bg"):
        """Initialize the scheduler.

        Args:
            max_workers: Size of the background pool (None = auto-detect)
            name: Thread name prefix for background workers
        """
        self.max_workers = get_optimal_worker_count(max_workers)
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix=name,
            initializer=self._declare_background,
        )
        self._shutdown = False

    @staticmethod
    def _declare_background() -> None:
        _declared.context = ExecutionContext.BACKGROUND

    @staticmethod
    @contextmanager
    def declare(context: ExecutionContext):
        """Declare the execution context of the calling thread for a block."""
        previous = getattr(_declared, "context", None)
        _declared.context = context
        try:
            yield
        finally:
            if previous is None:
                del _declared.context
            else:
                _declared.context = previous

    def run(self, work: Callable[[], T], required: ExecutionContext = ExecutionContext.BACKGROUND) -> T:
        """Run ``work`` on the required context and return its result.

        Work that needs the background context runs inline when the caller is
        already on it; a foreground caller hands it to the pool and waits for
        the result.

        Raises:
            SchedulerError: If foreground work is requested from a background thread
        """
        current = current_context()
        if required is ExecutionContext.FOREGROUND and current is not ExecutionContext.FOREGROUND:
            raise SchedulerError("Foreground work cannot be run from a background context")
        if required is current:
            return work()
        logger.debug(f"Handing {getattr(work, '__name__', 'work')} off to background")
        return self.submit(work).result()

    def submit(self, work: Callable[[], T]) -> "Future[T]":
        """Dispatch ``work`` to the background pool without waiting."""
        if self._shutdown:
            raise SchedulerError("Scheduler has been shut down")
        return self._executor.submit(work)

    def shutdown(self, wait: bool = True) -> None:
        self._shutdown = True
        self._executor.shutdown(wait=wait)
