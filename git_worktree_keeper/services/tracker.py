"""Process-wide tracking of which worktrees are open in which session."""

import atexit
from contextlib import contextmanager
from threading import Lock, RLock
from typing import Any, Dict, Optional, Set

from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.session import Session
from git_worktree_keeper.utils.paths import normalize_path

logger = get_logger(__name__)


def _is_alive(handle: Any) -> bool:
    """Check a session handle; a handle that cannot answer counts as terminated."""
    try:
        return bool(handle.is_alive())
    except Exception as e:
        logger.debug(f"Treating session handle {handle!r} as terminated: {e}")
        return False


class OpenWorktreeTracker:
    """Maps worktree paths to the session that currently has them open.

    Handles are any object with an ``is_alive()`` method (``Session``,
    ``threading.Thread``, ``multiprocessing.Process``). Entries whose handle
    has terminated are treated as absent and pruned by whichever accessor
    finds them. Answers are best effort: a session may end right after a
    check.
    """

    _instance: Optional["OpenWorktreeTracker"] = None
    _instance_lock = Lock()

    def __init__(self):
        self._open: Dict[str, Any] = {}
        self._lock = RLock()

    @classmethod
    def get_instance(cls) -> "OpenWorktreeTracker":
        """Get the process-wide tracker, creating it on first use."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
                atexit.register(cls._instance.clear)
                logger.debug("Open worktree tracker created")
            return cls._instance

    @classmethod
    def reset_instance(cls):
        """Clear and forget the process-wide tracker."""
        with cls._instance_lock:
            if cls._instance is not None:
                cls._instance.clear()
                atexit.unregister(cls._instance.clear)
            cls._instance = None

    def register(self, path, handle: Any):
        """Associate ``path`` with ``handle``, replacing any previous owner."""
        key = normalize_path(path)
        with self._lock:
            previous = self._open.get(key)
            self._open[key] = handle
        if previous is not None and previous is not handle:
            logger.debug(f"Worktree {key} re-registered, replacing {previous!r}")
        else:
            logger.debug(f"Worktree {key} opened by {handle!r}")

    def unregister(self, path):
        key = normalize_path(path)
        with self._lock:
            self._open.pop(key, None)
        logger.debug(f"Worktree {key} closed")

    def is_open(self, path) -> bool:
        return self.get_owner(path) is not None

    def get_owner(self, path) -> Optional[Any]:
        """Get the live handle that has ``path`` open.

        A terminated handle is pruned and reported as absent.
        """
        key = normalize_path(path)
        with self._lock:
            handle = self._open.get(key)
        if handle is None:
            return None
        if _is_alive(handle):
            return handle
        self._prune({key: handle})
        return None

    def list_open(self) -> Set[str]:
        """Get the paths of all worktrees open in a live session."""
        with self._lock:
            snapshot = dict(self._open)
        # Liveness checks may be slow, so they run without the lock held
        dead = {key: handle for key, handle in snapshot.items() if not _is_alive(handle)}
        self._prune(dead)
        return {key for key in snapshot if key not in dead}

    def _prune(self, dead: Dict[str, Any]):
        """Drop terminated entries unless their path was re-registered meanwhile."""
        with self._lock:
            for key, handle in dead.items():
                if self._open.get(key) is handle:
                    del self._open[key]
        if dead:
            logger.debug(f"Pruned {len(dead)} terminated session(s)")

    def clear(self):
        with self._lock:
            self._open.clear()

    # Session lifecycle hooks

    def session_opened(self, session: Session):
        self.register(session.path, session)

    def session_closed(self, session: Session):
        """Forget ``session``; a newer session on the same path is kept."""
        key = normalize_path(session.path)
        with self._lock:
            if self._open.get(key) is session:
                del self._open[key]
        session.close()

    @contextmanager
    def open_session(self, path, handle: Optional[Any] = None):
        """Keep ``path`` registered as open for the duration of a block.

        Yields:
            The handle registered for the path
        """
        if handle is None:
            handle = Session(path=str(path))
        self.register(path, handle)
        try:
            yield handle
        finally:
            key = normalize_path(path)
            with self._lock:
                if self._open.get(key) is handle:
                    del self._open[key]
            if isinstance(handle, Session):
                handle.close()
