"""Session handle used by the open-worktree tracker."""

import os
import threading
from dataclasses import dataclass, field
from typing import Optional


@dataclass(eq=False)
class Session:
    """A session (window, shell, process) that has a worktree open.

    A session is alive until it is closed. When ``pid`` is set the session
    also ends as soon as that process goes away.
    """

    path: str
    name: str = ""
    pid: Optional[int] = None
    _closed: threading.Event = field(default_factory=threading.Event, init=False, repr=False)

    def close(self) -> None:
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def is_alive(self) -> bool:
        if self._closed.is_set():
            return False
        if self.pid is None or os.name == "nt":
            # Signal 0 is CTRL_C_EVENT on Windows
            return True
        try:
            os.kill(self.pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            # Process exists but belongs to someone else
            return True
        return True
