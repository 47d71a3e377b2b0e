"""Safety checks that run before a worktree is removed."""

from typing import Callable

from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.result import ErrorKind, Result
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.services.tracker import OpenWorktreeTracker

logger = get_logger(__name__)

# confirm(title, message) -> True to go ahead
ConfirmHook = Callable[[str, str], bool]

OPEN_ELSEWHERE_MESSAGE = (
    "This worktree is currently open in another session.\n"
    "Please close it before removing."
)
UNCOMMITTED_TITLE = "Uncommitted Changes"
UNCOMMITTED_MESSAGE = "This worktree has uncommitted changes.\nAre you sure you want to remove it?"
UNPUSHED_TITLE = "Unpushed Commits"
UNPUSHED_MESSAGE = "This worktree has unpushed commits.\nAre you sure you want to remove it?"
FORCE_TITLE = "Force Remove"


class SafetyCheckPolicy:
    """Decides whether a worktree may be removed.

    A worktree open in another session is never removed. Uncommitted changes
    and unpushed commits only need confirmation, which is asked through the
    ``confirm`` hook the caller passes in.
    """

    def __init__(self, service: WorktreeService, tracker: OpenWorktreeTracker):
        self.service = service
        self.tracker = tracker

    def evaluate(self, path, confirm: ConfirmHook) -> Result[None]:
        """Run the checks in order, stopping at the first one that fails.

        Returns:
            Success if removal may proceed, else a SAFETY_VIOLATION or CANCELLED failure
        """
        path = str(path)
        if self.tracker.is_open(path):
            logger.warning(f"Refusing to remove {path}: open in another session")
            return Result.failure(OPEN_ELSEWHERE_MESSAGE, ErrorKind.SAFETY_VIOLATION)

        # Fetch real-time status rather than trusting the listing cache
        if self.service.has_uncommitted_changes(path):
            if not confirm(UNCOMMITTED_TITLE, UNCOMMITTED_MESSAGE):
                return Result.failure("Removal cancelled: uncommitted changes", ErrorKind.CANCELLED)

        if self.service.has_unpushed_commits(path):
            if not confirm(UNPUSHED_TITLE, UNPUSHED_MESSAGE):
                return Result.failure("Removal cancelled: unpushed commits", ErrorKind.CANCELLED)

        return Result.success()

    def remove(self, path, confirm: ConfirmHook) -> Result[None]:
        """Check, then remove ``path``, offering one forced retry on failure.

        A failed forced removal is final.
        """
        path = str(path)
        check = self.evaluate(path, confirm)
        if not check.ok:
            return check

        result = self.service.remove_worktree(path, force=False)
        if result.ok:
            return result

        question = f"Failed to remove worktree: {result.error}\n\nDo you want to force removal?"
        if not confirm(FORCE_TITLE, question):
            return result

        logger.info(f"Retrying removal of {path} with --force")
        return self.service.remove_worktree(path, force=True)

    def force_remove(self, path) -> Result[None]:
        """Remove ``path`` with --force, still refusing worktrees open elsewhere."""
        path = str(path)
        if self.tracker.is_open(path):
            logger.warning(f"Refusing to remove {path}: open in another session")
            return Result.failure(OPEN_ELSEWHERE_MESSAGE, ErrorKind.SAFETY_VIOLATION)
        return self.service.remove_worktree(path, force=True)
