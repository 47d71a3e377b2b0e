"""Wires the worktree services together for the command line."""

import os
from contextlib import contextmanager
from typing import List, Optional, Union

from rich.console import Console

from git_worktree_keeper.config import Config
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.result import ErrorKind, Result
from git_worktree_keeper.models.session import Session
from git_worktree_keeper.models.worktree import WorktreeInfo
from git_worktree_keeper.services.display_service import DisplayService
from git_worktree_keeper.services.git.runner import CommandRunner
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.services.safety import ConfirmHook, SafetyCheckPolicy
from git_worktree_keeper.services.tracker import OpenWorktreeTracker
from git_worktree_keeper.utils.paths import normalize_path

logger = get_logger(__name__)


class WorktreeKeeper:
    """Main class for managing the worktrees of a workspace."""

    def __init__(
        self,
        workspace_root: str,
        config: Union[Config, dict, None] = None,
        tracker: Optional[OpenWorktreeTracker] = None,
        runner: Optional[CommandRunner] = None,
        console: Optional[Console] = None,
    ):
        """Initialize WorktreeKeeper.

        Args:
            workspace_root: Directory the user is working in
            config: Configuration dict or Config object
            tracker: Open worktree tracker (the process-wide one by default)
            runner: Runs git commands
            console: Rich console for output
        """
        self.workspace_root = os.path.abspath(workspace_root)
        if isinstance(config, dict):
            self.config = Config.from_dict(config)
        else:
            self.config = config or Config()
        self.tracker = tracker or OpenWorktreeTracker.get_instance()
        self.service = WorktreeService(self.workspace_root, self.config, runner=runner)
        self.safety = SafetyCheckPolicy(self.service, self.tracker)
        self.display = DisplayService(console, verbose=self.config.verbose)
        self._own_paths: set = set()  # Paths opened by this keeper's own sessions
        logger.debug(f"Worktree keeper initialized for {self.workspace_root}")

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        self.service.close()

    @contextmanager
    def workspace_session(self, name: str = "cli"):
        """Mark the worktree containing the workspace as open for the duration of a block."""
        root = self._repository_root() or self.workspace_root
        session = Session(path=root, name=name, pid=os.getpid())
        self._own_paths.add(normalize_path(root))
        self.tracker.session_opened(session)
        try:
            yield session
        finally:
            self.tracker.session_closed(session)
            self._own_paths.discard(normalize_path(root))

    def _repository_root(self) -> Optional[str]:
        return self.service.scheduler.run(self.service.get_repository_root)

    def has_repository(self) -> bool:
        return self._repository_root() is not None

    def show_worktrees(self, refresh: bool = False, show_legend: bool = False) -> List[WorktreeInfo]:
        """List worktrees and print them as a table."""
        worktrees = self.service.refresh() if refresh else self.service.list_worktrees()
        self.display.display_worktree_table(
            worktrees,
            open_paths=self._open_elsewhere(),
            current_path=self.workspace_root,
            show_legend=show_legend,
        )
        return worktrees

    def show_worktree(self, target: str) -> Optional[WorktreeInfo]:
        worktree = self.resolve_target(target)
        if worktree is not None:
            self.display.display_worktree_details(
                worktree, is_open=normalize_path(worktree.path) in self._open_elsewhere()
            )
        return worktree

    def _open_elsewhere(self) -> set:
        own = self._own_paths | {normalize_path(self.workspace_root)}
        return self.tracker.list_open() - own

    def resolve_target(self, target: str) -> Optional[WorktreeInfo]:
        """Find a worktree by path, branch name or display name."""
        info = self.service.get_worktree_info(target)
        if info is not None:
            return info
        for worktree in self.service.list_worktrees():
            if target in (worktree.branch, worktree.display_name):
                return worktree
        return None

    def create(
        self, branch_name: str, path: Optional[str] = None, create_new_branch: bool = False
    ) -> Result[WorktreeInfo]:
        """Create a worktree, placing it at the default location unless ``path`` is given."""
        if path is None:
            path = self.service.get_default_worktree_path(branch_name)
            if path is None:
                return Result.failure("No main repository found", ErrorKind.PRECONDITION)
        return self.service.create_worktree(branch_name, path, create_new_branch)

    def remove(self, target: str, confirm: ConfirmHook, force: bool = False) -> Result[None]:
        """Remove a worktree after running the safety checks.

        Args:
            target: Path, branch name or display name of the worktree
            confirm: Asked before removing a worktree with local work, and before a forced retry
            force: Skip the dirty/unpushed checks and remove with --force
        """
        worktree = self.resolve_target(target)
        if worktree is None:
            return Result.failure(f"No worktree matches '{target}'", ErrorKind.PRECONDITION)
        if worktree.is_main:
            return Result.failure("The main worktree cannot be removed", ErrorKind.PRECONDITION)

        if force:
            return self.safety.force_remove(worktree.path)
        return self.safety.remove(worktree.path, confirm)

    def prune(self) -> Result[None]:
        return self.service.prune_worktrees()
