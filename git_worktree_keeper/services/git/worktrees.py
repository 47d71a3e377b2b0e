"""Worktree registry service for git-worktree-keeper."""

import os
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from functools import partial
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple

from git_worktree_keeper.config import Config
from git_worktree_keeper.constants import UPSTREAM_REF
from git_worktree_keeper.exceptions import SchedulerError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.result import ErrorKind, Result
from git_worktree_keeper.models.worktree import WorktreeInfo
from git_worktree_keeper.services.git.porcelain import parse_worktree_list
from git_worktree_keeper.services.git.runner import CommandRunner
from git_worktree_keeper.utils.paths import is_same_or_descendant, normalize_path, sanitize_branch_name
from git_worktree_keeper.utils.threading import Scheduler, get_optimal_worker_count

logger = get_logger(__name__)

NO_REPOSITORY = "No git repository found"


@dataclass(frozen=True)
class CacheEntry:
    """A worktree listing and the clock reading it was taken at."""

    worktrees: Tuple[WorktreeInfo, ...]
    timestamp: float


class WorktreeService:
    """Service for listing, creating and removing the worktrees of one workspace.

    Reads are served from a single cache slot holding the last listing. The
    slot is replaced as a whole, never mutated. ``list_worktrees`` may block
    to refresh it; ``get_cached_worktrees`` never does.
    """

    def __init__(
        self,
        workspace_root: str,
        config: Optional[Config] = None,
        runner: Optional[CommandRunner] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the worktree service.

        Args:
            workspace_root: Root directory of the workspace (any worktree of the repository)
            config: Configuration (defaults are used when omitted)
            runner: Runs git commands
            scheduler: Moves blocking work off the foreground context
            clock: Monotonic time source for cache expiry
        """
        self.workspace_root = os.path.abspath(str(workspace_root))
        self.config = config or Config()
        self.runner = runner or CommandRunner(self.config.git_executable, self.config.command_timeout)
        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler or Scheduler(self.config.workers)
        self._clock = clock

        self._cache: Optional[CacheEntry] = None
        self._generation = 0  # Bumped on every invalidation
        self._pending_refresh: Optional[Future] = None
        self._cache_lock = Lock()  # Thread safety for cache access

        self._repository_root: Optional[str] = None
        self._mappings: Dict[str, str] = {}  # worktree path -> main repository path
        self._mappings_lock = Lock()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        """Release the background scheduler if this service created it."""
        if self._owns_scheduler:
            self.scheduler.shutdown(wait=False)

    # Repository context

    def get_repository_root(self) -> Optional[str]:
        """Get the top-level directory of the workspace's repository.

        Returns:
            Repository root, or None if the workspace is not inside a git repository
        """
        if self._repository_root is None:
            success, output = self.runner.run(self.workspace_root, ["rev-parse", "--show-toplevel"])
            if success and output and output[0].strip():
                self._repository_root = output[0].strip()
            else:
                logger.debug(f"No git repository at {self.workspace_root}: {' '.join(output)}")
        return self._repository_root

    # Cache

    def clear_cache(self):
        """Invalidate the worktree listing cache."""
        with self._cache_lock:
            self._cache = None
            self._generation += 1
        logger.debug("Worktree cache invalidated")

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp >= self.config.cache_ttl

    def _fresh_entry(self) -> Optional[CacheEntry]:
        with self._cache_lock:
            entry = self._cache
        if entry is None or self._is_expired(entry):
            return None
        return entry

    def get_cached_worktrees(self) -> Optional[List[WorktreeInfo]]:
        """Return the cached listing without blocking.

        Safe to call from the foreground context. When the cache is missing or
        expired a background refresh is started for the next call; this call
        does not wait for it.

        Returns:
            Cached worktrees (possibly stale), or None if nothing has been loaded yet
        """
        with self._cache_lock:
            entry = self._cache
        if entry is None or self._is_expired(entry):
            self._schedule_refresh()
        return list(entry.worktrees) if entry is not None else None

    def _schedule_refresh(self):
        with self._cache_lock:
            if self._pending_refresh is not None and not self._pending_refresh.done():
                return
            try:
                future = self.scheduler.submit(self._refresh)
            except SchedulerError as e:
                logger.debug(f"Background refresh not scheduled: {e}")
                return
            self._pending_refresh = future
        logger.debug("Scheduled background worktree refresh")
        future.add_done_callback(_log_refresh_failure)

    def refresh(self) -> List[WorktreeInfo]:
        """Reload the worktree listing, ignoring the cache."""
        return self.scheduler.run(self._refresh)

    def _refresh(self) -> List[WorktreeInfo]:
        with self._cache_lock:
            generation = self._generation

        root = self.get_repository_root()
        if root is None:
            return []

        success, output = self.runner.run(root, ["worktree", "list", "--porcelain"])
        if not success:
            logger.warning(f"Could not list worktrees: {' '.join(output)}")
            return []

        worktrees = parse_worktree_list(output)
        if self.config.check_status:
            worktrees = self._enrich(worktrees)

        entry = CacheEntry(tuple(worktrees), self._clock())
        with self._cache_lock:
            current = generation == self._generation
            if current:
                self._cache = entry
                # Mappings only follow listings that reach the cache
                self._update_mappings(worktrees)
        if not current:
            logger.debug("Discarding worktree listing started before an invalidation")

        logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            logger.debug(f"  {wt}")
        return list(entry.worktrees)

    def _enrich(self, worktrees: List[WorktreeInfo]) -> List[WorktreeInfo]:
        """Fill in dirty and unpushed flags for each worktree."""
        if self.config.sequential or len(worktrees) <= 1:
            return [self._with_status(wt) for wt in worktrees]

        max_workers = min(len(worktrees), get_optimal_worker_count(self.config.workers))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(self._with_status, worktrees))

    def _with_status(self, worktree: WorktreeInfo) -> WorktreeInfo:
        return replace(
            worktree,
            is_dirty=self._has_uncommitted_changes(worktree.path),
            has_unpushed_commits=self._has_unpushed_commits(worktree.path),
        )

    # Reads

    def list_worktrees(self) -> List[WorktreeInfo]:
        """Get all worktrees of the repository.

        Blocks to refresh when the cache is missing or expired. Foreground
        callers have the refresh handed off to the background context.
        """
        entry = self._fresh_entry()
        if entry is not None:
            return list(entry.worktrees)
        return self.refresh()

    def get_worktree_info(self, path) -> Optional[WorktreeInfo]:
        """Get the worktree at ``path``, comparing normalized paths."""
        target = normalize_path(path)
        for worktree in self.list_worktrees():
            if normalize_path(worktree.path) == target:
                return worktree
        return None

    def is_worktree(self) -> bool:
        """Check if the workspace root is a linked (non-main) worktree."""
        info = self.get_worktree_info(self.workspace_root)
        return info is not None and not info.is_main

    def get_main_repository_path(self) -> Optional[str]:
        return next((wt.path for wt in self.list_worktrees() if wt.is_main), None)

    def get_default_worktree_path(self, branch_name: str) -> Optional[str]:
        """Get the path a new worktree for ``branch_name`` goes to by default.

        Returns:
            <main repository>/<default worktree directory>/<sanitized branch>,
            or None without a main repository
        """
        main_path = self.get_main_repository_path()
        if main_path is None:
            return None
        return os.path.join(
            main_path, self.config.default_worktree_directory, sanitize_branch_name(branch_name)
        )

    # Real-time status checks (never cached)

    def has_uncommitted_changes(self, path) -> bool:
        return self.scheduler.run(partial(self._has_uncommitted_changes, str(path)))

    def has_unpushed_commits(self, path) -> bool:
        """Check if the worktree has commits its upstream lacks.

        False when there is no upstream to compare against.
        """
        return self.scheduler.run(partial(self._has_unpushed_commits, str(path)))

    def _has_uncommitted_changes(self, path: str) -> bool:
        if not os.path.isdir(path):
            return False
        success, output = self.runner.run(path, ["status", "--porcelain"])
        return success and any(line.strip() for line in output)

    def _has_unpushed_commits(self, path: str) -> bool:
        if not os.path.isdir(path):
            return False
        success, output = self.runner.run(path, ["log", f"{UPSTREAM_REF}..HEAD", "--oneline"])
        if not success:
            logger.debug(f"Could not compare {path} with its upstream: {' '.join(output)}")
            return False
        return any(line.strip() for line in output)

    # Mutations

    def create_worktree(
        self, branch_name: str, target_path, create_new_branch: bool = False
    ) -> Result[WorktreeInfo]:
        """Create a worktree for a branch.

        Args:
            branch_name: Branch to check out (or create when ``create_new_branch``)
            target_path: Where the worktree goes; relative paths are taken from the repository root
            create_new_branch: Create ``branch_name`` instead of checking out an existing branch

        Returns:
            Result carrying the new worktree
        """
        return self.scheduler.run(
            partial(self._create_worktree, branch_name, str(target_path), create_new_branch)
        )

    def _create_worktree(
        self, branch_name: str, target_path: str, create_new_branch: bool
    ) -> Result[WorktreeInfo]:
        root = self.get_repository_root()
        if root is None:
            return Result.failure(NO_REPOSITORY, ErrorKind.PRECONDITION)
        if not branch_name or not branch_name.strip():
            return Result.failure("Branch name cannot be empty", ErrorKind.PRECONDITION)

        path = os.path.normpath(os.path.join(root, os.path.expanduser(target_path)))
        if os.path.exists(path):
            return Result.failure(f"Path already exists: {path}", ErrorKind.PRECONDITION)

        parent = os.path.dirname(path)
        try:
            os.makedirs(parent, exist_ok=True)
        except OSError as e:
            return Result.failure(f"Could not create directory {parent}: {e}", ErrorKind.PRECONDITION)

        args = ["worktree", "add"]
        if create_new_branch:
            args.extend(["-b", branch_name])
        args.append(path)
        if not create_new_branch:
            args.append(branch_name)

        success, output = self.runner.run(root, args)
        if not success:
            error_msg = "\n".join(output)
            logger.error(f"Failed to create worktree at {path}: {error_msg}")
            return Result.failure(error_msg)
        logger.info(f"Created worktree for {branch_name} at {path}")

        # Worktree list changed
        self.clear_cache()
        target = normalize_path(path)
        for worktree in self._refresh():
            if normalize_path(worktree.path) == target:
                return Result.success(worktree)
        return Result.failure(f"Worktree created at {path} but could not retrieve info")

    def remove_worktree(self, path, force: bool = False) -> Result[None]:
        """Remove the worktree at ``path``.

        Args:
            path: Path to the worktree directory
            force: Remove even if the worktree is dirty or locked

        Returns:
            Result; on failure the error is git's own message
        """
        return self.scheduler.run(partial(self._remove_worktree, str(path), force))

    def _remove_worktree(self, path: str, force: bool) -> Result[None]:
        root = self.get_repository_root()
        if root is None:
            return Result.failure(NO_REPOSITORY, ErrorKind.PRECONDITION)

        args = ["worktree", "remove"]
        if force:
            args.append("--force")
        args.append(path)

        success, output = self.runner.run(root, args)
        if not success:
            error_msg = "\n".join(output)
            logger.error(f"Failed to remove worktree at {path}: {error_msg}")
            return Result.failure(error_msg)
        logger.info(f"Removed worktree at {path}")

        self.clear_cache()
        self._drop_mappings(path)
        self._refresh()
        return Result.success()

    def prune_worktrees(self) -> Result[None]:
        """Prune administrative data of worktrees whose directories are gone."""
        return self.scheduler.run(self._prune_worktrees)

    def _prune_worktrees(self) -> Result[None]:
        root = self.get_repository_root()
        if root is None:
            return Result.failure(NO_REPOSITORY, ErrorKind.PRECONDITION)

        success, output = self.runner.run(root, ["worktree", "prune"])
        if not success:
            error_msg = "\n".join(output)
            logger.error(f"Failed to prune worktrees: {error_msg}")
            return Result.failure(error_msg)
        logger.info("Pruned orphaned worktree metadata")

        self.clear_cache()
        return Result.success()

    # Directory to repository mappings

    def _update_mappings(self, worktrees: List[WorktreeInfo]):
        main_path = next((wt.path for wt in worktrees if wt.is_main), None)
        if main_path is None:
            return
        with self._mappings_lock:
            for worktree in worktrees:
                self._mappings[normalize_path(worktree.path)] = main_path

    def _drop_mappings(self, path: str):
        removed = normalize_path(path)
        with self._mappings_lock:
            stale = [key for key in self._mappings if is_same_or_descendant(key, removed)]
            for key in stale:
                del self._mappings[key]
        if stale:
            logger.debug(f"Dropped {len(stale)} repository mapping(s) under {path}")

    def find_repository_for(self, directory) -> Optional[str]:
        """Get the main repository that ``directory`` belongs to.

        Only worktrees seen in a listing are known; the deepest one containing
        ``directory`` wins.
        """
        target = normalize_path(directory)
        with self._mappings_lock:
            matches = [
                (key, main_path)
                for key, main_path in self._mappings.items()
                if is_same_or_descendant(target, key)
            ]
        if not matches:
            return None
        return max(matches, key=lambda match: len(match[0]))[1]


def _log_refresh_failure(future: Future):
    if not future.cancelled() and future.exception() is not None:
        logger.error(f"Background worktree refresh failed: {future.exception()}")
