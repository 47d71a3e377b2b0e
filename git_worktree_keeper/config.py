"""Configuration handling for git-worktree-keeper"""

import os
from dataclasses import dataclass
from typing import Optional

from git_worktree_keeper.constants import (
    CACHE_TTL_SECONDS,
    COMMAND_TIMEOUT_SECONDS,
    DEFAULT_WORKTREE_DIRECTORY,
)


@dataclass
class Config:
    """Configuration for git-worktree-keeper with validation."""

    # Per-workspace setting: where new worktrees go, relative to the main repository
    default_worktree_directory: str = DEFAULT_WORKTREE_DIRECTORY

    # Git invocation
    git_executable: str = "git"
    command_timeout: float = COMMAND_TIMEOUT_SECONDS

    # Listing cache
    cache_ttl: float = CACHE_TTL_SECONDS
    check_status: bool = True  # Populate dirty/unpushed flags on refresh

    # Execution modes
    sequential: bool = False  # Check worktree status one at a time
    workers: Optional[int] = None  # Number of parallel workers (None = auto-detect)
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_default_worktree_directory()
        self._validate_positive("cache_ttl", self.cache_ttl)
        self._validate_positive("command_timeout", self.command_timeout)
        self._validate_git_executable()
        self._validate_workers()

    def _validate_default_worktree_directory(self):
        """Validate default_worktree_directory is a non-empty relative path."""
        if not self.default_worktree_directory or not self.default_worktree_directory.strip():
            raise ValueError("default_worktree_directory cannot be empty")
        self.default_worktree_directory = self.default_worktree_directory.strip()
        if os.path.isabs(self.default_worktree_directory):
            raise ValueError(
                "default_worktree_directory must be relative to the repository root, "
                f"got '{self.default_worktree_directory}'"
            )

    @staticmethod
    def _validate_positive(name: str, value: float):
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")

    def _validate_git_executable(self):
        if not self.git_executable or not self.git_executable.strip():
            raise ValueError("git_executable cannot be empty")

    def _validate_workers(self):
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "default_worktree_directory": self.default_worktree_directory,
            "git_executable": self.git_executable,
            "command_timeout": self.command_timeout,
            "cache_ttl": self.cache_ttl,
            "check_status": self.check_status,
            "sequential": self.sequential,
            "workers": self.workers,
            "verbose": self.verbose,
            "debug": self.debug,
        }

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = set(cls.__dataclass_fields__)
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
