"""Shared constants for git-worktree-keeper."""

from dataclasses import dataclass
from typing import List

DEFAULT_WORKTREE_DIRECTORY = ".worktrees"

# Seconds a worktree listing stays fresh
CACHE_TTL_SECONDS = 5.0

# Seconds before a git invocation is killed
COMMAND_TIMEOUT_SECONDS = 30.0

SHORT_HASH_LENGTH = 7

# Upstream of the current branch, used for unpushed commit detection
UPSTREAM_REF = "@{u}"


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("name", "Worktree", 30),
    ColumnDefinition("branch", "Branch", 20),
    ColumnDefinition("commit", "Commit", 8),
    ColumnDefinition("status", "Status", 8),
    ColumnDefinition("path", "Path"),
]


# Symbol constants
SYMBOL_MAIN = "★"
SYMBOL_DIRTY = "M"
SYMBOL_UNPUSHED = "↑"
SYMBOL_OPEN = "●"
SYMBOL_CURRENT = " *"
SYMBOL_DETACHED = "(detached)"


class WorktreeStyleType:
    """Style types for worktree rows."""

    MAIN = "main"
    OPEN = "open"
    WARNING = "warning"  # Dirty or has unpushed commits
    CLEAN = "clean"


# CLI colors (Rich color names)
CLI_COLORS = {
    WorktreeStyleType.MAIN: "cyan",
    WorktreeStyleType.OPEN: "magenta",
    WorktreeStyleType.WARNING: "yellow",
    WorktreeStyleType.CLEAN: None,  # Default color
}


LEGEND_TEXT = """
Legend:
★ = Main worktree         * = Current workspace
M = Uncommitted changes   ↑ = Unpushed commits
● = Open in another session

Colors:
Cyan = Main worktree
Magenta = Open elsewhere (can't remove)
Yellow = Has local work (removal asks first)
"""
