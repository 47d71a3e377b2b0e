"""Formatting helpers shared by the CLI output."""

from git_worktree_keeper.constants import (
    SYMBOL_CURRENT,
    SYMBOL_DETACHED,
    SYMBOL_DIRTY,
    SYMBOL_MAIN,
    SYMBOL_OPEN,
    SYMBOL_UNPUSHED,
    WorktreeStyleType,
)
from git_worktree_keeper.models.worktree import WorktreeInfo


def format_name(worktree: WorktreeInfo, is_current: bool = False) -> str:
    """Format the worktree name column."""
    name = worktree.display_name
    if worktree.branch is None:
        name = f"{name} {SYMBOL_DETACHED}"
    if is_current:
        name += SYMBOL_CURRENT
    return name


def format_branch(worktree: WorktreeInfo) -> str:
    return worktree.branch or SYMBOL_DETACHED


def format_status(worktree: WorktreeInfo, is_open: bool = False) -> str:
    """Format status markers, e.g. "★" or "M ↑ ●"."""
    markers = []
    if worktree.is_main:
        markers.append(SYMBOL_MAIN)
    if worktree.is_dirty:
        markers.append(SYMBOL_DIRTY)
    if worktree.has_unpushed_commits:
        markers.append(SYMBOL_UNPUSHED)
    if is_open:
        markers.append(SYMBOL_OPEN)
    return " ".join(markers)


def get_worktree_style_type(worktree: WorktreeInfo, is_open: bool = False) -> str:
    if worktree.is_main:
        return WorktreeStyleType.MAIN
    if is_open:
        return WorktreeStyleType.OPEN
    if worktree.is_dirty or worktree.has_unpushed_commits:
        return WorktreeStyleType.WARNING
    return WorktreeStyleType.CLEAN

