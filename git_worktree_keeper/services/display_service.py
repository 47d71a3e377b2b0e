"""Display service for worktree listings"""
from typing import Iterable, List, Optional, Set

from rich.console import Console
from rich.table import Table

from git_worktree_keeper.constants import CLI_COLORS, COLUMNS, LEGEND_TEXT
from git_worktree_keeper.formatters import (
    format_branch,
    format_name,
    format_status,
    get_worktree_style_type,
)
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.worktree import WorktreeInfo
from git_worktree_keeper.utils.paths import normalize_path

logger = get_logger(__name__)


class DisplayService:
    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console()
        self.verbose = verbose

    def build_worktree_table(
            self,
            worktrees: List[WorktreeInfo],
            open_paths: Iterable[str] = (),
            current_path: Optional[str] = None,
        ) -> Table:
        """Build a table of worktrees.

        Args:
            worktrees: Worktrees to show, in listing order
            open_paths: Normalized paths open in other sessions
            current_path: Workspace root, marked as current
        """
        open_set: Set[str] = set(open_paths)
        current = normalize_path(current_path) if current_path else None

        table = Table()
        for col in COLUMNS:
            if col.width:
                table.add_column(col.label, min_width=col.width)
            else:
                table.add_column(col.label, overflow="fold")

        for worktree in worktrees:
            key = normalize_path(worktree.path)
            is_current = key == current
            is_open = key in open_set and not is_current
            style = CLI_COLORS.get(get_worktree_style_type(worktree, is_open))
            table.add_row(
                format_name(worktree, is_current),
                format_branch(worktree),
                worktree.short_hash,
                format_status(worktree, is_open),
                worktree.path,
                style=style,
            )
        return table

    def display_worktree_table(
            self,
            worktrees: List[WorktreeInfo],
            open_paths: Iterable[str] = (),
            current_path: Optional[str] = None,
            show_legend: bool = False,
        ) -> None:
        """Print a table of worktrees."""
        if not worktrees:
            self.console.print("[yellow]No worktrees found[/yellow]")
            return
        logger.debug(f"Displaying {len(worktrees)} worktrees")
        self.console.print(self.build_worktree_table(worktrees, open_paths, current_path))
        if show_legend or self.verbose:
            self.console.print(LEGEND_TEXT, style="dim")

    def display_worktree_details(self, worktree: WorktreeInfo, is_open: bool = False) -> None:
        """Print every field of a single worktree."""
        self.console.print(f"[bold]{worktree.display_name}[/bold]")
        self.console.print(f"  Path:      {worktree.path}")
        self.console.print(f"  Branch:    {worktree.branch or '(detached)'}")
        self.console.print(f"  Commit:    {worktree.commit_hash}")
        self.console.print(f"  Main:      {'yes' if worktree.is_main else 'no'}")
        self.console.print(f"  Dirty:     {'yes' if worktree.is_dirty else 'no'}")
        self.console.print(f"  Unpushed:  {'yes' if worktree.has_unpushed_commits else 'no'}")
        self.console.print(f"  Open:      {'yes' if is_open else 'no'}")
