"""Command-line entry point for git-worktree-keeper"""

import os
import sys
from typing import List, Optional

from rich.console import Console
from rich.prompt import Confirm

from git_worktree_keeper.cli.args import parse_args
from git_worktree_keeper.config import Config
from git_worktree_keeper.core import WorktreeKeeper
from git_worktree_keeper.logging_config import setup_logging
from git_worktree_keeper.models.result import ErrorKind

console = Console()


def make_confirm(assume_yes: bool):
    """Build the confirmation hook used by the removal safety checks."""
    def confirm(title: str, message: str) -> bool:
        if assume_yes:
            console.print(f"[yellow]{title}:[/yellow] {message.splitlines()[0]} (continuing, --yes)")
            return True
        console.print(f"[yellow]{title}[/yellow]")
        return Confirm.ask(message, console=console, default=False)
    return confirm


def run_command(keeper: WorktreeKeeper, args) -> int:
    """Run the parsed subcommand and return the exit code."""
    if not keeper.has_repository():
        console.print("[red]Error: not inside a git repository[/red]")
        return 1

    if args.command == "list":
        keeper.show_worktrees(refresh=args.refresh, show_legend=args.legend)
        return 0

    if args.command == "info":
        if keeper.show_worktree(args.target) is None:
            console.print(f"[red]No worktree matches '{args.target}'[/red]")
            return 1
        return 0

    if args.command == "path":
        path = keeper.service.get_default_worktree_path(args.branch)
        if path is None:
            console.print("[red]No main repository found[/red]")
            return 1
        console.print(path, highlight=False)
        return 0

    if args.command == "create":
        result = keeper.create(args.branch, path=args.path, create_new_branch=args.new_branch)
        if not result.ok:
            console.print(f"[red]Failed to create worktree: {result.error}[/red]")
            return 1
        console.print(f"[green]Created worktree '{result.value.display_name}' at {result.value.path}[/green]")
        return 0

    if args.command == "remove":
        result = keeper.remove(args.target, make_confirm(args.yes), force=args.force)
        if result.ok:
            console.print(f"[green]Removed worktree '{args.target}'[/green]")
            return 0
        if result.kind is ErrorKind.CANCELLED:
            console.print(f"[yellow]{result.error}[/yellow]")
        elif result.kind is ErrorKind.SAFETY_VIOLATION:
            console.print(f"[red]Cannot remove worktree: {result.error}[/red]")
        else:
            console.print(f"[red]Failed to remove worktree '{args.target}': {result.error}[/red]")
        return 1

    if args.command == "prune":
        result = keeper.prune()
        if not result.ok:
            console.print(f"[red]Failed to prune worktrees: {result.error}[/red]")
            return 1
        console.print("[green]Pruned stale worktree metadata[/green]")
        return 0

    console.print(f"[red]Unknown command: {args.command}[/red]")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = None
    try:
        parsed_args = parse_args(argv)

        setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

        config = Config(
            default_worktree_directory=parsed_args.worktree_dir,
            command_timeout=parsed_args.timeout,
            check_status=not parsed_args.no_status,
            sequential=parsed_args.sequential,
            workers=parsed_args.workers,
            verbose=parsed_args.verbose,
            debug=parsed_args.debug,
        )

        if parsed_args.debug:
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        workspace = parsed_args.directory or os.getcwd()
        with WorktreeKeeper(workspace, config, console=console) as keeper:
            with keeper.workspace_session():
                return run_command(keeper, parsed_args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args is not None and parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
