"""Command-line argument parsing for git-worktree-keeper."""

import argparse
from typing import List, Optional

from git_worktree_keeper.__version__ import __version__
from git_worktree_keeper.constants import COMMAND_TIMEOUT_SECONDS, DEFAULT_WORKTREE_DIRECTORY


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-worktree-keeper",
        description="List, create and safely remove Git worktrees",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument("--version", action="version", version=f"git-worktree-keeper {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument(
        "-C",
        "--directory",
        default=None,
        metavar="DIR",
        help="Run as if started in DIR (default: current directory)",
    )
    parser.add_argument(
        "--worktree-dir",
        default=DEFAULT_WORKTREE_DIRECTORY,
        metavar="DIR",
        help=f"Directory for new worktrees, relative to the main repository (default: {DEFAULT_WORKTREE_DIRECTORY})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=COMMAND_TIMEOUT_SECONDS,
        metavar="SECONDS",
        help=f"Kill git commands running longer than this (default: {COMMAND_TIMEOUT_SECONDS:g})",
    )
    parser.add_argument(
        "--no-status",
        action="store_true",
        help="Skip checking worktrees for uncommitted changes and unpushed commits",
    )
    parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Number of parallel workers for status checks (default: auto-detect)",
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Check worktree status one at a time",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    list_parser = subparsers.add_parser("list", help="List worktrees (default)")
    list_parser.add_argument("--refresh", action="store_true", help="Bypass the listing cache")
    list_parser.add_argument("--legend", action="store_true", help="Explain the status markers")

    create_parser = subparsers.add_parser("create", help="Create a worktree")
    create_parser.add_argument("branch", help="Branch to check out")
    create_parser.add_argument(
        "-b",
        "--new-branch",
        action="store_true",
        help="Create the branch instead of checking out an existing one",
    )
    create_parser.add_argument(
        "--path", default=None, help="Where to create the worktree (default: <worktree-dir>/<branch>)"
    )

    remove_parser = subparsers.add_parser("remove", help="Remove a worktree")
    remove_parser.add_argument("target", help="Path or branch of the worktree")
    remove_parser.add_argument(
        "--force",
        action="store_true",
        help="Remove even with uncommitted changes or unpushed commits",
    )
    remove_parser.add_argument(
        "-y", "--yes", action="store_true", help="Answer yes to every confirmation"
    )

    info_parser = subparsers.add_parser("info", help="Show details of one worktree")
    info_parser.add_argument("target", help="Path or branch of the worktree")

    path_parser = subparsers.add_parser("path", help="Print the default path for a branch's worktree")
    path_parser.add_argument("branch", help="Branch name")

    subparsers.add_parser("prune", help="Prune metadata of worktrees whose directories are gone")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    args = build_parser().parse_args(argv)
    if args.command is None:
        args.command = "list"
        args.refresh = False
        args.legend = False
    return args
