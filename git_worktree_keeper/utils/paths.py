"""Path helpers shared by the registry and the open-worktree tracker."""

import os
import re


def normalize_path(path) -> str:
    """Absolute, symlink-free, case-normalized form of ``path`` for comparisons."""
    return os.path.normcase(os.path.realpath(os.path.expanduser(str(path))))


def is_same_or_descendant(path: str, ancestor: str) -> bool:
    """Check if normalized ``path`` is ``ancestor`` or lies below it."""
    if path == ancestor:
        return True
    prefix = ancestor if ancestor.endswith(os.sep) else ancestor + os.sep
    return path.startswith(prefix)


def sanitize_branch_name(branch_name: str) -> str:
    """Turn a branch name into a single filesystem-safe path segment."""
    return re.sub(r"[/\\ ]", "-", branch_name)
