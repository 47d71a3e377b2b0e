"""Parser for ``git worktree list --porcelain`` output.

Format (one block per worktree, blocks separated by blank lines)::

    worktree /path/to/worktree
    HEAD <commit sha>
    branch refs/heads/<name>     (or "detached")
    bare                         (main entry of a bare repository)
    locked <reason>              (ignored)
    prunable <reason>            (ignored)
"""

from dataclasses import replace
from typing import Iterable, List, Optional

from git_worktree_keeper.models.worktree import WorktreeInfo

BRANCH_PREFIX = "refs/heads/"


def parse_worktree_list(lines: Iterable[str]) -> List[WorktreeInfo]:
    """Parse porcelain worktree listing lines into WorktreeInfo records.

    Blocks without a HEAD line are dropped. A block marked ``bare`` is the
    main worktree; otherwise the first emitted worktree is. Dirty and
    unpushed flags are left at their defaults.
    """
    worktrees: List[WorktreeInfo] = []
    path: Optional[str] = None
    branch: Optional[str] = None
    commit: Optional[str] = None
    is_bare = False
    has_explicit_main = False

    def flush():
        nonlocal has_explicit_main
        if path is None or not commit:
            return
        if has_explicit_main:
            is_main = False
        elif is_bare:
            # An explicit marker outranks the first-worktree fallback
            worktrees[:] = [replace(wt, is_main=False) for wt in worktrees]
            is_main = has_explicit_main = True
        else:
            is_main = not worktrees
        worktrees.append(
            WorktreeInfo(path=path, branch=branch, commit_hash=commit, is_main=is_main)
        )

    for line in lines:
        line = line.rstrip("\r\n")

        if line.startswith("worktree "):
            flush()
            path = line[len("worktree "):]
            branch = None
            commit = None
            is_bare = False
        elif line.startswith("HEAD "):
            commit = line[len("HEAD "):].strip()
        elif line.startswith("branch "):
            ref = line[len("branch "):]
            branch = ref[len(BRANCH_PREFIX):] if ref.startswith(BRANCH_PREFIX) else ref
        elif line == "bare":
            is_bare = True
        # Blank lines end a block; the next "worktree" line or end of input
        # flushes it. Anything else (detached, locked, prunable) is ignored.

    flush()
    return worktrees
