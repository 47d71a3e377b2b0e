"""Pytest fixtures for git-worktree-keeper tests"""
import os
import tempfile
import threading
from pathlib import Path

import git
import pytest

from git_worktree_keeper.config import Config
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.services.tracker import OpenWorktreeTracker

HASH_MAIN = "1111111111111111111111111111111111111111"
HASH_FEATURE = "2222222222222222222222222222222222222222"


class FakeRunner:
    """Scripted stand-in for CommandRunner.

    Responses are keyed by the git argument tuple. A response is either a
    ``(success, lines)`` tuple or a callable taking ``(working_dir, args)``.
    """

    def __init__(self):
        self.responses = {}
        self.calls = []
        self._lock = threading.Lock()

    def set(self, args, response):
        self.responses[tuple(args)] = response

    def run(self, working_dir, args, timeout=None):
        args = tuple(args)
        with self._lock:
            self.calls.append((working_dir, args))
        response = self.responses.get(args)
        if response is None:
            return False, [f"unexpected command: git {' '.join(args)}"]
        if callable(response):
            return response(working_dir, args)
        success, lines = response
        return success, list(lines)

    def count(self, *args) -> int:
        with self._lock:
            return sum(1 for _, called in self.calls if called == tuple(args))


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def listing(*blocks):
    """Build porcelain listing lines from (path, hash, branch) tuples."""
    lines = []
    for path, commit, branch in blocks:
        lines.append(f"worktree {path}")
        lines.append(f"HEAD {commit}")
        lines.append(f"branch refs/heads/{branch}" if branch else "detached")
        lines.append("")
    return lines


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def fast_config():
    """Config that skips the per-worktree status checks."""
    return Config(check_status=False)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_runner():
    """FakeRunner answering for a repository at /r with two worktrees."""
    runner = FakeRunner()
    runner.set(("rev-parse", "--show-toplevel"), (True, ["/r"]))
    runner.set(
        ("worktree", "list", "--porcelain"),
        (True, listing(("/r", HASH_MAIN, "main"), ("/r/.worktrees/f", HASH_FEATURE, "feature/x"))),
    )
    return runner


@pytest.fixture
def fake_service(fake_runner, fast_config, fake_clock):
    """WorktreeService for /r backed by the fake runner and clock."""
    service = WorktreeService("/r", fast_config, runner=fake_runner, clock=fake_clock)
    yield service
    service.close()


@pytest.fixture
def tracker():
    """A tracker separate from the process-wide one."""
    tracker = OpenWorktreeTracker()
    yield tracker
    tracker.clear()


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch('-M', 'main')

    # Keep worktrees created inside the repository out of its status
    exclude_file = Path(repo.git_dir) / "info" / "exclude"
    exclude_file.parent.mkdir(parents=True, exist_ok=True)
    exclude_file.write_text(".worktrees/\n")

    yield repo

    repo.close()


@pytest.fixture
def git_repo_with_worktree(git_repo):
    """Create a Git repository with one linked worktree on branch feature/test."""
    repo = git_repo
    worktree_path = Path(repo.working_dir) / ".worktrees" / "feature-test"
    repo.git.worktree("add", "-b", "feature/test", str(worktree_path))

    yield repo, worktree_path
