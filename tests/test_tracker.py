"""Tests for the open worktree tracker"""
import threading

import pytest

from git_worktree_keeper.models.session import Session
from git_worktree_keeper.services.tracker import OpenWorktreeTracker


class Handle:
    """Minimal session handle with controllable liveness."""

    def __init__(self, alive=True):
        self.alive = alive

    def is_alive(self):
        return self.alive


class BrokenHandle:
    def is_alive(self):
        raise RuntimeError("handle is gone")


class TestRegistration:
    """Test registering and unregistering worktrees."""

    def test_register_and_query(self, tracker):
        handle = Handle()
        tracker.register("/r/.worktrees/f", handle)

        assert tracker.is_open("/r/.worktrees/f")
        assert tracker.get_owner("/r/.worktrees/f") is handle

    def test_unknown_path_is_not_open(self, tracker):
        assert tracker.is_open("/r/never") is False
        assert tracker.get_owner("/r/never") is None

    def test_paths_are_normalized(self, tracker):
        tracker.register("/r/.worktrees/f/", Handle())

        assert tracker.is_open("/r/.worktrees/./f")
        assert tracker.is_open("/r/x/../.worktrees/f")

    def test_register_replaces_previous_owner(self, tracker):
        first, second = Handle(), Handle()
        tracker.register("/r/a", first)
        tracker.register("/r/a", second)

        assert tracker.get_owner("/r/a") is second

    def test_unregister(self, tracker):
        tracker.register("/r/a", Handle())
        tracker.unregister("/r/a")

        assert tracker.is_open("/r/a") is False

    def test_unregister_unknown_path_is_noop(self, tracker):
        tracker.unregister("/r/unknown")

        assert tracker.list_open() == set()

    def test_list_open(self, tracker):
        tracker.register("/r/a", Handle())
        tracker.register("/r/b", Handle())

        assert tracker.list_open() == {"/r/a", "/r/b"}

    def test_clear(self, tracker):
        tracker.register("/r/a", Handle())
        tracker.clear()

        assert tracker.list_open() == set()


class TestLiveness:
    """Test that terminated sessions stop counting as open."""

    def test_dead_handle_is_absent_and_pruned(self, tracker):
        handle = Handle()
        tracker.register("/r/a", handle)
        handle.alive = False

        assert tracker.is_open("/r/a") is False
        # Coming back to life does not resurrect a pruned entry
        handle.alive = True
        assert tracker.is_open("/r/a") is False

    def test_list_open_prunes_dead_handles(self, tracker):
        tracker.register("/r/a", Handle())
        tracker.register("/r/b", Handle(alive=False))

        assert tracker.list_open() == {"/r/a"}

    def test_handle_that_raises_counts_as_terminated(self, tracker):
        tracker.register("/r/a", BrokenHandle())

        assert tracker.is_open("/r/a") is False

    def test_thread_handle(self, tracker):
        release = threading.Event()
        thread = threading.Thread(target=release.wait, args=(10,))
        thread.start()
        tracker.register("/r/a", thread)

        assert tracker.is_open("/r/a") is True

        release.set()
        thread.join(timeout=10)
        assert tracker.is_open("/r/a") is False


class TestSessions:
    """Test session lifecycle hooks."""

    def test_session_opened_and_closed(self, tracker):
        session = Session(path="/r/a", name="editor")
        tracker.session_opened(session)
        assert tracker.get_owner("/r/a") is session

        tracker.session_closed(session)

        assert tracker.is_open("/r/a") is False
        assert session.closed is True

    def test_closing_old_session_keeps_newer_one(self, tracker):
        old = Session(path="/r/a")
        new = Session(path="/r/a")
        tracker.session_opened(old)
        tracker.session_opened(new)

        tracker.session_closed(old)

        assert tracker.get_owner("/r/a") is new

    def test_closed_session_without_hook_is_pruned(self, tracker):
        session = Session(path="/r/a")
        tracker.session_opened(session)

        session.close()

        assert tracker.is_open("/r/a") is False

    def test_open_session_context(self, tracker):
        with tracker.open_session("/r/a") as session:
            assert tracker.get_owner("/r/a") is session

        assert tracker.is_open("/r/a") is False
        assert session.closed is True

    def test_open_session_with_handle(self, tracker):
        handle = Handle()
        with tracker.open_session("/r/a", handle) as registered:
            assert registered is handle
            assert tracker.is_open("/r/a")

        assert tracker.is_open("/r/a") is False

    def test_open_session_unregisters_on_error(self, tracker):
        with pytest.raises(RuntimeError):
            with tracker.open_session("/r/a"):
                raise RuntimeError("boom")

        assert tracker.is_open("/r/a") is False


class TestInstance:
    """Test the process-wide tracker."""

    def test_get_instance_is_shared(self):
        try:
            assert OpenWorktreeTracker.get_instance() is OpenWorktreeTracker.get_instance()
        finally:
            OpenWorktreeTracker.reset_instance()

    def test_reset_instance(self):
        first = OpenWorktreeTracker.get_instance()
        first.register("/r/a", Handle())

        OpenWorktreeTracker.reset_instance()

        assert first.list_open() == set()
        assert OpenWorktreeTracker.get_instance() is not first
        OpenWorktreeTracker.reset_instance()


class TestConcurrency:
    """Test concurrent access."""

    def test_concurrent_register_and_query(self, tracker):
        errors = []

        def worker(index):
            try:
                path = f"/r/w{index}"
                with tracker.open_session(path):
                    for _ in range(50):
                        tracker.list_open()
                        assert tracker.is_open(path)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        assert tracker.list_open() == set()

    def test_slow_handle_does_not_block_other_paths(self, tracker):
        checking = threading.Event()
        release = threading.Event()

        class SlowHandle:
            def is_alive(self):
                checking.set()
                release.wait(timeout=10)
                return True

        tracker.register("/r/slow", SlowHandle())
        listing = threading.Thread(target=tracker.list_open)
        listing.start()
        assert checking.wait(timeout=10)

        answers = []

        def open_other_path():
            tracker.register("/r/fast", Handle())
            answers.append(tracker.is_open("/r/fast"))

        other = threading.Thread(target=open_other_path)
        other.start()
        other.join(timeout=5)
        finished_while_checking = not other.is_alive()
        release.set()
        listing.join(timeout=10)
        other.join(timeout=10)

        assert finished_while_checking
        assert answers == [True]

    def test_prune_keeps_path_re_registered_during_check(self, tracker):
        replacement = Handle()

        class DyingHandle:
            def is_alive(self):
                tracker.register("/r/a", replacement)
                return False

        tracker.register("/r/a", DyingHandle())

        assert tracker.get_owner("/r/a") is None
        assert tracker.get_owner("/r/a") is replacement
