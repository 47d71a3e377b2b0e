"""Tests for the porcelain worktree listing parser"""

from conftest import HASH_FEATURE, HASH_MAIN, listing

from git_worktree_keeper.services.git.porcelain import parse_worktree_list


class TestParseWorktreeList:
    """Test parsing of `git worktree list --porcelain` output."""

    def test_two_worktrees(self):
        """Test the documented main + feature listing."""
        lines = [
            "worktree /r",
            f"HEAD {HASH_MAIN}",
            "branch refs/heads/main",
            "",
            "worktree /r/.worktrees/f",
            f"HEAD {HASH_FEATURE}",
            "branch refs/heads/feature/x",
            "",
        ]

        worktrees = parse_worktree_list(lines)

        assert len(worktrees) == 2
        assert worktrees[0].path == "/r"
        assert worktrees[0].branch == "main"
        assert worktrees[0].commit_hash == HASH_MAIN
        assert worktrees[0].is_main is True
        assert worktrees[1].path == "/r/.worktrees/f"
        assert worktrees[1].branch == "feature/x"
        assert worktrees[1].commit_hash == HASH_FEATURE
        assert worktrees[1].is_main is False

    def test_blocks_returned_in_order(self):
        """Test that N blocks give N records in block order."""
        blocks = [(f"/repo/wt{i}", f"{i:040d}", f"branch-{i}") for i in range(5)]

        worktrees = parse_worktree_list(listing(*blocks))

        assert [wt.path for wt in worktrees] == [b[0] for b in blocks]
        assert [wt.commit_hash for wt in worktrees] == [b[1] for b in blocks]
        assert [wt.branch for wt in worktrees] == [b[2] for b in blocks]
        assert [wt.is_main for wt in worktrees] == [True, False, False, False, False]

    def test_detached_head_has_no_branch(self):
        lines = listing(("/r", HASH_MAIN, "main"), ("/r/.worktrees/detached", HASH_FEATURE, None))

        worktrees = parse_worktree_list(lines)

        assert worktrees[1].branch is None
        assert worktrees[1].commit_hash == HASH_FEATURE
        assert worktrees[1].display_name == "detached"

    def test_nested_branch_name_preserved(self):
        worktrees = parse_worktree_list(listing(("/r", HASH_MAIN, "feature/x/y")))

        assert worktrees[0].branch == "feature/x/y"

    def test_last_block_without_trailing_blank_line(self):
        """Test that the final record is not lost without a trailing blank line."""
        lines = listing(("/r", HASH_MAIN, "main"), ("/r/wt", HASH_FEATURE, "dev"))[:-1]

        worktrees = parse_worktree_list(lines)

        assert [wt.path for wt in worktrees] == ["/r", "/r/wt"]
        assert worktrees[0].is_main is True
        assert worktrees[1].is_main is False

    def test_single_block_without_blank_line_is_main(self):
        worktrees = parse_worktree_list(["worktree /r", f"HEAD {HASH_MAIN}", "branch refs/heads/main"])

        assert len(worktrees) == 1
        assert worktrees[0].is_main is True

    def test_empty_input(self):
        assert parse_worktree_list([]) == []

    def test_only_blank_lines(self):
        assert parse_worktree_list(["", "", ""]) == []

    def test_bare_without_head_is_dropped(self):
        """Test that a bare entry lacking HEAD is skipped and the next worktree is main."""
        lines = [
            "worktree /home/user/project.git",
            "bare",
            "",
            "worktree /home/user/worktrees/main",
            f"HEAD {HASH_MAIN}",
            "branch refs/heads/main",
            "",
        ]

        worktrees = parse_worktree_list(lines)

        assert len(worktrees) == 1
        assert worktrees[0].path == "/home/user/worktrees/main"
        assert worktrees[0].is_main is True

    def test_explicit_bare_marker_wins_regardless_of_position(self):
        lines = [
            "worktree /r/first",
            f"HEAD {HASH_FEATURE}",
            "branch refs/heads/first",
            "",
            "worktree /r/bare",
            f"HEAD {HASH_MAIN}",
            "bare",
            "",
            "worktree /r/third",
            f"HEAD {HASH_FEATURE}",
            "branch refs/heads/third",
            "",
        ]

        worktrees = parse_worktree_list(lines)

        assert [wt.is_main for wt in worktrees] == [False, True, False]

    def test_exactly_one_main(self):
        worktrees = parse_worktree_list(
            listing(("/a", HASH_MAIN, "main"), ("/b", HASH_FEATURE, "b"), ("/c", HASH_FEATURE, "c"))
        )

        assert sum(wt.is_main for wt in worktrees) == 1

    def test_unknown_lines_are_ignored(self):
        lines = [
            "worktree /r",
            f"HEAD {HASH_MAIN}",
            "branch refs/heads/main",
            "",
            "worktree /r/.worktrees/locked",
            f"HEAD {HASH_FEATURE}",
            "branch refs/heads/locked",
            "locked reason: portable disk",
            "prunable gitdir file points to non-existent location",
            "something-new-in-a-future-git",
            "",
        ]

        worktrees = parse_worktree_list(lines)

        assert len(worktrees) == 2
        assert worktrees[1].branch == "locked"

    def test_path_with_spaces(self):
        worktrees = parse_worktree_list(listing(("/home/me/My Projects/repo", HASH_MAIN, "main")))

        assert worktrees[0].path == "/home/me/My Projects/repo"
        assert worktrees[0].display_name == "main"

    def test_windows_path_passed_through(self):
        worktrees = parse_worktree_list(listing(("C:\\work\\repo", HASH_MAIN, "main")))

        assert worktrees[0].path == "C:\\work\\repo"

    def test_status_flags_default_false(self):
        worktrees = parse_worktree_list(listing(("/r", HASH_MAIN, "main")))

        assert worktrees[0].is_dirty is False
        assert worktrees[0].has_unpushed_commits is False
