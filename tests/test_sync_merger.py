"""Tests for sync/merger.py: merge and diff utilities.

Covers:
- attempt_merge() with clean merges, conflicts, and edge cases
- merge_by_age() older-as-base behaviour
- generate_diff() with additions, removals, and no-change scenarios
"""

from vault_sync.sync.merger import attempt_merge, generate_diff, merge_by_age

# ---------------------------------------------------------------------------
# attempt_merge tests
# ---------------------------------------------------------------------------


class TestAttemptMerge:
    """Tests for attempt_merge()."""

    def test_clean_merge_both_sides(self):
        """Both sides add non-conflicting content: should merge cleanly."""
        base = "line1\nline2\n"
        host = "line1\nHOST\nline2\n"
        remote = "line1\nline2\nREMOTE\n"

        merged, has_conflicts = attempt_merge(base, host, remote)

        assert not has_conflicts
        assert "HOST" in merged
        assert "REMOTE" in merged

    def test_conflict_same_line(self):
        """Both sides modify the same content: conflict markers."""
        merged, has_conflicts = attempt_merge(
            "line1\n", "HOST change\n", "REMOTE change\n"
        )

        assert has_conflicts
        assert "<<<<<<< HOST" in merged
        assert "=======" in merged
        assert ">>>>>>> REMOTE" in merged

    def test_identical_content(self):
        merged, has_conflicts = attempt_merge("same\n", "same\n", "same\n")

        assert not has_conflicts
        assert merged == "same\n"


# ---------------------------------------------------------------------------
# merge_by_age tests
# ---------------------------------------------------------------------------


class TestMergeByAge:
    """The older snapshot is both base and one side."""

    def test_result_is_newer_snapshot(self):
        older = "a\nb\nc\n"
        newer = "a\nB\nc\nd\n"
        assert merge_by_age(older, newer) == newer

    def test_edits_only_in_older_are_superseded(self):
        older = "title\nolder-only line\n"
        newer = "title\n"
        assert merge_by_age(older, newer) == "title\n"

    def test_empty_older(self):
        assert merge_by_age("", "fresh\n") == "fresh\n"

    def test_no_trailing_newline_preserved(self):
        assert merge_by_age("x", "x\ny") == "x\ny"


# ---------------------------------------------------------------------------
# generate_diff tests
# ---------------------------------------------------------------------------


class TestGenerateDiff:
    """Tests for generate_diff()."""

    def test_identical_is_empty(self):
        assert generate_diff("same\n", "same\n") == ""

    def test_addition_and_labels(self):
        diff = generate_diff("a\n", "a\nb\n", "newer", "merged")
        assert "--- newer" in diff
        assert "+++ merged" in diff
        assert "+b" in diff
