"""Text merge and diff utilities for the sync engine.

Uses the ``merge3`` library for three-way merging (the same algorithm used
by Bazaar/Breezy) and ``difflib`` for unified diff generation.

Key design choices:

* No common ancestor is tracked per path.  ``merge_by_age`` uses the
  older snapshot as the merge base *and* as one side, with the newer
  snapshot as the incoming change.  Edits only present in the older
  snapshot are therefore superseded by the newer one.
* Conflict markers follow Git convention with custom labels:
  ``<<<<<<< HOST``, ``=======``, ``>>>>>>> REMOTE``.
"""

from __future__ import annotations

import difflib

from merge3 import Merge3


def attempt_merge(
    base_content: str,
    host_content: str,
    remote_content: str,
) -> tuple[str, bool]:
    """Perform a three-way merge of host and remote changes against a base.

    Args:
        base_content: The content used as the common reference point.
        host_content: The host-side content.
        remote_content: The remote-side content.

    Returns:
        A tuple of ``(merged_text, has_conflicts)`` where *merged_text* is
        the result of the merge (possibly containing conflict markers) and
        *has_conflicts* is ``True`` if conflict markers are present.
    """
    base_lines = base_content.splitlines(True)
    host_lines = host_content.splitlines(True)
    remote_lines = remote_content.splitlines(True)

    m3 = Merge3(base_lines, host_lines, remote_lines)

    merged_lines = list(
        m3.merge_lines(
            name_a="HOST",
            name_b="REMOTE",
            start_marker="<<<<<<< HOST",
            mid_marker="=======",
            end_marker=">>>>>>> REMOTE",
        )
    )

    merged_text = "".join(merged_lines)
    has_conflicts = "<<<<<<< HOST" in merged_text

    return merged_text, has_conflicts


def merge_by_age(older_content: str, newer_content: str) -> str:
    """Merge two snapshots using the older one as base.

    Args:
        older_content: Snapshot with the earlier ``updated_at``.
        newer_content: Snapshot with the later ``updated_at``.

    Returns:
        The merged text.
    """
    merged_text, _ = attempt_merge(
        older_content, older_content, newer_content
    )
    return merged_text


def generate_diff(
    old_content: str,
    new_content: str,
    label_old: str = "old",
    label_new: str = "new",
) -> str:
    """Generate a unified diff between two strings.

    Args:
        old_content: The original content.
        new_content: The modified content.
        label_old: Label for the old file in the diff header.
        label_new: Label for the new file in the diff header.

    Returns:
        A unified diff string.  Empty string if the contents are identical.
    """
    old_lines = old_content.splitlines(True)
    new_lines = new_content.splitlines(True)

    diff_lines = difflib.unified_diff(
        old_lines,
        new_lines,
        fromfile=label_old,
        tofile=label_new,
    )

    return "".join(diff_lines)
