"""Sync report formatting functions.

Provides human-readable and machine-readable output for sync passes:

- ``format_sync_report`` -- full post-sync summary.
- ``format_dry_run_preview`` -- dry-run preview grouped by action.
- ``report_to_json`` -- structured dict for programmatic consumers.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Any

from .models import SyncOperation

if TYPE_CHECKING:
    from .models import SyncReport, SyncResult

_SECTIONS: list[tuple[SyncOperation, str]] = [
    (SyncOperation.PUSH, "Pushed to remote:"),
    (SyncOperation.PULL, "Pulled from remote:"),
    (SyncOperation.REMOVE, "Removed:"),
    (SyncOperation.CONFLICT, "Conflicts:"),
]

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def _conflict_line(result: SyncResult) -> str:
    strategy = result.strategy.value if result.strategy else "unknown"
    if result.effective_operation is None:
        outcome = "left as is"
    elif result.effective_operation == SyncOperation.CONFLICT:
        outcome = "merged"
    else:
        outcome = result.effective_operation.value
    return f"  {result.path}: {strategy} ({outcome})"


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Sections are only included when they contain at least one result.
    Pruned tombstones are summarised by count only.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = "Sync report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Synced {len(report.results)} files: "
        f"{len(report.pushed)} pushed, {len(report.pulled)} pulled, "
        f"{len(report.removed)} removed, "
        f"{len(report.conflicts)} conflicts"
    )
    lines.append("")

    by_operation = {
        SyncOperation.PUSH: report.pushed,
        SyncOperation.PULL: report.pulled,
        SyncOperation.REMOVE: report.removed,
        SyncOperation.CONFLICT: report.conflicts,
    }
    for operation, title in _SECTIONS:
        results = by_operation[operation]
        if not results:
            continue
        lines.append(title)
        for r in results:
            if operation == SyncOperation.CONFLICT:
                lines.append(_conflict_line(r))
            else:
                lines.append(f"  {r.path}")
        lines.append("")

    if report.pruned:
        lines.append(f"Pruned: {len(report.pruned)} tombstones")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: SyncReport) -> str:
    """Format a dry-run preview grouped by action type.

    Each proposed action is shown as ``[ACTION] path``.

    Args:
        report: A dry-run sync report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = ["DRY RUN -- No changes will be made", ""]

    groups: dict[SyncOperation, list[str]] = defaultdict(list)
    for r in report.results:
        groups[r.operation].append(r.path)

    if not groups:
        lines.append("Nothing to do.")
        return "\n".join(lines)

    for operation in SyncOperation:
        for path in groups.get(operation, []):
            lines.append(f"[{operation.value.upper()}] {path}")

    lines.append("")
    lines.append(f"Total: {len(report.results)} actions")
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict[str, Any]:
    """Convert a sync report to a JSON-serialisable dict.

    Args:
        report: The sync report.

    Returns:
        Dict with ``summary`` counts and the per-path ``results``.
    """
    return {
        "dry_run": report.dry_run,
        "watermark": report.watermark,
        "now": report.now,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "summary": {
            "total": len(report.results),
            "pushed": len(report.pushed),
            "pulled": len(report.pulled),
            "removed": len(report.removed),
            "pruned": len(report.pruned),
            "conflicts": len(report.conflicts),
        },
        "results": [r.model_dump(mode="json") for r in report.results],
    }
