"""Publish report formatting functions.

Provides human-readable and machine-readable output for publish runs:

- ``format_publish_report`` -- full post-run summary.
- ``format_dry_run_preview`` -- dry-run preview grouped by action.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import PublishReport, PublishResult

from .models import ActionKind


def _target(r: PublishResult) -> str:
    """``collection/slug`` for a result, or just the slug."""
    return f"{r.collection}/{r.slug}" if r.collection else r.slug


def _describe(r: PublishResult) -> str:
    if r.path:
        return f"{r.path} -> {_target(r)}"
    return _target(r)


# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_publish_report(report: PublishReport) -> str:
    """Format a complete publish report as human-readable text.

    Sections are only included when they contain at least one result.
    Pin results are counted but not listed, since every page gets an
    unpin on every run.

    Args:
        report: The completed publish report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = "Publish report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(report.summary())
    lines.append("")

    if report.created:
        lines.append("Created:")
        for r in report.created:
            lines.append(f"  {_describe(r)}")
        lines.append("")

    if report.updated:
        lines.append("Updated:")
        for r in report.updated:
            lines.append(f"  {_describe(r)}")
        lines.append("")

    if report.deleted:
        lines.append("Deleted:")
        for r in report.deleted:
            lines.append(f"  {_describe(r)}")
        lines.append("")

    if report.orphaned:
        lines.append("Orphaned (re-run with --delete to remove):")
        for r in report.orphaned:
            lines.append(f"  {_target(r)}")
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  {r.path or _target(r)}: {r.error}")
        lines.append("")

    ineligible = [
        r for r in report.skipped if r.reason is not None and r.path
    ]
    if ineligible:
        counts: dict[str, int] = defaultdict(int)
        for r in ineligible:
            counts[r.reason.value] += 1
        detail = ", ".join(f"{n} {reason}" for reason, n in counts.items())
        lines.append(f"Skipped: {len(ineligible)} files ({detail})")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: PublishReport) -> str:
    """Format a dry-run preview grouped by action type.

    Each proposed action is shown as ``path -> collection/slug``.

    Args:
        report: A dry-run publish report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append("DRY RUN -- No changes will be made")
    lines.append("")

    groups: dict[ActionKind, list[PublishResult]] = defaultdict(list)
    for r in report.results:
        groups[r.action].append(r)

    display_order = [
        ActionKind.CREATE,
        ActionKind.UPDATE,
        ActionKind.DELETE,
        ActionKind.PIN,
    ]
    for action in display_order:
        if action not in groups:
            continue
        lines.append(f"[{action.value.upper()}]")
        for r in groups[action]:
            lines.append(f"  {_describe(r)}")
        lines.append("")

    if report.orphaned:
        lines.append("[ORPHANED]")
        for r in report.orphaned:
            lines.append(f"  {_target(r)}")
        lines.append("")

    skip_count = len(report.skipped)
    if skip_count > 0:
        lines.append(f"Skipped: {skip_count} files")
        lines.append("")

    if not any(a in groups for a in display_order) and not report.orphaned:
        lines.append("No changes needed.")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: PublishReport) -> dict:
    """Convert a publish report to a structured dict for JSON output.

    Args:
        report: The publish report.

    Returns:
        Dict with run info, counts, and per-result details.
    """
    results_list = []
    for r in report.results:
        entry: dict = {
            "path": r.path,
            "slug": r.slug,
            "collection": r.collection,
            "action": r.action.value,
            "success": r.success,
            "executed": r.executed,
        }
        if r.post_id:
            entry["post_id"] = r.post_id
        if r.reason:
            entry["reason"] = r.reason.value
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "created": len(report.created),
            "updated": len(report.updated),
            "deleted": len(report.deleted),
            "pinned": len(report.pinned),
            "skipped": len(report.skipped),
            "orphaned": len(report.orphaned),
            "errors": len(report.errors),
        },
        "results": results_list,
    }
