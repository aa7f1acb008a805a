"""Text summaries and compact statistics over comparison results."""

from __future__ import annotations

from typing import TYPE_CHECKING

from boxdiff.core.models import (
    ChangeStats,
    ConflictSeverity,
    DiffLineKind,
    FileStatus,
    Impact,
    ManifestStatus,
)

if TYPE_CHECKING:
    from boxdiff.core.models import (
        DiffSummary,
        DirectoryComparison,
        FileDiff,
        ManifestComparisonResult,
    )

NO_CHANGES = "No changes detected"
NO_NEWLINE_MARKER = "\\ No newline at end of file"

_LINE_PREFIXES = {
    DiffLineKind.context: " ",
    DiffLineKind.added: "+",
    DiffLineKind.deleted: "-",
}

_MANIFEST_STATUS_TEXT = {
    ManifestStatus.new: "manifest added",
    ManifestStatus.modified: "manifest modified",
    ManifestStatus.missing: "manifest missing",
    ManifestStatus.corrupted: "manifest corrupted",
}

_MEDIUM_MODIFICATION_COUNT = 3


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def format_file_diff(file_diff: FileDiff) -> str:
    """Render one file diff as git-style unified diff text."""
    path = file_diff.path
    old_name = "/dev/null" if file_diff.status == FileStatus.added else f"a/{path}"
    new_name = "/dev/null" if file_diff.status == FileStatus.deleted else f"b/{path}"

    out = [f"diff --git a/{path} b/{path}\n"]
    if file_diff.is_binary:
        out.append("Binary files differ\n")
        return "".join(out)

    out.append(f"--- {old_name}\n")
    out.append(f"+++ {new_name}\n")
    for hunk in file_diff.hunks:
        out.append(f"{hunk.header}\n")
        for line in hunk.lines:
            prefix = _LINE_PREFIXES.get(line.kind)
            if prefix is None:
                continue
            out.append(f"{prefix}{line.content}")
            if not line.content.endswith("\n"):
                out.append(f"\n{NO_NEWLINE_MARKER}\n")
    return "".join(out)


def diff_summary_text(summary: DiffSummary) -> str:
    """E.g. ``3 files changed, 10 insertions(+), 5 deletions(-)``."""
    parts = [_plural(summary.files_changed, "file") + " changed"]
    if summary.insertions:
        parts.append(_plural(summary.insertions, "insertion") + "(+)")
    if summary.deletions:
        parts.append(_plural(summary.deletions, "deletion") + "(-)")
    return ", ".join(parts)


def comparison_summary_text(
    comparison: DirectoryComparison,
    manifest: ManifestComparisonResult | None = None,
) -> str:
    """E.g. ``2 files added, 1 file modified, manifest modified``."""
    summary = comparison.summary
    parts = [
        f"{_plural(count, 'file')} {label}"
        for count, label in (
            (summary.added, "added"),
            (summary.modified, "modified"),
            (summary.deleted, "deleted"),
            (summary.unchanged, "unchanged"),
        )
        if count
    ]
    if manifest is not None and manifest.status in _MANIFEST_STATUS_TEXT:
        parts.append(_MANIFEST_STATUS_TEXT[manifest.status])
    return ", ".join(parts) if parts else NO_CHANGES


def detailed_summary_text(
    comparison: DirectoryComparison,
    manifest: ManifestComparisonResult | None = None,
) -> str:
    """Basic summary followed by one line per manifest concern."""
    lines = [comparison_summary_text(comparison, manifest)]
    if manifest is not None:
        if manifest.requires_review:
            lines.append("Manifest changes require review")
        high = sum(1 for c in manifest.conflicts if c.severity == ConflictSeverity.high)
        if high:
            lines.append(_plural(high, "critical manifest conflict"))
        if manifest.severity is not None and manifest.severity.at_least(Impact.high):
            lines.append("High risk manifest changes detected")
    return "\n".join(lines)


def change_stats(
    comparison: DirectoryComparison,
    manifest: ManifestComparisonResult | None = None,
    *,
    review_file_threshold: int = 10,
) -> ChangeStats:
    """Compact three-level risk statistics for CI and scripting.

    Coarser than the full risk analysis: it looks only at counts,
    conflict severities and the manifest severity.
    """
    summary = comparison.summary
    severities = [c.severity for c in comparison.conflicts]
    manifest_severity = manifest.severity if manifest is not None else None

    if manifest_severity is not None and manifest_severity.at_least(Impact.high):
        risk_level = ConflictSeverity.high
    elif ConflictSeverity.high in severities or summary.deleted > 0:
        risk_level = ConflictSeverity.high
    elif (
        manifest_severity == Impact.medium
        or ConflictSeverity.medium in severities
        or summary.modified > _MEDIUM_MODIFICATION_COUNT
    ):
        risk_level = ConflictSeverity.medium
    else:
        risk_level = ConflictSeverity.low

    requires_review = (
        risk_level != ConflictSeverity.low
        or summary.changed > review_file_threshold
        or (manifest is not None and manifest.requires_review)
    )
    return ChangeStats(
        total_changes=summary.changed,
        risk_level=risk_level,
        requires_review=requires_review,
    )
