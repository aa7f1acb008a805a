"""Data models for box snapshots, comparisons, diffs and risk results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from datetime import datetime
    from pathlib import Path


class OutputMode(StrEnum):
    """Output format for rendering results."""

    rich = "rich"
    json = "json"
    diff = "diff"


class FileStatus(StrEnum):
    """Status of a relative path across the old and new snapshots."""

    added = "added"
    deleted = "deleted"
    modified = "modified"
    unchanged = "unchanged"


class DiffLineKind(StrEnum):
    """Kind of a single line within a diff hunk."""

    context = "context"
    added = "added"
    deleted = "deleted"
    header = "header"


class Impact(StrEnum):
    """Impact level, totally ordered from low to critical.

    StrEnum members compare as plain strings, so ordering must always go
    through :attr:`rank` or :func:`max_impact`.
    """

    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @property
    def rank(self) -> int:
        """Position of this level in the low -> critical ordering."""
        return _IMPACT_RANKS[self]

    def at_least(self, other: Impact) -> bool:
        """Return True if this level is at or above *other*."""
        return self.rank >= other.rank

    def to_conflict_severity(self) -> ConflictSeverity:
        """Collapse an impact onto the three-level conflict severity scale."""
        if self in (Impact.high, Impact.critical):
            return ConflictSeverity.high
        return ConflictSeverity(self.value)


_IMPACT_RANKS: Mapping[Impact, int] = MappingProxyType(
    {level: index for index, level in enumerate(Impact)}
)


def max_impact(
    impacts: Iterable[Impact | None],
    default: Impact | None = None,
) -> Impact | None:
    """Return the highest impact in *impacts*, ignoring ``None`` entries.

    Returns *default* when no impact is present.
    """
    result = default
    for impact in impacts:
        if impact is None:
            continue
        if result is None or impact.rank > result.rank:
            result = impact
    return result


class ConflictSeverity(StrEnum):
    """Severity of a human-facing conflict record."""

    low = "low"
    medium = "medium"
    high = "high"


class ConflictType(StrEnum):
    """Origin of a conflict record."""

    file_exists = "file_exists"
    manifest_version = "manifest_version"
    manifest_metadata = "manifest_metadata"
    manifest_missing = "manifest_missing"
    manifest_corrupted = "manifest_corrupted"


class ManifestChangeType(StrEnum):
    """How a manifest field changed between two manifests."""

    added = "added"
    removed = "removed"
    modified = "modified"


class ManifestStatus(StrEnum):
    """Overall state of a manifest pair."""

    identical = "identical"
    modified = "modified"
    new = "new"
    missing = "missing"
    corrupted = "corrupted"


class ManifestChangeKind(StrEnum):
    """Primary kind of a manifest change, as seen by the risk analyzer."""

    version = "version"
    metadata = "metadata"
    none = "none"


# -- Snapshot model ---------------------------------------------------------


@dataclass(frozen=True)
class FileEntry:
    """One file captured by the snapshot scanner."""

    relative_path: str
    size: int
    extension: str = ""
    content: str | None = None
    last_modified: datetime | None = None


@dataclass(frozen=True)
class Snapshot:
    """Immutable listing of a directory tree at one point in time."""

    files: tuple[FileEntry, ...]
    root: Path | None = None

    def __post_init__(self) -> None:
        """Reject snapshots that list the same relative path twice."""
        seen: set[str] = set()
        for entry in self.files:
            if entry.relative_path in seen:
                msg = f"Duplicate relative path in snapshot: {entry.relative_path}"
                raise ValueError(msg)
            seen.add(entry.relative_path)

    def by_path(self) -> dict[str, FileEntry]:
        """Return a mapping of relative path to entry."""
        return {entry.relative_path: entry for entry in self.files}


# -- File comparison --------------------------------------------------------


@dataclass(frozen=True)
class ChangeDescriptor:
    """What changed between two versions of the same path."""

    size_change: int
    content_changed: bool
    extension_changed: bool


@dataclass(frozen=True)
class FileComparison:
    """Comparison result for a single relative path."""

    path: str
    status: FileStatus
    old: FileEntry | None = None
    new: FileEntry | None = None
    similarity: float | None = None
    changes: ChangeDescriptor | None = None


@dataclass(frozen=True)
class ConflictInfo:
    """A discrepancy between the installed box and its update."""

    type: ConflictType
    severity: ConflictSeverity
    path: str
    description: str
    old_value: Any = None
    new_value: Any = None
    suggestions: tuple[str, ...] = ()
    manifest_field: str | None = None


@dataclass(frozen=True)
class ComparisonSummary:
    """Status counts for a directory comparison."""

    added: int
    deleted: int
    modified: int
    unchanged: int
    total_old: int
    total_new: int

    @property
    def total(self) -> int:
        """Number of distinct relative paths compared."""
        return self.added + self.deleted + self.modified + self.unchanged

    @property
    def changed(self) -> int:
        """Number of paths that are not unchanged."""
        return self.added + self.deleted + self.modified

    @classmethod
    def from_comparisons(
        cls,
        comparisons: Sequence[FileComparison],
        *,
        total_old: int,
        total_new: int,
    ) -> ComparisonSummary:
        """Compute counts by file status."""
        return cls(
            added=sum(1 for c in comparisons if c.status == FileStatus.added),
            deleted=sum(1 for c in comparisons if c.status == FileStatus.deleted),
            modified=sum(1 for c in comparisons if c.status == FileStatus.modified),
            unchanged=sum(1 for c in comparisons if c.status == FileStatus.unchanged),
            total_old=total_old,
            total_new=total_new,
        )


@dataclass(frozen=True)
class DirectoryComparison:
    """Result of comparing an old snapshot against a new one."""

    comparisons: tuple[FileComparison, ...]
    summary: ComparisonSummary
    conflicts: tuple[ConflictInfo, ...] = ()


# -- Diffs ------------------------------------------------------------------


@dataclass(frozen=True)
class DiffLine:
    """A single line of a textual diff."""

    kind: DiffLineKind
    content: str
    old_line: int | None = None
    new_line: int | None = None


@dataclass(frozen=True)
class DiffHunk:
    """A contiguous block of diff lines with a unified-diff header."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: tuple[DiffLine, ...]

    @property
    def header(self) -> str:
        """Return the ``@@ -a,b +c,d @@`` header line."""
        return f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"


@dataclass(frozen=True)
class FileDiff:
    """Line-oriented diff for one file."""

    path: str
    status: FileStatus
    hunks: tuple[DiffHunk, ...] = ()
    is_binary: bool = False
    similarity: float | None = None

    @property
    def insertions(self) -> int:
        """Number of added lines across all hunks."""
        return sum(1 for h in self.hunks for line in h.lines if line.kind == DiffLineKind.added)

    @property
    def deletions(self) -> int:
        """Number of deleted lines across all hunks."""
        return sum(1 for h in self.hunks for line in h.lines if line.kind == DiffLineKind.deleted)


@dataclass(frozen=True)
class DiffSummary:
    """Diffs for every changed file plus insertion/deletion totals."""

    files_changed: int
    insertions: int
    deletions: int
    files: tuple[FileDiff, ...]

    @classmethod
    def from_diffs(cls, diffs: Sequence[FileDiff]) -> DiffSummary:
        """Total up insertions and deletions."""
        return cls(
            files_changed=len(diffs),
            insertions=sum(d.insertions for d in diffs),
            deletions=sum(d.deletions for d in diffs),
            files=tuple(diffs),
        )

    def get(self, path: str) -> FileDiff | None:
        """Return the diff for *path*, if one was built."""
        for diff in self.files:
            if diff.path == path:
                return diff
        return None


# -- Manifest comparison ----------------------------------------------------


@dataclass(frozen=True)
class ManifestFieldDifference:
    """A single differing manifest field."""

    field: str
    old_value: Any
    new_value: Any
    change_type: ManifestChangeType
    impact: Impact


@dataclass(frozen=True)
class ManifestComparisonResult:
    """Field-by-field comparison of two manifests.

    ``severity`` is ``None`` when the manifests are identical.
    """

    is_identical: bool
    differences: tuple[ManifestFieldDifference, ...]
    severity: Impact | None
    status: ManifestStatus
    conflicts: tuple[ConflictInfo, ...] = ()

    @property
    def requires_review(self) -> bool:
        """Whether the manifest change needs a human decision."""
        return self.status in (
            ManifestStatus.modified,
            ManifestStatus.missing,
            ManifestStatus.corrupted,
        )

    def difference(self, field: str) -> ManifestFieldDifference | None:
        """Return the difference recorded for *field*, if any."""
        for diff in self.differences:
            if diff.field == field:
                return diff
        return None


# -- Risk analysis ----------------------------------------------------------


@dataclass(frozen=True)
class FileImpactAssessment:
    """Risk assessment of one changed file."""

    path: str
    status: FileStatus
    impact: Impact
    risk_factors: tuple[str, ...]
    size_before: int
    size_after: int
    size_change: int
    size_change_percent: float
    lines_added: int = 0
    lines_deleted: int = 0
    similarity: float | None = None
    has_breaking_changes: bool = False
    description: str = ""
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChangeImpact:
    """Changed files grouped by impact level and status."""

    level: Impact
    status: FileStatus
    description: str
    affected_files: tuple[str, ...]
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class ManifestAnalysis:
    """Risk assessment of the manifest change."""

    has_changes: bool
    change_type: ManifestChangeKind
    impact: Impact | None
    risk_factors: tuple[str, ...]
    requires_review: bool


@dataclass(frozen=True)
class ChangeSummary:
    """Aggregate counts of the analysed changes."""

    total_files: int
    additions: int
    deletions: int
    modifications: int
    unchanged: int


@dataclass(frozen=True)
class ChangeAnalysisResult:
    """The single decision object handed to the update workflow."""

    risk_level: Impact
    can_auto_apply: bool
    requires_review: bool
    file_analyses: tuple[FileImpactAssessment, ...]
    summary: ChangeSummary
    recommendations: tuple[str, ...]
    manifest_analysis: ManifestAnalysis | None = None
    conflicts: tuple[ConflictInfo, ...] = ()
    impacts: tuple[ChangeImpact, ...] = ()
    confidence: float = 0.9


@dataclass(frozen=True)
class ChangeStats:
    """Compact change statistics for non-interactive consumers."""

    total_changes: int
    risk_level: ConflictSeverity
    requires_review: bool


@dataclass(frozen=True)
class UpdateReport:
    """Everything the pipeline computed for one box update."""

    comparison: DirectoryComparison
    diffs: DiffSummary
    analysis: ChangeAnalysisResult
    manifest: ManifestComparisonResult | None = None
