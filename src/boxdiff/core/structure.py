"""Path-level comparison of two snapshots with per-file classification."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from boxdiff.config import AnalysisConfig
from boxdiff.core.models import (
    ChangeDescriptor,
    ComparisonSummary,
    ConflictInfo,
    ConflictSeverity,
    ConflictType,
    DirectoryComparison,
    FileComparison,
    FileStatus,
)
from boxdiff.core.similarity import similarity, size_similarity

if TYPE_CHECKING:
    from boxdiff.core.models import FileEntry, ManifestComparisonResult, Snapshot

logger = logging.getLogger(__name__)


class FileComparator:
    """Matches old and new snapshots by relative path.

    Every path in the union of both snapshots is classified exactly once as
    added (new only), deleted (old only), modified or unchanged. Modified
    files carry a similarity score and produce a ``file_exists`` conflict
    whose severity follows the similarity thresholds in the config.
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        """Initialize with optional threshold configuration.

        Args:
            config: Analysis thresholds. Defaults to AnalysisConfig() if None.
        """
        self._config = config or AnalysisConfig()

    def compare(self, old: Snapshot | None, new: Snapshot) -> DirectoryComparison:
        """Compare two snapshots.

        Args:
            old: Previously installed snapshot, or None on first install.
            new: Incoming snapshot.

        Returns:
            DirectoryComparison with path-sorted comparisons, summary counts
            and conflicts for modified files.
        """
        if old is None:
            comparisons = tuple(
                FileComparison(path=entry.relative_path, status=FileStatus.added, new=entry)
                for entry in sorted(new.files, key=lambda e: e.relative_path)
            )
            logger.debug("No installed snapshot: %d files added", len(comparisons))
            return DirectoryComparison(
                comparisons=comparisons,
                summary=ComparisonSummary.from_comparisons(
                    comparisons, total_old=0, total_new=len(new.files)
                ),
            )

        old_files = old.by_path()
        new_files = new.by_path()
        all_paths = sorted(old_files.keys() | new_files.keys())

        comparisons_list: list[FileComparison] = []
        conflicts: list[ConflictInfo] = []
        for path in all_paths:
            old_entry = old_files.get(path)
            new_entry = new_files.get(path)

            if old_entry is None:
                comparisons_list.append(
                    FileComparison(path=path, status=FileStatus.added, new=new_entry)
                )
            elif new_entry is None:
                comparisons_list.append(
                    FileComparison(path=path, status=FileStatus.deleted, old=old_entry)
                )
            else:
                comparison = self.compare_files(old_entry, new_entry)
                comparisons_list.append(comparison)
                if comparison.status == FileStatus.modified:
                    conflicts.append(self._build_conflict(comparison))

        comparisons = tuple(comparisons_list)
        summary = ComparisonSummary.from_comparisons(
            comparisons, total_old=len(old.files), total_new=len(new.files)
        )
        logger.debug(
            "Compared %d paths: %d added, %d deleted, %d modified, %d unchanged",
            summary.total,
            summary.added,
            summary.deleted,
            summary.modified,
            summary.unchanged,
        )
        return DirectoryComparison(
            comparisons=comparisons,
            summary=summary,
            conflicts=tuple(conflicts),
        )

    @staticmethod
    def compare_files(old: FileEntry, new: FileEntry) -> FileComparison:
        """Compare two versions of the same path.

        Uses captured content when both sides have it, otherwise falls back
        to a size-based approximation.
        """
        size_change = new.size - old.size
        extension_changed = old.extension != new.extension

        if old.content is not None and new.content is not None:
            content_changed = old.content != new.content
            ratio = similarity(old.content, new.content) if content_changed else 1.0
        else:
            content_changed = old.size != new.size
            ratio = size_similarity(old.size, new.size)

        modified = content_changed or extension_changed
        return FileComparison(
            path=new.relative_path,
            status=FileStatus.modified if modified else FileStatus.unchanged,
            old=old,
            new=new,
            similarity=ratio if modified else 1.0,
            changes=ChangeDescriptor(
                size_change=size_change,
                content_changed=content_changed,
                extension_changed=extension_changed,
            ),
        )

    def conflict_severity(self, comparison: FileComparison) -> ConflictSeverity:
        """Map a modified file's similarity onto a conflict severity."""
        ratio = comparison.similarity
        if not ratio:
            return ConflictSeverity.medium
        if ratio > self._config.low_conflict_similarity:
            return ConflictSeverity.low
        if ratio > self._config.high_conflict_similarity:
            return ConflictSeverity.medium
        return ConflictSeverity.high

    def _build_conflict(self, comparison: FileComparison) -> ConflictInfo:
        assert comparison.old is not None and comparison.new is not None
        return ConflictInfo(
            type=ConflictType.file_exists,
            severity=self.conflict_severity(comparison),
            path=comparison.path,
            description=f'File "{comparison.path}" has been modified',
            old_value=comparison.old.size,
            new_value=comparison.new.size,
            suggestions=self._suggestions(comparison),
        )

    def _suggestions(self, comparison: FileComparison) -> tuple[str, ...]:
        """Remediation hints for a modified file."""
        changes = comparison.changes
        if changes is None:
            return ()

        suggestions: list[str] = []
        if changes.content_changed:
            suggestions.append("Review content changes before overwriting")
            suggestions.append("Consider creating a backup of the existing file")
        if changes.extension_changed:
            suggestions.append("File extension changed - verify this is intentional")
        if changes.size_change > 0:
            suggestions.append("File size increased - new content may have been added")
        elif changes.size_change < 0:
            suggestions.append("File size decreased - content may have been removed")
        if comparison.similarity and comparison.similarity < self._config.major_change_similarity:
            suggestions.append("Significant changes detected - manual review recommended")
        return tuple(suggestions)

    # -- Queries over a completed comparison ------------------------------

    @staticmethod
    def conflicting_files(result: DirectoryComparison) -> tuple[FileComparison, ...]:
        """Files needing attention: modified, or added with a conflict."""
        conflict_paths = {c.path for c in result.conflicts}
        return tuple(
            c
            for c in result.comparisons
            if c.status == FileStatus.modified
            or (c.status == FileStatus.added and c.path in conflict_paths)
        )

    def safe_files(
        self,
        result: DirectoryComparison,
        manifest: ManifestComparisonResult | None = None,
    ) -> tuple[FileComparison, ...]:
        """Files that can be updated without review.

        The similarity bar for modified files is raised when the manifest
        change itself requires review.
        """
        threshold = self._config.safe_similarity
        if manifest is not None and manifest.requires_review:
            threshold = self._config.strict_safe_similarity
        return tuple(
            c
            for c in result.comparisons
            if c.status in (FileStatus.added, FileStatus.unchanged)
            or (c.status == FileStatus.modified and (c.similarity or 0.0) > threshold)
        )

    @staticmethod
    def is_safe_update(result: DirectoryComparison) -> bool:
        """True when there are no conflicts, modifications or deletions."""
        return (
            not result.conflicts
            and result.summary.modified == 0
            and result.summary.deleted == 0
        )
