"""Public API for boxdiff.core."""

from __future__ import annotations

from boxdiff.core.comparator import Comparator
from boxdiff.core.filtering import FileFilter, FilterConfig
from boxdiff.core.manifest import (
    Manifest,
    ManifestComparator,
    ManifestError,
    compare_manifests,
    parse_manifest,
)
from boxdiff.core.models import (
    ChangeAnalysisResult,
    ChangeImpact,
    ChangeStats,
    ConflictInfo,
    ConflictSeverity,
    DiffHunk,
    DiffLine,
    DiffLineKind,
    DiffSummary,
    DirectoryComparison,
    FileComparison,
    FileDiff,
    FileEntry,
    FileImpactAssessment,
    FileStatus,
    Impact,
    ManifestComparisonResult,
    ManifestStatus,
    OutputMode,
    Snapshot,
    UpdateReport,
)
from boxdiff.core.risk import ChangeRiskAnalyzer
from boxdiff.core.scanner import SnapshotScanner, find_manifest
from boxdiff.core.similarity import similarity
from boxdiff.core.structure import FileComparator
from boxdiff.core.summary import (
    change_stats,
    comparison_summary_text,
    detailed_summary_text,
    diff_summary_text,
    format_file_diff,
)
from boxdiff.core.text import DiffBuilder, apply_hunks

__all__ = [
    "ChangeAnalysisResult",
    "ChangeImpact",
    "ChangeRiskAnalyzer",
    "ChangeStats",
    "Comparator",
    "ConflictInfo",
    "ConflictSeverity",
    "DiffBuilder",
    "DiffHunk",
    "DiffLine",
    "DiffLineKind",
    "DiffSummary",
    "DirectoryComparison",
    "FileComparator",
    "FileComparison",
    "FileDiff",
    "FileEntry",
    "FileFilter",
    "FileImpactAssessment",
    "FileStatus",
    "FilterConfig",
    "Impact",
    "Manifest",
    "ManifestComparator",
    "ManifestComparisonResult",
    "ManifestError",
    "ManifestStatus",
    "OutputMode",
    "Snapshot",
    "SnapshotScanner",
    "UpdateReport",
    "apply_hunks",
    "change_stats",
    "compare_manifests",
    "comparison_summary_text",
    "detailed_summary_text",
    "diff_summary_text",
    "find_manifest",
    "format_file_diff",
    "parse_manifest",
    "similarity",
]
