"""Tests for boxdiff.core public API re-exports."""

from __future__ import annotations

from dataclasses import is_dataclass
from enum import StrEnum

import boxdiff.core as core
from boxdiff.core import (
    ConflictSeverity,
    DiffLineKind,
    FileStatus,
    Impact,
    ManifestStatus,
    OutputMode,
    comparator,
    filtering,
    manifest,
    models,
    risk,
    scanner,
    structure,
    text,
)

EXPECTED_NAMES = {
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
}


class TestAllExports:
    """Verify __all__ matches the expected public API surface."""

    def test_all_contains_expected_names(self) -> None:
        assert set(core.__all__) == EXPECTED_NAMES

    def test_all_names_are_importable(self) -> None:
        for name in core.__all__:
            assert hasattr(core, name), f"{name} listed in __all__ but not importable"


class TestReExportIdentity:
    """Verify re-exports are the same objects as their defining modules."""

    def test_models(self) -> None:
        assert core.Snapshot is models.Snapshot
        assert core.UpdateReport is models.UpdateReport
        assert core.Impact is models.Impact

    def test_pipeline_classes(self) -> None:
        assert core.Comparator is comparator.Comparator
        assert core.FileComparator is structure.FileComparator
        assert core.DiffBuilder is text.DiffBuilder
        assert core.ChangeRiskAnalyzer is risk.ChangeRiskAnalyzer
        assert core.ManifestComparator is manifest.ManifestComparator
        assert core.SnapshotScanner is scanner.SnapshotScanner
        assert core.FileFilter is filtering.FileFilter


class TestReExportTypes:
    """Verify re-exported symbols have the expected types."""

    def test_enums_are_str_enums(self) -> None:
        for cls in (ConflictSeverity, DiffLineKind, FileStatus, Impact, ManifestStatus, OutputMode):
            assert issubclass(cls, StrEnum), f"{cls.__name__} is not a StrEnum"

    def test_results_are_dataclasses(self) -> None:
        for cls in (core.UpdateReport, core.ChangeAnalysisResult, core.FilterConfig, core.Manifest):
            assert is_dataclass(cls), f"{cls.__name__} is not a dataclass"
