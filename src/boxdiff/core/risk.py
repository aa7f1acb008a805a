"""Risk aggregation over file, diff and manifest comparison results."""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from boxdiff.config import AnalysisConfig
from boxdiff.core.manifest import is_major_change
from boxdiff.core.models import (
    ChangeAnalysisResult,
    ChangeImpact,
    ChangeSummary,
    ConflictSeverity,
    DiffLineKind,
    DiffSummary,
    DirectoryComparison,
    FileImpactAssessment,
    FileStatus,
    Impact,
    ManifestAnalysis,
    ManifestChangeKind,
    ManifestStatus,
    max_impact,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from boxdiff.core.models import (
        ConflictInfo,
        FileComparison,
        FileDiff,
        ManifestComparisonResult,
    )

logger = logging.getLogger(__name__)

# File risk factors
FILE_DELETION = "File deletion"
CRITICAL_SYSTEM_FILE = "Critical system file"
EXTENSION_CHANGED = "File extension changed"
BINARY_FILE = "Binary file"
CONFIGURATION_FILE = "Configuration file"
MAJOR_CONTENT_CHANGES = "Major content changes"
EXECUTABLE_FILE = "Executable file"
LARGE_SIZE_CHANGE = "Large size change"

# Manifest risk factors
MAJOR_VERSION_CHANGE = "Major version change"
VERSION_CHANGED = "Version changed"
BOX_NAME_CHANGED = "Box name changed"
EXCLUDE_CHANGED = "Exclude patterns changed"
POST_INSTALL_CHANGED = "Post-install steps changed"
MANIFEST_MISSING = "Manifest missing"
MANIFEST_CORRUPTED = "Manifest corrupted"

MANIFEST_BANNER = "MANIFEST CHANGES DETECTED"

CRITICAL_FILE_NAMES: frozenset[str] = frozenset(
    {
        "package.json",
        "package-lock.json",
        "yarn.lock",
        "Dockerfile",
        "docker-compose.yml",
        "docker-compose.yaml",
        ".env",
        "requirements.txt",
        "Pipfile",
        "pyproject.toml",
        "Cargo.toml",
        "go.mod",
        "pom.xml",
        "build.gradle",
        "manifest.json",
    }
)
CONFIG_EXTENSIONS: frozenset[str] = frozenset({".yaml", ".yml", ".json", ".toml", ".ini"})
EXECUTABLE_EXTENSIONS: frozenset[str] = frozenset({".sh", ".bat", ".cmd", ".exe", ".bin", ".run"})
CODE_EXTENSIONS: frozenset[str] = frozenset(
    {".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".cs", ".cpp", ".c", ".h"}
)

# Removed lines that look like a public declaration
BREAKING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\s*export\s+\w+", re.IGNORECASE),
    re.compile(r"^\s*(?:export\s+)?(?:async\s+)?function\s+\w+", re.IGNORECASE),
    re.compile(r"^\s*(?:export\s+)?class\s+\w+", re.IGNORECASE),
    re.compile(r"^\s*(?:export\s+)?interface\s+\w+", re.IGNORECASE),
    re.compile(r"^\s*(?:async\s+)?def\s+\w+"),
)

# Confidence in the overall assessment
CONFIDENCE_CRITICAL = 0.95
CONFIDENCE_HIGH = 0.85
CONFIDENCE_MEDIUM = 0.8
CONFIDENCE_MANY_FILES = 0.75
CONFIDENCE_DEFAULT = 0.9

_VERBS: dict[FileStatus, str] = {
    FileStatus.added: "Adding",
    FileStatus.deleted: "Deleting",
    FileStatus.modified: "Modifying",
}

_LEVEL_RECOMMENDATIONS: dict[Impact, tuple[str, ...]] = {
    Impact.critical: (
        "Manual review required before applying changes",
        "Create backup before proceeding",
    ),
    Impact.high: ("Review changes carefully", "Test after applying changes"),
    Impact.medium: ("Verify binary file integrity",),
}


def is_critical_file(path: str) -> bool:
    """True for package definitions, lockfiles, env files and manifests."""
    name = PurePosixPath(path).name
    return name in CRITICAL_FILE_NAMES or name.startswith(".env.")


def aggregate_risk(
    file_impacts: Iterable[Impact],
    manifest_impact: Impact | None = None,
    *,
    has_deletions: bool = False,
) -> Impact:
    """Overall risk: the highest file impact, manifest impact and deletion floor."""
    floors: list[Impact | None] = [*file_impacts, manifest_impact]
    if has_deletions:
        floors.append(Impact.high)
    result = max_impact(floors, default=Impact.low)
    assert result is not None
    return result


def describe_change(status: FileStatus, path: str, impact: Impact) -> str:
    """One-line description such as ``Modifying src/app.js (high impact)``."""
    return f"{_VERBS.get(status, 'Changing')} {path} ({impact} impact)"


def group_impacts(file_analyses: Iterable[FileImpactAssessment]) -> tuple[ChangeImpact, ...]:
    """Group assessments by impact level and status, in first-seen order."""
    groups: dict[tuple[Impact, FileStatus], list[FileImpactAssessment]] = {}
    for assessment in file_analyses:
        groups.setdefault((assessment.impact, assessment.status), []).append(assessment)

    impacts = []
    for (level, status), members in groups.items():
        if len(members) == 1:
            description = members[0].description
        else:
            verb = _VERBS.get(status, "Changing")
            description = f"{verb} {len(members)} files ({level} impact)"
        impacts.append(
            ChangeImpact(
                level=level,
                status=status,
                description=description,
                affected_files=tuple(m.path for m in members),
                recommendations=_LEVEL_RECOMMENDATIONS.get(level, ()),
            )
        )
    return tuple(impacts)


class ChangeRiskAnalyzer:
    """Turns comparison results into a single update decision.

    Each changed file collects every applicable risk factor; its impact is
    the highest floor among them. The overall risk is never lower than any
    file impact or the manifest impact, and an update may only be applied
    automatically when that risk is low and no conflict is high.
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        """Initialize with optional threshold configuration.

        Args:
            config: Analysis thresholds. Defaults to AnalysisConfig() if None.
        """
        self._config = config or AnalysisConfig()

    def analyze(
        self,
        comparisons: DirectoryComparison | Sequence[FileComparison],
        diffs: DiffSummary | Iterable[FileDiff] = (),
        manifest: ManifestComparisonResult | None = None,
        *,
        conflicts: Iterable[ConflictInfo] | None = None,
    ) -> ChangeAnalysisResult:
        """Assess the risk of applying an update.

        Args:
            comparisons: File comparisons, or a full DirectoryComparison
                (whose conflicts are used when *conflicts* is None).
            diffs: File diffs, matched to comparisons by path.
            manifest: Manifest comparison result, if manifests were compared.
            conflicts: File-level conflicts to take into account.

        Returns:
            ChangeAnalysisResult with per-file assessments, overall risk and
            recommendations.
        """
        if isinstance(comparisons, DirectoryComparison):
            file_comparisons: Sequence[FileComparison] = comparisons.comparisons
            if conflicts is None:
                conflicts = comparisons.conflicts
        else:
            file_comparisons = comparisons
        diff_files = diffs.files if isinstance(diffs, DiffSummary) else tuple(diffs)
        diffs_by_path = {d.path: d for d in diff_files}

        all_conflicts = tuple(conflicts or ())
        if manifest is not None:
            all_conflicts += manifest.conflicts

        file_analyses = tuple(
            self.assess_file(c, diffs_by_path.get(c.path))
            for c in file_comparisons
            if c.status != FileStatus.unchanged
        )
        manifest_analysis = self.assess_manifest(manifest) if manifest is not None else None
        summary = self._summarize(file_comparisons)

        risk_level = aggregate_risk(
            (a.impact for a in file_analyses),
            manifest_analysis.impact if manifest_analysis else None,
            has_deletions=summary.deletions > 0,
        )
        has_high_conflict = any(c.severity == ConflictSeverity.high for c in all_conflicts)
        can_auto_apply = risk_level == Impact.low and not has_high_conflict
        requires_review = (
            risk_level != Impact.low
            or summary.total_files > self._config.review_file_threshold
            or (manifest_analysis is not None and manifest_analysis.requires_review)
        )

        logger.debug(
            "Risk %s over %d changed files (auto-apply=%s, review=%s)",
            risk_level,
            summary.total_files,
            can_auto_apply,
            requires_review,
        )
        return ChangeAnalysisResult(
            risk_level=risk_level,
            can_auto_apply=can_auto_apply,
            requires_review=requires_review,
            file_analyses=file_analyses,
            summary=summary,
            recommendations=self._recommendations(risk_level, file_analyses, manifest_analysis),
            manifest_analysis=manifest_analysis,
            conflicts=all_conflicts,
            impacts=group_impacts(file_analyses),
            confidence=self._confidence(risk_level, requires_review),
        )

    # -- Files ------------------------------------------------------------

    def assess_file(
        self,
        comparison: FileComparison,
        diff: FileDiff | None = None,
    ) -> FileImpactAssessment:
        """Collect risk factors and sizes for one changed file."""
        factors = self._file_factors(comparison, diff)
        impact = max_impact((floor for _, floor in factors), default=Impact.low)
        assert impact is not None

        before = comparison.old.size if comparison.old else 0
        after = comparison.new.size if comparison.new else 0
        change = after - before
        if before > 0:
            percent = change / before * 100
        else:
            percent = 100.0 if after > 0 else 0.0

        return FileImpactAssessment(
            path=comparison.path,
            status=comparison.status,
            impact=impact,
            risk_factors=tuple(label for label, _ in factors),
            size_before=before,
            size_after=after,
            size_change=change,
            size_change_percent=percent,
            lines_added=diff.insertions if diff else 0,
            lines_deleted=diff.deletions if diff else 0,
            similarity=comparison.similarity,
            has_breaking_changes=self._has_breaking_changes(comparison, diff),
            description=describe_change(comparison.status, comparison.path, impact),
            recommendations=_LEVEL_RECOMMENDATIONS.get(impact, ()),
        )

    def _file_factors(
        self,
        comparison: FileComparison,
        diff: FileDiff | None,
    ) -> list[tuple[str, Impact]]:
        factors: list[tuple[str, Impact]] = []
        modified = comparison.status == FileStatus.modified
        extension = _extension(comparison)
        changes = comparison.changes

        if comparison.status == FileStatus.deleted:
            factors.append((FILE_DELETION, Impact.critical))
        if modified and is_critical_file(comparison.path):
            factors.append((CRITICAL_SYSTEM_FILE, Impact.critical))
        if changes is not None and changes.extension_changed:
            factors.append((EXTENSION_CHANGED, Impact.high))
        if diff is not None and diff.is_binary:
            factors.append((BINARY_FILE, Impact.medium))
        if modified and extension in CONFIG_EXTENSIONS:
            factors.append((CONFIGURATION_FILE, Impact.high))
        if (
            modified
            and comparison.similarity is not None
            and comparison.similarity < self._config.major_change_similarity
        ):
            factors.append((MAJOR_CONTENT_CHANGES, Impact.critical))
        if extension in EXECUTABLE_EXTENSIONS:
            factors.append((EXECUTABLE_FILE, Impact.medium))
        if changes is not None and abs(changes.size_change) > self._config.large_size_change:
            factors.append((LARGE_SIZE_CHANGE, Impact.high))

        return factors

    def _has_breaking_changes(self, comparison: FileComparison, diff: FileDiff | None) -> bool:
        if comparison.status == FileStatus.deleted:
            return True
        if comparison.changes is not None and comparison.changes.extension_changed:
            return True
        if (
            comparison.status == FileStatus.modified
            and comparison.similarity is not None
            and comparison.similarity < self._config.breaking_similarity
        ):
            return True
        return (
            comparison.status == FileStatus.modified
            and diff is not None
            and _extension(comparison) in CODE_EXTENSIONS
            and removes_declaration(diff)
        )

    # -- Manifest ---------------------------------------------------------

    @staticmethod
    def assess_manifest(manifest: ManifestComparisonResult) -> ManifestAnalysis:
        """Classify a manifest comparison and collect its risk factors."""
        if manifest.is_identical:
            return ManifestAnalysis(
                has_changes=False,
                change_type=ManifestChangeKind.none,
                impact=None,
                risk_factors=(),
                requires_review=False,
            )

        factors: list[tuple[str, Impact]] = []
        if manifest.status == ManifestStatus.corrupted:
            factors.append((MANIFEST_CORRUPTED, Impact.critical))
        elif manifest.status in (ManifestStatus.missing, ManifestStatus.new):
            factors.append((MANIFEST_MISSING, Impact.critical))

        version = manifest.difference("version")
        if version is not None:
            if is_major_change(version.old_value, version.new_value):
                factors.append((MAJOR_VERSION_CHANGE, Impact.high))
            else:
                factors.append((VERSION_CHANGED, Impact.medium))
        if manifest.difference("name") is not None:
            factors.append((BOX_NAME_CHANGED, Impact.high))
        if manifest.difference("exclude") is not None:
            factors.append((EXCLUDE_CHANGED, Impact.high))
        if manifest.difference("post_install") is not None:
            factors.append((POST_INSTALL_CHANGED, Impact.high))

        if version is not None:
            change_type = ManifestChangeKind.version
        elif manifest.differences:
            change_type = ManifestChangeKind.metadata
        else:
            change_type = ManifestChangeKind.none

        return ManifestAnalysis(
            has_changes=True,
            change_type=change_type,
            impact=max_impact([manifest.severity, *(floor for _, floor in factors)]),
            risk_factors=tuple(label for label, _ in factors),
            requires_review=manifest.requires_review,
        )

    # -- Aggregation ------------------------------------------------------

    @staticmethod
    def _summarize(comparisons: Sequence[FileComparison]) -> ChangeSummary:
        additions = sum(1 for c in comparisons if c.status == FileStatus.added)
        deletions = sum(1 for c in comparisons if c.status == FileStatus.deleted)
        modifications = sum(1 for c in comparisons if c.status == FileStatus.modified)
        return ChangeSummary(
            total_files=additions + deletions + modifications,
            additions=additions,
            deletions=deletions,
            modifications=modifications,
            unchanged=sum(1 for c in comparisons if c.status == FileStatus.unchanged),
        )

    def _confidence(self, risk_level: Impact, requires_review: bool) -> float:
        if risk_level == Impact.critical:
            return CONFIDENCE_CRITICAL
        if risk_level == Impact.high:
            return CONFIDENCE_HIGH
        if risk_level == Impact.medium:
            return CONFIDENCE_MEDIUM
        if requires_review:
            return CONFIDENCE_MANY_FILES
        return CONFIDENCE_DEFAULT

    @staticmethod
    def _recommendations(
        risk_level: Impact,
        file_analyses: Sequence[FileImpactAssessment],
        manifest_analysis: ManifestAnalysis | None,
    ) -> tuple[str, ...]:
        """Human-readable recommendations, most severe first."""
        recommendations: list[str] = []

        if risk_level == Impact.critical:
            recommendations.append("CRITICAL: Manual review required before proceeding")
            recommendations.append("Create full backup of existing box")
            recommendations.append("Test changes in isolated environment first")

        if manifest_analysis is not None and manifest_analysis.has_changes:
            recommendations.append(MANIFEST_BANNER)
            recommendations.extend(f"Manifest: {factor}" for factor in manifest_analysis.risk_factors)

        if risk_level == Impact.high:
            recommendations.append("HIGH RISK: Careful review recommended")
            recommendations.append("Review all modified files individually")
            recommendations.append("Consider incremental deployment")
        elif risk_level == Impact.medium:
            recommendations.append("MEDIUM RISK: Review key changes")
            recommendations.append("Verify configuration files")
        elif risk_level == Impact.low:
            recommendations.append("LOW RISK: Changes appear safe to apply")

        critical_paths = [a.path for a in file_analyses if a.impact == Impact.critical]
        if critical_paths:
            recommendations.append(f"Review critical files: {', '.join(critical_paths)}")

        if any(BINARY_FILE in a.risk_factors for a in file_analyses):
            recommendations.append("Verify binary file integrity after update")

        return tuple(recommendations)

    # -- Queries over a completed result ----------------------------------

    @staticmethod
    def files_requiring_review(result: ChangeAnalysisResult) -> tuple[FileImpactAssessment, ...]:
        """Files with impact of medium or above, breaking changes, or a conflict."""
        conflict_paths = {c.path for c in result.conflicts}
        return tuple(
            a
            for a in result.file_analyses
            if a.impact.at_least(Impact.medium)
            or a.has_breaking_changes
            or a.path in conflict_paths
        )

    def safe_files(
        self,
        result: ChangeAnalysisResult,
        threshold: float | None = None,
    ) -> tuple[FileImpactAssessment, ...]:
        """Low-impact files that can be applied without review."""
        if threshold is None:
            threshold = self._config.safe_similarity
        return tuple(
            a
            for a in result.file_analyses
            if a.impact == Impact.low
            and not a.has_breaking_changes
            and (
                a.status in (FileStatus.added, FileStatus.unchanged)
                or (a.status == FileStatus.modified and (a.similarity or 0.0) > threshold)
            )
        )


def removes_declaration(diff: FileDiff) -> bool:
    """True when a deleted diff line declares an export, function, class or interface."""
    return any(
        pattern.search(line.content)
        for hunk in diff.hunks
        for line in hunk.lines
        if line.kind == DiffLineKind.deleted
        for pattern in BREAKING_PATTERNS
    )


def _extension(comparison: FileComparison) -> str:
    entry = comparison.new or comparison.old
    if entry is not None and entry.extension:
        return entry.extension.lower()
    return PurePosixPath(comparison.path).suffix.lower()
