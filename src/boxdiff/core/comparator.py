"""Update analysis orchestrator that chains the comparison pipeline."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from boxdiff.config import AnalysisConfig
from boxdiff.core.filtering import FilterConfig
from boxdiff.core.manifest import ManifestComparator, ManifestError, parse_manifest
from boxdiff.core.models import UpdateReport
from boxdiff.core.risk import ChangeRiskAnalyzer
from boxdiff.core.scanner import SnapshotScanner, find_manifest
from boxdiff.core.structure import FileComparator
from boxdiff.core.text import DiffBuilder

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from boxdiff.core.manifest import Manifest
    from boxdiff.core.models import Snapshot

    ManifestInput = Manifest | Mapping[str, Any] | str | bytes

logger = logging.getLogger(__name__)


class Comparator:
    """Orchestrates the update analysis pipeline.

    Chains: FileComparator -> DiffBuilder, ManifestComparator ->
    ChangeRiskAnalyzer. Manifests are only compared when an installed
    snapshot exists and at least one side ships a manifest.
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        *,
        filter_config: FilterConfig | None = None,
    ) -> None:
        """Initialize the comparator.

        Args:
            config: Analysis thresholds. Defaults to AnalysisConfig() if None.
            filter_config: Filtering rules used by compare_paths. Defaults
                to FilterConfig() if None.
        """
        self._config = config or AnalysisConfig()
        self._filter_config = filter_config or FilterConfig()

    @property
    def config(self) -> AnalysisConfig:
        """The active analysis configuration."""
        return self._config

    def compare(
        self,
        old: Snapshot | None,
        new: Snapshot,
        *,
        old_manifest: ManifestInput | None = None,
        new_manifest: ManifestInput | None = None,
        manifests: bool = True,
    ) -> UpdateReport:
        """Run the full analysis over two snapshots.

        Args:
            old: Installed snapshot, or None on first install.
            new: Incoming snapshot.
            old_manifest: Manifest persisted with the installed box.
            new_manifest: Manifest shipped with the incoming box.
            manifests: Set to False to skip manifest comparison entirely.

        Returns:
            UpdateReport with the directory comparison, diffs, manifest
            comparison and risk analysis.
        """
        comparison = FileComparator(self._config).compare(old, new)
        diffs = DiffBuilder(context_lines=self._config.context_lines).build_diffs(
            comparison.comparisons
        )

        manifest = None
        if manifests and old is not None and (old_manifest is not None or new_manifest is not None):
            manifest = ManifestComparator().compare(old_manifest, new_manifest)

        analysis = ChangeRiskAnalyzer(self._config).analyze(comparison, diffs, manifest)
        logger.info(
            "Analysed %d changed files: risk %s",
            comparison.summary.changed,
            analysis.risk_level,
        )
        return UpdateReport(
            comparison=comparison,
            diffs=diffs,
            analysis=analysis,
            manifest=manifest,
        )

    def compare_paths(self, old_root: Path | None, new_root: Path) -> UpdateReport:
        """Scan two box directories and analyse the update between them.

        A missing *old_root* is treated as a first install. Exclude patterns
        from the incoming manifest apply to both scans.

        Raises:
            FileNotFoundError: If new_root does not exist.
            NotADirectoryError: If either root exists but is not a directory.
        """
        if not new_root.exists():
            msg = f"New path does not exist: {new_root}"
            raise FileNotFoundError(msg)

        new_manifest = find_manifest(new_root)
        scanner = SnapshotScanner(
            self._filter_config.with_excludes(_manifest_excludes(new_manifest)),
            max_content_bytes=self._config.max_content_bytes,
        )
        new = scanner.scan(new_root)

        if old_root is None or not old_root.exists():
            logger.info("No installed box at %s, treating as first install", old_root)
            return self.compare(None, new, new_manifest=new_manifest)

        old = scanner.scan(old_root)
        return self.compare(
            old,
            new,
            old_manifest=find_manifest(old_root),
            new_manifest=new_manifest,
        )


def _manifest_excludes(raw: str | None) -> tuple[str, ...]:
    """Exclude patterns declared by the incoming manifest.

    A corrupted manifest contributes none; the manifest comparison reports it.
    """
    if raw is None:
        return ()
    try:
        return parse_manifest(raw).exclude
    except ManifestError as exc:
        logger.debug("Ignoring manifest exclude patterns: %s", exc)
        return ()
