"""Tests for boxdiff.output.rich_output."""

from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING, Any

from rich.console import Console

from boxdiff.core.comparator import Comparator
from boxdiff.core.models import ChangeStats, ConflictSeverity
from boxdiff.output.base import Renderer
from boxdiff.output.rich_output import RichRenderer

if TYPE_CHECKING:
    from collections.abc import Callable

    from boxdiff.core.models import Snapshot, UpdateReport


def _renderer(*, show_diff: bool = False) -> RichRenderer:
    console = Console(file=StringIO(), width=200)
    return RichRenderer(console=console, show_diff=show_diff)


def _capture_render(renderer: RichRenderer, report: UpdateReport) -> str:
    """Render a report and capture the output as a string."""
    renderer.render(report)
    file = renderer._console.file
    assert isinstance(file, StringIO)
    return file.getvalue()


def _capture_stats(renderer: RichRenderer, stats: ChangeStats) -> str:
    """Render stats and capture the output as a string."""
    renderer.render_stats(stats)
    file = renderer._console.file
    assert isinstance(file, StringIO)
    return file.getvalue()


class TestRichRendererInit:
    """Verify RichRenderer constructor."""

    def test_default_console(self) -> None:
        assert RichRenderer()._console is not None

    def test_custom_console(self) -> None:
        console = Console(file=StringIO())
        assert RichRenderer(console=console)._console is console

    def test_satisfies_protocol(self) -> None:
        assert isinstance(RichRenderer(), Renderer)


class TestRichRender:
    """Full report rendering."""

    def test_risk_panel(self, update_report: UpdateReport) -> None:
        output = _capture_render(_renderer(), update_report)
        assert "Risk: CRITICAL" in output
        assert "1 file added, 1 file modified, 1 file deleted" in output
        assert "Not safe to apply automatically" in output
        assert "Review required" in output
        assert "confidence 95%" in output

    def test_file_table(self, update_report: UpdateReport) -> None:
        output = _capture_render(_renderer(), update_report)
        assert "File impact" in output
        assert "old.txt" in output
        assert "File deletion" in output
        assert "(breaking)" in output

    def test_manifest_table(self, update_report: UpdateReport) -> None:
        output = _capture_render(_renderer(), update_report)
        assert "Manifest (modified)" in output
        assert "1.4.0" in output
        assert "1.5.0" in output

    def test_recommendations_numbered(self, update_report: UpdateReport) -> None:
        output = _capture_render(_renderer(), update_report)
        assert "Recommendations" in output
        assert "1. CRITICAL: Manual review required before proceeding" in output
        assert "MANIFEST CHANGES DETECTED" in output

    def test_no_diff_panels_by_default(self, update_report: UpdateReport) -> None:
        output = _capture_render(_renderer(), update_report)
        assert "@@ -1,3 +1,3 @@" not in output

    def test_diff_panels(self, update_report: UpdateReport) -> None:
        output = _capture_render(_renderer(show_diff=True), update_report)
        assert "@@ -1,3 +1,3 @@" in output
        assert "+Run npm run dev." in output
        assert "-obsolete" in output

    def test_quiet_update(self, quiet_report: UpdateReport) -> None:
        output = _capture_render(_renderer(), quiet_report)
        assert "Risk: LOW" in output
        assert "No file changes." in output
        assert "Safe to apply automatically" in output
        assert "Manifest (" not in output
        assert "LOW RISK: Changes appear safe to apply" in output


class TestRichRenderStats:
    """Compact statistics line."""

    def test_review_required(self) -> None:
        stats = ChangeStats(total_changes=5, risk_level=ConflictSeverity.high, requires_review=True)
        output = _capture_stats(_renderer(), stats)
        assert "5 changes, high risk, review required" in output

    def test_no_review(self) -> None:
        stats = ChangeStats(total_changes=1, risk_level=ConflictSeverity.low, requires_review=False)
        output = _capture_stats(_renderer(), stats)
        assert "1 changes, low risk, no review required" in output


class TestRichRenderBracketedPaths:
    """Paths containing square brackets are printed literally."""

    def test_dynamic_route_paths(self, make_snapshot: Callable[..., Snapshot]) -> None:
        old = make_snapshot(
            {"pages/[id].tsx": "export default 1;\n", "pages/[/x].tsx": "gone\n"}
        )
        new = make_snapshot({"pages/[id].tsx": "export default 2;\n"})
        report = Comparator().compare(old, new)

        output = _capture_render(_renderer(show_diff=True), report)

        assert "pages/[id].tsx" in output
        assert "pages/[/x].tsx" in output
        assert "Review critical files: pages/[/x].tsx" in output

    def test_manifest_values_with_brackets(
        self,
        make_snapshot: Callable[..., Snapshot],
        manifest_data: dict[str, Any],
    ) -> None:
        snapshot = make_snapshot({})
        report = Comparator().compare(
            snapshot,
            snapshot,
            old_manifest=manifest_data,
            new_manifest={**manifest_data, "description": "Starter [/beta]"},
        )

        output = _capture_render(_renderer(), report)

        assert "Starter [/beta]" in output
