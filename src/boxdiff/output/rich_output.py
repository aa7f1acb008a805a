"""Rich console renderer (default output mode)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from boxdiff.core.models import DiffLineKind, FileStatus, Impact
from boxdiff.core.summary import detailed_summary_text, diff_summary_text

if TYPE_CHECKING:
    from boxdiff.core.models import (
        ChangeAnalysisResult,
        ChangeStats,
        FileDiff,
        ManifestComparisonResult,
        UpdateReport,
    )

_STATUS_STYLES: dict[FileStatus, tuple[str, str]] = {
    FileStatus.added: ("green", "+"),
    FileStatus.deleted: ("red", "-"),
    FileStatus.modified: ("yellow", "~"),
    FileStatus.unchanged: ("dim", " "),
}

_IMPACT_STYLES: dict[str, str] = {
    Impact.low: "green",
    Impact.medium: "yellow",
    Impact.high: "red",
    Impact.critical: "bold white on red",
}

_LINE_STYLES: dict[DiffLineKind, tuple[str, str]] = {
    DiffLineKind.added: ("green", "+"),
    DiffLineKind.deleted: ("red", "-"),
    DiffLineKind.context: ("dim", " "),
}


def _status_style(status: FileStatus) -> tuple[str, str]:
    """Return (rich_style, prefix_char) for a file status."""
    return _STATUS_STYLES[status]


def _impact_text(level: str) -> Text:
    return Text(str(level).upper(), style=_IMPACT_STYLES.get(level, ""))


class RichRenderer:
    """Renders update reports to a Rich console.

    Sections, in order:
    - risk panel with overall level, summary and review decision
    - file impact table (changed files only)
    - manifest field table, when the manifest changed
    - numbered recommendations
    - unified diff panels per file, when ``show_diff`` is set
    """

    def __init__(self, console: Console | None = None, *, show_diff: bool = False) -> None:
        """Initialize with an optional Rich console.

        Args:
            console: Rich Console instance. Defaults to Console() if None.
            show_diff: Also print a diff panel for every changed text file.
        """
        self._console = console or Console()
        self._show_diff = show_diff

    def render(self, report: UpdateReport) -> None:
        """Render the update report."""
        self._console.print(self._risk_panel(report))

        if report.analysis.file_analyses:
            self._console.print(self._file_table(report.analysis))
        else:
            self._console.print("[dim]No file changes.[/dim]")

        if report.manifest is not None and not report.manifest.is_identical:
            self._console.print(self._manifest_table(report.manifest))

        self._render_recommendations(report.analysis)

        if self._show_diff:
            for file_diff in report.diffs.files:
                self._render_diff_panel(file_diff)

    def render_stats(self, stats: ChangeStats) -> None:
        """Render compact change statistics on one line."""
        style = _IMPACT_STYLES.get(stats.risk_level, "")
        review = "[bold]review required[/bold]" if stats.requires_review else "no review required"
        self._console.print(
            f"[bold]{stats.total_changes}[/bold] changes, "
            f"[{style}]{stats.risk_level} risk[/{style}], {review}"
        )

    # -- Sections ---------------------------------------------------------

    @staticmethod
    def _risk_panel(report: UpdateReport) -> Panel:
        analysis = report.analysis
        level = analysis.risk_level
        decision = (
            "[green]Safe to apply automatically[/green]"
            if analysis.can_auto_apply
            else "[yellow]Not safe to apply automatically[/yellow]"
        )
        review = "[bold]Review required[/bold]" if analysis.requires_review else "No review required"
        body = Group(
            Text(detailed_summary_text(report.comparison, report.manifest)),
            Text(diff_summary_text(report.diffs), style="dim"),
            Text.from_markup(f"{decision} | {review} | confidence {analysis.confidence:.0%}"),
        )
        return Panel(
            body,
            title=Text.assemble("Risk: ", _impact_text(level)),
            border_style=_IMPACT_STYLES.get(level, ""),
            expand=False,
        )

    @staticmethod
    def _file_table(analysis: ChangeAnalysisResult) -> Table:
        table = Table(title="File impact", title_style="bold")
        table.add_column("File", style="bold", no_wrap=True)
        table.add_column("Status", justify="center")
        table.add_column("Impact", justify="center")
        table.add_column("Similarity", justify="right")
        table.add_column("Lines", justify="right")
        table.add_column("Risk factors")

        for assessment in analysis.file_analyses:
            style, prefix = _status_style(assessment.status)
            similarity = "-" if assessment.similarity is None else f"{assessment.similarity:.0%}"
            lines = Text.assemble(
                (f"+{assessment.lines_added}", "green"),
                " ",
                (f"-{assessment.lines_deleted}", "red"),
            )
            path = escape(assessment.path) + (
                " [red](breaking)[/red]" if assessment.has_breaking_changes else ""
            )
            table.add_row(
                path,
                f"[{style}]{prefix} {assessment.status.value}[/{style}]",
                _impact_text(assessment.impact),
                similarity,
                lines,
                ", ".join(assessment.risk_factors) or "[dim]-[/dim]",
            )
        return table

    @staticmethod
    def _manifest_table(manifest: ManifestComparisonResult) -> Table:
        table = Table(title=f"Manifest ({manifest.status.value})", title_style="bold")
        table.add_column("Field", style="bold", no_wrap=True)
        table.add_column("Change", justify="center")
        table.add_column("Old", style="red")
        table.add_column("New", style="green")
        table.add_column("Impact", justify="center")

        for diff in manifest.differences:
            table.add_row(
                escape(diff.field),
                diff.change_type.value,
                _format_value(diff.old_value),
                _format_value(diff.new_value),
                _impact_text(diff.impact),
            )
        return table

    def _render_recommendations(self, analysis: ChangeAnalysisResult) -> None:
        if not analysis.recommendations:
            return
        self._console.print("[bold]Recommendations[/bold]")
        for number, recommendation in enumerate(analysis.recommendations, start=1):
            self._console.print(f"  {number}. {escape(recommendation)}", highlight=False)

    # -- Diff panels ------------------------------------------------------

    def _render_diff_panel(self, file_diff: FileDiff) -> None:
        """Render one file's hunks as a unified diff in a Panel."""
        style, prefix = _status_style(file_diff.status)
        title = f"[{style}]{prefix} {escape(file_diff.path)}[/{style}]"

        if file_diff.is_binary:
            self._console.print(f"{title} [dim](binary)[/dim]")
            return
        if not file_diff.hunks:
            self._console.print(f"{title} [dim](no content)[/dim]")
            return

        diff_text = Text()
        for hunk in file_diff.hunks:
            diff_text.append(hunk.header + "\n", style="cyan")
            for line in hunk.lines:
                line_style, line_prefix = _LINE_STYLES.get(line.kind, ("", " "))
                content = line.content if line.content.endswith("\n") else line.content + "\n"
                diff_text.append(line_prefix + content, style=line_style)

        if file_diff.similarity is not None and file_diff.status == FileStatus.modified:
            title += f" [dim]({file_diff.similarity:.0%} similar)[/dim]"

        self._console.print(Panel(diff_text, title=title, border_style=style, expand=False))


def _format_value(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, tuple):
        return escape(", ".join(str(v) for v in value))
    return escape(str(value))
