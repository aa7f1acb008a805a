"""Plain unified diff renderer."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from boxdiff.core.summary import format_file_diff

if TYPE_CHECKING:
    from typing import TextIO

    from boxdiff.core.models import ChangeStats, UpdateReport


class UnifiedRenderer:
    """Writes every changed file as git-style unified diff text.

    The output is deterministic and suitable for ``patch``-style tooling
    or for piping into a pager.
    """

    def __init__(self, output: TextIO | None = None) -> None:
        """Initialize with an optional output stream.

        Args:
            output: Text stream for diff output. Defaults to sys.stdout.
        """
        self._output = output or sys.stdout

    def render(self, report: UpdateReport) -> None:
        """Write the unified diff of every changed file."""
        for file_diff in report.diffs.files:
            self._output.write(format_file_diff(file_diff))

    def render_stats(self, stats: ChangeStats) -> None:
        """Write a one-line summary of the change statistics."""
        review = "review required" if stats.requires_review else "no review required"
        self._output.write(f"{stats.total_changes} changes, {stats.risk_level} risk, {review}\n")
