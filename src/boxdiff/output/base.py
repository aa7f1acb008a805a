"""Renderer protocol for update reports."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from boxdiff.core.models import ChangeStats, UpdateReport


@runtime_checkable
class Renderer(Protocol):
    """Protocol for rendering update reports.

    Implementations write a full report with ``render`` and the compact
    statistics used by ``--stat`` with ``render_stats``.
    """

    def render(self, report: UpdateReport) -> None:
        """Render the full update report."""
        ...

    def render_stats(self, stats: ChangeStats) -> None:
        """Render compact change statistics."""
        ...
