"""JSON export renderer."""

from __future__ import annotations

import dataclasses
import json
import sys
from collections.abc import Mapping
from datetime import datetime
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typing import TextIO

    from boxdiff.core.models import ChangeStats, UpdateReport


class _ReportEncoder(json.JSONEncoder):
    """JSON encoder for the few non-native values in a report.

    StrEnum values serialize natively as strings.
    """

    def default(self, o: object) -> object:
        """Encode paths, timestamps and read-only mappings."""
        if isinstance(o, PurePath):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, Mapping):
            return dict(o)
        return super().default(o)


def _without_file_content(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    """asdict factory that drops captured content from file entries."""
    data = dict(pairs)
    if "relative_path" in data:
        data.pop("content", None)
    return data


class JsonRenderer:
    """Renders update reports as JSON to a text stream.

    Output modes:
    - render(): Full UpdateReport as a JSON object
    - render_stats(): ChangeStats only

    Captured file content is left out of full reports unless
    ``include_content`` is set; diff lines are always included.
    """

    def __init__(
        self,
        output: TextIO | None = None,
        *,
        indent: int = 2,
        include_content: bool = False,
    ) -> None:
        """Initialize with an optional output stream.

        Args:
            output: Text stream for JSON output. Defaults to sys.stdout.
            indent: JSON indentation level. Defaults to 2.
            include_content: Keep captured file content in snapshot entries.
        """
        self._output = output or sys.stdout
        self._indent = indent
        self._include_content = include_content

    def render(self, report: UpdateReport) -> None:
        """Serialize the full update report as JSON."""
        if self._include_content:
            data = dataclasses.asdict(report)
        else:
            data = dataclasses.asdict(report, dict_factory=_without_file_content)
        self._dump(data)

    def render_stats(self, stats: ChangeStats) -> None:
        """Serialize compact change statistics as JSON."""
        self._dump(dataclasses.asdict(stats))

    def _dump(self, data: dict[str, Any]) -> None:
        json.dump(data, self._output, cls=_ReportEncoder, indent=self._indent)
        self._output.write("\n")
