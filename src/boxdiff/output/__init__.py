"""Public API for boxdiff.output."""

from __future__ import annotations

from boxdiff.output.base import Renderer
from boxdiff.output.json_output import JsonRenderer
from boxdiff.output.rich_output import RichRenderer
from boxdiff.output.unified_output import UnifiedRenderer

__all__ = [
    "JsonRenderer",
    "Renderer",
    "RichRenderer",
    "UnifiedRenderer",
]
