"""Line-level diff and hunk construction for a single file comparison."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from boxdiff.core.models import (
    DiffHunk,
    DiffLine,
    DiffLineKind,
    DiffSummary,
    FileDiff,
    FileStatus,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from boxdiff.core.models import FileComparison

logger = logging.getLogger(__name__)

BINARY_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico",
        ".pdf", ".zip", ".tar", ".gz", ".rar", ".7z",
        ".exe", ".dll", ".so", ".dylib",
        ".mp3", ".mp4", ".avi", ".mov",
        ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    }
)  # fmt: skip

NO_CONTENT_PLACEHOLDER = "(Binary file or no content)"

_BINARY_SAMPLE_CHARS = 1000
_NON_PRINTABLE_RATIO = 0.1
_ALLOWED_CONTROL = frozenset("\t\n\r")

# Alignment step tags
_EQUAL = "equal"
_DELETE = "delete"
_INSERT = "insert"

_Step = tuple[str, int, int]


def looks_binary(content: str) -> bool:
    """Heuristic binary check on captured text.

    Binary when the text contains a NUL character, or when more than 10% of
    the first 1000 characters are control characters other than tab, CR
    and LF.
    """
    if "\0" in content:
        return True
    sample = content[:_BINARY_SAMPLE_CHARS]
    if not sample:
        return False
    non_printable = sum(1 for ch in sample if ord(ch) < 32 and ch not in _ALLOWED_CONTROL)
    return non_printable / len(sample) > _NON_PRINTABLE_RATIO


def split_lines(content: str) -> list[str]:
    """Split text into lines, keeping line terminators."""
    return content.splitlines(keepends=True)


class DiffBuilder:
    """Builds line-oriented diffs for file comparisons.

    Added and deleted files become a single hunk covering the whole file.
    Modified text files are aligned with a longest-common-subsequence
    backtrace; each run of changes becomes one hunk opened with up to
    ``context_lines`` preceding unchanged lines and closed as soon as both
    sides line up again. Binary files never get hunks.
    """

    def __init__(self, *, context_lines: int = 3) -> None:
        """Initialize with diff context configuration.

        Args:
            context_lines: Number of unchanged lines shown before each run
                of changes. Defaults to 3.
        """
        if context_lines < 0:
            msg = f"context_lines must be >= 0, got {context_lines}"
            raise ValueError(msg)
        self._context_lines = context_lines

    def build_diff(self, comparison: FileComparison) -> FileDiff:
        """Build the diff for one file comparison."""
        is_binary = self.is_binary(comparison)

        if is_binary or comparison.status == FileStatus.unchanged:
            hunks: tuple[DiffHunk, ...] = ()
        elif comparison.status == FileStatus.added:
            hunks = self._whole_file_hunk(comparison, added=True)
        elif comparison.status == FileStatus.deleted:
            hunks = self._whole_file_hunk(comparison, added=False)
        else:
            hunks = self._modified_hunks(comparison)

        return FileDiff(
            path=comparison.path,
            status=comparison.status,
            hunks=hunks,
            is_binary=is_binary,
            similarity=comparison.similarity,
        )

    def build_diffs(self, comparisons: Iterable[FileComparison]) -> DiffSummary:
        """Build diffs for every comparison that is not unchanged."""
        diffs = [self.build_diff(c) for c in comparisons if c.status != FileStatus.unchanged]
        summary = DiffSummary.from_diffs(diffs)
        logger.debug(
            "Built %d diffs: %d insertions, %d deletions",
            summary.files_changed,
            summary.insertions,
            summary.deletions,
        )
        return summary

    @staticmethod
    def is_binary(comparison: FileComparison) -> bool:
        """Detect binary files by extension or captured content."""
        for entry in (comparison.new, comparison.old):
            if entry is None:
                continue
            if entry.extension.lower() in BINARY_EXTENSIONS:
                return True
            if entry.content is not None and looks_binary(entry.content):
                return True
        return False

    # -- Added / deleted files --------------------------------------------

    @staticmethod
    def _whole_file_hunk(comparison: FileComparison, *, added: bool) -> tuple[DiffHunk, ...]:
        """Single hunk marking every line of the file added or deleted."""
        entry = comparison.new if added else comparison.old
        kind = DiffLineKind.added if added else DiffLineKind.deleted

        if entry is None or entry.content is None:
            texts = [NO_CONTENT_PLACEHOLDER]
        else:
            texts = split_lines(entry.content)
            if not texts:
                return ()

        if added:
            lines = tuple(DiffLine(kind, text, new_line=n) for n, text in enumerate(texts, 1))
            return (DiffHunk(0, 0, 1, len(lines), lines),)
        lines = tuple(DiffLine(kind, text, old_line=n) for n, text in enumerate(texts, 1))
        return (DiffHunk(1, len(lines), 0, 0, lines),)

    # -- Modified files ---------------------------------------------------

    def _modified_hunks(self, comparison: FileComparison) -> tuple[DiffHunk, ...]:
        assert comparison.old is not None or comparison.new is not None
        old_content = comparison.old.content if comparison.old else None
        new_content = comparison.new.content if comparison.new else None
        if old_content is None or new_content is None:
            logger.debug("No captured content for %s, diff unavailable", comparison.path)
            return ()
        return self.compute_hunks(split_lines(old_content), split_lines(new_content))

    def compute_hunks(
        self,
        old_lines: Sequence[str],
        new_lines: Sequence[str],
    ) -> tuple[DiffHunk, ...]:
        """Group an LCS alignment of two line arrays into hunks."""
        steps = _align(old_lines, new_lines)
        hunks: list[DiffHunk] = []
        pending: deque[_Step] = deque(maxlen=self._context_lines)
        old_pos = 0
        new_pos = 0
        index = 0

        while index < len(steps):
            if steps[index][0] == _EQUAL:
                pending.append(steps[index])
                old_pos += 1
                new_pos += 1
                index += 1
                continue

            run_end = index
            while run_end < len(steps) and steps[run_end][0] != _EQUAL:
                run_end += 1
            run = steps[index:run_end]
            deleted = [step for step in run if step[0] == _DELETE]
            inserted = [step for step in run if step[0] == _INSERT]

            lines = [
                DiffLine(DiffLineKind.context, old_lines[i], old_line=i + 1, new_line=j + 1)
                for _, i, j in pending
            ]
            lines.extend(
                DiffLine(DiffLineKind.deleted, old_lines[i], old_line=i + 1) for _, i, _ in deleted
            )
            lines.extend(
                DiffLine(DiffLineKind.added, new_lines[j], new_line=j + 1) for _, _, j in inserted
            )

            old_count = len(pending) + len(deleted)
            new_count = len(pending) + len(inserted)
            old_begin = old_pos - len(pending)
            new_begin = new_pos - len(pending)
            hunks.append(
                DiffHunk(
                    old_start=old_begin + 1 if old_count else old_begin,
                    old_count=old_count,
                    new_start=new_begin + 1 if new_count else new_begin,
                    new_count=new_count,
                    lines=tuple(lines),
                )
            )

            pending.clear()
            old_pos += len(deleted)
            new_pos += len(inserted)
            index = run_end

        return tuple(hunks)


def _align(old: Sequence[str], new: Sequence[str]) -> list[_Step]:
    """Align two line arrays with a standard LCS backtrace.

    Builds the suffix LCS table, then walks it from the top-left corner,
    taking matches whenever lines are equal and preferring deletions on
    ties. Steps carry old/new indices (``-1`` where a side does not apply).
    """
    n, m = len(old), len(new)
    table = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = table[i], table[i + 1]
        for j in range(m - 1, -1, -1):
            if old[i] == new[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    steps: list[_Step] = []
    i = j = 0
    while i < n and j < m:
        if old[i] == new[j]:
            steps.append((_EQUAL, i, j))
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            steps.append((_DELETE, i, -1))
            i += 1
        else:
            steps.append((_INSERT, -1, j))
            j += 1
    steps.extend((_DELETE, k, -1) for k in range(i, n))
    steps.extend((_INSERT, -1, k) for k in range(j, m))
    return steps


def apply_hunks(
    lines: Sequence[str],
    hunks: Iterable[DiffHunk],
    *,
    reverse: bool = False,
) -> list[str]:
    """Apply hunks to one side of a diff and return the other side.

    Forward application turns the old line sequence into the new one;
    ``reverse=True`` turns the new sequence back into the old one.

    Raises:
        ValueError: If a context or removed line does not match *lines*.
    """
    keep = DiffLineKind.deleted if reverse else DiffLineKind.added
    drop = DiffLineKind.added if reverse else DiffLineKind.deleted
    result: list[str] = []
    cursor = 0

    for hunk in hunks:
        start = hunk.new_start if reverse else hunk.old_start
        count = hunk.new_count if reverse else hunk.old_count
        begin = start - 1 if count else start
        if begin < cursor:
            msg = f"Overlapping hunk at line {start}"
            raise ValueError(msg)
        result.extend(lines[cursor:begin])
        cursor = begin

        for line in hunk.lines:
            if line.kind == keep:
                result.append(line.content)
                continue
            if line.kind not in (DiffLineKind.context, drop):
                continue
            if cursor >= len(lines) or lines[cursor] != line.content:
                msg = f"Hunk does not apply at line {cursor + 1}"
                raise ValueError(msg)
            if line.kind == DiffLineKind.context:
                result.append(line.content)
            cursor += 1

    result.extend(lines[cursor:])
    return result
