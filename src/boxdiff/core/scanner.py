"""Directory snapshots: file metadata plus captured text content."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from boxdiff.config import DEFAULT_MAX_CONTENT_BYTES
from boxdiff.core.filtering import MANIFEST_DIR, FileFilter, FilterConfig
from boxdiff.core.models import FileEntry, Snapshot

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"
MANIFEST_LOCATIONS: tuple[str, ...] = (f"{MANIFEST_DIR}/{MANIFEST_FILENAME}", MANIFEST_FILENAME)

_BINARY_PROBE_BYTES = 8192


class SnapshotScanner:
    """Builds a Snapshot from a directory on disk.

    Text content is captured for files no larger than ``max_content_bytes``
    that decode as UTF-8 and have no NUL byte near the start. Everything
    else is recorded with size and extension only.
    """

    def __init__(
        self,
        filter_config: FilterConfig | None = None,
        *,
        max_content_bytes: int = DEFAULT_MAX_CONTENT_BYTES,
    ) -> None:
        """Initialize the scanner.

        Args:
            filter_config: Filtering rules. Defaults to FilterConfig() if None.
            max_content_bytes: Largest file whose content is captured.
        """
        if max_content_bytes < 0:
            msg = f"max_content_bytes must be >= 0, got {max_content_bytes}"
            raise ValueError(msg)
        self._filter = FileFilter(filter_config)
        self._max_content_bytes = max_content_bytes

    def scan(self, root: Path) -> Snapshot:
        """Scan *root* and return an immutable snapshot.

        Raises:
            NotADirectoryError: If root does not exist or is not a directory.
        """
        root = root.resolve()
        files = tuple(self._entry(rel, path) for rel, path in self._filter.walk(root))
        captured = sum(1 for f in files if f.content is not None)
        logger.debug("Scanned %s: %d files, %d with content", root, len(files), captured)
        return Snapshot(files=files, root=root)

    def _entry(self, rel_path: str, path: Path) -> FileEntry:
        stat = path.stat()
        return FileEntry(
            relative_path=rel_path,
            size=stat.st_size,
            extension=PurePosixPath(rel_path).suffix.lower(),
            content=self._read_content(rel_path, path, stat.st_size),
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
        )

    def _read_content(self, rel_path: str, path: Path, size: int) -> str | None:
        if size > self._max_content_bytes:
            logger.warning(
                "Skipping content of %s: %d bytes exceeds %d",
                rel_path,
                size,
                self._max_content_bytes,
            )
            return None

        data = path.read_bytes()
        if b"\0" in data[:_BINARY_PROBE_BYTES]:
            logger.debug("Binary content in %s", rel_path)
            return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Content of %s is not UTF-8", rel_path)
            return None


def find_manifest(root: Path) -> str | None:
    """Return the raw text of the box manifest under *root*, if present.

    ``.qraft/manifest.json`` takes precedence over a top-level
    ``manifest.json``.
    """
    for location in MANIFEST_LOCATIONS:
        candidate = root / location
        if candidate.is_file():
            logger.debug("Found manifest at %s", candidate)
            return candidate.read_text(encoding="utf-8", errors="replace")
    return None
