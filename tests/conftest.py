"""Shared test fixtures for boxdiff."""

from __future__ import annotations

import json
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any

import pytest

from boxdiff.core.comparator import Comparator
from boxdiff.core.models import FileEntry, Snapshot

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from pathlib import Path

    from boxdiff.core.models import UpdateReport


def _entry(
    path: str,
    content: str | None = None,
    *,
    size: int | None = None,
    extension: str | None = None,
) -> FileEntry:
    if size is None:
        size = len(content.encode("utf-8")) if content is not None else 0
    if extension is None:
        extension = PurePosixPath(path).suffix.lower()
    return FileEntry(relative_path=path, size=size, extension=extension, content=content)


@pytest.fixture
def make_entry() -> Callable[..., FileEntry]:
    """Factory for FileEntry objects with size and extension derived from content."""
    return _entry


@pytest.fixture
def make_snapshot() -> Callable[[Mapping[str, str | None]], Snapshot]:
    """Factory building a Snapshot from a ``{path: content}`` mapping."""

    def build(files: Mapping[str, str | None]) -> Snapshot:
        return Snapshot(files=tuple(_entry(path, content) for path, content in files.items()))

    return build


@pytest.fixture
def manifest_data() -> dict[str, Any]:
    """A valid manifest.json object."""
    return {
        "name": "react-starter",
        "description": "React + Vite starter",
        "author": "Jane Doe",
        "version": "1.4.0",
        "tags": ["react", "frontend"],
        "exclude": ["node_modules/"],
        "postInstall": ["npm install"],
    }


@pytest.fixture
def box_dirs(tmp_path: Path, manifest_data: dict[str, Any]) -> tuple[Path, Path]:
    """Create an installed box and its incoming update on disk.

    Structure:
        installed/
            .qraft/manifest.json  (version 1.4.0)
            README.md             (modified in update)
            src/app.js            (unchanged)
            old.txt               (deleted in update)
        incoming/
            .qraft/manifest.json  (version 1.5.0)
            README.md
            src/app.js
            src/new.js            (added)
    """
    installed = tmp_path / "installed"
    incoming = tmp_path / "incoming"
    for root in (installed, incoming):
        (root / ".qraft").mkdir(parents=True)
        (root / "src").mkdir()
        (root / "src" / "app.js").write_text("console.log('app');\n")

    (installed / ".qraft" / "manifest.json").write_text(json.dumps(manifest_data))
    (incoming / ".qraft" / "manifest.json").write_text(
        json.dumps({**manifest_data, "version": "1.5.0"})
    )

    (installed / "README.md").write_text("# Starter\n\nRun npm start.\n")
    (incoming / "README.md").write_text("# Starter\n\nRun npm run dev.\n")
    (installed / "old.txt").write_text("obsolete\n")
    (incoming / "src" / "new.js").write_text("export const x = 1;\n")

    return installed, incoming


@pytest.fixture
def identical_box_dirs(tmp_path: Path, manifest_data: dict[str, Any]) -> tuple[Path, Path]:
    """Two box directories with identical files and manifests."""
    roots = (tmp_path / "installed", tmp_path / "incoming")
    for root in roots:
        (root / ".qraft").mkdir(parents=True)
        (root / ".qraft" / "manifest.json").write_text(json.dumps(manifest_data))
        (root / "index.md").write_text("hello\n")
    return roots


@pytest.fixture
def update_report(box_dirs: tuple[Path, Path]) -> UpdateReport:
    """Full analysis of the ``box_dirs`` update."""
    return Comparator().compare_paths(*box_dirs)


@pytest.fixture
def quiet_report(identical_box_dirs: tuple[Path, Path]) -> UpdateReport:
    """Analysis of an update that changes nothing."""
    return Comparator().compare_paths(*identical_box_dirs)
