"""Tests for boxdiff.core.filtering."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from typing import TYPE_CHECKING

import pytest

from boxdiff.core.filtering import RESERVED_DIRS, FileFilter, FilterConfig

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def box_tree(tmp_path: Path) -> Path:
    """A box tree exercising every filter layer.

    Structure:
        box/
            .gitignore        (ignores *.log and build/)
            .qraft/manifest.json
            .env
            README.md
            debug.log
            build/out.js
            node_modules/pkg/index.js
            src/app.js
            src/.gitignore    (ignores local.js)
            src/local.js
    """
    root = tmp_path / "box"
    for sub in (".qraft", "build", "node_modules/pkg", "src"):
        (root / sub).mkdir(parents=True)
    (root / ".gitignore").write_text("*.log\nbuild/\n")
    (root / ".qraft" / "manifest.json").write_text("{}")
    (root / ".env").write_text("SECRET=1\n")
    (root / "README.md").write_text("# Box\n")
    (root / "debug.log").write_text("log\n")
    (root / "build" / "out.js").write_text("built\n")
    (root / "node_modules" / "pkg" / "index.js").write_text("dep\n")
    (root / "src" / "app.js").write_text("app\n")
    (root / "src" / ".gitignore").write_text("local.js\n")
    (root / "src" / "local.js").write_text("local\n")
    return root


class TestFilterConfig:
    """Verify FilterConfig frozen dataclass."""

    def test_default_values(self) -> None:
        config = FilterConfig()
        assert config.respect_gitignore is True
        assert config.include_hidden is False
        assert config.include_patterns == ()
        assert config.exclude_patterns == ()
        assert config.reserved_dirs == RESERVED_DIRS

    def test_frozen_immutable(self) -> None:
        config = FilterConfig()
        with pytest.raises(FrozenInstanceError):
            config.include_hidden = True  # type: ignore[misc]

    def test_with_excludes_appends(self) -> None:
        config = FilterConfig(exclude_patterns=("*.tmp",))
        extended = config.with_excludes(["node_modules/", "*.tmp"])
        assert extended.exclude_patterns == ("*.tmp", "node_modules/")
        assert config.exclude_patterns == ("*.tmp",)

    def test_with_excludes_noop_returns_self(self) -> None:
        config = FilterConfig(exclude_patterns=("*.tmp",))
        assert config.with_excludes(["*.tmp"]) is config


class TestFileFilterWalk:
    """Directory walking with layered rules."""

    def test_default_rules(self, box_tree: Path) -> None:
        result = FileFilter().paths(box_tree)
        assert result == ("README.md", "node_modules/pkg/index.js", "src/app.js")

    def test_without_gitignore(self, box_tree: Path) -> None:
        result = FileFilter(FilterConfig(respect_gitignore=False)).paths(box_tree)
        assert "debug.log" in result
        assert "build/out.js" in result
        assert "src/local.js" in result

    def test_hidden_included_but_reserved_dirs_skipped(self, box_tree: Path) -> None:
        result = FileFilter(FilterConfig(include_hidden=True)).paths(box_tree)
        assert ".env" in result
        assert ".gitignore" in result
        assert not any(path.startswith(".qraft/") for path in result)

    def test_exclude_prunes_directories(self, box_tree: Path) -> None:
        config = FilterConfig(exclude_patterns=("node_modules/",))
        result = FileFilter(config).paths(box_tree)
        assert result == ("README.md", "src/app.js")

    def test_exclude_file_glob(self, box_tree: Path) -> None:
        config = FilterConfig(exclude_patterns=("*.md",))
        assert "README.md" not in FileFilter(config).paths(box_tree)

    def test_include_patterns(self, box_tree: Path) -> None:
        config = FilterConfig(include_patterns=("src/*",))
        assert FileFilter(config).paths(box_tree) == ("src/app.js",)

    def test_walk_yields_absolute_paths(self, box_tree: Path) -> None:
        pairs = dict(FileFilter().walk(box_tree))
        assert pairs["src/app.js"] == box_tree / "src" / "app.js"

    def test_not_a_directory(self, tmp_path: Path) -> None:
        with pytest.raises(NotADirectoryError):
            FileFilter().paths(tmp_path / "missing")

    def test_file_root(self, tmp_path: Path) -> None:
        target = tmp_path / "file.txt"
        target.write_text("x\n")
        with pytest.raises(NotADirectoryError):
            FileFilter().paths(target)


class TestAccepts:
    """Single-path decisions."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/app.js", True),
            (".env", False),
            ("dist/bundle.js", False),
            ("notes/todo.md", True),
        ],
    )
    def test_accepts(self, path: str, expected: bool) -> None:
        config = FilterConfig(exclude_patterns=("dist/",))
        assert FileFilter(config).accepts(path) is expected
