"""Path filtering for box trees: hidden entries, .gitignore, include/exclude rules."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING

from pathspec import GitIgnoreSpec

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

GITIGNORE_FILENAME = ".gitignore"
HIDDEN_PREFIX = "."
MANIFEST_DIR = ".qraft"
RESERVED_DIRS: tuple[str, ...] = (MANIFEST_DIR, ".git")


@dataclass(frozen=True)
class FilterConfig:
    """Which files of a box tree take part in a snapshot.

    ``exclude_patterns`` use gitignore syntax (the same syntax a box
    manifest's ``exclude`` list uses), so ``node_modules/`` prunes a whole
    directory. ``include_patterns`` are plain globs matched against the
    relative path. Directories named in ``reserved_dirs`` are never entered.
    """

    respect_gitignore: bool = True
    include_hidden: bool = False
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()
    reserved_dirs: tuple[str, ...] = RESERVED_DIRS

    def with_excludes(self, patterns: Iterable[str]) -> FilterConfig:
        """Return a copy with *patterns* appended to the exclude list."""
        extra = tuple(p for p in patterns if p not in self.exclude_patterns)
        if not extra:
            return self
        return FilterConfig(
            respect_gitignore=self.respect_gitignore,
            include_hidden=self.include_hidden,
            include_patterns=self.include_patterns,
            exclude_patterns=self.exclude_patterns + extra,
            reserved_dirs=self.reserved_dirs,
        )


class _GitignoreIndex:
    """Nested .gitignore files, keyed by the directory that holds them."""

    def __init__(self) -> None:
        self._specs: dict[str, GitIgnoreSpec] = {}

    def load(self, rel_dir: str, directory: Path) -> None:
        path = directory / GITIGNORE_FILENAME
        if path.is_file():
            lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
            self._specs[rel_dir] = GitIgnoreSpec.from_lines(lines)

    def ignores(self, rel_path: str, *, is_dir: bool) -> bool:
        if not self._specs:
            return False
        candidate = rel_path + "/" if is_dir else rel_path
        parts = rel_path.split("/")
        for depth in range(len(parts)):
            base = "/".join(parts[:depth])
            spec = self._specs.get(base)
            if spec is None:
                continue
            local = candidate[len(base) + 1 :] if base else candidate
            if spec.match_file(local):
                return True
        return False


class FileFilter:
    """Walks a box tree and yields the files that pass every rule.

    Rules run in order: reserved dirs, hidden, gitignore, exclude, include.
    Excluded directories are pruned rather than filtered file by file.
    """

    def __init__(self, config: FilterConfig | None = None) -> None:
        """Initialize the filter with the given configuration."""
        self._config = config or FilterConfig()
        self._excludes = GitIgnoreSpec.from_lines(self._config.exclude_patterns)

    @property
    def config(self) -> FilterConfig:
        """The active filter configuration."""
        return self._config

    def walk(self, root: Path) -> Iterator[tuple[str, Path]]:
        """Yield ``(relative_posix_path, absolute_path)`` pairs in sorted order.

        Raises:
            NotADirectoryError: If root does not exist or is not a directory.
        """
        if not root.is_dir():
            msg = f"Not a directory: {root}"
            raise NotADirectoryError(msg)

        gitignores = _GitignoreIndex()
        for dirpath, dirnames, filenames in os.walk(root):
            directory = Path(dirpath)
            rel_dir = directory.relative_to(root).as_posix()
            if rel_dir == ".":
                rel_dir = ""

            if self._config.respect_gitignore:
                gitignores.load(rel_dir, directory)

            dirnames[:] = sorted(
                d for d in dirnames if self._keep_dir(_join(rel_dir, d), d, gitignores)
            )
            for filename in sorted(filenames):
                rel_path = _join(rel_dir, filename)
                if self.accepts(rel_path, gitignores=gitignores):
                    yield rel_path, directory / filename

    def paths(self, root: Path) -> tuple[str, ...]:
        """Return the sorted relative paths of all accepted files under *root*."""
        return tuple(sorted(rel for rel, _ in self.walk(root)))

    def accepts(self, rel_path: str, *, gitignores: _GitignoreIndex | None = None) -> bool:
        """Whether a single relative file path passes the file-level rules."""
        name = rel_path.rsplit("/", 1)[-1]
        if not self._config.include_hidden and name.startswith(HIDDEN_PREFIX):
            return False
        if gitignores is not None and gitignores.ignores(rel_path, is_dir=False):
            return False
        if self._excludes.match_file(rel_path):
            return False
        if self._config.include_patterns:
            return any(fnmatch(rel_path, p) for p in self._config.include_patterns)
        return True

    def _keep_dir(self, rel_path: str, name: str, gitignores: _GitignoreIndex) -> bool:
        if name in self._config.reserved_dirs:
            return False
        if not self._config.include_hidden and name.startswith(HIDDEN_PREFIX):
            return False
        if self._config.respect_gitignore and gitignores.ignores(rel_path, is_dir=True):
            return False
        return not self._excludes.match_file(rel_path + "/")


def _join(directory: str, name: str) -> str:
    return f"{directory}/{name}" if directory else name
