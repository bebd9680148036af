"""Ingester for local project folders."""

import logging
import os
from pathlib import Path
from typing import Iterator

import pathspec

from codecontext.models import FileMetadata

logger = logging.getLogger(__name__)

# Directory and file names that are never part of a project's sources
SKIP_NAMES = {
    "__pycache__",
    "node_modules",
    "bower_components",
    "target",
    "venv",
    "env",
    "dist",
    "build",
    "out",
    "vendor",
    "site-packages",
}

SKIP_SUFFIXES = (".egg-info", ".min.js", ".map", ".lock")


class FolderIngester:
    """Enumerates candidate source files under a directory."""

    source_type = "folder"

    def __init__(self, respect_gitignore: bool = True):
        self.respect_gitignore = respect_gitignore

    def can_handle(self, source: Path) -> bool:
        """Check if this is an existing directory."""
        return source.is_dir()

    def discover(self, source: Path) -> Iterator[FileMetadata]:
        """Yield metadata for candidate files under a folder, recursively.

        Hidden entries, common build artifacts and gitignored paths are
        pruned; directories are walked in sorted order so results are
        stable across runs. Ignore rules come from `.git/info/exclude`
        and from every `.gitignore` on the way down, with patterns in
        deeper files taking precedence, as in git.

        Args:
            source: Path to the project root

        Yields:
            FileMetadata for each candidate file (content is not read)
        """
        specs: dict[tuple[str, ...], pathspec.PathSpec] = {}
        exclude: list[str] = []
        if self.respect_gitignore:
            exclude = self._load_patterns(source / ".git" / "info" / "exclude")

        for root, dirs, files in os.walk(source):
            root_path = Path(root)
            rel_root = root_path.relative_to(source)
            active: list[tuple[tuple[str, ...], pathspec.PathSpec]] = []
            if self.respect_gitignore:
                patterns = self._load_patterns(root_path / ".gitignore")
                if not rel_root.parts:
                    # Repository-wide excludes rank below the root .gitignore
                    patterns = exclude + patterns
                if patterns:
                    specs[rel_root.parts] = pathspec.PathSpec.from_lines("gitwildmatch", patterns)
                active = self._applicable(specs, rel_root.parts)

            dirs[:] = sorted(
                d
                for d in dirs
                if not self._should_skip_name(d)
                and not self._ignored(active, rel_root / d, is_dir=True)
            )

            for filename in sorted(files):
                if self._should_skip_name(filename):
                    continue
                rel_path = rel_root / filename
                if self._ignored(active, rel_path):
                    continue

                full_path = root_path / filename
                try:
                    stat = full_path.stat()
                except OSError as e:
                    logger.debug("Cannot stat %s: %s", full_path, e)
                    continue
                if not full_path.is_file():
                    continue

                yield FileMetadata(
                    path=full_path,
                    size_bytes=stat.st_size,
                    extension=full_path.suffix.lower(),
                )

    @staticmethod
    def _should_skip_name(name: str) -> bool:
        """Skip hidden entries and common build artifacts."""
        if name.startswith("."):
            return True
        if name in SKIP_NAMES:
            return True
        return name.endswith(SKIP_SUFFIXES)

    @staticmethod
    def _applicable(
        specs: dict[tuple[str, ...], pathspec.PathSpec], parts: tuple[str, ...]
    ) -> list[tuple[tuple[str, ...], pathspec.PathSpec]]:
        """Specs of `parts` and its ancestors, shallowest first."""
        return [
            (parts[:depth], specs[parts[:depth]])
            for depth in range(len(parts) + 1)
            if parts[:depth] in specs
        ]

    @staticmethod
    def _ignored(
        active: list[tuple[tuple[str, ...], pathspec.PathSpec]],
        rel_path: Path,
        is_dir: bool = False,
    ) -> bool:
        """Last matching pattern wins, so deeper files can re-include paths."""
        ignored = False
        for base, spec in active:
            posix = Path(*rel_path.parts[len(base) :]).as_posix()
            if is_dir:
                posix += "/"
            for pattern in spec.patterns:
                if pattern.include is not None and pattern.match_file(posix) is not None:
                    ignored = pattern.include
        return ignored

    @staticmethod
    def _load_patterns(path: Path) -> list[str]:
        """Read ignore patterns from one file, or none if it is missing."""
        if not path.is_file():
            return []
        try:
            return path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read %s: %s", path, e)
            return []
