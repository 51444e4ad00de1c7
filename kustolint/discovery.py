"""Discovery of the file sets each checker consumes."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Sequence

from .config import CheckConfig
from .git.index import GitIndexError, TrackedFiles
from .logging import get_logger
from .models import DiscoveredFiles, ManifestDirectory, TrackedFileSet

_EXCLUDED_DIRS = {".git"}


class FileSetDiscoverer:
    """Collects tracked markdown/shell files and kustomization directories."""

    def __init__(
        self,
        config: CheckConfig,
        tracked_files: TrackedFiles | None = None,
    ) -> None:
        self.config = config
        self.tracked_files = tracked_files or TrackedFiles()
        self.logger = get_logger("discovery")

    def discover(self, root: Path) -> DiscoveredFiles:
        """Return the markdown, shell and manifest-directory sets for ``root``."""
        markdown_cfg = self.config.markdown
        shell_cfg = self.config.shell
        markdown = self._tracked(root, "markdown", markdown_cfg.patterns, markdown_cfg.exclude)
        shell = self._tracked(root, "shell", shell_cfg.patterns, shell_cfg.exclude)
        manifests = find_manifest_directories(
            root, self.config.roots, self.config.manifests.descriptors
        )
        self.logger.debug(
            "Discovered %d markdown files, %d shell scripts, %d manifest directories",
            len(markdown),
            len(shell),
            len(manifests),
        )
        return DiscoveredFiles(
            markdown=markdown,
            shell=shell,
            manifests=tuple(ManifestDirectory(path) for path in manifests),
        )

    def _tracked(
        self,
        root: Path,
        kind: str,
        patterns: Sequence[str],
        exclude: Sequence[str],
    ) -> TrackedFileSet:
        try:
            paths = self.tracked_files.list(root, patterns, exclude=exclude)
        except GitIndexError as exc:
            self.logger.warning("Cannot list tracked %s files, skipping: %s", kind, exc)
            return TrackedFileSet(kind=kind)
        return TrackedFileSet(kind=kind, paths=tuple(paths))


def find_manifest_directories(
    root: Path,
    search_roots: Sequence[str],
    descriptors: Sequence[str],
) -> List[str]:
    """Return sorted relative directories that directly hold a descriptor file.

    Descriptor names match case-insensitively. Missing search roots are ignored.
    """
    names = {name.lower() for name in descriptors}
    found: set[str] = set()
    for search_root in search_roots:
        base = root / search_root
        if not base.is_dir():
            continue
        for dirpath, dirnames, filenames in os.walk(base):
            dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
            if any(filename.lower() in names for filename in filenames):
                found.add(Path(dirpath).relative_to(root).as_posix())
    return sorted(found)


__all__ = ["FileSetDiscoverer", "find_manifest_directories"]
