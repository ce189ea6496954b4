# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Directory enumeration capability used by additional-file discovery."""

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class DirectoryLister(Protocol):
    """Define directory and file enumeration used during classification."""

    def list_directories(self, root: Path, recursive: bool) -> list[Path]:
        """Return directories below ``root`` (not including ``root`` itself)."""
        ...

    def list_files(self, directory: Path) -> list[Path]:
        """Return files directly inside ``directory``."""
        ...


class FileSystemLister:
    """List directories and files from the local filesystem.

    Inaccessible directories are logged and contribute no entries.
    """

    def list_directories(self, root: Path, recursive: bool) -> list[Path]:
        """Enumerate subdirectories breadth-first in name order.

        Args:
            root: Directory to enumerate.
            recursive: Whether to descend into subdirectories.

        Returns:
            Subdirectories of ``root``; symlinked directories are not followed.
        """
        found: list[Path] = []
        queue: list[Path] = [root]
        while queue:
            current = queue.pop(0)
            for child in self._children(current):
                if child.is_dir() and not child.is_symlink():
                    found.append(child)
                    if recursive:
                        queue.append(child)
        return found

    def list_files(self, directory: Path) -> list[Path]:
        return [child for child in self._children(directory) if child.is_file()]

    def _children(self, directory: Path) -> list[Path]:
        try:
            return sorted(directory.iterdir(), key=lambda item: item.name)
        except OSError as exc:
            logger.warning(
                f"Skipping inaccessible directory (path={directory} error={exc})"
            )
            return []
