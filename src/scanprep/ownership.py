# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Assign files to the closest owning project or to the root module."""

import logging
from collections.abc import Iterable
from pathlib import Path, PurePath

from scanprep.merger import ProjectRecord
from scanprep.paths import PathComparer, is_in_directory, path_key

logger = logging.getLogger(__name__)

BINARY_EXTENSIONS: frozenset[str] = frozenset({".exe", ".dll"})
NUGET_PACKAGES_SEGMENTS: tuple[str, str] = (".nuget", "packages")


def closest_project(
    path: PurePath, records: Iterable[ProjectRecord], comparer: PathComparer
) -> ProjectRecord | None:
    """Return the project whose directory is the nearest ancestor of ``path``.

    The deepest containing directory wins; among equal directories the first
    record in declaration order wins.
    """
    best: ProjectRecord | None = None
    best_depth = -1
    for record in records:
        directory = record.project_dir
        if not is_in_directory(path, directory, comparer):
            continue
        depth = len(directory.parts)
        if depth > best_depth:
            best = record
            best_depth = depth
    return best


def assign_module_files(
    records: list[ProjectRecord], root: Path, comparer: PathComparer
) -> list[Path]:
    """Distribute referenced files of valid projects to their owning modules.

    Args:
        records: Project records; only valid ones are considered.
        root: Resolved base directory.
        comparer: Path equality policy.

    Returns:
        Files inside ``root`` that no referencing project directory contains.
    """
    owners_per_file: dict[str, tuple[Path, list[ProjectRecord]]] = {}
    for record in records:
        if not record.is_valid:
            continue
        for file_path in record.referenced_files:
            if file_path.suffix.lower() in BINARY_EXTENSIONS:
                continue
            key = path_key(file_path, comparer)
            owners_per_file.setdefault(key, (file_path, []))[1].append(record)

    root_sources: list[Path] = []
    for file_path, owners in owners_per_file.values():
        if not is_in_directory(file_path, root, comparer):
            if not _is_nuget_package(file_path, comparer):
                logger.warning(
                    f"File is not located under the base directory and will not be analyzed "
                    f"(path={file_path} base_dir={root})"
                )
            logger.debug(
                "File referenced by projects (path=%s projects=%s)",
                file_path,
                ", ".join(owner.descriptor.full_path for owner in owners),
            )
            continue
        owner = closest_project(file_path, owners, comparer)
        if owner is None:
            root_sources.append(file_path)
        else:
            owner.module_files.append(file_path)
    return root_sources


def demote_empty_projects(records: list[ProjectRecord]) -> None:
    """Mark valid projects left without any file as having nothing to analyze."""
    for record in records:
        if record.is_valid and not record.has_files():
            logger.debug(f"Project has no files under the base directory (guid={record.guid})")
            record.status = "NoFilesToAnalyze"


def _is_nuget_package(path: PurePath, comparer: PathComparer) -> bool:
    parts = path.parts
    first, second = NUGET_PACKAGES_SEGMENTS
    return any(
        comparer.equals(parts[index], first) and comparer.equals(parts[index + 1], second)
        for index in range(len(parts) - 1)
    )
