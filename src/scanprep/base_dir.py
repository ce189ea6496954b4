# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Resolve the single base directory bounding an analysis run."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from scanprep import properties
from scanprep.config import ConfigSource
from scanprep.paths import PathComparer, best_common_prefix, is_in_directory

logger = logging.getLogger(__name__)

Provenance = Literal["UserSupplied", "WorkingDirectory", "CommonPrefix"]

BASE_DIR_SEMANTICS_MESSAGE = (
    "The project base directory bounds the analysis: files outside of it are not analyzed. "
    f"Set {properties.PROJECT_BASE_DIR} explicitly to analyze a different directory tree."
)


class RootOverrideNotFoundError(RuntimeError):
    """Represent an explicit base directory that does not exist on disk."""


@dataclass(frozen=True)
class ResolvedRoot:
    """Represent the chosen base directory.

    Attributes:
        path: Base directory for the run.
        provenance: Which rule selected the directory.
        excluded_dirs: Project directories left outside the base directory.
    """

    path: Path
    provenance: Provenance
    excluded_dirs: tuple[Path, ...] = ()


def resolve_root(
    project_dirs: Sequence[Path],
    source: ConfigSource,
    comparer: PathComparer,
    working_directory: Path | None = None,
    cwd: Path | None = None,
) -> ResolvedRoot | None:
    """Resolve the base directory, first defined rule wins.

    Order: explicit override (local, environment, then server), then the
    working directory when it contains every project, then the best common
    prefix of the project directories.

    Args:
        project_dirs: Directories of valid projects in declaration order.
        source: Layered property lookup.
        comparer: Path equality policy.
        working_directory: Optional working directory candidate.
        cwd: Directory relative overrides resolve against. Defaults to ``Path.cwd()``.

    Returns:
        The resolved root, or ``None`` when no common ancestor exists.

    Raises:
        RootOverrideNotFoundError: If the explicit override does not exist.
    """
    override = source.get(properties.PROJECT_BASE_DIR)
    if override is not None:
        candidate = Path(override.strip())
        if not candidate.is_absolute():
            candidate = (cwd or Path.cwd()) / candidate
        # resolve() also expands short-name path forms on Windows
        resolved = candidate.resolve()
        if not resolved.is_dir():
            raise RootOverrideNotFoundError(
                f"The project base directory does not exist: {resolved}"
            )
        logger.debug(f"Using user supplied project base directory (path={resolved})")
        return _resolved(ResolvedRoot(path=resolved, provenance="UserSupplied"))

    if working_directory is not None and project_dirs and all(
        is_in_directory(directory, working_directory, comparer) for directory in project_dirs
    ):
        logger.debug(
            f"Using working directory as project base directory (path={working_directory})"
        )
        return _resolved(ResolvedRoot(path=working_directory, provenance="WorkingDirectory"))

    common = best_common_prefix(project_dirs, comparer)
    if common is None:
        return None
    listing = "".join(f"\n  {directory}" for directory in project_dirs)
    logger.debug(
        f"Using longest common project path as base directory (path={common}). "
        f"Identified project paths:{listing}"
    )
    excluded = tuple(
        directory
        for directory in project_dirs
        if not is_in_directory(directory, common, comparer)
    )
    for directory in excluded:
        logger.warning(
            f"Directory is not located under the base directory and will not be analyzed "
            f"(path={directory} base_dir={common})"
        )
    return _resolved(
        ResolvedRoot(path=common, provenance="CommonPrefix", excluded_dirs=excluded)
    )


def _resolved(root: ResolvedRoot) -> ResolvedRoot:
    logger.info(BASE_DIR_SEMANTICS_MESSAGE)
    return root
