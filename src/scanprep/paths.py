# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Path comparison strategies and common-ancestor algebra."""

import logging
import platform
from collections.abc import Iterable
from pathlib import PurePath
from typing import Protocol, TypeVar

logger = logging.getLogger(__name__)

PathT = TypeVar("PathT", bound=PurePath)

CASE_INSENSITIVE_SYSTEMS: frozenset[str] = frozenset({"Windows", "Darwin"})


class PathComparer(Protocol):
    """Define equality policy for path segments and full paths."""

    case_sensitive: bool

    def key(self, value: str) -> str:
        """Return the normalized comparison key for one path or segment."""
        ...

    def equals(self, left: str, right: str) -> bool:
        """Return whether two paths or segments are considered equal."""
        ...


class OrdinalComparer:
    """Compare paths exactly, as on Unix-like filesystems."""

    case_sensitive = True

    def key(self, value: str) -> str:
        return value

    def equals(self, left: str, right: str) -> bool:
        return left == right


class IgnoreCaseComparer:
    """Compare paths ignoring case, as on Windows and macOS filesystems."""

    case_sensitive = False

    def key(self, value: str) -> str:
        return value.casefold()

    def equals(self, left: str, right: str) -> bool:
        return left.casefold() == right.casefold()


ORDINAL = OrdinalComparer()
IGNORE_CASE = IgnoreCaseComparer()


def comparer_for_platform(
    system: str | None = None, case_sensitive: bool | None = None
) -> PathComparer:
    """Select the path comparer once for the running platform.

    Args:
        system: Platform name as reported by ``platform.system()``. Detected when omitted.
        case_sensitive: Explicit override that bypasses platform detection.

    Returns:
        Comparer matching the filesystem case policy.
    """
    if case_sensitive is not None:
        return ORDINAL if case_sensitive else IGNORE_CASE
    detected = system if system is not None else platform.system()
    if detected in CASE_INSENSITIVE_SYSTEMS:
        logger.debug(f"Using case-insensitive path comparison (system={detected})")
        return IGNORE_CASE
    return ORDINAL


def path_key(path: PurePath, comparer: PathComparer) -> str:
    """Return a hashable comparison key for a full path."""
    return comparer.key(str(path))


def is_in_directory(path: PurePath, directory: PurePath, comparer: PathComparer) -> bool:
    """Check whether ``path`` equals or lies below ``directory``, segment by segment.

    Args:
        path: Candidate file or directory path.
        directory: Potential ancestor directory.
        comparer: Segment equality policy.

    Returns:
        True when every segment of ``directory`` prefixes ``path``.
    """
    directory_parts = directory.parts
    path_parts = path.parts
    if len(directory_parts) > len(path_parts):
        return False
    return all(
        comparer.equals(left, right)
        for left, right in zip(directory_parts, path_parts)
    )


def best_common_prefix(
    paths: Iterable[PathT], comparer: PathComparer
) -> PathT | None:
    """Compute the longest shared ancestor of the majority root group.

    Paths are grouped by their first segment (drive or filesystem root). The
    group holding strictly more members than any other wins; a tie yields
    ``None``. The winning group is then reduced segment-wise to its longest
    common prefix, which may be the root itself.

    Args:
        paths: Absolute directory paths.
        comparer: Segment equality policy.

    Returns:
        The shared ancestor, or ``None`` when no single majority root exists.
    """
    groups: dict[str, list[PathT]] = {}
    for path in paths:
        if not path.parts:
            continue
        groups.setdefault(comparer.key(path.parts[0]), []).append(path)
    if not groups:
        return None

    ranked = sorted(groups.values(), key=len, reverse=True)
    if len(ranked) > 1 and len(ranked[0]) == len(ranked[1]):
        logger.debug(
            f"No majority root among project directories (roots={len(ranked)})"
        )
        return None

    group = ranked[0]
    first = group[0]
    prefix_length = len(first.parts)
    for other in group[1:]:
        shared = 0
        for left, right in zip(first.parts[:prefix_length], other.parts):
            if not comparer.equals(left, right):
                break
            shared += 1
        prefix_length = shared
    if prefix_length == 0:
        return None
    return type(first)(*first.parts[:prefix_length])
