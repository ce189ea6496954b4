# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Discover files the build did not reference, using suffix and glob rules."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import pathspec

from scanprep import properties
from scanprep.config import AnalysisConfig, ConfigSource
from scanprep.filesystem import DirectoryLister
from scanprep.merger import ProjectRecord
from scanprep.ownership import closest_project
from scanprep.paths import PathComparer, path_key

logger = logging.getLogger(__name__)

FileRole = Literal["source", "test"]

RESERVED_DIRECTORY_NAMES: frozenset[str] = frozenset({".sonarqube", ".sonar"})

# Produced by native build tooling, never analyzed as additional files.
EXCLUDED_FILE_NAMES: frozenset[str] = frozenset(
    {"build-wrapper-dump.json", "compile_commands.json"}
)

SUFFIX_PROPERTIES: tuple[str, ...] = (
    "sonar.tsql.file.suffixes",
    "sonar.plsql.file.suffixes",
    "sonar.yaml.file.suffixes",
    "sonar.xml.file.suffixes",
    "sonar.json.file.suffixes",
    "sonar.css.file.suffixes",
    "sonar.html.file.suffixes",
    "sonar.javascript.file.suffixes",
    "sonar.typescript.file.suffixes",
)

GLOB_PROPERTY_DEFAULTS: dict[str, tuple[str, ...]] = {
    "sonar.docker.file.patterns": ("**/Dockerfile", "**/*.dockerfile"),
    "sonar.java.jvmframeworkconfig.file.patterns": (
        "**/src/main/resources/**/*app*.properties",
        "**/src/main/resources/**/*app*.yaml",
        "**/src/main/resources/**/*app*.yml",
    ),
    "sonar.text.inclusions": (
        "**/*.sh",
        "**/*.bash",
        "**/*.zsh",
        "**/*.ksh",
        "**/*.ps1",
        "**/*.properties",
        "**/*.conf",
        "**/*.pem",
        "**/*.config",
        ".env",
        ".aws/config",
    ),
}

TEST_MARKERS: tuple[str, ...] = (".test", ".spec")
RECURSIVE_PREFIX = "**/"


@dataclass
class AnalysisFiles:
    """Represent files attached to the root module."""

    sources: list[Path] = field(default_factory=list)
    tests: list[Path] = field(default_factory=list)


def normalize_suffixes(raw: str) -> list[str]:
    """Split a comma-separated suffix list into lower-case, dot-prefixed suffixes.

    Args:
        raw: Property value such as ``"js, .jsx,cs.html"``.

    Returns:
        Normalized suffixes in declaration order without duplicates.
    """
    suffixes: list[str] = []
    for item in raw.split(","):
        suffix = item.strip().lower()
        if not suffix:
            continue
        if not suffix.startswith("."):
            suffix = f".{suffix}"
        if suffix not in suffixes:
            suffixes.append(suffix)
    return suffixes


class GlobRule:
    """Match root-relative file paths against pattern-style properties.

    Patterns starting with ``**/`` match at any depth; every other pattern is
    anchored to the base directory. A pattern only matches the file itself,
    never a file below a directory the pattern happens to name.
    """

    def __init__(self, patterns: list["_FilePattern"]) -> None:
        self._patterns = patterns

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> "GlobRule":
        """Compile patterns into anchored file matchers.

        Args:
            patterns: Glob patterns relative to the base directory.

        Returns:
            Compiled glob rule.
        """
        return cls(
            patterns=[_FilePattern.compile(pattern) for pattern in patterns if pattern.strip()]
        )

    def matches(self, relative_path: str) -> bool:
        normalized = relative_path.replace("\\", "/").strip("/")
        if not normalized:
            return False
        return any(pattern.matches(normalized) for pattern in self._patterns)


@dataclass(frozen=True)
class _FilePattern:
    """Represent one compiled glob pattern.

    Attributes:
        path_spec: Anchored pattern matched against the root-relative path.
        name_spec: Last pattern segment matched against the file name alone.
        depth: Segment count a match must have, ``None`` when ``**`` is present.
    """

    path_spec: pathspec.GitIgnoreSpec
    name_spec: pathspec.GitIgnoreSpec
    depth: int | None

    @classmethod
    def compile(cls, pattern: str) -> "_FilePattern":
        anchored = _anchor(pattern)
        segments = anchored.strip("/").split("/")
        return cls(
            path_spec=pathspec.GitIgnoreSpec.from_lines([anchored]),
            name_spec=pathspec.GitIgnoreSpec.from_lines([segments[-1]]),
            depth=None if "**" in segments else len(segments),
        )

    def matches(self, relative_path: str) -> bool:
        segments = relative_path.split("/")
        if self.depth is not None and len(segments) != self.depth:
            return False
        # gitignore semantics also match files below a matching directory
        if not self.name_spec.match_file(segments[-1]):
            return False
        return self.path_spec.match_file(relative_path)


class AdditionalFileClassifier:
    """Classify files found under the base directory as sources or tests."""

    def __init__(self, lister: DirectoryLister, comparer: PathComparer) -> None:
        """Initialize classifier.

        Args:
            lister: Directory enumeration capability.
            comparer: Path equality policy.
        """
        if lister is None or comparer is None:
            raise ValueError("lister and comparer are required")
        self._lister = lister
        self._comparer = comparer

    def classify(
        self, root: Path, records: list[ProjectRecord], config: AnalysisConfig
    ) -> AnalysisFiles:
        """Attach additional files to their nearest valid project.

        Files owned by no project are returned as the root-module bucket.
        Records are mutated in place (``extra_sources``/``extra_tests``).

        Args:
            root: Resolved base directory.
            records: Project records from the merge step.
            config: Run configuration.

        Returns:
            Additional files for the root module.
        """
        directories = self._directories(root)
        files: list[Path] = []
        for directory in directories:
            files.extend(self._files(directory))
        logger.debug(
            f"Enumerated base directory (root={root} directories={len(directories)} files={len(files)})"
        )
        root_files = AnalysisFiles()
        if not config.scan_all_files:
            logger.debug("Additional file analysis is disabled")
            return root_files

        source = config.source()
        suffixes = self._suffixes(source)
        globs = self._globs(source)
        user_defined_tests = properties.TESTS in config.local_settings
        valid_records = [record for record in records if record.is_valid]
        claimed = {
            path_key(file_path, self._comparer)
            for record in valid_records
            for file_path in record.referenced_files
        }

        classified = 0
        for file_path in sorted(files, key=str):
            if file_path.name.lower() in EXCLUDED_FILE_NAMES:
                continue
            if path_key(file_path, self._comparer) in claimed:
                continue
            role = self._role(file_path=file_path, root=root, suffixes=suffixes, globs=globs)
            if role is None:
                continue
            if user_defined_tests:
                role = "source"
            classified += 1
            owner = closest_project(file_path, valid_records, self._comparer)
            if owner is None:
                bucket = root_files.sources if role == "source" else root_files.tests
            else:
                bucket = owner.extra_sources if role == "source" else owner.extra_tests
            bucket.append(file_path)
        logger.debug(
            f"Classified additional files (count={classified} root_sources={len(root_files.sources)} "
            f"root_tests={len(root_files.tests)})"
        )
        return root_files

    def _directories(self, root: Path) -> list[Path]:
        try:
            found = self._lister.list_directories(root, recursive=True)
        except OSError as exc:
            logger.warning(f"Cannot enumerate directories (path={root} error={exc})")
            found = []
        kept = [root]
        for directory in found:
            if _is_reserved(directory=directory, root=root):
                continue
            kept.append(directory)
        return kept

    def _files(self, directory: Path) -> list[Path]:
        try:
            return list(self._lister.list_files(directory))
        except OSError as exc:
            logger.warning(f"Cannot enumerate files (path={directory} error={exc})")
            return []

    def _suffixes(self, source: ConfigSource) -> list[str]:
        suffixes: list[str] = []
        for key in SUFFIX_PROPERTIES:
            raw = source.local_or_server(key)
            if raw:
                suffixes.extend(s for s in normalize_suffixes(raw) if s not in suffixes)
        # longest first so multi-segment suffixes win over their tails
        return sorted(suffixes, key=len, reverse=True)

    def _globs(self, source: ConfigSource) -> GlobRule:
        patterns: list[str] = []
        for key, defaults in GLOB_PROPERTY_DEFAULTS.items():
            raw = source.local_or_server(key)
            if raw is None:
                patterns.extend(defaults)
            else:
                patterns.extend(item.strip() for item in raw.split(",") if item.strip())
        return GlobRule.from_patterns(patterns)

    def _role(
        self, file_path: Path, root: Path, suffixes: list[str], globs: GlobRule
    ) -> FileRole | None:
        name = file_path.name.lower()
        for suffix in suffixes:
            if name.endswith(suffix) and name != suffix:
                stem = name[: -len(suffix)]
                return "test" if stem.endswith(TEST_MARKERS) else "source"
        relative = file_path.relative_to(root).as_posix()
        if globs.matches(relative):
            return "source"
        return None


def _anchor(pattern: str) -> str:
    stripped = pattern.strip().replace("\\", "/")
    if stripped.startswith(RECURSIVE_PREFIX):
        return stripped
    return f"/{stripped.lstrip('/')}"


def _is_reserved(directory: Path, root: Path) -> bool:
    try:
        relative = directory.relative_to(root)
    except ValueError:
        return False
    return any(part.lower() in RESERVED_DIRECTORY_NAMES for part in relative.parts)
