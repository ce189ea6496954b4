# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Group build-target descriptors into one validated record per project."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from scanprep import properties
from scanprep.descriptor import FILES_TO_ANALYZE, ProjectDescriptor
from scanprep.paths import PathComparer, path_key

logger = logging.getLogger(__name__)

ProjectStatus = Literal[
    "Valid",
    "DuplicateGuid",
    "InvalidGuid",
    "ProjectNotFound",
    "NoFilesToAnalyze",
]

DEFAULT_ENCODING = "utf-8"


@dataclass
class ProjectRecord:
    """Represent the merged view of all build targets sharing one identifier.

    Attributes:
        guid: Project identifier as declared by the representative descriptor.
        status: Validation outcome.
        descriptor: Representative descriptor (first in build-target order).
        referenced_files: Existing files-to-analyze across non-excluded targets.
        analyzer_out_paths: Merged analyzer output directories.
        report_paths: Merged structured report paths.
        telemetry_paths: Merged telemetry file paths.
        module_files: Referenced files owned by this project after base-dir checks.
        extra_sources: Additional source files discovered on disk.
        extra_tests: Additional test files discovered on disk.
        encoding: Resolved source encoding.
    """

    guid: str
    status: ProjectStatus
    descriptor: ProjectDescriptor
    referenced_files: list[Path] = field(default_factory=list)
    analyzer_out_paths: list[Path] = field(default_factory=list)
    report_paths: list[Path] = field(default_factory=list)
    telemetry_paths: list[Path] = field(default_factory=list)
    module_files: list[Path] = field(default_factory=list)
    extra_sources: list[Path] = field(default_factory=list)
    extra_tests: list[Path] = field(default_factory=list)
    encoding: str | None = None

    @property
    def project_dir(self) -> Path:
        return self.descriptor.project_directory

    @property
    def is_valid(self) -> bool:
        return self.status == "Valid"

    def has_files(self) -> bool:
        return bool(self.module_files or self.extra_sources or self.extra_tests)


def merge_descriptors(
    descriptors: Iterable[ProjectDescriptor], comparer: PathComparer
) -> list[ProjectRecord]:
    """Merge descriptors into one record per project identifier.

    Never raises for data anomalies; every problem becomes a status and
    zero or more log entries.

    Args:
        descriptors: Raw descriptors in declaration order.
        comparer: Path equality policy for the running platform.

    Returns:
        Records in order of first appearance of each identifier.
    """
    groups: dict[str, list[ProjectDescriptor]] = {}
    for descriptor in descriptors:
        groups.setdefault(descriptor.project_guid.strip().lower(), []).append(descriptor)
    records = [_merge_group(group=group, comparer=comparer) for group in groups.values()]
    logger.debug(
        "Merged project descriptors (projects=%d valid=%d)",
        len(records),
        sum(1 for record in records if record.is_valid),
    )
    return records


def resolve_encoding(record: ProjectRecord, global_encoding: str | None) -> str | None:
    """Resolve the source encoding written for a project.

    The project encoding wins over the global one; C# and VB.NET projects
    without any encoding default to UTF-8.
    """
    declared = record.descriptor.encoding
    if declared:
        if global_encoding:
            logger.info(
                f"Ignoring global {properties.SOURCE_ENCODING} for project with its "
                f"own encoding (guid={record.guid} encoding={declared})"
            )
        return declared.lower()
    if global_encoding:
        return global_encoding.lower()
    language = record.descriptor.project_language
    if properties.is_csharp(language) or properties.is_vbnet(language):
        return DEFAULT_ENCODING
    return None


def _merge_group(
    group: list[ProjectDescriptor], comparer: PathComparer
) -> ProjectRecord:
    ordered = sorted(group, key=lambda item: item.build_target_key)
    representative = ordered[0]
    guid = representative.project_guid
    record = ProjectRecord(guid=guid, status="Valid", descriptor=representative)

    distinct_paths: dict[str, str] = {}
    for descriptor in group:
        distinct_paths.setdefault(comparer.key(descriptor.full_path), descriptor.full_path)
    if len(distinct_paths) > 1:
        for project_path in distinct_paths.values():
            logger.warning(
                f"Duplicate project identifier, the project will not be analyzed "
                f"(guid={guid} path={project_path})"
            )
        record.status = "DuplicateGuid"
        return record

    if _is_empty_guid(guid):
        logger.warning(
            f"Project has no identifier and will not be analyzed (path={representative.full_path})"
        )
        record.status = "InvalidGuid"
        return record

    if not Path(representative.full_path).is_file():
        logger.debug(f"Project file not found (guid={guid} path={representative.full_path})")
        record.status = "ProjectNotFound"
        return record

    included: list[ProjectDescriptor] = []
    for descriptor in ordered:
        if descriptor.is_excluded:
            logger.info(
                f"Build target is excluded from analysis (guid={guid} "
                f"path={descriptor.full_path} target={descriptor.build_target_key})"
            )
            continue
        included.append(descriptor)

    record.referenced_files = _existing_files(
        descriptors=included, comparer=comparer, guid=guid
    )
    record.analyzer_out_paths = _merged_paths(
        descriptors=included,
        comparer=comparer,
        select=properties.is_project_out_paths,
        delimiter=properties.PROJECT_OUT_PATHS_DELIMITER,
    )
    record.report_paths = _merged_paths(
        descriptors=included,
        comparer=comparer,
        select=properties.is_report_paths,
        delimiter=properties.REPORT_PATHS_DELIMITER,
    )
    record.telemetry_paths = _merged_paths(
        descriptors=included,
        comparer=comparer,
        select=properties.is_telemetry_paths,
        delimiter=None,
    )
    if not record.referenced_files:
        record.status = "NoFilesToAnalyze"
    return record


def _is_empty_guid(guid: str) -> bool:
    return not guid.strip("{}- 0")


def _existing_files(
    descriptors: list[ProjectDescriptor], comparer: PathComparer, guid: str
) -> list[Path]:
    """Union the files-to-analyze lists, dropping missing files with a warning."""
    seen: set[str] = set()
    files: list[Path] = []
    for descriptor in descriptors:
        for file_path in _read_file_list(descriptor):
            key = path_key(file_path, comparer)
            if key in seen:
                continue
            seen.add(key)
            if not file_path.is_file():
                logger.warning(
                    f"File does not exist and will not be analyzed (path={file_path} guid={guid})"
                )
                continue
            files.append(file_path)
    return files


def _read_file_list(descriptor: ProjectDescriptor) -> list[Path]:
    result = descriptor.find_result(FILES_TO_ANALYZE)
    if result is None or not result.location:
        return []
    list_path = Path(result.location)
    try:
        lines = list_path.read_text(encoding="utf-8-sig").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(
            f"Cannot read files-to-analyze list (path={list_path} guid={descriptor.project_guid} error={exc})"
        )
        return []
    project_dir = descriptor.project_directory
    paths: list[Path] = []
    for line in lines:
        entry = line.strip()
        if not entry:
            continue
        candidate = Path(entry)
        paths.append(candidate if candidate.is_absolute() else project_dir / candidate)
    return paths


def _merged_paths(
    descriptors: list[ProjectDescriptor],
    comparer: PathComparer,
    select: Callable[[str], bool],
    delimiter: str | None,
) -> list[Path]:
    seen: set[str] = set()
    merged: list[Path] = []
    for descriptor in descriptors:
        for setting in descriptor.analysis_settings:
            if not select(setting.id):
                continue
            values = setting.value.split(delimiter) if delimiter else [setting.value]
            for value in values:
                entry = value.strip()
                if not entry:
                    continue
                key = comparer.key(entry)
                if key in seen:
                    continue
                seen.add(key)
                merged.append(Path(entry))
    return merged
