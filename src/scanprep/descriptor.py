# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Per-build-target project descriptors and their on-disk loader."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

ProjectKind = Literal["Product", "Test"]

DESCRIPTOR_FILE_NAME = "ProjectInfo.json"
FILES_TO_ANALYZE = "FilesToAnalyze"


class DescriptorError(RuntimeError):
    """Represent an unreadable or malformed project descriptor."""


@dataclass(frozen=True)
class AnalysisResult:
    """Represent one typed pointer to an auxiliary file.

    Attributes:
        id: Result type, e.g. ``FilesToAnalyze``.
        location: Path to the referenced file.
    """

    id: str
    location: str


@dataclass(frozen=True)
class AnalysisSetting:
    """Represent one free-form project analysis setting."""

    id: str
    value: str


@dataclass(frozen=True)
class ProjectDescriptor:
    """Represent one build target of one project.

    Attributes:
        project_guid: Opaque project identifier shared by all build targets.
        full_path: Declared full path of the project file.
        project_name: Human-readable project name.
        project_type: ``Product`` or ``Test``.
        is_excluded: Whether the build marked the target as excluded.
        project_language: Source language tag (``C#``, ``VB``, ...).
        encoding: Declared text encoding, if any.
        configuration: Build configuration, e.g. ``Debug``.
        platform: Build platform, e.g. ``AnyCPU``.
        target_framework: Target framework moniker.
        analysis_results: Typed auxiliary file references.
        analysis_settings: Key/value analysis settings.
    """

    project_guid: str
    full_path: str
    project_name: str = ""
    project_type: ProjectKind = "Product"
    is_excluded: bool = False
    project_language: str | None = None
    encoding: str | None = None
    configuration: str = ""
    platform: str = ""
    target_framework: str = ""
    analysis_results: tuple[AnalysisResult, ...] = field(default_factory=tuple)
    analysis_settings: tuple[AnalysisSetting, ...] = field(default_factory=tuple)

    @property
    def project_directory(self) -> Path:
        return Path(self.full_path).parent

    @property
    def build_target_key(self) -> str:
        """Return the stable ordering key for build targets of one project."""
        return f"{self.configuration}_{self.platform}_{self.target_framework}"

    def find_setting(self, setting_id: str) -> AnalysisSetting | None:
        for setting in self.analysis_settings:
            if setting.id == setting_id:
                return setting
        return None

    def find_result(self, result_id: str) -> AnalysisResult | None:
        for result in self.analysis_results:
            if result.id == result_id:
                return result
        return None


def load_descriptor(path: Path) -> ProjectDescriptor:
    """Deserialize one descriptor file.

    Args:
        path: Path to a ``ProjectInfo.json`` file.

    Returns:
        Parsed project descriptor.

    Raises:
        DescriptorError: If the file cannot be read or lacks required fields.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DescriptorError(f"Cannot read project descriptor {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise DescriptorError(f"Project descriptor must be a JSON object: {path}")
    return _descriptor_from_payload(payload=payload, source=path)


def discover_descriptors(output_dir: Path) -> list[ProjectDescriptor]:
    """Load every descriptor found in immediate subdirectories of ``output_dir``.

    Args:
        output_dir: Analysis output directory written by the build.

    Returns:
        Descriptors ordered by their containing directory name.

    Raises:
        DescriptorError: If any descriptor is malformed.
    """
    if not output_dir.is_dir():
        logger.warning(f"Output directory does not exist (path={output_dir})")
        return []
    descriptors: list[ProjectDescriptor] = []
    for child in sorted(output_dir.iterdir(), key=lambda item: item.name):
        candidate = child / DESCRIPTOR_FILE_NAME
        if child.is_dir() and candidate.is_file():
            descriptors.append(load_descriptor(candidate))
    logger.debug(
        f"Loaded project descriptors (count={len(descriptors)} output_dir={output_dir})"
    )
    return descriptors


def _descriptor_from_payload(payload: dict[str, Any], source: Path) -> ProjectDescriptor:
    guid = payload.get("projectGuid")
    full_path = payload.get("fullPath")
    if not isinstance(guid, str) or not isinstance(full_path, str):
        raise DescriptorError(
            f"Project descriptor requires projectGuid and fullPath: {source}"
        )
    project_type = payload.get("projectType", "Product")
    if project_type not in ("Product", "Test"):
        raise DescriptorError(
            f"Unsupported projectType {project_type!r} in {source}"
        )
    results = tuple(
        AnalysisResult(id=str(item["id"]), location=str(item.get("location") or ""))
        for item in _as_entries(payload.get("analysisResultFiles"), source)
    )
    settings = tuple(
        AnalysisSetting(id=str(item["id"]), value=str(item.get("value") or ""))
        for item in _as_entries(payload.get("analysisSettings"), source)
    )
    return ProjectDescriptor(
        project_guid=guid,
        full_path=full_path,
        project_name=str(payload.get("projectName") or ""),
        project_type=project_type,
        is_excluded=bool(payload.get("isExcluded", False)),
        project_language=payload.get("projectLanguage"),
        encoding=payload.get("encoding"),
        configuration=str(payload.get("configuration") or ""),
        platform=str(payload.get("platform") or ""),
        target_framework=str(payload.get("targetFramework") or ""),
        analysis_results=results,
        analysis_settings=settings,
    )


def _as_entries(value: Any, source: Path) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(
        isinstance(item, dict) and "id" in item for item in value
    ):
        raise DescriptorError(f"Expected a list of objects with an id in {source}")
    return value
