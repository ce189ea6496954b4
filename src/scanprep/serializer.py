# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Build the ordered property tree shared by both output formats."""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from scanprep import properties
from scanprep.additional_files import AnalysisFiles
from scanprep.config import AnalysisConfig
from scanprep.merger import ProjectRecord

logger = logging.getLogger(__name__)

PropertyValue = str | tuple[str, ...]


class SerializerFinalizedError(RuntimeError):
    """Represent a write or flush on an already flushed serializer."""


@dataclass(frozen=True)
class PropertyEntry:
    """Represent one key with a single value or an ordered list of values."""

    key: str
    value: PropertyValue

    @property
    def is_multi_value(self) -> bool:
        return isinstance(self.value, tuple)


@dataclass(frozen=True)
class PropertyTree:
    """Represent the immutable, ordered property set of one run.

    Attributes:
        module_keys: Identifiers of every project written, in write order.
        blocks: Groups of entries; formatters may separate groups visually.
    """

    module_keys: tuple[str, ...]
    blocks: tuple[tuple[PropertyEntry, ...], ...]

    def entries(self) -> Iterator[PropertyEntry]:
        for block in self.blocks:
            yield from block


class InputSerializer:
    """Collect run properties and freeze them into a ``PropertyTree`` once.

    Writes must follow the output order: project info, shared files,
    projects, then global settings.
    """

    def __init__(self, config: AnalysisConfig) -> None:
        if config is None:
            raise ValueError("config is required")
        self._config = config
        self._blocks: list[tuple[PropertyEntry, ...]] = []
        self._module_keys: list[str] = []
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def write_project_info(self, root: Path) -> None:
        """Write root project identity and directories.

        Args:
            root: Resolved base directory.
        """
        self._ensure_open()
        config = self._config
        block = [PropertyEntry(properties.PROJECT_KEY, config.project_key)]
        if config.project_name:
            block.append(PropertyEntry(properties.PROJECT_NAME, config.project_name))
        if config.project_version:
            block.append(PropertyEntry(properties.PROJECT_VERSION, config.project_version))
        block.append(
            PropertyEntry(properties.WORKING_DIRECTORY, str(config.output_dir / ".sonar"))
        )
        block.append(PropertyEntry(properties.PROJECT_BASE_DIR, str(root)))
        if config.pull_request_cache_base_path:
            block.append(
                PropertyEntry(
                    properties.PULL_REQUEST_CACHE_BASE_PATH,
                    config.pull_request_cache_base_path,
                )
            )
        self._blocks.append(tuple(block))

    def write_shared_files(self, files: AnalysisFiles) -> None:
        """Write files attached to the root module."""
        self._ensure_open()
        block: list[PropertyEntry] = []
        if files.sources:
            block.append(PropertyEntry(properties.SOURCES, _as_values(files.sources)))
        if files.tests:
            block.append(PropertyEntry(properties.TESTS, _as_values(files.tests)))
        self._blocks.append(tuple(block))

    def write_project(self, record: ProjectRecord) -> None:
        """Write all properties of one valid project.

        Args:
            record: Valid project record with its assigned files.

        Raises:
            ValueError: If the record is not valid or was already written.
            SerializerFinalizedError: If the serializer was flushed.
        """
        self._ensure_open()
        if not record.is_valid:
            raise ValueError(f"Only valid projects can be written (guid={record.guid})")
        guid = record.guid
        if guid in self._module_keys:
            raise ValueError(f"Project was already written (guid={guid})")
        descriptor = record.descriptor

        identity = [
            PropertyEntry(f"{guid}.{properties.PROJECT_KEY}", f"{self._config.project_key}:{guid}"),
            PropertyEntry(f"{guid}.{properties.PROJECT_NAME}", descriptor.project_name),
            PropertyEntry(f"{guid}.{properties.PROJECT_BASE_DIR}", str(record.project_dir)),
        ]
        if record.encoding:
            identity.append(
                PropertyEntry(f"{guid}.{properties.SOURCE_ENCODING}", record.encoding.lower())
            )
        if descriptor.project_type == "Product":
            identity.append(
                PropertyEntry(f"{guid}.{properties.TESTS}", _as_values(record.extra_tests) or "")
            )
            identity.append(
                PropertyEntry(
                    f"{guid}.{properties.SOURCES}",
                    _as_values(record.module_files + record.extra_sources),
                )
            )
        else:
            identity.append(PropertyEntry(f"{guid}.{properties.SOURCES}", ""))
            identity.append(
                PropertyEntry(
                    f"{guid}.{properties.TESTS}",
                    _as_values(record.module_files + record.extra_sources + record.extra_tests),
                )
            )
        self._blocks.append(tuple(identity))

        settings = [
            PropertyEntry(f"{guid}.{setting.id}", setting.value)
            for setting in descriptor.analysis_settings
            if not properties.is_path_setting(setting.id)
        ]
        language = descriptor.project_language
        for csharp_key, vbnet_key, paths in (
            (properties.PROJECT_OUT_PATHS_CS, properties.PROJECT_OUT_PATHS_VB, record.analyzer_out_paths),
            (properties.REPORT_PATHS_CS, properties.REPORT_PATHS_VB, record.report_paths),
            (properties.TELEMETRY_PATHS_CS, properties.TELEMETRY_PATHS_VB, record.telemetry_paths),
        ):
            key = properties.language_key(language, csharp_key, vbnet_key)
            if key is not None and paths:
                settings.append(PropertyEntry(f"{guid}.{key}", _as_values(paths)))
        if settings:
            self._blocks.append(tuple(settings))

        module_index = len(self._module_keys)
        self._module_keys.append(guid)
        working_directory = self._config.output_dir / ".sonar" / f"mod{module_index}"
        self._blocks.append(
            (PropertyEntry(f"{guid}.{properties.WORKING_DIRECTORY}", str(working_directory)),)
        )

    def write_global_settings(self, settings: Sequence[tuple[str, str]]) -> None:
        """Write run-wide settings and settle the host URL.

        An explicit host URL is kept as is. Otherwise a configured cloud URL,
        or the inferred default, is written as host URL.

        Args:
            settings: Ordered key/value pairs.
        """
        self._ensure_open()
        block: list[PropertyEntry] = []
        host_url_written = False
        cloud_url: str | None = None
        for key, value in settings:
            if key in properties.OMITTED_GLOBAL_SETTINGS:
                logger.debug(f"Omitting global setting from analysis input (key={key})")
                continue
            if key == properties.PROJECT_BASE_DIR:
                continue
            if key == properties.HOST_URL:
                host_url_written = True
            elif key == properties.SONARCLOUD_URL:
                cloud_url = value
            block.append(PropertyEntry(key, value))
        if not host_url_written:
            block.append(
                PropertyEntry(properties.HOST_URL, cloud_url or self._config.inferred_host_url)
            )
        self._blocks.append(tuple(block))

    def flush(self) -> PropertyTree:
        """Freeze the collected properties.

        Returns:
            Immutable property tree.

        Raises:
            SerializerFinalizedError: If called more than once.
        """
        self._ensure_open()
        self._finalized = True
        return PropertyTree(
            module_keys=tuple(self._module_keys),
            blocks=tuple(block for block in self._blocks if block),
        )

    def _ensure_open(self) -> None:
        if self._finalized:
            raise SerializerFinalizedError("The analysis input was already flushed")


def _as_values(paths: Sequence[Path]) -> tuple[str, ...]:
    return tuple(str(path) for path in paths)
