# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Orchestrate one analysis-input generation run."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from scanprep import properties
from scanprep.additional_files import AdditionalFileClassifier, AnalysisFiles
from scanprep.base_dir import ResolvedRoot, RootOverrideNotFoundError, resolve_root
from scanprep.config import AnalysisConfig
from scanprep.descriptor import ProjectDescriptor, discover_descriptors
from scanprep.filesystem import DirectoryLister, FileSystemLister
from scanprep.formatters import EnginePayloadFormatter, serialize
from scanprep.merger import ProjectRecord, merge_descriptors, resolve_encoding
from scanprep.ownership import assign_module_files, demote_empty_projects
from scanprep.paths import PathComparer
from scanprep.sarif import PassThroughSarifFixer, SarifFixer, fix_report_paths

logger = logging.getLogger(__name__)

PROJECT_PROPERTIES_FILE_NAME = "sonar-project.properties"


@dataclass(frozen=True)
class GenerationResult:
    """Represent the outcome of one generation run.

    Attributes:
        ran_to_completion: Whether both outputs were produced.
        properties_path: Written legacy properties file, ``None`` on failure.
        engine_payload: Structured payload for the engine, ``None`` on failure.
        records: Every project record, whatever its status.
        root: Resolved base directory when resolution succeeded.
    """

    ran_to_completion: bool
    properties_path: Path | None = None
    engine_payload: str | None = None
    records: tuple[ProjectRecord, ...] = field(default_factory=tuple)
    root: ResolvedRoot | None = None


class InputGenerator:
    """Turn project descriptors into the analysis engine input."""

    def __init__(
        self,
        config: AnalysisConfig,
        lister: DirectoryLister | None = None,
        fixer: SarifFixer | None = None,
        comparer: PathComparer | None = None,
        cwd: Path | None = None,
    ) -> None:
        """Initialize generator.

        Args:
            config: Run configuration.
            lister: Directory enumeration used for additional files.
            fixer: Structured report repair hook.
            comparer: Path equality policy. Selected from config when omitted.
            cwd: Directory relative base-directory overrides resolve against.
        """
        if config is None:
            raise ValueError("config is required")
        self._config = config
        self._lister = lister or FileSystemLister()
        self._fixer = fixer or PassThroughSarifFixer()
        self._comparer = comparer or config.comparer()
        self._cwd = cwd

    def generate(
        self, descriptors: Sequence[ProjectDescriptor] | None = None
    ) -> GenerationResult:
        """Run merge, base directory resolution, classification and serialization.

        Args:
            descriptors: Descriptors to process. Loaded from the output directory when omitted.

        Returns:
            Generation result; run-level failures yield ``ran_to_completion=False``.

        Raises:
            DescriptorError: If descriptors are loaded from disk and one is malformed.
        """
        config = self._config
        properties_path = config.output_dir / PROJECT_PROPERTIES_FILE_NAME
        logger.debug(f"Generating analysis input (path={properties_path})")
        if descriptors is None:
            descriptors = discover_descriptors(config.output_dir)
        if not descriptors:
            return self._failed(
                "No project descriptors were found. "
                "Check that the build ran with analysis enabled."
            )

        fixed = fix_report_paths(descriptors, self._fixer)
        records = merge_descriptors(fixed, self._comparer)
        source = config.source()
        global_encoding = source.get(properties.SOURCE_ENCODING)
        valid = [record for record in records if record.is_valid]
        for record in valid:
            record.encoding = resolve_encoding(record, global_encoding)
        if not valid:
            return self._failed("No analyzable projects were found.", records)

        try:
            root = resolve_root(
                project_dirs=[record.project_dir for record in valid],
                source=source,
                comparer=self._comparer,
                working_directory=config.working_directory,
                cwd=self._cwd,
            )
        except RootOverrideNotFoundError as exc:
            return self._failed(str(exc), records)
        if root is None:
            return self._failed(
                "The project base directory cannot be detected automatically. "
                f"Set {properties.PROJECT_BASE_DIR} to the root of the analyzed sources.",
                records,
            )
        if not root.path.is_dir():
            return self._failed(
                f"The project base directory does not exist: {root.path}", records, root
            )

        root_sources = assign_module_files(records, root.path, self._comparer)
        classifier = AdditionalFileClassifier(lister=self._lister, comparer=self._comparer)
        additional = classifier.classify(root.path, records, config)
        shared = AnalysisFiles(
            sources=root_sources + additional.sources, tests=additional.tests
        )
        demote_empty_projects(records)
        if not shared.sources and not shared.tests and not any(
            record.is_valid for record in records
        ):
            return self._failed("No analyzable projects were found.", records, root)

        serialized = serialize(
            root=root.path,
            records=records,
            global_settings=config.analysis_properties(),
            config=config,
            shared_files=shared,
        )
        # legacy text is pure ASCII; encode before opening the file
        content = serialized.legacy_text.encode("ascii")
        try:
            config.output_dir.mkdir(parents=True, exist_ok=True)
            properties_path.write_bytes(content)
        except OSError as exc:
            return self._failed(
                f"Cannot write properties file (path={properties_path} error={exc})",
                records,
                root,
            )
        logger.debug(f"Wrote properties file (path={properties_path})\n{serialized.legacy_text}")
        logger.debug(
            "Analysis engine input:\n%s",
            EnginePayloadFormatter().render(serialized.tree, redact=True),
        )
        return GenerationResult(
            ran_to_completion=True,
            properties_path=properties_path,
            engine_payload=serialized.engine_payload,
            records=tuple(records),
            root=root,
        )

    def _failed(
        self,
        message: str,
        records: Sequence[ProjectRecord] = (),
        root: ResolvedRoot | None = None,
    ) -> GenerationResult:
        logger.error(message)
        logger.info("Generation of the analysis input failed")
        return GenerationResult(ran_to_completion=False, records=tuple(records), root=root)


def status_counts(records: Sequence[ProjectRecord]) -> Mapping[str, int]:
    """Count records per status, in first-seen status order."""
    counts: dict[str, int] = {}
    for record in records:
        counts[record.status] = counts.get(record.status, 0) + 1
    return counts
