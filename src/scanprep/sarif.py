# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Hook for repairing structured report files before they are merged."""

import dataclasses
import logging
from collections.abc import Iterable
from typing import Protocol

from scanprep import properties
from scanprep.descriptor import AnalysisSetting, ProjectDescriptor

logger = logging.getLogger(__name__)

CSHARP_LANGUAGE = "cs"
VBNET_LANGUAGE = "vbnet"

REPORT_PATH_LANGUAGES: dict[str, str] = {
    properties.REPORT_PATHS_CS: CSHARP_LANGUAGE,
    properties.REPORT_PATHS_VB: VBNET_LANGUAGE,
}


class SarifFixer(Protocol):
    """Define repair of one structured report file."""

    def fix(self, path: str, language: str) -> str | None:
        """Return the usable report path, or ``None`` when the report is unusable."""
        ...


class PassThroughSarifFixer:
    """Accept every report unchanged."""

    def fix(self, path: str, language: str) -> str | None:
        return path


def fix_report_paths(
    descriptors: Iterable[ProjectDescriptor], fixer: SarifFixer
) -> list[ProjectDescriptor]:
    """Run the fixer over every report path setting.

    Paths the fixer rejects are dropped; a setting left without paths is
    removed from the descriptor.

    Args:
        descriptors: Raw descriptors.
        fixer: Report repair collaborator.

    Returns:
        Descriptors with report path settings replaced.
    """
    return [_fix_descriptor(descriptor, fixer) for descriptor in descriptors]


def _fix_descriptor(descriptor: ProjectDescriptor, fixer: SarifFixer) -> ProjectDescriptor:
    if not any(setting.id in REPORT_PATH_LANGUAGES for setting in descriptor.analysis_settings):
        return descriptor
    settings: list[AnalysisSetting] = []
    for setting in descriptor.analysis_settings:
        language = REPORT_PATH_LANGUAGES.get(setting.id)
        if language is None:
            settings.append(setting)
            continue
        fixed: list[str] = []
        for path in setting.value.split(properties.REPORT_PATHS_DELIMITER):
            if not path.strip():
                continue
            result = fixer.fix(path, language)
            if result is None:
                logger.debug(f"Dropping unusable report (path={path} guid={descriptor.project_guid})")
                continue
            fixed.append(result)
        if fixed:
            settings.append(
                AnalysisSetting(id=setting.id, value=properties.REPORT_PATHS_DELIMITER.join(fixed))
            )
    return dataclasses.replace(descriptor, analysis_settings=tuple(settings))
