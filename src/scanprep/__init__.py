# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analysis input generation for multi-project builds."""

from scanprep.config import AnalysisConfig, ConfigError, ConfigSource, load_config
from scanprep.descriptor import DescriptorError, ProjectDescriptor, discover_descriptors
from scanprep.generator import GenerationResult, InputGenerator
from scanprep.merger import ProjectRecord, ProjectStatus, merge_descriptors

__all__ = [
    "AnalysisConfig",
    "ConfigError",
    "ConfigSource",
    "DescriptorError",
    "GenerationResult",
    "InputGenerator",
    "ProjectDescriptor",
    "ProjectRecord",
    "ProjectStatus",
    "discover_descriptors",
    "load_config",
    "merge_descriptors",
]
