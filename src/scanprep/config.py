# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analysis run configuration and layered property lookup."""

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from scanprep.paths import PathComparer, comparer_for_platform
from scanprep.properties import DEFAULT_SONARCLOUD_URL

logger = logging.getLogger(__name__)

SCANNER_PARAMS_ENV = "SONARQUBE_SCANNER_PARAMS"


class ConfigError(RuntimeError):
    """Represent an invalid configuration file or environment payload."""


@dataclass(frozen=True)
class ConfigSource:
    """Represent layered property maps with local > environment > server precedence.

    Attributes:
        local: Properties supplied by the user for this run.
        environment: Properties read from the scanner environment variable.
        server: Properties downloaded from the server.
    """

    local: Mapping[str, str] = field(default_factory=dict)
    environment: Mapping[str, str] = field(default_factory=dict)
    server: Mapping[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        """Return the first non-blank value for ``key`` following precedence."""
        for layer in (self.local, self.environment, self.server):
            value = layer.get(key)
            if value is not None and value.strip():
                return value
        return None

    def local_or_server(self, key: str) -> str | None:
        """Return the local value for ``key``, falling back to the server value."""
        value = self.local.get(key)
        if value is not None:
            return value
        return self.server.get(key)

    @classmethod
    def from_environ(
        cls,
        local: Mapping[str, str],
        server: Mapping[str, str],
        environ: Mapping[str, str] | None = None,
    ) -> "ConfigSource":
        """Build a source whose environment layer comes from the scanner variable.

        Args:
            local: Local properties.
            server: Server properties.
            environ: Environment mapping. Defaults to ``os.environ``.

        Returns:
            Layered configuration source.
        """
        environ = os.environ if environ is None else environ
        return cls(
            local=dict(local),
            environment=parse_scanner_params(environ.get(SCANNER_PARAMS_ENV)),
            server=dict(server),
        )


@dataclass
class AnalysisConfig:
    """Represent the settings of one generation run.

    Attributes:
        output_dir: Directory holding descriptors and receiving the legacy file.
        project_key: Root project key.
        project_name: Root project name.
        project_version: Root project version.
        local_settings: User-supplied properties.
        server_settings: Server-supplied properties.
        environment_settings: Properties from the scanner environment variable.
        scan_all_files: Whether additional files are classified.
        working_directory: Optional working directory used as base directory candidate.
        server_version: Optional server version string.
        server_url: Optional server URL used as inferred host URL.
        path_case_sensitive: Optional override of platform path case policy.
        pull_request_cache_base_path: Optional pull-request cache base path.
    """

    output_dir: Path
    project_key: str = ""
    project_name: str | None = None
    project_version: str | None = None
    local_settings: dict[str, str] = field(default_factory=dict)
    server_settings: dict[str, str] = field(default_factory=dict)
    environment_settings: dict[str, str] = field(default_factory=dict)
    scan_all_files: bool = True
    working_directory: Path | None = None
    server_version: str | None = None
    server_url: str | None = None
    path_case_sensitive: bool | None = None
    pull_request_cache_base_path: str | None = None

    @property
    def inferred_host_url(self) -> str:
        return self.server_url or DEFAULT_SONARCLOUD_URL

    def source(self) -> ConfigSource:
        return ConfigSource(
            local=self.local_settings,
            environment=self.environment_settings,
            server=self.server_settings,
        )

    def comparer(self) -> PathComparer:
        return comparer_for_platform(case_sensitive=self.path_case_sensitive)

    def analysis_properties(self) -> list[tuple[str, str]]:
        """Return merged global settings in first-seen order.

        Server values come first and are overridden in place by environment and
        then local values for the same key.
        """
        merged: dict[str, str] = {}
        for layer in (self.server_settings, self.environment_settings, self.local_settings):
            for key, value in layer.items():
                merged[key] = value
        return list(merged.items())


def parse_scanner_params(raw: str | None) -> dict[str, str]:
    """Parse the scanner environment JSON object into a flat property map.

    Invalid payloads are logged and ignored.
    """
    if raw is None or not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning(f"Ignoring invalid {SCANNER_PARAMS_ENV} value (error={exc})")
        return {}
    if not isinstance(payload, dict):
        logger.warning(f"Ignoring {SCANNER_PARAMS_ENV}: expected a JSON object")
        return {}
    return {str(key): str(value) for key, value in payload.items() if value is not None}


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> AnalysisConfig:
    """Load run configuration from a YAML file.

    Args:
        path: YAML configuration file.
        environ: Environment mapping for the scanner variable. Defaults to ``os.environ``.

    Returns:
        Parsed analysis configuration. Relative paths resolve against the file's directory.

    Raises:
        ConfigError: If the file cannot be read or has an invalid shape.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")

    base = path.parent.resolve()
    output_dir = _as_path(data.get("output_dir"), base)
    if output_dir is None:
        raise ConfigError(f"{path.name} must define output_dir")
    environ = os.environ if environ is None else environ
    return AnalysisConfig(
        output_dir=output_dir,
        project_key=_as_str(data.get("project_key")) or "",
        project_name=_as_str(data.get("project_name")),
        project_version=_as_str(data.get("project_version")),
        local_settings=_as_settings(data.get("local_settings"), "local_settings"),
        server_settings=_as_settings(data.get("server_settings"), "server_settings"),
        environment_settings=parse_scanner_params(environ.get(SCANNER_PARAMS_ENV)),
        scan_all_files=_as_bool(data.get("scan_all_files"), default=True),
        working_directory=_as_path(data.get("working_directory"), base),
        server_version=_as_str(data.get("server_version")),
        server_url=_as_str(data.get("server_url")),
        path_case_sensitive=_as_optional_bool(data.get("path_case_sensitive")),
        pull_request_cache_base_path=_as_str(data.get("pull_request_cache_base_path")),
    )


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _as_path(value: Any, base: Path) -> Path | None:
    text = _as_str(value)
    if not text:
        return None
    candidate = Path(text).expanduser()
    return candidate if candidate.is_absolute() else base / candidate


def _as_bool(value: Any, default: bool) -> bool:
    parsed = _as_optional_bool(value)
    return default if parsed is None else parsed


def _as_optional_bool(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "yes", "1", "on"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"false", "no", "0", "off"}:
        return False
    raise ConfigError(f"Expected a boolean value, got {value!r}")


def _as_settings(value: Any, name: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a mapping of property keys to values")
    return {str(key): "" if item is None else str(item) for key, item in value.items()}
