# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Well-known analysis property keys and language tags."""

PROJECT_KEY = "sonar.projectKey"
PROJECT_NAME = "sonar.projectName"
PROJECT_VERSION = "sonar.projectVersion"
PROJECT_BASE_DIR = "sonar.projectBaseDir"
WORKING_DIRECTORY = "sonar.working.directory"
SOURCE_ENCODING = "sonar.sourceEncoding"
SOURCES = "sonar.sources"
TESTS = "sonar.tests"
MODULES = "sonar.modules"
PULL_REQUEST_CACHE_BASE_PATH = "sonar.pullrequest.cache.basepath"
HOST_URL = "sonar.host.url"
SONARCLOUD_URL = "sonar.scanner.sonarcloudUrl"
VERBOSE = "sonar.verbose"
TRUSTSTORE_PATH = "sonar.scanner.truststorePath"

DEFAULT_SONARCLOUD_URL = "https://sonarcloud.io"

REPORT_PATHS_CS = "sonar.cs.roslyn.reportFilePaths"
REPORT_PATHS_VB = "sonar.vbnet.roslyn.reportFilePaths"
PROJECT_OUT_PATHS_CS = "sonar.cs.analyzer.projectOutPaths"
PROJECT_OUT_PATHS_VB = "sonar.vbnet.analyzer.projectOutPaths"
TELEMETRY_PATHS_CS = "sonar.cs.scanner.telemetry"
TELEMETRY_PATHS_VB = "sonar.vbnet.scanner.telemetry"

REPORT_PATHS_DELIMITER = "|"
PROJECT_OUT_PATHS_DELIMITER = ","

LANGUAGE_CSHARP = "C#"
LANGUAGE_VBNET = "VB"

# Settings never forwarded to either output.
OMITTED_GLOBAL_SETTINGS: frozenset[str] = frozenset({VERBOSE, TRUSTSTORE_PATH})

# Matched case-insensitively anywhere in a key.
SENSITIVE_MARKERS: tuple[str, ...] = (
    "sonar.password",
    "sonar.login",
    "sonar.token",
    "sonar.clientcert.password",
    "sonar.jdbc.password",
    "sonar.jdbc.username",
)


def is_report_paths(key: str) -> bool:
    return key in (REPORT_PATHS_CS, REPORT_PATHS_VB)


def is_project_out_paths(key: str) -> bool:
    return key in (PROJECT_OUT_PATHS_CS, PROJECT_OUT_PATHS_VB)


def is_telemetry_paths(key: str) -> bool:
    return key in (TELEMETRY_PATHS_CS, TELEMETRY_PATHS_VB)


def is_path_setting(key: str) -> bool:
    """Return whether a project setting carries merged analyzer paths."""
    return is_report_paths(key) or is_project_out_paths(key) or is_telemetry_paths(key)


def is_sensitive(key: str) -> bool:
    """Return whether a property key holds credentials."""
    lowered = key.lower()
    return any(marker in lowered for marker in SENSITIVE_MARKERS)


def is_csharp(language: str | None) -> bool:
    return (language or "").casefold() == LANGUAGE_CSHARP.casefold()


def is_vbnet(language: str | None) -> bool:
    return (language or "").casefold() == LANGUAGE_VBNET.casefold()


def language_key(language: str | None, csharp_key: str, vbnet_key: str) -> str | None:
    """Pick the language-specific property key, or ``None`` for other languages."""
    if is_csharp(language):
        return csharp_key
    if is_vbnet(language):
        return vbnet_key
    return None
