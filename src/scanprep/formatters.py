# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Render a property tree as legacy properties text and as the engine payload."""

import json
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from scanprep import properties
from scanprep.additional_files import AnalysisFiles
from scanprep.config import AnalysisConfig
from scanprep.merger import ProjectRecord
from scanprep.serializer import InputSerializer, PropertyEntry, PropertyTree

logger = logging.getLogger(__name__)

QUOTED_VALUES_MIN_VERSION: tuple[int, ...] = (6, 5)
MULTI_VALUE_SEPARATOR = ",\\\n"
REDACTED = "***"

_VERSION_PATTERN = re.compile(r"^\d+(\.\d+){1,3}$")
_CSV_SPECIAL_CHARACTERS = ("\r", "\n", '"', ",")


@dataclass(frozen=True)
class SerializedInput:
    """Represent both renderings of one run.

    Attributes:
        tree: Property tree both renderings come from.
        legacy_text: Flat properties text, safe to persist.
        engine_payload: Structured payload, kept in memory only.
    """

    tree: PropertyTree
    legacy_text: str
    engine_payload: str


def escape(value: str) -> str:
    """Escape a value for the legacy properties format.

    Backslashes are doubled; non-ASCII and control characters become
    ``\\uXXXX`` UTF-16 code units.
    """
    escaped: list[str] = []
    for character in value:
        code = ord(character)
        if character == "\\":
            escaped.append("\\\\")
        elif 0x20 <= code < 0x7F:
            escaped.append(character)
        elif code > 0xFFFF:
            code -= 0x10000
            escaped.append(f"\\u{0xD800 + (code >> 10):04X}")
            escaped.append(f"\\u{0xDC00 + (code & 0x3FF):04X}")
        else:
            escaped.append(f"\\u{code:04X}")
    return "".join(escaped)


def parse_version(text: str | None) -> tuple[int, ...] | None:
    """Parse a dotted numeric version with two to four components."""
    if text is None or not _VERSION_PATTERN.match(text.strip()):
        return None
    return tuple(int(part) for part in text.strip().split("."))


class LegacyPropertiesFormatter:
    """Render the flat ``key=value`` text format written to disk.

    Sensitive keys are never rendered. The module list is the last entry.
    """

    def __init__(self, server_version: str | None) -> None:
        version = parse_version(server_version)
        self._quote_values = version is not None and version >= QUOTED_VALUES_MIN_VERSION

    def render(self, tree: PropertyTree) -> str:
        lines: list[str] = []
        for block in tree.blocks:
            for entry in block:
                if properties.is_sensitive(entry.key):
                    logger.debug(f"Omitting sensitive property from properties file (key={entry.key})")
                    continue
                lines.extend(self._entry_lines(entry))
            lines.append("")
        lines.append(f"{properties.MODULES}={escape(','.join(tree.module_keys))}")
        lines.append("")
        return "\n".join(lines) + "\n"

    def _entry_lines(self, entry: PropertyEntry) -> list[str]:
        key = escape(entry.key)
        if isinstance(entry.value, tuple):
            return [f"{key}=\\", self._multi_value(entry.value)]
        return [f"{key}={escape(entry.value)}"]

    def _multi_value(self, values: Sequence[str]) -> str:
        escaped = [escape(value) for value in values]
        if self._quote_values:
            return MULTI_VALUE_SEPARATOR.join(
                '"' + value.replace('"', '""') + '"' for value in escaped
            )
        invalid = [value for value in escaped if "," in value]
        if invalid:
            logger.warning(
                "The following paths contain invalid characters and will be excluded "
                f"from this analysis: {', '.join(invalid)}"
            )
        return MULTI_VALUE_SEPARATOR.join(value for value in escaped if "," not in value)


class EnginePayloadFormatter:
    """Render the structured ``scannerProperties`` JSON payload.

    Sensitive properties are kept unless ``redact`` is set. The module list is
    the first entry.
    """

    def render(self, tree: PropertyTree, redact: bool = False) -> str:
        items = [{"key": properties.MODULES, "value": ",".join(tree.module_keys)}]
        for entry in tree.entries():
            value = _join_values(entry.value) if isinstance(entry.value, tuple) else entry.value
            if redact and properties.is_sensitive(entry.key):
                value = REDACTED
            items.append({"key": entry.key, "value": value})
        return json.dumps({"scannerProperties": items}, indent=2, ensure_ascii=False)


def serialize(
    root: Path,
    records: Iterable[ProjectRecord],
    global_settings: Sequence[tuple[str, str]],
    config: AnalysisConfig,
    shared_files: AnalysisFiles | None = None,
) -> SerializedInput:
    """Render valid records and settings into both output formats.

    Args:
        root: Resolved base directory.
        records: Project records; only valid ones are written.
        global_settings: Ordered run-wide settings.
        config: Run configuration.
        shared_files: Files attached to the root module.

    Returns:
        Property tree with its legacy and structured renderings.
    """
    writer = InputSerializer(config)
    writer.write_project_info(root)
    writer.write_shared_files(shared_files or AnalysisFiles())
    for record in records:
        if record.is_valid:
            writer.write_project(record)
    writer.write_global_settings(global_settings)
    tree = writer.flush()
    return SerializedInput(
        tree=tree,
        legacy_text=LegacyPropertiesFormatter(config.server_version).render(tree),
        engine_payload=EnginePayloadFormatter().render(tree),
    )


def _join_values(values: Sequence[str]) -> str:
    """Join values with commas, quoting fields as RFC 4180 requires."""
    return ",".join(
        '"' + value.replace('"', '""') + '"'
        if any(character in value for character in _CSV_SPECIAL_CHARACTERS)
        else value
        for value in values
    )
