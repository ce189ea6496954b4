# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for project descriptor merging."""

import dataclasses
import logging
from pathlib import Path

import pytest

from scanprep.descriptor import AnalysisSetting, ProjectDescriptor
from scanprep.merger import ProjectRecord, merge_descriptors, resolve_encoding
from scanprep.paths import IGNORE_CASE, ORDINAL

GUID_A = "DB2E5521-3172-47B9-BA50-864F12E6DFFF"
GUID_B = "B51622CF-82F4-48C9-9F38-FB981FAFAF3A"


def test_mrg_001_single_descriptor_with_files_is_valid(tmp_path: Path, make_project) -> None:
    descriptor = make_project(tmp_path / "A", GUID_A, files=("a.cs", "b.cs"))

    records = merge_descriptors([descriptor], ORDINAL)

    assert len(records) == 1
    record = records[0]
    assert record.status == "Valid"
    assert record.guid == GUID_A
    assert record.referenced_files == [tmp_path / "A" / "a.cs", tmp_path / "A" / "b.cs"]
    assert record.project_dir == tmp_path / "A"


def test_mrg_002_distinct_paths_under_one_guid_are_duplicates(
    tmp_path: Path, make_project, caplog: pytest.LogCaptureFixture
) -> None:
    first = make_project(tmp_path / "A", GUID_A)
    second = make_project(tmp_path / "B", GUID_A)
    caplog.set_level(logging.WARNING)

    records = merge_descriptors([first, second], ORDINAL)

    assert [record.status for record in records] == ["DuplicateGuid"]
    assert records[0].referenced_files == []
    warnings = [entry.getMessage() for entry in caplog.records if entry.levelno == logging.WARNING]
    assert len(warnings) == 2
    assert all(GUID_A in message for message in warnings)
    assert any(first.full_path in message for message in warnings)
    assert any(second.full_path in message for message in warnings)


def test_mrg_003_path_case_differences_depend_on_comparer(tmp_path: Path, make_project) -> None:
    descriptor = make_project(tmp_path / "A", GUID_A)
    shouted = dataclasses.replace(
        descriptor, full_path=descriptor.full_path.upper(), configuration="Release"
    )

    assert merge_descriptors([descriptor, shouted], ORDINAL)[0].status == "DuplicateGuid"
    assert merge_descriptors([descriptor, shouted], IGNORE_CASE)[0].status == "Valid"


def test_mrg_004_missing_project_file_is_not_found(tmp_path: Path) -> None:
    descriptor = ProjectDescriptor(project_guid=GUID_A, full_path=str(tmp_path / "gone.csproj"))

    records = merge_descriptors([descriptor], ORDINAL)

    assert records[0].status == "ProjectNotFound"


def test_mrg_005_empty_guid_is_invalid(tmp_path: Path, make_project) -> None:
    descriptor = make_project(
        tmp_path / "A", "00000000-0000-0000-0000-000000000000"
    )

    assert merge_descriptors([descriptor], ORDINAL)[0].status == "InvalidGuid"


def test_mrg_006_all_excluded_targets_yield_no_files(
    tmp_path: Path, make_project, caplog: pytest.LogCaptureFixture
) -> None:
    descriptor = make_project(tmp_path / "A", GUID_A, is_excluded=True)
    caplog.set_level(logging.INFO)

    records = merge_descriptors([descriptor], ORDINAL)

    assert records[0].status == "NoFilesToAnalyze"
    excluded_logs = [entry for entry in caplog.records if "excluded" in entry.getMessage()]
    assert len(excluded_logs) == 1
    assert excluded_logs[0].levelno == logging.INFO


def test_mrg_007_excluded_target_does_not_contribute_files(tmp_path: Path, make_project) -> None:
    debug = make_project(tmp_path / "A", GUID_A, files=("a.cs",), configuration="Debug")
    release = make_project(
        tmp_path / "A", GUID_A, files=("b.cs",), configuration="Release", is_excluded=True
    )

    record = merge_descriptors([debug, release], ORDINAL)[0]

    assert record.status == "Valid"
    assert record.referenced_files == [tmp_path / "A" / "a.cs"]


def test_mrg_008_missing_files_are_dropped_with_one_warning_each(
    tmp_path: Path, make_project, caplog: pytest.LogCaptureFixture
) -> None:
    descriptor = make_project(
        tmp_path / "A", GUID_A, files=("missing.cs",), create_files=False
    )
    caplog.set_level(logging.WARNING)

    records = merge_descriptors([descriptor, descriptor], ORDINAL)

    assert records[0].status == "NoFilesToAnalyze"
    missing = [entry for entry in caplog.records if "missing.cs" in entry.getMessage()]
    assert len(missing) == 1


def test_mrg_009_files_are_unioned_across_targets(tmp_path: Path, make_project) -> None:
    debug = make_project(tmp_path / "A", GUID_A, files=("a.cs", "shared.cs"), configuration="Debug")
    release = make_project(
        tmp_path / "A", GUID_A, files=("shared.cs", "b.cs"), configuration="Release"
    )

    record = merge_descriptors([release, debug], ORDINAL)[0]

    assert record.referenced_files == [
        tmp_path / "A" / "a.cs",
        tmp_path / "A" / "shared.cs",
        tmp_path / "A" / "b.cs",
    ]
    assert record.descriptor.configuration == "Debug"


def test_mrg_010_analyzer_paths_are_merged_deterministically(tmp_path: Path, make_project) -> None:
    debug = make_project(
        tmp_path / "A",
        GUID_A,
        configuration="Debug",
        settings=(
            ("sonar.cs.analyzer.projectOutPaths", "/out/debug,/out/shared"),
            ("sonar.cs.roslyn.reportFilePaths", "/r/debug.json|/r/shared.json"),
            ("sonar.cs.scanner.telemetry", "/t/debug.json"),
        ),
    )
    release = make_project(
        tmp_path / "A",
        GUID_A,
        configuration="Release",
        settings=(
            ("sonar.cs.analyzer.projectOutPaths", "/out/shared,/out/release"),
            ("sonar.cs.roslyn.reportFilePaths", "/r/release.json"),
            ("sonar.cs.scanner.telemetry", "/t/release.json"),
        ),
    )

    forward = merge_descriptors([debug, release], ORDINAL)[0]
    backward = merge_descriptors([release, debug], ORDINAL)[0]

    expected_out = [Path("/out/debug"), Path("/out/shared"), Path("/out/release")]
    assert forward.analyzer_out_paths == expected_out
    assert backward.analyzer_out_paths == expected_out
    assert forward.report_paths == [
        Path("/r/debug.json"),
        Path("/r/shared.json"),
        Path("/r/release.json"),
    ]
    assert forward.telemetry_paths == [Path("/t/debug.json"), Path("/t/release.json")]
    assert backward.report_paths == forward.report_paths
    assert backward.telemetry_paths == forward.telemetry_paths


def test_mrg_011_records_follow_first_appearance_order(tmp_path: Path, make_project) -> None:
    first = make_project(tmp_path / "B", GUID_B)
    second = make_project(tmp_path / "A", GUID_A)

    records = merge_descriptors([first, second], ORDINAL)

    assert [record.guid for record in records] == [GUID_B, GUID_A]


def test_mrg_012_guid_grouping_ignores_case(tmp_path: Path, make_project) -> None:
    upper = make_project(tmp_path / "A", GUID_A, configuration="Debug")
    lower = dataclasses.replace(upper, project_guid=GUID_A.lower(), configuration="Release")

    records = merge_descriptors([upper, lower], ORDINAL)

    assert len(records) == 1
    assert records[0].status == "Valid"


def test_mrg_013_unreadable_file_list_is_a_warning(
    tmp_path: Path, make_project, caplog: pytest.LogCaptureFixture
) -> None:
    descriptor = make_project(tmp_path / "A", GUID_A)
    Path(descriptor.analysis_results[0].location).unlink()
    caplog.set_level(logging.WARNING)

    records = merge_descriptors([descriptor], ORDINAL)

    assert records[0].status == "NoFilesToAnalyze"
    assert any("files-to-analyze" in entry.getMessage() for entry in caplog.records)


def _record(language: str | None, encoding: str | None) -> ProjectRecord:
    descriptor = ProjectDescriptor(
        project_guid=GUID_A,
        full_path="/work/A/A.csproj",
        project_language=language,
        encoding=encoding,
        analysis_settings=(AnalysisSetting(id="k", value="v"),),
    )
    return ProjectRecord(guid=GUID_A, status="Valid", descriptor=descriptor)


def test_mrg_014_encoding_resolution_order() -> None:
    assert resolve_encoding(_record("C#", "UTF-16"), "iso-8859-1") == "utf-16"
    assert resolve_encoding(_record("C#", None), "ISO-8859-1") == "iso-8859-1"
    assert resolve_encoding(_record("VB", None), None) == "utf-8"
    assert resolve_encoding(_record("F#", None), None) is None
