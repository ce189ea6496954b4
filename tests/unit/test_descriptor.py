# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for descriptor loading."""

import json
from pathlib import Path

import pytest

from scanprep.descriptor import (
    DescriptorError,
    ProjectDescriptor,
    discover_descriptors,
    load_descriptor,
)


def _payload(**overrides) -> dict:
    payload = {
        "projectGuid": "DB2E5521-3172-47B9-BA50-864F12E6DFFF",
        "fullPath": "/work/A/A.csproj",
        "projectName": "A",
        "projectType": "Test",
        "isExcluded": False,
        "projectLanguage": "C#",
        "encoding": "utf-8",
        "configuration": "Debug",
        "platform": "AnyCPU",
        "targetFramework": "net8.0",
        "analysisResultFiles": [{"id": "FilesToAnalyze", "location": "/out/0/files.txt"}],
        "analysisSettings": [
            {"id": "sonar.cs.analyzer.projectOutPaths", "value": "/out/0"},
        ],
    }
    payload.update(overrides)
    return payload


def test_dsc_001_load_descriptor_reads_all_fields(tmp_path: Path, write_file) -> None:
    path = write_file(tmp_path / "0" / "ProjectInfo.json", json.dumps(_payload()))

    descriptor = load_descriptor(path)

    assert descriptor.project_guid == "DB2E5521-3172-47B9-BA50-864F12E6DFFF"
    assert descriptor.project_type == "Test"
    assert descriptor.project_language == "C#"
    assert descriptor.build_target_key == "Debug_AnyCPU_net8.0"
    assert descriptor.project_directory == Path("/work/A")
    assert descriptor.find_result("FilesToAnalyze").location == "/out/0/files.txt"
    assert descriptor.find_setting("sonar.cs.analyzer.projectOutPaths").value == "/out/0"
    assert descriptor.find_setting("missing") is None


def test_dsc_002_optional_fields_default(tmp_path: Path, write_file) -> None:
    minimal = {"projectGuid": "guid", "fullPath": "/work/A/A.csproj"}
    path = write_file(tmp_path / "ProjectInfo.json", json.dumps(minimal))

    descriptor = load_descriptor(path)

    assert descriptor == ProjectDescriptor(project_guid="guid", full_path="/work/A/A.csproj")


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "[]",
        json.dumps({"fullPath": "/work/A/A.csproj"}),
        json.dumps(_payload(projectType="Library")),
        json.dumps(_payload(analysisSettings=[{"value": "no id"}])),
    ],
)
def test_dsc_003_malformed_descriptor_raises(tmp_path: Path, write_file, content: str) -> None:
    path = write_file(tmp_path / "ProjectInfo.json", content)

    with pytest.raises(DescriptorError):
        load_descriptor(path)


def test_dsc_004_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(DescriptorError):
        load_descriptor(tmp_path / "ProjectInfo.json")


def test_dsc_005_discover_scans_immediate_subdirectories_in_name_order(
    tmp_path: Path, write_file
) -> None:
    write_file(tmp_path / "2" / "ProjectInfo.json", json.dumps(_payload(projectName="second")))
    write_file(tmp_path / "1" / "ProjectInfo.json", json.dumps(_payload(projectName="first")))
    write_file(tmp_path / "1" / "nested" / "ProjectInfo.json", json.dumps(_payload()))
    write_file(tmp_path / "ProjectInfo.json", json.dumps(_payload()))
    (tmp_path / "empty").mkdir()

    descriptors = discover_descriptors(tmp_path)

    assert [descriptor.project_name for descriptor in descriptors] == ["first", "second"]


def test_dsc_006_discover_missing_directory_returns_empty(tmp_path: Path) -> None:
    assert discover_descriptors(tmp_path / "absent") == []
