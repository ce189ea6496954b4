# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for the property tree serializer."""

from pathlib import Path

import pytest

from scanprep.additional_files import AnalysisFiles
from scanprep.config import AnalysisConfig
from scanprep.descriptor import AnalysisSetting, ProjectDescriptor
from scanprep.merger import ProjectRecord
from scanprep.serializer import InputSerializer, PropertyEntry, SerializerFinalizedError

OUT = Path("/build/out")


def _config(**overrides) -> AnalysisConfig:
    values = {"output_dir": OUT, "project_key": "key"}
    values.update(overrides)
    return AnalysisConfig(**values)


def _record(
    guid: str,
    project_type: str = "Product",
    language: str | None = "C#",
    settings: tuple[tuple[str, str], ...] = (),
    status: str = "Valid",
) -> ProjectRecord:
    descriptor = ProjectDescriptor(
        project_guid=guid,
        full_path=f"/work/{guid}/{guid}.csproj",
        project_name=f"name-{guid}",
        project_type=project_type,  # type: ignore[arg-type]
        project_language=language,
        analysis_settings=tuple(AnalysisSetting(id=key, value=value) for key, value in settings),
    )
    return ProjectRecord(
        guid=guid,
        status=status,  # type: ignore[arg-type]
        descriptor=descriptor,
        module_files=[Path(f"/work/{guid}/a.cs")],
        encoding="utf-8",
    )


def _as_dict(entries) -> dict:
    return {entry.key: entry.value for entry in entries}


def test_ser_001_project_info_block() -> None:
    serializer = InputSerializer(
        _config(
            project_name="Name",
            project_version="1.2",
            pull_request_cache_base_path="/cache",
        )
    )
    serializer.write_project_info(Path("/work"))

    tree = serializer.flush()

    assert tree.blocks[0] == (
        PropertyEntry("sonar.projectKey", "key"),
        PropertyEntry("sonar.projectName", "Name"),
        PropertyEntry("sonar.projectVersion", "1.2"),
        PropertyEntry("sonar.working.directory", str(OUT / ".sonar")),
        PropertyEntry("sonar.projectBaseDir", "/work"),
        PropertyEntry("sonar.pullrequest.cache.basepath", "/cache"),
    )


def test_ser_002_product_and_test_projects_split_files() -> None:
    product = _record("P")
    product.extra_sources.append(Path("/work/P/b.js"))
    product.extra_tests.append(Path("/work/P/b.spec.js"))
    test = _record("T", project_type="Test")
    test.extra_sources.append(Path("/work/T/c.js"))
    serializer = InputSerializer(_config())

    serializer.write_project(product)
    serializer.write_project(test)
    values = _as_dict(serializer.flush().entries())

    assert values["P.sonar.projectKey"] == "key:P"
    assert values["P.sonar.projectName"] == "name-P"
    assert values["P.sonar.projectBaseDir"] == "/work/P"
    assert values["P.sonar.sourceEncoding"] == "utf-8"
    assert values["P.sonar.sources"] == ("/work/P/a.cs", "/work/P/b.js")
    assert values["P.sonar.tests"] == ("/work/P/b.spec.js",)
    assert values["T.sonar.sources"] == ""
    assert values["T.sonar.tests"] == ("/work/T/a.cs", "/work/T/c.js")


def test_ser_003_product_without_extra_tests_writes_empty_tests() -> None:
    serializer = InputSerializer(_config())
    serializer.write_project(_record("P"))

    values = _as_dict(serializer.flush().entries())

    assert values["P.sonar.tests"] == ""


def test_ser_004_settings_and_language_keyed_paths() -> None:
    record = _record(
        "V",
        language="VB",
        settings=(
            ("sonar.vbnet.analyzer.projectOutPaths", "/raw/ignored"),
            ("sonar.custom", "value"),
        ),
    )
    record.analyzer_out_paths = [Path("/out/0"), Path("/out/1")]
    record.report_paths = [Path("/out/0/report.json")]
    serializer = InputSerializer(_config())

    serializer.write_project(record)
    values = _as_dict(serializer.flush().entries())

    assert values["V.sonar.custom"] == "value"
    assert values["V.sonar.vbnet.analyzer.projectOutPaths"] == ("/out/0", "/out/1")
    assert values["V.sonar.vbnet.roslyn.reportFilePaths"] == ("/out/0/report.json",)
    assert "V.sonar.vbnet.scanner.telemetry" not in values
    assert "V.sonar.cs.analyzer.projectOutPaths" not in values


def test_ser_005_other_languages_get_no_analyzer_paths() -> None:
    record = _record("F", language="F#")
    record.analyzer_out_paths = [Path("/out/0")]
    serializer = InputSerializer(_config())

    serializer.write_project(record)
    keys = [entry.key for entry in serializer.flush().entries()]

    assert not any("projectOutPaths" in key for key in keys)


def test_ser_006_each_module_gets_its_own_working_directory() -> None:
    serializer = InputSerializer(_config())
    serializer.write_project(_record("A"))
    serializer.write_project(_record("B"))

    tree = serializer.flush()
    values = _as_dict(tree.entries())

    assert tree.module_keys == ("A", "B")
    assert values["A.sonar.working.directory"] == str(OUT / ".sonar" / "mod0")
    assert values["B.sonar.working.directory"] == str(OUT / ".sonar" / "mod1")


def test_ser_007_invalid_or_repeated_projects_are_rejected() -> None:
    serializer = InputSerializer(_config())
    serializer.write_project(_record("A"))

    with pytest.raises(ValueError):
        serializer.write_project(_record("A"))
    with pytest.raises(ValueError):
        serializer.write_project(_record("B", status="DuplicateGuid"))


def test_ser_008_global_settings_filtering() -> None:
    serializer = InputSerializer(_config())
    serializer.write_global_settings(
        [
            ("sonar.verbose", "true"),
            ("sonar.scanner.truststorePath", "/trust"),
            ("sonar.projectBaseDir", "/work"),
            ("sonar.exclusions", "**/bin/**"),
            ("sonar.host.url", "https://sonar.example.com"),
        ]
    )

    entries = list(serializer.flush().entries())

    assert entries == [
        PropertyEntry("sonar.exclusions", "**/bin/**"),
        PropertyEntry("sonar.host.url", "https://sonar.example.com"),
    ]


def test_ser_009_cloud_url_becomes_host_url() -> None:
    serializer = InputSerializer(_config(server_url="https://ignored.example.com"))
    serializer.write_global_settings([("sonar.scanner.sonarcloudUrl", "https://cloud.example.com")])

    values = _as_dict(serializer.flush().entries())

    assert values["sonar.scanner.sonarcloudUrl"] == "https://cloud.example.com"
    assert values["sonar.host.url"] == "https://cloud.example.com"


@pytest.mark.parametrize(
    ("server_url", "expected"),
    [(None, "https://sonarcloud.io"), ("https://sonar.local", "https://sonar.local")],
)
def test_ser_010_inferred_host_url(server_url: str | None, expected: str) -> None:
    serializer = InputSerializer(_config(server_url=server_url))
    serializer.write_global_settings([])

    values = _as_dict(serializer.flush().entries())

    assert values == {"sonar.host.url": expected}


def test_ser_011_shared_files_and_empty_blocks() -> None:
    serializer = InputSerializer(_config())
    serializer.write_shared_files(AnalysisFiles())
    serializer.write_shared_files(
        AnalysisFiles(sources=[Path("/work/x.js")], tests=[Path("/work/x.spec.js")])
    )

    tree = serializer.flush()

    assert tree.blocks == (
        (
            PropertyEntry("sonar.sources", ("/work/x.js",)),
            PropertyEntry("sonar.tests", ("/work/x.spec.js",)),
        ),
    )
    assert tree.blocks[0][0].is_multi_value


def test_ser_012_flush_is_single_use() -> None:
    serializer = InputSerializer(_config())
    serializer.write_project_info(Path("/work"))
    serializer.flush()

    assert serializer.finalized
    with pytest.raises(SerializerFinalizedError):
        serializer.flush()
    with pytest.raises(SerializerFinalizedError):
        serializer.write_project(_record("A"))
    with pytest.raises(SerializerFinalizedError):
        serializer.write_global_settings([])


def test_ser_013_config_is_required() -> None:
    with pytest.raises(ValueError):
        InputSerializer(None)  # type: ignore[arg-type]
