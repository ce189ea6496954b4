import sys
from collections.abc import Callable
from pathlib import Path

import pytest


def _add_src_to_path() -> None:
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


_add_src_to_path()

from scanprep.descriptor import (  # noqa: E402
    AnalysisResult,
    AnalysisSetting,
    ProjectDescriptor,
)


@pytest.fixture
def write_file() -> Callable[..., Path]:
    def _write(path: Path, content: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_project(write_file: Callable[..., Path]) -> Callable[..., ProjectDescriptor]:
    """Create a project file, its source files and a matching descriptor."""

    def _make(
        project_dir: Path,
        guid: str,
        files: tuple[str, ...] = ("Program.cs",),
        name: str | None = None,
        project_type: str = "Product",
        language: str | None = "C#",
        settings: tuple[tuple[str, str], ...] = (),
        configuration: str = "Debug",
        is_excluded: bool = False,
        create_files: bool = True,
        encoding: str | None = None,
    ) -> ProjectDescriptor:
        project_name = name or project_dir.name
        project_file = write_file(project_dir / f"{project_name}.csproj", "<Project />")
        file_paths = [project_dir / relative for relative in files]
        if create_files:
            for file_path in file_paths:
                write_file(file_path, "// source")
        list_path = write_file(
            project_dir / "obj" / f"{configuration}-FilesToAnalyze.txt",
            "\n".join(str(path) for path in file_paths),
        )
        return ProjectDescriptor(
            project_guid=guid,
            full_path=str(project_file),
            project_name=project_name,
            project_type=project_type,  # type: ignore[arg-type]
            is_excluded=is_excluded,
            project_language=language,
            encoding=encoding,
            configuration=configuration,
            analysis_results=(AnalysisResult(id="FilesToAnalyze", location=str(list_path)),),
            analysis_settings=tuple(
                AnalysisSetting(id=key, value=value) for key, value in settings
            ),
        )

    return _make
