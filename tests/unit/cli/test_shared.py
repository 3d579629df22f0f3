# pyright: reportExplicitAny=false
"""Unit tests for the shared CLI utilities module."""

from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from tessera.cli._shared import (
    DataFileError,
    ExitCode,
    exit_with_error,
    load_bindings,
    load_data_file,
    parse_assignments,
)


class TestExitCode:
    def test_exit_code_values_are_unique(self) -> None:
        values = [code.value for code in ExitCode]
        assert len(values) == len(set(values))

    def test_exit_code_values(self) -> None:
        assert ExitCode.SUCCESS == 0
        assert ExitCode.LOAD_ERROR == 1
        assert ExitCode.VALIDATION_ERROR == 2
        assert ExitCode.NOT_FOUND == 3
        assert ExitCode.IO_ERROR == 4
        assert ExitCode.RENDER_ERROR == 5


class TestExitWithError:
    def test_prints_and_exits(self) -> None:
        output = StringIO()
        console = Console(file=output, force_terminal=False, width=120)

        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("boom", ExitCode.NOT_FOUND, console=console)

        assert exc_info.value.code == ExitCode.NOT_FOUND
        assert "Error: boom" in output.getvalue()

    def test_default_code(self) -> None:
        console = Console(file=StringIO())
        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("boom", console=console)
        assert exc_info.value.code == ExitCode.RENDER_ERROR


class TestLoadDataFile:
    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "data.json"
        path.write_text('{"user": {"name": "Ada"}}', encoding="utf-8")
        assert load_data_file(path) == {"user": {"name": "Ada"}}

    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "data.yaml"
        path.write_text("items:\n  - a\n  - b\n", encoding="utf-8")
        assert load_data_file(path) == {"items": ["a", "b"]}

    def test_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "data.toml"
        path.write_text('[site]\ntitle = "Docs"\n', encoding="utf-8")
        assert load_data_file(path) == {"site": {"title": "Docs"}}

    def test_unknown_extension_read_as_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "data.txt"
        path.write_text("name: Ada\n", encoding="utf-8")
        assert load_data_file(path) == {"name": "Ada"}

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "data.yaml"
        path.write_text("", encoding="utf-8")
        assert load_data_file(path) == {}

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "data.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(DataFileError, match="mapping"):
            _ = load_data_file(path)

    @pytest.mark.parametrize(
        ("filename", "content"),
        [
            ("bad.json", "{not json"),
            ("bad.toml", "[site\n"),
            ("bad.yaml", "key: [unclosed"),
        ],
    )
    def test_invalid_syntax(self, tmp_path: Path, filename: str, content: str) -> None:
        path = tmp_path / filename
        path.write_text(content, encoding="utf-8")
        with pytest.raises(DataFileError, match="Failed to parse"):
            _ = load_data_file(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            _ = load_data_file(tmp_path / "missing.json")


class TestParseAssignments:
    def test_nested_and_typed(self) -> None:
        result = parse_assignments(["user.name=Ada", "user.age=36", "admin=true"])
        assert result == {"user": {"name": "Ada", "age": 36}, "admin": True}

    def test_value_may_contain_equals(self) -> None:
        assert parse_assignments(["query=a=b"]) == {"query": "a=b"}

    def test_empty_value(self) -> None:
        assert parse_assignments(["name="]) == {"name": ""}

    @pytest.mark.parametrize("assignment", ["name", "=value", "  =x"])
    def test_invalid(self, assignment: str) -> None:
        with pytest.raises(DataFileError, match="Invalid assignment"):
            _ = parse_assignments([assignment])


class TestLoadBindings:
    def test_nothing(self) -> None:
        assert load_bindings(None, None) == {}

    def test_assignments_override_file(self, tmp_path: Path) -> None:
        path = tmp_path / "data.json"
        path.write_text('{"user": {"name": "Ada", "role": "admin"}}', encoding="utf-8")

        result = load_bindings(path, ["user.name=Grace"])

        assert result == {"user": {"name": "Grace", "role": "admin"}}
