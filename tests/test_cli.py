"""Tests for the procgraph CLI."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from procgraph._cli.main import app

PROCESSES = [
    {"id": "add", "parameters": [{"name": "x"}, {"name": "y"}]},
    {"id": "subtract", "parameters": [{"name": "x"}, {"name": "y"}]},
    {"id": "sqrt", "parameters": [{"name": "x"}]},
]

runner = CliRunner()


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "processes.json"
    path.write_text(json.dumps({"processes": PROCESSES}))
    return path


def _write_tree(tmp_path: Path, tree: dict) -> Path:
    path = tmp_path / "tree.json"
    path.write_text(json.dumps(tree))
    return path


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep config lookup away from the repository's own pyproject.toml
    project = tmp_path / "project"
    project.mkdir()
    (project / "pyproject.toml").write_text("[project]\nname = 'test'\n")
    monkeypatch.chdir(project)


class TestCompile:
    def test_compile_to_file(self, tmp_path: Path, catalog_file: Path) -> None:
        tree = _write_tree(tmp_path, {"FunctionCall": {"name": "sqrt", "args": [{"Identifier": "x"}]}})
        output = tmp_path / "out" / "graph.json"

        result = runner.invoke(app, ["compile", str(tree), "--catalog", str(catalog_file), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert json.loads(output.read_text()) == {
            "sqrt1": {"process_id": "sqrt", "arguments": {"x": {"from_parameter": "x"}}, "result": True},
        }
        assert output.read_text().endswith("}\n")

    def test_compile_with_callback_parameter(self, tmp_path: Path, catalog_file: Path) -> None:
        tree = _write_tree(
            tmp_path,
            {"Binary": {"operator": "-", "left": {"Identifier": "$NIR"}, "right": {"Identifier": "$0"}}},
        )
        output = tmp_path / "graph.json"

        result = runner.invoke(
            app,
            [
                "compile",
                str(tree),
                "-c",
                str(catalog_file),
                "-p",
                "data",
                "--numeric-labels",
                "label",
                "-o",
                str(output),
            ],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(output.read_text())["subtract1"]["arguments"] == {
            "x": {"from_parameter": "data", "label": "NIR"},
            "y": {"from_parameter": "data", "label": "0"},
        }

    def test_compile_uses_configured_catalog(self, tmp_path: Path, catalog_file: Path) -> None:
        (Path.cwd() / "pyproject.toml").write_text(f'[tool.procgraph]\ncatalog = "{catalog_file.as_posix()}"\n')
        tree = _write_tree(tmp_path, {"FunctionCall": {"name": "sqrt", "args": [{"Number": "4"}]}})
        output = tmp_path / "graph.json"

        result = runner.invoke(app, ["compile", str(tree), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "sqrt1" in json.loads(output.read_text())

    def test_compile_without_catalog(self, tmp_path: Path) -> None:
        tree = _write_tree(tmp_path, {"Number": "1"})

        result = runner.invoke(app, ["compile", str(tree)])

        assert result.exit_code == 1
        assert "No operation catalog" in result.output

    def test_compile_error(self, tmp_path: Path, catalog_file: Path) -> None:
        tree = _write_tree(tmp_path, {"FunctionCall": {"name": "ndvi", "args": []}})

        result = runner.invoke(app, ["compile", str(tree), "-c", str(catalog_file)])

        assert result.exit_code == 1
        assert "ndvi" in result.output

    def test_malformed_tree(self, tmp_path: Path, catalog_file: Path) -> None:
        tree = _write_tree(tmp_path, {"FunctionCall": {"args": []}})

        result = runner.invoke(app, ["compile", str(tree), "-c", str(catalog_file)])

        assert result.exit_code == 1
        assert "Malformed expression tree" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_literal_formula_fails(self, tmp_path: Path, catalog_file: Path) -> None:
        tree = _write_tree(tmp_path, {"Unary": {"operator": "-", "expression": {"Number": "5"}}})

        result = runner.invoke(app, ["compile", str(tree), "-c", str(catalog_file)])

        assert result.exit_code == 1
        assert "Invalid formula" in result.output


class TestShow:
    def test_show_graph(self, tmp_path: Path) -> None:
        graph = tmp_path / "graph.json"
        graph.write_text(
            json.dumps(
                {
                    "add1": {"process_id": "add", "arguments": {"x": {"from_parameter": "a"}, "y": 1}},
                    "sqrt1": {"process_id": "sqrt", "arguments": {"x": {"from_node": "add1"}}, "result": True},
                },
            ),
        )

        result = runner.invoke(app, ["show", str(graph)])

        assert result.exit_code == 0, result.output
        assert "sqrt1" in result.output
        assert "add1" in result.output

    def test_show_graph_without_result(self, tmp_path: Path) -> None:
        graph = tmp_path / "graph.json"
        graph.write_text(json.dumps({"add1": {"process_id": "add", "arguments": {"x": 1, "y": 1}}}))

        result = runner.invoke(app, ["show", str(graph)])

        assert result.exit_code == 1
        assert "no result node" in result.output

    def test_show_malformed_graph(self, tmp_path: Path) -> None:
        graph = tmp_path / "graph.json"
        graph.write_text(json.dumps({"add1": {"arguments": {}}}))

        result = runner.invoke(app, ["show", str(graph)])

        assert result.exit_code == 1


def test_operators_without_catalog() -> None:
    result = runner.invoke(app, ["operators"])

    assert result.exit_code == 0, result.output
    for operation in ("add", "subtract", "multiply", "divide", "power"):
        assert operation in result.output


def test_operators_with_catalog(tmp_path: Path) -> None:
    catalog = tmp_path / "processes.json"
    catalog.write_text(json.dumps([{"id": "add", "parameters": [{"name": "x"}, {"name": "y"}]}]))

    result = runner.invoke(app, ["operators", "--catalog", str(catalog)])

    assert result.exit_code == 0, result.output
    assert "missing" in result.output
