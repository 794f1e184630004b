"""Unit tests for the 'layout' command."""

import json

import pytest
from click.testing import CliRunner

from hierflow.cli.commands.layout import layout


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def rows_file(tmp_path):
    f = tmp_path / "rows.json"
    f.write_text(json.dumps({"rows": [
        {"id": "A"},
        {"id": "B", "parent_id": "A"},
        {"id": "C", "parent_id": "A"},
        {"id": "R"},
    ]}))
    return str(f)


class TestLayoutCommand:
    def test_json_output(self, runner, rows_file):
        result = runner.invoke(layout, [rows_file, "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "ready"
        assert [n["id"] for n in data["nodes"]] == ["A", "B", "C", "R"]
        assert {n["id"]: n["depth"] for n in data["nodes"]} == {"A": 0, "B": 1, "C": 1, "R": 0}
        assert data["links"] == [["A", "B"], ["A", "C"]]
        assert data["transform"]["label"].endswith("%")

    def test_json_with_filter(self, runner, rows_file):
        result = runner.invoke(layout, [rows_file, "--json", "--hierarchy", "B"])
        data = json.loads(result.output)
        assert [n["id"] for n in data["nodes"]] == ["A", "B"]

    def test_text_output(self, runner, rows_file):
        result = runner.invoke(layout, [rows_file])
        assert result.exit_code == 0
        assert "4 nodes, 2 links" in result.output
        assert "Transform:" in result.output

    def test_viewport_size(self, runner, rows_file):
        small = json.loads(runner.invoke(layout, [rows_file, "--json", "--width", "200", "--height", "150"]).output)
        large = json.loads(runner.invoke(layout, [rows_file, "--json"]).output)
        assert small["transform"]["scale"] < large["transform"]["scale"]

    def test_invalid_json_status(self, runner, tmp_path):
        f = tmp_path / "cycle.json"
        f.write_text(json.dumps([{"id": "X", "parent_id": "Y"}, {"id": "Y", "parent_id": "X"}]))
        result = runner.invoke(layout, [str(f), "--json"])
        assert result.exit_code == 1
        assert '"status": "invalid"' in result.output
