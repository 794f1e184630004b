"""Unit tests for the 'options' command."""

import json

from click.testing import CliRunner

from hierflow.cli.commands.options import options


class TestOptionsCommand:
    def test_lists_values(self, tmp_path):
        f = tmp_path / "rows.json"
        f.write_text(json.dumps([
            {"id": "root"},
            {"id": "b", "parent_id": "root", "dropdown_tag": "north"},
        ]))
        result = CliRunner().invoke(options, [str(f)])
        assert result.exit_code == 0
        assert "Nodes (2):" in result.output
        assert "Parents (1):" in result.output
        assert "  north" in result.output

    def test_no_tags(self, tmp_path):
        f = tmp_path / "rows.json"
        f.write_text(json.dumps([{"id": "root"}]))
        result = CliRunner().invoke(options, [str(f)])
        assert "Tags (0):" in result.output
        assert "(none)" in result.output

    def test_unreadable(self, tmp_path):
        f = tmp_path / "rows.json"
        f.write_text("[")
        result = CliRunner().invoke(options, [str(f)])
        assert result.exit_code == 1
