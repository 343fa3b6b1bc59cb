"""Tests for the click command-line interface."""

import json
from pathlib import Path

from click.testing import CliRunner

from invograph import __version__
from invograph.cli import EXIT_NO_DEFINITION, cli


class TestCliBasics:
    """Tests for the command group."""

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "parse" in result.output
        assert "scan" in result.output


class TestParseCommand:
    """Tests for `invograph parse`."""

    def test_prints_definition_and_edges(self, write_sql) -> None:
        path = write_sql("p.sql", "CREATE PROCEDURE dbo.P AS EXEC dbo.Q; SELECT * FROM dbo.T")
        result = CliRunner().invoke(cli, ["parse", str(path)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["file"] == "p.sql"
        assert data["definition"]["kind"] == "StoredProcedure"
        assert [(e["to"], e["type"]) for e in data["edges"]] == [
            ("dbo.Q", "StoredProcedure"),
            ("dbo.T", "Table"),
        ]

    def test_no_definition_exit_status(self, write_sql) -> None:
        path = write_sql("q.sql", "SELECT 1")
        result = CliRunner().invoke(cli, ["parse", str(path)])

        assert result.exit_code == EXIT_NO_DEFINITION
        assert '"definition": null' in result.output
        assert "No CREATE statement found" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["parse", str(tmp_path / "missing.sql")])
        assert result.exit_code != 0


class TestScanCommand:
    """Tests for `invograph scan`."""

    def test_prints_graph(self, sql_tree: Path) -> None:
        result = CliRunner().invoke(cli, ["scan", str(sql_tree), "--no-cache", "--workers", "1"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["metadata"]["node_count"] == 8
        assert data["metadata"]["edge_count"] == 7
        assert data["metadata"]["file_count"] == 6
        assert data["metadata"]["defined_count"] == 5
        assert data["metadata"]["external_count"] == 3
        assert data["metadata"]["edge_types"] == {"StoredProcedure": 1, "Table": 6}
        assert data["metadata"]["node_types"]["Table"] == 4
        assert data["skipped"] == ["scripts/adhoc_report.sql"]
        assert {"from": "dbo.usp_loadorders", "to": "dbo.usp_audit", "type": "StoredProcedure"} in data["edges"]
        assert not (sql_tree / ".invograph").exists()

    def test_exclude_and_output(self, sql_tree: Path, tmp_path: Path) -> None:
        output = tmp_path / "graph.json"
        result = CliRunner().invoke(
            cli,
            ["scan", str(sql_tree), "--exclude", "procs", "--exclude", "views", "--output", str(output)],
        )

        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert {node["id"] for node in data["nodes"]} == {"dbo.orders", "dbo.fn_ordertotal"}
        assert (sql_tree / ".invograph" / "parse_cache.msgpack").exists()

    def test_not_a_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "x.sql"
        path.write_text("SELECT 1")
        result = CliRunner().invoke(cli, ["scan", str(path)])
        assert result.exit_code != 0
