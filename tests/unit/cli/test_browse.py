"""Unit tests for the ls and search commands."""

import json
from pathlib import Path

from sandfm.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestLsCommand:
    """Tests for sandfm ls."""

    def test_ls_table(self, sample_tree: Path) -> None:
        """The table shows folders and files."""
        result = runner.invoke(app, ["--root", str(sample_tree), "ls"])

        assert result.exit_code == 0
        assert "docs/" in result.stdout
        assert "notes.md" in result.stdout

    def test_ls_json(self, sample_tree: Path) -> None:
        """JSON output lists folders and files in order."""
        result = runner.invoke(app, ["--root", str(sample_tree), "ls", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [f["name"] for f in data["folders"]] == ["docs"]
        assert data["folders"][0]["child_count"] == 1
        assert [f["name"] for f in data["files"]] == ["notes.md", "report.txt", "Report2.txt"]

    def test_ls_empty(self, root_dir: Path) -> None:
        """An empty folder prints an info message."""
        result = runner.invoke(app, ["--root", str(root_dir), "ls"])

        assert result.exit_code == 0
        assert "Folder is empty" in result.stdout

    def test_ls_traversal(self, sample_tree: Path) -> None:
        """A traversing path exits with code 1."""
        result = runner.invoke(app, ["--root", str(sample_tree), "ls", "../.."])

        assert result.exit_code == 1
        assert "must not contain '..'" in result.output

    def test_ls_missing(self, sample_tree: Path) -> None:
        """A missing folder exits with code 1."""
        result = runner.invoke(app, ["--root", str(sample_tree), "ls", "ghost"])

        assert result.exit_code == 1
        assert "Directory not found" in result.output


class TestSearchCommand:
    """Tests for sandfm search."""

    def test_search_json(self, sample_tree: Path) -> None:
        """Wildcard search finds both report files."""
        result = runner.invoke(app, ["--root", str(sample_tree), "search", "rep*", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [h["path"] for h in data] == ["report.txt", "Report2.txt"]

    def test_search_in_folder(self, sample_tree: Path) -> None:
        """--in restricts the search to a folder."""
        result = runner.invoke(
            app, ["--root", str(sample_tree), "search", "txt", "--in", "docs", "--json"]
        )

        assert result.exit_code == 0
        assert [h["path"] for h in json.loads(result.stdout)] == ["docs/a.txt", "docs/sub/b.txt"]

    def test_search_limit(self, sample_tree: Path) -> None:
        """--limit truncates the results."""
        result = runner.invoke(
            app, ["--root", str(sample_tree), "search", "*", "-n", "2", "--json"]
        )

        assert len(json.loads(result.stdout)) == 2

    def test_search_no_hits(self, sample_tree: Path) -> None:
        """No hits prints an info message."""
        result = runner.invoke(app, ["--root", str(sample_tree), "search", "*.pdf"])

        assert result.exit_code == 0
        assert "No matching files found" in result.stdout
