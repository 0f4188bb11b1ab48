"""Unit tests for the mutating commands.

Tests for sandfm mkdir, upload, rename, rm, mv, cp and zip, including
journal recording.
"""

import json
import zipfile
from pathlib import Path

import pytest
from sandfm.cli.main import app
from sandfm.core.state import StateManager
from sandfm.models.history import HistoryActionType
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def base_args(sample_tree: Path) -> list[str]:
    """Global options selecting the sample root, with warnings silenced."""
    return ["--quiet", "--root", str(sample_tree)]


class TestMkdirCommand:
    """Tests for sandfm mkdir."""

    def test_creates_and_records(self, base_args: list[str], sample_tree: Path) -> None:
        """The folder is created and journaled."""
        result = runner.invoke(app, [*base_args, "mkdir", "new", "--in", "docs"])

        assert result.exit_code == 0
        assert (sample_tree / "docs" / "new").is_dir()
        entry = StateManager().get_history()[0]
        assert entry.action_type == HistoryActionType.MKDIR
        assert entry.metadata == {"path": "docs"}

    def test_existing(self, base_args: list[str]) -> None:
        """An existing name exits with code 1."""
        result = runner.invoke(app, [*base_args, "mkdir", "docs"])

        assert result.exit_code == 1
        assert "already exists" in result.output


class TestUploadCommand:
    """Tests for sandfm upload."""

    def test_uploads(self, base_args: list[str], sample_tree: Path, tmp_path: Path) -> None:
        """Local files are copied into the target folder."""
        local = tmp_path / "local.txt"
        local.write_text("local")

        result = runner.invoke(app, [*base_args, "upload", str(local), "--to", "inbox", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["outcome"] == "success"
        assert (sample_tree / "inbox" / "local.txt").read_text() == "local"

    def test_missing_local_file(self, base_args: list[str], tmp_path: Path) -> None:
        """A missing local file is a usage error."""
        result = runner.invoke(app, [*base_args, "upload", str(tmp_path / "nope.txt")])

        assert result.exit_code == 2


class TestRenameCommand:
    """Tests for sandfm rename."""

    def test_rename_file(self, base_args: list[str], sample_tree: Path) -> None:
        """A file is renamed."""
        result = runner.invoke(app, [*base_args, "rename", "a.txt", "c.txt", "--in", "docs"])

        assert result.exit_code == 0
        assert (sample_tree / "docs" / "c.txt").exists()
        assert StateManager().get_history()[0].metadata["new_name"] == "c.txt"

    def test_trailing_slash_means_folder(self, base_args: list[str], sample_tree: Path) -> None:
        """'docs/' renames a folder."""
        result = runner.invoke(app, [*base_args, "rename", "docs/", "papers"])

        assert result.exit_code == 0
        assert (sample_tree / "papers" / "a.txt").exists()

    def test_kind_mismatch(self, base_args: list[str]) -> None:
        """Renaming a folder without --folder fails."""
        result = runner.invoke(app, [*base_args, "rename", "docs", "papers"])

        assert result.exit_code == 1
        assert "Not a file" in result.output

    def test_overwrite(self, base_args: list[str], sample_tree: Path) -> None:
        """--overwrite replaces an existing file."""
        blocked = runner.invoke(app, [*base_args, "rename", "notes.md", "report.txt"])
        assert blocked.exit_code == 1

        result = runner.invoke(
            app, [*base_args, "rename", "notes.md", "report.txt", "--overwrite"]
        )

        assert result.exit_code == 0
        assert (sample_tree / "report.txt").read_text() == "notes"

    def test_dry_run(self, base_args: list[str], sample_tree: Path) -> None:
        """--dry-run renames nothing and records nothing."""
        result = runner.invoke(app, [*base_args, "rename", "notes.md", "x.md", "--dry-run"])

        assert result.exit_code == 0
        assert (sample_tree / "notes.md").exists()
        assert StateManager().get_history() == []


class TestRmCommand:
    """Tests for sandfm rm."""

    def test_partial_failure(self, base_args: list[str], sample_tree: Path) -> None:
        """One missing item fails alone and the exit code is 1."""
        result = runner.invoke(
            app, [*base_args, "rm", "report.txt", "ghost.txt", "docs/", "-y", "--json"]
        )

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert [r["outcome"] for r in data] == ["success", "failed", "success"]
        assert data[1]["error_kind"] == "not_found"
        assert not (sample_tree / "report.txt").exists()
        assert not (sample_tree / "docs").exists()
        entry = StateManager().get_history()[0]
        assert [i.name for i in entry.items] == ["report.txt", "docs"]

    def test_confirmation_declined(self, base_args: list[str], sample_tree: Path) -> None:
        """Declining the prompt deletes nothing."""
        result = runner.invoke(app, [*base_args, "rm", "report.txt"], input="n\n")

        assert result.exit_code == 0
        assert (sample_tree / "report.txt").exists()

    def test_dry_run(self, base_args: list[str], sample_tree: Path) -> None:
        """--dry-run skips the prompt and deletes nothing."""
        result = runner.invoke(app, [*base_args, "rm", "docs/", "--dry-run"])

        assert result.exit_code == 0
        assert "DRY" in result.stdout
        assert (sample_tree / "docs").exists()

    def test_traversal(self, base_args: list[str], sample_tree: Path) -> None:
        """A traversing base path rejects the whole call."""
        result = runner.invoke(app, [*base_args, "rm", "report.txt", "--in", "..", "-y"])

        assert result.exit_code == 1
        assert (sample_tree / "report.txt").exists()

    def test_journal_disabled(self, sample_tree: Path) -> None:
        """With journal = false nothing is recorded."""
        runner.invoke(app, ["config", "init", str(sample_tree), "--no-journal"])

        result = runner.invoke(app, ["rm", "notes.md", "-y"])

        assert result.exit_code == 0
        assert StateManager().get_history() == []


class TestMvCpCommands:
    """Tests for sandfm mv and sandfm cp."""

    def test_mv_replaces_folder(self, base_args: list[str], sample_tree: Path) -> None:
        """mv replaces a same-named destination folder."""
        (sample_tree / "dest" / "docs").mkdir(parents=True)
        (sample_tree / "dest" / "docs" / "old.txt").write_text("old")

        result = runner.invoke(app, [*base_args, "mv", "docs/", "--to", "dest"])

        assert result.exit_code == 0
        assert not (sample_tree / "dest" / "docs" / "old.txt").exists()
        assert (sample_tree / "dest" / "docs" / "sub" / "b.txt").exists()
        entry = StateManager().get_history()[0]
        assert entry.metadata == {"source": "", "destination": "dest"}

    def test_cp_merges_folder(self, base_args: list[str], sample_tree: Path) -> None:
        """cp merges into a same-named destination folder."""
        (sample_tree / "dest" / "docs").mkdir(parents=True)
        (sample_tree / "dest" / "docs" / "old.txt").write_text("old")

        result = runner.invoke(app, [*base_args, "cp", "docs/", "--to", "dest"])

        assert result.exit_code == 0
        assert (sample_tree / "dest" / "docs" / "old.txt").exists()
        assert (sample_tree / "dest" / "docs" / "a.txt").exists()
        assert (sample_tree / "docs").exists()

    def test_mv_from(self, base_args: list[str], sample_tree: Path) -> None:
        """--from selects the source folder."""
        result = runner.invoke(app, [*base_args, "mv", "a.txt", "--from", "docs", "--to", ""])

        assert result.exit_code == 0
        assert (sample_tree / "a.txt").exists()

    def test_mv_requires_destination(self, base_args: list[str]) -> None:
        """--to is required."""
        result = runner.invoke(app, [*base_args, "mv", "a.txt"])
        assert result.exit_code == 2


class TestZipCommand:
    """Tests for sandfm zip."""

    def test_writes_archive(self, base_args: list[str], tmp_path: Path) -> None:
        """The archive holds folder files under '<folder>/'."""
        out = tmp_path / "bundle.zip"

        result = runner.invoke(app, [*base_args, "zip", "docs/", "report.txt", "-o", str(out)])

        assert result.exit_code == 0
        with zipfile.ZipFile(out) as zf:
            assert sorted(zf.namelist()) == ["docs/a.txt", "docs/sub/b.txt", "report.txt"]

    def test_nothing_matched(self, base_args: list[str], tmp_path: Path) -> None:
        """Missing items produce an empty archive and a warning."""
        out = tmp_path / "empty.zip"

        result = runner.invoke(app, [*base_args, "zip", "ghost.txt", "-o", str(out)])

        assert result.exit_code == 0
        with zipfile.ZipFile(out) as zf:
            assert zf.namelist() == []

    def test_traversal_removes_output(self, base_args: list[str], tmp_path: Path) -> None:
        """A rejected archive leaves no output file."""
        out = tmp_path / "bad.zip"

        result = runner.invoke(app, [*base_args, "zip", "x.txt", "--in", "../x", "-o", str(out)])

        assert result.exit_code == 1
        assert not out.exists()

    def test_rejected_archive_keeps_existing_output(
        self, base_args: list[str], tmp_path: Path
    ) -> None:
        """An existing output file is untouched when the items are rejected."""
        out = tmp_path / "important.zip"
        out.write_bytes(b"precious")

        result = runner.invoke(app, [*base_args, "zip", "../x", "-o", str(out)])

        assert result.exit_code == 1
        assert out.read_bytes() == b"precious"
        assert not list(tmp_path.glob(".sandfm-*"))

    def test_replaces_existing_output(self, base_args: list[str], tmp_path: Path) -> None:
        """A successful run swaps the new archive into place."""
        out = tmp_path / "bundle.zip"
        out.write_bytes(b"stale")

        result = runner.invoke(app, [*base_args, "zip", "report.txt", "-o", str(out)])

        assert result.exit_code == 0
        with zipfile.ZipFile(out) as zf:
            assert zf.namelist() == ["report.txt"]
