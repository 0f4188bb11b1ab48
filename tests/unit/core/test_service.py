"""Unit tests for the FileManager facade.

Exercises every entry point through client relative paths, including
the end-to-end properties of the engine: traversal rejection without
side effects, per-item isolation and the move/copy asymmetry.
"""

import io
import zipfile
from pathlib import Path

import pytest
from sandfm.core.cancel import CancelToken
from sandfm.core.context import RootContext
from sandfm.core.errors import ErrorKind, NotFoundError, TraversalError
from sandfm.core.service import FileManager
from sandfm.filesystem.models import Item, ItemKind


def _snapshot(root: Path) -> set[str]:
    return {p.relative_to(root).as_posix() for p in root.rglob("*")}


@pytest.fixture
def manager(context: RootContext) -> FileManager:
    """FileManager over the temporary root."""
    return FileManager(context)


class TestBrowseAndSearch:
    """Tests for browse and search."""

    def test_browse_root(self, manager: FileManager, sample_tree: Path) -> None:
        """The root lists folders and files separately."""
        listing = manager.browse("")

        assert [f.name for f in listing.folders] == ["docs"]
        assert [f.name for f in listing.files] == ["notes.md", "report.txt", "Report2.txt"]
        assert listing.folders[0].child_count == 1

    def test_browse_missing(self, manager: FileManager, sample_tree: Path) -> None:
        """Browsing a missing folder raises NotFoundError."""
        with pytest.raises(NotFoundError):
            manager.browse("nope")

    def test_search_wildcard(self, manager: FileManager, sample_tree: Path) -> None:
        """'rep*' matches both report files case-insensitively."""
        hits = manager.search("rep*")

        assert sorted(h.name for h in hits) == ["Report2.txt", "report.txt"]

    def test_search_under_subfolder(self, manager: FileManager, sample_tree: Path) -> None:
        """Hit paths are relative to the root, not the search base."""
        hits = manager.search("b", "docs")

        assert [h.path for h in hits] == ["docs/sub/b.txt"]

    def test_search_missing_base(self, manager: FileManager, sample_tree: Path) -> None:
        """Searching a missing folder yields nothing."""
        assert manager.search("*", "missing") == []


class TestTraversal:
    """Traversal attempts fail without touching the filesystem."""

    @pytest.mark.parametrize("bad", ["..", "../outside", "docs/../../x", "/etc", "C:/Windows"])
    def test_delete_rejected(self, manager: FileManager, sample_tree: Path, bad: str) -> None:
        """A traversing base path is rejected before any mutation."""
        before = _snapshot(sample_tree)

        with pytest.raises(TraversalError):
            manager.delete(bad, [Item(name="report.txt", kind=ItemKind.FILE)])

        assert _snapshot(sample_tree) == before

    def test_bad_item_rejects_whole_batch(self, manager: FileManager, sample_tree: Path) -> None:
        """One traversing item name rejects every item of the batch."""
        before = _snapshot(sample_tree)
        items = [
            Item(name="report.txt", kind=ItemKind.FILE),
            Item(name="../escape", kind=ItemKind.FILE),
        ]

        with pytest.raises(TraversalError):
            manager.delete("", items)

        assert _snapshot(sample_tree) == before

    def test_symlink_escape_rejected(
        self, manager: FileManager, sample_tree: Path, tmp_path: Path
    ) -> None:
        """A symlink pointing outside the root cannot be used as a base."""
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_text("secret")
        (sample_tree / "escape").symlink_to(outside, target_is_directory=True)

        with pytest.raises(TraversalError):
            manager.browse("escape")
        with pytest.raises(TraversalError):
            manager.copy("escape", "docs", [Item(name="secret.txt", kind=ItemKind.FILE)])

        assert not (sample_tree / "docs" / "secret.txt").exists()


class TestMutations:
    """Tests for the mutating entry points."""

    def test_batch_delete_isolates_failures(
        self, manager: FileManager, sample_tree: Path
    ) -> None:
        """A missing item fails alone; the others are deleted."""
        items = [
            Item(name="report.txt", kind=ItemKind.FILE),
            Item(name="missing.txt", kind=ItemKind.FILE),
            Item(name="docs", kind=ItemKind.FOLDER),
        ]

        result = manager.delete("", items)

        assert [r.success for r in result] == [True, False, True]
        assert result[1].error_kind == ErrorKind.NOT_FOUND
        assert not (sample_tree / "report.txt").exists()
        assert not (sample_tree / "docs").exists()

    def test_move_replaces_copy_merges(self, manager: FileManager, sample_tree: Path) -> None:
        """Moving a folder replaces the target; copying merges into it."""
        (sample_tree / "m" / "docs").mkdir(parents=True)
        (sample_tree / "m" / "docs" / "old.txt").write_text("old")
        (sample_tree / "c" / "docs").mkdir(parents=True)
        (sample_tree / "c" / "docs" / "old.txt").write_text("old")
        folder = [Item(name="docs", kind=ItemKind.FOLDER)]

        copied = manager.copy("", "c", folder)
        moved = manager.move("", "m", folder)

        assert copied.all_succeeded and moved.all_succeeded
        assert (sample_tree / "c" / "docs" / "old.txt").exists()
        assert (sample_tree / "c" / "docs" / "sub" / "b.txt").exists()
        assert not (sample_tree / "m" / "docs" / "old.txt").exists()
        assert (sample_tree / "m" / "docs" / "sub" / "b.txt").read_text() == "bravo"
        assert not (sample_tree / "docs").exists()

    def test_create_folder_and_rename(self, manager: FileManager, sample_tree: Path) -> None:
        """A created folder can be renamed."""
        manager.create_folder("docs", "new")
        manager.rename("docs", "new", "renamed", ItemKind.FOLDER)

        assert (sample_tree / "docs" / "renamed").is_dir()
        assert not (sample_tree / "docs" / "new").exists()

    def test_upload(self, manager: FileManager, sample_tree: Path) -> None:
        """Uploads land in the target folder, created if missing."""
        result = manager.upload("inbox", [("a.bin", io.BytesIO(b"\x00\x01"))])

        assert result.all_succeeded
        assert (sample_tree / "inbox" / "a.bin").read_bytes() == b"\x00\x01"

    def test_dry_run_changes_nothing(self, context: RootContext, sample_tree: Path) -> None:
        """A dry-run manager reports success without modifying anything."""
        before = _snapshot(sample_tree)
        manager = FileManager(context, dry_run=True)

        result = manager.delete("", [Item(name="docs", kind=ItemKind.FOLDER)])

        assert result.all_succeeded
        assert result[0].dry_run is True
        assert _snapshot(sample_tree) == before

    def test_cancelled_batch(self, context: RootContext, sample_tree: Path) -> None:
        """A cancelled token marks every item CANCELLED."""
        token = CancelToken()
        token.cancel()
        manager = FileManager(context, cancel=token)

        result = manager.delete("", [Item(name="report.txt", kind=ItemKind.FILE)])

        assert result[0].error_kind == ErrorKind.CANCELLED
        assert (sample_tree / "report.txt").exists()


class TestDownload:
    """Tests for zip downloads."""

    def test_download_layout(self, manager: FileManager, sample_tree: Path) -> None:
        """Folder contents are stored under '<folder>/...'; missing items are skipped."""
        data = manager.download(
            "",
            [
                Item(name="docs", kind=ItemKind.FOLDER),
                Item(name="report.txt", kind=ItemKind.FILE),
                Item(name="ghost.txt", kind=ItemKind.FILE),
            ],
        )

        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert sorted(zf.namelist()) == ["docs/a.txt", "docs/sub/b.txt", "report.txt"]
            assert zf.read("docs/sub/b.txt") == b"bravo"

    def test_write_archive_stored(self, context: RootContext, sample_tree: Path) -> None:
        """compress_archives=False stores entries uncompressed."""
        manager = FileManager(context, compress_archives=False)
        out = io.BytesIO()

        count = manager.write_archive("docs", [Item(name="a.txt", kind=ItemKind.FILE)], out)

        assert count == 1
        with zipfile.ZipFile(out) as zf:
            assert zf.getinfo("a.txt").compress_type == zipfile.ZIP_STORED
