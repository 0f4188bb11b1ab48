"""Mutating commands: mkdir, upload, rename, rm, mv, cp and zip.

Batch commands print one row per item and exit with code 1 if any item
failed. Successful mutations are appended to the operation journal
unless journaling is disabled or the run is a dry-run.
"""

import json
import logging
import os
import tempfile
from contextlib import ExitStack
from pathlib import Path
from typing import Annotated, Any, BinaryIO

import typer

from sandfm.cli.display import create_results_table, print_results_summary
from sandfm.cli.types import CliSession, exit_with_error, get_session, parse_item, parse_items
from sandfm.core.errors import FileManagerError
from sandfm.core.state import StateManager
from sandfm.filesystem.models import BatchResult, ItemKind
from sandfm.models.history import HistoryActionType, HistoryItem, create_history_entry
from sandfm.utils.formatting import console, print_info, print_success, print_warning

logger = logging.getLogger(__name__)

_ItemsArg = Annotated[
    list[str],
    typer.Argument(help="Entry names; a trailing '/' marks a folder (e.g. 'docs/')."),
]
_InOption = Annotated[
    str,
    typer.Option("--in", "-C", help="Folder relative to the root (default: the root)."),
]
_DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", "-n", help="Show what would be done without making changes."),
]
_JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output results as JSON."),
]


def mkdir(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Name of the new folder.")],
    path: _InOption = "",
    dry_run: _DryRunOption = False,
) -> None:
    """Create a folder.

    Examples:
        sandfm mkdir reports
        sandfm mkdir 2026 --in reports
    """
    session = get_session(ctx)

    try:
        session.manager(dry_run=dry_run).create_folder(path, name)
    except FileManagerError as e:
        raise exit_with_error(e) from e

    if dry_run:
        print_info(f"Dry-run: would create folder {name}")
        return

    _record_single(session, HistoryActionType.MKDIR, name, ItemKind.FOLDER, {"path": path})
    print_success(f"Created folder: {name}")


def upload(
    ctx: typer.Context,
    files: Annotated[
        list[Path],
        typer.Argument(
            help="Local files to upload.",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    path: Annotated[
        str,
        typer.Option("--to", "-t", help="Destination folder relative to the root."),
    ] = "",
    dry_run: _DryRunOption = False,
    json_output: _JsonOption = False,
) -> None:
    """Upload local files into a folder, replacing same-named files.

    The destination folder is created if it does not exist.

    Examples:
        sandfm upload report.pdf notes.txt --to docs
    """
    session = get_session(ctx)
    manager = session.manager(dry_run=dry_run)

    with ExitStack() as stack:
        streams: list[tuple[str, BinaryIO]] = [
            (file.name, stack.enter_context(file.open("rb"))) for file in files
        ]
        try:
            result = manager.upload(path, streams)
        except FileManagerError as e:
            raise exit_with_error(e) from e

    _finish_batch(session, HistoryActionType.UPLOAD, result, {"path": path}, json_output, "Upload")


def rename(
    ctx: typer.Context,
    old_name: Annotated[str, typer.Argument(help="Current name.")],
    new_name: Annotated[str, typer.Argument(help="New name.")],
    path: _InOption = "",
    folder: Annotated[
        bool,
        typer.Option("--folder", "-d", help="The entry is a folder."),
    ] = False,
    overwrite: Annotated[
        bool,
        typer.Option("--overwrite", help="Replace an existing file with the new name."),
    ] = False,
    dry_run: _DryRunOption = False,
) -> None:
    """Rename a file or folder in place.

    A trailing '/' on OLD_NAME is the same as --folder.

    Examples:
        sandfm rename draft.txt final.txt --in docs
        sandfm rename old/ new --overwrite
    """
    item = parse_item(old_name)
    kind = ItemKind.FOLDER if folder else item.kind
    session = get_session(ctx)

    try:
        session.manager(dry_run=dry_run).rename(
            path, item.name, new_name, kind, overwrite=overwrite
        )
    except FileManagerError as e:
        raise exit_with_error(e) from e

    if dry_run:
        print_info(f"Dry-run: would rename {item.name} to {new_name}")
        return

    _record_single(
        session,
        HistoryActionType.RENAME,
        item.name,
        kind,
        {"path": path, "new_name": new_name},
    )
    print_success(f"Renamed {item.name} to {new_name}")


def rm(
    ctx: typer.Context,
    items: _ItemsArg,
    path: _InOption = "",
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    dry_run: _DryRunOption = False,
    json_output: _JsonOption = False,
) -> None:
    """Delete files and folders (folders recursively).

    Examples:
        sandfm rm old.txt tmp/ --in docs
        sandfm rm tmp/ --dry-run
        sandfm rm tmp/ -y
    """
    parsed = parse_items(items)
    session = get_session(ctx)

    if not dry_run and not yes:
        confirmed = typer.confirm(f"Delete {len(parsed)} item(s)? This cannot be undone.")
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    try:
        result = session.manager(dry_run=dry_run).delete(path, parsed)
    except FileManagerError as e:
        raise exit_with_error(e) from e

    _finish_batch(session, HistoryActionType.DELETE, result, {"path": path}, json_output, "Delete")


def mv(
    ctx: typer.Context,
    items: _ItemsArg,
    destination: Annotated[
        str,
        typer.Option("--to", "-t", help="Destination folder relative to the root."),
    ],
    source: Annotated[
        str,
        typer.Option("--from", "-f", help="Source folder relative to the root."),
    ] = "",
    dry_run: _DryRunOption = False,
    json_output: _JsonOption = False,
) -> None:
    """Move files and folders to another folder.

    A moved folder replaces a same-named destination folder; a moved
    file replaces a same-named destination file.

    Examples:
        sandfm mv a.txt reports/ --from inbox --to archive
    """
    parsed = parse_items(items)
    session = get_session(ctx)

    try:
        result = session.manager(dry_run=dry_run).move(source, destination, parsed)
    except FileManagerError as e:
        raise exit_with_error(e) from e

    metadata = {"source": source, "destination": destination}
    _finish_batch(session, HistoryActionType.MOVE, result, metadata, json_output, "Move")


def cp(
    ctx: typer.Context,
    items: _ItemsArg,
    destination: Annotated[
        str,
        typer.Option("--to", "-t", help="Destination folder relative to the root."),
    ],
    source: Annotated[
        str,
        typer.Option("--from", "-f", help="Source folder relative to the root."),
    ] = "",
    dry_run: _DryRunOption = False,
    json_output: _JsonOption = False,
) -> None:
    """Copy files and folders to another folder.

    A copied folder is merged into a same-named destination folder;
    a copied file replaces a same-named destination file.

    Examples:
        sandfm cp a.txt reports/ --to backup
    """
    parsed = parse_items(items)
    session = get_session(ctx)

    try:
        result = session.manager(dry_run=dry_run).copy(source, destination, parsed)
    except FileManagerError as e:
        raise exit_with_error(e) from e

    metadata = {"source": source, "destination": destination}
    _finish_batch(session, HistoryActionType.COPY, result, metadata, json_output, "Copy")


def zip_items(
    ctx: typer.Context,
    items: _ItemsArg,
    path: _InOption = "",
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Archive file to write (default: archive_name from config).",
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Pack files and folders into a zip archive.

    Missing items are left out of the archive. Folder contents are
    stored under '<folder>/...'.

    Examples:
        sandfm zip report.txt photos/ -o bundle.zip
    """
    parsed = parse_items(items)
    session = get_session(ctx)
    target = output if output is not None else Path(session.config.archive_name)

    # Written beside the target and swapped in only once complete
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=target.absolute().parent,
            prefix=".sandfm-",
            suffix=".zip.tmp",
            delete=False,
        ) as out:
            tmp_path = Path(out.name)
            count = session.manager().write_archive(path, parsed, out)
        os.replace(tmp_path, target)
    except (FileManagerError, OSError) as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise exit_with_error(e) from e

    if count == 0:
        print_warning(f"No matching items; wrote empty archive {target}")
    else:
        print_success(f"Wrote {count} file(s) to {target}")


def _finish_batch(
    session: CliSession,
    action_type: HistoryActionType,
    result: BatchResult,
    metadata: dict[str, Any],
    json_output: bool,
    title: str,
) -> None:
    """Print batch results, journal the successes and set the exit code."""
    if json_output:
        console.print_json(json.dumps(result.to_list()))
    else:
        console.print(create_results_table(result, title=title))
        print_results_summary(result)

    if session.config.journal:
        try:
            state = StateManager()
            if state.record_batch(action_type, result, metadata=metadata) is not None:
                logger.debug("Recorded %s to history", action_type.value)
        except (OSError, RuntimeError) as e:
            print_warning(f"Could not record to history: {e}")

    if not result.all_succeeded:
        raise typer.Exit(code=1)


def _record_single(
    session: CliSession,
    action_type: HistoryActionType,
    name: str,
    kind: ItemKind,
    metadata: dict[str, Any],
) -> None:
    """Journal a single-target mutation."""
    if not session.config.journal:
        return
    entry = create_history_entry(action_type, [HistoryItem(name=name, kind=kind)], metadata)
    try:
        StateManager().record_action(entry)
    except (OSError, RuntimeError) as e:
        print_warning(f"Could not record to history: {e}")
