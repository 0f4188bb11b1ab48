"""Shared Rich display functions for listings and results.

Provides reusable table builders and summary printers for directory
listings, search hits, batch results and journal entries.
"""

from datetime import datetime

from rich.markup import escape
from rich.table import Table

from sandfm.filesystem.models import BatchResult, Listing, SearchHit
from sandfm.models.history import HistoryEntry
from sandfm.utils.formatting import console, format_size, print_info, print_success

_DATE_FORMAT = "%Y-%m-%d %H:%M"


def create_listing_table(listing: Listing, title: str) -> Table:
    """Create a Rich table of folders followed by files.

    Folders show their direct file count, files their size.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Modified", style="muted")
    table.add_column("Size", style="info", justify="right")

    for folder in listing.folders:
        count = folder.child_count or 0
        table.add_row(
            f"[folder]{escape(folder.name)}/[/folder]",
            folder.last_modified.astimezone().strftime(_DATE_FORMAT),
            f"{count} file{'s' if count != 1 else ''}",
        )
    for file in listing.files:
        table.add_row(
            f"[file]{escape(file.name)}[/file]",
            file.last_modified.astimezone().strftime(_DATE_FORMAT),
            format_size(file.size),
        )

    return table


def create_search_table(hits: list[SearchHit], pattern: str) -> Table:
    """Create a Rich table of search hits."""
    table = Table(
        title=f"Search: {pattern}",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Path", style="muted")
    table.add_column("Size", style="info", justify="right")

    for hit in hits:
        table.add_row(escape(hit.name), escape(hit.path), format_size(hit.size))

    return table


def create_results_table(result: BatchResult, title: str) -> Table:
    """Create a Rich table with one row per batch item.

    Successful items show "OK" (or "DRY" in dry-run mode); failed items
    show "FAIL" with the error kind and message.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=6, justify="center")
    table.add_column("Item", no_wrap=True)
    table.add_column("Kind", width=7)
    table.add_column("Message")

    for r in result:
        if r.dry_run:
            status = "[info]DRY[/info]"
            message = "Would succeed"
        elif r.success:
            status = "[success]OK[/success]"
            message = ""
        else:
            status = "[error]FAIL[/error]"
            kind = r.error_kind.value if r.error_kind else "error"
            message = f"{kind}: {r.error or 'Unknown error'}"
        table.add_row(
            status,
            escape(r.item.name),
            r.item.kind.value,
            f"[muted]{escape(message)}[/muted]",
        )

    return table


def print_results_summary(result: BatchResult) -> None:
    """Print a one-line summary of a batch result."""
    success_count = len(result.succeeded)
    fail_count = len(result.failed)
    dry_count = sum(1 for r in result if r.dry_run)

    if dry_count:
        print_info(f"Dry-run: {dry_count} item(s) would be processed.")
    elif fail_count == 0:
        print_success(f"All {success_count} item(s) processed successfully.")
    else:
        console.print(
            f"\n[success]{success_count} succeeded[/success], [error]{fail_count} failed[/error]"
        )


def create_history_table(entries: list[HistoryEntry]) -> Table:
    """Create a Rich table of journal entries."""
    table = Table(
        title="Operation History",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("ID", style="muted", no_wrap=True)
    table.add_column("Date", no_wrap=True)
    table.add_column("Action", width=8)
    table.add_column("Items")
    table.add_column("Where", style="muted")

    for entry in entries:
        try:
            date = datetime.fromisoformat(entry.timestamp).astimezone().strftime(_DATE_FORMAT)
        except ValueError:
            date = entry.timestamp
        names = ", ".join(i.name + ("/" if i.kind.value == "folder" else "") for i in entry.items)
        where = entry.metadata.get("path") or entry.metadata.get("source") or "/"
        if "destination" in entry.metadata:
            where = f"{where} -> {entry.metadata['destination'] or '/'}"
        table.add_row(entry.id, date, entry.action_type.value, escape(names), escape(where))

    return table
