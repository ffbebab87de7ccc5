"""Row and size formatting helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from drive_indexer.indexing.models import OutputRow

if TYPE_CHECKING:
    from drive_indexer.graph.models import DriveFile
    from drive_indexer.indexing.models import QueueEntry

SIZE_UNITS = ("KB", "MB", "GB")


def format_file_size(num_bytes: int) -> str:
    """Format a byte count for humans.

    Counts under 1024 are shown in bytes. Larger counts are divided by 1024
    until they drop under 1024 or the largest unit (GB) is reached, and are
    shown with two decimals.

    Args:
        num_bytes: Size in bytes.

    Returns:
        Label such as "500 B", "2.00 KB" or "5.00 GB".
    """
    if num_bytes < 1024:
        return f"{num_bytes} B"
    size = num_bytes / 1024
    unit = 0
    while size >= 1024 and unit < len(SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.2f} {SIZE_UNITS[unit]}"


def build_file_row(file: DriveFile, entry: QueueEntry, folder_name: str) -> OutputRow:
    """Build the index row for a file found directly inside ``entry``'s folder."""
    return OutputRow(
        levels=[*entry.path, folder_name],
        file_name=file.name,
        last_updated=file.last_modified,
        size_label=format_file_size(file.size),
        link=file.web_url,
    )
