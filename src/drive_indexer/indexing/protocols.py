"""Protocols for the collaborators the traversal core talks to.

The Graph, blob and queue adapters satisfy these structurally; tests pass
in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from drive_indexer.graph.models import FolderContents


class TreeStore(Protocol):
    """Hierarchical file source, read one folder at a time."""

    def list_folder(self, folder_id: str) -> FolderContents:
        """Return the folder's name, direct files and direct subfolders.

        The order of files and subfolders must be stable between calls.
        """
        ...


class TabularSink(Protocol):
    """Flat table whose first row holds the headers."""

    def clear(self) -> None: ...

    def read_header(self) -> list[str]: ...

    def write_header(self, values: list[str], start_column: int = 1) -> None: ...

    def insert_columns_after(self, column: int, count: int) -> None: ...

    def append_rows(self, rows: list[list[Any]]) -> None: ...

    def extents(self) -> tuple[int, int]: ...

    def sort_hierarchically(self) -> None:
        """Reorder data rows by folder hierarchy, then file name."""
        ...


class KeyValueStore(Protocol):
    """Durable string-keyed store that survives process restarts."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...

    def clear(self) -> None: ...


class Scheduler(Protocol):
    """Registers one-shot delayed invocations of the indexing entry point."""

    def schedule(self, delay_ms: int) -> None: ...

    def cancel_all(self) -> None: ...


class TickLock(Protocol):
    """Mutual exclusion between ticks running in different processes."""

    def acquire(self) -> bool:
        """Take the lock without waiting; False if another tick holds it."""
        ...

    def release(self) -> None: ...
