"""In-memory collaborators for exercising the traversal core without Azure."""

from __future__ import annotations

from typing import Any

from drive_indexer.graph.models import DriveFile, DriveFolderRef, FolderContents
from drive_indexer.indexing.table import count_level_columns


def make_file(name: str, size: int = 100, modified: str = "2025-01-01T00:00:00Z") -> DriveFile:
    return DriveFile(
        id=f"id-{name}",
        name=name,
        last_modified=modified,
        size=size,
        web_url=f"https://contoso-my.sharepoint.com/{name}",
    )


class FakeTree:
    """Folder tree held in a dict; ``fail_on`` makes listing a folder raise."""

    def __init__(self) -> None:
        self.folders: dict[str, FolderContents] = {}
        self.listed: list[str] = []
        self.fail_on: dict[str, Exception] = {}

    def add(
        self,
        folder_id: str,
        name: str,
        files: list[DriveFile] | None = None,
        subfolders: list[str] | None = None,
    ) -> None:
        self.folders[folder_id] = FolderContents(
            folder_id=folder_id,
            name=name,
            files=list(files or []),
            subfolders=[
                DriveFolderRef(id=child, name=child.capitalize()) for child in subfolders or []
            ],
        )

    def list_folder(self, folder_id: str) -> FolderContents:
        self.listed.append(folder_id)
        if folder_id in self.fail_on:
            raise self.fail_on[folder_id]
        return self.folders[folder_id]


class FakeSink:
    """Worksheet stand-in: ``header`` is row 1, ``rows`` are the data rows."""

    def __init__(self) -> None:
        self.header: list[str] = []
        self.rows: list[list[Any]] = []
        self.sort_calls = 0
        self.clear_calls = 0
        self.fail_append: Exception | None = None
        self.fail_sort: Exception | None = None

    def clear(self) -> None:
        self.clear_calls += 1
        self.header = []
        self.rows = []

    def read_header(self) -> list[str]:
        return list(self.header)

    def write_header(self, values: list[str], start_column: int = 1) -> None:
        end = start_column - 1 + len(values)
        if len(self.header) < end:
            self.header.extend([""] * (end - len(self.header)))
        self.header[start_column - 1 : end] = values

    def insert_columns_after(self, column: int, count: int) -> None:
        for row in [self.header, *self.rows]:
            row[column:column] = [""] * count

    def append_rows(self, rows: list[list[Any]]) -> None:
        if self.fail_append is not None:
            raise self.fail_append
        self.rows.extend(list(row) for row in rows)

    def extents(self) -> tuple[int, int]:
        if not self.header:
            return 0, 0
        width = max(len(row) for row in [self.header, *self.rows])
        return 1 + len(self.rows), width

    def sort_hierarchically(self) -> None:
        self.sort_calls += 1
        if self.fail_sort is not None:
            raise self.fail_sort
        keys = count_level_columns(self.header) + 1
        self.rows.sort(key=lambda row: [str(cell) for cell in row[:keys]])


class MemoryStore:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self.data)

    def clear(self) -> None:
        self.data.clear()


class FakeScheduler:
    """Records scheduling calls; ``pending`` mirrors what a real queue would hold."""

    def __init__(self) -> None:
        self.pending: list[int] = []
        self.calls: list[tuple[str, int | None]] = []

    def schedule(self, delay_ms: int) -> None:
        self.calls.append(("schedule", delay_ms))
        self.pending.append(delay_ms)

    def cancel_all(self) -> None:
        self.calls.append(("cancel", None))
        self.pending.clear()


class FakeLock:
    """Single-holder lock shared by every indexer built on it."""

    def __init__(self) -> None:
        self.held = False
        self.acquired = 0
        self.released = 0

    def acquire(self) -> bool:
        if self.held:
            return False
        self.held = True
        self.acquired += 1
        return True

    def release(self) -> None:
        self.held = False
        self.released += 1


class StepClock:
    """Monotonic clock that moves forward by ``step`` seconds on every read."""

    def __init__(self, step: float = 1.0, start: float = 0.0) -> None:
        self._current = start
        self._step = step

    def monotonic(self) -> float:
        value = self._current
        self._current += self._step
        return value


class ManualClock:
    """Monotonic clock that only moves when ``advance`` is called."""

    def __init__(self) -> None:
        self.now = 0.0

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def monotonic(self) -> float:
        return self.now


class FrozenClock:
    """Monotonic clock that never moves; budgets never expire."""

    def monotonic(self) -> float:
        return 0.0


def sample_tree() -> FakeTree:
    """Root with two files and one subfolder holding one file."""
    tree = FakeTree()
    tree.add(
        "root",
        "Root",
        files=[make_file("a.txt", 500), make_file("b.txt", 2048)],
        subfolders=["sub"],
    )
    tree.add("sub", "Sub", files=[make_file("c.txt", 1048576)])
    return tree
