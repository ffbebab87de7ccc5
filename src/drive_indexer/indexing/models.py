"""Checkpoint and row models for the resumable folder traversal."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any

from drive_indexer.indexing.table import pad_row

# Bump when the serialized TraversalState layout changes.
CHECKPOINT_VERSION = 1


class CheckpointFormatError(Exception):
    """Raised when a persisted checkpoint cannot be parsed or has an unknown version."""


@dataclass
class QueueEntry:
    """One folder waiting in the breadth-first frontier.

    Attributes:
        folder_id: Opaque tree-store reference of the folder.
        path: Ancestor folder names from the root, excluding this folder.
        depth: 1-based nesting depth, always ``len(path) + 1``.
        files_done: Files of this folder already emitted in an earlier tick.
        subfolders_done: Subfolders of this folder already enqueued in an
            earlier tick.
    """

    folder_id: str
    path: list[str] = field(default_factory=list)
    depth: int = 1
    files_done: int = 0
    subfolders_done: int = 0

    def __post_init__(self) -> None:
        if self.depth != len(self.path) + 1:
            raise ValueError(
                f"depth {self.depth} does not match path length {len(self.path)}"
            )

    def child(self, folder_id: str, parent_name: str) -> QueueEntry:
        """Build the entry for a direct subfolder of this entry's folder."""
        return QueueEntry(
            folder_id=folder_id,
            path=[*self.path, parent_name],
            depth=self.depth + 1,
        )

    @property
    def in_progress(self) -> bool:
        return self.files_done > 0 or self.subfolders_done > 0


@dataclass
class TraversalState:
    """The checkpoint: everything needed to resume a traversal in a later tick.

    Attributes:
        queue: FIFO frontier; insertion order is processing order.
        processed_folders: IDs of folders whose listing is fully consumed.
        max_depth_found: High-water mark of nesting depth, never lowered.
        last_processed_time: ISO-8601 time the last folder finished, or "".
        version: Schema version of the serialized record.
    """

    queue: list[QueueEntry] = field(default_factory=list)
    processed_folders: list[str] = field(default_factory=list)
    max_depth_found: int = 1
    last_processed_time: str = ""
    version: int = CHECKPOINT_VERSION

    @classmethod
    def fresh(cls, root_folder_id: str, now: str = "") -> TraversalState:
        """Start a new run with only the root folder queued."""
        return cls(
            queue=[QueueEntry(folder_id=root_folder_id, path=[], depth=1)],
            max_depth_found=1,
            last_processed_time=now,
        )

    def raise_watermark(self, depth: int) -> None:
        self.max_depth_found = max(self.max_depth_found, depth)

    def copy(self) -> TraversalState:
        """Return an independent deep copy."""
        return TraversalState.from_dict(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "queue": [asdict(entry) for entry in self.queue],
            "processed_folders": list(self.processed_folders),
            "max_depth_found": self.max_depth_found,
            "last_processed_time": self.last_processed_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TraversalState:
        """Rebuild a state from its serialized form.

        Raises:
            CheckpointFormatError: On an unknown version or a malformed record.
        """
        if not isinstance(data, dict):
            raise CheckpointFormatError("checkpoint is not a JSON object")
        version = data.get("version")
        if version != CHECKPOINT_VERSION:
            raise CheckpointFormatError(f"unsupported checkpoint version: {version!r}")
        try:
            queue = [
                QueueEntry(
                    folder_id=str(raw["folder_id"]),
                    path=[str(name) for name in raw["path"]],
                    depth=int(raw["depth"]),
                    files_done=int(raw.get("files_done", 0)),
                    subfolders_done=int(raw.get("subfolders_done", 0)),
                )
                for raw in data["queue"]
            ]
            max_depth = int(data["max_depth_found"])
            if max_depth < 1:
                raise ValueError(f"max_depth_found must be >= 1, got {max_depth}")
            return cls(
                queue=queue,
                processed_folders=[str(fid) for fid in data["processed_folders"]],
                max_depth_found=max_depth,
                last_processed_time=str(data.get("last_processed_time", "")),
                version=version,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CheckpointFormatError(f"malformed checkpoint: {exc}") from exc

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> TraversalState:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CheckpointFormatError(f"checkpoint is not valid JSON: {exc}") from exc
        return cls.from_dict(data)


@dataclass
class OutputRow:
    """One file in the flattened index.

    ``levels`` holds the folder names from the root down to the file's own
    folder; it is widened to the table's level count only when serialized.
    """

    levels: list[str]
    file_name: str
    last_updated: str
    size_label: str
    link: str

    def fixed_cells(self) -> list[str]:
        return [self.file_name, self.last_updated, self.size_label, self.link]

    def to_cells(self, max_depth: int) -> list[str]:
        """Serialize to flat sink columns, padding levels to ``max_depth``."""
        return pad_row([*self.levels, *self.fixed_cells()], max_depth)
