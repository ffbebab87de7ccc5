"""Time-boxed breadth-first traversal of a folder tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from drive_indexer.indexing.formatting import build_file_row

if TYPE_CHECKING:
    from drive_indexer.graph.models import FolderContents
    from drive_indexer.indexing.budget import TimeBudget
    from drive_indexer.indexing.models import OutputRow, QueueEntry, TraversalState
    from drive_indexer.indexing.protocols import TreeStore

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    """Outcome of one tick.

    Attributes:
        state: Advanced copy of the input state.
        rows: Rows built during this tick, in discovery order.
        reached_time_limit: True when the tick stopped with work still queued.
    """

    state: TraversalState
    rows: list[OutputRow] = field(default_factory=list)
    reached_time_limit: bool = False


def _utc_now() -> str:
    return datetime.now(tz=UTC).isoformat()


def _process_folder(
    state: TraversalState,
    entry: QueueEntry,
    contents: FolderContents,
    rows: list[OutputRow],
    budget: TimeBudget,
    must_progress: bool,
) -> bool:
    """Emit rows for the folder's files and enqueue its subfolders.

    Picks up from ``entry``'s listing cursor and advances it as it goes.
    With ``must_progress`` the first item is handled even if listing the
    folder used up the budget, so every tick moves the cursor forward.

    Returns:
        True once the listing is exhausted, False if the budget ran out first.
    """
    state.raise_watermark(entry.depth)
    progressed = not must_progress

    for file in contents.files[entry.files_done :]:
        if budget.expired() and progressed:
            return False
        rows.append(build_file_row(file, entry, contents.name))
        entry.files_done += 1
        progressed = True

    for subfolder in contents.subfolders[entry.subfolders_done :]:
        if budget.expired() and progressed:
            return False
        child = entry.child(subfolder.id, contents.name)
        state.queue.append(child)
        state.raise_watermark(child.depth)
        entry.subfolders_done += 1
        progressed = True

    return True


def run_tick(state: TraversalState, tree: TreeStore, budget: TimeBudget) -> TickResult:
    """Advance the traversal until the queue drains or the budget runs out.

    The input state is left untouched; the returned result carries an
    advanced copy. A folder interrupted part-way through its listing goes
    back to the front of the queue with its cursor, and is only recorded as
    processed once the listing is exhausted in a later tick.

    The first folder of a tick always advances by at least one item, even
    when listing it took longer than the whole budget.

    Tree-store errors propagate unchanged; nothing is retried here.

    Args:
        state: Checkpoint loaded or created at the start of this tick.
        tree: Source of folder listings.
        budget: Time allowance for this tick, already started.

    Returns:
        TickResult with the advanced state and the rows built.
    """
    state = state.copy()
    rows: list[OutputRow] = []
    folders_done = 0

    while state.queue and not budget.expired():
        entry = state.queue.pop(0)
        contents = tree.list_folder(entry.folder_id)
        if entry.in_progress:
            logger.info(
                "[run_tick] resuming folder; folder_id:%s;files_done:%d;subfolders_done:%d",
                entry.folder_id,
                entry.files_done,
                entry.subfolders_done,
            )

        if not _process_folder(state, entry, contents, rows, budget, folders_done == 0):
            state.queue.insert(0, entry)
            logger.info(
                "[run_tick] budget exhausted mid-folder; folder_id:%s;files_done:%d",
                entry.folder_id,
                entry.files_done,
            )
            break

        state.processed_folders.append(entry.folder_id)
        state.last_processed_time = _utc_now()
        folders_done += 1

    result = TickResult(state=state, rows=rows, reached_time_limit=bool(state.queue))
    logger.info(
        "[run_tick] tick finished; folders:%d;rows:%d;queued:%d;max_depth:%d;elapsed:%.1f",
        folders_done,
        len(rows),
        len(state.queue),
        state.max_depth_found,
        budget.elapsed(),
    )
    return result
