"""Drive indexer — the resumable entry point that runs one tick per invocation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from drive_indexer.graph.client import graph_client_from_config
from drive_indexer.graph.tree import drive_tree_store_from_config
from drive_indexer.graph.workbook import workbook_sink_from_config
from drive_indexer.indexing.budget import (
    DEFAULT_CLOCK,
    DEFAULT_TIME_BUDGET_SECONDS,
    Clock,
    TimeBudget,
)
from drive_indexer.indexing.checkpoint import CheckpointManager, TickAction
from drive_indexer.indexing.engine import run_tick
from drive_indexer.indexing.models import TraversalState
from drive_indexer.indexing.table import ensure_columns, initialize_header
from drive_indexer.state.lock import blob_tick_lock_from_config
from drive_indexer.state.scheduler import queue_scheduler_from_config
from drive_indexer.state.store import blob_key_value_store_from_config

if TYPE_CHECKING:
    from drive_indexer.config import AppConfig
    from drive_indexer.indexing.protocols import TabularSink, TickLock, TreeStore

logger = logging.getLogger(__name__)


class TickInProgressError(Exception):
    """Raised when another tick holds the index lock."""


@dataclass
class TickReport:
    """Summary of one invocation, for logs and HTTP responses."""

    action: TickAction
    rows_written: int
    queued: int
    processed_folders: int
    max_depth_found: int
    started_fresh: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "rows_written": self.rows_written,
            "queued": self.queued,
            "processed_folders": self.processed_folders,
            "max_depth_found": self.max_depth_found,
            "started_fresh": self.started_fresh,
        }


class DriveIndexer:
    """Runs the folder-tree index one time-boxed tick at a time."""

    def __init__(
        self,
        tree: TreeStore,
        sink: TabularSink,
        checkpoints: CheckpointManager,
        root_folder_id: str,
        budget_seconds: float = DEFAULT_TIME_BUDGET_SECONDS,
        clock: Clock = DEFAULT_CLOCK,
        lock: TickLock | None = None,
    ) -> None:
        """Initialise the indexer.

        Args:
            tree: Source of folder listings.
            sink: Table receiving one row per file.
            checkpoints: Checkpoint persistence and continuation scheduling.
            root_folder_id: Tree-store ID of the folder to index.
            budget_seconds: Work allowance per tick.
            clock: Monotonic clock the budget is measured with.
            lock: Cross-process lock serializing ticks. None when only one
                caller can ever run a tick.
        """
        self._tree = tree
        self._sink = sink
        self._checkpoints = checkpoints
        self._root_folder_id = root_folder_id
        self._budget_seconds = budget_seconds
        self._clock = clock
        self._lock = lock

    def _start_run(self) -> TraversalState:
        state = TraversalState.fresh(
            self._root_folder_id, now=datetime.now(tz=UTC).isoformat()
        )
        initialize_header(self._sink, state.max_depth_found)
        logger.info("[_start_run] starting new index run; root_folder_id:%s", self._root_folder_id)
        return state

    def run(self, resume_only: bool = False) -> TickReport:
        """Run one tick: resume or start, traverse, flush rows, then persist or finish.

        Safe to call whether or not a checkpoint exists. If the tick or the
        flush fails, the checkpoint is reset to its pre-tick contents and
        the error is re-raised for the host to report.

        Args:
            resume_only: Only continue an in-progress run. With no checkpoint
                the tick does nothing and reports ``TickAction.IDLE``.

        Returns:
            TickReport describing what this invocation did.

        Raises:
            TickInProgressError: If another tick holds the lock.
        """
        budget = TimeBudget(self._budget_seconds, self._clock)
        if self._lock is not None and not self._lock.acquire():
            raise TickInProgressError("another tick is already running")
        try:
            return self._run_tick(budget, resume_only)
        finally:
            if self._lock is not None:
                self._lock.release()

    def defer(self) -> None:
        """Schedule a continuation for after the running tick's budget."""
        self._checkpoints.defer(int(self._budget_seconds * 1000))

    def _run_tick(self, budget: TimeBudget, resume_only: bool) -> TickReport:
        if resume_only and not self._checkpoints.in_progress():
            logger.info("[run] no run in progress, continuation ignored")
            return TickReport(
                action=TickAction.IDLE,
                rows_written=0,
                queued=0,
                processed_folders=0,
                max_depth_found=0,
                started_fresh=False,
            )
        loaded = self._checkpoints.load()
        started_fresh = loaded is None
        pre_tick = self._start_run() if loaded is None else loaded

        try:
            ensure_columns(self._sink, pre_tick.max_depth_found)
            result = run_tick(pre_tick, self._tree, budget)
            state = result.state
            if state.max_depth_found > pre_tick.max_depth_found:
                ensure_columns(self._sink, state.max_depth_found)
            cells = [row.to_cells(state.max_depth_found) for row in result.rows]
            self._sink.append_rows(cells)
        except Exception as exc:
            self._checkpoints.fail_tick(pre_tick, exc)
            raise

        action = self._checkpoints.finalize_tick(state, self._sink)
        report = TickReport(
            action=action,
            rows_written=len(cells),
            queued=len(state.queue),
            processed_folders=len(state.processed_folders),
            max_depth_found=state.max_depth_found,
            started_fresh=started_fresh,
        )
        logger.info(
            "[run] tick complete; action:%s;rows_written:%d;queued:%d",
            action.value,
            report.rows_written,
            report.queued,
        )
        return report

    def dump_state(self) -> dict[str, Any]:
        """Read-only view of the current checkpoint keys."""
        return self._checkpoints.dump()

    def clear_state(self) -> None:
        """Remove all checkpoint keys and pending continuations."""
        self._checkpoints.clear_all()


def drive_indexer_from_config(config: AppConfig) -> DriveIndexer:
    """Construct a DriveIndexer from application configuration.

    Creates the Graph client, tree store, workbook sink, blob store, tick
    lock and continuation scheduler from the config and wires them together.

    Args:
        config: Application configuration instance.

    Returns:
        Configured DriveIndexer instance.
    """
    client = graph_client_from_config(config)
    checkpoints = CheckpointManager(
        store=blob_key_value_store_from_config(config),
        scheduler=queue_scheduler_from_config(config),
        reschedule_delay_ms=config.reschedule_delay_ms,
    )
    return DriveIndexer(
        tree=drive_tree_store_from_config(client, config),
        sink=workbook_sink_from_config(client, config),
        checkpoints=checkpoints,
        root_folder_id=config.root_folder_id,
        budget_seconds=config.time_budget_seconds,
        lock=blob_tick_lock_from_config(config),
    )
