"""Checkpoint persistence and end-of-tick decisions."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any

from drive_indexer.indexing.models import CheckpointFormatError, TraversalState

if TYPE_CHECKING:
    from drive_indexer.indexing.protocols import KeyValueStore, Scheduler, TabularSink

logger = logging.getLogger(__name__)

STATE_KEY = "folder-index-state"
TIME_KEY = "last-run-timestamp"
DEFAULT_RESCHEDULE_DELAY_MS = 1000


class TickAction(enum.Enum):
    """What happened at the end of a tick."""

    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    IDLE = "idle"


class CheckpointManager:
    """Owns the checkpoint keys and the continuation schedule.

    Both keys absent means no run is in progress.
    """

    def __init__(
        self,
        store: KeyValueStore,
        scheduler: Scheduler,
        state_key: str = STATE_KEY,
        time_key: str = TIME_KEY,
        reschedule_delay_ms: int = DEFAULT_RESCHEDULE_DELAY_MS,
    ) -> None:
        """Initialise the checkpoint manager.

        Args:
            store: Durable key-value store holding the checkpoint.
            scheduler: Scheduler used to register the next tick.
            state_key: Key of the serialized TraversalState.
            time_key: Key of the last-processed timestamp.
            reschedule_delay_ms: Delay before the next tick. This is a yield,
                not a backoff.
        """
        self._store = store
        self._scheduler = scheduler
        self._state_key = state_key
        self._time_key = time_key
        self._reschedule_delay_ms = reschedule_delay_ms

    def in_progress(self) -> bool:
        """True while a checkpoint exists, readable or not."""
        return self._store.get(self._state_key) is not None

    def load(self) -> TraversalState | None:
        """Return the persisted state, or None when no run is in progress.

        A checkpoint that cannot be parsed, or was written by an unknown
        schema version, is discarded and None is returned so the run starts
        over from the root.
        """
        raw = self._store.get(self._state_key)
        if raw is None:
            return None
        try:
            state = TraversalState.from_json(raw)
        except CheckpointFormatError as exc:
            logger.warning("[load] discarding unreadable checkpoint; reason:%s", exc)
            self.clear()
            return None
        logger.info(
            "[load] resuming from checkpoint; queued:%d;processed:%d;max_depth:%d",
            len(state.queue),
            len(state.processed_folders),
            state.max_depth_found,
        )
        return state

    def save(self, state: TraversalState) -> None:
        self._store.set(self._state_key, state.to_json())
        self._store.set(self._time_key, state.last_processed_time)

    def clear(self) -> None:
        self._store.delete(self._state_key)
        self._store.delete(self._time_key)

    def finalize_tick(self, state: TraversalState, sink: TabularSink) -> TickAction:
        """Persist and reschedule, or finish the run.

        With work still queued the state is saved and exactly one
        continuation is scheduled. With an empty queue the checkpoint is
        deleted, the sink is sorted and any pending continuation is dropped.

        Completion is final once the checkpoint is deleted: a failed sort is
        logged and leaves the rows in discovery order, it is not raised.
        """
        if state.queue:
            self.save(state)
            self._scheduler.cancel_all()
            self._scheduler.schedule(self._reschedule_delay_ms)
            logger.info(
                "[finalize_tick] checkpoint saved, continuation scheduled;"
                " queued:%d;delay_ms:%d",
                len(state.queue),
                self._reschedule_delay_ms,
            )
            return TickAction.RESCHEDULED

        self.clear()
        self._scheduler.cancel_all()
        try:
            sink.sort_hierarchically()
        except Exception:
            logger.exception("[finalize_tick] sort failed, index left in discovery order")
        logger.info(
            "[finalize_tick] indexing completed; folders:%d;max_depth:%d",
            len(state.processed_folders),
            state.max_depth_found,
        )
        return TickAction.COMPLETED

    def defer(self, delay_ms: int) -> None:
        """Schedule a continuation without touching the checkpoint or pending messages."""
        self._scheduler.schedule(delay_ms)
        logger.info("[defer] continuation deferred; delay_ms:%d", delay_ms)

    def fail_tick(self, pre_tick_state: TraversalState, error: BaseException) -> None:
        """Persist the state as it was before the failed tick.

        The caller re-raises; nothing is retried here.
        """
        logger.error(
            "[fail_tick] tick failed, keeping pre-tick checkpoint; error:%s;queued:%d",
            type(error).__name__,
            len(pre_tick_state.queue),
        )
        self.save(pre_tick_state)

    def dump(self) -> dict[str, Any]:
        """Return the raw checkpoint contents for diagnostics."""
        return {
            self._state_key: self._store.get(self._state_key),
            self._time_key: self._store.get(self._time_key),
        }

    def clear_all(self) -> None:
        """Delete every stored key and pending continuation. Operator use only."""
        self._store.clear()
        self._scheduler.cancel_all()
        logger.warning("[clear_all] all checkpoint keys and continuations removed")
