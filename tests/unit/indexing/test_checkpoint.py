"""Unit tests for indexing/checkpoint.py — CheckpointManager behaviour."""

from fakes import FakeScheduler, FakeSink, MemoryStore

from drive_indexer.graph.client import GraphApiError
from drive_indexer.indexing.checkpoint import (
    STATE_KEY,
    TIME_KEY,
    CheckpointManager,
    TickAction,
)
from drive_indexer.indexing.models import TraversalState

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_manager() -> tuple[CheckpointManager, MemoryStore, FakeScheduler]:
    """Return (manager, store, scheduler)."""
    store = MemoryStore()
    scheduler = FakeScheduler()
    return CheckpointManager(store, scheduler), store, scheduler


def _in_progress_state() -> TraversalState:
    state = TraversalState.fresh("root", now="2025-03-01T10:00:00+00:00")
    state.max_depth_found = 2
    return state


# ---------------------------------------------------------------------------
# load / save
# ---------------------------------------------------------------------------


class TestLoad:
    def test_returns_none_when_no_run_in_progress(self) -> None:
        manager, _, _ = _make_manager()
        assert manager.load() is None

    def test_returns_saved_state(self) -> None:
        manager, _, _ = _make_manager()
        state = _in_progress_state()
        manager.save(state)

        assert manager.load() == state

    def test_corrupt_checkpoint_starts_over(self) -> None:
        manager, store, _ = _make_manager()
        store.data[STATE_KEY] = "{truncated"
        store.data[TIME_KEY] = "2025-03-01T10:00:00+00:00"

        assert manager.load() is None
        assert store.data == {}

    def test_unknown_version_starts_over(self) -> None:
        manager, store, _ = _make_manager()
        store.data[STATE_KEY] = '{"version": 42}'

        assert manager.load() is None
        assert STATE_KEY not in store.data


class TestInProgress:
    def test_false_without_checkpoint(self) -> None:
        manager, _, _ = _make_manager()
        assert manager.in_progress() is False

    def test_true_even_for_unreadable_checkpoint(self) -> None:
        manager, store, _ = _make_manager()
        store.data[STATE_KEY] = "{broken"
        assert manager.in_progress() is True


class TestSave:
    def test_writes_state_and_timestamp_keys(self) -> None:
        manager, store, _ = _make_manager()

        manager.save(_in_progress_state())

        assert set(store.data) == {STATE_KEY, TIME_KEY}
        assert store.data[TIME_KEY] == "2025-03-01T10:00:00+00:00"


# ---------------------------------------------------------------------------
# finalize_tick
# ---------------------------------------------------------------------------


class TestFinalizeTick:
    def test_non_empty_queue_persists_and_reschedules(self) -> None:
        manager, store, scheduler = _make_manager()
        sink = FakeSink()

        action = manager.finalize_tick(_in_progress_state(), sink)

        assert action is TickAction.RESCHEDULED
        assert STATE_KEY in store.data
        assert scheduler.pending == [1000]
        assert sink.sort_calls == 0

    def test_cancels_before_scheduling(self) -> None:
        manager, _, scheduler = _make_manager()
        scheduler.pending = [1000]

        manager.finalize_tick(_in_progress_state(), FakeSink())

        assert scheduler.calls == [("cancel", None), ("schedule", 1000)]
        assert scheduler.pending == [1000]

    def test_custom_delay_is_used(self) -> None:
        store = MemoryStore()
        scheduler = FakeScheduler()
        manager = CheckpointManager(store, scheduler, reschedule_delay_ms=250)

        manager.finalize_tick(_in_progress_state(), FakeSink())

        assert scheduler.pending == [250]

    def test_empty_queue_completes_run(self) -> None:
        manager, store, scheduler = _make_manager()
        manager.save(_in_progress_state())
        scheduler.pending = [1000]
        sink = FakeSink()
        done = TraversalState(queue=[], processed_folders=["root"])

        action = manager.finalize_tick(done, sink)

        assert action is TickAction.COMPLETED
        assert store.data == {}
        assert sink.sort_calls == 1
        assert scheduler.pending == []

    def test_sort_failure_still_completes_run(self) -> None:
        manager, store, scheduler = _make_manager()
        manager.save(_in_progress_state())
        scheduler.pending = [1000]
        sink = FakeSink()
        sink.fail_sort = GraphApiError(504, "Gateway timeout")
        done = TraversalState(queue=[], processed_folders=["root"])

        action = manager.finalize_tick(done, sink)

        assert action is TickAction.COMPLETED
        assert store.data == {}
        assert scheduler.pending == []


class TestDefer:
    def test_schedules_without_cancelling_or_saving(self) -> None:
        manager, store, scheduler = _make_manager()
        scheduler.pending = [1000]

        manager.defer(330_000)

        assert scheduler.pending == [1000, 330_000]
        assert ("cancel", None) not in scheduler.calls
        assert store.data == {}


# ---------------------------------------------------------------------------
# fail_tick and diagnostics
# ---------------------------------------------------------------------------


class TestFailTick:
    def test_persists_pre_tick_state(self) -> None:
        manager, store, scheduler = _make_manager()
        pre_tick = _in_progress_state()

        manager.fail_tick(pre_tick, RuntimeError("boom"))

        assert TraversalState.from_json(store.data[STATE_KEY]) == pre_tick
        assert scheduler.calls == []


class TestDiagnostics:
    def test_dump_returns_raw_keys(self) -> None:
        manager, store, _ = _make_manager()
        manager.save(_in_progress_state())

        dump = manager.dump()

        assert dump[STATE_KEY] == store.data[STATE_KEY]
        assert dump[TIME_KEY] == "2025-03-01T10:00:00+00:00"

    def test_dump_of_idle_store_is_all_none(self) -> None:
        manager, _, _ = _make_manager()
        assert manager.dump() == {STATE_KEY: None, TIME_KEY: None}

    def test_clear_all_removes_keys_and_schedules(self) -> None:
        manager, store, scheduler = _make_manager()
        manager.save(_in_progress_state())
        store.data["unrelated"] = "x"
        scheduler.pending = [1000]

        manager.clear_all()

        assert store.data == {}
        assert scheduler.pending == []
