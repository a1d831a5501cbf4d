"""
Tests for the RoyaltySplitter service (royalty_splitter.splitter)

Tests cover:
- End-to-end scenarios across config, registry and engine
- Pause gating of every mutating operation
- Audit events, metrics and statistics
- Work id sequencing
- Persistence round trips through storage backends
"""

import pytest

from royalty_splitter import ErrorCode, InMemoryFunds, RoyaltySplitter
from royalty_splitter.monitoring.metrics import MetricsCollector
from royalty_splitter.audit import PERSISTED_EVENT_LIMIT
from royalty_splitter.storage import JSONFileStorage, MemoryStorage, StorageWriteError

ADMIN = "ST1ADMIN"
CALLER = "ST1CALLER"
ARTIST_X = "ST2ARTIST"
ARTIST_Y = "ST3ARTIST"
STRANGER = "ST4FAKE"

SPLIT = [(ARTIST_X, 6000), (ARTIST_Y, 4000)]


class FailingStorage(MemoryStorage):
    """Memory backend whose writes always fail."""

    def save_state(self, state):
        raise StorageWriteError("disk full")


# ============================================================
# Scenarios
# ============================================================

class TestScenarios:
    """End-to-end behavior through the service facade."""

    def test_define_then_distribute(self, splitter, funds):
        splitter.define_split(CALLER, 1, SPLIT)

        success, result = splitter.distribute(CALLER, 1, 10000)

        assert success is True
        assert result["payouts"] == [6000, 4000]
        assert funds.balance_of(CALLER) == 1_000_000 - 10000
        assert funds.balance_of(ARTIST_X) == 6000
        assert funds.balance_of(ARTIST_Y) == 4000

    def test_short_total_rejected(self, splitter):
        success, result = splitter.define_split(CALLER, 1, [(ARTIST_X, 5000), (ARTIST_Y, 4000)])

        assert success is False
        assert result["code"] == ErrorCode.INVALID_SPLIT
        assert result["error"] == "InvalidSplit"

    def test_duplicate_recipient_rejected(self, splitter):
        success, result = splitter.define_split(CALLER, 1, [(ARTIST_X, 5000), (ARTIST_X, 5000)])

        assert result["code"] == ErrorCode.DUPLICATE_RECIPIENT

    def test_owner_update_records_updater(self, defined_splitter, clock):
        clock.advance(3)

        success, _ = defined_splitter.update_split(CALLER, 1, [(ARTIST_X, 7000), (ARTIST_Y, 3000)])

        assert success is True
        assert [(e.recipient, e.share) for e in defined_splitter.get_split(1)] == [
            (ARTIST_X, 7000),
            (ARTIST_Y, 3000),
        ]
        record = defined_splitter.get_update_record(1)
        assert record.updater == CALLER
        assert record.timestamp == 3
        assert defined_splitter.get_share(1, ARTIST_X) == 7000

    def test_non_owner_update_leaves_split_unchanged(self, defined_splitter):
        before = defined_splitter.get_split(1)

        success, result = defined_splitter.update_split(STRANGER, 1, [(ARTIST_X, 7000), (ARTIST_Y, 3000)])

        assert success is False
        assert result["code"] == ErrorCode.NOT_AUTHORIZED
        assert defined_splitter.get_split(1) == before

    def test_insufficient_funds(self, defined_splitter):
        defined_splitter.funds = InMemoryFunds({CALLER: 5000})
        defined_splitter.engine.funds = defined_splitter.funds

        success, result = defined_splitter.distribute(CALLER, 1, 10000)

        assert result["code"] == ErrorCode.INSUFFICIENT_FUNDS


class TestPause:
    """Pausing blocks every split mutation and distribution until resumed."""

    def test_pause_blocks_operations(self, defined_splitter):
        success, _ = defined_splitter.set_paused(ADMIN, True)
        assert success is True
        assert defined_splitter.is_paused() is True

        assert defined_splitter.define_split(CALLER, 2, SPLIT)[1]["code"] == ErrorCode.PAUSED
        assert defined_splitter.update_split(CALLER, 1, SPLIT)[1]["code"] == ErrorCode.PAUSED
        assert defined_splitter.distribute(CALLER, 1, 10000)[1]["code"] == ErrorCode.PAUSED

    def test_resume_restores_operations(self, defined_splitter):
        defined_splitter.set_paused(ADMIN, True)
        defined_splitter.set_paused(ADMIN, False)

        success, _ = defined_splitter.distribute(CALLER, 1, 10000)

        assert success is True

    def test_reads_work_while_paused(self, defined_splitter):
        defined_splitter.set_paused(ADMIN, True)

        assert defined_splitter.get_owner(1) == CALLER
        assert defined_splitter.get_share(1, ARTIST_Y) == 4000


class TestAdministration:
    """Configuration setters through the facade."""

    def test_basis_points_change_applies_to_new_splits(self, splitter):
        splitter.set_basis_points(ADMIN, 20000)
        splitter.set_max_share(ADMIN, 20000)

        assert splitter.get_basis_points() == 20000
        success, _ = splitter.define_split(CALLER, 1, [(ARTIST_X, 12000), (ARTIST_Y, 8000)])
        assert success is True

    def test_max_splits_enforced(self, splitter):
        splitter.set_max_splits(ADMIN, 1)

        success, result = splitter.define_split(CALLER, 1, SPLIT)

        assert result["code"] == ErrorCode.MAX_SPLITS_EXCEEDED

    def test_get_config(self, splitter):
        splitter.set_min_share(ADMIN, 10)

        assert splitter.get_config()["min_share"] == 10


# ============================================================
# Sequencer
# ============================================================

class TestWorkIds:
    """Tests for work id issuance."""

    def test_starts_at_zero(self, splitter):
        assert splitter.get_next_work_id() == 0

    def test_increment(self, splitter):
        success, result = splitter.increment_work_id(CALLER)

        assert success is True
        assert result["work_id"] == 1
        assert splitter.get_next_work_id() == 1

    def test_monotonic(self, splitter):
        issued = [splitter.increment_work_id(CALLER)[1]["work_id"] for _ in range(5)]

        assert issued == [1, 2, 3, 4, 5]

    def test_issued_id_can_be_defined(self, splitter):
        _, result = splitter.increment_work_id(CALLER)

        success, _ = splitter.define_split(CALLER, result["work_id"], SPLIT)

        assert success is True

    def test_caller_is_required(self, splitter):
        with pytest.raises(TypeError):
            splitter.increment_work_id()

    def test_issuer_recorded_in_event(self, splitter):
        splitter.increment_work_id(CALLER)

        event = splitter.get_events(event_type="work_id_issued")[0]

        assert event.data == {"caller": CALLER, "work_id": 1}


# ============================================================
# Audit, Metrics, Statistics
# ============================================================

class TestObservability:
    """Tests for audit events, metrics and statistics."""

    def test_events_for_committed_operations(self, defined_splitter):
        defined_splitter.update_split(CALLER, 1, [(ARTIST_X, 7000), (ARTIST_Y, 3000)])
        defined_splitter.distribute(CALLER, 1, 10000)

        types = [e.event_type for e in defined_splitter.get_events(work_id=1)]

        assert types == ["split_defined", "split_updated", "royalties_distributed"]

    def test_no_event_on_failure(self, splitter):
        splitter.define_split(CALLER, 1, [(ARTIST_X, 1)])

        assert splitter.get_events() == []

    def test_distribution_event_data(self, defined_splitter):
        defined_splitter.distribute(CALLER, 1, 10001)

        event = defined_splitter.get_events(event_type="royalties_distributed")[0]

        assert event.data["caller"] == CALLER
        assert event.data["payouts"] == [6000, 4000]
        assert event.data["dust"] == 1

    def test_operation_metrics(self, defined_splitter):
        defined_splitter.distribute(CALLER, 1, 10000)
        defined_splitter.distribute(CALLER, 1, 0)

        collector = defined_splitter.metrics
        assert collector.get_counter(
            "operations_total", labels={"operation": "distribute", "outcome": "ok"}
        ) == 1
        assert collector.get_counter(
            "operations_total", labels={"operation": "distribute", "outcome": "InvalidAmount"}
        ) == 1
        assert collector.get_counter("royalties_distributed_total") == 10000
        assert collector.get_gauge("splits_registered") == 1

    def test_statistics(self, defined_splitter):
        defined_splitter.update_split(CALLER, 1, SPLIT)
        defined_splitter.increment_work_id(CALLER)

        stats = defined_splitter.get_statistics()

        assert stats["splits"]["total"] == 1
        assert stats["splits"]["updated"] == 1
        assert stats["splits"]["recipients"] == 2
        assert stats["events"]["by_type"]["work_id_issued"] == 1
        assert stats["next_work_id"] == 1


# ============================================================
# Persistence
# ============================================================

class TestPersistence:
    """State survives a save/load cycle."""

    def _populate(self, splitter):
        splitter.define_split(CALLER, 1, SPLIT)
        splitter.update_split(CALLER, 1, [(ARTIST_X, 5000), ("ST5ARTIST", 5000)])
        splitter.increment_work_id(CALLER)
        splitter.increment_work_id(CALLER)
        splitter.set_max_splits(ADMIN, 4)

    def _assert_same(self, original, restored):
        assert restored.get_split(1) == original.get_split(1)
        assert restored.get_owner(1) == CALLER
        assert restored.get_share(1, ARTIST_Y) == 4000
        assert restored.get_update_record(1) == original.get_update_record(1)
        assert restored.get_next_work_id() == 2
        assert restored.get_config() == original.get_config()

    def test_memory_round_trip(self, splitter):
        storage = MemoryStorage()
        self._populate(splitter)

        splitter.save(storage)
        restored = RoyaltySplitter.load(storage)

        self._assert_same(splitter, restored)

    def test_json_round_trip(self, splitter, tmp_path):
        storage = JSONFileStorage(str(tmp_path / "state.json"))
        self._populate(splitter)

        splitter.save(storage)
        restored = RoyaltySplitter.load(storage)

        self._assert_same(splitter, restored)

    def test_attached_storage_saved_after_each_mutation(self, funds):
        storage = MemoryStorage()
        splitter = RoyaltySplitter(funds=funds, storage=storage, metrics_collector=MetricsCollector())

        splitter.define_split(CALLER, 1, SPLIT)
        splitter.define_split(CALLER, 1, SPLIT)  # rejected, not saved
        splitter.distribute(CALLER, 1, 10000)

        assert storage.save_count == 2
        assert storage.load_state()["registry"]["owners"] == {"1": CALLER}

    def test_load_empty_storage_starts_fresh(self):
        restored = RoyaltySplitter.load(MemoryStorage())

        assert restored.get_split(1) is None
        assert restored.get_next_work_id() == 0

    def test_save_without_storage(self, splitter):
        with pytest.raises(ValueError):
            splitter.save()

    def test_restored_splitter_keeps_working(self, splitter, funds):
        storage = MemoryStorage()
        self._populate(splitter)
        splitter.save(storage)

        restored = RoyaltySplitter.load(storage, funds=funds)
        success, result = restored.update_split(CALLER, 1, SPLIT)

        assert success is True
        assert restored.define_split(CALLER, 1, SPLIT)[1]["code"] == ErrorCode.SPLIT_ALREADY_DEFINED

    def test_persisted_events_are_capped(self, splitter):
        for _ in range(PERSISTED_EVENT_LIMIT + 5):
            splitter.increment_work_id(CALLER)

        state = splitter.to_dict()

        assert len(splitter.get_events()) == PERSISTED_EVENT_LIMIT + 5
        assert len(state["audit"]["events"]) == PERSISTED_EVENT_LIMIT
        assert state["audit"]["events"][-1]["data"]["work_id"] == PERSISTED_EVENT_LIMIT + 5
        assert state["next_work_id"] == PERSISTED_EVENT_LIMIT + 5

    def test_update_records_not_capped(self, defined_splitter):
        for _ in range(PERSISTED_EVENT_LIMIT + 1):
            defined_splitter.update_split(CALLER, 1, SPLIT)

        state = defined_splitter.to_dict()

        assert state["audit"]["update_records"]["1"]["updater"] == CALLER


class TestStorageFailure:
    """A failed save never undoes or hides a committed operation."""

    @pytest.fixture
    def broken(self, funds, clock):
        return RoyaltySplitter(
            funds=funds, clock=clock, storage=FailingStorage(), metrics_collector=MetricsCollector()
        )

    def test_define_returns_success(self, broken):
        success, result = broken.define_split(CALLER, 1, SPLIT)

        assert success is True
        assert broken.get_owner(1) == CALLER

    def test_distribute_returns_payouts(self, broken, funds):
        broken.define_split(CALLER, 1, SPLIT)

        success, result = broken.distribute(CALLER, 1, 10000)

        assert success is True
        assert result["payouts"] == [6000, 4000]
        assert funds.balance_of(CALLER) == 1_000_000 - 10000
        assert [e.event_type for e in broken.get_events()] == ["split_defined", "royalties_distributed"]

    def test_retry_is_answered_not_repeated(self, broken):
        broken.define_split(CALLER, 1, SPLIT)

        success, result = broken.define_split(CALLER, 1, SPLIT)

        assert result["code"] == ErrorCode.SPLIT_ALREADY_DEFINED

    def test_failures_counted(self, broken):
        broken.define_split(CALLER, 1, SPLIT)
        broken.increment_work_id(CALLER)
        broken.define_split(CALLER, 1, SPLIT)  # rejected, nothing to save

        assert broken.metrics.get_counter("persist_failures_total") == 2
