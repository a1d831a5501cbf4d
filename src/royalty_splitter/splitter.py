"""
Royalty Splitter - Service facade

``RoyaltySplitter`` owns one GlobalConfig and passes it into the registry and
the distribution engine on every call. Each exported operation runs under a
re-entrant lock, so concurrent callers are serialized and every operation
either fully commits or fully fails.

Successful mutations are appended to the audit log, counted in the metrics
collector and, when a storage backend is attached, persisted.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from .audit import AuditEvent, AuditTrail, UpdateRecord
from .clock import BlockHeightClock, Clock
from .config import ConfigStore, GlobalConfig
from .distribution import DistributionEngine
from .errors import Result
from .funds import FundsService, InMemoryFunds
from .monitoring.logging import LoggingContext
from .monitoring.metrics import MetricsCollector, metrics
from .registry import SplitEntry, SplitRegistry
from .sequencer import WorkIdSequencer
from .storage.base import StorageBackend, StorageError

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class RoyaltySplitter:
    """
    Ledger of revenue splits plus the engine that applies them.

    Args:
        config: Global configuration (defaults to GlobalConfig())
        funds: Funds-transfer service (defaults to an empty InMemoryFunds)
        clock: Logical clock for update records (defaults to BlockHeightClock)
        storage: Optional backend; state is saved after every committed mutation
        metrics_collector: Metrics sink (defaults to the process-wide collector)
    """

    def __init__(
        self,
        config: GlobalConfig | None = None,
        funds: FundsService | None = None,
        clock: Clock | None = None,
        storage: StorageBackend | None = None,
        metrics_collector: MetricsCollector | None = None,
    ):
        self.config_store = ConfigStore(config)
        self.clock = clock if clock is not None else BlockHeightClock()
        self.funds = funds if funds is not None else InMemoryFunds()
        self.audit = AuditTrail()
        self.registry = SplitRegistry(self.audit, self.clock)
        self.engine = DistributionEngine(self.registry, self.funds)
        self.sequencer = WorkIdSequencer()
        self.storage = storage
        self.metrics = metrics_collector if metrics_collector is not None else metrics
        self._lock = threading.RLock()

    @property
    def config(self) -> GlobalConfig:
        return self.config_store.config

    # =========================================================================
    # Execution
    # =========================================================================

    def _execute(
        self,
        operation: str,
        caller: str,
        action: Callable[[], Result],
        event_type: str,
    ) -> Result:
        """Run one operation atomically and record its outcome."""
        with self._lock, LoggingContext(operation=operation, caller=caller):
            with self.metrics.timer("operation_duration_ms", labels={"operation": operation}):
                ok, result = action()

            self.metrics.increment(
                "operations_total",
                labels={"operation": operation, "outcome": "ok" if ok else result["error"]},
            )
            if not ok:
                logger.info("%s rejected for %s: %s", operation, caller, result["error"])
                return ok, result

            self.audit.emit(event_type, {"caller": caller, **self._event_data(result)})
            self.metrics.set_gauge("splits_registered", len(self.registry.splits))
            self._persist()
            return ok, result

    @staticmethod
    def _event_data(result: dict[str, Any]) -> dict[str, Any]:
        keys = ("work_id", "field", "value", "amount", "payouts", "dust")
        return {k: result[k] for k in keys if k in result}

    def _persist(self) -> None:
        """
        Save state after a committed operation.

        The operation has already taken effect (funds may have moved), so a
        storage failure is logged and counted rather than raised. The next
        successful save writes the full state again.
        """
        if self.storage is None:
            return
        try:
            self.storage.save_state(self.to_dict())
        except StorageError:
            logger.exception("Failed to persist splitter state")
            self.metrics.increment("persist_failures_total")

    # =========================================================================
    # Configuration (admin only)
    # =========================================================================

    def set_admin(self, caller: str, new_admin: str) -> Result:
        return self._execute(
            "set_admin", caller,
            lambda: self.config_store.set_admin(caller, new_admin),
            "config_changed",
        )

    def set_paused(self, caller: str, paused: bool) -> Result:
        return self._execute(
            "set_paused", caller,
            lambda: self.config_store.set_paused(caller, paused),
            "config_changed",
        )

    def set_basis_points(self, caller: str, basis_points: int) -> Result:
        return self._execute(
            "set_basis_points", caller,
            lambda: self.config_store.set_basis_points(caller, basis_points),
            "config_changed",
        )

    def set_min_share(self, caller: str, min_share: int) -> Result:
        return self._execute(
            "set_min_share", caller,
            lambda: self.config_store.set_min_share(caller, min_share),
            "config_changed",
        )

    def set_max_share(self, caller: str, max_share: int) -> Result:
        return self._execute(
            "set_max_share", caller,
            lambda: self.config_store.set_max_share(caller, max_share),
            "config_changed",
        )

    def set_max_splits(self, caller: str, max_splits: int) -> Result:
        return self._execute(
            "set_max_splits", caller,
            lambda: self.config_store.set_max_splits(caller, max_splits),
            "config_changed",
        )

    # =========================================================================
    # Splits
    # =========================================================================

    def define_split(self, caller: str, work_id: int, splits: Iterable[Any]) -> Result:
        """Define the split of a work; caller becomes its owner."""
        return self._execute(
            "define_split", caller,
            lambda: self.registry.define_split(self.config, caller, work_id, splits),
            "split_defined",
        )

    def update_split(self, caller: str, work_id: int, new_splits: Iterable[Any]) -> Result:
        """Replace the split of a work; only its owner may do so."""
        return self._execute(
            "update_split", caller,
            lambda: self.registry.update_split(self.config, caller, work_id, new_splits),
            "split_updated",
        )

    # =========================================================================
    # Distribution
    # =========================================================================

    def distribute(self, caller: str, work_id: int, amount: int) -> Result:
        """Pay amount from caller to the recipients of a work's split."""
        ok, result = self._execute(
            "distribute", caller,
            lambda: self.engine.distribute(self.config, caller, work_id, amount),
            "royalties_distributed",
        )
        if ok:
            self.metrics.increment("royalties_distributed_total", value=result["total_distributed"])
        return ok, result

    def preview_distribution(self, work_id: int, amount: int) -> Result:
        """Quote payouts for a payment without moving funds."""
        with self._lock:
            return self.engine.preview(self.config, work_id, amount)

    # =========================================================================
    # Work identifiers
    # =========================================================================

    def increment_work_id(self, caller: str) -> Result:
        """Issue the next work identifier."""
        return self._execute(
            "increment_work_id", caller,
            lambda: (True, {"work_id": self.sequencer.increment_work_id()}),
            "work_id_issued",
        )

    def get_next_work_id(self) -> int:
        return self.sequencer.next_work_id()

    # =========================================================================
    # Reads
    # =========================================================================

    def get_split(self, work_id: int) -> list[SplitEntry] | None:
        with self._lock:
            return self.registry.get_split(work_id)

    def get_owner(self, work_id: int) -> str | None:
        with self._lock:
            return self.registry.get_owner(work_id)

    def get_share(self, work_id: int, recipient: str) -> int | None:
        with self._lock:
            return self.registry.get_share(work_id, recipient)

    def get_update_record(self, work_id: int) -> UpdateRecord | None:
        with self._lock:
            return self.audit.get_update_record(work_id)

    def get_events(self, work_id: int | None = None, event_type: str | None = None) -> list[AuditEvent]:
        with self._lock:
            return self.audit.get_events(work_id=work_id, event_type=event_type)

    def is_paused(self) -> bool:
        return self.config.paused

    def get_basis_points(self) -> int:
        return self.config.basis_points

    def get_config(self) -> dict[str, Any]:
        with self._lock:
            return self.config.to_dict()

    def get_statistics(self) -> dict[str, Any]:
        """Get splitter statistics."""
        with self._lock:
            event_type_counts: dict[str, int] = {}
            for event in self.audit.events:
                event_type_counts[event.event_type] = event_type_counts.get(event.event_type, 0) + 1

            return {
                "splits": {
                    "total": len(self.registry.splits),
                    "updated": len(self.audit.update_records),
                    "recipients": sum(len(s) for s in self.registry.splits.values()),
                },
                "events": {
                    "total": len(self.audit.events),
                    "by_type": event_type_counts,
                },
                "next_work_id": self.sequencer.next_work_id(),
                "paused": self.config.paused,
            }

    # =========================================================================
    # Persistence
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Serialize the full splitter state."""
        with self._lock:
            return {
                "version": STATE_VERSION,
                "config": self.config.to_dict(),
                "registry": self.registry.to_dict(),
                "audit": self.audit.to_dict(),
                "next_work_id": self.sequencer.next_work_id(),
            }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        funds: FundsService | None = None,
        clock: Clock | None = None,
        storage: StorageBackend | None = None,
        metrics_collector: MetricsCollector | None = None,
    ) -> "RoyaltySplitter":
        """Rebuild a splitter from ``to_dict`` output."""
        splitter = cls(
            config=GlobalConfig.from_dict(data.get("config", {})),
            funds=funds,
            clock=clock,
            storage=storage,
            metrics_collector=metrics_collector,
        )
        splitter.audit = AuditTrail.from_dict(data.get("audit", {}))
        splitter.registry.audit = splitter.audit
        splitter.registry.load_dict(data.get("registry", {}))
        splitter.sequencer = WorkIdSequencer(start=int(data.get("next_work_id", 0)))
        return splitter

    def save(self, storage: StorageBackend | None = None) -> None:
        """Write state to the given backend (or the attached one)."""
        target = storage if storage is not None else self.storage
        if target is None:
            raise ValueError("No storage backend configured")
        target.save_state(self.to_dict())

    @classmethod
    def load(
        cls,
        storage: StorageBackend,
        config: GlobalConfig | None = None,
        funds: FundsService | None = None,
        clock: Clock | None = None,
    ) -> "RoyaltySplitter":
        """
        Restore a splitter from storage and keep the backend attached.

        Falls back to a fresh splitter with the given config when the
        backend holds no state.
        """
        state = storage.load_state()
        if state is None:
            logger.info("No stored state in %s; starting fresh", storage.__class__.__name__)
            return cls(config=config, funds=funds, clock=clock, storage=storage)

        splitter = cls.from_dict(state, funds=funds, clock=clock, storage=storage)
        logger.info(
            "Restored %d splits from %s",
            len(splitter.registry.splits), storage.__class__.__name__,
        )
        return splitter
