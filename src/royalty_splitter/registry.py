"""
Royalty Splitter - Split Registry

Maps each work to its ordered list of (recipient, share) entries and to the
identity that defined it. A split is defined once per work and can then be
replaced wholesale by its owner any number of times.

Validation is fail-fast and ordered; the order is observable through the
returned error code and must not be rearranged:

    define: paused -> work id -> length -> duplicates -> per-entry
            (principal, share bounds) -> total -> already defined
    update: paused -> ownership -> work id -> length -> duplicates ->
            per-entry -> total -> not found
"""

import logging
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .audit import AuditTrail, UpdateRecord
from .clock import BlockHeightClock, Clock
from .config import GlobalConfig, is_int, is_valid_principal
from .errors import ErrorCode, Result, failure, success

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitEntry:
    """One recipient's share of a work, in basis points."""

    recipient: str
    share: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"recipient": self.recipient, "share": self.share}


def coerce_split(splits: Any) -> list[SplitEntry] | None:
    """
    Normalize caller input into SplitEntry objects.

    Accepts SplitEntry objects, mappings with ``recipient``/``share`` keys,
    or ``(recipient, share)`` pairs. Returns None when the input is not a
    sequence of one of those shapes.
    """
    if isinstance(splits, (str, bytes, Mapping)) or not isinstance(splits, Iterable):
        return None

    entries = []
    for item in splits:
        if isinstance(item, SplitEntry):
            entry = item
        elif isinstance(item, Mapping):
            if "recipient" not in item or "share" not in item:
                return None
            entry = SplitEntry(recipient=item["recipient"], share=item["share"])
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            entry = SplitEntry(recipient=item[0], share=item[1])
        else:
            return None

        if not isinstance(entry.recipient, Hashable):
            return None
        entries.append(entry)
    return entries


class SplitRegistry:
    """
    Registry of splits, owners and the derived share index.

    The share index is keyed by ``(work_id, recipient)``. Entries for
    recipients dropped by an update are left in place, so a removed
    recipient still reports its last share.
    """

    def __init__(self, audit: AuditTrail | None = None, clock: Clock | None = None):
        self.audit = audit if audit is not None else AuditTrail()
        self.clock = clock if clock is not None else BlockHeightClock()

        self.splits: dict[int, list[SplitEntry]] = {}
        self.owners: dict[int, str] = {}
        self.share_index: dict[tuple[int, str], int] = {}

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate(
        self,
        config: GlobalConfig,
        work_id: Any,
        splits: Any,
    ) -> tuple[list[SplitEntry] | None, Result | None]:
        """Structural checks shared by define and update."""
        if not is_int(work_id) or work_id <= 0:
            return None, failure(ErrorCode.INVALID_WORK_ID, work_id=work_id)

        entries = coerce_split(splits)
        if entries is None:
            return None, failure(ErrorCode.INVALID_SPLIT, reason="malformed split entries")

        if len(entries) > config.max_splits_per_work:
            return None, failure(
                ErrorCode.MAX_SPLITS_EXCEEDED,
                count=len(entries),
                max_splits=config.max_splits_per_work,
            )

        recipients = {entry.recipient for entry in entries}
        if len(recipients) != len(entries):
            return None, failure(ErrorCode.DUPLICATE_RECIPIENT)

        for entry in entries:
            if not is_valid_principal(entry.recipient):
                return None, failure(ErrorCode.INVALID_PRINCIPAL, recipient=entry.recipient)
            if (
                not is_int(entry.share)
                or entry.share < config.min_share
                or entry.share > config.max_share
            ):
                return None, failure(
                    ErrorCode.INVALID_SHARE,
                    recipient=entry.recipient,
                    share=entry.share,
                )

        total = sum(entry.share for entry in entries)
        if total != config.basis_points:
            return None, failure(
                ErrorCode.INVALID_SPLIT,
                total=total,
                basis_points=config.basis_points,
            )

        return entries, None

    # =========================================================================
    # Mutations
    # =========================================================================

    def define_split(
        self,
        config: GlobalConfig,
        caller: str,
        work_id: int,
        splits: Iterable[Any],
    ) -> Result:
        """
        Define the split of a work. Write-once per work.

        Args:
            config: Current global configuration
            caller: Identity defining the split; becomes its owner
            work_id: Positive work identifier
            splits: Ordered (recipient, share) entries

        Returns:
            Tuple of (success, split_info)
        """
        if config.paused:
            return failure(ErrorCode.PAUSED)

        entries, error = self._validate(config, work_id, splits)
        if error:
            return error

        if work_id in self.splits:
            return failure(ErrorCode.SPLIT_ALREADY_DEFINED, work_id=work_id)

        self.splits[work_id] = entries
        self.owners[work_id] = caller
        self._index_shares(work_id, entries)

        logger.info("Split defined for work %s by %s with %d recipients", work_id, caller, len(entries))
        return success(
            work_id=work_id,
            owner=caller,
            splits=[entry.to_dict() for entry in entries],
        )

    def update_split(
        self,
        config: GlobalConfig,
        caller: str,
        work_id: int,
        new_splits: Iterable[Any],
    ) -> Result:
        """
        Replace the split of a work. Only the owner may update.

        Ownership is checked before the work id is range-checked, so a
        non-owner gets NotAuthorized even for a malformed work id.
        """
        if config.paused:
            return failure(ErrorCode.PAUSED)

        owner = self.owners.get(work_id) if isinstance(work_id, Hashable) else None
        if owner != caller:
            return failure(ErrorCode.NOT_AUTHORIZED, work_id=work_id, caller=caller)

        entries, error = self._validate(config, work_id, new_splits)
        if error:
            return error

        if work_id not in self.splits:
            return failure(ErrorCode.SPLIT_NOT_FOUND, work_id=work_id)

        self.splits[work_id] = entries
        self._index_shares(work_id, entries)
        record = self.audit.record_update(work_id, self.clock.now(), caller)

        logger.info("Split updated for work %s by %s at %s", work_id, caller, record.timestamp)
        return success(
            work_id=work_id,
            owner=caller,
            splits=[entry.to_dict() for entry in entries],
            update=record.to_dict(),
        )

    def _index_shares(self, work_id: int, entries: list[SplitEntry]) -> None:
        for entry in entries:
            self.share_index[(work_id, entry.recipient)] = entry.share

    # =========================================================================
    # Reads
    # =========================================================================

    def has_split(self, work_id: int) -> bool:
        return work_id in self.splits

    def get_split(self, work_id: int) -> list[SplitEntry] | None:
        """Copy of the split of a work, or None if undefined."""
        entries = self.splits.get(work_id)
        if entries is None:
            return None
        return list(entries)

    def get_owner(self, work_id: int) -> str | None:
        return self.owners.get(work_id)

    def get_share(self, work_id: int, recipient: str) -> int | None:
        """Share recorded for a recipient, including recipients dropped by an update."""
        return self.share_index.get((work_id, recipient))

    def get_update_record(self, work_id: int) -> UpdateRecord | None:
        return self.audit.get_update_record(work_id)

    def get_work_ids(self) -> list[int]:
        """All works with a defined split, in ascending order."""
        return sorted(self.splits)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary. Share index keys are flattened to triples."""
        return {
            "splits": {
                str(work_id): [entry.to_dict() for entry in entries]
                for work_id, entries in self.splits.items()
            },
            "owners": {str(work_id): owner for work_id, owner in self.owners.items()},
            "share_index": [
                [work_id, recipient, share]
                for (work_id, recipient), share in self.share_index.items()
            ],
        }

    def load_dict(self, data: dict[str, Any]) -> None:
        """Replace registry contents with data produced by ``to_dict``."""
        self.splits = {
            int(work_id): [SplitEntry(recipient=e["recipient"], share=int(e["share"])) for e in entries]
            for work_id, entries in data.get("splits", {}).items()
        }
        self.owners = {int(work_id): owner for work_id, owner in data.get("owners", {}).items()}
        self.share_index = {
            (int(work_id), recipient): int(share)
            for work_id, recipient, share in data.get("share_index", [])
        }
