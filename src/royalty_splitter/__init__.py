"""
Royalty Splitter - revenue split ledger and distribution engine

Records revenue-sharing agreements ("splits") for digital works and
distributes incoming payments across their recipients in exact proportion
to recorded basis-point shares.

Core Components:
    - RoyaltySplitter: Service facade (config, registry, engine, audit)
    - SplitRegistry: Write-once split definition and owner-gated updates
    - DistributionEngine: Floor-division payouts with all-or-nothing transfers
    - ConfigStore / GlobalConfig: Admin-gated global tunables

Infrastructure:
    - storage: Pluggable persistence backends (JSON file, memory)
    - monitoring: Structured logging and metrics
    - api: Flask blueprint exposing the operations over HTTP

Usage:
    from royalty_splitter import InMemoryFunds, RoyaltySplitter

    funds = InMemoryFunds({"ST1CALLER": 1_000_000})
    splitter = RoyaltySplitter(funds=funds)
    splitter.define_split("ST1CALLER", 1, [("ST2ARTIST", 6000), ("ST3ARTIST", 4000)])
    ok, result = splitter.distribute("ST1CALLER", 1, 10000)
    # result["payouts"] == [6000, 4000]
"""

__version__ = "0.1.0"

from .audit import AuditEvent, AuditTrail, UpdateRecord
from .clock import BlockHeightClock, Clock, UnixClock
from .config import NULL_PRINCIPAL, ConfigStore, GlobalConfig
from .distribution import MAX_UINT128, DistributionEngine, Payout, compute_payouts
from .errors import ErrorCode, Result
from .funds import FundsService, InMemoryFunds
from .registry import SplitEntry, SplitRegistry
from .sequencer import WorkIdSequencer
from .splitter import RoyaltySplitter

__all__ = [
    "MAX_UINT128",
    "NULL_PRINCIPAL",
    "AuditEvent",
    "AuditTrail",
    "BlockHeightClock",
    "Clock",
    "ConfigStore",
    "DistributionEngine",
    "ErrorCode",
    "FundsService",
    "GlobalConfig",
    "InMemoryFunds",
    "Payout",
    "Result",
    "RoyaltySplitter",
    "SplitEntry",
    "SplitRegistry",
    "UnixClock",
    "UpdateRecord",
    "WorkIdSequencer",
    "compute_payouts",
]
