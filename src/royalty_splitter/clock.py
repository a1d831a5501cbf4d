"""
Royalty Splitter - Logical clocks

Supplies the timestamp written into update records. ``BlockHeightClock`` is
advanced explicitly by the host (or by tests); ``UnixClock`` follows wall time.
"""

import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Source of logical timestamps."""

    @abstractmethod
    def now(self) -> int:
        """Current logical timestamp."""
        pass


class BlockHeightClock(Clock):
    """Manually advanced block height."""

    def __init__(self, height: int = 0):
        self.height = height

    def now(self) -> int:
        return self.height

    def advance(self, blocks: int = 1) -> int:
        """Move the height forward and return the new value."""
        if blocks < 0:
            raise ValueError("Block height cannot move backwards")
        self.height += blocks
        return self.height


class UnixClock(Clock):
    """Wall-clock seconds since the epoch."""

    def now(self) -> int:
        return int(time.time())
