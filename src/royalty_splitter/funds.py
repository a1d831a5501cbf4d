"""
Royalty Splitter - Funds transfer service

The balance ledger that actually moves value lives outside the splitter.
This module defines the narrow interface the distribution engine depends on
and an in-memory ledger for tests, local runs and the bundled HTTP API.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class FundsService(ABC):
    """
    Abstract funds-transfer collaborator.

    Implementations report failures through return values; the engine
    decides how to unwind.
    """

    @abstractmethod
    def balance_of(self, identity: str) -> int:
        """
        Available balance of an identity.

        Returns:
            Balance in the smallest currency unit (0 for unknown identities)
        """
        pass

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move amount from sender to recipient.

        Args:
            sender: Identity debited
            recipient: Identity credited
            amount: Positive integer amount

        Returns:
            True if the transfer was applied, False otherwise
        """
        pass

    def get_info(self) -> dict[str, Any]:
        """Get information about the funds service."""
        return {"service_type": self.__class__.__name__}


class InMemoryFunds(FundsService):
    """
    In-memory balance ledger.

    All balances are lost when the process exits. Thread-safe operations.
    """

    def __init__(self, balances: dict[str, int] | None = None):
        self._balances: dict[str, int] = dict(balances or {})
        self._lock = threading.RLock()

    def balance_of(self, identity: str) -> int:
        with self._lock:
            return self._balances.get(identity, 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        with self._lock:
            if amount <= 0:
                return False
            available = self._balances.get(sender, 0)
            if available < amount:
                logger.debug("Transfer of %s from %s refused: balance %s", amount, sender, available)
                return False
            self._balances[sender] = available - amount
            self._balances[recipient] = self._balances.get(recipient, 0) + amount
            return True

    def credit(self, identity: str, amount: int) -> int:
        """Mint amount into an identity's balance and return the new balance."""
        if amount < 0:
            raise ValueError("Credit amount must be non-negative")
        with self._lock:
            self._balances[identity] = self._balances.get(identity, 0) + amount
            return self._balances[identity]

    def balances(self) -> dict[str, int]:
        """Snapshot of all balances."""
        with self._lock:
            return dict(self._balances)

    def get_info(self) -> dict[str, Any]:
        info = super().get_info()
        with self._lock:
            info.update({
                "accounts": len(self._balances),
                "total_balance": sum(self._balances.values()),
            })
        return info
