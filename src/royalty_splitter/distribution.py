"""
Royalty Splitter - Distribution Engine

Splits one incoming payment across the recipients of a registered split:

    payout(entry) = floor(amount * entry.share / basis_points)

Payouts are computed for every entry before any value moves. If any payout
rounds down to zero the whole distribution is rejected. Transfers are then
applied in split order; a transfer refused by the funds service unwinds the
transfers already applied, so balances change for all recipients or none.

The floor-division remainder ("dust") is never transferred and stays with
the payer.
"""

import logging
from dataclasses import dataclass
from typing import Any

from .config import GlobalConfig, is_int
from .errors import ErrorCode, Result, failure, success
from .funds import FundsService
from .registry import SplitEntry, SplitRegistry

logger = logging.getLogger(__name__)

# Products above the unsigned 128-bit range are rejected rather than
# silently accepted, so results stay reproducible on fixed-width ledgers.
MAX_UINT128 = 2**128 - 1


@dataclass(frozen=True)
class Payout:
    """Amount owed to one recipient for one distribution."""

    recipient: str
    share: int
    amount: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"recipient": self.recipient, "share": self.share, "amount": self.amount}


def compute_payouts(
    entries: list[SplitEntry],
    amount: int,
    basis_points: int,
) -> tuple[list[Payout] | None, Result | None]:
    """
    Compute the per-recipient payouts for a payment.

    Returns:
        Tuple of (payouts, error); exactly one of them is None
    """
    payouts = []
    for entry in entries:
        product = amount * entry.share
        if product > MAX_UINT128:
            return None, failure(
                ErrorCode.ARITHMETIC_OVERFLOW,
                recipient=entry.recipient,
                amount=amount,
                share=entry.share,
            )

        payout = product // basis_points
        if payout <= 0:
            return None, failure(
                ErrorCode.ARITHMETIC_UNDERFLOW,
                recipient=entry.recipient,
                amount=amount,
                share=entry.share,
            )

        payouts.append(Payout(recipient=entry.recipient, share=entry.share, amount=payout))
    return payouts, None


class DistributionEngine:
    """Applies a registered split to incoming payments."""

    def __init__(self, registry: SplitRegistry, funds: FundsService):
        self.registry = registry
        self.funds = funds

    def _prepare(
        self,
        config: GlobalConfig,
        work_id: Any,
        amount: Any,
    ) -> tuple[list[SplitEntry] | None, Result | None]:
        if not is_int(work_id) or work_id <= 0:
            return None, failure(ErrorCode.INVALID_WORK_ID, work_id=work_id)

        if not is_int(amount) or amount <= 0:
            return None, failure(ErrorCode.INVALID_AMOUNT, amount=amount)

        entries = self.registry.get_split(work_id)
        if entries is None:
            return None, failure(ErrorCode.SPLIT_NOT_FOUND, work_id=work_id)

        return entries, None

    def preview(self, config: GlobalConfig, work_id: int, amount: int) -> Result:
        """
        Quote a distribution without moving funds.

        Runs the same validation and arithmetic as ``distribute`` except for
        the pause flag and the payer balance check.
        """
        entries, error = self._prepare(config, work_id, amount)
        if error:
            return error

        payouts, error = compute_payouts(entries, amount, config.basis_points)
        if error:
            return error

        return success(**self._summary(work_id, amount, payouts))

    def distribute(
        self,
        config: GlobalConfig,
        caller: str,
        work_id: int,
        amount: int,
    ) -> Result:
        """
        Distribute a payment from caller across the split of a work.

        Args:
            config: Current global configuration
            caller: Paying identity
            work_id: Work whose split is applied
            amount: Positive payment amount

        Returns:
            Tuple of (success, result) where result["payouts"] lists the
            amounts in split order
        """
        if config.paused:
            return failure(ErrorCode.PAUSED)

        entries, error = self._prepare(config, work_id, amount)
        if error:
            return error

        balance = self.funds.balance_of(caller)
        if balance < amount:
            return failure(ErrorCode.INSUFFICIENT_FUNDS, balance=balance, amount=amount)

        payouts, error = compute_payouts(entries, amount, config.basis_points)
        if error:
            return error

        applied: list[Payout] = []
        for payout in payouts:
            if not self.funds.transfer(caller, payout.recipient, payout.amount):
                logger.error(
                    "Transfer of %s to %s failed for work %s; unwinding %d transfers",
                    payout.amount, payout.recipient, work_id, len(applied),
                )
                self._unwind(caller, applied)
                return failure(
                    ErrorCode.INSUFFICIENT_FUNDS,
                    recipient=payout.recipient,
                    amount=payout.amount,
                )
            applied.append(payout)

        summary = self._summary(work_id, amount, payouts)
        logger.info(
            "Distributed %s of %s for work %s across %d recipients (dust %s)",
            summary["total_distributed"], amount, work_id, len(payouts), summary["dust"],
        )
        return success(payer=caller, **summary)

    def _unwind(self, caller: str, applied: list[Payout]) -> None:
        """Reverse applied transfers, newest first."""
        for payout in reversed(applied):
            if not self.funds.transfer(payout.recipient, caller, payout.amount):
                # Nothing further can be done here; the funds service is inconsistent
                logger.critical(
                    "Could not reverse transfer of %s from %s back to %s",
                    payout.amount, payout.recipient, caller,
                )

    @staticmethod
    def _summary(work_id: int, amount: int, payouts: list[Payout]) -> dict[str, Any]:
        total = sum(p.amount for p in payouts)
        return {
            "work_id": work_id,
            "amount": amount,
            "payouts": [p.amount for p in payouts],
            "breakdown": [p.to_dict() for p in payouts],
            "total_distributed": total,
            "dust": amount - total,
        }
