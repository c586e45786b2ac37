"""
services/payment_rail.py — Payment rail collaborators.

The ledger never holds funds. settle_debt asks a PaymentRail to move value
from the debtor to the creditor and only records the settlement once the rail
confirms.

Contract:
  transfer(sender, recipient, amount) -> bool
    True   the transfer happened, atomically and in full
    False  the rail declined; nothing moved
    raises PaymentRailError when the rail itself errored; nothing moved

Retry policy belongs to the rail or the caller. The ledger never retries.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict

logger = logging.getLogger(__name__)


class PaymentRailError(Exception):
    """The rail could not complete a transfer (network, custody, etc.)."""


class PaymentRail(ABC):

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Moves `amount` units from `sender` to `recipient`."""


class ApprovingPaymentRail(PaymentRail):
    """
    Accepts every transfer without moving anything.

    Useful when settlement happens out of band (cash, bank app) and the
    ledger only records it.
    """

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        logger.debug("approving transfer %s -> %s of %d", sender, recipient, amount)
        return True


class TokenPaymentRail(PaymentRail):
    """
    In-process token wallets.

    Each member holds a token balance. Tokens are created with mint() and
    moved by transfer(), which declines when the sender cannot cover the
    amount. All methods are thread-safe.
    """

    def __init__(self, initial_balances: dict[str, int] | None = None) -> None:
        self._lock = threading.Lock()
        self._wallets: dict[str, int] = defaultdict(int)
        for member, amount in (initial_balances or {}).items():
            self.mint(member, amount)

    def mint(self, member: str, amount: int) -> int:
        """Credits `amount` new tokens to `member`. Returns the new balance."""
        if amount <= 0:
            raise ValueError("Mint amount must be greater than zero.")
        with self._lock:
            self._wallets[member] += amount
            return self._wallets[member]

    def balance_of(self, member: str) -> int:
        with self._lock:
            return self._wallets.get(member, 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if amount <= 0:
            raise PaymentRailError("Transfer amount must be greater than zero.")

        with self._lock:
            available = self._wallets.get(sender, 0)
            if available < amount:
                logger.warning(
                    "token transfer declined: %s holds %d, needs %d",
                    sender,
                    available,
                    amount,
                )
                return False

            self._wallets[sender] = available - amount
            self._wallets[recipient] += amount
            return True


_RAILS_BY_NAME: dict[str, type[PaymentRail]] = {
    "approve": ApprovingPaymentRail,
    "token":   TokenPaymentRail,
}


def build_payment_rail(name: str) -> PaymentRail:
    """
    Builds the rail named by the PAYMENT_RAIL config value.

    Raises ValueError for unknown names so a typo fails at startup, not at
    the first settlement.
    """
    rail_cls = _RAILS_BY_NAME.get(name)
    if rail_cls is None:
        raise ValueError(
            f"Unknown PAYMENT_RAIL {name!r}. "
            f"Valid values: {', '.join(sorted(_RAILS_BY_NAME))}."
        )
    return rail_cls()
