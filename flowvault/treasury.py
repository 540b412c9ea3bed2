"""Movement of funds into and out of the vault's custody."""

import logging

from flowvault.amounts import checked_sub
from flowvault.exceptions import InsufficientBalanceError

logger = logging.getLogger(__name__)


class Treasury:
    """External funds rail used by the vault.

    ``receive`` pulls an attached amount into custody; ``pay`` sends funds
    out of custody to an account.
    """

    def receive(self, sender: str, amount: int) -> None:
        raise NotImplementedError

    def pay(self, recipient: str, amount: int) -> None:
        raise NotImplementedError

    def held(self) -> int:
        """Funds currently held in custody."""
        raise NotImplementedError


class InMemoryTreasury(Treasury):
    """Treasury that keeps custody and payouts in process memory."""

    def __init__(self) -> None:
        self.total_received = 0
        self.total_paid_out = 0
        self.payouts: dict[str, int] = {}
        self._held = 0

    def receive(self, sender: str, amount: int) -> None:
        self._held += amount
        self.total_received += amount

    def pay(self, recipient: str, amount: int) -> None:
        self._held = checked_sub(self._held, amount, InsufficientBalanceError)
        self.total_paid_out += amount
        self.payouts[recipient] = self.payouts.get(recipient, 0) + amount
        logger.debug("Paid %d to %s", amount, recipient)

    def held(self) -> int:
        return self._held

    def paid_to(self, recipient: str) -> int:
        return self.payouts.get(recipient, 0)
