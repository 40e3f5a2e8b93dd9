"""
Value custody collaborators for the vault
"""

import logging
from typing import List, Protocol, Set

logger = logging.getLogger(__name__)


class ValueCustody(Protocol):
    """What the engine needs from whoever actually holds the funds"""

    @property
    def total_balance(self) -> int:
        ...

    def transfer(self, recipient: str, amount: int) -> bool:
        ...


class InMemoryCustody:
    """Custody that keeps the held balance as a plain integer"""

    def __init__(self, initial_balance: int = 0):
        if initial_balance < 0:
            raise ValueError("Initial balance must be non-negative")
        self._balance = initial_balance
        self._rejecting: Set[str] = set()
        self._transfer_history = []

    @property
    def total_balance(self) -> int:
        return self._balance

    def deposit(self, amount: int) -> int:
        """Receive funds into the vault, returns new balance"""
        if amount <= 0:
            raise ValueError("Deposit amount must be positive")
        self._balance += amount
        return self._balance

    def reject_recipient(self, recipient: str) -> None:
        """Make future transfers to recipient fail"""
        self._rejecting.add(recipient)

    def accept_recipient(self, recipient: str) -> None:
        self._rejecting.discard(recipient)

    def transfer(self, recipient: str, amount: int) -> bool:
        if recipient in self._rejecting:
            logger.warning("Recipient %s rejected transfer of %d", recipient, amount)
            return False
        if amount > self._balance:
            logger.warning("Transfer of %d exceeds held balance %d", amount, self._balance)
            return False

        self._balance -= amount
        self._transfer_history.append({
            'recipient': recipient,
            'amount': amount,
            'remaining_balance': self._balance
        })
        return True

    def get_transfer_history(self) -> List[dict]:
        return self._transfer_history.copy()
