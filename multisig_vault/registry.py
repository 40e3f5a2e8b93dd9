"""
Transaction registry: canonical records, approval tallies and the lock ledger
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from .errors import DuplicateId, InsufficientBalance, NotFound
from .events import EventKind, EventSink, VaultEvent

logger = logging.getLogger(__name__)


class TransactionStatus(Enum):
    PENDING = "pending"
    EXECUTED = "executed"
    EXPIRED = "expired"


@dataclass
class Transaction:
    """A proposed outbound transfer"""
    id: str
    proposer: str
    recipient: str
    amount: int
    proposed_at: int
    status: TransactionStatus = TransactionStatus.PENDING
    approvals: Set[str] = field(default_factory=set)

    @property
    def executed(self) -> bool:
        return self.status == TransactionStatus.EXECUTED

    @property
    def live(self) -> bool:
        """Expired ids can no longer be approved or executed"""
        return self.status != TransactionStatus.EXPIRED

    @property
    def approval_count(self) -> int:
        return len(self.approvals)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'proposer': self.proposer,
            'recipient': self.recipient,
            'amount': self.amount,
            'proposed_at': self.proposed_at,
            'status': self.status.value,
            'executed': self.executed,
            'approval_count': self.approval_count,
            'approvers': sorted(self.approvals)
        }


class TransactionRegistry:
    """Owns every transaction record and the running locked total"""

    def __init__(self, sink: Optional[EventSink] = None):
        self._transactions: Dict[str, Transaction] = {}
        self._history: Dict[str, List[str]] = {}
        self._locked_amount = 0
        self.sink = sink

    @property
    def locked_amount(self) -> int:
        return self._locked_amount

    def reserve(self, tx_id: str, proposer: str, recipient: str, amount: int,
                now: int, available_balance: int) -> Transaction:
        """Create a pending record and lock its amount"""
        if amount > available_balance:
            raise InsufficientBalance(
                f"Insufficient balance: need {amount}, have {available_balance}"
            )
        if tx_id in self._transactions:
            raise DuplicateId(f"Transaction {tx_id} already exists", tx_id)

        tx = Transaction(
            id=tx_id,
            proposer=proposer,
            recipient=recipient,
            amount=amount,
            proposed_at=now
        )
        self._transactions[tx_id] = tx
        self._locked_amount += amount
        self._history.setdefault(proposer, []).append(tx_id)

        self._emit(EventKind.CREATED, tx_id, {
            'proposer': proposer,
            'recipient': recipient,
            'amount': amount,
            'proposed_at': now
        })
        logger.info("Reserved %d for transaction %s (locked total %d)",
                    amount, tx_id, self._locked_amount)
        return tx

    def contains(self, tx_id: str) -> bool:
        return tx_id in self._transactions

    def find(self, tx_id: str) -> Optional[Transaction]:
        return self._transactions.get(tx_id)

    def get(self, tx_id: str) -> Transaction:
        tx = self._transactions.get(tx_id)
        if tx is None:
            raise NotFound(f"Transaction {tx_id} not found", tx_id)
        return tx

    def has_approved(self, tx_id: str, owner: str) -> bool:
        tx = self._transactions.get(tx_id)
        return tx is not None and owner in tx.approvals

    def approval_count(self, tx_id: str) -> int:
        return self.get(tx_id).approval_count

    def record_approval(self, tx_id: str, owner: str) -> int:
        """Set the (owner, id) flag and return the new tally"""
        tx = self.get(tx_id)
        tx.approvals.add(owner)
        return tx.approval_count

    def release_lock(self, tx_id: str) -> None:
        """Must be called exactly once per transaction"""
        tx = self.get(tx_id)
        if tx.amount > self._locked_amount:
            raise RuntimeError(f"Lock ledger underflow releasing {tx_id}")
        self._locked_amount -= tx.amount

    def mark_executed(self, tx_id: str) -> None:
        self.get(tx_id).status = TransactionStatus.EXECUTED

    def mark_dead(self, tx_id: str) -> None:
        self.get(tx_id).status = TransactionStatus.EXPIRED

    def history(self, proposer: str) -> List[str]:
        return list(self._history.get(proposer, []))

    def pending(self) -> List[Transaction]:
        """Pending records in proposal order"""
        return [tx for tx in self._transactions.values()
                if tx.status == TransactionStatus.PENDING]

    def all(self) -> List[Transaction]:
        return list(self._transactions.values())

    def _emit(self, kind: EventKind, tx_id: Optional[str], fields: dict) -> None:
        if self.sink is not None:
            self.sink.emit(VaultEvent(kind, tx_id, fields))
