"""
Approval/execution engine driving the transaction lifecycle

Every call is given the current time by its caller; the engine never reads a
clock, so its behaviour is a pure function of call order and timestamps.
Expiry is lazy: a transaction whose approval window has closed keeps its funds
locked until an approve/execute/expire call or a sweep observes it.
"""

import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .custody import ValueCustody
from .errors import (
    AlreadyApproved, AlreadyExecuted, ApprovalWindowExpired,
    ApprovalWindowNotElapsed, DuplicateId, InvalidAmount, InvalidRecipient,
    InvalidTimestamp, NotAnOwner, NotFound, QuorumNotMet, TimelockNotElapsed, TransferFailed,
)
from .events import EventKind, EventSink, VaultEvent
from .registry import Transaction, TransactionRegistry
from .rules import ApprovalRules

logger = logging.getLogger(__name__)

TX_ID_DOMAIN = b"MULTISIG_TX_V1"
TX_ID_LENGTH = 16  # hex characters


def derive_transaction_id(recipient: str, amount: int, proposed_at: int, salt: int = 0) -> str:
    """Deterministic id from (recipient, amount, proposed_at), truncated SHA-256"""
    hasher = hashlib.sha256()
    hasher.update(TX_ID_DOMAIN)
    # Length-prefixed recipient, decimal integers of any size
    hasher.update(f"{len(recipient)}:{recipient}|{amount}|{proposed_at}".encode())
    if salt:
        hasher.update(f"|{salt}".encode())
    return hasher.hexdigest()[:TX_ID_LENGTH]


def quorum_for(owner_count: int) -> int:
    return owner_count // 2 + 1


def _check_timestamp(now) -> None:
    if isinstance(now, bool) or not isinstance(now, int):
        raise InvalidTimestamp(f"Timestamp must be an integer number of seconds, got {now!r}")


@dataclass
class ApprovalOutcome:
    """Result of a successful approve call"""
    transaction_id: str
    approvals: int
    quorum: int
    executed: bool
    deferred_reason: Optional[str] = None

    @property
    def quorum_reached(self) -> bool:
        return self.approvals >= self.quorum

    def to_dict(self) -> dict:
        return {
            'transaction_id': self.transaction_id,
            'approvals': self.approvals,
            'quorum': self.quorum,
            'quorum_reached': self.quorum_reached,
            'executed': self.executed,
            'deferred_reason': self.deferred_reason
        }


class ApprovalEngine:
    """Enforces quorum and timing rules over a TransactionRegistry"""

    def __init__(self, owners: Iterable[str], rules: ApprovalRules,
                 registry: TransactionRegistry, custody: ValueCustody,
                 sink: Optional[EventSink] = None):
        self.owners = frozenset(owners)
        if not self.owners:
            raise ValueError("Owner set must not be empty")
        self.quorum = quorum_for(len(self.owners))
        self.rules = rules
        self.registry = registry
        self.custody = custody
        self.sink = sink
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Serializes every state change, including custody balance changes"""
        return self._lock

    @property
    def available_balance(self) -> int:
        return self.custody.total_balance - self.registry.locked_amount

    def propose(self, recipient: str, amount: int, proposer: str, now: int) -> str:
        """Reserve funds for a transfer and record the proposer's approval"""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmount(f"Amount must be a positive integer, got {amount!r}")
        if not isinstance(recipient, str) or not recipient:
            raise InvalidRecipient(f"Recipient must be a non-empty string, got {recipient!r}")
        _check_timestamp(now)

        with self._lock:
            self._check_owner(proposer)
            tx_id = self._new_transaction_id(recipient, amount, now)
            self.registry.reserve(tx_id, proposer, recipient, amount, now,
                                  self.available_balance)
            tally = self._record_approval(tx_id, proposer)

            if tally >= self.quorum:
                self._try_auto_execute(tx_id, now)

            return tx_id

    def approve(self, tx_id: str, approver: str, now: int) -> ApprovalOutcome:
        """Record an approval, executing immediately once quorum and timelock allow"""
        _check_timestamp(now)
        with self._lock:
            self._check_owner(approver)
            tx = self._get_live(tx_id)
            if tx.executed:
                raise AlreadyExecuted(f"Transaction {tx_id} already executed", tx_id)
            if approver in tx.approvals:
                raise AlreadyApproved(f"{approver} already approved {tx_id}", tx_id)

            if self.rules.window_lapsed(tx.proposed_at, now):
                self._expire(tx)
                raise ApprovalWindowExpired(
                    f"Approval window for {tx_id} closed at "
                    f"{self.rules.approval_deadline(tx.proposed_at)}", tx_id
                )

            tally = self._record_approval(tx_id, approver)

            executed = False
            deferred_reason = None
            if tally >= self.quorum:
                deferred_reason = self._try_auto_execute(tx_id, now)
                executed = deferred_reason is None

            return ApprovalOutcome(tx_id, tally, self.quorum, executed, deferred_reason)

    def execute(self, tx_id: str, now: int) -> Transaction:
        """Execute a transaction that has quorum and whose timelock has elapsed"""
        _check_timestamp(now)
        with self._lock:
            return self._execute(tx_id, now)

    def expire(self, tx_id: str, now: int) -> Transaction:
        """Explicitly expire a transaction whose window closed without quorum"""
        _check_timestamp(now)
        with self._lock:
            tx = self._get_live(tx_id)
            if tx.executed:
                raise AlreadyExecuted(f"Transaction {tx_id} already executed", tx_id)
            if not self._is_stale(tx, now):
                raise ApprovalWindowNotElapsed(
                    f"Transaction {tx_id} is still eligible for execution", tx_id
                )
            self._expire(tx)
            return tx

    def sweep(self, now: int) -> List[str]:
        """Expire every pending transaction whose window closed without quorum"""
        _check_timestamp(now)
        with self._lock:
            expired = []
            for tx in self.registry.pending():
                if self._is_stale(tx, now):
                    self._expire(tx)
                    expired.append(tx.id)
            if expired:
                logger.info("Sweep at %d expired %d transaction(s)", now, len(expired))
            return expired

    def _execute(self, tx_id: str, now: int) -> Transaction:
        tx = self._get_live(tx_id)
        if tx.executed:
            raise AlreadyExecuted(f"Transaction {tx_id} already executed", tx_id)

        if self._is_stale(tx, now):
            self._expire(tx)
            raise ApprovalWindowExpired(
                f"Approval window for {tx_id} closed without quorum", tx_id
            )
        if not self.rules.timelock_elapsed(tx.proposed_at, now):
            remaining = self.rules.timelock_deadline(tx.proposed_at) - now
            raise TimelockNotElapsed(
                f"Timelock for {tx_id}: {remaining} seconds remaining", tx_id
            )
        if tx.approval_count < self.quorum:
            raise QuorumNotMet(
                f"Need {self.quorum} approvals, got {tx.approval_count}", tx_id
            )

        # State flips before the transfer is attempted
        self.registry.release_lock(tx_id)
        self.registry.mark_executed(tx_id)

        if not self.custody.transfer(tx.recipient, tx.amount):
            logger.error("Transfer of %d to %s failed after %s was marked executed",
                         tx.amount, tx.recipient, tx_id)
            raise TransferFailed(
                f"Transfer to {tx.recipient} rejected; {tx_id} is marked executed", tx_id
            )

        self._emit(EventKind.EXECUTED, tx_id, {
            'recipient': tx.recipient,
            'amount': tx.amount,
            'executed_at': now
        })
        logger.info("Executed transaction %s: %d to %s", tx_id, tx.amount, tx.recipient)
        return tx

    def _try_auto_execute(self, tx_id: str, now: int) -> Optional[str]:
        """Returns the deferral reason when the timelock still holds"""
        try:
            self._execute(tx_id, now)
        except TimelockNotElapsed as e:
            logger.debug("Quorum reached for %s but execution deferred: %s", tx_id, e)
            return str(e)
        return None

    def _record_approval(self, tx_id: str, owner: str) -> int:
        tally = self.registry.record_approval(tx_id, owner)
        self._emit(EventKind.APPROVED, tx_id, {
            'approver': owner,
            'approvals': tally
        })
        logger.debug("Approval %d/%d for %s by %s", tally, self.quorum, tx_id, owner)
        return tally

    def _expire(self, tx: Transaction) -> None:
        self.registry.release_lock(tx.id)
        self.registry.mark_dead(tx.id)
        self._emit(EventKind.EXPIRED, tx.id, {
            'recipient': tx.recipient,
            'amount': tx.amount
        })
        logger.info("Expired transaction %s, released %d", tx.id, tx.amount)

    def _is_stale(self, tx: Transaction, now: int) -> bool:
        return (self.rules.window_lapsed(tx.proposed_at, now)
                and tx.approval_count < self.quorum)

    def _get_live(self, tx_id: str) -> Transaction:
        tx = self.registry.get(tx_id)
        if not tx.live:
            raise NotFound(f"Transaction {tx_id} has expired", tx_id)
        return tx

    def _check_owner(self, identity: str) -> None:
        if self.rules.enforce_owner_membership and identity not in self.owners:
            raise NotAnOwner(f"{identity} is not a vault owner")

    def _new_transaction_id(self, recipient: str, amount: int, now: int) -> str:
        tx_id = derive_transaction_id(recipient, amount, now)
        if not self.registry.contains(tx_id):
            return tx_id
        if not self.rules.disambiguate_ids:
            raise DuplicateId(f"Transaction {tx_id} already exists", tx_id)

        salt = 1
        while self.registry.contains(derive_transaction_id(recipient, amount, now, salt)):
            salt += 1
        return derive_transaction_id(recipient, amount, now, salt)

    def _emit(self, kind: EventKind, tx_id: Optional[str], fields: dict) -> None:
        if self.sink is not None:
            self.sink.emit(VaultEvent(kind, tx_id, fields))
