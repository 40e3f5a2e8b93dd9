import hashlib
import logging
from dataclasses import dataclass
from typing import List, Optional

from .custody import InMemoryCustody, ValueCustody
from .engine import ApprovalEngine, ApprovalOutcome
from .events import EventKind, EventLog, EventSink, VaultEvent
from .registry import Transaction, TransactionRegistry
from .rules import ApprovalRules

logger = logging.getLogger(__name__)


@dataclass
class VaultOwner:
    """Represents an owner of the multi-party vault"""
    pubkey: str  # identity, usually a compressed public key (hex)
    label: str = ""

    def __post_init__(self):
        if not self.pubkey:
            raise ValueError("Owner identity must not be empty")


class MultiSigVault:
    """High-level interface for timelocked multi-party vault operations"""

    def __init__(self, owners: List[VaultOwner], rules: Optional[ApprovalRules] = None,
                 custody: Optional[ValueCustody] = None, sink: Optional[EventSink] = None):
        if not owners:
            raise ValueError("Vault needs at least one owner")
        identities = [o.pubkey for o in owners]
        if len(set(identities)) != len(identities):
            raise ValueError("Duplicate owners not allowed")

        self.owners = list(owners)
        self.rules = rules or ApprovalRules.standard()
        self.custody = custody if custody is not None else InMemoryCustody()
        self.sink = sink if sink is not None else EventLog()
        self.vault_id = self._generate_vault_id()

        self.registry = TransactionRegistry(self.sink)
        self.engine = ApprovalEngine(identities, self.rules, self.registry,
                                     self.custody, self.sink)

    def _generate_vault_id(self) -> str:
        """Generate deterministic vault ID from owners"""
        hasher = hashlib.sha256()
        hasher.update(b"MULTISIG_VAULT_V1")

        for owner in sorted(self.owners, key=lambda o: o.pubkey):
            hasher.update(owner.pubkey.encode())

        return hasher.hexdigest()

    def deposit(self, amount: int) -> int:
        """Receive funds; only supported for custody that accepts deposits"""
        if not hasattr(self.custody, "deposit"):
            raise TypeError(f"{type(self.custody).__name__} does not accept deposits")
        with self.engine.lock:
            balance = self.custody.deposit(amount)
            self.sink.emit(VaultEvent(EventKind.DEPOSIT, None, {
                'amount': amount,
                'balance': balance
            }))
        logger.info("Vault %s received %d", self.vault_id[:8], amount)
        return balance

    # Lifecycle

    def propose(self, recipient: str, amount: int, proposer: str, now: int) -> str:
        return self.engine.propose(recipient, amount, proposer, now)

    def approve(self, tx_id: str, approver: str, now: int) -> ApprovalOutcome:
        return self.engine.approve(tx_id, approver, now)

    def execute(self, tx_id: str, now: int) -> Transaction:
        return self.engine.execute(tx_id, now)

    def expire(self, tx_id: str, now: int) -> Transaction:
        return self.engine.expire(tx_id, now)

    def sweep(self, now: int) -> List[str]:
        return self.engine.sweep(now)

    # Queries

    @property
    def quorum(self) -> int:
        return self.engine.quorum

    @property
    def available_balance(self) -> int:
        return self.engine.available_balance

    @property
    def locked_amount(self) -> int:
        return self.registry.locked_amount

    @property
    def total_balance(self) -> int:
        return self.custody.total_balance

    def is_owner(self, pubkey: str) -> bool:
        """Check if pubkey is a vault owner"""
        return any(o.pubkey == pubkey for o in self.owners)

    def get_transaction(self, tx_id: str) -> Transaction:
        return self.registry.get(tx_id)

    def get_history(self, proposer: str) -> List[str]:
        return self.registry.history(proposer)

    def get_approval_count(self, tx_id: str) -> int:
        return self.registry.approval_count(tx_id)

    def has_approved(self, tx_id: str, owner: str) -> bool:
        return self.registry.has_approved(tx_id, owner)

    def pending_transactions(self) -> List[Transaction]:
        return self.registry.pending()

    def to_dict(self) -> dict:
        """Serialize vault summary"""
        return {
            'vault_id': self.vault_id,
            'owners': [{'pubkey': o.pubkey, 'label': o.label} for o in self.owners],
            'quorum': self.quorum,
            'rules': self.rules.to_dict(),
            'total_balance': self.total_balance,
            'locked_amount': self.locked_amount,
            'available_balance': self.available_balance,
            'pending': [tx.id for tx in self.pending_transactions()]
        }
