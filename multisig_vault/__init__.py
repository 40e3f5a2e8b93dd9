"""
Multi-Party Timelocked Vault - quorum-approved custody with fund reservation
"""

from .vault import MultiSigVault, VaultOwner
from .rules import ApprovalRules
from .engine import ApprovalEngine, ApprovalOutcome, derive_transaction_id
from .registry import Transaction, TransactionRegistry, TransactionStatus
from .custody import InMemoryCustody, ValueCustody
from .events import EventKind, EventLog, VaultEvent
from .keys import OwnerKey
from . import errors

__version__ = "0.1.0"
__all__ = [
    "MultiSigVault",
    "VaultOwner",
    "ApprovalRules",
    "ApprovalEngine",
    "ApprovalOutcome",
    "derive_transaction_id",
    "Transaction",
    "TransactionRegistry",
    "TransactionStatus",
    "InMemoryCustody",
    "ValueCustody",
    "EventKind",
    "EventLog",
    "VaultEvent",
    "OwnerKey",
    "errors"
]
