"""
Error taxonomy for vault transaction lifecycle failures
"""

from typing import Optional


class VaultError(ValueError):
    """Base class for every vault failure"""

    code = "vault_error"

    def __init__(self, message: str, transaction_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.transaction_id = transaction_id

    def as_dict(self) -> dict:
        """Serialize error for API responses"""
        return {
            'error': self.message,
            'code': self.code,
            'transaction_id': self.transaction_id
        }


class InvalidAmount(VaultError):
    code = "invalid_amount"


class NotAnOwner(VaultError):
    code = "not_an_owner"


class InsufficientBalance(VaultError):
    code = "insufficient_balance"


class NotFound(VaultError):
    """Unknown transaction id, or an id that has expired"""
    code = "not_found"


class AlreadyExecuted(VaultError):
    code = "already_executed"


class AlreadyApproved(VaultError):
    code = "already_approved"


class ApprovalWindowExpired(VaultError):
    """Raised after the transaction has been expired and its lock released"""
    code = "approval_window_expired"


class ApprovalWindowNotElapsed(VaultError):
    code = "approval_window_not_elapsed"


class TimelockNotElapsed(VaultError):
    code = "timelock_not_elapsed"


class QuorumNotMet(VaultError):
    code = "quorum_not_met"


class DuplicateId(VaultError):
    code = "duplicate_id"


class TransferFailed(VaultError):
    """Raised after the record was already marked executed; needs manual repair"""
    code = "transfer_failed"


class InvalidTimestamp(VaultError):
    code = "invalid_timestamp"


class InvalidRecipient(VaultError):
    code = "invalid_recipient"
