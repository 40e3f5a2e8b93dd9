import os
from dataclasses import dataclass, asdict
from typing import Mapping, Optional


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ApprovalRules:
    """Timing and identity rules for vault transactions"""

    # Durations measured from proposal time, in seconds
    approval_window: int = 86_400  # ~1 day
    timelock_period: int = 3_600  # ~1 hour

    # Identifier policy: re-derive colliding ids with a salt instead of failing
    disambiguate_ids: bool = True

    # Reject proposers/approvers outside the owner set
    enforce_owner_membership: bool = True

    def __post_init__(self):
        if self.approval_window < 0:
            raise ValueError("Approval window must be non-negative")
        if self.timelock_period < 0:
            raise ValueError("Timelock period must be non-negative")

    @classmethod
    def standard(cls) -> 'ApprovalRules':
        """Create standard approval rules"""
        return cls()

    @classmethod
    def strict(cls) -> 'ApprovalRules':
        """Create strict approval rules"""
        return cls(
            approval_window=3_600,  # ~1 hour
            timelock_period=600,  # ~10 minutes
            disambiguate_ids=False,
            enforce_owner_membership=True
        )

    @classmethod
    def from_dict(cls, data: Mapping) -> 'ApprovalRules':
        """Build rules from a mapping, ignoring unknown keys"""
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ApprovalRules':
        """Build rules from VAULT_* environment variables"""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            approval_window=int(env.get("VAULT_APPROVAL_WINDOW", defaults.approval_window)),
            timelock_period=int(env.get("VAULT_TIMELOCK_PERIOD", defaults.timelock_period)),
            disambiguate_ids=_parse_bool(env.get("VAULT_DISAMBIGUATE_IDS", str(defaults.disambiguate_ids))),
            enforce_owner_membership=_parse_bool(env.get("VAULT_ENFORCE_OWNERS", str(defaults.enforce_owner_membership)))
        )

    def approval_deadline(self, proposed_at: int) -> int:
        return proposed_at + self.approval_window

    def timelock_deadline(self, proposed_at: int) -> int:
        return proposed_at + self.timelock_period

    def window_lapsed(self, proposed_at: int, now: int) -> bool:
        """Approval window closes strictly after the deadline"""
        return now > self.approval_deadline(proposed_at)

    def timelock_elapsed(self, proposed_at: int, now: int) -> bool:
        """Timelock is satisfied at the deadline itself"""
        return now >= self.timelock_deadline(proposed_at)

    def to_dict(self) -> dict:
        return asdict(self)
