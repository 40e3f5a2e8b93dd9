"""
Notifications emitted to observers and indexers
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol


class EventKind(Enum):
    DEPOSIT = "deposit"
    CREATED = "created"
    APPROVED = "approved"
    EXECUTED = "executed"
    EXPIRED = "expired"


@dataclass
class VaultEvent:
    """A single lifecycle notification"""
    kind: EventKind
    transaction_id: Optional[str]
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'transaction_id': self.transaction_id,
            **self.fields
        }


class EventSink(Protocol):
    def emit(self, event: VaultEvent) -> None:
        ...


class EventLog:
    """In-memory event sink"""

    def __init__(self):
        self._events = []

    def emit(self, event: VaultEvent) -> None:
        self._events.append(event)

    def events(self, kind: Optional[EventKind] = None,
               transaction_id: Optional[str] = None) -> List[VaultEvent]:
        """Get recorded events, optionally filtered"""
        return [
            e for e in self._events
            if (kind is None or e.kind == kind)
            and (transaction_id is None or e.transaction_id == transaction_id)
        ]

    def __len__(self) -> int:
        return len(self._events)
