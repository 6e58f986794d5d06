"""
Audit Event Contracts

Immutable records describing what the synchronization layer did to a graph.
These are produced by the container and property stores and consumed by the
observability layer.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple


class AuditEventType(Enum):
    """Explicit audit event types."""
    MATERIALIZE = "materialize"
    REFRESH_DROP = "refresh_drop"
    DUPLICATE_MERGE = "duplicate_merge"
    IDENTIFIER_ALLOCATED = "identifier_allocated"
    CLONE_FAILURE = "clone_failure"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: datetime
    action: str
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def __post_init__(self):
        # All timestamps are UTC
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, 'timestamp', self.timestamp.replace(tzinfo=timezone.utc))

    def get_metadata(self, key: str) -> Optional[str]:
        for k, v in self.metadata:
            if k == key:
                return v
        return None
