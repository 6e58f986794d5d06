"""
Observability & Audit Layer

RESPONSIBILITY: Record what the synchronization layer did to its graph
ALLOWED INPUTS: AuditLogEntry values from the container and property stores
OUTPUTS: Filtered, read-only views of the recorded entries

WHAT THIS LAYER MUST NOT DO:
============================
- Modify graph state or entity state
- Block or alter the operation being recorded
- Make decisions based on logged data

BOUNDARY ENFORCEMENT:
=====================
- Entries are immutable; the collector is append-only
- Disabled collectors accept and discard entries
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple
import logging

from ..contracts.events import AuditEventType, AuditLogEntry

logger = logging.getLogger(__name__)


class AuditLog:
    """
    Append-only collector for synchronization audit entries.

    One collector lives on each container. Every entry is also mirrored to
    the module logger at DEBUG level.
    """

    def __init__(self, enabled: bool = True):
        self._enabled = enabled
        self._entries: List[AuditLogEntry] = []
        self._sequence: int = 0
        self._reported: Set[Tuple[str, str, str]] = set()

    def record(
        self,
        event_type: AuditEventType,
        action: str,
        entity_id: Optional[str] = None,
        metadata: Tuple[Tuple[str, str], ...] = ()
    ) -> Optional[AuditLogEntry]:
        """Append an entry. Returns None when the collector is disabled."""
        if not self._enabled:
            return None

        self._sequence += 1
        entry = AuditLogEntry(
            entry_id=f"audit_{self._sequence:06d}",
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            action=action,
            entity_id=entity_id,
            metadata=tuple(metadata)
        )
        self._entries.append(entry)
        logger.debug("%s %s entity=%s %s", event_type.value, action, entity_id, dict(metadata))
        return entry

    def record_drop(self, entity_id: str, name: str, value: str, reason: str) -> bool:
        """
        Record an unreadable property value once.

        Returns False if this (entity, property, value) was already reported.
        """
        key = (entity_id, name, value)
        if key in self._reported:
            return False
        self._reported.add(key)
        self.record(
            AuditEventType.REFRESH_DROP,
            action=f"drop {name}",
            entity_id=entity_id,
            metadata=(("value", value), ("reason", reason))
        )
        return True

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered by type."""
        if event_type is None:
            return list(self._entries)
        return [e for e in self._entries if e.event_type == event_type]

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def entry_count(self) -> int:
        return len(self._entries)
