"""
Ledger Event Models for Home Budgeting

Every significant thing that happens to the ledger is described by a
LedgerEvent. This provides:
1. Traceability of transforms, imports and persistence
2. Debugging information when a write or a load goes wrong
3. A channel through which persistence failures are reported

DESIGN DECISION: Events are append-only. They describe what happened
to a snapshot; they never carry the snapshot itself.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """Types of events we record."""
    # Loading
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_LOAD_FAILED = "snapshot_load_failed"

    # Mutation
    TRANSFORM_APPLIED = "transform_applied"
    SNAPSHOT_IMPORTED = "snapshot_imported"
    IMPORT_REJECTED = "import_rejected"

    # Persistence
    SNAPSHOT_PERSISTED = "snapshot_persisted"
    PERSIST_FAILED = "persist_failed"

    # Observation
    SUBSCRIBER_FAILED = "subscriber_failed"


class LedgerEventSeverity(str, Enum):
    """Severity level for ledger events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single ledger event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: LedgerEventType
    severity: LedgerEventSeverity = LedgerEventSeverity.INFO

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build ledger events with common patterns.

    Usage:
        event = LedgerEventBuilder.persist_failed(sequence=3, error_message="disk full")
        audit_logger.log(event)
    """

    @staticmethod
    def snapshot_loaded(months: int, source: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SNAPSHOT_LOADED,
            severity=LedgerEventSeverity.DEBUG,
            description=f"Ledger loaded from {source}",
            details={"months": months, "source": source},
        )

    @staticmethod
    def snapshot_load_failed(source: str, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SNAPSHOT_LOAD_FAILED,
            severity=LedgerEventSeverity.WARNING,
            description=f"Ledger at {source} unreadable, starting from an empty ledger",
            error_message=error_message,
            details={"source": source},
        )

    @staticmethod
    def transform_applied(sequence: int, changed: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSFORM_APPLIED,
            severity=LedgerEventSeverity.DEBUG,
            description=f"Transform #{sequence} applied",
            details={"sequence": sequence, "changed": changed},
        )

    @staticmethod
    def snapshot_imported(month_keys: list[str], notes: int, desc_list: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SNAPSHOT_IMPORTED,
            description=f"Imported snapshot with {len(month_keys)} month(s)",
            details={
                "month_keys": month_keys,
                "notes": notes,
                "desc_list": desc_list,
            },
        )

    @staticmethod
    def import_rejected(kind: Optional[str], reason: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.IMPORT_REJECTED,
            severity=LedgerEventSeverity.WARNING,
            description=f"Import rejected: {reason}",
            details={"kind": kind},
        )

    @staticmethod
    def snapshot_persisted(sequence: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SNAPSHOT_PERSISTED,
            severity=LedgerEventSeverity.DEBUG,
            description=f"Snapshot of transform #{sequence} persisted",
            details={"sequence": sequence},
        )

    @staticmethod
    def persist_failed(sequence: int, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.PERSIST_FAILED,
            severity=LedgerEventSeverity.ERROR,
            description=f"Snapshot of transform #{sequence} could not be persisted",
            error_message=error_message,
            details={"sequence": sequence},
        )

    @staticmethod
    def subscriber_failed(subscriber: str, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SUBSCRIBER_FAILED,
            severity=LedgerEventSeverity.ERROR,
            description=f"Snapshot subscriber {subscriber} raised",
            error_message=error_message,
            details={"subscriber": subscriber},
        )
