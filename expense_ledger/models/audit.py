"""
Audit Models for Expense Ledger

Every ledger operation (create, duplicate resolution, rejection, listing,
storage failure) is described by an AuditEvent and written to the
structured log.

DESIGN DECISION: Events are plain data. Where they end up is decided by
the AuditLogger, not by the code that builds them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Creation path
    EXPENSE_CREATED = "expense_created"
    DUPLICATE_RESOLVED = "duplicate_resolved"
    VALIDATION_FAILED = "validation_failed"

    # Query path
    EXPENSES_LISTED = "expenses_listed"

    # Failures
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # The expense id, when the event concerns a single record
    entity_id: Optional[str] = None
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events belonging to one request"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
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
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense_id, amount, category)
        event = AuditEventBuilder.expenses_listed(filters, sort, count)
    """

    @staticmethod
    def expense_created(
        expense_id: str,
        amount: int,
        category: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense created: {category} {amount}",
            details={
                "amount": amount,
                "category": category,
            },
        )

    @staticmethod
    def duplicate_resolved(
        expense_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DUPLICATE_RESOLVED,
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Duplicate id submitted, returned existing expense",
        )

    @staticmethod
    def validation_failed(
        reason: str,
        issues: list[dict],
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense rejected: {reason}",
            details={
                "reason": reason,
                "issues": issues,
            },
        )

    @staticmethod
    def expenses_listed(
        filters: dict,
        sort: str,
        result_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSES_LISTED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Listed {result_count} expenses",
            details={
                "filters": filters,
                "sort": sort,
                "result_count": result_count,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )
