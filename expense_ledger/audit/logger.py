"""
Audit Logger

DESIGN DECISION: Every ledger operation is logged as a structured event.
This provides:
1. Traceability of every create and list call
2. Debugging capability when a storage fault is reported
3. A record of duplicate submissions resolved by idempotency

The audit logger never raises: a failure to log must not fail the request.
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """
    Route structlog output through the standard library at the given level.

    structlog filters by the stdlib level at call time, so calling this
    again changes the level of loggers that already exist.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(log_level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Writes every AuditEvent to the structured log, at a level that
    follows the event severity.
    """

    def __init__(self, logger_name: str = "expense_ledger.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Last resort; the request must not fail because logging did
            print(f"WARNING: Failed to write audit event {event.event_id}: {e}", file=sys.stderr)
            return False

        return True

    def log_expense_created(
        self,
        expense_id: str,
        amount: int,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a newly stored expense."""
        self.log(AuditEventBuilder.expense_created(
            expense_id=expense_id,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        ))

    def log_duplicate_resolved(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a creation call answered with the existing record."""
        self.log(AuditEventBuilder.duplicate_resolved(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        reason: str,
        issues: list[dict],
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected creation request."""
        self.log(AuditEventBuilder.validation_failed(
            reason=reason,
            issues=issues,
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    def log_expenses_listed(
        self,
        filters: dict,
        sort: str,
        result_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a list query."""
        self.log(AuditEventBuilder.expenses_listed(
            filters=filters,
            sort=sort,
            result_count=result_count,
            correlation_id=correlation_id,
        ))

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a storage fault."""
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through all
    subsequent operations.
    """
    return uuid4()
