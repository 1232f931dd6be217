"""
Data Models Package

This package contains all Pydantic models used in the Expense Ledger.
All data flowing through the system must conform to these schemas.
"""

from expense_ledger.models.expense import (
    ALL_SENTINEL,
    MAX_AMOUNT,
    SUGGESTED_CATEGORIES,
    ExpenseDraft,
    ExpenseFilters,
    ExpenseRecord,
    RejectionReason,
    ValidationIssue,
    ValidationResult,
    WriteOutcome,
    parse_calendar_date,
)
from expense_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "ALL_SENTINEL",
    "MAX_AMOUNT",
    "SUGGESTED_CATEGORIES",
    "ExpenseDraft",
    "ExpenseFilters",
    "ExpenseRecord",
    "RejectionReason",
    "ValidationIssue",
    "ValidationResult",
    "WriteOutcome",
    "parse_calendar_date",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
