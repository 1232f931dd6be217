"""
Core Data Models for Expense Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce the record invariants at runtime (positive integer amounts, real dates)
2. Provide clear validation error messages
3. Be serializable for storage, logging and the HTTP API

DESIGN DECISION: Amounts are integers in minor currency units (e.g. cents).
No float or Decimal money arithmetic happens anywhere in the ledger.
"""

import datetime as dt
import re
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# CONSTANTS
# =============================================================================

# Categories offered by the client UI. The store never enforces membership.
SUGGESTED_CATEGORIES = (
    "Food",
    "Transport",
    "Utilities",
    "Entertainment",
    "Health",
    "Shopping",
    "Other",
)

# Sentinel used by clients for "no category / no month filter".
ALL_SENTINEL = "All"

# Largest amount a record can hold; the SQLite INTEGER column is signed 64-bit.
MAX_AMOUNT = 2**63 - 1

_ISO_DAY_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


def parse_calendar_date(value: Any) -> Optional[dt.date]:
    """
    Parse a literal YYYY-MM-DD string into a date.

    Returns None when the value is not a string, does not match the
    pattern exactly, or does not denote a real calendar date
    (e.g. 2024-02-30).
    """
    if not isinstance(value, str) or not _ISO_DAY_PATTERN.fullmatch(value):
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        return None


# =============================================================================
# ENUMS
# =============================================================================

class RejectionReason(str, Enum):
    """
    Machine-readable reasons a creation request is rejected.

    The values are part of the HTTP contract and are returned verbatim.
    """
    MISSING_FIELD = "MissingField"
    INVALID_AMOUNT = "InvalidAmount"
    INVALID_DATE = "InvalidDate"


# =============================================================================
# CORE EXPENSE MODELS
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    A validated creation request that has not been stored yet.

    It carries every client-supplied field. created_at is assigned
    by the store at insertion time.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Client-supplied idempotency key"
    )
    amount: int = Field(
        ...,
        gt=0,
        le=MAX_AMOUNT,
        description="Amount in minor currency units"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Open-ended category name"
    )
    description: Optional[str] = None
    date: dt.date = Field(
        ...,
        description="Calendar day of the expense"
    )

    def to_record(self, created_at: dt.datetime) -> "ExpenseRecord":
        """Stamp the draft with its insertion time."""
        return ExpenseRecord(**self.model_dump(), created_at=created_at)


class ExpenseRecord(BaseModel):
    """
    A stored expense entry.

    CRITICAL: Records are immutable. A record is created exactly once
    and never updated or deleted.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Unique record identifier"
    )
    amount: int = Field(
        ...,
        gt=0,
        le=MAX_AMOUNT,
        description="Amount in minor currency units"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Category name"
    )
    description: Optional[str] = None
    date: dt.date = Field(
        ...,
        description="Calendar day of the expense"
    )
    created_at: dt.datetime = Field(
        ...,
        description="When the store inserted the record (UTC)"
    )

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: dt.datetime) -> dt.datetime:
        """Naive timestamps are taken to be UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=dt.timezone.utc)
        return v.astimezone(dt.timezone.utc)

    def to_response_dict(self) -> dict:
        """JSON-compatible representation used by the HTTP API."""
        return self.model_dump(mode="json")


class WriteOutcome(BaseModel):
    """
    Result of an idempotent write.

    created is False when the id already existed and record is the
    previously stored entry.
    """
    model_config = ConfigDict(frozen=True)

    record: ExpenseRecord
    created: bool


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    reason: RejectionReason = Field(
        ...,
        description="Rejection reason this issue belongs to"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a creation request.

    Rules are checked in order (missing fields, amount, date) and the
    first failing rule decides the reason. issues lists every problem
    found by that rule.
    """

    is_valid: bool
    reason: Optional[RejectionReason] = None
    issues: list[ValidationIssue] = Field(default_factory=list)
    draft: Optional[ExpenseDraft] = Field(
        default=None,
        description="Normalized request, present only when valid"
    )

    @property
    def message(self) -> str:
        """All issue messages joined for display."""
        return "; ".join(issue.message for issue in self.issues)


# =============================================================================
# QUERY MODELS
# =============================================================================

def _parse_bounded_int(value: Any, low: int, high: int) -> Optional[int]:
    """Lenient integer parsing; anything malformed or out of range is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        number = int(value.strip())
    else:
        return None
    if low <= number <= high:
        return number
    return None


class ExpenseFilters(BaseModel):
    """
    Filter parameters for listing expenses.

    All fields are optional and independent. How they combine into a
    single predicate is decided by the query resolver.
    """

    category: Optional[str] = None
    specific_date: Optional[dt.date] = None
    year: Optional[int] = Field(default=None, ge=1, le=9999)
    month: Optional[int] = Field(default=None, ge=1, le=12)

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "ExpenseFilters":
        """
        Build filters from raw query parameters.

        The boundary is lenient: malformed values are treated as absent
        instead of raising. "All" for month means no month.
        """
        category = params.get("category")
        if not isinstance(category, str) or not category:
            category = None

        month = params.get("month")
        if month == ALL_SENTINEL:
            month = None

        specific_date = params.get("specific_date")
        if not isinstance(specific_date, dt.date):
            specific_date = parse_calendar_date(specific_date)

        return cls(
            category=category,
            specific_date=specific_date,
            year=_parse_bounded_int(params.get("year"), 1, 9999),
            month=_parse_bounded_int(month, 1, 12),
        )

    @property
    def is_empty(self) -> bool:
        return (
            self.category is None
            and self.specific_date is None
            and self.year is None
            and self.month is None
        )
