"""
Expense Creation Validator

DESIGN DECISION: Validation is a pure function of the request payload and
runs before any storage interaction, so invalid input never reaches the
store.

Rules are evaluated in a fixed order and the first failing rule decides
the rejection reason:

RULE 1 - PRESENCE (MissingField):
- id, amount, category and date must be present
- strings must be non-empty

RULE 2 - AMOUNT (InvalidAmount):
- must be a number (booleans and numeric strings are not)
- must be a whole number of minor units
- must be greater than zero and at most MAX_AMOUNT

RULE 3 - DATE (InvalidDate):
- must match YYYY-MM-DD literally
- must denote a real calendar date

description is never validated.

IMPORTANT: Validation NEVER silently fixes issues. The only normalization
is turning an integral float amount such as 500.0 into the integer 500.
"""

import math
from typing import Any, Mapping, Optional

from expense_ledger.models.expense import (
    MAX_AMOUNT,
    ExpenseDraft,
    RejectionReason,
    ValidationIssue,
    ValidationResult,
    parse_calendar_date,
)


REQUIRED_FIELDS = ("id", "amount", "category", "date")

# Fields that must be strings when present
STRING_FIELDS = ("id", "category")


class ExpenseValidationError(ValueError):
    """A creation request was rejected by the validator."""

    def __init__(self, result: ValidationResult):
        self.result = result
        self.reason = result.reason
        self.issues = result.issues
        super().__init__(f"{result.reason.value}: {result.message}")


class ExpenseValidator:
    """
    Validates expense creation requests.

    Stateless; one instance can be shared by every request.
    """

    def _is_blank(self, value: Any) -> bool:
        return isinstance(value, str) and not value.strip()

    def _check_presence(self, payload: Mapping[str, Any]) -> list[ValidationIssue]:
        """Rule 1: required fields are present and non-empty."""
        issues = []

        for field in REQUIRED_FIELDS:
            value = payload.get(field)
            if value is None or self._is_blank(value):
                issues.append(ValidationIssue(
                    field=field,
                    reason=RejectionReason.MISSING_FIELD,
                    message=f"'{field}' is required",
                ))
            elif field in STRING_FIELDS and not isinstance(value, str):
                issues.append(ValidationIssue(
                    field=field,
                    reason=RejectionReason.MISSING_FIELD,
                    message=f"'{field}' must be a non-empty string",
                ))

        return issues

    def _parse_amount(self, value: Any) -> Optional[int]:
        """Return the amount in minor units, or None if it is not acceptable."""
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            amount = value
        elif isinstance(value, float):
            if not math.isfinite(value) or not value.is_integer():
                return None
            amount = int(value)
        else:
            return None
        return amount if 0 < amount <= MAX_AMOUNT else None

    def validate(self, payload: Any) -> ValidationResult:
        """
        Validate a creation request.

        Args:
            payload: The decoded request body

        Returns:
            ValidationResult; when valid, draft holds the normalized request
        """
        if not isinstance(payload, Mapping):
            payload = {}

        issues = self._check_presence(payload)
        if issues:
            return ValidationResult(
                is_valid=False,
                reason=RejectionReason.MISSING_FIELD,
                issues=issues,
            )

        amount = self._parse_amount(payload["amount"])
        if amount is None:
            return ValidationResult(
                is_valid=False,
                reason=RejectionReason.INVALID_AMOUNT,
                issues=[ValidationIssue(
                    field="amount",
                    reason=RejectionReason.INVALID_AMOUNT,
                    message="'amount' must be a positive whole number of minor units (e.g. cents)",
                )],
            )

        expense_date = parse_calendar_date(payload["date"])
        if expense_date is None:
            return ValidationResult(
                is_valid=False,
                reason=RejectionReason.INVALID_DATE,
                issues=[ValidationIssue(
                    field="date",
                    reason=RejectionReason.INVALID_DATE,
                    message=f"'date' must be a real calendar date in YYYY-MM-DD format, got {payload['date']!r}",
                )],
            )

        description = payload.get("description")
        if description is not None and not isinstance(description, str):
            description = str(description)

        return ValidationResult(
            is_valid=True,
            draft=ExpenseDraft(
                id=payload["id"],
                amount=amount,
                category=payload["category"],
                description=description,
                date=expense_date,
            ),
        )

    def validate_or_raise(self, payload: Any) -> ExpenseDraft:
        """Validate and return the draft, raising ExpenseValidationError if rejected."""
        result = self.validate(payload)
        if not result.is_valid:
            raise ExpenseValidationError(result)
        return result.draft
