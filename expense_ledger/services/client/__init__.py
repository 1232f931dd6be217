"""Ledger client package."""

from expense_ledger.services.client.http_client import (
    ExpenseClient,
    ExpenseClientError,
    ExpenseRequestRejected,
    ExpenseServiceUnavailable,
    is_retryable,
    new_expense_id,
)

__all__ = [
    "ExpenseClient",
    "ExpenseClientError",
    "ExpenseRequestRejected",
    "ExpenseServiceUnavailable",
    "is_retryable",
    "new_expense_id",
]
