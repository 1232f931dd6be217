"""
Idempotent Writer

Creation is idempotent on the client-supplied id. The writer hands the
validated draft to the store's atomic insert-or-fetch and reports whether
this call created the record or found an earlier one.

The store always reflects the first successful write. A retried payload
with different field values for the same id gets the original record back
and changes nothing.

Storage faults other than the id collision propagate unchanged. The
writer never retries; retrying is the caller's job.
"""

from typing import Optional
from uuid import UUID

from expense_ledger.audit import AuditLogger
from expense_ledger.models.expense import ExpenseDraft, WriteOutcome
from expense_ledger.services.storage import ExpenseStorageInterface, StorageError


class IdempotentWriter:
    """Inserts expenses, resolving duplicate ids to the stored record."""

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def create(
        self,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> WriteOutcome:
        """
        Store a validated expense.

        Returns:
            WriteOutcome with created=True for a new record, or the
            existing record with created=False

        Raises:
            StorageError: On any storage fault
        """
        try:
            record, created = await self._storage.insert_or_get(draft)
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_storage_error(
                    operation="create",
                    error_message=str(e),
                    expense_id=draft.id,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            if created:
                self._audit_logger.log_expense_created(
                    expense_id=record.id,
                    amount=record.amount,
                    category=record.category,
                    correlation_id=correlation_id,
                )
            else:
                self._audit_logger.log_duplicate_resolved(
                    expense_id=record.id,
                    correlation_id=correlation_id,
                )

        return WriteOutcome(record=record, created=created)
