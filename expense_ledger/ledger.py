"""
Ledger API

This module ties the components together and defines the two operations
the ledger exposes:
1. Create (payload → validate → idempotent insert)
2. List (filters + sort → predicate + ordering → store)

DESIGN DECISION: The ledger enforces the boundaries:
- Nothing reaches the store without passing validation
- The store handle is passed in explicitly and has its own lifecycle
- Every operation is audited

There are no update or delete operations.
"""

from typing import Any, Mapping, Optional, Union
from uuid import UUID

from expense_ledger.audit import AuditLogger, configure_logging
from expense_ledger.config import Settings, get_settings
from expense_ledger.models.expense import ExpenseFilters, ExpenseRecord, WriteOutcome
from expense_ledger.queries import resolve_filters, resolve_sort
from expense_ledger.services.storage import (
    ExpenseStorageInterface,
    InMemoryExpenseStorage,
    SQLiteExpenseStorage,
    StorageError,
)
from expense_ledger.validation import ExpenseValidationError, ExpenseValidator
from expense_ledger.writer import IdempotentWriter


class ExpenseLedger:
    """
    Façade over validator, writer, query/sort resolvers and the store.

    Stateless per call; the store is the only shared resource.
    """

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        writer: Optional[IdempotentWriter] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._validator = validator or ExpenseValidator()
        self._writer = writer or IdempotentWriter(storage, audit_logger)

    @property
    def storage(self) -> ExpenseStorageInterface:
        return self._storage

    async def open(self) -> None:
        """Open the underlying store. Call once on startup."""
        await self._storage.open()

    async def close(self) -> None:
        """Close the underlying store. Call once on shutdown."""
        await self._storage.close()

    async def create_expense(
        self,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> WriteOutcome:
        """
        Validate and store an expense.

        Args:
            payload: Decoded request body (id, amount, category,
                     description, date)
            correlation_id: Optional request correlation id for logs

        Returns:
            WriteOutcome; created is False for a duplicate id

        Raises:
            ExpenseValidationError: MissingField, InvalidAmount or InvalidDate
            StorageError: On storage faults
        """
        result = self._validator.validate(payload)
        if not result.is_valid:
            if self._audit_logger:
                expense_id = payload.get("id") if isinstance(payload, Mapping) else None
                self._audit_logger.log_validation_failed(
                    reason=result.reason.value,
                    issues=[issue.model_dump(mode="json") for issue in result.issues],
                    expense_id=expense_id if isinstance(expense_id, str) else None,
                    correlation_id=correlation_id,
                )
            raise ExpenseValidationError(result)

        return await self._writer.create(result.draft, correlation_id=correlation_id)

    async def list_expenses(
        self,
        filters: Union[ExpenseFilters, Mapping[str, Any], None] = None,
        sort: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[ExpenseRecord]:
        """
        List expenses matching the filters, in the requested order.

        Args:
            filters: ExpenseFilters, or raw query parameters which are
                     parsed leniently
            sort: "date_desc", "date_asc", or anything else for
                  newest-inserted-first

        Raises:
            StorageError: If the store query fails
        """
        if filters is None:
            filters = ExpenseFilters()
        elif not isinstance(filters, ExpenseFilters):
            filters = ExpenseFilters.from_query(filters)

        predicate = resolve_filters(filters)
        order = resolve_sort(sort)

        try:
            records = await self._storage.list_expenses(predicate, order)
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_storage_error(
                    operation="list",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_expenses_listed(
                filters=predicate.describe(),
                sort=order.value,
                result_count=len(records),
                correlation_id=correlation_id,
            )

        return records


def create_storage(settings: Optional[Settings] = None) -> ExpenseStorageInterface:
    """Build the record store selected by configuration (not opened yet)."""
    storage_settings = (settings or get_settings()).storage
    if storage_settings.backend == "memory":
        return InMemoryExpenseStorage()
    return SQLiteExpenseStorage(
        database_path=storage_settings.database_path,
        busy_timeout_seconds=storage_settings.busy_timeout_seconds,
    )


def create_ledger(
    settings: Optional[Settings] = None,
    storage: Optional[ExpenseStorageInterface] = None,
) -> ExpenseLedger:
    """
    Factory function to create the ledger and its components.

    Args:
        settings: Settings to use; defaults to get_settings()
        storage: Store to use instead of the configured one

    Returns:
        An ExpenseLedger whose store still has to be opened
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    audit_logger = AuditLogger()
    return ExpenseLedger(
        storage=storage or create_storage(settings),
        audit_logger=audit_logger,
    )
