"""
Retrying Ledger Client

HTTP client for the ledger API with the caller-side retry policy:
- retry on network failures and 5xx responses only, never on 4xx
- at most max_retries retries after the first attempt (default 3)
- the delay before retry n is backoff_base_seconds ** n (2s, 4s, 8s, ...)

Retrying POST /expenses is safe because creation is idempotent on the
expense id. The id is generated once, before the first attempt, so every
retry carries the same key.
"""

import time
from typing import Any, Callable, Mapping, Optional
from uuid import uuid4

import httpx
import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from expense_ledger.config import ClientSettings, get_settings
from expense_ledger.models.expense import ExpenseRecord, WriteOutcome


class ExpenseClientError(Exception):
    """Base exception for ledger client errors."""
    pass


class ExpenseRequestRejected(ExpenseClientError):
    """The ledger answered with a 4xx status. Never retried."""

    def __init__(self, status_code: int, reason: Optional[str], message: str):
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ExpenseRequestRejected":
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            status_code=response.status_code,
            reason=body.get("error"),
            message=body.get("message") or f"Request rejected with status {response.status_code}",
        )


class ExpenseServiceUnavailable(ExpenseClientError):
    """Network failure or 5xx status, still failing after all retries."""
    pass


def is_retryable(exc: BaseException) -> bool:
    """Network failures and server errors are transient; client errors are not."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


def new_expense_id() -> str:
    """Generate a fresh idempotency key for a new expense."""
    return str(uuid4())


class ExpenseClient:
    """
    Client for the ledger HTTP API.

    Usage:
        with ExpenseClient() as client:
            outcome = client.create_expense({"amount": 500, "category": "Food", "date": "2024-01-01"})
            records = client.list_expenses(year=2024, sort="date_desc")
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the client.

        Args:
            settings: Client settings; defaults to get_settings().client
            transport: httpx transport override (used by tests)
            sleep: Function used to wait between retries
        """
        self._settings = settings or get_settings().client
        self._http = httpx.Client(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout_seconds,
            transport=transport,
        )
        self._sleep = sleep
        self._logger = structlog.get_logger(__name__)

    def __enter__(self) -> "ExpenseClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception()
        self._logger.warning(
            "ledger_request_retry",
            attempt=retry_state.attempt_number,
            next_delay_seconds=retry_state.next_action.sleep,
            error=str(exc),
        )

    def _retrying(self) -> Retrying:
        base = self._settings.backoff_base_seconds
        return Retrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self._settings.max_retries + 1),
            # tenacity waits multiplier * exp_base ** (n - 1) after attempt n
            wait=wait_exponential(multiplier=base, exp_base=base, min=0),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        def send() -> httpx.Response:
            response = self._http.request(method, path, **kwargs)
            response.raise_for_status()
            return response

        try:
            return self._retrying()(send)
        except httpx.HTTPStatusError as e:
            if e.response.status_code < 500:
                raise ExpenseRequestRejected.from_response(e.response) from e
            raise ExpenseServiceUnavailable(
                f"Ledger returned {e.response.status_code} for {method} {path}"
            ) from e
        except httpx.TransportError as e:
            raise ExpenseServiceUnavailable(f"Ledger unreachable for {method} {path}: {e}") from e

    def create_expense(self, expense: Mapping[str, Any]) -> WriteOutcome:
        """
        Create an expense, retrying transient failures.

        An id is generated when the payload has none.

        Returns:
            WriteOutcome; created is False when the ledger already had
            the id (including when an earlier attempt of this call
            succeeded but its response was lost)
        """
        payload = dict(expense)
        if not payload.get("id"):
            payload["id"] = new_expense_id()

        response = self._request("POST", "/expenses", json=payload)
        return WriteOutcome(
            record=ExpenseRecord.model_validate(response.json()),
            created=response.status_code == 201,
        )

    def list_expenses(
        self,
        category: Optional[str] = None,
        specific_date: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> list[ExpenseRecord]:
        """List expenses; arguments left as None are not sent."""
        params = {
            "category": category,
            "specific_date": specific_date,
            "year": year,
            "month": month,
            "sort": sort,
        }
        response = self._request(
            "GET",
            "/expenses",
            params={key: value for key, value in params.items() if value is not None},
        )
        return [ExpenseRecord.model_validate(item) for item in response.json()]
