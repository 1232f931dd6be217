"""
HTTP Transport

Exposes the ledger over HTTP with FastAPI:

    GET  /           health check
    POST /expenses   create (201 new, 200 duplicate id, 400 invalid, 500 storage)
    GET  /expenses   list with optional category/specific_date/year/month/sort

The request body of POST /expenses is read as raw JSON and handed to the
ledger validator, so the 400 response always carries one of the ledger's
machine-readable reasons rather than a framework validation error.
Query parameters are plain strings; malformed values are ignored.
"""

from contextlib import asynccontextmanager
from json import JSONDecodeError
from typing import Optional

import structlog
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from expense_ledger.audit import create_correlation_id
from expense_ledger.config import Settings, get_settings
from expense_ledger.ledger import ExpenseLedger, create_ledger
from expense_ledger.services.storage import StorageError
from expense_ledger.validation import ExpenseValidationError


CORRELATION_HEADER = "X-Correlation-ID"

logger = structlog.get_logger(__name__)


def _get_ledger(request: Request) -> ExpenseLedger:
    return request.app.state.ledger


async def _handle_validation_error(request: Request, exc: ExpenseValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": exc.reason.value,
            "message": exc.result.message,
            "issues": [issue.model_dump(mode="json") for issue in exc.issues],
        },
    )


async def _handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "error": "StorageError",
            "message": "Internal server error",
        },
    )


def create_app(
    ledger: Optional[ExpenseLedger] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        ledger: Ledger to serve; built from settings when omitted
        settings: Settings to use; defaults to get_settings()

    The ledger's store is opened on startup and closed on shutdown.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    ledger = ledger or create_ledger(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await ledger.open()
        logger.info(
            "ledger_api_started",
            environment=app_settings.app_environment,
            debug=app_settings.debug_mode,
        )
        try:
            yield
        finally:
            await ledger.close()

    app = FastAPI(title="Expense Ledger", debug=app_settings.debug_mode, lifespan=lifespan)
    app.state.ledger = ledger

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins_list,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        allow_credentials=True,
    )
    app.add_exception_handler(ExpenseValidationError, _handle_validation_error)
    app.add_exception_handler(StorageError, _handle_storage_error)

    @app.get("/")
    async def health() -> dict:
        return {"status": "ok"}

    @app.post("/expenses")
    async def create_expense(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except (JSONDecodeError, UnicodeDecodeError):
            payload = None

        correlation_id = create_correlation_id()
        outcome = await _get_ledger(request).create_expense(payload, correlation_id=correlation_id)

        return JSONResponse(
            status_code=201 if outcome.created else 200,
            content=outcome.record.to_response_dict(),
            headers={CORRELATION_HEADER: str(correlation_id)},
        )

    @app.get("/expenses")
    async def list_expenses(
        request: Request,
        category: Optional[str] = Query(default=None),
        specific_date: Optional[str] = Query(default=None),
        year: Optional[str] = Query(default=None),
        month: Optional[str] = Query(default=None),
        sort: Optional[str] = Query(default=None),
    ) -> JSONResponse:
        correlation_id = create_correlation_id()
        records = await _get_ledger(request).list_expenses(
            {
                "category": category,
                "specific_date": specific_date,
                "year": year,
                "month": month,
            },
            sort=sort,
            correlation_id=correlation_id,
        )

        return JSONResponse(
            content=[record.to_response_dict() for record in records],
            headers={CORRELATION_HEADER: str(correlation_id)},
        )

    return app
