"""HTTP API package."""

from expense_ledger.api.http import create_app

__all__ = ["create_app"]
