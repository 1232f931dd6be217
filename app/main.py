"""
Expense Ledger HTTP server

Entry point that serves the ledger API with uvicorn:

    python app/main.py

Host, port, storage backend and CORS origins come from the
LEDGER_API_* / LEDGER_STORAGE_* environment variables (or .env).
"""

import uvicorn

from expense_ledger.api import create_app
from expense_ledger.config import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)
    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.app.log_level.lower(),
    )


if __name__ == "__main__":
    main()
