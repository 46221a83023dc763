"""Dependency injection for FastAPI endpoints"""

from contextlib import contextmanager
from fastapi import Request
from sms_ledger.config import settings
from sms_ledger.domain.pipeline import TransactionPipeline
from sms_ledger.infrastructure.database.adapters import DatabaseTransactionStore
from sms_ledger.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_pipeline(request: Request) -> TransactionPipeline:
    """Provide the app-wide pipeline (shares one rule cache across requests)"""
    return request.app.state.pipeline


def get_transaction_store(request: Request):
    """Provide the configured transaction store; a DB session is opened only for the database backend"""
    if settings.store_backend == "database":
        with contextmanager(get_db)() as db:
            yield DatabaseTransactionStore(db)
    else:
        yield request.app.state.sheets_client
