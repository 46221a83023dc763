"""Pytest fixtures for testing"""

import pytest
from datetime import datetime
from decimal import Decimal
from typing import Generator, List
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sms_ledger.api.dependencies import get_pipeline, get_transaction_store
from sms_ledger.api.main import create_app
from sms_ledger.domain.fallback import FallbackClassifier
from sms_ledger.domain.models import Direction, PaymentMethod, ResolutionSource, TransactionRecord
from sms_ledger.domain.pipeline import TransactionPipeline
from sms_ledger.domain.rule_cache import RuleCache
from sms_ledger.infrastructure.database.adapters import DatabaseTransactionStore
from sms_ledger.infrastructure.database.models import Base


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2026, 2, 14, 9, 30, 0)


class FakeClock:
    """Monotonic clock the tests can move forward by hand"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_pipeline(
    rule_rows: List[list],
    classifier_response: str = "{}",
    strict_extraction: bool = False,
) -> TransactionPipeline:
    """Pipeline with an AsyncMock rule loader and classifier"""
    loader = AsyncMock(return_value=rule_rows)
    generate = AsyncMock(return_value=classifier_response)
    return TransactionPipeline(
        RuleCache(loader, clock=FakeClock()),
        FallbackClassifier(generate),
        strict_extraction=strict_extraction,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_pipeline():
    """Factory for pipelines backed by fake rule rows and a canned classifier reply"""
    return _make_pipeline


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def swiggy_rows() -> List[list]:
    """Rule rows as they come back from the rule sheet"""
    return [["SWIGGY", "Swiggy", "Food & Dining", "1"]]


@pytest.fixture
def sample_record() -> TransactionRecord:
    return TransactionRecord(
        transaction_id="163509601488",
        transaction_date="2026-01-20 16:35:10",
        amount=Decimal("29.00"),
        category="Food & Dining",
        merchant="Swiggy",
        account="Federal Bank",
        payment_method=PaymentMethod.UPI,
        direction=Direction.OUTFLOW,
        created_at="2026-02-14 09:30:00",
        confidence=0.95,
        source=ResolutionSource.RULE_MATCH,
        raw_message="Rs 29.00 sent via UPI on 20-01-2026 at 16:35:10 to SWIGGY.Ref:163509601488 -Federal Bank",
    )


@pytest.fixture
def session_factory():
    """Session factory bound to the test database"""
    return TestingSessionLocal


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def pipeline(swiggy_rows: List[list]) -> TransactionPipeline:
    return _make_pipeline(
        swiggy_rows,
        classifier_response='{"category": "Fuel", "confidence": 0.9, "merchant": "HP PETROL", "bank": "Unknown"}',
    )


@pytest.fixture
def client(db: Session, pipeline: TransactionPipeline, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """Create FastAPI test client with test database store and fake pipeline"""
    monkeypatch.setattr("sms_ledger.api.main.init_db", lambda: None)
    app = create_app()
    app.dependency_overrides[get_transaction_store] = lambda: DatabaseTransactionStore(db)
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    return TestClient(app)
