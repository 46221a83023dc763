"""Unit tests for the end-to-end transaction pipeline"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock
from sms_ledger.domain.exceptions import ExtractionError
from sms_ledger.domain.fallback import FallbackClassifier
from sms_ledger.domain.models import UNKNOWN, Direction, PaymentMethod, ResolutionSource
from sms_ledger.domain.pipeline import TransactionPipeline
from sms_ledger.domain.rule_cache import RuleCache

SWIGGY_MESSAGE = "Rs 29.00 sent via UPI to SWIGGY on 20-01-2026"


async def test_rule_match_scenario(make_pipeline, swiggy_rows, fixed_now):
    """Scenario 1: a loaded SWIGGY rule resolves the merchant"""
    pipeline = make_pipeline(swiggy_rows)

    record = await pipeline.process(SWIGGY_MESSAGE)

    assert record.amount == Decimal("29.00")
    assert record.direction == Direction.OUTFLOW
    assert record.payment_method == PaymentMethod.UPI
    assert record.merchant == "Swiggy"
    assert record.category == "Food & Dining"
    assert record.confidence == 0.95
    assert record.source == ResolutionSource.RULE_MATCH
    assert record.transaction_date == "2026-01-20 00:00:00"
    assert record.created_at == "2026-02-14 09:30:00"
    assert record.raw_message == SWIGGY_MESSAGE


async def test_rule_match_skips_classifier(fake_clock, swiggy_rows):
    generate = AsyncMock()
    pipeline = TransactionPipeline(
        RuleCache(AsyncMock(return_value=swiggy_rows), clock=fake_clock),
        FallbackClassifier(generate),
    )

    await pipeline.process(SWIGGY_MESSAGE)

    generate.assert_not_awaited()


async def test_fallback_scenario_caps_confidence(make_pipeline):
    """Scenario 2: no rules, classifier's 0.9 is capped to 0.7"""
    pipeline = make_pipeline(
        [],
        classifier_response='{"category":"Food & Dining","confidence":0.9,"merchant":"SWIGGY"}',
    )

    record = await pipeline.process(SWIGGY_MESSAGE)

    assert record.category == "Food & Dining"
    assert record.merchant == "SWIGGY"
    assert record.confidence == 0.7
    assert record.source == ResolutionSource.FALLBACK_CLASSIFIER


async def test_inflow_without_date_scenario(make_pipeline, fixed_now):
    """Scenario 3: inflow, timestamp defaults to now, synthesized id"""
    pipeline = make_pipeline(
        [],
        classifier_response='{"category":"Sending money to parents or family","confidence":0.5,"merchant":"John Doe"}',
    )

    record = await pipeline.process("Rs 500 credited from John Doe via IMPS")

    assert record.direction == Direction.INFLOW
    assert record.amount == Decimal("500")
    assert record.transaction_date.startswith(fixed_now.strftime("%Y-%m-%d"))
    assert record.transaction_id.startswith("TXN")
    assert len(record.transaction_id) == 11


async def test_garbage_classifier_scenario(make_pipeline):
    """Scenario 4: garbage classifier output falls back to the raw token"""
    pipeline = make_pipeline([], classifier_response="<html>503 Service Unavailable</html>")

    record = await pipeline.process(SWIGGY_MESSAGE)

    assert record.category == UNKNOWN
    assert record.confidence == 0
    assert record.merchant == "SWIGGY"
    assert record.source == ResolutionSource.FALLBACK_CLASSIFIER


async def test_rule_source_failure_falls_back_to_classifier(fake_clock):
    pipeline = TransactionPipeline(
        RuleCache(AsyncMock(side_effect=RuntimeError("sheet down")), clock=fake_clock),
        FallbackClassifier(AsyncMock(return_value='{"category":"Food & Dining","confidence":0.6}')),
    )

    record = await pipeline.process(SWIGGY_MESSAGE)

    assert record.source == ResolutionSource.FALLBACK_CLASSIFIER
    assert record.confidence == 0.6


async def test_classifier_bank_fills_unknown_account(make_pipeline):
    pipeline = make_pipeline(
        [],
        classifier_response='{"category":"Fuel","confidence":0.5,"merchant":"HPCL","bank":"Union Bank"}',
    )

    record = await pipeline.process("Rs 500 paid to HPCL on 01-02-2026")

    assert record.account == "Union Bank"


async def test_extracted_account_wins_over_classifier_bank(make_pipeline):
    pipeline = make_pipeline(
        [],
        classifier_response='{"category":"Fuel","confidence":0.5,"merchant":"HPCL","bank":"Union Bank"}',
    )

    record = await pipeline.process("Rs 500 paid to HPCL on 01-02-2026 - HDFC Bank")

    assert record.account == "HDFC Bank"


async def test_lenient_mode_defaults_missing_amount(make_pipeline):
    pipeline = make_pipeline([])

    record = await pipeline.process("Payment to SWIGGY successful")

    assert record.amount == Decimal("0")
    assert record.direction == Direction.OUTFLOW


@pytest.mark.parametrize(
    "message,reason",
    [
        ("Payment to SWIGGY successful, paid", "Amount not found in message"),
        ("Rs 20 to SWIGGY", "Transaction direction not found in message"),
    ],
)
async def test_strict_mode_rejects_missing_fields(make_pipeline, message, reason):
    pipeline = make_pipeline([], strict_extraction=True)

    with pytest.raises(ExtractionError) as exc_info:
        await pipeline.process(message)

    assert exc_info.value.reason == reason


async def test_strict_mode_accepts_complete_message(make_pipeline, swiggy_rows):
    pipeline = make_pipeline(swiggy_rows, strict_extraction=True)

    record = await pipeline.process(SWIGGY_MESSAGE)

    assert record.merchant == "Swiggy"


async def test_record_row_order(make_pipeline, swiggy_rows):
    """Test the store row keeps the fixed column order"""
    record = await make_pipeline(swiggy_rows).process(SWIGGY_MESSAGE)

    assert record.to_row() == [
        record.transaction_id,
        "2026-01-20 00:00:00",
        29.0,
        "Food & Dining",
        "Swiggy",
        UNKNOWN,
        "UPI",
        "Outflow",
        "2026-02-14 09:30:00",
    ]
