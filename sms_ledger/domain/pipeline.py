"""Transaction pipeline - core business logic turning a message into a record"""

import logging
from datetime import datetime
from typing import Callable

from sms_ledger.domain.exceptions import ExtractionError
from sms_ledger.domain.extraction import extract
from sms_ledger.domain.fallback import FallbackClassifier
from sms_ledger.domain.models import UNKNOWN, ExtractedFields, ResolutionResult, TransactionRecord
from sms_ledger.domain.resolver import resolve
from sms_ledger.domain.rule_cache import RuleCache
from sms_ledger.utils.date_utils import format_timestamp

logger = logging.getLogger(__name__)

MANDATORY_FIELD_REASONS = {
    "amount": "Amount not found in message",
    "direction": "Transaction direction not found in message",
}


def enforce_mandatory_fields(fields: ExtractedFields) -> None:
    """Strict policy: a defaulted amount or direction is a hard failure"""
    for name, reason in MANDATORY_FIELD_REASONS.items():
        if name in fields.defaulted_fields:
            raise ExtractionError(reason)


def assemble_record(
    message: str,
    fields: ExtractedFields,
    resolution: ResolutionResult,
    created_at: datetime,
) -> TransactionRecord:
    """Merge extracted fields and resolution into the final record"""
    account = fields.account
    if account == UNKNOWN and resolution.bank:
        account = resolution.bank

    return TransactionRecord(
        transaction_id=fields.transaction_id,
        transaction_date=fields.transaction_date,
        amount=fields.amount,
        category=resolution.category,
        merchant=resolution.merchant,
        account=account,
        payment_method=fields.payment_method,
        direction=fields.direction,
        created_at=format_timestamp(created_at),
        confidence=resolution.confidence,
        source=resolution.source,
        raw_message=message,
    )


class TransactionPipeline:
    """
    Sequences extraction, rule resolution and the fallback classifier.

    Flow:
    1. Extract fields from the message
    2. Read the current rule snapshot from the cache
    3. Resolve the raw merchant against the rules
    4. On no match, ask the fallback classifier (capped confidence)
    5. Assemble the final record
    """

    def __init__(
        self,
        rule_cache: RuleCache,
        classifier: FallbackClassifier,
        strict_extraction: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.rule_cache = rule_cache
        self.classifier = classifier
        self.strict_extraction = strict_extraction
        self._clock = clock

    async def process(self, message: str) -> TransactionRecord:
        """
        Turn one bank message into a transaction record.

        Raises:
            ExtractionError: Only in strict mode, when amount or direction is missing
        """
        now = self._clock()
        fields = extract(message, now=now)
        if self.strict_extraction:
            enforce_mandatory_fields(fields)

        rules = await self.rule_cache.get_rules()
        resolution = resolve(fields.raw_merchant, rules)
        if resolution is None:
            logger.info(
                "No merchant rule matched, using fallback classifier",
                extra={"step": "resolve", "merchant": fields.raw_merchant, "rule_count": len(rules)},
            )
            resolution = await self.classifier.classify(message.strip(), fields.raw_merchant)

        return assemble_record(message.strip(), fields, resolution, self._clock())
