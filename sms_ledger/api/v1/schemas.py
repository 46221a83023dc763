"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field

from sms_ledger.domain.models import TransactionRecord


class TransactionRequest(BaseModel):
    """Request body for POST /v1/finance/new-transaction"""

    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(..., min_length=1, description="Raw bank notification text")


class TransactionResponse(BaseModel):
    """Response for POST /v1/finance/new-transaction"""

    transaction_id: str
    transaction_date: str
    amount: float
    category: str
    merchant: str
    account: str
    payment_method: str
    direction: str
    created_at: str
    confidence: float
    source: str
    raw_message: str

    @classmethod
    def from_record(cls, record: TransactionRecord) -> "TransactionResponse":
        return cls(
            transaction_id=record.transaction_id,
            transaction_date=record.transaction_date,
            amount=float(record.amount),
            category=record.category,
            merchant=record.merchant,
            account=record.account,
            payment_method=record.payment_method.value,
            direction=record.direction.value,
            created_at=record.created_at,
            confidence=record.confidence,
            source=record.source.value,
            raw_message=record.raw_message,
        )


class ErrorResponse(BaseModel):
    detail: str
