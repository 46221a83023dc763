"""Domain models - pure Python dataclasses representing ledger entities"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, List, Optional

UNKNOWN = "Unknown"


class Direction(str, Enum):
    """Whether money left or entered the account"""

    INFLOW = "Inflow"
    OUTFLOW = "Outflow"


class PaymentMethod(str, Enum):
    UPI = "UPI"
    CARD = "Card"
    NET_BANKING = "Net Banking"
    WALLET = "Wallet"
    CASH = "Cash"


class ResolutionSource(str, Enum):
    """Which path produced the merchant/category"""

    RULE_MATCH = "RuleMatch"
    FALLBACK_CLASSIFIER = "FallbackClassifier"


@dataclass(frozen=True)
class ExtractedFields:
    """Fields pulled out of a single bank notification message"""

    amount: Decimal
    direction: Direction
    payment_method: PaymentMethod
    account: str
    transaction_id: str
    transaction_date: str  # YYYY-MM-DD HH:MM:SS
    raw_merchant: str
    defaulted_fields: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class MerchantRule:
    """Cached rule mapping a normalized pattern to a canonical merchant"""

    pattern: str
    merchant: str
    category: str
    priority: float = 0


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of merchant/category resolution"""

    merchant: str
    category: str
    confidence: float
    source: ResolutionSource
    bank: Optional[str] = None
    failure_reason: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.failure_reason is not None


@dataclass(frozen=True)
class TransactionRecord:
    """Final record written to the external store"""

    transaction_id: str
    transaction_date: str
    amount: Decimal
    category: str
    merchant: str
    account: str
    payment_method: PaymentMethod
    direction: Direction
    created_at: str
    confidence: float
    source: ResolutionSource
    raw_message: str

    def to_row(self) -> List[object]:
        """Fixed column order used by the store (A..I)"""
        return [
            self.transaction_id,
            self.transaction_date,
            float(self.amount),
            self.category,
            self.merchant,
            self.account,
            self.payment_method.value,
            self.direction.value,
            self.created_at,
        ]
