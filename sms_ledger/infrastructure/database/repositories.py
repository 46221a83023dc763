"""Data access layer for merchant rules and ledger transactions"""

from typing import List, Tuple
from sqlalchemy.orm import Session
from sms_ledger.infrastructure.database.models import LedgerTransaction, MerchantRuleRow
from sms_ledger.domain.models import TransactionRecord


class MerchantRuleRepository:
    """Repository for merchant rules"""

    def __init__(self, db: Session):
        self.db = db

    def list_rule_rows(self) -> List[Tuple[str, str, str, float]]:
        """Rows in (pattern, merchant, category, priority) order, in insertion order"""
        rules = self.db.query(MerchantRuleRow).order_by(MerchantRuleRow.id).all()
        return [(r.pattern, r.merchant, r.category, r.priority) for r in rules]

    def create_rule(self, pattern: str, merchant: str, category: str, priority: float = 0) -> MerchantRuleRow:
        db_rule = MerchantRuleRow(pattern=pattern, merchant=merchant, category=category, priority=priority)
        self.db.add(db_rule)
        self.db.flush()
        return db_rule


class TransactionRepository:
    """Repository for ingested transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(self, record: TransactionRecord) -> LedgerTransaction:
        """Persist a transaction record (caller commits)"""
        db_transaction = LedgerTransaction(
            transaction_id=record.transaction_id,
            transaction_date=record.transaction_date,
            amount=record.amount,
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
        self.db.add(db_transaction)
        self.db.flush()  # Get ID without committing
        return db_transaction
