"""Database-backed rule loader and transaction store"""

import logging
from typing import Callable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sms_ledger.domain.exceptions import RuleSourceError, StoreWriteError
from sms_ledger.domain.models import TransactionRecord
from sms_ledger.domain.rule_cache import RuleLoader, RuleRow
from sms_ledger.infrastructure.database.repositories import MerchantRuleRepository, TransactionRepository
from sms_ledger.infrastructure.observability.metrics import store_failure_counter


def make_database_rule_loader(session_factory: Callable[[], Session]) -> RuleLoader:
    """Build a rule loader reading the merchant_rule table"""

    async def load() -> List[RuleRow]:
        try:
            with session_factory() as db:
                return MerchantRuleRepository(db).list_rule_rows()
        except SQLAlchemyError as e:
            raise RuleSourceError(f"Rule table unavailable: {e}") from e

    return load


class DatabaseTransactionStore:
    """Appends transaction records to the ledger_transaction table"""

    def __init__(self, db: Session):
        self.db = db

    async def append_transaction(self, record: TransactionRecord) -> None:
        """
        Raises:
            StoreWriteError: When the insert or commit fails
        """
        try:
            TransactionRepository(self.db).create_transaction(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            store_failure_counter.inc()
            logging.error(f"Database append failed: {e}", extra={"step": "store_append"})
            raise StoreWriteError(f"Failed to write to database: {e}") from e
