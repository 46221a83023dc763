"""SQLAlchemy ORM models for the database rule source and transaction store"""

from sqlalchemy import Column, Integer, Float, DateTime, Numeric, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class MerchantRuleRow(Base):
    """Merchant rule as entered by the user (pattern normalized at load time)"""

    __tablename__ = "merchant_rule"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pattern = Column(Text, nullable=False)
    merchant = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    priority = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class LedgerTransaction(Base):
    """Ingested transaction, same columns as the spreadsheet row"""

    __tablename__ = "ledger_transaction"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(Text, nullable=False, index=True)
    transaction_date = Column(Text, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    category = Column(Text, nullable=False)
    merchant = Column(Text, nullable=False)
    account = Column(Text, nullable=False)
    payment_method = Column(Text, nullable=False)
    direction = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
    confidence = Column(Float, nullable=False)
    source = Column(Text, nullable=False)
    raw_message = Column(Text, nullable=False)
    inserted_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
