"""Closed set of spending categories accepted in the ledger"""

from typing import Sequence

from sms_ledger.domain.models import UNKNOWN

ALLOWED_CATEGORIES = (
    "Rent and Maintenance",
    "Utilities",
    "Groceries & Home Supplies",
    "Food & Dining",
    "Entertainment, OTT etc",
    "Investments and Stock Purchases",
    "Fashion and Shopping",
    "Fuel",
    "Vehicle Ownership (Tyres, Washing etc)",
    "Health & Medicine Expenses",
    "Transport",
    "Sending money to parents or family",
    "Travel and Vacations",
    "Home Improvement",
    "Helping Others / Donations",
    "Credit Card",
    "EMI",
    "Loan Repayment",
    UNKNOWN,
)


def is_allowed_category(category: object, categories: Sequence[str] = ALLOWED_CATEGORIES) -> bool:
    return isinstance(category, str) and category in categories
