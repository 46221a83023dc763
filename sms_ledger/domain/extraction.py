"""Field extraction - deterministic parsing of bank notification messages

Every extractor is an ordered list of (pattern, converter) pairs evaluated
top-down; the first pattern whose converter yields a value wins. A converter
may reject a match by returning None, in which case evaluation continues with
the next pattern.
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Tuple, TypeVar

from sms_ledger.domain.models import UNKNOWN, Direction, ExtractedFields, PaymentMethod
from sms_ledger.utils.date_utils import (
    build_timestamp,
    expand_year,
    format_timestamp,
    month_from_name,
)

T = TypeVar("T")
ExtractionRule = Tuple[re.Pattern[str], Callable[[re.Match[str]], Optional[T]]]

# ---------------------------------------------------------------------------
# Amount
# ---------------------------------------------------------------------------

_NUMBER = r"(\d[\d,]*(?:\.\d+)?)"
_CURRENCY = r"(?:\bRs\.?|\bINR|₹)"


def _to_amount(match: re.Match[str]) -> Optional[Decimal]:
    try:
        return Decimal(match.group(1).replace(",", ""))
    except InvalidOperation:
        return None


AMOUNT_RULES: List[ExtractionRule[Decimal]] = [
    # Rs 1,200.50 / INR500 / ₹ 99
    (re.compile(_CURRENCY + r"\s*" + _NUMBER, re.IGNORECASE), _to_amount),
    # 1,200.50 Rs / 500 INR
    (re.compile(_NUMBER + r"\s*(?:Rs\b\.?|INR\b|₹)", re.IGNORECASE), _to_amount),
    # credited 500 / paid Rs. 20
    (
        re.compile(
            r"\b(?:credited|debited|paid|sent|received)\s+(?:with\s+)?"
            + _CURRENCY + r"?\s*" + _NUMBER,
            re.IGNORECASE,
        ),
        _to_amount,
    ),
]

# ---------------------------------------------------------------------------
# Direction
# ---------------------------------------------------------------------------

INFLOW_KEYWORDS = ("credited", "received", "deposited", "refund", "cashback")
OUTFLOW_KEYWORDS = ("debited", "paid", "sent", "withdrawn", "purchase", "spent")

# ---------------------------------------------------------------------------
# Payment method
# ---------------------------------------------------------------------------

PAYMENT_METHOD_KEYWORDS: List[Tuple[Tuple[str, ...], PaymentMethod]] = [
    (("upi", "@"), PaymentMethod.UPI),
    (("card", "atm"), PaymentMethod.CARD),
    (("net banking", "netbanking"), PaymentMethod.NET_BANKING),
    (("wallet",), PaymentMethod.WALLET),
    (("cash",), PaymentMethod.CASH),
]

# ---------------------------------------------------------------------------
# Transaction identifier
# ---------------------------------------------------------------------------

_REFERENCE = r"([A-Z0-9]*\d[A-Z0-9]*)"


def _group_one(match: re.Match[str]) -> Optional[str]:
    return match.group(1) or None


TRANSACTION_ID_RULES: List[ExtractionRule[str]] = [
    (re.compile(r"\bA/c\.?\s*(?:no\b\.?\s*)?" + _REFERENCE, re.IGNORECASE), _group_one),
    (
        re.compile(
            r"\bRef(?:erence)?\b\.?\s*(?:No\b\.?|Number\b)?\s*:?\s*" + _REFERENCE,
            re.IGNORECASE,
        ),
        _group_one,
    ),
    (re.compile(r"\bUTR\b\.?\s*(?:No\b\.?)?\s*:?\s*" + _REFERENCE, re.IGNORECASE), _group_one),
    (re.compile(r"[X*]{2,}(\d{3,})", re.IGNORECASE), _group_one),
]

# ---------------------------------------------------------------------------
# Timestamp
# ---------------------------------------------------------------------------

_MONTHS = r"(JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC)"
_YEAR = r"(\d{4}|\d{2})(?!\d)"
_TIME_TAIL = r"(?:,?\s*(?:at\s+)?(\d{1,2}):(\d{2})(?::(\d{2}))?)?"
_STANDALONE_TIME = re.compile(r"(?<![\d:])(\d{1,2}):(\d{2})(?::(\d{2}))?(?![\d:])")


def _day_month_year(match: re.Match[str]) -> Optional[datetime]:
    day, month, year, hour, minute, second = match.groups()
    return build_timestamp(expand_year(year), int(month), int(day), hour, minute, second)


def _year_month_day(match: re.Match[str]) -> Optional[datetime]:
    year, month, day, hour, minute, second = match.groups()
    return build_timestamp(int(year), int(month), int(day), hour, minute, second)


def _day_month_name_year(match: re.Match[str]) -> Optional[datetime]:
    day, month_name, year, hour, minute, second = match.groups()
    month = month_from_name(month_name)
    if month is None:
        return None
    return build_timestamp(expand_year(year), month, int(day), hour, minute, second)


DATE_RULES: List[ExtractionRule[datetime]] = [
    # 17JAN2026 20:19:52
    (
        re.compile(r"(?<!\d)(\d{1,2})" + _MONTHS + _YEAR + _TIME_TAIL, re.IGNORECASE),
        _day_month_name_year,
    ),
    # 20-01-2026 at 16:35:10 / 20-01-26
    (
        re.compile(r"(?<!\d)(\d{1,2})-(\d{1,2})-" + _YEAR + _TIME_TAIL, re.IGNORECASE),
        _day_month_year,
    ),
    # 20/01/2026 / 20/01/26
    (
        re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/" + _YEAR + _TIME_TAIL, re.IGNORECASE),
        _day_month_year,
    ),
    # 2026-01-20
    (
        re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)" + _TIME_TAIL, re.IGNORECASE),
        _year_month_day,
    ),
    # 17 Jan 2026 / 17 January, 26 at 10:05
    (
        re.compile(
            r"(?<!\d)(\d{1,2})\s+" + _MONTHS + r"[a-z]*\.?,?\s+" + _YEAR + _TIME_TAIL,
            re.IGNORECASE,
        ),
        _day_month_name_year,
    ),
]

# ---------------------------------------------------------------------------
# Account / issuer
# ---------------------------------------------------------------------------

KNOWN_BANKS = (
    "Federal Bank",
    "HDFC Bank",
    "ICICI Bank",
    "SBI",
    "State Bank",
    "Axis Bank",
    "Kotak Bank",
    "Yes Bank",
    "IDFC",
    "PNB",
    "Bank of Baroda",
    "Canara Bank",
)

_BANK_PATTERNS = [
    (re.compile(r"\b" + re.escape(bank) + r"\b", re.IGNORECASE), bank) for bank in KNOWN_BANKS
]

# ---------------------------------------------------------------------------
# Raw merchant
# ---------------------------------------------------------------------------

_NAME = r"([A-Za-z0-9][A-Za-z0-9 &'@._-]*?)"
_SENTENCE_END = r"\s*\.(?:\s|[A-Z]|$)|\s*$"


def _to_merchant(match: re.Match[str]) -> Optional[str]:
    candidate = match.group(1).strip().strip(".")
    # phone numbers and bare digits are not merchants
    if not candidate or candidate.replace(" ", "").isdigit():
        return None
    return candidate


MERCHANT_RULES: List[ExtractionRule[str]] = [
    # to AD VENTURES.Ref:1635 / to SWIGGY on 20-01-2026
    (
        re.compile(
            r"\b(?i:to)\s+(?:(?i:vpa)\s+)?" + _NAME
            + r"(?=\s*\.?\s*(?i:ref|utr)\b|\s+(?i:on|via|for|using|upi|at|from|by)\b|" + _SENTENCE_END + r")"
        ),
        _to_merchant,
    ),
    # aftab.mehrab@oksbi
    (re.compile(r"([A-Za-z0-9._-]+@[A-Za-z][A-Za-z0-9.-]*)"), _to_merchant),
    # from John Doe via IMPS
    (
        re.compile(
            r"\b(?i:from)\s+" + _NAME
            + r"(?=\s+(?i:a/?c|acct|account|on|via|ref|upi)\b|\s+\d{1,2}[-/]|" + _SENTENCE_END + r")"
        ),
        _to_merchant,
    ),
    # at STARBUCKS on / at AMAZON, Txn
    (
        re.compile(
            r"\b(?i:at)\s+" + _NAME
            + r"(?=\s+(?i:on|via|ref|for|using|txn)\b|\s*,|" + _SENTENCE_END + r")"
        ),
        _to_merchant,
    ),
]


def first_match(text: str, rules: List[ExtractionRule[T]]) -> Optional[T]:
    """Evaluate ordered rules top-down, return the first accepted value"""
    for pattern, convert in rules:
        match = pattern.search(text)
        if match:
            value = convert(match)
            if value is not None:
                return value
    return None


def extract_amount(message: str) -> Optional[Decimal]:
    return first_match(message, AMOUNT_RULES)


def extract_direction(message: str) -> Optional[Direction]:
    """
    Classify direction by keyword containment.

    Returns None when neither keyword set matches. A message matching both
    sets (e.g. "debited from A/c ... credited to VPA ...") is an Outflow.
    """
    lowered = message.lower()
    inflow = any(keyword in lowered for keyword in INFLOW_KEYWORDS)
    outflow = any(keyword in lowered for keyword in OUTFLOW_KEYWORDS)
    if inflow and not outflow:
        return Direction.INFLOW
    if outflow:
        return Direction.OUTFLOW
    return None


def extract_payment_method(message: str) -> PaymentMethod:
    lowered = message.lower()
    for keywords, method in PAYMENT_METHOD_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return method
    return PaymentMethod.UPI


def extract_transaction_id(message: str) -> Optional[str]:
    return first_match(message, TRANSACTION_ID_RULES)


def synthesize_transaction_id(now: datetime) -> str:
    """TXN + last 8 digits of the epoch milliseconds"""
    epoch_ms = int(now.timestamp() * 1000)
    return "TXN" + str(epoch_ms)[-8:]


def extract_timestamp(message: str) -> Optional[datetime]:
    """
    Find the transaction date/time.

    A time written next to the date wins; otherwise any standalone HH:MM[:SS]
    in the message is used, else midnight.
    """
    for pattern, convert in DATE_RULES:
        match = pattern.search(message)
        if not match:
            continue
        moment = convert(match)
        if moment is None:
            continue
        if match.group(4) is None:
            time_match = _STANDALONE_TIME.search(message)
            if time_match:
                hour, minute, second = time_match.groups()
                moment = build_timestamp(
                    moment.year, moment.month, moment.day, hour, minute, second
                ) or moment
        return moment
    return None


def extract_account(message: str) -> str:
    for pattern, bank in _BANK_PATTERNS:
        if pattern.search(message):
            return bank
    return UNKNOWN


def extract_merchant(message: str) -> Optional[str]:
    return first_match(message, MERCHANT_RULES)


def extract(message: str, now: Optional[datetime] = None) -> ExtractedFields:
    """
    Pull every transaction field out of a single message.

    Total function: a field that cannot be found degrades to its default
    and its name is recorded in ``defaulted_fields``.
    """
    now = now or datetime.now()
    text = message.strip()
    defaulted = set()

    amount = extract_amount(text)
    if amount is None:
        amount = Decimal("0")
        defaulted.add("amount")

    direction = extract_direction(text)
    if direction is None:
        direction = Direction.OUTFLOW
        defaulted.add("direction")

    transaction_id = extract_transaction_id(text)
    if transaction_id is None:
        transaction_id = synthesize_transaction_id(now)
        defaulted.add("transaction_id")

    moment = extract_timestamp(text)
    if moment is None:
        moment = now
        defaulted.add("transaction_date")

    account = extract_account(text)
    if account == UNKNOWN:
        defaulted.add("account")

    merchant = extract_merchant(text)
    if merchant is None:
        merchant = UNKNOWN
        defaulted.add("raw_merchant")

    return ExtractedFields(
        amount=amount,
        direction=direction,
        payment_method=extract_payment_method(text),
        account=account,
        transaction_id=transaction_id,
        transaction_date=format_timestamp(moment),
        raw_merchant=merchant,
        defaulted_fields=frozenset(defaulted),
    )
