"""Unit tests for merchant normalization and rule resolution"""

import pytest
from sms_ledger.domain.models import UNKNOWN, MerchantRule, ResolutionSource
from sms_ledger.domain.resolver import (
    RULE_MATCH_CONFIDENCE,
    find_matching_rules,
    normalize_merchant,
    resolve,
)


def rule(pattern: str, merchant: str, category: str, priority: float = 0) -> MerchantRule:
    return MerchantRule(
        pattern=normalize_merchant(pattern), merchant=merchant, category=category, priority=priority
    )


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("swiggy", "SWIGGY"),
        ("  Swiggy*Order #42 (Bangalore) ", "SWIGGYORDER 42 BANGALORE"),
        ("aftab.mehrab@oksbi", "AFTABMEHRAB@OKSBI"),
        ("AD   VENTURES  PVT", "AD VENTURES PVT"),
        ("SWIGGY\tBLR", "SWIGGYBLR"),
        ("AD VENTURES\n PVT", "AD VENTURES PVT"),
        ("Café Coffee Day", "CAF COFFEE DAY"),
        ("***", ""),
        ("", ""),
    ],
)
def test_normalize_merchant(raw: str, expected: str):
    assert normalize_merchant(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["SWIGGY", "  a - b  ", "x@y.z", "Ünïcödé  Store!!", "\t tab\tseparated ", "12 34  56", "@@ @"],
)
def test_normalize_merchant_idempotent(raw: str):
    once = normalize_merchant(raw)
    assert normalize_merchant(once) == once


def test_resolve_substring_match():
    """Test rule pattern only needs to be contained in the merchant"""
    rules = [rule("SWIGGY", "Swiggy", "Food & Dining", 1)]

    assert resolve("SWIGGY BANGALORE", rules).merchant == "Swiggy"
    assert resolve("THE SWIGGY LTD", rules).merchant == "Swiggy"
    assert resolve("swiggy", rules).merchant == "Swiggy"
    assert resolve("SWIG", rules) is None


def test_resolve_returns_rule_match_result():
    rules = [rule("SWIGGY", "Swiggy", "Food & Dining", 1)]

    result = resolve("SWIGGY", rules)

    assert result.category == "Food & Dining"
    assert result.confidence == RULE_MATCH_CONFIDENCE == 0.95
    assert result.source == ResolutionSource.RULE_MATCH
    assert result.failed is False


def test_resolve_highest_priority_wins_regardless_of_order():
    """Test priority 5 beats priority 1 in both list orders"""
    low = rule("AMAZON", "Amazon", "Fashion and Shopping", 1)
    high = rule("AMAZON PAY", "Amazon Pay", "Utilities", 5)

    for rules in ([low, high], [high, low]):
        result = resolve("AMAZON PAY INDIA", rules)
        assert result.merchant == "Amazon Pay"
        assert result.category == "Utilities"


def test_resolve_tie_goes_to_first_listed():
    first = rule("UBER", "Uber", "Transport", 2)
    second = rule("UBER EATS", "Uber Eats", "Food & Dining", 2)

    assert resolve("UBER EATS ORDER", [first, second]).merchant == "Uber"
    assert resolve("UBER EATS ORDER", [second, first]).merchant == "Uber Eats"


def test_resolve_normalizes_raw_merchant():
    rules = [rule("AD VENTURES", "AD Ventures", "Unknown")]
    assert resolve("ad-ventures.", rules) is None
    assert resolve("Ad  Ventures.", rules).merchant == "AD Ventures"


@pytest.mark.parametrize("raw", ["", UNKNOWN, "!!!"])
def test_resolve_no_match_for_empty_or_unknown(raw: str):
    rules = [rule("SWIGGY", "Swiggy", "Food & Dining")]
    assert resolve(raw, rules) is None


def test_resolve_no_rules():
    assert resolve("SWIGGY", []) is None


def test_find_matching_rules_keeps_list_order_and_skips_empty_patterns():
    rules = [
        MerchantRule(pattern="", merchant="Blank", category="Unknown"),
        rule("ZOMATO", "Zomato", "Food & Dining"),
        rule("ZOM", "Zom", "Food & Dining"),
    ]

    matches = find_matching_rules("ZOMATO ORDER", rules)

    assert [m.merchant for m in matches] == ["Zomato", "Zom"]
