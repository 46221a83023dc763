"""Merchant resolution - match a raw merchant token against cached rules"""

import re
from typing import List, Optional, Sequence

from sms_ledger.domain.models import UNKNOWN, MerchantRule, ResolutionResult, ResolutionSource

RULE_MATCH_CONFIDENCE = 0.95

_DISALLOWED = re.compile(r"[^A-Z0-9 @]")
_WHITESPACE = re.compile(r"\s+")


def normalize_merchant(value: str) -> str:
    """
    Reduce a merchant string to its comparable form.

    Applied to rule patterns at load time and to raw merchants at match time.

    Example:
        "  Swiggy*Order #42 (Bangalore) " → "SWIGGYORDER 42 BANGALORE"
    """
    cleaned = _DISALLOWED.sub("", value.upper())
    return _WHITESPACE.sub(" ", cleaned).strip()


def find_matching_rules(normalized_merchant: str, rules: Sequence[MerchantRule]) -> List[MerchantRule]:
    """All rules whose pattern is contained in the merchant, in list order"""
    return [rule for rule in rules if rule.pattern and rule.pattern in normalized_merchant]


def resolve(raw_merchant: str, rules: Sequence[MerchantRule]) -> Optional[ResolutionResult]:
    """
    Resolve a raw merchant token to a canonical merchant and category.

    Returns None when nothing matches. Among matching rules the highest
    priority wins; ties go to the rule listed first.
    """
    if not raw_merchant or raw_merchant == UNKNOWN or not rules:
        return None

    normalized = normalize_merchant(raw_merchant)
    if not normalized:
        return None

    best: Optional[MerchantRule] = None
    for rule in find_matching_rules(normalized, rules):
        if best is None or rule.priority > best.priority:
            best = rule

    if best is None:
        return None

    return ResolutionResult(
        merchant=best.merchant,
        category=best.category,
        confidence=RULE_MATCH_CONFIDENCE,
        source=ResolutionSource.RULE_MATCH,
    )
