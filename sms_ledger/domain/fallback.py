"""Fallback classifier adapter - consulted only when no merchant rule matches"""

import json
import logging
import math
import re
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from sms_ledger.domain.categories import ALLOWED_CATEGORIES, is_allowed_category
from sms_ledger.domain.models import UNKNOWN, ResolutionResult, ResolutionSource

logger = logging.getLogger(__name__)

Generate = Callable[[str], Awaitable[str]]

FALLBACK_CONFIDENCE_CAP = 0.7
DEFAULT_MAX_MESSAGE_CHARS = 500
MAX_MERCHANT_CHARS = 100

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

PROMPT_TEMPLATE = """Classify this Indian bank SMS and return JSON only.

SMS: "{message}"
Extracted merchant: "{merchant}"

Return an object with exactly these keys:
- "category": one of [{categories}]
- "merchant": the recipient or sender of the money (a name or a UPI id like "name@oksbi"), never the bank, a phone number or a URL
- "bank": the bank that sent the SMS, or "Unknown"
- "confidence": a number from 0.0 to 1.0

Example:
SMS: "Rs 29.00 sent via UPI on 20-01-2026 at 16:35:10 to AD VENTURES.Ref:163509601488 -Federal Bank"
Answer: {{"category":"Unknown","confidence":0.85,"bank":"Federal Bank","merchant":"AD VENTURES"}}

Return ONLY the JSON object, no explanation."""


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text).strip()


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Parse the first JSON object in a model response.

    Raises:
        ValueError: When no JSON object can be decoded
    """
    cleaned = strip_code_fences(text)
    start = cleaned.find("{")
    if start == -1:
        raise ValueError("No JSON object in classifier response")
    parsed, _ = json.JSONDecoder().raw_decode(cleaned[start:])
    if not isinstance(parsed, dict):
        raise ValueError("Classifier response is not a JSON object")
    return parsed


def validate_confidence(value: object) -> float:
    """Finite numbers in [0, 1] pass through, anything else (NaN included) becomes 0"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    if value < 0 or value > 1:
        return 0.0
    return float(value)


def unknown_result(raw_merchant: str, reason: str) -> ResolutionResult:
    return ResolutionResult(
        merchant=raw_merchant,
        category=UNKNOWN,
        confidence=0.0,
        source=ResolutionSource.FALLBACK_CLASSIFIER,
        failure_reason=reason,
    )


def _non_empty(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def interpret_response(
    text: str,
    raw_merchant: str,
    categories: Sequence[str] = ALLOWED_CATEGORIES,
) -> ResolutionResult:
    """
    Validate a classifier response and cap its confidence.

    Raises:
        ValueError: When the response holds no JSON object
    """
    parsed = parse_json_object(text)

    category = parsed.get("category")
    if not is_allowed_category(category, categories):
        return unknown_result(raw_merchant, f"Category not allowed: {category!r}")

    bank = _non_empty(parsed.get("bank"))
    return ResolutionResult(
        merchant=_non_empty(parsed.get("merchant")) or raw_merchant,
        category=category,
        confidence=min(validate_confidence(parsed.get("confidence")), FALLBACK_CONFIDENCE_CAP),
        source=ResolutionSource.FALLBACK_CLASSIFIER,
        bank=bank if bank != UNKNOWN else None,
    )


class FallbackClassifier:
    """Wraps an external text generator behind a total classify() call"""

    def __init__(
        self,
        generate: Generate,
        categories: Sequence[str] = ALLOWED_CATEGORIES,
        max_message_chars: int = DEFAULT_MAX_MESSAGE_CHARS,
        on_failure: Optional[Callable[[str], None]] = None,
    ):
        self._generate = generate
        self.categories = tuple(categories)
        self.max_message_chars = max_message_chars
        self._on_failure = on_failure

    def build_prompt(self, message: str, raw_merchant: str) -> str:
        return PROMPT_TEMPLATE.format(
            message=message[: self.max_message_chars],
            merchant=raw_merchant[:MAX_MERCHANT_CHARS],
            categories=", ".join(self.categories),
        )

    async def classify(self, message: str, raw_merchant: str) -> ResolutionResult:
        """
        Ask the classifier for a category.

        Never raises. Network, parsing and validation failures all come back
        as an "Unknown" result with zero confidence and ``failure_reason`` set.
        """
        prompt = self.build_prompt(message, raw_merchant)
        try:
            text = await self._generate(prompt)
            result = interpret_response(text, raw_merchant, self.categories)
        except Exception as e:
            result = unknown_result(raw_merchant, f"{type(e).__name__}: {e}")

        if result.failed:
            logger.warning(
                f"Fallback classification failed: {result.failure_reason}",
                extra={"step": "fallback_classify", "merchant": raw_merchant},
            )
            if self._on_failure is not None:
                self._on_failure(result.failure_reason)
        return result
