"""Time-bounded merchant rule cache with stale-on-error fallback"""

import logging
import time
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from sms_ledger.domain.models import MerchantRule
from sms_ledger.domain.resolver import normalize_merchant

logger = logging.getLogger(__name__)

RuleRow = Sequence[object]
RuleLoader = Callable[[], Awaitable[List[RuleRow]]]

DEFAULT_TTL_SECONDS = 300.0


def _parse_priority(value: object) -> float:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0


def parse_rule_rows(rows: Sequence[RuleRow]) -> Tuple[MerchantRule, ...]:
    """
    Turn raw rule rows into MerchantRule records.

    Row layout: (pattern, merchant, category[, priority]). Rows missing a
    pattern, merchant or category are skipped; a missing or unparseable
    priority counts as 0.
    """
    rules = []
    for row in rows:
        cells = [str(cell).strip() if cell is not None else "" for cell in row]
        if len(cells) < 3:
            continue
        pattern, merchant, category = cells[0], cells[1], cells[2]
        normalized = normalize_merchant(pattern)
        if not normalized or not merchant or not category:
            continue
        priority = _parse_priority(cells[3]) if len(cells) > 3 else 0.0
        rules.append(
            MerchantRule(pattern=normalized, merchant=merchant, category=category, priority=priority)
        )
    return tuple(rules)


class RuleCache:
    """
    Process-wide holder of the current merchant rule set.

    The rule tuple and its load time are stored together in one attribute and
    replaced with a single assignment, so concurrent readers always see a
    complete snapshot. Concurrent refreshes may each hit the loader; the last
    write wins.
    """

    def __init__(
        self,
        loader: RuleLoader,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        on_load: Optional[Callable[[str], None]] = None,
    ):
        self._loader = loader
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._on_load = on_load
        self._snapshot: Tuple[Tuple[MerchantRule, ...], Optional[float]] = ((), None)

    async def get_rules(self) -> List[MerchantRule]:
        """
        Return the current rules, reloading when the TTL has expired.

        Never raises: on a failed reload the previous rules (possibly empty)
        are returned unchanged.
        """
        rules, loaded_at = self._snapshot
        if loaded_at is not None and (self._clock() - loaded_at) < self.ttl_seconds:
            return list(rules)

        try:
            rows = await self._loader()
            fresh = parse_rule_rows(rows)
        except Exception as e:
            logger.warning(
                f"Rule reload failed, serving {len(rules)} cached rules: {e}",
                extra={"step": "rule_cache_reload", "stale": loaded_at is not None},
            )
            self._record("failure")
            return list(rules)

        self._snapshot = (fresh, self._clock())
        logger.info(
            "Merchant rules loaded",
            extra={"step": "rule_cache_reload", "rule_count": len(fresh)},
        )
        self._record("success")
        return list(fresh)

    def _record(self, outcome: str) -> None:
        if self._on_load is not None:
            self._on_load(outcome)
