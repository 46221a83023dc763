"""Prometheus metrics for monitoring resolution paths, rule loads and store writes"""

from prometheus_client import Counter, Histogram

from sms_ledger.domain.models import TransactionRecord

# Resolution metrics
resolution_counter = Counter(
    "ledger_resolution_total",
    "Merchant resolutions by source",
    ["source"],  # RuleMatch | FallbackClassifier
)

confidence_bucket_counter = Counter(
    "ledger_confidence_bucket",
    "Resolution confidence by bucket",
    ["bucket"],  # 0, 0-0.5, 0.5-0.7, 0.7+
)

fallback_failure_counter = Counter(
    "fallback_classifier_failures_total",
    "Fallback classifications that returned Unknown due to an error",
)

classifier_latency_histogram = Histogram(
    "fallback_classifier_latency_seconds",
    "Fallback classifier response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Rule cache metrics
rule_load_counter = Counter(
    "rule_cache_loads_total",
    "Rule source loads by outcome",
    ["outcome"],  # success | failure
)

# Store metrics
store_failure_counter = Counter(
    "store_write_failures_total",
    "Failed transaction store appends",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_resolution(record: TransactionRecord) -> None:
    """Record which path resolved the merchant and how confident it was"""
    resolution_counter.labels(source=record.source.value).inc()

    if record.confidence == 0:
        bucket = "0"
    elif record.confidence < 0.5:
        bucket = "0-0.5"
    elif record.confidence <= 0.7:
        bucket = "0.5-0.7"
    else:
        bucket = "0.7+"

    confidence_bucket_counter.labels(bucket=bucket).inc()


def record_rule_load(outcome: str) -> None:
    rule_load_counter.labels(outcome=outcome).inc()


def record_fallback_failure(reason: str) -> None:
    fallback_failure_counter.inc()
