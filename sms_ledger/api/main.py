"""FastAPI application factory"""

from datetime import datetime, timezone

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from sms_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from sms_ledger.api.v1 import ingest
from sms_ledger.config import settings
from sms_ledger.domain.fallback import FallbackClassifier
from sms_ledger.domain.pipeline import TransactionPipeline
from sms_ledger.domain.rule_cache import RuleCache
from sms_ledger.infrastructure.clients.gemini import GeminiClient
from sms_ledger.infrastructure.clients.sheets import SheetsClient
from sms_ledger.infrastructure.database.adapters import make_database_rule_loader
from sms_ledger.infrastructure.database.session import SessionLocal, init_db
from sms_ledger.infrastructure.observability.logging import setup_logging
from sms_ledger.infrastructure.observability.metrics import record_fallback_failure, record_rule_load

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


def build_pipeline(sheets_client: SheetsClient) -> TransactionPipeline:
    """Wire the rule cache and fallback classifier to their configured backends"""
    if settings.rule_backend == "database":
        loader = make_database_rule_loader(SessionLocal)
    else:
        loader = sheets_client.fetch_rule_rows

    rule_cache = RuleCache(
        loader,
        ttl_seconds=settings.rule_cache_ttl_seconds,
        on_load=record_rule_load,
    )
    classifier = FallbackClassifier(
        GeminiClient().generate,
        max_message_chars=settings.classifier_max_message_chars,
        on_failure=record_fallback_failure,
    )
    return TransactionPipeline(rule_cache, classifier, strict_extraction=settings.strict_extraction)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="SMS Ledger Gateway",
        description="Bank notification ingest, merchant resolution and categorization service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    if "database" in (settings.rule_backend, settings.store_backend):
        init_db()

    # One rule cache per app, shared by every request
    app.state.sheets_client = SheetsClient()
    app.state.pipeline = build_pipeline(app.state.sheets_client)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(ingest.router, prefix="/v1", tags=["ingest"])

    return app


app = create_app()
