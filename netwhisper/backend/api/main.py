"""
api/main.py

FastAPI application factory for the ingest server.

The IngestStore and Aggregator are created per app and kept on app.state;
route handlers reach them through FastAPI dependencies. Passing a store in
lets tests (and embedding processes) share one explicit handle.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..aggregation import Aggregator
from ..config import settings
from ..explain import ExplainGatekeeper, RiskExplainer
from ..metrics import METRICS
from ..storage import IngestStore
from .routes import analyze as analyze_router
from .routes import explain as explain_router
from .routes import logs as logs_router
from .routes import stats as stats_router
from .serializers import HealthResponse

logger = logging.getLogger(__name__)


def create_app(
    store: IngestStore | None = None,
    api_prefix: str | None = None,
    cors_origins: list[str] | None = None,
    logs_default_limit: int | None = None,
    top_limit: int | None = None,
    explainer: RiskExplainer | None = None,
) -> FastAPI:
    store = store if store is not None else IngestStore()
    prefix = settings.API_PREFIX if api_prefix is None else api_prefix
    origins = settings.CORS_ORIGINS if cors_origins is None else cors_origins

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("FastAPI startup — API under %r", prefix or "/")
        yield
        logger.info(
            "FastAPI shutdown — %d entries discarded, metrics=%s",
            len(app.state.store), METRICS.as_dict(),
        )

    app = FastAPI(
        title="NetWhisper — Traffic Telemetry Ingest",
        version="1.0.0",
        description="Collects device traffic batches and serves aggregate statistics",
        lifespan=lifespan,
    )

    app.state.store = store
    app.state.aggregator = Aggregator(
        store,
        top_limit=settings.TOP_DESTINATIONS_LIMIT if top_limit is None else top_limit,
    )
    app.state.logs_default_limit = (
        settings.LOGS_DEFAULT_LIMIT if logs_default_limit is None else logs_default_limit
    )
    app.state.explainer = explainer if explainer is not None else RiskExplainer(
        base_url=settings.OLLAMA_URL,
        model=settings.OLLAMA_MODEL,
        enabled=settings.LLM_ENABLED,
        timeout=settings.LLM_TIMEOUT_SECONDS,
        gatekeeper=ExplainGatekeeper(
            max_calls_per_minute=settings.LLM_MAX_CALLS_PER_MINUTE,
            cooldown_seconds=settings.LLM_COOLDOWN_SECONDS,
        ),
    )
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        if request.url.path.endswith("/analyze"):
            METRICS.batches_rejected.inc()
            message = "Invalid packet data"
        else:
            message = "Invalid request"
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(
            status_code=400,
            content={"error": message, "detail": jsonable_encoder(exc.errors())},
        )

    # REST routers
    app.include_router(analyze_router.router, prefix=prefix)
    app.include_router(logs_router.router,    prefix=prefix)
    app.include_router(stats_router.router,   prefix=prefix)
    app.include_router(explain_router.router, prefix=prefix)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            uptime=time.monotonic() - app.state.started_at,
        )

    return app
