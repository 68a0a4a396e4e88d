"""FastAPI application for the Chronic Risk Engine."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI

from chronic_risk.api import labs_router, risk_router
from chronic_risk.core.config import settings
from chronic_risk.core.logging import configure_logging

logger = logging.getLogger(__name__)


def prewarm_all_services() -> dict[str, Any]:
    """Create the singleton services before the first request.

    Returns:
        Dictionary with per-service stats and the total prewarm time.
    """
    start_time = time.perf_counter()
    services_loaded = {}

    try:
        from chronic_risk.services.risk_models import get_risk_model_service
        services_loaded["risk_models"] = get_risk_model_service().get_stats()
    except Exception as e:
        logger.warning(f"Failed to prewarm risk_models: {e}")

    try:
        from chronic_risk.services.lab_normalizer import get_lab_normalizer_service
        services_loaded["lab_normalizer"] = get_lab_normalizer_service().get_stats()
    except Exception as e:
        logger.warning(f"Failed to prewarm lab_normalizer: {e}")

    try:
        from chronic_risk.services.risk_engine import get_risk_engine_service
        services_loaded["risk_engine"] = get_risk_engine_service().get_stats()
    except Exception as e:
        logger.warning(f"Failed to prewarm risk_engine: {e}")

    total_ms = (time.perf_counter() - start_time) * 1000
    return {
        "services_loaded": len(services_loaded),
        "services": services_loaded,
        "total_prewarm_time_ms": round(total_ms, 1),
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    startup_start = time.perf_counter()
    configure_logging()

    prewarm_stats = prewarm_all_services()
    logger.info(
        f"Services pre-warmed: {prewarm_stats['services_loaded']} services "
        f"in {prewarm_stats['total_prewarm_time_ms']}ms"
    )

    total_startup_ms = (time.perf_counter() - startup_start) * 1000
    logger.info(f"Server ready - total startup time: {total_startup_ms:.0f}ms")

    app.state.prewarm_stats = prewarm_stats
    app.state.startup_time_ms = total_startup_ms

    yield


app = FastAPI(
    title=settings.app_name,
    description="Deterministic chronic disease risk scores, derived biomarkers and lab normalization.",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# Include routers
app.include_router(risk_router, prefix=settings.api_v1_prefix)
app.include_router(labs_router, prefix=settings.api_v1_prefix)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint (liveness probe).

    Use /ready for readiness checks.
    """
    return {
        "status": "healthy",
        "service": "chronic-risk-engine",
        "version": "0.1.0",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, Any]:
    """Readiness check endpoint.

    Confirms the singleton services are created and ready to handle requests.
    """
    prewarm_stats = getattr(app.state, "prewarm_stats", None) or prewarm_all_services()
    startup_time = getattr(app.state, "startup_time_ms", 0)

    return {
        "status": "ready",
        "service": "chronic-risk-engine",
        "version": "0.1.0",
        "timestamp": datetime.now(UTC).isoformat(),
        "startup_time_ms": startup_time,
        "prewarmed_services": prewarm_stats.get("services_loaded", 0),
        "prewarm_time_ms": prewarm_stats.get("total_prewarm_time_ms", 0),
        "services": prewarm_stats.get("services", {}),
    }


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "service": "Chronic Risk Engine API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
    }
