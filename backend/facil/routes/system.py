# backend/facil/routes/system.py
"""
System health and version endpoints.

The health check covers the local database (always used for sessions) and
the configured persistence provider, which may be the hosted backend.
"""

import sys
import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..errors import ProviderError
from ..extensions import db, get_provider
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_provider_health() -> dict:
    """A cheap read against the active provider."""
    provider = get_provider()
    start_time = time.time()
    try:
        product_count = len(provider.products.list())
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "provider": provider.name,
            "latency_ms": round(elapsed_ms, 2),
            "details": {"products": product_count},
        }
    except ProviderError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Persistence provider health check failed")
        return {
            "status": "unhealthy",
            "provider": provider.name,
            "latency_ms": round(elapsed_ms, 2),
            "error": "Provider error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: all checks healthy
    - 503: at least one check unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    provider_health = check_provider_health()

    healthy = all(c["status"] == "healthy" for c in (database_health, provider_health))
    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "provider": provider_health,
        },
    }
    return response, 200 if healthy else 503


@system_bp.get("/version")
def version():
    env = "production" if not current_app.debug else "development"
    return {
        "api_version": current_app.config.get("API_VERSION", "1.0.0"),
        "environment": env,
        "provider": get_provider().name,
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
