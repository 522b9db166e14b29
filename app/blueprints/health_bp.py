"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — process is up; no dependency checks
    GET /api/v1/health/live   — database, schema, limiter storage and hill
                                geometry configuration; 503 when degraded
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import inspect

from app.models import db
from app.services.hill_chart import get_hill_geometry

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")

REQUIRED_TABLES = ("assessments", "projects", "pitches", "scopes", "work_packages")


def _check_database() -> dict:
    t0 = time.perf_counter()
    db.session.execute(db.text("SELECT 1"))
    latency_ms = (time.perf_counter() - t0) * 1000
    missing = sorted(set(REQUIRED_TABLES) - set(inspect(db.engine).get_table_names()))
    return {
        "status": "error" if missing else "ok",
        "latency_ms": round(latency_ms, 1),
        "missing_tables": missing,
    }


def _check_hill_geometry() -> dict:
    """A bad HILL_CURVE / HILL_DIMENSIONS only shows up on the first hill-chart request otherwise."""
    curve = current_app.config.get("HILL_CURVE", "arc")
    geometry = get_hill_geometry(curve, **current_app.config.get("HILL_DIMENSIONS", {}))
    return {"status": "ok", **geometry.to_dict()}


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check with dependency status."""
    checks = {}

    try:
        checks["database"] = _check_database()
    except Exception as exc:
        logger.error("Health check — database failed: %s", exc)
        checks["database"] = {"status": "error", "detail": str(exc)}

    try:
        checks["hill_geometry"] = _check_hill_geometry()
    except (TypeError, ValueError) as exc:
        logger.error("Health check — hill geometry misconfigured: %s", exc)
        checks["hill_geometry"] = {"status": "error", "detail": str(exc)}

    storage = current_app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    checks["rate_limit_storage"] = {
        "status": "ok" if current_app.config.get("RATELIMIT_ENABLED", True) else "disabled",
        "backend": storage.split("://", 1)[0],
    }

    checks["app"] = {
        "name": "SAP Migration Readiness Platform",
        "hill_curve": current_app.config.get("HILL_CURVE", "arc"),
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    healthy = all(c.get("status") != "error" for c in checks.values())
    return jsonify({
        "status": "healthy" if healthy else "degraded",
        "checks": checks,
    }), 200 if healthy else 503
