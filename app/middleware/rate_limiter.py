"""
Per-blueprint rate limits (Flask-Limiter).

The Limiter is created in app/__init__.py without default limits; this
module attaches one limit string per API blueprint, read from config, and
exempts the health probes.

    assessment  — ASSESSMENT_RATE_LIMIT  (questionnaire scoring is public)
    shape_up    — SHAPE_UP_RATE_LIMIT    (CRUD + drag commits)
    health      — exempt

Usage:
    from app.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)   # after blueprints are registered
"""

import logging

logger = logging.getLogger(__name__)

# blueprint name → (config key, default limit)
BLUEPRINT_LIMITS = {
    "assessment": ("ASSESSMENT_RATE_LIMIT", "30 per minute"),
    "shape_up": ("SHAPE_UP_RATE_LIMIT", "120 per minute"),
}
EXEMPT_BLUEPRINTS = ("health",)


def init_rate_limits(app, limiter):
    """Attach configured limits; no-op in testing or when RATELIMIT_ENABLED is false."""
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    applied = {}
    for name, (config_key, default) in BLUEPRINT_LIMITS.items():
        bp = app.blueprints.get(name)
        if bp is None:
            continue
        limit = app.config.get(config_key, default)
        limiter.limit(limit)(bp)
        applied[name] = limit

    for name in EXEMPT_BLUEPRINTS:
        bp = app.blueprints.get(name)
        if bp is not None:
            limiter.exempt(bp)

    app.logger.info("Rate limits applied: %s", applied)
