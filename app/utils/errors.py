"""Uniform JSON error bodies for the API.

Every error response has the same shape::

    {"error": "<human message>", "code": "ERR_...", "details": {...}}

``details`` is omitted when empty.

Usage
-----
    from app.utils.errors import api_error, E

    return api_error(E.VALIDATION_REQUIRED, "responses (object) is required")
    return api_error(E.VALIDATION_INVALID, "Validation failed", details=errors)

Blueprints whose services raise app.core.exceptions call
``register_error_handlers(bp)`` once instead of hand-writing handlers.
"""

from __future__ import annotations

import logging

from flask import jsonify

from app.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class E:
    """Machine-readable error codes (``ERR_`` prefix)."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"   # 400 missing field
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"     # 400 wrong type / enum
    BUSINESS_RULE = "ERR_BUSINESS_RULE"               # 422
    NOT_FOUND = "ERR_NOT_FOUND"                       # 404
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"     # 409
    DATABASE = "ERR_DATABASE"                         # 500


STATUS_BY_CODE: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.BUSINESS_RULE: 422,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.DATABASE: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build ``(response, status)`` for *code*; status defaults from STATUS_BY_CODE, else 400."""
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or STATUS_BY_CODE.get(code, 400)


def register_error_handlers(bp) -> None:
    """Map service exceptions raised inside *bp*'s views to JSON errors."""

    @bp.errorhandler(NotFoundError)
    def _not_found(exc: NotFoundError):
        return api_error(E.NOT_FOUND, str(exc))

    @bp.errorhandler(ValidationError)
    def _business_rule(exc: ValidationError):
        logger.info("Business rule rejected request: %s", exc)
        return api_error(E.BUSINESS_RULE, str(exc), details=exc.details)
