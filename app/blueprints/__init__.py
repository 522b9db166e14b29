"""
SAP Migration Readiness Platform
Blueprint registry and shared list helpers.

    assessment_bp — questionnaire scoring + stored assessments
    shape_up_bp   — projects, pitches, scopes, work packages, hill charts
    health_bp     — readiness / liveness probes
"""

from flask import request


def _int_arg(name: str, default: int) -> int:
    try:
        return int(request.args.get(name, default))
    except (ValueError, TypeError):
        return default


def paginate_query(query, default_limit=50, max_limit=500):
    """Apply limit/offset pagination to a SQLAlchemy query.

    Query params:
        limit  — max items (default 50, clamped to 1..max_limit)
        offset — starting position (default 0)

    Returns:
        (items_list, total_count)
    """
    total = query.count()
    limit = max(1, min(_int_arg("limit", default_limit), max_limit))
    offset = max(_int_arg("offset", 0), 0)
    items = query.limit(limit).offset(offset).all()
    return items, total
