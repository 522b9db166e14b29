"""
Assessment service — persists questionnaire submissions with engine output.

Layer contract:
    - Scoring is delegated to app.services.recommendation_engine (pure).
    - This module flushes; the blueprint commits via db_commit_or_error().
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from app.core.exceptions import NotFoundError
from app.models import db
from app.models.assessment import Assessment
from app.services import recommendation_engine as engine

logger = logging.getLogger(__name__)


def create_assessment(user_id: str | None, responses: dict) -> tuple[Assessment, engine.RecommendationResult]:
    """Evaluate *responses* and store them with the recommendation and score.

    Returns:
        (assessment, result) — result carries the rationale and raw strategy
        scores, which are not persisted.
    """
    result = engine.evaluate(responses)
    assessment = Assessment(
        user_id=user_id,
        responses=dict(responses),
        recommendation=result.strategy,
        score=result.readiness_score,
    )
    db.session.add(assessment)
    db.session.flush()
    logger.info(
        "Assessment created id=%s strategy=%s score=%d",
        assessment.id, result.strategy, result.readiness_score,
        extra={"assessment_id": assessment.id},
    )
    return assessment, result


def get_assessment(assessment_id: str) -> Assessment:
    """Raises NotFoundError if the assessment does not exist."""
    assessment = db.session.get(Assessment, assessment_id)
    if assessment is None:
        raise NotFoundError(resource="Assessment", resource_id=assessment_id)
    return assessment


def assessments_query(user_id: str | None = None):
    """Newest-first assessment query, optionally limited to one owner."""
    query = Assessment.query
    if user_id:
        query = query.filter(Assessment.user_id == user_id)
    return query.order_by(Assessment.completed_at.desc())


def latest_for_user(user_id: str) -> Assessment | None:
    stmt = (
        select(Assessment)
        .where(Assessment.user_id == user_id)
        .order_by(Assessment.completed_at.desc())
        .limit(1)
    )
    return db.session.execute(stmt).scalars().first()


def serialize(assessment: Assessment) -> dict:
    """Assessment dict plus the rationale re-derived from stored responses."""
    data = assessment.to_dict()
    data["rationale"] = engine.get_recommendation_rationale(
        assessment.responses or {}, assessment.recommendation,
    )
    return data
