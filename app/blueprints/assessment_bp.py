"""
Assessment Blueprint — migration readiness questionnaire.

Endpoints:
    POST /api/v1/assessments/evaluate   — score answers without storing them
    POST /api/v1/assessments            — score + store a submission
    GET  /api/v1/assessments            — list (optional user_id filter, paginated)
    GET  /api/v1/assessments/latest     — newest submission for a user_id
    GET  /api/v1/assessments/<id>       — one submission with rationale

Layer contract:
    - Scoring lives in recommendation_engine; storage in assessment_service.
    - Commits only through db_commit_or_error().
"""

import logging

from flask import Blueprint, jsonify, request

from app.blueprints import paginate_query
from app.services import assessment_service
from app.services import recommendation_engine as engine
from app.utils.errors import E, api_error, register_error_handlers
from app.utils.helpers import db_commit_or_error

logger = logging.getLogger(__name__)

assessment_bp = Blueprint("assessment", __name__, url_prefix="/api/v1")
register_error_handlers(assessment_bp)


# ── Private helper ────────────────────────────────────────────────────────────


def _read_responses():
    """Return (responses, user_id, err_response) from the JSON body."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    responses = data.get("responses")
    if not isinstance(responses, dict):
        return None, None, api_error(
            E.VALIDATION_REQUIRED, "responses (object) is required",
        )
    user_id = data.get("user_id")
    if user_id is not None and not isinstance(user_id, str):
        return None, None, api_error(
            E.VALIDATION_INVALID, "Validation failed",
            details={"user_id": "Must be a string."},
        )
    return responses, user_id, None


# ── Routes ────────────────────────────────────────────────────────────────────


@assessment_bp.route("/assessments/evaluate", methods=["POST"])
def evaluate_assessment():
    """Run the recommendation engine on a (possibly partial) answer set.

    Nothing is stored. Unknown answers are reported under ``ignored`` and
    contribute nothing to the result.
    """
    responses, _user_id, err = _read_responses()
    if err:
        return err

    result = engine.evaluate(responses).to_dict()
    result["ignored"] = engine.unknown_answers(responses)
    return jsonify(result), 200


@assessment_bp.route("/assessments", methods=["POST"])
def create_assessment():
    """Score and store a questionnaire submission.

    Body (JSON):
        responses (object, required): camelCase answer set.
        user_id (str, optional): owner label.

    Returns 201 with the stored assessment plus rationale and raw scores.
    """
    responses, user_id, err = _read_responses()
    if err:
        return err

    problems = engine.unknown_answers(responses)
    if problems:
        return api_error(E.VALIDATION_INVALID, "Validation failed", details=problems)

    assessment, result = assessment_service.create_assessment(user_id, responses)
    cerr = db_commit_or_error()
    if cerr:
        return cerr

    body = assessment.to_dict()
    body["rationale"] = result.rationale
    body["scores"] = result.scores
    return jsonify(body), 201


@assessment_bp.route("/assessments", methods=["GET"])
def list_assessments():
    """List stored assessments, newest first.

    Query params:
        user_id (str, optional), limit, offset
    """
    query = assessment_service.assessments_query(request.args.get("user_id"))
    items, total = paginate_query(query)
    return jsonify({"items": [a.to_dict() for a in items], "total": total}), 200


@assessment_bp.route("/assessments/latest", methods=["GET"])
def latest_assessment():
    """Newest assessment for ``?user_id=``; 404 when the user has none."""
    user_id = request.args.get("user_id", type=str)
    if not user_id:
        return api_error(E.VALIDATION_REQUIRED, "user_id is required")
    assessment = assessment_service.latest_for_user(user_id)
    if assessment is None:
        return api_error(E.NOT_FOUND, "No assessment found for user")
    return jsonify(assessment_service.serialize(assessment)), 200


@assessment_bp.route("/assessments/<assessment_id>", methods=["GET"])
def get_assessment(assessment_id: str):
    assessment = assessment_service.get_assessment(assessment_id)
    return jsonify(assessment_service.serialize(assessment)), 200
