"""
Shape Up Blueprint — projects, pitches, scopes, work packages and hill charts.

Endpoints:
    POST /api/v1/projects                              — create project
    GET  /api/v1/projects                              — list (optional user_id)
    GET  /api/v1/projects/<id>                         — fetch
    PUT  /api/v1/projects/<id>                         — update name/strategy/status/cycle
    POST /api/v1/projects/<id>/pitches                 — create pitch
    GET  /api/v1/projects/<id>/pitches                 — list pitches
    GET  /api/v1/projects/<id>/betting-table           — pitches grouped by column
    PUT  /api/v1/pitches/<id>                          — update pitch
    POST /api/v1/projects/<id>/scopes                  — create scope
    GET  /api/v1/projects/<id>/scopes                  — list scopes
    POST /api/v1/pitches/<id>/work-packages            — create work package
    GET  /api/v1/pitches/<id>/work-packages            — list work packages
    PUT  /api/v1/work-packages/<id>                    — update (position/phase/stuck/...)
    POST /api/v1/work-packages/<id>/drag               — commit a drag gesture
    GET  /api/v1/pitches/<id>/hill-chart               — curve + package coordinates

Layer contract:
    - Input shape is validated here (400); business rules in shape_up_service (422).
    - Commits only through db_commit_or_error().
"""

import logging

from flask import Blueprint, jsonify, request

from app.services import shape_up_service as svc
from app.services.hill_chart import VALID_PHASES
from app.services.recommendation_engine import STRATEGIES
from app.utils.errors import E, api_error, register_error_handlers
from app.utils.helpers import db_commit_or_error

logger = logging.getLogger(__name__)

shape_up_bp = Blueprint("shape_up", __name__, url_prefix="/api/v1")
register_error_handlers(shape_up_bp)

# ── Valid value constants (blueprint-level input validation) ──────────────────

VALID_STRATEGIES = frozenset(STRATEGIES)
VALID_PROJECT_STATUSES = frozenset({"planning", "active", "completed"})
VALID_CYCLE_PHASES = frozenset({"planning", "building", "cooldown"})
VALID_PITCH_STATUSES = frozenset({"shaped", "betting", "selected", "active", "completed", "abandoned"})
VALID_RELEASES = frozenset({"up", "leave"})

MAX_NAME_LEN = 200


# ── Validation helpers ────────────────────────────────────────────────────────


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_name(errors: dict, data: dict, field: str, partial: bool) -> None:
    if field not in data and partial:
        return
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        errors[field] = f"{field} is required."
    elif len(value) > MAX_NAME_LEN:
        errors[field] = f"{field} must be ≤ {MAX_NAME_LEN} characters."


def _check_choice(errors: dict, data: dict, field: str, choices: frozenset) -> None:
    value = data.get(field)
    if value is not None and (not isinstance(value, str) or value not in choices):
        errors[field] = f"Must be one of: {', '.join(sorted(choices))}."


def _check_positive_int(errors: dict, data: dict, field: str, allow_zero: bool = False) -> None:
    value = data.get(field)
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < (0 if allow_zero else 1):
        errors[field] = "Must be a non-negative integer." if allow_zero else "Must be a positive integer."


def _check_list(errors: dict, data: dict, field: str) -> None:
    if data.get(field) is not None and not isinstance(data[field], list):
        errors[field] = "Must be a list."


def _validate_project(data: dict, partial: bool = False) -> dict:
    errors: dict[str, str] = {}
    _check_name(errors, data, "name", partial)
    _check_choice(errors, data, "strategy", VALID_STRATEGIES)
    _check_choice(errors, data, "status", VALID_PROJECT_STATUSES)
    _check_choice(errors, data, "cycle_phase", VALID_CYCLE_PHASES)
    _check_positive_int(errors, data, "build_cycle_duration")
    _check_positive_int(errors, data, "cooldown_cycle_duration")
    _check_positive_int(errors, data, "current_cycle", allow_zero=True)
    return errors


def _validate_pitch(data: dict, partial: bool = False) -> dict:
    errors: dict[str, str] = {}
    _check_name(errors, data, "title", partial)
    for field in ("problem", "solution", "business_value"):
        if field in data or not partial:
            value = data.get(field)
            if not isinstance(value, str) or not value.strip():
                errors[field] = f"{field} is required."
    if "appetite" in data or not partial:
        _check_positive_int(errors, data, "appetite")
        if data.get("appetite") is None:
            errors["appetite"] = "appetite (weeks) is required."
    _check_positive_int(errors, data, "cycle")
    if "status" in data and data["status"] is None:
        errors["status"] = "status cannot be null."
    else:
        _check_choice(errors, data, "status", VALID_PITCH_STATUSES)
    _check_list(errors, data, "dependencies")
    _check_list(errors, data, "team_members")
    return errors


def _validate_scope(data: dict) -> dict:
    errors: dict[str, str] = {}
    _check_name(errors, data, "name", partial=False)
    _check_list(errors, data, "key_objectives")
    return errors


def _validate_work_package(data: dict, partial: bool = False) -> dict:
    errors: dict[str, str] = {}
    _check_name(errors, data, "name", partial)
    position = data.get("position")
    if position is not None and not _is_number(position):
        errors["position"] = "Must be a number (0-100)."
    _check_choice(errors, data, "phase", VALID_PHASES)
    if "is_stuck" in data and not isinstance(data["is_stuck"], bool):
        errors["is_stuck"] = "Must be a boolean."
    return errors


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _invalid(errors: dict):
    return api_error(E.VALIDATION_INVALID, "Validation failed", details=errors)


# ═════════════════════════════════════════════════════════════════════════════
# Projects
# ═════════════════════════════════════════════════════════════════════════════


@shape_up_bp.route("/projects", methods=["POST"])
def create_project():
    """Create a project.

    Body (JSON):
        name (str, required)
        strategy (str, optional if assessment_id is given): greenfield|brownfield|hybrid
        assessment_id (str, optional): strategy defaults to its recommendation
        user_id, status, build_cycle_duration, cooldown_cycle_duration,
        current_cycle, cycle_phase (optional)
    """
    data = _body()
    errors = _validate_project(data)
    if errors:
        return _invalid(errors)

    project = svc.create_project(data)
    cerr = db_commit_or_error()
    if cerr:
        return cerr
    return jsonify(project.to_dict()), 201


@shape_up_bp.route("/projects", methods=["GET"])
def list_projects():
    projects = svc.list_projects(request.args.get("user_id"))
    return jsonify([p.to_dict() for p in projects]), 200


@shape_up_bp.route("/projects/<project_id>", methods=["GET"])
def get_project(project_id: str):
    return jsonify(svc.get_project(project_id).to_dict()), 200


@shape_up_bp.route("/projects/<project_id>", methods=["PUT"])
def update_project(project_id: str):
    project = svc.get_project(project_id)
    data = _body()
    errors = _validate_project(data, partial=True)
    if errors:
        return _invalid(errors)

    svc.update_project(project, data)
    cerr = db_commit_or_error()
    if cerr:
        return cerr
    return jsonify(project.to_dict()), 200


# ═════════════════════════════════════════════════════════════════════════════
# Pitches
# ═════════════════════════════════════════════════════════════════════════════


@shape_up_bp.route("/projects/<project_id>/pitches", methods=["POST"])
def create_pitch(project_id: str):
    """Create a pitch under a project.

    Body (JSON):
        title, problem, solution, business_value (str, required)
        appetite (int weeks, required)
        roadblocks (str), dependencies (list), team_members (list),
        status (shaped|betting|selected|active|completed|abandoned), cycle (int)
    """
    project = svc.get_project(project_id)
    data = _body()
    errors = _validate_pitch(data)
    if errors:
        return _invalid(errors)

    pitch = svc.create_pitch(project, data)
    cerr = db_commit_or_error()
    if cerr:
        return cerr
    return jsonify(pitch.to_dict()), 201


@shape_up_bp.route("/projects/<project_id>/pitches", methods=["GET"])
def list_pitches(project_id: str):
    svc.get_project(project_id)
    return jsonify([p.to_dict() for p in svc.list_pitches(project_id)]), 200


@shape_up_bp.route("/projects/<project_id>/betting-table", methods=["GET"])
def get_betting_table(project_id: str):
    """Pitches grouped into candidates / selected / closed."""
    project = svc.get_project(project_id)
    return jsonify(svc.betting_table(project)), 200


@shape_up_bp.route("/pitches/<pitch_id>", methods=["PUT"])
def update_pitch(pitch_id: str):
    """Update a pitch; moving it to selected/active without a cycle assigns the next cycle."""
    pitch = svc.get_pitch(pitch_id)
    data = _body()
    errors = _validate_pitch(data, partial=True)
    if errors:
        return _invalid(errors)

    svc.update_pitch(pitch, data)
    cerr = db_commit_or_error()
    if cerr:
        return cerr
    return jsonify(pitch.to_dict()), 200


# ═════════════════════════════════════════════════════════════════════════════
# Scopes
# ═════════════════════════════════════════════════════════════════════════════


@shape_up_bp.route("/projects/<project_id>/scopes", methods=["POST"])
def create_scope(project_id: str):
    project = svc.get_project(project_id)
    data = _body()
    errors = _validate_scope(data)
    if errors:
        return _invalid(errors)

    scope = svc.create_scope(project, data)
    cerr = db_commit_or_error()
    if cerr:
        return cerr
    return jsonify(scope.to_dict()), 201


@shape_up_bp.route("/projects/<project_id>/scopes", methods=["GET"])
def list_scopes(project_id: str):
    svc.get_project(project_id)
    return jsonify([s.to_dict() for s in svc.list_scopes(project_id)]), 200


# ═════════════════════════════════════════════════════════════════════════════
# Work packages & hill chart
# ═════════════════════════════════════════════════════════════════════════════


@shape_up_bp.route("/pitches/<pitch_id>/work-packages", methods=["POST"])
def create_work_package(pitch_id: str):
    """Create a work package on a pitch's hill chart.

    Body (JSON):
        name (str, required)
        position (number, optional): clamped to 0-100, default 10
        phase (str, optional): must agree with position if given
        scope_id, description, assignee (optional), is_stuck (bool)
    """
    pitch = svc.get_pitch(pitch_id)
    data = _body()
    errors = _validate_work_package(data)
    if errors:
        return _invalid(errors)

    wp = svc.create_work_package(pitch, data)
    cerr = db_commit_or_error()
    if cerr:
        return cerr
    return jsonify(wp.to_dict()), 201


@shape_up_bp.route("/pitches/<pitch_id>/work-packages", methods=["GET"])
def list_work_packages(pitch_id: str):
    svc.get_pitch(pitch_id)
    return jsonify([wp.to_dict() for wp in svc.list_work_packages(pitch_id)]), 200


@shape_up_bp.route("/work-packages/<work_package_id>", methods=["PUT"])
def update_work_package(work_package_id: str):
    """Commit a work package update.

    A position alone gets its phase derived; a phase contradicting the
    position is rejected with 422.
    """
    wp = svc.get_work_package(work_package_id)
    data = _body()
    errors = _validate_work_package(data, partial=True)
    if errors:
        return _invalid(errors)

    svc.update_work_package(wp, data)
    cerr = db_commit_or_error()
    if cerr:
        return cerr
    return jsonify(wp.to_dict()), 200


@shape_up_bp.route("/work-packages/<work_package_id>/drag", methods=["POST"])
def drag_work_package(work_package_id: str):
    """Commit a drag gesture, given in chart coordinates.

    Body (JSON):
        pointer_x (number) or moves (list of numbers): pointer x samples
        grab_x (number, optional): pointer x at pointer-down
        release (str, optional): "up" (default) or "leave" — both commit

    Non-finite samples keep the last good position.
    """
    wp = svc.get_work_package(work_package_id)
    data = _body()

    errors: dict[str, str] = {}
    moves = data.get("moves")
    if moves is None and "pointer_x" in data:
        moves = [data["pointer_x"]]
    if not isinstance(moves, list) or not moves:
        errors["moves"] = "pointer_x (number) or moves (non-empty list) is required."
    elif not all(_is_number(x) for x in moves):
        errors["moves"] = "Pointer samples must be numbers."
    grab_x = data.get("grab_x")
    if grab_x is not None and not _is_number(grab_x):
        errors["grab_x"] = "Must be a number."
    release = data.get("release", "up")
    if not isinstance(release, str) or release not in VALID_RELEASES:
        errors["release"] = "Must be one of: leave, up."
    if errors:
        return _invalid(errors)

    svc.commit_drag(wp, moves, grab_x=grab_x, release=release)
    cerr = db_commit_or_error()
    if cerr:
        return cerr
    return jsonify(wp.to_dict()), 200


@shape_up_bp.route("/pitches/<pitch_id>/hill-chart", methods=["GET"])
def get_hill_chart(pitch_id: str):
    """Render data for a pitch's hill chart.

    Query params:
        steps (int, optional): curve sample count, default 100, max 500
    """
    pitch = svc.get_pitch(pitch_id)
    steps = request.args.get("steps", 100, type=int)
    steps = max(1, min(steps, 500))
    return jsonify(svc.hill_chart(pitch, steps=steps)), 200
