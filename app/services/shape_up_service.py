"""
Shape Up service — projects, pitches, scopes and hill-chart work packages.

Business context:
    A Project runs fixed-length build cycles followed by cooldown. Pitches
    are shaped, bet on at the betting table, and built inside one cycle.
    Each pitch's work packages move across a hill chart: uphill while the
    team is still figuring things out, downhill once it is executing.

    Invariant: a work package's phase always equals
    phase_from_position(position). Updates that send a phase contradicting
    the position are rejected; updates that send only a position get the
    phase derived.

Layer contract:
    - Blueprints validate input shape; this module enforces business rules
      and raises NotFoundError / ValidationError.
    - This module flushes; blueprints commit via db_commit_or_error().
"""

from __future__ import annotations

import logging

from flask import current_app
from sqlalchemy import select

from app.core.exceptions import NotFoundError, ValidationError
from app.models import db
from app.models.assessment import Assessment
from app.models.project import Project
from app.models.shape_up import Pitch, Scope, WorkPackage
from app.services.hill_chart import (
    DEFAULT_START_POSITION,
    HillDragSession,
    HillGeometry,
    get_hill_geometry,
    phase_from_position,
    progress_label,
    to_position_int,
)

logger = logging.getLogger(__name__)

PITCH_CANDIDATE_STATUSES = ("shaped", "betting")
PITCH_SELECTED_STATUSES = ("selected", "active")
PITCH_CLOSED_STATUSES = ("completed", "abandoned")


# ── Lookups ──────────────────────────────────────────────────────────────────


def _get(model, pk: str):
    obj = db.session.get(model, pk)
    if obj is None:
        raise NotFoundError(resource=model.__name__, resource_id=pk)
    return obj


def get_project(project_id: str) -> Project:
    return _get(Project, project_id)


def get_pitch(pitch_id: str) -> Pitch:
    return _get(Pitch, pitch_id)


def get_scope(scope_id: str) -> Scope:
    return _get(Scope, scope_id)


def get_work_package(work_package_id: str) -> WorkPackage:
    return _get(WorkPackage, work_package_id)


# ═════════════════════════════════════════════════════════════════════════════
# Projects
# ═════════════════════════════════════════════════════════════════════════════


def list_projects(user_id: str | None = None) -> list[Project]:
    stmt = select(Project)
    if user_id:
        stmt = stmt.where(Project.user_id == user_id)
    stmt = stmt.order_by(Project.created_at.desc())
    return db.session.execute(stmt).scalars().all()


def create_project(data: dict) -> Project:
    """Create a project; strategy falls back to the linked assessment's recommendation."""
    strategy = data.get("strategy")
    assessment_id = data.get("assessment_id")
    if assessment_id:
        assessment = _get(Assessment, assessment_id)
        strategy = strategy or assessment.recommendation
    if not strategy:
        raise ValidationError(
            "strategy is required when no assessment with a recommendation is linked",
            details={"strategy": "required"},
        )

    project = Project(
        user_id=data.get("user_id"),
        assessment_id=assessment_id,
        name=data["name"].strip(),
        strategy=strategy,
        status=data.get("status") or "planning",
        build_cycle_duration=data.get("build_cycle_duration") or 6,
        cooldown_cycle_duration=data.get("cooldown_cycle_duration") or 2,
        current_cycle=data.get("current_cycle") or 0,
        cycle_phase=data.get("cycle_phase") or "planning",
    )
    db.session.add(project)
    db.session.flush()
    return project


PROJECT_UPDATABLE = (
    "name", "strategy", "status", "build_cycle_duration",
    "cooldown_cycle_duration", "current_cycle", "cycle_phase",
)


def update_project(project: Project, data: dict) -> Project:
    for attr in PROJECT_UPDATABLE:
        if attr in data and data[attr] is not None:
            value = data[attr].strip() if isinstance(data[attr], str) else data[attr]
            setattr(project, attr, value)
    db.session.flush()
    return project


# ═════════════════════════════════════════════════════════════════════════════
# Pitches & betting table
# ═════════════════════════════════════════════════════════════════════════════


PITCH_FIELDS = (
    "title", "problem", "solution", "appetite", "business_value",
    "roadblocks", "dependencies", "team_members", "status", "cycle",
)


def create_pitch(project: Project, data: dict) -> Pitch:
    pitch = Pitch(project_id=project.id)
    for attr in PITCH_FIELDS:
        if data.get(attr) is not None:
            setattr(pitch, attr, data[attr])
    if not pitch.status:
        pitch.status = "shaped"
    _assign_cycle_on_selection(pitch, project)
    db.session.add(pitch)
    db.session.flush()
    return pitch


def list_pitches(project_id: str) -> list[Pitch]:
    stmt = (
        select(Pitch)
        .where(Pitch.project_id == project_id)
        .order_by(Pitch.created_at)
    )
    return db.session.execute(stmt).scalars().all()


def update_pitch(pitch: Pitch, data: dict) -> Pitch:
    for attr in PITCH_FIELDS:
        if attr in data:
            setattr(pitch, attr, data[attr])
    _assign_cycle_on_selection(pitch, pitch.project)
    db.session.flush()
    return pitch


def _assign_cycle_on_selection(pitch: Pitch, project: Project) -> None:
    """A pitch bet on without an explicit cycle goes into the project's next cycle."""
    if pitch.status in PITCH_SELECTED_STATUSES and pitch.cycle is None:
        pitch.cycle = (project.current_cycle or 0) + 1


def betting_table(project: Project) -> dict:
    """Group a project's pitches into the three betting-table columns."""
    pitches = list_pitches(project.id)
    return {
        "project_id": project.id,
        "current_cycle": project.current_cycle,
        "cycle_phase": project.cycle_phase,
        "candidates": [p.to_dict() for p in pitches if p.status in PITCH_CANDIDATE_STATUSES],
        "selected": [p.to_dict() for p in pitches if p.status in PITCH_SELECTED_STATUSES],
        "closed": [p.to_dict() for p in pitches if p.status in PITCH_CLOSED_STATUSES],
    }


# ═════════════════════════════════════════════════════════════════════════════
# Scopes
# ═════════════════════════════════════════════════════════════════════════════


SCOPE_FIELDS = (
    "name", "description", "boundaries", "key_objectives",
    "success_criteria", "constraints",
)


def create_scope(project: Project, data: dict) -> Scope:
    scope = Scope(project_id=project.id)
    for attr in SCOPE_FIELDS:
        if data.get(attr) is not None:
            setattr(scope, attr, data[attr])
    db.session.add(scope)
    db.session.flush()
    return scope


def list_scopes(project_id: str) -> list[Scope]:
    stmt = select(Scope).where(Scope.project_id == project_id).order_by(Scope.created_at)
    return db.session.execute(stmt).scalars().all()


# ═════════════════════════════════════════════════════════════════════════════
# Work packages
# ═════════════════════════════════════════════════════════════════════════════


def _resolve_position_and_phase(current_position: int, data: dict) -> tuple[int, str]:
    """Apply an incoming position/phase pair, enforcing the phase invariant.

    Raises:
        ValidationError: explicit phase disagrees with the (clamped) position.
    """
    position = to_position_int(data["position"]) if data.get("position") is not None else current_position
    derived = phase_from_position(position)
    requested = data.get("phase")
    if requested is not None and requested != derived:
        logger.warning("Rejected phase=%s for position=%d", requested, position)
        raise ValidationError(
            f"phase '{requested}' contradicts position {position}",
            details={"phase": f"Position {position} is {derived}."},
        )
    return position, derived


def _check_scope(pitch: Pitch, scope_id: str | None) -> None:
    if scope_id is None:
        return
    scope = get_scope(scope_id)
    if scope.project_id != pitch.project_id:
        raise ValidationError(
            "scope belongs to a different project",
            details={"scope_id": "Scope must belong to the pitch's project."},
        )


def create_work_package(pitch: Pitch, data: dict) -> WorkPackage:
    """Create a work package; without a position it starts at DEFAULT_START_POSITION."""
    _check_scope(pitch, data.get("scope_id"))
    position, phase = _resolve_position_and_phase(DEFAULT_START_POSITION, data)
    wp = WorkPackage(
        pitch_id=pitch.id,
        scope_id=data.get("scope_id"),
        name=data["name"].strip(),
        description=data.get("description"),
        position=position,
        phase=phase,
        is_stuck=bool(data.get("is_stuck", False)),
        assignee=data.get("assignee"),
    )
    db.session.add(wp)
    db.session.flush()
    return wp


def list_work_packages(pitch_id: str) -> list[WorkPackage]:
    stmt = (
        select(WorkPackage)
        .where(WorkPackage.pitch_id == pitch_id)
        .order_by(WorkPackage.created_at, WorkPackage.name)
    )
    return db.session.execute(stmt).scalars().all()


def update_work_package(wp: WorkPackage, data: dict) -> WorkPackage:
    """Update a work package; position/phase go through the phase invariant."""
    if "position" in data or "phase" in data:
        wp.position, wp.phase = _resolve_position_and_phase(wp.position, data)
    if "scope_id" in data:
        _check_scope(wp.pitch, data["scope_id"])
        wp.scope_id = data["scope_id"]
    for attr in ("name", "description", "assignee"):
        if attr in data:
            setattr(wp, attr, data[attr])
    if "is_stuck" in data:
        wp.is_stuck = bool(data["is_stuck"])
    db.session.flush()
    return wp


# ═════════════════════════════════════════════════════════════════════════════
# Hill chart
# ═════════════════════════════════════════════════════════════════════════════


def current_geometry() -> HillGeometry:
    """Hill geometry for the configured curve family."""
    return get_hill_geometry(
        current_app.config.get("HILL_CURVE", "arc"),
        **current_app.config.get("HILL_DIMENSIONS", {}),
    )


def hill_chart(pitch: Pitch, steps: int = 100) -> dict:
    """Curve path plus the render coordinate of every work package on *pitch*."""
    geometry = current_geometry()
    packages = []
    for wp in list_work_packages(pitch.id):
        row = wp.to_dict()
        row.update(geometry.position_to_coordinates(wp.position).to_dict())
        row["progress_label"] = progress_label(wp.position)
        packages.append(row)
    return {
        "pitch_id": pitch.id,
        "geometry": geometry.to_dict(),
        "path": [p.to_dict() for p in geometry.curve_points(steps)],
        "work_packages": packages,
    }


def commit_drag(
    wp: WorkPackage,
    moves: list,
    grab_x: float | None = None,
    release: str = "up",
) -> WorkPackage:
    """Replay one drag gesture on *wp* and commit the released position.

    Args:
        wp: The dragged work package.
        moves: Pointer x samples in chart coordinates, in event order.
        grab_x: Pointer x at pointer-down; defaults to the marker's own x.
        release: "up" or "leave" — both commit the current position.
    """
    geometry = current_geometry()

    def _commit(item_id: str, position: int, phase: str) -> None:
        wp.position = position
        wp.phase = phase
        logger.info(
            "Drag committed work_package=%s position=%d phase=%s",
            item_id, position, phase, extra={"work_package_id": item_id},
        )

    session = HillDragSession(geometry, commit=_commit)
    if grab_x is None:
        grab_x = geometry.position_to_coordinates(wp.position).x
    session.pointer_down(wp.id, grab_x, wp.position)
    for x in moves:
        session.pointer_move(x)
    if release == "leave":
        session.pointer_leave()
    else:
        session.pointer_up()
    db.session.flush()
    return wp
