"""
Shape Up Models

Pitch, Scope, WorkPackage — the units of work inside a Project.
A pitch is bet on for a cycle; its work packages move across the hill chart.
"""

import uuid
from datetime import datetime, timezone

from app.models import db


__all__ = [
    "Pitch",
    "Scope",
    "WorkPackage",
]


# ── Helpers ──────────────────────────────────────────────────────────────────

def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ═════════════════════════════════════════════════════════════════════════════
# Pitch — shaped piece of work competing at the betting table
# ═════════════════════════════════════════════════════════════════════════════

class Pitch(db.Model):
    """Shaped problem/solution with a fixed appetite in weeks."""

    __tablename__ = "pitches"
    __table_args__ = (
        db.Index("idx_pitch_project_status", "project_id", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    project_id = db.Column(
        db.String(36),
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    title = db.Column(db.String(200), nullable=False)
    problem = db.Column(db.Text, nullable=False)
    solution = db.Column(db.Text, nullable=False)
    appetite = db.Column(db.Integer, nullable=False, comment="Weeks")
    business_value = db.Column(db.Text, nullable=False)
    roadblocks = db.Column(db.Text, nullable=True)
    dependencies = db.Column(db.JSON, nullable=True)
    team_members = db.Column(db.JSON, nullable=True)
    status = db.Column(
        db.String(20), nullable=False, default="shaped",
        comment="shaped | betting | selected | active | completed | abandoned",
    )
    cycle = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False,
                           default=_utcnow, onupdate=_utcnow)

    work_packages = db.relationship("WorkPackage", backref="pitch", lazy="dynamic",
                                    cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "problem": self.problem,
            "solution": self.solution,
            "appetite": self.appetite,
            "business_value": self.business_value,
            "roadblocks": self.roadblocks,
            "dependencies": self.dependencies or [],
            "team_members": self.team_members or [],
            "status": self.status,
            "cycle": self.cycle,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Pitch {self.id}: {self.title}>"


# ═════════════════════════════════════════════════════════════════════════════
# Scope — boundary + objectives grouping work packages
# ═════════════════════════════════════════════════════════════════════════════

class Scope(db.Model):
    __tablename__ = "scopes"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    project_id = db.Column(
        db.String(36),
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    boundaries = db.Column(db.Text, nullable=True, comment="In scope vs out of scope")
    key_objectives = db.Column(db.JSON, nullable=True)
    success_criteria = db.Column(db.Text, nullable=True)
    constraints = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False,
                           default=_utcnow, onupdate=_utcnow)

    work_packages = db.relationship("WorkPackage", backref="scope", lazy="dynamic")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "boundaries": self.boundaries,
            "key_objectives": self.key_objectives or [],
            "success_criteria": self.success_criteria,
            "constraints": self.constraints,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Scope {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
# WorkPackage — a dot on the hill chart
# ═════════════════════════════════════════════════════════════════════════════

class WorkPackage(db.Model):
    """
    Progress-tracking unit plotted on a pitch's hill chart.

    position is 0-100 along the hill; phase is always derived from position
    (see app.services.hill_chart.phase_from_position).
    """

    __tablename__ = "work_packages"
    __table_args__ = (
        db.CheckConstraint("position >= 0 AND position <= 100", name="ck_wp_position_range"),
        db.Index("idx_wp_pitch", "pitch_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    pitch_id = db.Column(
        db.String(36),
        db.ForeignKey("pitches.id", ondelete="CASCADE"),
        nullable=False,
    )
    scope_id = db.Column(
        db.String(36),
        db.ForeignKey("scopes.id", ondelete="SET NULL"),
        nullable=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    phase = db.Column(
        db.String(10), nullable=False, default="uphill",
        comment="uphill | downhill",
    )
    is_stuck = db.Column(db.Boolean, nullable=False, default=False)
    assignee = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False,
                           default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pitch_id": self.pitch_id,
            "scope_id": self.scope_id,
            "name": self.name,
            "description": self.description,
            "position": self.position,
            "phase": self.phase,
            "is_stuck": bool(self.is_stuck),
            "assignee": self.assignee,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<WorkPackage {self.id}: {self.name} @{self.position}>"
