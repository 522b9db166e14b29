"""Project domain model — a migration project run with Shape Up cycles."""

import uuid
from datetime import datetime, timezone

from app.models import db


def _uuid():
    return str(uuid.uuid4())


class Project(db.Model):
    """Migration project executed in fixed-length build/cooldown cycles."""

    __tablename__ = "projects"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(db.String(100), nullable=True, index=True)
    assessment_id = db.Column(
        db.String(36),
        db.ForeignKey("assessments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    strategy = db.Column(
        db.String(20), nullable=False,
        comment="greenfield | brownfield | hybrid",
    )
    status = db.Column(
        db.String(20), nullable=False, default="planning",
        comment="planning | active | completed",
    )

    # ── Shape Up cycle configuration ──
    build_cycle_duration = db.Column(
        db.Integer, nullable=False, default=6,
        comment="Build cycle length in weeks",
    )
    cooldown_cycle_duration = db.Column(
        db.Integer, nullable=False, default=2,
        comment="Cooldown length in weeks",
    )
    current_cycle = db.Column(db.Integer, nullable=False, default=0)
    cycle_phase = db.Column(
        db.String(20), nullable=False, default="planning",
        comment="planning | building | cooldown",
    )

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    pitches = db.relationship("Pitch", backref="project", lazy="dynamic",
                              cascade="all, delete-orphan")
    scopes = db.relationship("Scope", backref="project", lazy="dynamic",
                             cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        """Serialize core project fields for API responses."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "assessment_id": self.assessment_id,
            "name": self.name,
            "strategy": self.strategy,
            "status": self.status,
            # Shape Up cycle
            "build_cycle_duration": self.build_cycle_duration,
            "cooldown_cycle_duration": self.cooldown_cycle_duration,
            "current_cycle": self.current_cycle,
            "cycle_phase": self.cycle_phase,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Project {self.id}: {self.name}>"
