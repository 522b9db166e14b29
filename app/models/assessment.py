"""Assessment model — persisted questionnaire answers + engine output."""

import uuid
from datetime import datetime, timezone

from app.models import db


def _uuid():
    return str(uuid.uuid4())


class Assessment(db.Model):
    """One submitted migration-readiness questionnaire.

    ``responses`` holds the raw camelCase answer set exactly as the
    questionnaire sent it; ``recommendation`` and ``score`` are computed
    by the recommendation engine at submission time.
    """

    __tablename__ = "assessments"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(db.String(100), nullable=True, index=True)
    responses = db.Column(db.JSON, nullable=False, default=dict)
    recommendation = db.Column(
        db.String(20), nullable=True,
        comment="greenfield | brownfield | hybrid",
    )
    score = db.Column(db.Integer, nullable=True, comment="Readiness score 0-100")
    completed_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    projects = db.relationship("Project", backref="assessment", lazy="dynamic")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "responses": self.responses or {},
            "recommendation": self.recommendation,
            "score": self.score,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    def __repr__(self) -> str:
        return f"<Assessment {self.id}: {self.recommendation}>"
