"""Sprints are time boxes of work inside a project."""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from database import db
from models.profile import generate_id


class SprintStatus(StrEnum):
    """Lifecycle states for a sprint. Only one sprint per project may be active."""

    PLANNED = "planned"
    ACTIVE = "active"
    CLOSED = "closed"


class Sprint(db.Model):
    __tablename__ = "sprints"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    project_id = db.Column(db.String(36), db.ForeignKey("projects.id"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    goal = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=SprintStatus.PLANNED.value)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    project = db.relationship("Project", back_populates="sprints")
    issues = db.relationship("Issue", back_populates="sprint", lazy=True)

    __table_args__ = (
        db.Index("ix_sprints_project_status", "project_id", "status"),
    )

    @property
    def status_enum(self) -> SprintStatus:
        """Return the status as an enum value."""

        return SprintStatus(self.status)

    @status_enum.setter
    def status_enum(self, value: SprintStatus) -> None:
        self.status = value.value

    @property
    def is_active(self) -> bool:
        return self.status_enum == SprintStatus.ACTIVE

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "goal": self.goal,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Sprint {self.name}>"
