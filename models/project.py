"""A project groups sprints and issues.

Projects are created by admins.
Members only see the projects they are assigned to through project_members.
Deleting a project removes its sprints, issues and memberships.

"""
from __future__ import annotations

from datetime import datetime

from database import db
from models.profile import generate_id


# Association table linking projects and their members
project_members = db.Table(
    "project_members",
    db.Column("project_id", db.String(36), db.ForeignKey("projects.id"), primary_key=True),
    db.Column("user_id", db.String(36), db.ForeignKey("profiles.id"), primary_key=True),
)


class Project(db.Model):
    __tablename__ = "projects"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    creator = db.relationship("Profile", foreign_keys=[created_by])
    members = db.relationship(
        "Profile",
        secondary=project_members,
        back_populates="projects",
        lazy="selectin",
    )
    sprints = db.relationship(
        "Sprint",
        back_populates="project",
        lazy=True,
        cascade="all, delete-orphan",
    )
    issues = db.relationship(
        "Issue",
        back_populates="project",
        lazy=True,
        cascade="all, delete-orphan",
    )

    @property
    def member_ids(self) -> list[str]:
        return [member.id for member in self.members]

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Project {self.name}>"
