""" Represents a person who can sign in to the tracker.

Profiles are either admins or members.
An admin can create profiles, projects and sprints, and manage project membership.
A member only sees the projects it was assigned to.
Any profile with access to a project can create and edit its issues.

"""
from __future__ import annotations

import uuid
from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from database import db


def generate_id() -> str:
    return str(uuid.uuid4())


class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    email = db.Column(db.String(255), unique=True, nullable=False)
    role = db.Column(db.String(20), nullable=False, default="member")
    password_hash = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    projects = db.relationship(
        "Project",
        secondary="project_members",
        back_populates="members",
        lazy="selectin",
    )

    ADMIN = "admin"
    MEMBER = "member"
    ROLES = (ADMIN, MEMBER)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self) -> bool:
        return self.role == self.ADMIN

    def to_dict(self) -> dict[str, str | None]:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
        }

    def __repr__(self):
        return f"<Profile {self.email}>"
