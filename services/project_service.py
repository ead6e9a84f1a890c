"""Profile and project administration."""
from __future__ import annotations

import logging
from typing import Iterable

from database import db
from models.profile import Profile
from models.project import Project


def resolve_profiles(profile_ids: Iterable[str]) -> list[Profile]:
    """Return profiles for the ids in order; unknown ids raise ValueError."""

    ids = list(profile_ids)
    if not ids:
        return []
    found = {profile.id: profile for profile in Profile.query.filter(Profile.id.in_(ids)).all()}
    missing = [profile_id for profile_id in ids if profile_id not in found]
    if missing:
        raise ValueError(f"Unknown member id(s): {', '.join(missing)}.")
    return [found[profile_id] for profile_id in ids]


def create_profile(email: str, password: str, *, role: str = Profile.MEMBER) -> Profile:
    """Create a profile with a hashed password. Emails are unique, case-insensitively."""

    normalized = email.strip().lower()
    if Profile.query.filter(db.func.lower(Profile.email) == normalized).first():
        raise ValueError("A profile with that email already exists.")
    profile = Profile(email=normalized, role=role)
    profile.set_password(password)
    db.session.add(profile)
    db.session.flush()
    return profile


def ensure_admin_profile(email: str, password: str) -> tuple[Profile, bool]:
    """Create an admin profile, or promote and reset an existing one."""

    normalized = email.strip().lower()
    profile = Profile.query.filter(db.func.lower(Profile.email) == normalized).first()
    if profile is None:
        return create_profile(normalized, password, role=Profile.ADMIN), True
    profile.role = Profile.ADMIN
    profile.set_password(password)
    return profile, False


def create_project(
    creator: Profile, name: str, description: str | None, member_ids: Iterable[str]
) -> Project:
    members = resolve_profiles(member_ids)
    project = Project(
        name=name,
        description=description or None,
        created_by=creator.id if creator else None,
    )
    db.session.add(project)
    db.session.flush()
    project.members.extend(members)
    db.session.flush()
    logging.info("Project %s created with %d member(s)", project.id, len(members))
    return project


def update_project(
    project: Project, name: str, description: str | None, member_ids: Iterable[str]
) -> Project:
    """Update project details and replace its member set."""

    members = resolve_profiles(member_ids)
    project.name = name
    project.description = description or None
    project.members.clear()
    db.session.flush()
    project.members.extend(members)
    db.session.flush()
    return project


def assign_member(project: Project, profile: Profile) -> bool:
    """Add the profile to the project; returns False when it was already a member."""

    if any(member.id == profile.id for member in project.members):
        return False
    project.members.append(profile)
    db.session.flush()
    return True


def serialize_project(project: Project, *, include_members: bool = False) -> dict[str, object]:
    payload = project.to_dict()
    if include_members:
        payload["member_ids"] = project.member_ids
    return payload


def serialize_profiles(profiles: Iterable[Profile]) -> list[dict[str, str | None]]:
    return [profile.to_dict() for profile in profiles]
