"""Utilities supporting project access control."""
from __future__ import annotations

from database import db
from models.issue import Issue
from models.profile import Profile
from models.project import Project, project_members


def user_is_project_member(profile: Profile | None, project: Project | None) -> bool:
    """Return True when the profile is listed in the project's members."""

    if profile is None or project is None:
        return False
    row = db.session.execute(
        db.select(project_members.c.project_id).where(
            project_members.c.project_id == project.id,
            project_members.c.user_id == profile.id,
        )
    ).first()
    return row is not None


def user_can_access_project(profile: Profile | None, project: Project | None) -> bool:
    """Admins see every project, members only the ones they belong to."""

    if profile is None or project is None:
        return False
    if profile.is_admin:
        return True
    return user_is_project_member(profile, project)


def require_project_access(profile: Profile | None, project: Project) -> None:
    if not user_can_access_project(profile, project):
        raise PermissionError("Forbidden")


def get_project(project_id: str | None) -> Project:
    project = db.session.get(Project, project_id) if project_id else None
    if project is None:
        raise LookupError("Project not found.")
    return project


def get_issue(issue_id: str | None) -> Issue:
    issue = db.session.get(Issue, issue_id) if issue_id else None
    if issue is None:
        raise LookupError("Issue not found.")
    return issue


def get_accessible_issue(profile: Profile | None, issue_id: str | None) -> Issue:
    """Load an issue and check that the profile may work on its project."""

    issue = get_issue(issue_id)
    require_project_access(profile, issue.project)
    return issue


def get_visible_projects(profile: Profile | None) -> list[Project]:
    """Return the projects the profile can see, newest first."""

    if profile is None:
        return []
    query = Project.query
    if not profile.is_admin:
        query = query.join(project_members, project_members.c.project_id == Project.id).filter(
            project_members.c.user_id == profile.id
        )
    return query.order_by(Project.created_at.desc()).all()
