"""Summary figures for the dashboard, projects and admin pages."""
from __future__ import annotations

from database import db
from models.issue import Issue
from models.issue_activity import IssueWorkLog
from models.profile import Profile
from models.project import Project, project_members
from models.sprint import Sprint, SprintStatus
from services.access_service import get_visible_projects
from services.project_service import serialize_profiles, serialize_project

RECENT_PROJECT_LIMIT = 4


def hours_by_project(project_ids: list[str]) -> dict[str, float]:
    if not project_ids:
        return {}
    rows = (
        db.session.query(Issue.project_id, db.func.sum(IssueWorkLog.hours))
        .join(IssueWorkLog, IssueWorkLog.issue_id == Issue.id)
        .filter(Issue.project_id.in_(project_ids))
        .group_by(Issue.project_id)
        .all()
    )
    return {project_id: round(total or 0, 2) for project_id, total in rows}


def count_active_sprints(project_ids: list[str]) -> int:
    if not project_ids:
        return 0
    return (
        Sprint.query.filter(
            Sprint.project_id.in_(project_ids),
            Sprint.status == SprintStatus.ACTIVE.value,
        ).count()
    )


def profiles_by_role() -> dict[str, int]:
    counts = {role: 0 for role in Profile.ROLES}
    rows = db.session.query(Profile.role, db.func.count(Profile.id)).group_by(Profile.role).all()
    for role, count in rows:
        counts[role] = count
    return counts


def build_dashboard(profile: Profile) -> dict[str, object]:
    """Figures are limited to the projects the profile can see.

    Profile totals are only reported to admins.
    """

    projects = get_visible_projects(profile)
    project_ids = [project.id for project in projects]
    hours = hours_by_project(project_ids)

    return {
        "project_count": len(projects),
        "profile_count": Profile.query.count() if profile.is_admin else None,
        "active_sprint_count": count_active_sprints(project_ids),
        "hours_by_project": [
            {"project_id": project.id, "name": project.name, "hours": hours.get(project.id, 0)}
            for project in projects
        ],
        "profiles_by_role": profiles_by_role() if profile.is_admin else None,
        "recent_projects": [project.to_dict() for project in projects[:RECENT_PROJECT_LIMIT]],
    }


def all_profiles() -> list[Profile]:
    return Profile.query.order_by(Profile.email.asc()).all()


def membership_links() -> list[dict[str, str]]:
    rows = db.session.execute(
        db.select(project_members.c.project_id, project_members.c.user_id)
    ).all()
    return [{"project_id": project_id, "user_id": user_id} for project_id, user_id in rows]


def build_projects_page(profile: Profile) -> dict[str, object]:
    projects = get_visible_projects(profile)
    payload: dict[str, object] = {
        "projects": [serialize_project(project) for project in projects],
        "role": profile.role,
    }
    if profile.is_admin:
        payload["profiles"] = serialize_profiles(all_profiles())
        payload["memberships"] = membership_links()
    return payload


def build_admin_overview() -> dict[str, object]:
    projects = Project.query.order_by(Project.created_at.desc()).all()
    return {
        "projects": [serialize_project(project, include_members=True) for project in projects],
        "profiles": serialize_profiles(all_profiles()),
    }
