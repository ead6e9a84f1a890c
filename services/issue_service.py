"""Issue creation, editing and movement between backlog, sprints and board columns."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from database import db
from models.issue import Issue, IssueComplexity, IssuePriority, IssueStatus, IssueType
from models.profile import Profile
from models.project import Project
from models.sprint import Sprint
from services.access_service import get_accessible_issue, require_project_access


@dataclass
class IssueFields:
    """Editable issue attributes, already validated."""

    title: str
    description: str | None = None
    status: IssueStatus = IssueStatus.TODO
    priority: IssuePriority = IssuePriority.MEDIUM
    issue_type: IssueType = IssueType.TASK
    story_points: int | None = None
    complexity: IssueComplexity = IssueComplexity.MEDIUM
    due_date: date | None = None
    sprint_id: str | None = None

    def apply(self, issue: Issue) -> None:
        issue.title = self.title
        issue.description = self.description or None
        issue.status = self.status.value
        issue.priority = self.priority.value
        issue.type = self.issue_type.value
        issue.story_points = self.story_points
        issue.complexity = self.complexity.value
        issue.due_date = self.due_date
        issue.sprint_id = self.sprint_id


def resolve_sprint(project: Project, sprint_id: str | None) -> Sprint | None:
    """Return the sprint when it belongs to the project; None means backlog."""

    if not sprint_id:
        return None
    sprint = db.session.get(Sprint, sprint_id)
    if sprint is None or sprint.project_id != project.id:
        raise ValueError("Invalid sprint.")
    return sprint


def filter_project_members(project: Project, member_ids: Iterable[str]) -> list[Profile]:
    """Keep only ids of profiles that are members of the project, in request order."""

    members = {member.id: member for member in project.members}
    return [members[member_id] for member_id in member_ids if member_id in members]


def create_issue(
    reporter: Profile, project: Project, fields: IssueFields, member_ids: Iterable[str]
) -> Issue:
    require_project_access(reporter, project)
    resolve_sprint(project, fields.sprint_id)

    issue = Issue(project_id=project.id, reporter_id=reporter.id)
    fields.apply(issue)
    db.session.add(issue)
    db.session.flush()

    issue.assignees.extend(filter_project_members(project, member_ids))
    db.session.flush()
    return issue


def update_issue(
    profile: Profile, issue_id: str, fields: IssueFields, member_ids: Iterable[str]
) -> Issue:
    """Update the issue and replace its assignees."""

    issue = get_accessible_issue(profile, issue_id)
    project = issue.project
    assignees = filter_project_members(project, member_ids)
    resolve_sprint(project, fields.sprint_id)

    fields.apply(issue)
    issue.assignees.clear()
    db.session.flush()
    issue.assignees.extend(assignees)
    db.session.flush()
    return issue


def update_issue_status(profile: Profile, issue_id: str, status: IssueStatus) -> Issue:
    issue = get_accessible_issue(profile, issue_id)
    issue.status_enum = status
    db.session.flush()
    return issue


def move_issue(profile: Profile, issue_id: str, sprint_id: str | None) -> Issue:
    """Move an issue into a sprint of its project, or back to the backlog."""

    issue = get_accessible_issue(profile, issue_id)
    sprint = resolve_sprint(issue.project, sprint_id)
    issue.sprint_id = sprint.id if sprint else None
    db.session.flush()
    return issue


def serialize_issue(issue: Issue) -> dict[str, object]:
    return issue.to_dict()
