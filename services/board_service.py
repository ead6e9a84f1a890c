"""Read models for the project board and backlog views."""
from __future__ import annotations

from models.issue import Issue, IssueStatus
from models.issue_activity import IssueAttachment, IssueComment, IssueWorkLog
from models.profile import Profile
from models.project import Project
from models.sprint import Sprint
from services.access_service import require_project_access
from services.activity_service import total_hours
from services.sprint_service import serialize_sprint, sprint_issue_counts

BOARD_COLUMNS = tuple(status.value for status in IssueStatus)


def project_sprints(project: Project) -> list[Sprint]:
    """Return the project's sprints, newest first."""
    return (
        Sprint.query.filter_by(project_id=project.id)
        .order_by(Sprint.created_at.desc(), Sprint.id.desc())
        .all()
    )


def select_board_sprint(sprints: list[Sprint], requested_id: str | None = None) -> Sprint | None:
    """Pick the sprint shown on the board.

    The requested sprint wins when it belongs to the list, then the active
    sprint, then the newest one. ``sprints`` must be ordered newest first.
    """

    if requested_id:
        for sprint in sprints:
            if sprint.id == requested_id:
                return sprint
    for sprint in sprints:
        if sprint.is_active:
            return sprint
    return sprints[0] if sprints else None


def group_by_status(issues: list[Issue]) -> dict[str, list[dict[str, object]]]:
    columns: dict[str, list[dict[str, object]]] = {column: [] for column in BOARD_COLUMNS}
    for issue in issues:
        columns.setdefault(issue.status, []).append(issue.to_dict())
    return columns


def _by_issue(rows) -> dict[str, list]:
    grouped: dict[str, list] = {}
    for row in rows:
        grouped.setdefault(row.issue_id, []).append(row)
    return grouped


def issue_activity(issue_ids: list[str]) -> dict[str, object]:
    """Comments, work logs and attachments for the issues, keyed by issue id."""

    if not issue_ids:
        return {"comments": {}, "work_logs": {}, "hours": {}, "attachments": {}}

    comments = _by_issue(
        IssueComment.query.filter(IssueComment.issue_id.in_(issue_ids))
        .order_by(IssueComment.created_at.asc())
        .all()
    )
    work_logs = _by_issue(
        IssueWorkLog.query.filter(IssueWorkLog.issue_id.in_(issue_ids))
        .order_by(IssueWorkLog.work_date.desc(), IssueWorkLog.created_at.desc())
        .all()
    )
    attachments = _by_issue(
        IssueAttachment.query.filter(IssueAttachment.issue_id.in_(issue_ids))
        .order_by(IssueAttachment.created_at.desc())
        .all()
    )
    return {
        "comments": {
            issue_id: [comment.to_dict() for comment in rows] for issue_id, rows in comments.items()
        },
        "work_logs": {
            issue_id: [log.to_dict() for log in rows] for issue_id, rows in work_logs.items()
        },
        "hours": {issue_id: total_hours(rows) for issue_id, rows in work_logs.items()},
        "attachments": {
            issue_id: [attachment.to_dict() for attachment in rows]
            for issue_id, rows in attachments.items()
        },
    }


def _members(project: Project) -> list[dict[str, str | None]]:
    return [member.to_dict() for member in sorted(project.members, key=lambda m: m.email)]


def build_board(profile: Profile, project: Project, requested_sprint_id: str | None = None):
    require_project_access(profile, project)

    sprints = project_sprints(project)
    sprint = select_board_sprint(sprints, requested_sprint_id)
    issues: list[Issue] = []
    if sprint is not None:
        issues = (
            Issue.query.filter_by(project_id=project.id, sprint_id=sprint.id)
            .order_by(Issue.created_at.asc())
            .all()
        )

    return {
        "project": project.to_dict(),
        "sprints": [serialize_sprint(item) for item in sprints],
        "sprint": serialize_sprint(sprint) if sprint else None,
        "columns": group_by_status(issues),
        "assignees": {issue.id: issue.assignee_ids for issue in issues},
        **issue_activity([issue.id for issue in issues]),
        "members": _members(project),
        "role": profile.role,
    }


def build_backlog(profile: Profile, project: Project):
    """Sprints with their issue counts and the issues not planned into any sprint."""

    require_project_access(profile, project)

    sprints = project_sprints(project)
    counts = sprint_issue_counts([sprint.id for sprint in sprints])
    backlog = (
        Issue.query.filter(Issue.project_id == project.id, Issue.sprint_id.is_(None))
        .order_by(Issue.created_at.desc())
        .all()
    )
    return {
        "project": project.to_dict(),
        "sprints": [serialize_sprint(item, issue_count=counts.get(item.id, 0)) for item in sprints],
        "issues": [issue.to_dict() for issue in backlog],
        "assignees": {issue.id: issue.assignee_ids for issue in backlog},
        "members": _members(project),
        "role": profile.role,
    }

