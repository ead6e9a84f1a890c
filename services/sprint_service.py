"""Sprint planning rules."""
from __future__ import annotations

import logging
from datetime import date

from database import db
from models.issue import Issue
from models.project import Project
from models.sprint import Sprint, SprintStatus


def create_sprint(
    project: Project,
    name: str,
    goal: str | None,
    start_date: date | None,
    end_date: date | None,
) -> Sprint:
    """New sprints always start out planned."""

    sprint = Sprint(
        project_id=project.id,
        name=name,
        goal=goal or None,
        start_date=start_date,
        end_date=end_date,
    )
    sprint.status_enum = SprintStatus.PLANNED
    db.session.add(sprint)
    db.session.flush()
    return sprint


def get_sprint(sprint_id: str | None) -> Sprint:
    sprint = db.session.get(Sprint, sprint_id) if sprint_id else None
    if sprint is None:
        raise LookupError("Sprint not found.")
    return sprint


def update_sprint_status(
    sprint: Sprint, status: SprintStatus, *, project_id: str | None = None
) -> list[Sprint]:
    """Set the sprint status and return the sprints closed to keep one active sprint.

    Activating a sprint closes every other active sprint of the same project
    before the sprint itself is updated.
    """

    if project_id and project_id != sprint.project_id:
        raise ValueError("Invalid sprint.")

    closed: list[Sprint] = []
    if status == SprintStatus.ACTIVE:
        closed = (
            Sprint.query.filter(
                Sprint.project_id == sprint.project_id,
                Sprint.status == SprintStatus.ACTIVE.value,
                Sprint.id != sprint.id,
            )
            .all()
        )
        for other in closed:
            other.status_enum = SprintStatus.CLOSED
        if closed:
            db.session.flush()
            logging.info(
                "Closed %d active sprint(s) in project %s before activating sprint %s",
                len(closed),
                sprint.project_id,
                sprint.id,
            )

    sprint.status_enum = status
    db.session.flush()
    return closed


def sprint_issue_counts(sprint_ids: list[str]) -> dict[str, int]:
    """Return the number of issues planned into each sprint."""

    if not sprint_ids:
        return {}
    rows = (
        db.session.query(Issue.sprint_id, db.func.count(Issue.id))
        .filter(Issue.sprint_id.in_(sprint_ids))
        .group_by(Issue.sprint_id)
        .all()
    )
    return {sprint_id: count for sprint_id, count in rows}


def serialize_sprint(sprint: Sprint, *, issue_count: int | None = None) -> dict[str, object]:
    payload = sprint.to_dict()
    if issue_count is not None:
        payload["issue_count"] = issue_count
    return payload
