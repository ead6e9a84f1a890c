"""Issue endpoints used by the board and backlog pages."""
from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, g

from forms import IssueCreateForm, IssueSprintForm, IssueStatusForm, IssueUpdateForm
from models.issue import IssueComplexity, IssuePriority, IssueStatus, IssueType
from routes import (
    commit_or_error,
    csrf_error,
    json_error,
    json_form_error,
    json_success,
    payload_id_list,
    payload_number,
    payload_string,
    populate_form,
    request_payload,
    service_error,
)
from services.access_service import get_project
from services.issue_service import (
    IssueFields,
    create_issue,
    move_issue,
    serialize_issue,
    update_issue,
    update_issue_status,
)

issues_bp = Blueprint("issues", __name__, url_prefix="/api/issues")


def _story_points(payload: Dict[str, Any]):
    value = payload_number(payload, "storyPoints")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _issue_field_values(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize the editable issue fields, applying defaults for absent values."""
    return {
        "title": payload_string(payload, "title"),
        "description": payload_string(payload, "description"),
        "status": payload_string(payload, "status") or IssueStatus.TODO.value,
        "priority": payload_string(payload, "priority") or IssuePriority.MEDIUM.value,
        "issue_type": payload_string(payload, "type") or IssueType.TASK.value,
        "story_points": _story_points(payload),
        "complexity": payload_string(payload, "complexity") or IssueComplexity.MEDIUM.value,
        "due_date": payload_string(payload, "dueDate"),
        "sprint_id": payload_string(payload, "sprintId"),
    }


def _issue_fields(form) -> IssueFields:
    return IssueFields(
        title=form.title.data,
        description=form.description.data or None,
        status=IssueStatus(form.status.data),
        priority=IssuePriority(form.priority.data),
        issue_type=IssueType(form.issue_type.data),
        story_points=form.story_points.data,
        complexity=IssueComplexity(form.complexity.data),
        due_date=form.due_date.data,
        sprint_id=form.sprint_id.data or None,
    )


@issues_bp.route("/create", methods=["POST"])
def create_issue_route():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = IssueCreateForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {"project_id": payload_string(payload, "projectId"), **_issue_field_values(payload)},
    )
    if not form.validate():
        return json_form_error(form)

    try:
        project = get_project(form.project_id.data)
        issue = create_issue(
            g.user, project, _issue_fields(form), payload_id_list(payload, "memberIds")
        )
    except (LookupError, PermissionError, ValueError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to create the issue.")
    if error:
        return error
    return json_success("Issue created.", issue=serialize_issue(issue))


@issues_bp.route("/update", methods=["POST"])
def update_issue_route():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = IssueUpdateForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {"issue_id": payload_string(payload, "issueId"), **_issue_field_values(payload)},
    )
    if not form.validate():
        return json_form_error(form)

    try:
        issue = update_issue(
            g.user,
            form.issue_id.data,
            _issue_fields(form),
            payload_id_list(payload, "memberIds"),
        )
    except (LookupError, PermissionError, ValueError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to update the issue.")
    if error:
        return error
    return json_success("Issue updated.", issue=serialize_issue(issue))


@issues_bp.route("/update-status", methods=["POST"])
def update_issue_status_route():
    """Move an issue to another board column."""

    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = IssueStatusForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {
            "issue_id": payload_string(payload, "issueId"),
            "status": payload_string(payload, "status"),
        },
    )
    if not form.validate():
        return json_form_error(form)

    try:
        issue = update_issue_status(g.user, form.issue_id.data, IssueStatus(form.status.data))
    except (LookupError, PermissionError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to update the issue status.")
    if error:
        return error
    return json_success("Issue status updated.", issue=serialize_issue(issue))


@issues_bp.route("/update-sprint", methods=["POST"])
def update_issue_sprint_route():
    """Move an issue into a sprint, or back to the backlog when sprintId is null."""

    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = IssueSprintForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {
            "issue_id": payload_string(payload, "issueId"),
            "sprint_id": payload_string(payload, "sprintId"),
        },
    )
    if not form.validate():
        return json_form_error(form)

    # null means backlog; a missing or non-string sprintId is never read as one
    if "sprintId" not in payload or not (
        payload["sprintId"] is None or isinstance(payload["sprintId"], str)
    ):
        return json_error("Invalid sprint.")

    try:
        issue = move_issue(g.user, form.issue_id.data, form.sprint_id.data or None)
    except (LookupError, PermissionError, ValueError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to move the issue.")
    if error:
        return error
    return json_success("Issue moved.", issue=serialize_issue(issue))
