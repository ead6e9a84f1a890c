"""Sprint planning endpoints."""
from __future__ import annotations

from flask import Blueprint

from forms import SprintForm, SprintStatusForm
from models.profile import Profile
from models.sprint import SprintStatus
from routes import (
    commit_or_error,
    csrf_error,
    json_form_error,
    json_success,
    payload_string,
    populate_form,
    request_payload,
    requires_role,
    service_error,
)
from services.access_service import get_project
from services.sprint_service import (
    create_sprint,
    get_sprint,
    serialize_sprint,
    update_sprint_status,
)

sprints_bp = Blueprint("sprints", __name__, url_prefix="/api/sprints")


@sprints_bp.route("/create", methods=["POST"])
@requires_role(Profile.ADMIN)
def create_sprint_route():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = SprintForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {
            "project_id": payload_string(payload, "projectId"),
            "name": payload_string(payload, "name"),
            "goal": payload_string(payload, "goal"),
            "start_date": payload_string(payload, "startDate"),
            "end_date": payload_string(payload, "endDate"),
        },
    )
    if not form.validate():
        return json_form_error(form)

    try:
        project = get_project(form.project_id.data)
    except LookupError as exc:
        return service_error(exc)

    sprint = create_sprint(
        project,
        form.name.data,
        form.goal.data,
        form.start_date.data,
        form.end_date.data,
    )
    error = commit_or_error("Unable to create the sprint.")
    if error:
        return error
    return json_success("Sprint created.", sprint=serialize_sprint(sprint))


@sprints_bp.route("/update-status", methods=["POST"])
@requires_role(Profile.ADMIN)
def update_sprint_status_route():
    """Change a sprint's status; activating it closes the project's other active sprint."""

    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = SprintStatusForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {
            "sprint_id": payload_string(payload, "sprintId"),
            "status": payload_string(payload, "status"),
            "project_id": payload_string(payload, "projectId"),
        },
    )
    if not form.validate():
        return json_form_error(form)

    try:
        sprint = get_sprint(form.sprint_id.data)
        closed = update_sprint_status(
            sprint, SprintStatus(form.status.data), project_id=form.project_id.data or None
        )
    except (LookupError, ValueError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to update the sprint.")
    if error:
        return error
    return json_success(
        "Sprint updated.",
        sprint=serialize_sprint(sprint),
        closed_sprint_ids=[item.id for item in closed],
    )
