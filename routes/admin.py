"""Administration endpoints: profiles, projects and memberships."""
from __future__ import annotations

from flask import Blueprint, g

from database import db
from forms import CreateUserForm, MemberAssignmentForm, ProjectForm, ProjectUpdateForm
from models.profile import Profile
from routes import (
    commit_or_error,
    csrf_error,
    json_error,
    json_form_error,
    json_success,
    payload_id_list,
    payload_string,
    populate_form,
    request_payload,
    requires_role,
    service_error,
)
from services.access_service import get_project
from services.dashboard_service import build_admin_overview
from services.project_service import (
    assign_member,
    create_profile,
    create_project,
    serialize_project,
    update_project,
)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.route("", methods=["GET"], strict_slashes=False)
@requires_role(Profile.ADMIN)
def overview():
    """All projects with their member ids and all profiles."""

    return json_success(**build_admin_overview())


@admin_bp.route("/create-user", methods=["POST"])
@requires_role(Profile.ADMIN)
def create_user():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = CreateUserForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {"email": payload_string(payload, "email"), "password": payload_string(payload, "password")},
    )
    if not form.validate():
        return json_form_error(form)

    try:
        profile = create_profile(form.email.data, form.password.data, role=Profile.MEMBER)
    except ValueError as exc:
        return service_error(exc)

    error = commit_or_error("Unable to create the user.")
    if error:
        return error
    return json_success("User created.", profile=profile.to_dict())


@admin_bp.route("/create-project", methods=["POST"])
@requires_role(Profile.ADMIN)
def create_project_route():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = ProjectForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {
            "name": payload_string(payload, "name"),
            "description": payload_string(payload, "description"),
        },
    )
    if not form.validate():
        return json_form_error(form)

    try:
        project = create_project(
            g.user, form.name.data, form.description.data, payload_id_list(payload, "memberIds")
        )
    except ValueError as exc:
        return service_error(exc)

    error = commit_or_error("Unable to create the project.")
    if error:
        return error
    return json_success(
        "Project created.", project=serialize_project(project, include_members=True)
    )


@admin_bp.route("/update-project", methods=["POST"])
@requires_role(Profile.ADMIN)
def update_project_route():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = ProjectUpdateForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {
            "project_id": payload_string(payload, "projectId"),
            "name": payload_string(payload, "name"),
            "description": payload_string(payload, "description"),
        },
    )
    if not form.validate():
        return json_form_error(form)

    try:
        project = get_project(form.project_id.data)
        update_project(
            project, form.name.data, form.description.data, payload_id_list(payload, "memberIds")
        )
    except (LookupError, ValueError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to update the project.")
    if error:
        return error
    return json_success(
        "Project updated.", project=serialize_project(project, include_members=True)
    )


@admin_bp.route("/assign-member", methods=["POST"])
@requires_role(Profile.ADMIN)
def assign_member_route():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = MemberAssignmentForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {
            "project_id": payload_string(payload, "projectId"),
            "user_id": payload_string(payload, "userId"),
        },
    )
    if not form.validate():
        return json_form_error(form)

    try:
        project = get_project(form.project_id.data)
    except LookupError as exc:
        return service_error(exc)
    profile = db.session.get(Profile, form.user_id.data)
    if profile is None:
        return json_error("User not found.", status=404)

    added = assign_member(project, profile)
    error = commit_or_error("Unable to assign the member.")
    if error:
        return error
    return json_success(
        "Member assigned." if added else "Member already assigned.",
        project=serialize_project(project, include_members=True),
    )
