"""Board and backlog read endpoints."""
from __future__ import annotations

from flask import Blueprint, g, request

from routes import json_success, service_error
from services.access_service import get_project, get_visible_projects
from services.board_service import build_backlog, build_board
from services.project_service import serialize_project

boards_bp = Blueprint("boards", __name__, url_prefix="/api/boards")


@boards_bp.route("", methods=["GET"], strict_slashes=False)
def list_boards():
    projects = get_visible_projects(g.user)
    return json_success(projects=[serialize_project(project) for project in projects])


@boards_bp.route("/<project_id>", methods=["GET"])
def show_board(project_id: str):
    """Issues of the selected sprint grouped into the board's status columns."""

    try:
        project = get_project(project_id)
        board = build_board(g.user, project, request.args.get("sprint") or None)
    except (LookupError, PermissionError) as exc:
        return service_error(exc)
    return json_success(**board)


@boards_bp.route("/<project_id>/backlog", methods=["GET"])
def show_backlog(project_id: str):
    try:
        project = get_project(project_id)
        backlog = build_backlog(g.user, project)
    except (LookupError, PermissionError) as exc:
        return service_error(exc)
    return json_success(**backlog)
