"""Dashboard and project listing endpoints."""
from __future__ import annotations

from flask import Blueprint, g

from routes import json_success
from services.dashboard_service import build_dashboard, build_projects_page

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api")


@dashboard_bp.route("/dashboard", methods=["GET"])
def dashboard():
    return json_success(**build_dashboard(g.user))


@dashboard_bp.route("/projects", methods=["GET"])
def projects():
    """Visible projects; admins also get every profile and membership link."""

    return json_success(**build_projects_page(g.user))
