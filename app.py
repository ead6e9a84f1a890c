import logging

import click
from dotenv import load_dotenv
from flask import Flask, g, jsonify, request, session
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError

from config import load_config
from database import db

load_dotenv()

# Initialize Flask app
app = Flask(__name__)
app.config.from_mapping(load_config())

logging.basicConfig(
    level=app.config.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

db.init_app(app)

# Models import should be after initializing db
from models.profile import Profile
from models.project import Project
from models.sprint import Sprint
from models.issue import Issue
from models.issue_activity import IssueAttachment, IssueComment, IssueWorkLog

from forms import LoginForm
from routes import (
    csrf_error,
    json_error,
    json_form_error,
    json_success,
    payload_string,
    populate_form,
    request_payload,
)
from routes.admin import admin_bp
from routes.boards import boards_bp
from routes.dashboard import dashboard_bp
from routes.issue_activity import issue_activity_bp
from routes.issues import issues_bp
from routes.sprints import sprints_bp
from services.project_service import ensure_admin_profile

# Create flask command lines to update the db based on the model
# Useage:
# Create a migration script in ./migrations/versions
# > flask db migrate -m "Add sprint goal"
# Run the update
# > flask db upgrade
migrate = Migrate(app, db)
app.register_blueprint(admin_bp)
app.register_blueprint(sprints_bp)
app.register_blueprint(issues_bp)
app.register_blueprint(issue_activity_bp)
app.register_blueprint(boards_bp)
app.register_blueprint(dashboard_bp)

# User Authentication
# ------------------------------
login_exempt_routes = ["login", "logout", "health", "static"]


@app.before_request
def require_login():
    """All routes require a Profile logged in, except the ones listed in login_exempt_routes

    This method excecutes before every request and checks if there is a user_id
    stored in session. If so, it sets g.user to the Profile, which can be used
    by the route handlers.

    Returns:
        A 401 JSON response if no profile is found in session
    """
    user_id = session.get("user_id")
    g.user = db.session.get(Profile, user_id) if user_id else None
    if g.user is None and request.endpoint not in login_exempt_routes:
        if user_id:
            session.pop("user_id", None)
        return json_error("Unauthorized", status=401)
    return None


def authenticate_profile(email, password):
    profile = Profile.query.filter(
        db.func.lower(Profile.email) == (email or "").strip().lower()
    ).first()
    if profile and profile.check_password(password):
        session.clear()
        session["user_id"] = profile.id
        return profile
    return None


@app.route("/login", methods=["GET", "POST"])
def login():
    """Sign in with email and password, sent as JSON or as a form post.

    A GET only hands out the CSRF token the sign-in post needs.
    """
    if request.method == "GET":
        return json_success()
    if request.is_json:
        payload = request_payload()
    else:
        payload = request.form.to_dict()
    error = csrf_error(payload)
    if error:
        return error

    login_form = LoginForm(formdata=None, meta={"csrf": False})
    populate_form(
        login_form,
        {"email": payload_string(payload, "email"), "password": payload_string(payload, "password")},
    )
    if not login_form.validate():
        return json_form_error(login_form)

    profile = authenticate_profile(login_form.email.data, login_form.password.data)
    if profile is None:
        logging.info("Failed login attempt for %s", login_form.email.data)
        return json_error("Invalid email or password.", status=401)
    return json_success(profile=profile.to_dict())


@app.route("/logout", methods=["POST"])
def logout():
    session.pop("user_id", None)
    g.user = None
    return json_success()


@app.route("/api/session", methods=["GET"])
def current_session():
    return json_success(profile=g.user.to_dict())


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"ok": True})


@app.cli.command("create-admin")
@click.argument("email")
@click.argument("password")
def create_admin(email, password):
    """Create an admin profile, or promote an existing one."""
    if len(password) < 6:
        raise click.BadParameter("Password must be at least 6 characters.")
    try:
        profile, created = ensure_admin_profile(email, password)
        db.session.commit()
    except (SQLAlchemyError, ValueError) as exc:
        db.session.rollback()
        logging.error("Unable to create admin profile", exc_info=True)
        raise click.ClickException(str(exc))
    click.echo(f"{'Created' if created else 'Updated'} admin {profile.email}")


# Application Execution
# ------------------------------
if __name__ == "__main__":
    app.run(debug=True)
