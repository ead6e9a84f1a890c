"""Shared helpers for route blueprints."""

from __future__ import annotations

import logging
import math
from functools import wraps
from typing import Any, Iterable

from flask import current_app, g, jsonify, request
from flask_wtf.csrf import generate_csrf, validate_csrf
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.datastructures import MultiDict
from wtforms.validators import ValidationError

from database import db

__all__ = [
    "commit_or_error",
    "csrf_error",
    "json_error",
    "json_form_error",
    "json_success",
    "payload_id_list",
    "payload_number",
    "payload_string",
    "populate_form",
    "request_payload",
    "requires_role",
    "service_error",
    "validate_request_csrf",
]


def validate_request_csrf(token: str | None) -> tuple[bool, str | None]:
    """Validate CSRF tokens supplied with JSON payloads."""
    if not current_app.config.get("WTF_CSRF_ENABLED", True):
        return True, None
    if not token:
        return False, "The CSRF token is missing."
    try:
        validate_csrf(token)
    except ValidationError:
        return (
            False,
            "The CSRF token is invalid or has expired. Please refresh and try again.",
        )
    except Exception:
        return False, "The CSRF token is invalid."
    return True, None


def json_error(message: str, *, status: int = 400, errors: dict | None = None):
    """Return the error envelope with a refreshed CSRF token."""
    payload: dict[str, Any] = {
        "ok": False,
        "error": message,
        "csrf_token": generate_csrf(),
    }
    if errors:
        payload["errors"] = errors
    return jsonify(payload), status


def json_success(message: str | None = None, *, status: int = 200, **data):
    payload: dict[str, Any] = {"ok": True}
    if message:
        payload["message"] = message
    payload.update(data)
    payload["csrf_token"] = generate_csrf()
    return jsonify(payload), status


def json_form_error(form, status: int = 400):
    """Return a JSON response detailing form errors; the first one is the headline."""
    message = "Please correct the highlighted fields."
    for field_errors in form.errors.values():
        if field_errors:
            message = field_errors[0]
            break
    return json_error(message, status=status, errors=form.errors)


def csrf_error(payload: dict):
    """Return an error response when the payload's CSRF token is rejected."""
    csrf_valid, csrf_message = validate_request_csrf(payload.get("csrf_token"))
    if csrf_valid:
        return None
    return json_error(csrf_message or "Invalid CSRF token.")


def service_error(exc: Exception):
    """Translate service exceptions into HTTP responses, discarding pending changes."""
    db.session.rollback()
    if isinstance(exc, PermissionError):
        return json_error(str(exc) or "Forbidden", status=403)
    if isinstance(exc, LookupError):
        return json_error(str(exc) or "Not found.", status=404)
    return json_error(str(exc) or "Invalid request.")


def commit_or_error(failure_message: str):
    """Commit the session; return an error response if the database rejects it."""
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logging.warning("Integrity error while committing: %s", failure_message, exc_info=True)
        return json_error(f"{failure_message} A related record is missing or already exists.")
    except SQLAlchemyError:
        db.session.rollback()
        logging.error("Database error: %s", failure_message, exc_info=True)
        return json_error(f"{failure_message} Please try again.", status=500)
    return None


def requires_role(role):
    """Requires a specific Profile role for the route to be accessed

    Usage:
        @bp.route('/api/admin/create-project', methods=['POST'])
        @requires_role(Profile.ADMIN)
        def create_project():
            ...

    Arguments:
        role -- Constant in Profile model (Profile.ADMIN | Profile.MEMBER)
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return json_error("Unauthorized", status=401)
            if user.role != role:
                return json_error("Forbidden", status=403)
            return f(*args, **kwargs)

        return decorated_function

    return decorator


# Payload normalization
# ------------------------------
def request_payload() -> dict:
    """Return the JSON body as a dict; anything else counts as empty."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def payload_string(payload: dict, key: str, default: str | None = None) -> str | None:
    """Return a trimmed string value, or the default when the value is not a string."""
    value = payload.get(key)
    if isinstance(value, str):
        return value.strip()
    return default


def payload_number(payload: dict, key: str) -> int | float | None:
    """Return a finite number, ignoring booleans and numeric strings.

    Integers are returned as-is, however large; range checks belong to the forms.
    """
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def payload_id_list(payload: dict, key: str) -> list[str]:
    """Return the unique, non-empty string ids of a list value in order."""
    value = payload.get(key)
    if not isinstance(value, list):
        return []
    ids: list[str] = []
    seen: set[str] = set()
    for item in value:
        if not isinstance(item, str):
            continue
        item = item.strip()
        if not item or item in seen:
            continue
        seen.add(item)
        ids.append(item)
    return ids


def _formdata_items(values: dict[str, Any]) -> Iterable[tuple[str, Any]]:
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        yield key, value


def populate_form(form, values: dict[str, Any]) -> None:
    """Feed normalized payload values to the form as submitted form data."""
    form.process(formdata=MultiDict(list(_formdata_items(values))))
