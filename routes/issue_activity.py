"""Comments, work logs and attachments on issues."""
from __future__ import annotations

import logging

from flask import Blueprint, g, request, send_file
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import MultiDict

from database import db
from forms import (
    AttachmentDeleteForm,
    AttachmentForm,
    AttachmentUploadForm,
    CommentDeleteForm,
    CommentForm,
    WorkLogDeleteForm,
    WorkLogForm,
)
from routes import (
    commit_or_error,
    csrf_error,
    json_error,
    json_form_error,
    json_success,
    payload_number,
    payload_string,
    populate_form,
    request_payload,
    service_error,
)
from services.activity_service import (
    add_attachment,
    add_comment,
    add_work_log,
    delete_attachment,
    delete_comment,
    delete_work_log,
    get_accessible_attachment,
    upload_attachment,
)
from utils.storage import StorageError, get_storage

issue_activity_bp = Blueprint("issue_activity", __name__, url_prefix="/api/issues")


# Comments
# ------------------------------
@issue_activity_bp.route("/comments/create", methods=["POST"])
def create_comment():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = CommentForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {"issue_id": payload_string(payload, "issueId"), "body": payload_string(payload, "body")},
    )
    if not form.validate():
        return json_form_error(form)

    try:
        comment = add_comment(g.user, form.issue_id.data, form.body.data)
    except (LookupError, PermissionError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to add the comment.")
    if error:
        return error
    return json_success("Comment added.", comment=comment.to_dict())


@issue_activity_bp.route("/comments/delete", methods=["POST"])
def delete_comment_route():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = CommentDeleteForm(formdata=None, meta={"csrf": False})
    populate_form(form, {"comment_id": payload_string(payload, "commentId")})
    if not form.validate():
        return json_form_error(form)

    try:
        delete_comment(g.user, form.comment_id.data)
    except (LookupError, PermissionError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to delete the comment.")
    if error:
        return error
    return json_success("Comment deleted.")


# Work logs
# ------------------------------
@issue_activity_bp.route("/work-logs/create", methods=["POST"])
def create_work_log():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = WorkLogForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {
            "issue_id": payload_string(payload, "issueId"),
            "work_date": payload_string(payload, "workDate"),
            "hours": payload_number(payload, "hours"),
            "note": payload_string(payload, "note"),
        },
    )
    if not form.validate():
        return json_form_error(form)

    try:
        log = add_work_log(
            g.user, form.issue_id.data, form.work_date.data, form.hours.data, form.note.data
        )
    except (LookupError, PermissionError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to log hours.")
    if error:
        return error
    return json_success("Hours logged.", work_log=log.to_dict())


@issue_activity_bp.route("/work-logs/delete", methods=["POST"])
def delete_work_log_route():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = WorkLogDeleteForm(formdata=None, meta={"csrf": False})
    populate_form(form, {"log_id": payload_string(payload, "logId")})
    if not form.validate():
        return json_form_error(form)

    try:
        delete_work_log(g.user, form.log_id.data)
    except (LookupError, PermissionError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to delete the work log.")
    if error:
        return error
    return json_success("Work log deleted.")


# Attachments
# ------------------------------
@issue_activity_bp.route("/attachments/create", methods=["POST"])
def create_attachment():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = AttachmentForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {
            "issue_id": payload_string(payload, "issueId"),
            "title": payload_string(payload, "title"),
            "url": payload_string(payload, "url"),
        },
    )
    if not form.validate():
        return json_form_error(form)

    try:
        attachment = add_attachment(g.user, form.issue_id.data, form.title.data, form.url.data)
    except (LookupError, PermissionError) as exc:
        return service_error(exc)

    error = commit_or_error("Unable to add the attachment.")
    if error:
        return error
    return json_success("Attachment added.", attachment=attachment.to_dict())


@issue_activity_bp.route("/attachments/upload", methods=["POST"])
def upload_attachment_route():
    """Store a Word or Excel file and attach it to the issue."""

    error = csrf_error(request.form)
    if error:
        return error

    form = AttachmentUploadForm(
        formdata=MultiDict(
            [("issue_id", (request.form.get("issueId") or "").strip()), *request.files.items(multi=True)]
        ),
        meta={"csrf": False},
    )
    if not form.validate():
        return json_form_error(form)

    storage = get_storage()
    try:
        attachment = upload_attachment(g.user, form.issue_id.data, form.file.data, storage)
    except (LookupError, PermissionError) as exc:
        return service_error(exc)
    except StorageError as exc:
        logging.error("Attachment upload failed", exc_info=True)
        return service_error(ValueError(str(exc)))
    except SQLAlchemyError:
        db.session.rollback()
        logging.error("Database error while recording an upload", exc_info=True)
        return json_error("Unable to save the attachment. Please try again.", status=500)

    key = attachment.file_path
    error = commit_or_error("Unable to save the attachment.")
    if error:
        storage.remove(key)
        return error
    return json_success("Attachment uploaded.", attachment=attachment.to_dict())


@issue_activity_bp.route("/attachments/<attachment_id>/download", methods=["GET"])
def download_attachment(attachment_id: str):
    try:
        attachment = get_accessible_attachment(g.user, attachment_id)
    except (LookupError, PermissionError) as exc:
        return service_error(exc)
    if not attachment.is_stored:
        return json_error("Attachment has no stored file.", status=404)

    try:
        stream = get_storage().open(attachment.file_path)
    except StorageError as exc:
        return json_error(str(exc), status=404)
    return send_file(
        stream,
        mimetype=attachment.content_type or "application/octet-stream",
        as_attachment=True,
        download_name=attachment.title,
    )


@issue_activity_bp.route("/attachments/delete", methods=["POST"])
def delete_attachment_route():
    payload = request_payload()
    error = csrf_error(payload)
    if error:
        return error

    form = AttachmentDeleteForm(formdata=None, meta={"csrf": False})
    populate_form(
        form,
        {
            "attachment_id": payload_string(payload, "attachmentId"),
            "file_path": payload_string(payload, "filePath"),
        },
    )
    if not form.validate():
        return json_form_error(form)

    try:
        delete_attachment(
            g.user, form.attachment_id.data, get_storage(), file_path=form.file_path.data or None
        )
    except (LookupError, PermissionError, ValueError) as exc:
        return service_error(exc)
    except StorageError as exc:
        logging.error("Attachment blob removal failed", exc_info=True)
        return service_error(ValueError(str(exc)))

    error = commit_or_error("Unable to delete the attachment.")
    if error:
        return error
    return json_success("Attachment deleted.")
