"""Comments, work logs and attachments on issues."""
from __future__ import annotations

import logging
import time
from datetime import date

from flask import url_for
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from database import db
from models.issue_activity import IssueAttachment, IssueComment, IssueWorkLog
from models.profile import Profile, generate_id
from services.access_service import get_accessible_issue, user_can_access_project
from utils.storage import Storage

ATTACHMENT_PREFIX = "issues"


def _require_owner_or_admin(profile: Profile, owner_id: str | None, message: str) -> None:
    if profile.is_admin:
        return
    if owner_id is None or owner_id != profile.id:
        raise PermissionError(message)


# Comments
# ------------------------------
def add_comment(author: Profile, issue_id: str, body: str) -> IssueComment:
    issue = get_accessible_issue(author, issue_id)
    comment = IssueComment(issue_id=issue.id, author_id=author.id, body=body)
    db.session.add(comment)
    db.session.flush()
    return comment


def delete_comment(profile: Profile, comment_id: str) -> IssueComment:
    comment = db.session.get(IssueComment, comment_id)
    if comment is None:
        raise LookupError("Comment not found.")
    if not user_can_access_project(profile, comment.issue.project):
        raise PermissionError("Forbidden")
    _require_owner_or_admin(profile, comment.author_id, "Only the author can delete this comment.")
    db.session.delete(comment)
    db.session.flush()
    return comment


# Work logs
# ------------------------------
def add_work_log(
    profile: Profile, issue_id: str, work_date: date, hours: float, note: str | None
) -> IssueWorkLog:
    """Log hours against an issue. Admins and the issue's assignees may log time."""

    issue = get_accessible_issue(profile, issue_id)
    if not profile.is_admin and not issue.is_assigned_to(profile.id):
        raise PermissionError("Only assignees can log hours on this issue.")
    log = IssueWorkLog(
        issue_id=issue.id,
        logged_by=profile.id,
        work_date=work_date,
        hours=hours,
        note=note or None,
    )
    db.session.add(log)
    db.session.flush()
    return log


def delete_work_log(profile: Profile, log_id: str) -> IssueWorkLog:
    log = db.session.get(IssueWorkLog, log_id)
    if log is None:
        raise LookupError("Work log not found.")
    if not user_can_access_project(profile, log.issue.project):
        raise PermissionError("Forbidden")
    _require_owner_or_admin(profile, log.logged_by, "Only the author can delete this work log.")
    db.session.delete(log)
    db.session.flush()
    return log


def total_hours(logs) -> float:
    return round(sum(log.hours or 0 for log in logs), 2)


# Attachments
# ------------------------------
def build_attachment_key(issue_id: str, filename: str, *, timestamp_ms: int | None = None) -> str:
    """Return the storage key for an uploaded file: issues/<issue>/<ms>-<name>."""

    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    safe_name = secure_filename(filename) or "attachment"
    return f"{ATTACHMENT_PREFIX}/{issue_id}/{timestamp_ms}-{safe_name}"


def add_attachment(
    profile: Profile,
    issue_id: str,
    title: str,
    url: str,
    *,
    file_path: str | None = None,
    content_type: str | None = None,
) -> IssueAttachment:
    issue = get_accessible_issue(profile, issue_id)
    attachment = IssueAttachment(
        issue_id=issue.id,
        uploaded_by=profile.id,
        title=title,
        url=url,
        file_path=file_path,
        content_type=content_type,
    )
    db.session.add(attachment)
    db.session.flush()
    return attachment


def upload_attachment(
    profile: Profile, issue_id: str, upload: FileStorage, storage: Storage
) -> IssueAttachment:
    """Store the uploaded file and record an attachment pointing at its download URL.

    The row is flushed before the blob is written, so a database error leaves
    storage untouched. Callers must remove the blob if the commit later fails.
    """

    issue = get_accessible_issue(profile, issue_id)
    filename = upload.filename or "attachment"
    key = build_attachment_key(issue.id, filename)
    content_type = upload.mimetype or "application/octet-stream"

    attachment_id = generate_id()
    attachment = IssueAttachment(
        id=attachment_id,
        issue_id=issue.id,
        uploaded_by=profile.id,
        title=filename,
        url=url_for("issue_activity.download_attachment", attachment_id=attachment_id),
        file_path=key,
        content_type=content_type,
    )
    db.session.add(attachment)
    db.session.flush()
    storage.put_bytes(key, upload.read(), content_type=content_type)
    return attachment


def get_accessible_attachment(profile: Profile, attachment_id: str) -> IssueAttachment:
    attachment = db.session.get(IssueAttachment, attachment_id)
    if attachment is None:
        raise LookupError("Attachment not found.")
    if not user_can_access_project(profile, attachment.issue.project):
        raise PermissionError("Forbidden")
    return attachment


def delete_attachment(
    profile: Profile, attachment_id: str, storage: Storage, *, file_path: str | None = None
) -> IssueAttachment:
    """Remove the stored blob, then the attachment row.

    ``file_path`` is only honoured for plain-link attachments and must point
    inside the issue's own attachment folder.
    """

    attachment = get_accessible_attachment(profile, attachment_id)
    _require_owner_or_admin(
        profile, attachment.uploaded_by, "Only the uploader can delete this attachment."
    )

    key = attachment.file_path
    if not key and file_path:
        if not file_path.startswith(f"{ATTACHMENT_PREFIX}/{attachment.issue_id}/"):
            raise ValueError("Invalid attachment path.")
        key = file_path
    if key:
        storage.remove(key)
        logging.info("Removed attachment blob %s", key)

    db.session.delete(attachment)
    db.session.flush()
    return attachment
