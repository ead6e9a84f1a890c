"""Records attached to an issue: comments, work logs and file attachments."""
from __future__ import annotations

from datetime import datetime

from database import db
from models.profile import generate_id


MAX_WORK_LOG_HOURS = 24


class IssueComment(db.Model):
    __tablename__ = "issue_comments"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    issue_id = db.Column(db.String(36), db.ForeignKey("issues.id"), nullable=False, index=True)
    author_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=True)
    body = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    issue = db.relationship("Issue", back_populates="comments")
    author = db.relationship("Profile", foreign_keys=[author_id])

    def to_dict(self):
        return {
            "id": self.id,
            "issue_id": self.issue_id,
            "author_id": self.author_id,
            "body": self.body,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class IssueWorkLog(db.Model):
    """Hours spent on an issue on a given day. Hours are in (0, 24]."""

    __tablename__ = "issue_work_logs"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    issue_id = db.Column(db.String(36), db.ForeignKey("issues.id"), nullable=False, index=True)
    logged_by = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=True)
    work_date = db.Column(db.Date, nullable=False)
    hours = db.Column(db.Float, nullable=False)
    note = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    issue = db.relationship("Issue", back_populates="work_logs")
    logger = db.relationship("Profile", foreign_keys=[logged_by])

    __table_args__ = (
        db.CheckConstraint("hours > 0 AND hours <= 24", name="ck_issue_work_logs_hours"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "issue_id": self.issue_id,
            "logged_by": self.logged_by,
            "work_date": self.work_date.isoformat() if self.work_date else None,
            "hours": self.hours,
            "note": self.note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class IssueAttachment(db.Model):
    """A link attached to an issue.

    Uploaded files keep their storage key in ``file_path`` so the blob can be
    removed together with the row; plain links leave it empty.
    """

    __tablename__ = "issue_attachments"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    issue_id = db.Column(db.String(36), db.ForeignKey("issues.id"), nullable=False, index=True)
    uploaded_by = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=True)
    title = db.Column(db.String(255), nullable=False)
    url = db.Column(db.Text, nullable=False)
    file_path = db.Column(db.Text, nullable=True)
    content_type = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    issue = db.relationship("Issue", back_populates="attachments")
    uploader = db.relationship("Profile", foreign_keys=[uploaded_by])

    @property
    def is_stored(self) -> bool:
        return bool(self.file_path)

    def to_dict(self):
        return {
            "id": self.id,
            "issue_id": self.issue_id,
            "uploaded_by": self.uploaded_by,
            "title": self.title,
            "url": self.url,
            "is_stored": self.is_stored,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
