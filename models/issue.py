"""An issue is a unit of work tracked inside a project.

An Issue belongs to exactly one Project
An Issue without a Sprint sits in the project's backlog
An Issue can only be planned into a Sprint of its own Project
An Issue can be assigned to members of its Project
Any Profile with access to the Project can create and edit its Issues

"""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from functools import partial
from typing import Optional

import bleach
from bleach.linkifier import LinkifyFilter
from markdown import markdown as render_markdown
from markupsafe import Markup

from database import db
from models.profile import generate_id


class IssueStatus(StrEnum):
    """Board columns, in display order."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class IssuePriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class IssueType(StrEnum):
    TASK = "task"
    BUG = "bug"
    STORY = "story"
    EPIC = "epic"
    SPIKE = "spike"


class IssueComplexity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


MAX_STORY_POINTS = 10


# Association table linking issues and their assignees
issue_assignees = db.Table(
    "issue_assignees",
    db.Column("issue_id", db.String(36), db.ForeignKey("issues.id"), primary_key=True),
    db.Column("user_id", db.String(36), db.ForeignKey("profiles.id"), primary_key=True),
)


DESCRIPTION_TAGS = frozenset(bleach.sanitizer.ALLOWED_TAGS) | {
    "p", "br", "hr", "pre", "code", "del",
    "h1", "h2", "h3", "h4",
    "table", "thead", "tbody", "tr", "th", "td",
}
DESCRIPTION_ATTRIBUTES = {"a": ["href", "title"], "code": ["class"], "th": ["align"], "td": ["align"]}
DESCRIPTION_PROTOCOLS = frozenset({"http", "https", "mailto"})


def _open_web_links_in_new_tab(attrs, new=False):
    """Send http(s) links to a new tab without giving it a handle on the board."""
    href = attrs.get((None, "href"), "")
    if href.startswith(("http://", "https://")):
        attrs[(None, "target")] = "_blank"
        attrs[(None, "rel")] = "noopener noreferrer"
    return attrs


_description_cleaner = bleach.Cleaner(
    tags=DESCRIPTION_TAGS,
    attributes=DESCRIPTION_ATTRIBUTES,
    protocols=DESCRIPTION_PROTOCOLS,
    strip=True,
    filters=[
        partial(
            LinkifyFilter,
            callbacks=[_open_web_links_in_new_tab],
            skip_tags={"pre", "code"},
        )
    ],
)


def render_issue_description_html(description: Optional[str]) -> Markup:
    """Render an issue description written in Markdown.

    Bare URLs become links, web links open in a new tab, and anything outside
    the allowed tags or link schemes is dropped.
    """
    if not description:
        return Markup("")
    # two-space indents nest list items, as typed in the issue editor
    html = render_markdown(description, extensions=["extra", "sane_lists"], tab_length=2)
    return Markup(_description_cleaner.clean(html))


class Issue(db.Model):
    __tablename__ = "issues"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    project_id = db.Column(db.String(36), db.ForeignKey("projects.id"), nullable=False, index=True)
    sprint_id = db.Column(db.String(36), db.ForeignKey("sprints.id"), nullable=True, index=True)
    title = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=IssueStatus.TODO.value)
    priority = db.Column(db.String(20), nullable=False, default=IssuePriority.MEDIUM.value)
    type = db.Column(db.String(20), nullable=False, default=IssueType.TASK.value)
    story_points = db.Column(db.Integer, nullable=True)
    complexity = db.Column(db.String(20), nullable=False, default=IssueComplexity.MEDIUM.value)
    due_date = db.Column(db.Date, nullable=True)
    reporter_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    project = db.relationship("Project", back_populates="issues")
    sprint = db.relationship("Sprint", back_populates="issues")
    reporter = db.relationship("Profile", foreign_keys=[reporter_id])
    assignees = db.relationship(
        "Profile",
        secondary=issue_assignees,
        lazy="selectin",
    )
    comments = db.relationship(
        "IssueComment",
        back_populates="issue",
        lazy=True,
        cascade="all, delete-orphan",
    )
    work_logs = db.relationship(
        "IssueWorkLog",
        back_populates="issue",
        lazy=True,
        cascade="all, delete-orphan",
    )
    attachments = db.relationship(
        "IssueAttachment",
        back_populates="issue",
        lazy=True,
        cascade="all, delete-orphan",
    )

    @property
    def status_enum(self) -> IssueStatus:
        return IssueStatus(self.status)

    @status_enum.setter
    def status_enum(self, value: IssueStatus) -> None:
        self.status = value.value

    @property
    def assignee_ids(self) -> list[str]:
        return [assignee.id for assignee in self.assignees]

    def is_assigned_to(self, profile_id: str | None) -> bool:
        if profile_id is None:
            return False
        return profile_id in self.assignee_ids

    @property
    def description_html(self):
        return render_issue_description_html(self.description)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "sprint_id": self.sprint_id,
            "title": self.title,
            "description": self.description,
            "description_html": str(self.description_html),
            "status": self.status,
            "priority": self.priority,
            "type": self.type,
            "story_points": self.story_points,
            "complexity": self.complexity,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "reporter_id": self.reporter_id,
            "assignee_ids": self.assignee_ids,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Issue {self.title}>"
