from urllib.parse import urlparse

from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired
from wtforms import (
    DateField,
    FloatField,
    IntegerField,
    PasswordField,
    StringField,
    SubmitField,
    TextAreaField,
)
from wtforms.validators import (
    AnyOf,
    DataRequired,
    Email,
    Length,
    NumberRange,
    Optional,
    ValidationError,
)

from models.issue import (
    MAX_STORY_POINTS,
    IssueComplexity,
    IssuePriority,
    IssueStatus,
    IssueType,
)
from models.issue_activity import MAX_WORK_LOG_HOURS
from models.sprint import SprintStatus

ISSUE_STATUS_CHOICES = [status.value for status in IssueStatus]
ISSUE_PRIORITY_CHOICES = [priority.value for priority in IssuePriority]
ISSUE_TYPE_CHOICES = [issue_type.value for issue_type in IssueType]
ISSUE_COMPLEXITY_CHOICES = [complexity.value for complexity in IssueComplexity]
SPRINT_STATUS_CHOICES = [status.value for status in SprintStatus]

ALLOWED_ATTACHMENT_EXTENSIONS = (".doc", ".docx", ".xls", ".xlsx")
ALLOWED_ATTACHMENT_TYPES = (
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)


def is_allowed_attachment(filename: str | None, content_type: str | None) -> bool:
    lower = (filename or "").lower()
    return (content_type or "") in ALLOWED_ATTACHMENT_TYPES or lower.endswith(
        ALLOWED_ATTACHMENT_EXTENSIONS
    )


class LoginForm(FlaskForm):
    email = StringField("Email", [DataRequired(message="Email and password are required.")])
    password = PasswordField("Password", [DataRequired(message="Email and password are required.")])
    submit = SubmitField("Login")


# Admin
# ------------------------------
class CreateUserForm(FlaskForm):
    email = StringField(
        "Email",
        validators=[
            DataRequired(message="Email and password are required."),
            Email(message="Enter a valid email address."),
            Length(max=255, message="Email must be 255 characters or fewer."),
        ],
    )
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(message="Email and password are required."),
            Length(min=6, message="Password must be at least 6 characters."),
        ],
    )


class ProjectForm(FlaskForm):
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Project name is required."),
            Length(max=200, message="Project name must be 200 characters or fewer."),
        ],
    )
    description = TextAreaField("Description")


class ProjectUpdateForm(FlaskForm):
    project_id = StringField("Project", [DataRequired(message="Project and name are required.")])
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Project and name are required."),
            Length(max=200, message="Project name must be 200 characters or fewer."),
        ],
    )
    description = TextAreaField("Description")


class MemberAssignmentForm(FlaskForm):
    project_id = StringField("Project", [DataRequired(message="Project and user are required.")])
    user_id = StringField("User", [DataRequired(message="Project and user are required.")])


# Sprints
# ------------------------------
class SprintForm(FlaskForm):
    project_id = StringField("Project", [DataRequired(message="Project and name are required.")])
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Project and name are required."),
            Length(max=200, message="Sprint name must be 200 characters or fewer."),
        ],
    )
    goal = TextAreaField("Goal")
    start_date = DateField("Start Date", validators=[Optional()])
    end_date = DateField("End Date", validators=[Optional()])

    def validate_end_date(self, field):
        if field.data and self.start_date.data and field.data < self.start_date.data:
            raise ValidationError("End date must be on or after the start date.")


class SprintStatusForm(FlaskForm):
    sprint_id = StringField("Sprint", [DataRequired(message="Sprint and status are required.")])
    status = StringField(
        "Status",
        validators=[
            DataRequired(message="Sprint and status are required."),
            AnyOf(SPRINT_STATUS_CHOICES, message="Invalid status."),
        ],
    )
    project_id = StringField("Project", [Optional()])


# Issues
# ------------------------------
class IssueFieldsForm(FlaskForm):
    """Fields shared by issue creation and editing."""

    description = TextAreaField("Description")
    status = StringField("Status", [AnyOf(ISSUE_STATUS_CHOICES, message="Invalid status.")])
    priority = StringField("Priority", [AnyOf(ISSUE_PRIORITY_CHOICES, message="Invalid priority.")])
    issue_type = StringField("Type", [AnyOf(ISSUE_TYPE_CHOICES, message="Invalid issue type.")])
    story_points = IntegerField(
        "Story Points",
        validators=[
            Optional(),
            NumberRange(
                min=0,
                max=MAX_STORY_POINTS,
                message=f"Story points must be between 0 and {MAX_STORY_POINTS}.",
            ),
        ],
    )
    complexity = StringField(
        "Complexity", [AnyOf(ISSUE_COMPLEXITY_CHOICES, message="Invalid complexity.")]
    )
    due_date = DateField("Due Date", validators=[Optional()])
    sprint_id = StringField("Sprint", [Optional()])


class IssueCreateForm(IssueFieldsForm):
    project_id = StringField("Project", [DataRequired(message="Project and title are required.")])
    title = StringField("Title", [DataRequired(message="Project and title are required.")])


class IssueUpdateForm(IssueFieldsForm):
    issue_id = StringField("Issue", [DataRequired(message="Issue and title are required.")])
    title = StringField("Title", [DataRequired(message="Issue and title are required.")])


class IssueStatusForm(FlaskForm):
    issue_id = StringField("Issue", [DataRequired(message="Issue and status are required.")])
    status = StringField(
        "Status",
        validators=[
            DataRequired(message="Issue and status are required."),
            AnyOf(ISSUE_STATUS_CHOICES, message="Invalid status."),
        ],
    )


class IssueSprintForm(FlaskForm):
    issue_id = StringField("Issue", [DataRequired(message="Issue is required.")])
    sprint_id = StringField("Sprint", [Optional()])


# Comments, work logs and attachments
# ------------------------------
class CommentForm(FlaskForm):
    issue_id = StringField("Issue", [DataRequired(message="Issue and comment body are required.")])
    body = TextAreaField("Comment", [DataRequired(message="Issue and comment body are required.")])


class CommentDeleteForm(FlaskForm):
    comment_id = StringField("Comment", [DataRequired(message="Comment is required.")])


class WorkLogForm(FlaskForm):
    issue_id = StringField("Issue", [DataRequired(message="Issue, date, and hours are required.")])
    work_date = DateField("Date", [DataRequired(message="Issue, date, and hours are required.")])
    hours = FloatField("Hours", [DataRequired(message="Issue, date, and hours are required.")])
    note = TextAreaField("Note")

    def validate_hours(self, field):
        if field.data <= 0 or field.data > MAX_WORK_LOG_HOURS:
            raise ValidationError(f"Hours must be between 0 and {MAX_WORK_LOG_HOURS}.")


class WorkLogDeleteForm(FlaskForm):
    log_id = StringField("Work Log", [DataRequired(message="Work log is required.")])


class AttachmentForm(FlaskForm):
    issue_id = StringField("Issue", [DataRequired(message="Issue, title, and URL are required.")])
    title = StringField(
        "Title",
        validators=[
            DataRequired(message="Issue, title, and URL are required."),
            Length(max=255, message="Title must be 255 characters or fewer."),
        ],
    )
    url = StringField("URL", [DataRequired(message="Issue, title, and URL are required.")])

    def validate_url(self, field):
        parsed = urlparse(field.data)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError("Attachment URL must be an http(s) link.")


class AttachmentUploadForm(FlaskForm):
    issue_id = StringField("Issue", [DataRequired(message="Issue and file are required.")])
    file = FileField("File", [FileRequired(message="Issue and file are required.")])

    def validate_file(self, field):
        if not is_allowed_attachment(field.data.filename, field.data.mimetype):
            raise ValidationError("Only Word or Excel files are allowed.")


class AttachmentDeleteForm(FlaskForm):
    attachment_id = StringField("Attachment", [DataRequired(message="Attachment is required.")])
    file_path = StringField("File Path", [Optional()])
