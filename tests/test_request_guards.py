import io
import os
import unittest
from unittest import mock

from sqlalchemy.exc import IntegrityError, OperationalError

from app import app, db
from models.issue import Issue
from models.issue_activity import IssueAttachment
from models.project import Project
from tests.utils.case import TrackerTestCase

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class CsrfTestCase(TrackerTestCase):
    def setUp(self):
        super().setUp()
        app.config["WTF_CSRF_ENABLED"] = True
        with app.app_context():
            issue = Issue(project_id=self.project_id, title="Guarded")
            db.session.add(issue)
            db.session.commit()
            self.issue_id = issue.id

    def _csrf_token(self):
        response = self.client.get("/login")
        self.assertEqual(response.status_code, 200)
        return response.get_json()["csrf_token"]

    def test_login_needs_token_from_login_page(self):
        credentials = {"email": "member@example.com", "password": "password123"}

        response, payload = self._post("/login", credentials)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "The CSRF token is missing.")

        response, payload = self._post("/login", {**credentials, "csrf_token": self._csrf_token()})
        self.assertEqual(response.status_code, 200, payload)
        self.assertEqual(payload["profile"]["id"], self.member_id)

    def test_json_mutation_rejects_missing_or_bad_token(self):
        self._login(self.member_id)
        body = {"issueId": self.issue_id, "body": "Hello"}

        response, payload = self._post("/api/issues/comments/create", body)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "The CSRF token is missing.")
        # A fresh token comes back with every error.
        self.assertTrue(payload["csrf_token"])

        response, payload = self._post(
            "/api/issues/comments/create", {**body, "csrf_token": "not-a-token"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("CSRF token is invalid", payload["error"])

        response, payload = self._post(
            "/api/issues/comments/create", {**body, "csrf_token": self._csrf_token()}
        )
        self.assertEqual(response.status_code, 200, payload)


class CommitFailureTestCase(TrackerTestCase):
    def setUp(self):
        super().setUp()
        self._login(self.admin_id)

    def _project_count(self, name):
        with app.app_context():
            return Project.query.filter_by(name=name).count()

    def test_integrity_error_is_reported_as_bad_request(self):
        failure = IntegrityError("INSERT INTO projects", {}, Exception("duplicate key"))
        with mock.patch.object(db.session, "commit", side_effect=failure):
            response, payload = self._post("/api/admin/create-project", {"name": "Gemini"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            payload["error"],
            "Unable to create the project. A related record is missing or already exists.",
        )
        self.assertEqual(self._project_count("Gemini"), 0)

    def test_other_database_errors_are_server_errors(self):
        failure = OperationalError("INSERT INTO projects", {}, Exception("database is locked"))
        with mock.patch.object(db.session, "commit", side_effect=failure):
            response, payload = self._post("/api/admin/create-project", {"name": "Gemini"})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(payload["error"], "Unable to create the project. Please try again.")
        self.assertFalse(payload["ok"])
        self.assertEqual(self._project_count("Gemini"), 0)


class UploadFailureTestCase(TrackerTestCase):
    def setUp(self):
        super().setUp()
        with app.app_context():
            issue = Issue(project_id=self.project_id, title="Quarterly report")
            db.session.add(issue)
            db.session.commit()
            self.issue_id = issue.id
        self._login(self.admin_id)

    def _upload(self):
        return self.client.post(
            "/api/issues/attachments/upload",
            data={"issueId": self.issue_id, "file": (io.BytesIO(b"draft"), "q3.docx", DOCX_TYPE)},
            content_type="multipart/form-data",
        )

    def _stored_files(self):
        issue_dir = os.path.join(self.storage_root, "issues", self.issue_id)
        if not os.path.isdir(issue_dir):
            return []
        return os.listdir(issue_dir)

    def _attachment_count(self):
        with app.app_context():
            return IssueAttachment.query.count()

    def test_failed_commit_removes_stored_file(self):
        failure = OperationalError("INSERT INTO issue_attachments", {}, Exception("disk full"))
        with mock.patch.object(db.session, "commit", side_effect=failure):
            response = self._upload()

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.get_json()["error"], "Unable to save the attachment. Please try again."
        )
        self.assertEqual(self._stored_files(), [])
        self.assertEqual(self._attachment_count(), 0)

    def test_failed_flush_never_writes_the_file(self):
        failure = OperationalError("INSERT INTO issue_attachments", {}, Exception("disk full"))
        with mock.patch.object(db.session, "flush", side_effect=failure):
            response = self._upload()

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.get_json()["error"], "Unable to save the attachment. Please try again."
        )
        self.assertEqual(self._stored_files(), [])
        self.assertEqual(self._attachment_count(), 0)


if __name__ == "__main__":
    unittest.main()
