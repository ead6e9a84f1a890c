import unittest

from app import app, db
from models.issue import Issue, IssueStatus
from models.profile import Profile
from models.project import Project
from models.sprint import Sprint
from tests.utils.case import TrackerTestCase


class IssueRoutesTestCase(TrackerTestCase):
    def setUp(self):
        super().setUp()
        with app.app_context():
            sprint = Sprint(project_id=self.project_id, name="Sprint 1")
            other_project = Project(name="Hidden")
            db.session.add_all([sprint, other_project])
            db.session.flush()
            foreign_sprint = Sprint(project_id=other_project.id, name="Foreign")
            db.session.add(foreign_sprint)
            db.session.commit()
            self.sprint_id = sprint.id
            self.other_project_id = other_project.id
            self.foreign_sprint_id = foreign_sprint.id
        self._login(self.member_id)

    def _create_issue(self, **extra):
        body = {"projectId": self.project_id, "title": "Fix login", **extra}
        response, payload = self._post("/api/issues/create", body)
        self.assertEqual(response.status_code, 200, payload)
        return payload["issue"]

    def test_create_issue_applies_defaults(self):
        issue = self._create_issue()
        self.assertEqual(issue["status"], "todo")
        self.assertEqual(issue["priority"], "medium")
        self.assertEqual(issue["type"], "task")
        self.assertEqual(issue["complexity"], "medium")
        self.assertIsNone(issue["sprint_id"])
        self.assertIsNone(issue["story_points"])
        self.assertEqual(issue["reporter_id"], self.member_id)

    def test_create_issue_with_all_fields(self):
        issue = self._create_issue(
            description="**Steps** to reproduce",
            status="in_progress",
            priority="high",
            type="bug",
            storyPoints=5,
            complexity="high",
            dueDate="2026-11-01",
            sprintId=self.sprint_id,
            memberIds=[self.member_id, self.outsider_id, 7],
        )
        self.assertEqual(issue["status"], "in_progress")
        self.assertEqual(issue["type"], "bug")
        self.assertEqual(issue["story_points"], 5)
        self.assertEqual(issue["due_date"], "2026-11-01")
        self.assertEqual(issue["sprint_id"], self.sprint_id)
        self.assertIn("<strong>Steps</strong>", issue["description_html"])
        # Only project members can be assigned.
        self.assertEqual(issue["assignee_ids"], [self.member_id])

    def test_story_points_must_be_numeric_and_in_range(self):
        issue = self._create_issue(storyPoints="8")
        self.assertIsNone(issue["story_points"])

        response, payload = self._post(
            "/api/issues/create",
            {"projectId": self.project_id, "title": "Too big", "storyPoints": 11},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Story points must be between 0 and 10.")

        response, payload = self._post(
            "/api/issues/create",
            {"projectId": self.project_id, "title": "Huge", "storyPoints": 10**400},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Story points must be between 0 and 10.")

    def test_create_issue_errors(self):
        response, payload = self._post("/api/issues/create", {"projectId": self.project_id})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Project and title are required.")

        response, payload = self._post(
            "/api/issues/create", {"projectId": "missing", "title": "X"}
        )
        self.assertEqual(response.status_code, 404)

        response, payload = self._post(
            "/api/issues/create", {"projectId": self.other_project_id, "title": "X"}
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(payload["error"], "Forbidden")

        response, payload = self._post(
            "/api/issues/create",
            {"projectId": self.project_id, "title": "X", "sprintId": self.foreign_sprint_id},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Invalid sprint.")

        response, payload = self._post(
            "/api/issues/create", {"projectId": self.project_id, "title": "X", "status": "blocked"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Invalid status.")

        with app.app_context():
            self.assertEqual(Issue.query.filter_by(title="X").count(), 0)

    def test_update_issue_replaces_fields_and_assignees(self):
        issue = self._create_issue(memberIds=[self.member_id], priority="low")

        with app.app_context():
            project = db.session.get(Project, self.project_id)
            project.members.append(db.session.get(Profile, self.admin_id))
            db.session.commit()

        response, payload = self._post(
            "/api/issues/update",
            {
                "issueId": issue["id"],
                "title": "Fix login redirect",
                "priority": "urgent",
                "sprintId": self.sprint_id,
                "memberIds": [self.admin_id, self.outsider_id],
            },
        )
        self.assertEqual(response.status_code, 200, payload)
        updated = payload["issue"]
        self.assertEqual(updated["title"], "Fix login redirect")
        self.assertEqual(updated["priority"], "urgent")
        self.assertEqual(updated["sprint_id"], self.sprint_id)
        self.assertEqual(updated["assignee_ids"], [self.admin_id])

    def test_update_issue_errors(self):
        issue = self._create_issue()

        response, payload = self._post("/api/issues/update", {"issueId": issue["id"]})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Issue and title are required.")

        response, payload = self._post("/api/issues/update", {"issueId": "missing", "title": "X"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(payload["error"], "Issue not found.")

        response, payload = self._post(
            "/api/issues/update",
            {"issueId": issue["id"], "title": "X", "sprintId": self.foreign_sprint_id},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Invalid sprint.")

        self._login(self.outsider_id)
        response, payload = self._post("/api/issues/update", {"issueId": issue["id"], "title": "X"})
        self.assertEqual(response.status_code, 403)

    def test_update_status_moves_between_columns(self):
        issue = self._create_issue()

        response, payload = self._post(
            "/api/issues/update-status", {"issueId": issue["id"], "status": "review"}
        )
        self.assertEqual(response.status_code, 200, payload)
        self.assertEqual(payload["issue"]["status"], IssueStatus.REVIEW.value)

        response, payload = self._post(
            "/api/issues/update-status", {"issueId": issue["id"], "status": "archived"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Invalid status.")

        response, payload = self._post("/api/issues/update-status", {"issueId": issue["id"]})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Issue and status are required.")

    def test_update_sprint_moves_issue_between_backlog_and_sprint(self):
        issue = self._create_issue()

        response, payload = self._post(
            "/api/issues/update-sprint", {"issueId": issue["id"], "sprintId": self.sprint_id}
        )
        self.assertEqual(response.status_code, 200, payload)
        self.assertEqual(payload["issue"]["sprint_id"], self.sprint_id)

        response, payload = self._post(
            "/api/issues/update-sprint", {"issueId": issue["id"], "sprintId": None}
        )
        self.assertEqual(response.status_code, 200, payload)
        self.assertIsNone(payload["issue"]["sprint_id"])

        response, payload = self._post(
            "/api/issues/update-sprint",
            {"issueId": issue["id"], "sprintId": self.foreign_sprint_id},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Invalid sprint.")

    def test_update_sprint_requires_explicit_sprint_or_null(self):
        issue = self._create_issue(sprintId=self.sprint_id)

        for body in ({"issueId": issue["id"]}, {"issueId": issue["id"], "sprintId": 42}):
            with self.subTest(body=body):
                response, payload = self._post("/api/issues/update-sprint", body)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(payload["error"], "Invalid sprint.")

        with app.app_context():
            self.assertEqual(db.session.get(Issue, issue["id"]).sprint_id, self.sprint_id)

    def test_admin_can_work_on_any_project(self):
        self._login(self.admin_id)
        response, payload = self._post(
            "/api/issues/create", {"projectId": self.other_project_id, "title": "Admin issue"}
        )
        self.assertEqual(response.status_code, 200, payload)


if __name__ == "__main__":
    unittest.main()
