import unittest

from app import app, db
from models.project import Project
from models.sprint import Sprint, SprintStatus
from services.sprint_service import create_sprint, update_sprint_status
from tests.utils.case import TrackerTestCase


class SprintRoutesTestCase(TrackerTestCase):
    def setUp(self):
        super().setUp()
        self._login(self.admin_id)

    def _create_sprint(self, name, **extra):
        response, payload = self._post(
            "/api/sprints/create", {"projectId": self.project_id, "name": name, **extra}
        )
        self.assertEqual(response.status_code, 200, payload)
        return payload["sprint"]

    def _set_status(self, sprint_id, status, **extra):
        return self._post(
            "/api/sprints/update-status", {"sprintId": sprint_id, "status": status, **extra}
        )

    def test_create_sprint_starts_planned(self):
        sprint = self._create_sprint(
            "Sprint 1", goal="Ship it", startDate="2026-10-01", endDate="2026-10-14"
        )
        self.assertEqual(sprint["status"], SprintStatus.PLANNED.value)
        self.assertEqual(sprint["start_date"], "2026-10-01")
        self.assertEqual(sprint["end_date"], "2026-10-14")
        self.assertEqual(sprint["goal"], "Ship it")

    def test_create_sprint_validation(self):
        response, payload = self._post("/api/sprints/create", {"projectId": self.project_id})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Project and name are required.")

        response, payload = self._post(
            "/api/sprints/create",
            {
                "projectId": self.project_id,
                "name": "Backwards",
                "startDate": "2026-10-14",
                "endDate": "2026-10-01",
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "End date must be on or after the start date.")

        response, payload = self._post(
            "/api/sprints/create", {"projectId": self.project_id, "name": "Bad", "startDate": "soon"}
        )
        self.assertEqual(response.status_code, 400)

        response, payload = self._post("/api/sprints/create", {"projectId": "missing", "name": "X"})
        self.assertEqual(response.status_code, 404)

    def test_activating_sprint_closes_other_active_sprint(self):
        first = self._create_sprint("Sprint 1")
        second = self._create_sprint("Sprint 2")

        response, payload = self._set_status(first["id"], "active")
        self.assertEqual(response.status_code, 200, payload)
        self.assertEqual(payload["closed_sprint_ids"], [])

        response, payload = self._set_status(second["id"], "active", projectId=self.project_id)
        self.assertEqual(response.status_code, 200, payload)
        self.assertEqual(payload["closed_sprint_ids"], [first["id"]])

        with app.app_context():
            statuses = {sprint.id: sprint.status for sprint in Sprint.query.all()}
        self.assertEqual(statuses[first["id"]], SprintStatus.CLOSED.value)
        self.assertEqual(statuses[second["id"]], SprintStatus.ACTIVE.value)

    def test_update_status_errors(self):
        sprint = self._create_sprint("Sprint 1")

        response, payload = self._set_status(sprint["id"], "")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Sprint and status are required.")

        response, payload = self._set_status(sprint["id"], "paused")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Invalid status.")

        response, payload = self._set_status("missing", "active")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(payload["error"], "Sprint not found.")

        response, payload = self._set_status(sprint["id"], "active", projectId="other-project")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(payload["error"], "Invalid sprint.")

    def test_members_cannot_manage_sprints(self):
        self._login(self.member_id)
        response, payload = self._post(
            "/api/sprints/create", {"projectId": self.project_id, "name": "Sprint 1"}
        )
        self.assertEqual(response.status_code, 403)


class SprintServiceTestCase(TrackerTestCase):
    def test_activation_only_touches_the_same_project(self):
        with app.app_context():
            project = db.session.get(Project, self.project_id)
            other_project = Project(name="Other")
            db.session.add(other_project)
            db.session.flush()

            current = create_sprint(project, "Current", None, None, None)
            update_sprint_status(current, SprintStatus.ACTIVE)
            elsewhere = create_sprint(other_project, "Elsewhere", None, None, None)
            update_sprint_status(elsewhere, SprintStatus.ACTIVE)
            upcoming = create_sprint(project, "Upcoming", None, None, None)

            closed = update_sprint_status(upcoming, SprintStatus.ACTIVE)
            db.session.commit()

            self.assertEqual([sprint.id for sprint in closed], [current.id])
            self.assertTrue(upcoming.is_active)
            self.assertFalse(current.is_active)
            self.assertEqual(elsewhere.status_enum, SprintStatus.ACTIVE)
            self.assertEqual(
                Sprint.query.filter_by(project_id=project.id, status="active").count(), 1
            )


if __name__ == "__main__":
    unittest.main()
