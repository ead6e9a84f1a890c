"""Shared setUp/tearDown for tests that talk to the app and its database."""

from __future__ import annotations

import shutil
import tempfile
import unittest

from app import app, db
from models.profile import Profile
from models.project import Project
from tests.utils.db import (
    cleanup_test_database,
    provision_test_database,
    rebuild_database_engine,
)


class TrackerTestCase(unittest.TestCase):
    def setUp(self):
        self._original_config = {
            key: app.config.get(key)
            for key in ("SQLALCHEMY_DATABASE_URI", "TESTING", "WTF_CSRF_ENABLED", "STORAGE_ROOT", "STORAGE_BACKEND")
        }
        (
            self._test_db_name,
            test_database_uri,
            self._managed_test_db,
        ) = provision_test_database()
        self.storage_root = tempfile.mkdtemp(prefix="issuetracker_storage_")
        app.config["TESTING"] = True
        app.config["SQLALCHEMY_DATABASE_URI"] = test_database_uri
        app.config["WTF_CSRF_ENABLED"] = False
        app.config["STORAGE_BACKEND"] = "local"
        app.config["STORAGE_ROOT"] = self.storage_root

        with app.app_context():
            db.session.remove()
            rebuild_database_engine(db, app.config["SQLALCHEMY_DATABASE_URI"])
            db.drop_all()
            db.create_all()

            admin = self._make_profile("admin@example.com", Profile.ADMIN)
            member = self._make_profile("member@example.com", Profile.MEMBER)
            outsider = self._make_profile("outsider@example.com", Profile.MEMBER)
            db.session.commit()
            self.admin_id = admin.id
            self.member_id = member.id
            self.outsider_id = outsider.id

            project = Project(name="Apollo", description="Moon shot", created_by=admin.id)
            project.members.append(member)
            db.session.add(project)
            db.session.commit()
            self.project_id = project.id

        self.client = app.test_client()

    def tearDown(self):
        with app.app_context():
            db.session.remove()
            db.drop_all()
            db.engine.dispose()

        if self._managed_test_db:
            cleanup_test_database(self._test_db_name)
        shutil.rmtree(self.storage_root, ignore_errors=True)
        for key, value in self._original_config.items():
            if value is None:
                app.config.pop(key, None)
            else:
                app.config[key] = value

    @staticmethod
    def _make_profile(email, role):
        profile = Profile(email=email, role=role)
        profile.set_password("password123")
        db.session.add(profile)
        return profile

    def _login(self, user_id):
        with self.client.session_transaction() as client_session:
            client_session["user_id"] = user_id

    def _post(self, path, payload):
        response = self.client.post(path, json=payload)
        return response, response.get_json()
