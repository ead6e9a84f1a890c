import os
import unittest
from unittest import mock

from config import load_config
from forms import is_allowed_attachment
from routes import payload_id_list, payload_number, payload_string


class PayloadNormalizationTestCase(unittest.TestCase):
    def test_payload_string_trims_and_ignores_non_strings(self):
        payload = {"name": "  Apollo ", "count": 3, "empty": None}
        self.assertEqual(payload_string(payload, "name"), "Apollo")
        self.assertIsNone(payload_string(payload, "count"))
        self.assertEqual(payload_string(payload, "empty", ""), "")

    def test_payload_number_accepts_only_finite_numbers(self):
        payload = {
            "int": 4,
            "float": 2.5,
            "text": "4",
            "flag": True,
            "nan": float("nan"),
            "inf": float("inf"),
        }
        self.assertEqual(payload_number(payload, "int"), 4)
        self.assertEqual(payload_number(payload, "float"), 2.5)
        for key in ("text", "flag", "nan", "inf", "missing"):
            with self.subTest(key=key):
                self.assertIsNone(payload_number(payload, key))

    def test_payload_id_list_keeps_unique_strings_in_order(self):
        payload = {"memberIds": ["b", " a ", 1, None, "b", "", "c"]}
        self.assertEqual(payload_id_list(payload, "memberIds"), ["b", "a", "c"])
        self.assertEqual(payload_id_list({"memberIds": "a"}, "memberIds"), [])


class AttachmentTypeTestCase(unittest.TestCase):
    def test_word_and_excel_files_are_allowed(self):
        self.assertTrue(is_allowed_attachment("notes.DOCX", None))
        self.assertTrue(is_allowed_attachment("sheet", "application/vnd.ms-excel"))
        self.assertFalse(is_allowed_attachment("script.exe", "application/octet-stream"))
        self.assertFalse(is_allowed_attachment(None, None))


class ConfigTestCase(unittest.TestCase):
    def test_environment_overrides(self):
        env = {
            "DATABASE_URL": "postgresql://db/tracker",
            "STORAGE_BACKEND": "s3",
            "S3_BUCKET": "blobs",
            "LOG_LEVEL": "debug",
            "ENV": "production",
        }
        with mock.patch.dict(os.environ, env):
            config = load_config()
        self.assertEqual(config["SQLALCHEMY_DATABASE_URI"], "postgresql://db/tracker")
        self.assertEqual(config["STORAGE_BACKEND"], "s3")
        self.assertEqual(config["S3_BUCKET"], "blobs")
        self.assertEqual(config["LOG_LEVEL"], "DEBUG")
        self.assertTrue(config["SESSION_COOKIE_SECURE"])
        self.assertEqual(config["MAX_CONTENT_LENGTH"], 25 * 1024 * 1024)


if __name__ == "__main__":
    unittest.main()
