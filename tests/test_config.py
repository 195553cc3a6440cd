import os
import tempfile
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from issue_hunter.config import DEFAULT_DB_URL, Settings, load_settings


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True), patch("issue_hunter.config.load_dotenv"):
            settings = load_settings()

        self.assertEqual(settings.db_url, DEFAULT_DB_URL)
        self.assertIsNone(settings.github_token)
        self.assertIsNone(settings.max_pages)
        self.assertEqual(settings.log_level, "INFO")

    def test_environment_overrides(self) -> None:
        env = {
            "ISSUE_HUNTER_DB_URL": "sqlite+aiosqlite:///:memory:",
            "GITHUB_TOKEN": "secret",
            "ISSUE_HUNTER_MAX_PAGES": "5",
            "ISSUE_HUNTER_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True), patch("issue_hunter.config.load_dotenv"):
            settings = load_settings()

        self.assertEqual(settings.github_token, "secret")
        self.assertEqual(settings.max_pages, 5)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_invalid_values_are_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(max_pages=0)
        with self.assertRaises(ValidationError):
            Settings(log_level="chatty")

    def test_ensure_data_dir_creates_parent(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "nested", "issues.db")

            Settings(db_url=f"sqlite+aiosqlite:///{path}").ensure_data_dir()

            self.assertTrue(os.path.isdir(os.path.join(tmp, "nested")))
