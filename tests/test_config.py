import os
import unittest
from pathlib import Path
from unittest import mock

from pydantic import ValidationError as SettingsError

from mystic_habits.config import AppSettings


def clean_settings(**overrides) -> AppSettings:
    with mock.patch.dict(os.environ, {}, clear=True):
        return AppSettings(_env_file=None, **overrides)


class TestAppSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = clean_settings()
        self.assertEqual(settings.ENVIRONMENT, "development")
        self.assertEqual(settings.DATA_DIR, Path("data"))
        self.assertEqual(settings.STORAGE_PREFIX, "cyberMysticData_")
        self.assertEqual(settings.LAST_USER_KEY, "cm_lastUser")
        self.assertEqual(settings.DEFAULT_GRACE_DAYS, 1)
        self.assertEqual(settings.DEFAULT_AUTO_PAUSE_AFTER, 3)
        self.assertEqual(settings.CHART_DAYS, 60)
        self.assertTrue(settings.CHART_RTL)
        self.assertIsNone(settings.TIMEZONE)

    def test_environment_variables_use_prefix(self) -> None:
        env = {"MYSTIC_CHART_DAYS": "30", "MYSTIC_LOG_LEVEL": "debug", "MYSTIC_ENVIRONMENT": "Testing"}
        with mock.patch.dict(os.environ, env, clear=True):
            settings = AppSettings(_env_file=None)
        self.assertEqual(settings.CHART_DAYS, 30)
        self.assertEqual(settings.LOG_LEVEL, "DEBUG")
        self.assertTrue(settings.is_testing)

    def test_progress_defaults_are_clamped(self) -> None:
        settings = clean_settings(DEFAULT_GRACE_DAYS=9, DEFAULT_AUTO_PAUSE_AFTER=-1)
        self.assertEqual(settings.DEFAULT_GRACE_DAYS, 3)
        self.assertEqual(settings.DEFAULT_AUTO_PAUSE_AFTER, 0)

    def test_invalid_values(self) -> None:
        with self.assertRaises(SettingsError):
            clean_settings(ENVIRONMENT="staging")
        with self.assertRaises(SettingsError):
            clean_settings(LOG_LEVEL="LOUD")
        with self.assertRaises(SettingsError):
            clean_settings(TIMEZONE="Mars/Olympus")
        with self.assertRaises(SettingsError):
            clean_settings(CHART_HEIGHT=0)

    def test_timezone(self) -> None:
        self.assertEqual(clean_settings(TIMEZONE="Europe/Moscow").TIMEZONE, "Europe/Moscow")
        self.assertIsNone(clean_settings(TIMEZONE="").TIMEZONE)

    def test_helpers(self) -> None:
        settings = clean_settings()
        self.assertEqual(settings.storage_key("bob"), "cyberMysticData_bob")
        self.assertEqual(settings.chart_width(7), 1200)
        self.assertEqual(settings.chart_width(60), 1680)

    def test_logging_config(self) -> None:
        config = clean_settings().get_logging_config()
        self.assertEqual(list(config["handlers"]), ["console"])

        config = clean_settings(LOG_TO_FILE=True, LOG_DIR=Path("var/log")).get_logging_config()
        file_handler = config["handlers"]["file"]
        self.assertEqual(file_handler["class"], "logging.handlers.RotatingFileHandler")
        self.assertEqual(file_handler["filename"], str(Path("var/log") / "mystic_development.log"))
        self.assertEqual(config["loggers"][""]["handlers"], ["console", "file"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
