"""
Unit tests for configuration, errors and notifications
"""
import logging
from pathlib import Path

from AMC.config import load_settings, setup_logging
from AMC.errors import FetchFailed, InvalidPattern, StreamStartFailed
from AMC.log_analysis.notification import Notification


class TestLoadSettings:
    """Test load_settings"""

    def test_defaults(self, monkeypatch):
        for name in ("AMC_LOG_FILE", "AMC_INITIAL_LINES", "AMC_POLL_INTERVAL"):
            monkeypatch.delenv(name, raising=False)

        settings = load_settings()

        assert settings.log_file == Path.home() / ".nanobot" / "logs" / "nanobot.log"
        assert settings.initial_lines == 500
        assert settings.poll_interval == 2.0

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("AMC_LOG_FILE", str(tmp_path / "svc.log"))
        monkeypatch.setenv("AMC_INITIAL_LINES", "50")

        settings = load_settings()

        assert settings.log_file == tmp_path / "svc.log"
        assert settings.initial_lines == 50

    def test_explicit_log_file_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("AMC_LOG_FILE", str(tmp_path / "env.log"))
        settings = load_settings(str(tmp_path / "cli.log"))
        assert settings.log_file == tmp_path / "cli.log"


class TestSetupLogging:
    """Test setup_logging"""

    def test_creates_log_directory(self, settings, monkeypatch):
        basic_config = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: basic_config.append(kwargs))

        setup_logging(settings, debug=True)

        assert settings.app_log_dir.is_dir()
        assert basic_config[0]["level"] == logging.DEBUG
        assert basic_config[0]["filename"].endswith("console.log")


class TestErrors:
    """Test the error taxonomy and notifications"""

    def test_error_with_cause(self):
        error = StreamStartFailed("Failed to start log monitoring", OSError("denied"))
        assert str(error) == "Failed to start log monitoring: denied"

    def test_invalid_pattern_message(self):
        error = InvalidPattern("[abc")
        assert str(error) == "Invalid regular expression '[abc'"

    def test_notification_from_error(self):
        notification = Notification.from_error(FetchFailed("Failed to load logs"))
        assert notification.severity == "error"
        assert notification.message == "Failed to load logs"
        assert notification.raised_by == "log_monitor"
