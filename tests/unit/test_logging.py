"""Unit tests for logging service."""

import json

import structlog

from callscore.services.logging_service import configure_logging, get_logger, redact_sensitive


class TestRedactSensitive:
    """Tests for redact_sensitive processor."""

    def test_redacts_password(self):
        event_dict = {"password": "hunter2", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["password"] == "REDACTED"

    def test_redacts_secret_in_key_name(self):
        event_dict = {"client_secret": "abc123", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["client_secret"] == "REDACTED"

    def test_case_insensitive_redaction(self):
        event_dict = {"API_KEY": "k1", "Authorization": "Bearer t", "refresh_TOKEN": "t2"}
        result = redact_sensitive(None, None, event_dict)
        assert set(result.values()) == {"REDACTED"}

    def test_redacts_password_in_connection_string(self):
        """Passwords embedded in DSNs are masked, the rest is kept."""
        event_dict = {"dsn": "postgresql://callscore:s3cr3t@db:5432/callscore", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["dsn"] == "postgresql://callscore:REDACTED@db:5432/callscore"

    def test_url_without_credentials_untouched(self):
        event_dict = {"path": "http://localhost:8000/dashboard/abc"}
        result = redact_sensitive(None, None, event_dict)
        assert result["path"] == "http://localhost:8000/dashboard/abc"

    def test_preserves_non_sensitive_fields(self):
        event_dict = {
            "correlation_id": "abc-123",
            "organization_id": "3f2b9c1e-8a4d-4e2b-9c1a-7d5e6f8a9b0c",
            "duration_ms": 100,
        }
        result = redact_sensitive(None, None, dict(event_dict))
        assert result == event_dict


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_get_logger_with_name(self):
        configure_logging("DEBUG")
        logger = get_logger("test_module")
        assert logger is not None
        logger.info("test_event", data="value")

    def test_get_logger_without_name(self):
        configure_logging("INFO")
        assert get_logger() is not None

    def test_output_is_redacted_json(self, capsys):
        configure_logging("INFO")
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id="corr-1")

        get_logger("db").info(
            "database_pool_created",
            url="postgresql://callscore:s3cr3t@db/callscore",
        )

        line = capsys.readouterr().out.strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["event"] == "database_pool_created"
        assert entry["correlation_id"] == "corr-1"
        assert entry["logger_name"] == "db"
        assert entry["level"] == "info"
        assert "s3cr3t" not in line

        structlog.contextvars.clear_contextvars()
