"""
Tests for environment-based configuration and structured logging
"""

import json
import logging

from gocash import config as config_module
from gocash.config import GoCashConfig, get_config, reload_config
from gocash.logging_config import JSONFormatter, log_action, setup_logging


class TestConfig:
    """Test configuration defaults and environment overrides"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GOCASH_STORAGE_URL", raising=False)
        config = GoCashConfig(_env_file=None)
        assert config.storage_url == "sqlite:///gocash.db"
        assert config.auth_enabled is True
        assert config.currency == "COP"
        assert config.chart_window_days == 7
        assert config.advisor_model == "gemini-3-flash-preview"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("GOCASH_API_PORT", "9100")
        monkeypatch.setenv("GOCASH_AUTH_ENABLED", "false")
        config = GoCashConfig(_env_file=None)
        assert config.api_port == 9100
        assert config.auth_enabled is False

    def test_reload_replaces_global(self, monkeypatch):
        original = get_config()
        monkeypatch.setenv("GOCASH_CHART_WINDOW_DAYS", "14")
        try:
            reloaded = reload_config()
            assert reloaded.chart_window_days == 14
            assert get_config() is reloaded
        finally:
            config_module.config = original


class TestLogging:
    """Test JSON log records"""

    def test_json_formatter_includes_action_fields(self):
        record = logging.LogRecord("gocash.store", logging.INFO, __file__, 1, "Loan originated", None, None)
        record.user_id = "rec-1"
        record.action = "loan_originated"
        record.resource = "loan:l1"

        entry = json.loads(JSONFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "gocash.store"
        assert entry["message"] == "Loan originated"
        assert entry["user_id"] == "rec-1"
        assert entry["resource"] == "loan:l1"
        assert "extra" not in entry

    def test_log_action_attaches_fields(self, caplog):
        logger = setup_logging("INFO", logger_name="gocash_actions_test", log_format="text")
        logger.propagate = True
        with caplog.at_level(logging.INFO, logger="gocash_actions_test"):
            log_action(logger, "info", "Payment confirmed", user_id="rec-1",
                       action="payment_confirmed", extra={"amount": 12000})

        record = caplog.records[-1]
        assert record.getMessage() == "Payment confirmed"
        assert record.action == "payment_confirmed"
        assert record.extra == {"amount": 12000}
