"""Tests for settings and manager configuration."""

import json
import logging

import pytest
from pydantic import ValidationError

from hookrelay.core.logging_config import setup_logging
from hookrelay.core.settings import WebhookSettings, load_settings
from hookrelay.webhooks.manager import WebhookManager, get_manager, reset_manager


class TestWebhookSettings:
    """Tests for loading and validating settings."""

    def test_defaults(self):
        """Test default values."""
        settings = WebhookSettings()

        assert settings.verify_signatures is True
        assert settings.require_signatures is False
        assert settings.default_signature_header == "X-Signature-256"
        assert settings.hash_algorithm == "sha256"
        assert settings.route_prefix == "/webhooks"

    def test_from_env(self):
        """Test WEBHOOK_* variables are read and coerced."""
        settings = WebhookSettings.from_env({
            "WEBHOOK_VERIFY_SIGNATURES": "false",
            "WEBHOOK_REQUIRE_SIGNATURES": "1",
            "WEBHOOK_SIGNATURE_HEADER": "X-Hub-Signature-256",
            "WEBHOOK_HASH_ALGORITHM": "SHA512",
            "UNRELATED": "ignored",
        })

        assert settings.verify_signatures is False
        assert settings.require_signatures is True
        assert settings.default_signature_header == "X-Hub-Signature-256"
        assert settings.hash_algorithm == "sha512"

    def test_from_file(self, tmp_path):
        """Test loading settings from a JSON file."""
        path = tmp_path / "webhooks.json"
        path.write_text(json.dumps({"route_prefix": "/hooks/", "require_signatures": True}))

        settings = WebhookSettings.from_file(path)

        assert settings.route_prefix == "/hooks"
        assert settings.require_signatures is True

    def test_load_settings_reads_env_file(self, tmp_path, monkeypatch):
        """Test .env values apply without overriding real variables."""
        monkeypatch.setenv("WEBHOOK_SIGNATURE_HEADER", "X-From-Env")
        monkeypatch.delenv("WEBHOOK_HASH_ALGORITHM", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("WEBHOOK_SIGNATURE_HEADER=X-From-File\nWEBHOOK_HASH_ALGORITHM=sha1\n")

        settings = load_settings(env_file)

        assert settings.default_signature_header == "X-From-Env"
        assert settings.hash_algorithm == "sha1"

    def test_unknown_algorithm_rejected(self):
        """Test unsupported hash algorithms fail validation."""
        with pytest.raises(ValidationError):
            WebhookSettings(hash_algorithm="rot13")

    def test_empty_header_rejected(self):
        """Test the default signature header must be set."""
        with pytest.raises(ValidationError):
            WebhookSettings(default_signature_header="  ")

    def test_root_prefix_normalized(self):
        """Test a bare slash mounts the router at the root."""
        assert WebhookSettings(route_prefix="/").route_prefix == ""

    def test_assignment_validated(self):
        """Test changes after construction are validated too."""
        settings = WebhookSettings()

        with pytest.raises(ValidationError):
            settings.hash_algorithm = "nope"


class TestManagerConfig:
    """Tests for the manager's configuration surface."""

    def test_get_config(self, manager):
        """Test reading one setting or all of them."""
        assert manager.get_config("verify_signatures") is True
        assert manager.get_config("missing", "fallback") == "fallback"
        assert manager.get_config()["hash_algorithm"] == "sha256"

    def test_set_config(self, manager):
        """Test updating a setting affects dispatch behaviour."""
        manager.set_config("verify_signatures", False)

        assert manager.pipeline.settings.verify_signatures is False

    def test_set_config_unknown_key(self, manager):
        """Test unknown settings are refused."""
        with pytest.raises(KeyError):
            manager.set_config("retries", 3)

    def test_set_config_validates(self, manager):
        """Test invalid values are refused."""
        with pytest.raises(ValidationError):
            manager.set_config("hash_algorithm", "rot13")

    def test_create_uses_default_header(self, settings):
        """Test builders from the manager start with the configured header."""
        settings.default_signature_header = "X-Custom-Sig"
        manager = WebhookManager(settings=settings)

        webhook = manager.create("a", "s3cret").build()

        assert webhook.signature_header_name == "X-Custom-Sig"

    def test_global_manager(self, settings):
        """Test the process-wide manager can be replaced and reset."""
        custom = WebhookManager(settings=settings)
        reset_manager(custom)
        try:
            assert get_manager() is custom
        finally:
            reset_manager()

        assert get_manager() is not custom
        reset_manager()


class TestLogging:
    """Tests for logging setup."""

    def test_setup_logging_with_file(self, tmp_path):
        """Test a log file's directory is created."""
        log_file = tmp_path / "logs" / "hookrelay.log"

        setup_logging(logging.DEBUG, log_file)

        assert log_file.parent.is_dir()
        assert logging.getLogger("httpx").level == logging.WARNING
