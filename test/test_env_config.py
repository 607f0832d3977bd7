import importlib
import os
from unittest.mock import patch

import structlog

from upload_gcloud.utils import env_config
from upload_gcloud.utils.env_config import AppSettings, get_env_bool, get_settings, reload_settings
from upload_gcloud.utils.logging_config import configure_logging


class TestAppSettings:
    """Test suite for AppSettings class."""

    def test_app_settings_default_values(self) -> None:
        """Test that AppSettings has correct default values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = AppSettings()

            assert settings.environment == "development"
            assert settings.app_root == os.getcwd()
            assert settings.storage_name == "gcloud"
            assert settings.storage_bucket_name is None
            assert settings.storage_credentials is None
            assert settings.storage_logger == "upload-gcloud"
            assert settings.log_level == "INFO"
            assert settings.log_json_format is False

    def test_app_settings_from_env_vars(self) -> None:
        """Test that AppSettings correctly reads from environment variables."""
        env_vars = {
            "ENVIRONMENT": "production",
            "APP_ROOT": "/srv/app",
            "STORAGE_NAME": "avatars",
            "STORAGE_BUCKET_NAME": "test-bucket",
            "STORAGE_CREDENTIALS": "config/gcloud.json",
            "STORAGE_LOGGER": "avatars-storage",
            "LOG_LEVEL": "DEBUG",
            "LOG_JSON_FORMAT": "true",
        }

        with patch.dict(os.environ, env_vars):
            settings = AppSettings()

            assert settings.environment == "production"
            assert settings.app_root == "/srv/app"
            assert settings.storage_name == "avatars"
            assert settings.storage_bucket_name == "test-bucket"
            assert settings.storage_credentials == "config/gcloud.json"
            assert settings.storage_logger == "avatars-storage"
            assert settings.log_level == "DEBUG"
            assert settings.log_json_format is True

    def test_get_storage_config(self) -> None:
        """Test get_storage_config maps settings to adapter options."""
        env_vars = {
            "APP_ROOT": "/srv/app",
            "STORAGE_BUCKET_NAME": "test-bucket",
            "STORAGE_CREDENTIALS": '{"type": "service_account"}',
        }

        with patch.dict(os.environ, env_vars):
            config = AppSettings().get_storage_config()

        assert config == {
            "name": "gcloud",
            "bucket": "test-bucket",
            "credentials": '{"type": "service_account"}',
            "root_dir": "/srv/app",
            "logger": "upload-gcloud",
        }


def test_get_env_bool() -> None:
    with patch.dict(os.environ, {"FLAG_ON": "Yes", "FLAG_OFF": "0"}):
        assert get_env_bool("FLAG_ON") is True
        assert get_env_bool("FLAG_OFF", True) is False
        assert get_env_bool("FLAG_MISSING", True) is True


def test_get_settings_is_cached() -> None:
    env_config._settings = None

    assert get_settings() is get_settings()


def test_reload_settings_replaces_instance() -> None:
    first = get_settings()

    with patch.dict(os.environ, {"STORAGE_BUCKET_NAME": "reloaded"}):
        second = reload_settings()

    assert second is not first
    assert second.storage_bucket_name == "reloaded"
    assert get_settings() is second


def test_dotenv_does_not_override_environment(tmp_path, monkeypatch) -> None:
    """Test that importing and loading settings keeps variables the caller already set."""
    (tmp_path / ".env").write_text("STORAGE_BUCKET_NAME=from-dotenv\nSTORAGE_LOGGER=dotenv-logger\n")
    monkeypatch.chdir(tmp_path)

    with patch.dict(os.environ, {"STORAGE_BUCKET_NAME": "from-caller"}):
        os.environ.pop("STORAGE_LOGGER", None)

        importlib.reload(env_config)
        assert os.environ["STORAGE_BUCKET_NAME"] == "from-caller"
        assert "STORAGE_LOGGER" not in os.environ

        env_config._settings = None
        settings = env_config.get_settings()

        assert settings.storage_bucket_name == "from-caller"
        assert settings.storage_logger == "dotenv-logger"

    env_config._settings = None


class TestConfigureLogging:
    """Test suite for structlog configuration."""

    def teardown_method(self) -> None:
        structlog.reset_defaults()

    def test_json_renderer(self) -> None:
        with patch.dict(os.environ, {"LOG_JSON_FORMAT": "true"}):
            configure_logging(AppSettings())

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer(self) -> None:
        with patch.dict(os.environ, {"LOG_JSON_FORMAT": "false"}):
            configure_logging(AppSettings())

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
