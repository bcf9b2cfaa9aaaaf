"""
Settings loading tests.
"""

import logging

import pytest
from pydantic import ValidationError

from spacemission.classroom import ApiClient
from spacemission.utils import Settings, configure_logging, load_settings, load_yaml_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SPACEMISSION_API_URL", "SPACEMISSION_API_TOKEN", "SPACEMISSION_REQUEST_TIMEOUT",
                 "SPACEMISSION_STUDENT_ID", "SPACEMISSION_TICK_INTERVAL", "SPACEMISSION_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the tests
    monkeypatch.setattr("spacemission.utils.config.load_dotenv", lambda: False)


class TestLoadSettings:
    """Test YAML file plus environment overrides."""

    def test_defaults(self):
        settings = Settings()
        assert settings.api_base_url == "http://localhost:5000"
        assert settings.request_timeout == 10.0
        assert settings.student_id is None

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml_settings(tmp_path / "missing.yaml")

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("api_base_url: https://mission.example\nstudent_id: 7\n", encoding="utf-8")
        settings = load_settings(path)
        assert settings.api_base_url == "https://mission.example"
        assert settings.student_id == 7

    def test_empty_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_yaml_settings(path) == {}

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.yaml"
        path.write_text("request_timeout: 5\n", encoding="utf-8")
        monkeypatch.setenv("SPACEMISSION_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("SPACEMISSION_API_TOKEN", "secret")
        settings = load_settings(path)
        assert settings.request_timeout == 2.5
        assert settings.api_token == "secret"

    def test_invalid_timeout(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.yaml"
        path.write_text("{}\n", encoding="utf-8")
        monkeypatch.setenv("SPACEMISSION_REQUEST_TIMEOUT", "-1")
        with pytest.raises(ValidationError):
            load_settings(path)


class TestApiClientSettings:
    def test_bearer_token(self):
        api = ApiClient.from_settings(Settings(api_token="abc"))
        assert api._client.headers["Authorization"] == "Bearer abc"

    def test_no_token(self):
        api = ApiClient.from_settings(Settings())
        assert "Authorization" not in api._client.headers


class TestConfigureLogging:
    def test_returns_package_logger(self):
        logger = configure_logging("DEBUG")
        assert logger.name == "spacemission"
        assert isinstance(logger, logging.Logger)
