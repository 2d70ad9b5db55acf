"""
Tests for settings, environment selection and the user .env writer.
"""

import httpx

from adapters.http_client import build_async_client
from core.config import ENVIRONMENTS, AppSettings, write_user_env_vars


class TestAppSettings:
    def test_defaults(self):
        settings = AppSettings(_env_file=None)

        assert settings.environment == "testing"
        assert settings.dns_timeout_seconds == 5.0
        assert settings.auth_timeout_seconds == 10.0
        assert settings.api_timeout_seconds == 30.0
        assert settings.cache_max_size == 100
        assert settings.cache_ttl_seconds == 3600.0

    def test_environment_from_env_var(self, monkeypatch):
        monkeypatch.setenv("GDSO_ENVIRONMENT", "production")
        monkeypatch.setenv("GDSO_PROD_USERNAME", "prod-user")
        monkeypatch.setenv("GDSO_PROD_PASSWORD", "prod-pass")

        settings = AppSettings(_env_file=None)

        assert settings.environment_config() == ENVIRONMENTS["production"]
        assert settings.credentials() == ("prod-user", "prod-pass")

    def test_testing_credentials(self, settings):
        assert settings.credentials() == ("fleet-user", "s3cret")
        assert settings.environment_config().ons_suffix == "gtin.gs1.id.testing.gdso.org"

    def test_retry_policy_from_settings(self):
        settings = AppSettings(_env_file=None, retry_max_attempts=5, retry_delay_seconds=0.5)

        policy = settings.retry_policy()

        assert policy.max_attempts == 5
        assert policy.initial_delay == 0.5
        assert policy.backoff_multiplier == 2.0


class TestUserEnvFile:
    def test_write_merges_existing_values(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        monkeypatch.setattr("sys.platform", "linux")

        write_user_env_vars({"GDSO_USERNAME": "a", "GDSO_PASSWORD": "b"})
        path = write_user_env_vars({"GDSO_PASSWORD": "c"})

        assert path == tmp_path / "gdso-tis" / ".env"
        lines = path.read_text(encoding="utf-8").splitlines()
        assert "GDSO_USERNAME=a" in lines
        assert "GDSO_PASSWORD=c" in lines


class TestHttpClient:
    def test_default_headers(self, settings):
        client = build_async_client(settings, transport=httpx.MockTransport(lambda request: httpx.Response(200)))

        assert client.headers["User-Agent"] == settings.user_agent
        assert client.headers["Accept"] == "application/json"
        assert client.timeout.read == settings.api_timeout_seconds
