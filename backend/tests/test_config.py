# Overview: Pytest coverage for environment-driven configuration.

import importlib

import pytest

import shopdesk.config


@pytest.fixture
def reload_config(monkeypatch):
    """Reload shopdesk.config under patched env, restoring the module afterwards."""
    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(shopdesk.config).Config

    yield _reload
    monkeypatch.undo()
    importlib.reload(shopdesk.config)


class TestConfigFromEnvironment:

    def test_token_secrets_read_from_env(self, reload_config):
        config = reload_config(
            JWT_SECRET_KEY="access-from-env-0123456789abcdef",
            JWT_REFRESH_SECRET_KEY="refresh-from-env-0123456789abcdef",
        )
        assert config.JWT_SECRET_KEY == "access-from-env-0123456789abcdef"
        assert config.JWT_REFRESH_SECRET_KEY == "refresh-from-env-0123456789abcdef"

    def test_token_secrets_default_and_differ(self, reload_config, monkeypatch):
        monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
        monkeypatch.delenv("JWT_REFRESH_SECRET_KEY", raising=False)
        config = reload_config()
        assert config.JWT_SECRET_KEY
        assert config.JWT_REFRESH_SECRET_KEY
        assert config.JWT_SECRET_KEY != config.JWT_REFRESH_SECRET_KEY

    def test_throttle_limits_from_env(self, reload_config):
        config = reload_config(LOGIN_MAX_FAILED_ATTEMPTS="3", REGISTER_WINDOW_MINUTES="30")
        assert config.LOGIN_MAX_FAILED_ATTEMPTS == 3
        assert config.REGISTER_WINDOW_MINUTES == 30

    def test_refresh_cookie_secure_flag(self, reload_config):
        assert reload_config(REFRESH_COOKIE_SECURE="false").REFRESH_COOKIE_SECURE is False
        assert reload_config(REFRESH_COOKIE_SECURE="1").REFRESH_COOKIE_SECURE is True
