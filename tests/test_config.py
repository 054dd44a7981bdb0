"""Tests for configuration from the environment."""
from datetime import timedelta

from cachelib import FileSystemCache

from config import AppConfig


def test_defaults():
    config = AppConfig.from_env({})
    assert config.port == 8081
    assert config.app_base_url == "http://localhost:8081"
    assert config.org_uri == ""
    assert config.debug is False


def test_from_env():
    config = AppConfig.from_env(
        {
            "APP_PORT": "9000",
            "OKTA_ORG_URI": "https://tc3.okta.example",
            "OKTA_CLIENT_ID": "cid",
            "OKTA_CLIENT_SECRET": "secret",
            "DEBUG": "true",
        }
    )
    assert config.port == 9000
    assert config.debug is True
    assert config.oidc_config == {
        "issuer": "https://tc3.okta.example",
        "client_id": "cid",
        "client_secret": "secret",
        "app_base_url": "http://localhost:9000",
        "scope": "openid profile",
    }


def test_session_config(tmp_path):
    config = AppConfig(session_dir=str(tmp_path))
    session_config = config.session_config
    assert session_config["SESSION_COOKIE_NAME"] == "tc3-rewards-sid"
    assert session_config["SESSION_TYPE"] == "cachelib"
    assert isinstance(session_config["SESSION_CACHELIB"], FileSystemCache)
    assert session_config["PERMANENT_SESSION_LIFETIME"] == timedelta(hours=8)
    assert session_config["SECRET_KEY"] == "not-so-random-but-this-is-an-example"


def test_session_secret_override(tmp_path):
    config = AppConfig.from_env({"SESSION_SECRET": "rotated", "SESSION_DIR": str(tmp_path)})
    assert config.session_config["SECRET_KEY"] == "rotated"


def test_session_store_built_once(tmp_path):
    config = AppConfig(session_dir=str(tmp_path))
    assert config.session_config["SESSION_CACHELIB"] is config.session_config["SESSION_CACHELIB"]
