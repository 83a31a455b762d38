import logging

import pytest

from app.core.settings import Settings, validate_settings

STRONG_SECRET = "s" * 40 + "-catms-export"


def test_development_weak_secret_only_warns(caplog):
    config = Settings(app_env="development", secret_key="change-me")
    with caplog.at_level(logging.WARNING, logger="catms.config"):
        validate_settings(config)
    assert "SECRET_KEY is missing or too weak" in caplog.text


def test_production_weak_secret_fails():
    config = Settings(app_env="production", secret_key="change-me", CATMS_API_TOKEN="t")
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        validate_settings(config)


def test_jwt_secret_fills_secret_key():
    config = Settings(jwt_secret=STRONG_SECRET)
    assert config.secret_key == STRONG_SECRET


def test_unknown_timezone_fails():
    config = Settings(secret_key=STRONG_SECRET, REPORT_TIMEZONE="Mars/Olympus_Mons")
    with pytest.raises(RuntimeError, match="REPORT_TIMEZONE"):
        validate_settings(config)


def test_export_roles_are_split_from_csv():
    config = Settings(EXPORT_DEFAULT_ROLES=" Manager ,Auditor,, ")
    assert config.export_roles == ["Manager", "Auditor"]


def test_empty_numbers_use_defaults():
    config = Settings(EXPORT_MAX_ROWS="", CATMS_API_TIMEOUT_SECONDS="")
    assert config.export_max_rows == 5000
    assert config.api_timeout_seconds == 10.0
