"""Tests for Settings: defaults, FAGE_ env overrides and validation."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from fage.config import Settings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("FAGE_LOG_LEVEL", raising=False)
    monkeypatch.delenv("FAGE_ROOT_SCOPE", raising=False)
    settings = Settings(_env_file=None)
    assert settings.log_level == "INFO"
    assert settings.root_scope == "root"
    assert settings.claims_meta_key == "claims"
    assert settings.user_meta_key == "user_id"
    assert settings.resource_meta_key == "resource_id"


def test_env_prefix_overrides(monkeypatch):
    monkeypatch.setenv("FAGE_ROOT_SCOPE", "superuser")
    monkeypatch.setenv("FAGE_CLAIMS_META_KEY", "scopes")
    assert get_settings().root_scope == "superuser"
    assert get_settings().claims_meta_key == "scopes"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_log_format_is_normalized(monkeypatch):
    monkeypatch.setenv("FAGE_LOG_FORMAT", "TEXT")
    assert Settings(_env_file=None).log_format == "text"


def test_log_format_rejects_unknown(monkeypatch):
    monkeypatch.setenv("FAGE_LOG_FORMAT", "xml")
    with pytest.raises(PydanticValidationError):
        Settings(_env_file=None)
