import pytest
from pydantic import ValidationError

from vidcloak.config import Settings


def test_defaults(monkeypatch):
    for name in ("VIDCLOAK_ALLOWED_DOMAINS", "VIDCLOAK_EXPOSE_ERROR_DETAIL", "VIDCLOAK_PORT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.allowed_domains == []
    assert settings.expose_error_detail is True
    assert settings.origin_timeout is None
    assert settings.port == 8787


def test_allowlist_from_environment(monkeypatch):
    monkeypatch.setenv("VIDCLOAK_ALLOWED_DOMAINS", '["storage.googleapis.com", "commondatastorage.googleapis.com"]')
    monkeypatch.setenv("vidcloak_expose_error_detail", "false")

    settings = Settings()

    assert settings.allowed_domains == ["storage.googleapis.com", "commondatastorage.googleapis.com"]
    assert settings.expose_error_detail is False


def test_invalid_port_is_rejected():
    with pytest.raises(ValidationError):
        Settings(port=0)
