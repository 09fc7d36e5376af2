"""
tests/test_config.py — Settings loading from an explicit environment mapping.
"""
import logging

import pytest

from netdisk.config import DEFAULT_DOWNLOAD_API, DEFAULT_SIGNATURE_KEY, load_settings


def test_defaults_with_signature_key_set():
    settings = load_settings({"SIGNATURE_KEY": "s3cret"})

    assert settings.signature_key == "s3cret"
    assert settings.app_env == "development"
    assert settings.download_api == DEFAULT_DOWNLOAD_API
    assert settings.upstream_timeout == 15.0
    assert settings.mobile_api_token is None
    assert settings.debug_log is False


def test_unset_key_falls_back_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="netdisk_gateway.config"):
        settings = load_settings({})

    assert settings.signature_key == DEFAULT_SIGNATURE_KEY
    assert "SIGNATURE_KEY is not set" in caplog.text


def test_unset_key_is_fatal_in_production():
    with pytest.raises(RuntimeError, match="SIGNATURE_KEY"):
        load_settings({"APP_ENV": "production"})


def test_overrides_are_applied():
    settings = load_settings({
        "SIGNATURE_KEY": "k",
        "NETDISK_DOWNLOAD_API": "https://netdisk.example/",
        "NETDISK_REFERER": "https://groupware.example/",
        "UPSTREAM_TIMEOUT": "30",
        "MOBILE_API_TOKEN": "tok",
        "ENABLE_DEBUG_LOG": "true",
    })

    assert settings.download_api == "https://netdisk.example"
    assert settings.referer == "https://groupware.example/"
    assert settings.upstream_timeout == 30.0
    assert settings.mobile_api_token == "tok"
    assert settings.debug_log is True


@pytest.mark.parametrize("raw", ["soon", "0", "-5"])
def test_invalid_timeout_is_rejected(raw: str):
    with pytest.raises(ValueError, match="UPSTREAM_TIMEOUT"):
        load_settings({"SIGNATURE_KEY": "k", "UPSTREAM_TIMEOUT": raw})
