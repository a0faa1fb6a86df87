# backend/tests/test_token_config.py

import base64

import pytest

from notion_grid.tokens import TokenKeyError, TokenKeys, get_token_keys, get_token_settings
from notion_grid.tokens.config import decode_key_material
from notion_grid.utils.config import EnvVarMissingError


def test_decode_key_material_accepts_standard_and_prefixed_base64():
    raw = bytes(range(32))

    assert decode_key_material("K", base64.b64encode(raw).decode()) == raw
    prefixed = "base64:" + base64.urlsafe_b64encode(raw).rstrip(b"=").decode()
    assert decode_key_material("K", prefixed) == raw


def test_decode_key_material_rejects_garbage():
    with pytest.raises(TokenKeyError):
        decode_key_material("K", "not base64 !!")


def test_get_token_keys_from_env(monkeypatch):
    monkeypatch.setenv("ENC_KEY_32B", base64.b64encode(b"e" * 32).decode())
    monkeypatch.setenv("HMAC_KEY_32B", base64.b64encode(b"h" * 32).decode())

    keys = get_token_keys()

    assert keys.encryption_key == b"e" * 32
    assert keys.authentication_key == b"h" * 32
    assert "eeee" not in repr(keys)


def test_missing_key_is_fatal(monkeypatch):
    monkeypatch.delenv("HMAC_KEY_32B", raising=False)

    with pytest.raises(EnvVarMissingError):
        get_token_keys()


def test_wrong_key_length_is_rejected(monkeypatch):
    monkeypatch.setenv("ENC_KEY_32B", base64.b64encode(b"short").decode())

    with pytest.raises(TokenKeyError):
        get_token_keys()


def test_identical_keys_are_rejected():
    with pytest.raises(TokenKeyError):
        TokenKeys(encryption_key=b"k" * 32, authentication_key=b"k" * 32)


def test_keys_are_copied_to_immutable_bytes():
    encryption_key = bytearray(b"e" * 32)
    authentication_key = bytearray(b"a" * 32)

    keys = TokenKeys(encryption_key=encryption_key, authentication_key=authentication_key)
    encryption_key[0] ^= 0xFF

    assert isinstance(keys.encryption_key, bytes)
    assert isinstance(keys.authentication_key, bytes)
    assert keys.encryption_key == b"e" * 32


def test_create_app_refuses_to_start_without_keys(monkeypatch):
    from notion_grid.main import create_app

    monkeypatch.delenv("ENC_KEY_32B", raising=False)

    with pytest.raises(EnvVarMissingError):
        create_app()


def test_token_settings_defaults(monkeypatch):
    monkeypatch.delenv("WIDGET_TOKEN_TTL_DAYS", raising=False)
    monkeypatch.delenv("WIDGET_TOKEN_LEGACY_PARAMS", raising=False)

    settings = get_token_settings()

    assert settings.ttl_days == 0
    assert settings.legacy_query_params == ()


def test_token_settings_from_env(monkeypatch):
    monkeypatch.setenv("WIDGET_TOKEN_TTL_DAYS", "30")
    monkeypatch.setenv("WIDGET_TOKEN_LEGACY_PARAMS", "t, wt ,")

    settings = get_token_settings()

    assert settings.ttl_days == 30
    assert settings.legacy_query_params == ("t", "wt")


def test_token_settings_ignores_invalid_ttl(monkeypatch):
    monkeypatch.setenv("WIDGET_TOKEN_TTL_DAYS", "forever")

    assert get_token_settings().ttl_days == 0
