import os

import pytest

from lite_session.config import (
    ENV_MAX_TOKEN_BYTES,
    ENV_TOKEN_TTL_SECONDS,
    MAX_TOKEN_BYTES,
    TokenConfig,
)
from lite_session.crypto import (
    ENV_SERVER_KEY,
    ENV_SERVER_KEY_FILE,
    SecretKey,
    generate_key_file,
    hex_decode,
    keyed_hash,
    load_server_key,
    load_server_key_from_env,
    load_server_key_from_file,
    server_key_bytes,
    tags_equal,
)
from lite_session.errors import LiteSessionError, LS_E_INVALID_HEX, LS_E_KEY_CONFIG, LS_E_SERVER_KEY_LENGTH
from lite_session.tokens import SessionTokenIssuer, SessionTokenVerifier

KEY_HEX = "11" * 32


def test_config_defaults(monkeypatch):
    monkeypatch.delenv(ENV_TOKEN_TTL_SECONDS, raising=False)
    monkeypatch.delenv(ENV_MAX_TOKEN_BYTES, raising=False)
    cfg = TokenConfig.from_env()
    assert cfg.default_ttl_seconds == 86400
    assert cfg.max_token_bytes == MAX_TOKEN_BYTES == 1024 * 1024


def test_config_from_env(monkeypatch):
    monkeypatch.setenv(ENV_TOKEN_TTL_SECONDS, "3600")
    monkeypatch.setenv(ENV_MAX_TOKEN_BYTES, "4096")
    cfg = TokenConfig.from_env()
    assert cfg.default_ttl_seconds == 3600
    assert cfg.max_token_bytes == 4096


def test_config_clamps_and_ignores_garbage(monkeypatch):
    monkeypatch.setenv(ENV_TOKEN_TTL_SECONDS, "not-a-number")
    monkeypatch.setenv(ENV_MAX_TOKEN_BYTES, str(50 * 1024 * 1024))
    cfg = TokenConfig.from_env()
    assert cfg.default_ttl_seconds == 86400
    # Size guard can only be tightened
    assert cfg.max_token_bytes == MAX_TOKEN_BYTES

    monkeypatch.setenv(ENV_TOKEN_TTL_SECONDS, "0")
    monkeypatch.setenv(ENV_MAX_TOKEN_BYTES, "10")
    cfg = TokenConfig.from_env()
    assert cfg.default_ttl_seconds == 1
    assert cfg.max_token_bytes == 1024


def test_keyed_hash_contract():
    key = bytes(32)
    d1 = keyed_hash(key, b"message")
    assert len(d1) == 32
    assert d1 == keyed_hash(key, b"message")
    assert d1 != keyed_hash(b"\x01" * 32, b"message")
    assert tags_equal(d1, keyed_hash(key, b"message"))
    assert not tags_equal(d1, keyed_hash(key, b"other"))


@pytest.mark.parametrize("text", ["abc", "ABCD", "0x00", "00 11", "gg"])
def test_hex_decode_is_strict(text):
    with pytest.raises(LiteSessionError) as ei:
        hex_decode(text)
    assert ei.value.code == LS_E_INVALID_HEX


def test_secret_key_redacted_and_zeroized():
    key = SecretKey(b"\x42" * 32)
    assert "42" not in repr(key)
    assert server_key_bytes(key) == b"\x42" * 32
    with key:
        pass
    assert key.expose() == bytes(32)


def test_zeroize_does_not_reach_exposed_copies():
    key = SecretKey(b"\x42" * 32)
    copy = key.expose()
    assert isinstance(copy, bytes)
    key.zeroize()
    assert key.expose() == bytes(32)
    assert copy == b"\x42" * 32


def test_server_key_bytes_rejects_wrong_length():
    with pytest.raises(LiteSessionError) as ei:
        server_key_bytes(SecretKey(b"\x00" * 31))
    assert ei.value.code == LS_E_SERVER_KEY_LENGTH


def test_load_key_from_env(monkeypatch):
    monkeypatch.setenv(ENV_SERVER_KEY, KEY_HEX)
    key = load_server_key_from_env()
    assert key.expose() == b"\x11" * 32


def test_load_key_from_env_invalid_warns(monkeypatch):
    monkeypatch.setenv(ENV_SERVER_KEY, "abcd")
    with pytest.warns(UserWarning):
        assert load_server_key_from_env() is None


def test_load_key_from_env_missing(monkeypatch):
    monkeypatch.delenv(ENV_SERVER_KEY, raising=False)
    assert load_server_key_from_env() is None


def test_generate_and_load_key_file(tmp_path):
    path = tmp_path / "server.key"
    key = generate_key_file(str(path))
    if os.name == "posix":
        assert (os.stat(path).st_mode & 0o777) == 0o600
    loaded = load_server_key_from_file(str(path))
    assert loaded is not None
    assert loaded.expose() == key.expose()


@pytest.mark.skipif(os.name != "posix", reason="permission bits are POSIX-only")
def test_key_file_with_loose_permissions_rejected(tmp_path):
    path = tmp_path / "server.key"
    path.write_text(KEY_HEX, encoding="ascii")
    os.chmod(path, 0o644)
    with pytest.warns(UserWarning):
        assert load_server_key_from_file(str(path)) is None
    assert load_server_key_from_file(str(path), require_strict_permissions=False).expose() == b"\x11" * 32


def test_load_key_missing_file(tmp_path):
    assert load_server_key_from_file(str(tmp_path / "nope.key")) is None


def test_load_server_key_precedence(monkeypatch, tmp_path):
    path = tmp_path / "server.key"
    file_key = generate_key_file(str(path))

    monkeypatch.setenv(ENV_SERVER_KEY, KEY_HEX)
    monkeypatch.setenv(ENV_SERVER_KEY_FILE, str(path))
    assert load_server_key().expose() == b"\x11" * 32

    monkeypatch.delenv(ENV_SERVER_KEY)
    assert load_server_key().expose() == file_key.expose()

    monkeypatch.delenv(ENV_SERVER_KEY_FILE)
    assert load_server_key() is None
    with pytest.warns(UserWarning):
        assert len(load_server_key(generate_if_missing=True)) == 32


def test_issuer_verifier_from_env(monkeypatch):
    monkeypatch.setenv(ENV_SERVER_KEY, KEY_HEX)
    monkeypatch.delenv(ENV_SERVER_KEY_FILE, raising=False)
    issuer = SessionTokenIssuer.from_env()
    verifier = SessionTokenVerifier.from_env()
    assert issuer is not None and verifier is not None


def test_issuer_from_env_without_key_fails_closed(monkeypatch):
    monkeypatch.delenv(ENV_SERVER_KEY, raising=False)
    monkeypatch.delenv(ENV_SERVER_KEY_FILE, raising=False)
    with pytest.raises(LiteSessionError) as ei:
        SessionTokenIssuer.from_env()
    assert ei.value.code == LS_E_KEY_CONFIG
    assert ei.value.as_dict()["details"] == {"env": ENV_SERVER_KEY}
