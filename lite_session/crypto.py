"""
LiteSession Cryptography Module

BLAKE3 in keyed mode is the only MAC/KDF primitive: it derives the per-token
encryption key and authenticates the assembled token. The server key is the
sole secret; it protects both confidentiality and authenticity, so this module
also carries the helpers for holding and loading it.
"""

import hmac
import os
import re
import stat
import warnings
from pathlib import Path
from typing import Optional, Union

from blake3 import blake3

from .errors import (
    lite_session_error,
    LS_E_SERVER_KEY_LENGTH,
    LS_E_INVALID_HEX,
)

KEY_LENGTH = 32
DIGEST_LENGTH = 32

_HEX_RE = re.compile(r"[0-9a-f]*")


class SecretKey:
    """A 32-byte server key held in a mutable buffer.

    `repr` never shows the key. Call `zeroize()` (or use it as a context
    manager) to overwrite the buffer once the key is no longer needed.

    `expose()` returns an immutable `bytes` copy, and every build or parse
    takes one. `zeroize()` only clears this wrapper's buffer; copies already
    handed out stay in memory until they are garbage collected.
    """

    __slots__ = ("_buf",)

    def __init__(self, key: Union[bytes, bytearray]):
        self._buf = bytearray(key)

    @classmethod
    def from_hex(cls, key_hex: str) -> "SecretKey":
        return cls(hex_decode(key_hex.strip().lower()))

    def expose(self) -> bytes:
        return bytes(self._buf)

    def zeroize(self) -> None:
        for i in range(len(self._buf)):
            self._buf[i] = 0

    def __len__(self) -> int:
        return len(self._buf)

    def __enter__(self) -> "SecretKey":
        return self

    def __exit__(self, *exc) -> None:
        self.zeroize()

    def __repr__(self) -> str:
        return "SecretKey([REDACTED])"


KeyLike = Union[bytes, bytearray, SecretKey]


def server_key_bytes(key: KeyLike) -> bytes:
    """Return raw key bytes, rejecting anything but exactly 32 bytes."""
    raw = key.expose() if isinstance(key, SecretKey) else bytes(key)
    if len(raw) != KEY_LENGTH:
        raise lite_session_error(
            LS_E_SERVER_KEY_LENGTH,
            f"server key must be {KEY_LENGTH} bytes",
            got=len(raw),
        )
    return raw


def keyed_hash(key: bytes, message: bytes) -> bytes:
    """BLAKE3 keyed hash -> 32-byte digest."""
    return blake3(message, key=key).digest()


def tags_equal(a: bytes, b: bytes) -> bool:
    return hmac.compare_digest(a, b)


def hex_encode(data: bytes) -> str:
    return data.hex()


def hex_decode(text: str) -> bytes:
    """Strict lowercase hex decode (no whitespace, no prefix)."""
    if len(text) % 2 or not _HEX_RE.fullmatch(text):
        raise lite_session_error(LS_E_INVALID_HEX, "invalid hex string", length=len(text))
    return bytes.fromhex(text)


# ---------------------------
# Key Management
# ---------------------------

ENV_SERVER_KEY = "LITESESSION_SERVER_KEY"
ENV_SERVER_KEY_FILE = "LITESESSION_SERVER_KEY_FILE"


def _parse_key_hex(key_hex: str) -> SecretKey:
    key_hex = key_hex.strip().lower()
    if len(key_hex) != KEY_LENGTH * 2:
        raise ValueError(f"Key must be {KEY_LENGTH * 2} hex chars ({KEY_LENGTH} bytes), got {len(key_hex)}")
    return SecretKey.from_hex(key_hex)


def load_server_key_from_env(env_var: str = ENV_SERVER_KEY) -> Optional[SecretKey]:
    """Load the server key from a hex env var.

    Returns None if not configured or invalid.
    """
    key_hex = os.environ.get(env_var)
    if not key_hex:
        return None
    try:
        return _parse_key_hex(key_hex)
    except Exception as e:
        warnings.warn(f"Failed to load server key from {env_var}: {e}")
        return None


def load_server_key_from_file(
    path: str,
    require_strict_permissions: bool = True,
) -> Optional[SecretKey]:
    """
    Load the server key from a file holding 64 hex chars.

    Files readable by group/other are rejected (expect 0600) unless
    require_strict_permissions is False.

    Returns None if the file doesn't exist or has invalid permissions/content.
    """
    key_path = Path(path)
    if not key_path.exists():
        return None

    if require_strict_permissions:
        try:
            mode = os.stat(path).st_mode
            if mode & (stat.S_IRWXG | stat.S_IRWXO):
                warnings.warn(
                    f"Key file {path} has insecure permissions. "
                    f"Expected 0600, got {oct(mode & 0o777)}. "
                    f"Run: chmod 600 {path}"
                )
                return None
        except OSError:
            pass  # Skip permission check on platforms without stat

    try:
        return _parse_key_hex(key_path.read_text(encoding="ascii"))
    except Exception as e:
        warnings.warn(f"Failed to load server key from {path}: {e}")
        return None


def generate_server_key() -> SecretKey:
    return SecretKey(os.urandom(KEY_LENGTH))


def generate_key_file(path: str) -> SecretKey:
    """Generate a new server key and write it as hex with 0600 permissions."""
    key = generate_server_key()
    fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    try:
        os.write(fd, hex_encode(key.expose()).encode("ascii"))
    finally:
        os.close(fd)
    return key


def load_server_key(
    env_var: str = ENV_SERVER_KEY,
    file_path: Optional[str] = None,
    generate_if_missing: bool = False,
) -> Optional[SecretKey]:
    """Load the server key.

    Precedence:
      1) hex key in env_var
      2) key file (file_path, else $LITESESSION_SERVER_KEY_FILE)
      3) ephemeral key (only if generate_if_missing=True)
    """
    key = load_server_key_from_env(env_var)
    if key is not None:
        return key

    file_path = file_path or (os.getenv(ENV_SERVER_KEY_FILE, "") or "").strip() or None
    if file_path:
        key = load_server_key_from_file(file_path)
        if key is not None:
            return key

    if generate_if_missing:
        warnings.warn(
            "No server key configured - using an ephemeral key. "
            "Tokens will not verify after a restart."
        )
        return generate_server_key()

    return None
