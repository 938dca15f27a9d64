"""
Envelope encryption of the identity record.

ChaCha20 (IETF layout) from `cryptography`: the 16-byte initial block is a
4-byte little-endian block counter followed by the 12-byte nonce. The
counter always starts at zero, so encryption and decryption apply the same
keystream from offset 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from .crypto import KEY_LENGTH, hex_encode
from .data import IdentityRecord
from .errors import (
    lite_session_error,
    LS_E_FROM_UTF8,
    LS_E_NONCE_LENGTH,
    LS_E_SERVER_KEY_LENGTH,
)
from .rng import NONCE_LENGTH, RandomSource, coerce_random_source

_INITIAL_COUNTER = (0).to_bytes(4, "little")


def _apply_keystream(key: bytes, nonce: bytes, data: bytes) -> bytes:
    cipher = Cipher(algorithms.ChaCha20(key, _INITIAL_COUNTER + nonce), mode=None)
    return cipher.encryptor().update(data)


def _check_key(key: bytes) -> None:
    if len(key) != KEY_LENGTH:
        raise lite_session_error(
            LS_E_SERVER_KEY_LENGTH,
            f"encryption key must be {KEY_LENGTH} bytes",
            got=len(key),
        )


@dataclass
class Envelope:
    """Hex ciphertext of a serialized IdentityRecord plus its nonce."""
    cipher: str = ""
    nonce: str = ""

    def encrypt(
        self,
        record: IdentityRecord,
        key: bytes,
        rng: Optional[RandomSource] = None,
    ) -> "Envelope":
        """Encrypt `record` under `key` with a fresh nonce; fills self in place."""
        _check_key(key)
        nonce = coerce_random_source(rng).nonce()
        nonce_bytes = nonce.encode("utf-8")
        if len(nonce_bytes) != NONCE_LENGTH:
            raise lite_session_error(LS_E_NONCE_LENGTH, f"nonce must be {NONCE_LENGTH} bytes", got=len(nonce_bytes))

        plaintext = record.serialize().encode("utf-8")
        self.cipher = hex_encode(_apply_keystream(key, nonce_bytes, plaintext))
        self.nonce = nonce
        return self

    @staticmethod
    def decrypt(key: bytes, ciphertext: bytes, nonce: bytes) -> IdentityRecord:
        _check_key(key)
        if len(nonce) != NONCE_LENGTH:
            raise lite_session_error(LS_E_NONCE_LENGTH, f"nonce must be {NONCE_LENGTH} bytes", got=len(nonce))

        plaintext = _apply_keystream(key, nonce, ciphertext)
        try:
            text = plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise lite_session_error(LS_E_FROM_UTF8, "decrypted record is not valid UTF-8") from e
        return IdentityRecord.parse(text)
