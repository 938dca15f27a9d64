"""
LiteSession Tokens

Stateless, encrypted, expiring session tokens. Wire format (7 fields):

    identifier ⊕ issued ⊕ expiry ⊕ ciphertext ⊕ nonce ⊕ confidentiality ⊕ tag

- issued / expiry: hex of 12-byte TAI64N
- ciphertext: hex of the ChaCha20-encrypted IdentityRecord
- tag: hex of a 32-byte BLAKE3 keyed hash under the server key

Keys:
    k   = BLAKE3(sk, identifier | issued | expiry | confidentiality)
    tag = BLAKE3(sk, identifier | issued | expiry | ciphertext | nonce | confidentiality [| session_id])

`k` is never transmitted; both sides recompute it from the visible fields.

Verification order (from_string):
1. size guard, field count, timestamp decoding (errors)
2. expiry check -> SessionExpired, before any key use
3. server key length, carried tag decoding (errors)
4. tag comparison (constant time) -> TokenRejected on mismatch
5. decrypt the payload and commit the parsed fields to the token

Nothing is written to the token unless the tag matches.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from .ciphertext import Envelope
from .config import TokenConfig
from .crypto import (
    DIGEST_LENGTH,
    KeyLike,
    ENV_SERVER_KEY,
    hex_decode,
    hex_encode,
    keyed_hash,
    load_server_key,
    server_key_bytes,
    tags_equal,
)
from .data import IdentityRecord
from .errors import (
    lite_session_error,
    LS_E_INVALID_BLAKE3_BYTES,
    LS_E_KEY_CONFIG,
    LS_E_TOKEN_FIELDS_LENGTH,
    LS_E_TOKEN_SIZE_TOO_LARGE,
)
from .mode import ConfidentialityMode, SessionBindingMode, TokenOutcome
from .rng import RandomSource, coerce_random_source
from .tai64n import Tai64N

logger = logging.getLogger("lite_session")

TOKEN_SEPARATOR = "\u2295"  # ⊕
TOKEN_FIELDS = 7


def _now() -> Tai64N:
    return Tai64N.now()


def _derive_key(
    server_key: bytes,
    identifier: str,
    issued_hex: str,
    expiry_hex: str,
    confidentiality: str,
) -> bytes:
    message = identifier + issued_hex + expiry_hex + confidentiality
    return keyed_hash(server_key, message.encode("utf-8"))


def _compute_tag(
    server_key: bytes,
    identifier: str,
    issued_hex: str,
    expiry_hex: str,
    cipher_hex: str,
    nonce: str,
    confidentiality: str,
    mode: SessionBindingMode,
) -> bytes:
    message = identifier + issued_hex + expiry_hex + cipher_hex + nonce + confidentiality
    if not mode.is_passive:
        message += mode.session_id
    return keyed_hash(server_key, message.encode("utf-8"))


def _decode_timestamp(field_hex: str) -> Tai64N:
    return Tai64N.from_bytes(hex_decode(field_hex))


class LiteSessionToken:
    """
    A session token under construction or being verified.

    A fresh token gets a random 32-char identifier, issued=now,
    expiry=now+TTL (24h by default), an empty payload, HIGH confidentiality
    and passive session binding. Setters return the token for chaining:

        token = LiteSessionToken()
        token.set_expiry(3600).set_hmac_data(record).set_confidential(True)
        wire = token.build_secure(server_key)
    """

    def __init__(
        self,
        config: Optional[TokenConfig] = None,
        rng: Optional[RandomSource] = None,
    ):
        self.config = config or TokenConfig.from_env()
        self._rng = coerce_random_source(rng)

        now = _now()
        self.identifier: str = self._rng.alphanumeric()
        self.issued: Tai64N = now
        self.expiry: Tai64N = now + self.config.default_ttl_seconds
        self.payload: IdentityRecord = IdentityRecord()
        self.confidentiality: ConfidentialityMode = ConfidentialityMode.HIGH
        self.authentication_tag: bytes = bytes(DIGEST_LENGTH)
        self.mode: SessionBindingMode = SessionBindingMode.passive()

    def __repr__(self) -> str:
        return (
            f"LiteSessionToken(identifier={self.identifier!r}, issued={self.issued!r}, "
            f"expiry={self.expiry!r}, confidentiality={self.confidentiality.name}, mode={self.mode!r})"
        )

    # ---------------------------
    # Builder
    # ---------------------------

    def set_identifier(self, identifier: str) -> "LiteSessionToken":
        self.identifier = identifier
        return self

    def set_expiry(self, expiry_in_secs: int) -> "LiteSessionToken":
        """Expire `expiry_in_secs` seconds after the issue time."""
        self.expiry = self.issued + expiry_in_secs
        return self

    def set_hmac_data(self, record: IdentityRecord) -> "LiteSessionToken":
        self.payload = record
        return self

    def set_confidential(self, confidential: bool) -> "LiteSessionToken":
        self.confidentiality = ConfidentialityMode.HIGH if confidential else ConfidentialityMode.LOW
        return self

    def set_mode(self, mode: SessionBindingMode) -> "LiteSessionToken":
        self.mode = mode
        return self

    def is_expired(self, now: Optional[Tai64N] = None) -> bool:
        now = now or _now()
        return self.expiry <= now

    # ---------------------------
    # Wire format
    # ---------------------------

    def build_secure(self, server_key: KeyLike) -> str:
        """Encrypt the payload, authenticate, and return the wire token."""
        key = server_key_bytes(server_key)

        issued_hex = hex_encode(self.issued.to_bytes())
        expiry_hex = hex_encode(self.expiry.to_bytes())
        confidentiality = self.confidentiality.to_text()

        k = _derive_key(key, self.identifier, issued_hex, expiry_hex, confidentiality)
        envelope = Envelope().encrypt(self.payload, k, rng=self._rng)

        self.authentication_tag = _compute_tag(
            key,
            self.identifier,
            issued_hex,
            expiry_hex,
            envelope.cipher,
            envelope.nonce,
            confidentiality,
            self.mode,
        )
        logger.debug("Built session token %s", self.identifier)

        return TOKEN_SEPARATOR.join([
            self.identifier,
            issued_hex,
            expiry_hex,
            envelope.cipher,
            envelope.nonce,
            confidentiality,
            hex_encode(self.authentication_tag),
        ])

    def from_string(
        self,
        server_key: KeyLike,
        token_text: str,
    ) -> Tuple[TokenOutcome, "LiteSessionToken"]:
        """
        Parse and verify a wire token.

        Returns (outcome, self). Malformed input raises LiteSessionError;
        expired or unauthentic tokens are outcomes, not errors. The
        token's fields are only replaced when the outcome is TOKEN_AUTHENTIC.
        The session binding mode must be set beforehand to match the issuer.
        """
        limit = self.config.max_token_bytes
        if len(token_text) > limit or len(token_text.encode("utf-8")) > limit:
            raise lite_session_error(LS_E_TOKEN_SIZE_TOO_LARGE, "token exceeds size limit", limit=limit)

        fields = token_text.split(TOKEN_SEPARATOR)
        if len(fields) != TOKEN_FIELDS:
            raise lite_session_error(
                LS_E_TOKEN_FIELDS_LENGTH,
                f"token must have {TOKEN_FIELDS} fields",
                got=len(fields),
            )
        identifier, issued_hex, expiry_hex, cipher_hex, nonce, confidentiality, tag_hex = fields

        issued = _decode_timestamp(issued_hex)
        expiry = _decode_timestamp(expiry_hex)

        if expiry <= _now():
            logger.info("Session token %s expired", identifier)
            return TokenOutcome.SESSION_EXPIRED, self

        key = server_key_bytes(server_key)

        carried_tag = hex_decode(tag_hex)
        if len(carried_tag) != DIGEST_LENGTH:
            raise lite_session_error(
                LS_E_INVALID_BLAKE3_BYTES,
                f"tag must be {DIGEST_LENGTH} bytes",
                got=len(carried_tag),
            )

        # Raw confidentiality text: from_text is total, so decoding first
        # would hide tampering with this field.
        expected_tag = _compute_tag(
            key, identifier, issued_hex, expiry_hex, cipher_hex, nonce, confidentiality, self.mode
        )
        if not tags_equal(expected_tag, carried_tag):
            logger.warning("Session token %s rejected: tag mismatch", identifier)
            return TokenOutcome.TOKEN_REJECTED, self

        k = _derive_key(key, identifier, issued_hex, expiry_hex, confidentiality)
        payload = Envelope.decrypt(k, hex_decode(cipher_hex), nonce.encode("utf-8"))

        self.identifier = identifier
        self.issued = issued
        self.expiry = expiry
        self.confidentiality = ConfidentialityMode.from_text(confidentiality)
        self.payload = payload
        self.authentication_tag = expected_tag
        logger.debug("Session token %s authentic", identifier)
        return TokenOutcome.TOKEN_AUTHENTIC, self


def _server_key_from_env() -> KeyLike:
    key = load_server_key()
    if key is None:
        raise lite_session_error(LS_E_KEY_CONFIG, "no server key configured", env=ENV_SERVER_KEY)
    return key


class SessionTokenIssuer:
    """
    Issues wire tokens under one server key.

    SECURITY: the server key both encrypts and authenticates every token.
    Keep it out of logs and out of reach of token holders.
    """

    def __init__(
        self,
        server_key: KeyLike,
        config: Optional[TokenConfig] = None,
        rng: Optional[RandomSource] = None,
    ):
        server_key_bytes(server_key)
        self._server_key = server_key
        self.config = config or TokenConfig.from_env()
        self.rng = coerce_random_source(rng)

    @classmethod
    def from_env(cls, config: Optional[TokenConfig] = None) -> "SessionTokenIssuer":
        return cls(_server_key_from_env(), config=config)

    def issue(
        self,
        record: IdentityRecord,
        ttl_seconds: Optional[int] = None,
        confidential: bool = True,
        mode: Optional[SessionBindingMode] = None,
    ) -> str:
        token = LiteSessionToken(config=self.config, rng=self.rng)
        token.set_hmac_data(record).set_confidential(confidential)
        if ttl_seconds is not None:
            token.set_expiry(ttl_seconds)
        if mode is not None:
            token.set_mode(mode)
        return token.build_secure(self._server_key)


class SessionTokenVerifier:
    """Verifies wire tokens issued under the same server key."""

    def __init__(self, server_key: KeyLike, config: Optional[TokenConfig] = None):
        server_key_bytes(server_key)
        self._server_key = server_key
        self.config = config or TokenConfig.from_env()

    @classmethod
    def from_env(cls, config: Optional[TokenConfig] = None) -> "SessionTokenVerifier":
        return cls(_server_key_from_env(), config=config)

    def verify(
        self,
        token_text: str,
        mode: Optional[SessionBindingMode] = None,
    ) -> Tuple[TokenOutcome, LiteSessionToken]:
        token = LiteSessionToken(config=self.config)
        if mode is not None:
            token.set_mode(mode)
        return token.from_string(self._server_key, token_text)
