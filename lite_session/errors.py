"""Stable error taxonomy for LiteSession.

Structural failures (malformed, truncated or hostile input) are raised as a
single exception type carrying a machine-readable `code`. Well-formed tokens
that are merely expired or unauthentic are *not* errors; those come back as
a `TokenOutcome` from `LiteSessionToken.from_string`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


# Keys / nonces
LS_E_SERVER_KEY_LENGTH = "LS_E_SERVER_KEY_LENGTH"
LS_E_NONCE_LENGTH = "LS_E_NONCE_LENGTH"

# Configuration: no usable server key found in env or key file
LS_E_KEY_CONFIG = "LS_E_KEY_CONFIG"

# Token wire format
LS_E_TOKEN_SIZE_TOO_LARGE = "LS_E_TOKEN_SIZE_TOO_LARGE"
LS_E_TOKEN_FIELDS_LENGTH = "LS_E_TOKEN_FIELDS_LENGTH"
LS_E_INVALID_HEX = "LS_E_INVALID_HEX"
LS_E_INVALID_TAI64N = "LS_E_INVALID_TAI64N"
LS_E_INVALID_BLAKE3_BYTES = "LS_E_INVALID_BLAKE3_BYTES"

# Identity record
LS_E_DATA_FIELDS_LENGTH = "LS_E_DATA_FIELDS_LENGTH"
LS_E_FROM_UTF8 = "LS_E_FROM_UTF8"
LS_E_ACL_EMPTY = "LS_E_ACL_EMPTY"


@dataclass
class LiteSessionError(Exception):
    """Base LiteSession exception with stable error code."""

    code: str
    message: str
    retryable: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "retryable": bool(self.retryable),
        }
        if self.details:
            d["details"] = self.details
        return d

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


def lite_session_error(
    code: str,
    message: str,
    *,
    retryable: bool = False,
    **details: Any,
) -> LiteSessionError:
    return LiteSessionError(code=code, message=message, retryable=retryable, details=details)
