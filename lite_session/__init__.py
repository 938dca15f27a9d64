"""LiteSession package.

Stateless session tokens that need no server-side session store:

- Identity record (username, role, tag, ACL) encrypted with ChaCha20
- Per-token encryption key derived with keyed BLAKE3
- Token authenticated with keyed BLAKE3 under the server key
- TAI64N issue/expiry times

Convenience imports
------------------
The package avoids import-time side effects. These are available as
top-level imports and are loaded lazily:

    from lite_session import LiteSessionToken, IdentityRecord, Role
    from lite_session import SessionTokenIssuer, SessionTokenVerifier
"""

from __future__ import annotations

import re
from importlib import import_module
from pathlib import Path
from typing import Any


def _read_version_from_pyproject() -> str | None:
    """Best-effort version discovery for dev/test environments."""

    try:
        pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
        txt = pyproject.read_text(encoding="utf-8")
        m = re.search(r"^version\s*=\s*\"([^\"]+)\"\s*$", txt, flags=re.MULTILINE)
        return m.group(1) if m else None
    except Exception:
        return None


__version__ = (
    _read_version_from_pyproject()
    or "1.0.0"
)

__all__ = [
    "__version__",
    "LiteSessionToken",
    "SessionTokenIssuer",
    "SessionTokenVerifier",
    "IdentityRecord",
    "Envelope",
    "Role",
    "CustomRole",
    "ConfidentialityMode",
    "SessionBindingMode",
    "TokenOutcome",
    "LiteSessionError",
    "SecretKey",
    "TokenConfig",
    "Tai64N",
]

# Lazy export map: name -> (module, attribute)
_LAZY_EXPORTS: dict[str, tuple[str, str]] = {
    "LiteSessionToken": ("lite_session.tokens", "LiteSessionToken"),
    "SessionTokenIssuer": ("lite_session.tokens", "SessionTokenIssuer"),
    "SessionTokenVerifier": ("lite_session.tokens", "SessionTokenVerifier"),
    "IdentityRecord": ("lite_session.data", "IdentityRecord"),
    "Envelope": ("lite_session.ciphertext", "Envelope"),
    "Role": ("lite_session.mode", "Role"),
    "CustomRole": ("lite_session.mode", "CustomRole"),
    "ConfidentialityMode": ("lite_session.mode", "ConfidentialityMode"),
    "SessionBindingMode": ("lite_session.mode", "SessionBindingMode"),
    "TokenOutcome": ("lite_session.mode", "TokenOutcome"),
    "LiteSessionError": ("lite_session.errors", "LiteSessionError"),
    "SecretKey": ("lite_session.crypto", "SecretKey"),
    "TokenConfig": ("lite_session.config", "TokenConfig"),
    "Tai64N": ("lite_session.tai64n", "Tai64N"),
}


def __getattr__(name: str) -> Any:
    if name in _LAZY_EXPORTS:
        module_name, attr = _LAZY_EXPORTS[name]
        module = import_module(module_name)
        value = getattr(module, attr)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'lite_session' has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(set(list(globals().keys()) + list(_LAZY_EXPORTS.keys())))
