"""Token configuration.

Env:
- LITESESSION_TOKEN_TTL_SECONDS (default: 86400)
- LITESESSION_MAX_TOKEN_BYTES (default: 1048576; may only be lowered)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

ENV_TOKEN_TTL_SECONDS = "LITESESSION_TOKEN_TTL_SECONDS"
ENV_MAX_TOKEN_BYTES = "LITESESSION_MAX_TOKEN_BYTES"

DEFAULT_TTL_SECONDS = 24 * 60 * 60
MAX_TOKEN_BYTES = 1024 * 1024


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class TokenConfig:
    default_ttl_seconds: int = DEFAULT_TTL_SECONDS
    max_token_bytes: int = MAX_TOKEN_BYTES

    @classmethod
    def from_env(cls) -> "TokenConfig":
        ttl = _env_int(ENV_TOKEN_TTL_SECONDS, cls.default_ttl_seconds)
        max_bytes = _env_int(ENV_MAX_TOKEN_BYTES, cls.max_token_bytes)
        # Clamp to sensible bounds; the size guard can be tightened, never relaxed
        ttl = max(1, min(ttl, 365 * 24 * 3600))
        max_bytes = max(1024, min(max_bytes, MAX_TOKEN_BYTES))
        return cls(default_ttl_seconds=ttl, max_token_bytes=max_bytes)
