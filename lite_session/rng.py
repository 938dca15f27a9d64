"""
lite_session.rng: randomness source for identifiers and nonces.

Every draw goes straight to the OS CSPRNG via `secrets`; there is no shared
generator state between calls. Tests inject their own `RandomSource` to get
deterministic identifiers and nonces.
"""

from __future__ import annotations

import secrets
import string
from typing import Any, Protocol, runtime_checkable

ALPHABET = string.ascii_lowercase + string.digits
IDENTIFIER_LENGTH = 32
NONCE_LENGTH = 12


@runtime_checkable
class RandomSource(Protocol):
    """Protocol implemented by randomness backends."""

    def alphanumeric(self) -> str: ...

    def nonce(self) -> str: ...


class SecretsRandomSource:
    """Default source backed by `secrets` (OS entropy)."""

    def _draw(self, length: int) -> str:
        return "".join(secrets.choice(ALPHABET) for _ in range(length))

    def alphanumeric(self) -> str:
        return self._draw(IDENTIFIER_LENGTH)

    def nonce(self) -> str:
        return self._draw(NONCE_LENGTH)


def coerce_random_source(obj: Any = None) -> RandomSource:
    """Coerce None or a duck-typed object into a RandomSource."""
    if obj is None:
        return SecretsRandomSource()
    if isinstance(obj, RandomSource):
        return obj
    raise TypeError(f"Unsupported random source type: {type(obj)}")
