"""
TAI64N timestamps.

A TAI64N value is 12 bytes: an 8-byte big-endian TAI64 label followed by a
4-byte big-endian nanosecond count. Labels are offset by 2**62; the unix
epoch sits 10 seconds after the TAI epoch. No timezones, no leap-second
tables.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Union

from .errors import lite_session_error, LS_E_INVALID_TAI64N

TAI64N_LENGTH = 12
UNIX_EPOCH_LABEL = (1 << 62) + 10
NANOS_PER_SECOND = 1_000_000_000
MAX_LABEL = (1 << 63) - 1


@dataclass(frozen=True, order=True)
class Tai64N:
    seconds: int  # TAI64 label
    nanos: int = 0

    @classmethod
    def now(cls) -> "Tai64N":
        ns = time.time_ns()
        return cls(UNIX_EPOCH_LABEL + ns // NANOS_PER_SECOND, ns % NANOS_PER_SECOND)

    @classmethod
    def from_unix(cls, unix_seconds: int, nanos: int = 0) -> "Tai64N":
        return cls(UNIX_EPOCH_LABEL + int(unix_seconds), int(nanos))

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Tai64N":
        if len(raw) != TAI64N_LENGTH:
            raise lite_session_error(
                LS_E_INVALID_TAI64N,
                f"TAI64N must be {TAI64N_LENGTH} bytes",
                got=len(raw),
            )
        seconds = int.from_bytes(raw[:8], "big")
        nanos = int.from_bytes(raw[8:], "big")
        if seconds > MAX_LABEL or nanos >= NANOS_PER_SECOND:
            raise lite_session_error(LS_E_INVALID_TAI64N, "TAI64N value out of range")
        return cls(seconds, nanos)

    def to_bytes(self) -> bytes:
        return self.seconds.to_bytes(8, "big") + self.nanos.to_bytes(4, "big")

    def to_unix(self) -> float:
        return (self.seconds - UNIX_EPOCH_LABEL) + self.nanos / NANOS_PER_SECOND

    def __add__(self, other: Union[int, timedelta]) -> "Tai64N":
        if isinstance(other, timedelta):
            delta_ns = (other.days * 86400 + other.seconds) * NANOS_PER_SECOND + other.microseconds * 1000
        elif isinstance(other, int):
            delta_ns = other * NANOS_PER_SECOND
        else:
            return NotImplemented
        total = self.seconds * NANOS_PER_SECOND + self.nanos + delta_ns
        seconds = total // NANOS_PER_SECOND
        # Labels with the top bit set cannot be encoded or parsed back
        if seconds < 0 or seconds > MAX_LABEL:
            raise lite_session_error(LS_E_INVALID_TAI64N, "TAI64N value out of range", seconds=seconds)
        return Tai64N(seconds, total % NANOS_PER_SECOND)
