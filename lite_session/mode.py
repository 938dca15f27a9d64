"""Roles, modes and verification outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Role(Enum):
    """Well-known roles. Unknown role text decodes to `CustomRole`."""
    SLAVE_NODE = "SlaveNode"
    MASTER_NODE = "MasterNode"
    SUPER_NODE = "SuperNode"
    VERIFIER_NODE = "VerifierNode"
    REGISTRY_NODE = "RegistryNode"
    STORAGE_NODE = "StorageNode"
    FIREWALL_NODE = "FirewallNode"
    ROUTER_NODE = "RouterNode"
    SUPER_USER = "SuperUser"
    ADMIN = "Admin"
    USER = "User"

    @classmethod
    def from_text(cls, text: str) -> "AnyRole":
        """Total decode: never raises."""
        try:
            return cls(text)
        except ValueError:
            return CustomRole(text)

    def to_text(self) -> str:
        return self.value


@dataclass(frozen=True)
class CustomRole:
    """Role outside the well-known set, carried verbatim."""
    text: str

    def to_text(self) -> str:
        return self.text


AnyRole = Union[Role, CustomRole]


class ConfidentialityMode(Enum):
    LOW = "ConfidentialityMode::Low"
    HIGH = "ConfidentialityMode::High"

    @classmethod
    def from_text(cls, text: str) -> "ConfidentialityMode":
        # Anything unrecognised fails safe to HIGH
        if text == cls.LOW.value:
            return cls.LOW
        return cls.HIGH

    def to_text(self) -> str:
        return self.value


@dataclass(frozen=True)
class SessionBindingMode:
    """Passive (unbound) or bound to a transport session identifier."""
    session_id: Optional[str] = None

    @classmethod
    def passive(cls) -> "SessionBindingMode":
        return cls()

    @classmethod
    def bound(cls, session_id: str) -> "SessionBindingMode":
        return cls(session_id=session_id)

    @property
    def is_passive(self) -> bool:
        return self.session_id is None


class TokenOutcome(Enum):
    """Result of verifying a structurally valid token."""
    TOKEN_AUTHENTIC = "TokenAuthentic"
    TOKEN_REJECTED = "TokenRejected"
    SESSION_EXPIRED = "SessionExpired"
    # Reserved for policy layers; never produced by from_string
    BAD_TOKEN = "BadToken"
    TOKEN_REVOKED = "TokenRevoked"
