"""
Identity record carried inside a session token.

Canonical text form:

    username ⥂ role ⥂ (tag | "None") ⥂ acl_0 ⇅ acl_1 ⇅ ...

Field values are not escaped. A username, tag or ACL entry containing one of
the separators produces a record that will not parse back; keeping them out
is the caller's job.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import lite_session_error, LS_E_ACL_EMPTY, LS_E_DATA_FIELDS_LENGTH
from .mode import AnyRole, Role

RECORD_SEPARATOR = "\u2942"  # ⥂
ACL_SEPARATOR = "\u21c5"  # ⇅
NO_TAG = "None"


@dataclass
class IdentityRecord:
    """
    Subject identity plus capability list.

    Setters return the record so calls can be chained:

        IdentityRecord().set_username("foo_user").set_role(Role.SUPER_USER).add_acl("Network-TCP")

    The ACL is kept sorted ascending on insert. Duplicates are allowed.
    """
    username: str = ""
    role: AnyRole = Role.USER
    tag: Optional[str] = None
    acl: List[str] = field(default_factory=list)

    def set_username(self, username: str) -> "IdentityRecord":
        self.username = username
        return self

    def set_role(self, role: AnyRole) -> "IdentityRecord":
        self.role = role
        return self

    def set_tag(self, tag: Optional[str]) -> "IdentityRecord":
        self.tag = tag
        return self

    def add_acl(self, resource: str) -> "IdentityRecord":
        bisect.insort(self.acl, resource)
        return self

    def remove_acl(self, resource: str) -> Optional[str]:
        """Remove one occurrence of `resource`; None if it is not present."""
        i = bisect.bisect_left(self.acl, resource)
        if i < len(self.acl) and self.acl[i] == resource:
            return self.acl.pop(i)
        return None

    def serialize(self) -> str:
        if not self.acl:
            raise lite_session_error(LS_E_ACL_EMPTY, "identity record needs at least one ACL entry")
        return RECORD_SEPARATOR.join([
            self.username,
            self.role.to_text(),
            NO_TAG if self.tag is None else self.tag,
            ACL_SEPARATOR.join(self.acl),
        ])

    @classmethod
    def parse(cls, text: str) -> "IdentityRecord":
        """Rebuild a record from its canonical text.

        ACL order is taken as encoded; it is not re-sorted.
        """
        fields = text.split(RECORD_SEPARATOR)
        if len(fields) != 4:
            raise lite_session_error(
                LS_E_DATA_FIELDS_LENGTH,
                "identity record must have 4 fields",
                got=len(fields),
            )
        username, role_text, tag_text, acl_text = fields
        return cls(
            username=username,
            role=Role.from_text(role_text),
            tag=None if tag_text == NO_TAG else tag_text,
            acl=acl_text.split(ACL_SEPARATOR),
        )
