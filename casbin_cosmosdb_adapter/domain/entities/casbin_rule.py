"""Casbin rule entity for document policy storage.

This module defines the CasbinRule entity and its mapping to and from the
Cosmos DB document shape.

Policy Types (ptype):
    - 'p', 'p2', ...: Permission rules (sub, obj, act, ...)
    - 'g', 'g2', ...: Role grouping rules (user/role, parent_role, ...)

The first character of ptype is the model section the rule belongs to.

Document shape:
    {"id": "...", "pType": "p", "v0": "alice", "v1": "data1", "v2": "read",
     "v3": "", "v4": "", "v5": ""}
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from uuid_extensions import uuid7str

# Number of value columns (v0..v5)
MAX_FIELDS = 6
FIELD_NAMES = tuple(f"v{i}" for i in range(MAX_FIELDS))
PTYPE_FIELD = "pType"


def _new_id() -> str:
    return uuid7str()


@dataclass(slots=True, kw_only=True)
class CasbinRule:
    """Casbin rule as stored in the policy container.

    Policy Examples:
        Permission rule (ptype='p'):
            ptype='p', v0='admin', v1='users', v2='write'
            Means: admin role can write to users resource

        Role grouping (ptype='g'):
            ptype='g', v0='alice', v1='admin'
            Means: alice inherits from admin

    Invariant:
        Meaningful values form a contiguous prefix starting at v0. Values
        after the first empty one are never read back into the model.

    Attributes:
        id: Document identity (UUIDv7 string, assigned on creation).
        ptype: Policy type tag; also the partition key.
        v0-v5: Policy values (meaning depends on ptype).
    """

    id: str = field(default_factory=_new_id)
    ptype: str
    v0: str = ""
    v1: str = ""
    v2: str = ""
    v3: str = ""
    v4: str = ""
    v5: str = ""

    @classmethod
    def from_policy(cls, ptype: str, rule: Sequence[str]) -> "CasbinRule":
        """Build a rule from a Casbin policy tuple.

        Values beyond the sixth are dropped; missing trailing values are "".

        Args:
            ptype: Policy type tag ('p', 'g', ...).
            rule: Ordered policy values.

        Returns:
            CasbinRule: New rule with a fresh id.
        """
        values = dict(zip(FIELD_NAMES, rule))
        return cls(ptype=ptype, **values)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "CasbinRule":
        """Build a rule from a stored document.

        Missing or null value fields read as "". Server metadata
        (_rid, _etag, _ts, ...) is ignored.
        """
        values = {name: document.get(name) or "" for name in FIELD_NAMES}
        return cls(
            id=document.get("id") or _new_id(),
            ptype=document.get(PTYPE_FIELD) or "",
            **values,
        )

    @property
    def section(self) -> str:
        """Model section ('p' or 'g') derived from the first ptype character."""
        return self.ptype[:1]

    @property
    def values(self) -> tuple[str, ...]:
        """All six value fields in order."""
        return (self.v0, self.v1, self.v2, self.v3, self.v4, self.v5)

    def policy_tokens(self) -> list[str]:
        """Return the contiguous non-empty prefix of v0..v5.

        Collection stops at the first empty field.
        """
        tokens: list[str] = []
        for value in self.values:
            if not value:
                break
            tokens.append(value)
        return tokens

    def to_document(self) -> dict[str, str]:
        """Serialize to the container's document shape."""
        document = {"id": self.id, PTYPE_FIELD: self.ptype}
        document.update(zip(FIELD_NAMES, self.values))
        return document

    def __repr__(self) -> str:
        """String representation for debugging.

        Returns:
            str: Human-readable representation of the rule.
        """
        return (
            f"<CasbinRule(ptype={self.ptype}, "
            f"v0={self.v0}, v1={self.v1}, v2={self.v2}, "
            f"v3={self.v3}, v4={self.v4}, v5={self.v5})>"
        )


def partition_key(rule: CasbinRule) -> str:
    """Partition key of a rule (its ptype)."""
    return rule.ptype
