"""Party slots, votes, and the capsule identity-to-slot mapping.

A capsule binds exactly two users. Which user is ``a`` and which is ``b`` is
fixed when the capsule is created; every per-party value on an item is kept
in a ``PartyPair`` keyed by that slot.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Generic, TypeVar

from capsule_workflow.core.exceptions import NotCapsuleMemberError

T = TypeVar("T")


class Party(StrEnum):
    """The two fixed slots in a capsule. Values are the column suffixes."""

    A = "a"
    B = "b"

    @property
    def other(self) -> "Party":
        return Party.B if self is Party.A else Party.A


class Vote(StrEnum):
    """A cast planning vote. An unset vote is represented as None."""

    APPROVE = "approve"
    REJECT = "reject"


def slot_column(prefix: str, party: Party) -> str:
    """Return the persisted column holding *party*'s value, e.g. ``vote_a``."""
    return f"{prefix}_{party.value}"


@dataclass(frozen=True)
class PartyPair(Generic[T]):
    """Immutable two-slot mapping from party to value."""

    a: T
    b: T

    def get(self, party: Party) -> T:
        return self.a if party is Party.A else self.b

    def mine(self, party: Party) -> T:
        return self.get(party)

    def theirs(self, party: Party) -> T:
        return self.get(party.other)

    def both(self, predicate) -> bool:
        return bool(predicate(self.a)) and bool(predicate(self.b))


@dataclass(frozen=True)
class Capsule:
    """Two-party shared space. ``user_b_id`` is None until an invite is accepted."""

    id: uuid.UUID
    user_a_id: str
    user_b_id: str | None = None
    nickname: str | None = None
    relationship_type: str | None = None
    created_at: datetime | None = None

    def party_for(self, user_id: str) -> Party:
        """Resolve which slot *user_id* occupies in this capsule.

        Raises:
            NotCapsuleMemberError: user is neither party
        """
        if user_id == self.user_a_id:
            return Party.A
        if self.user_b_id is not None and user_id == self.user_b_id:
            return Party.B
        raise NotCapsuleMemberError(self.id, user_id)
