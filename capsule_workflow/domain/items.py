"""Relationship item model as a tagged union over stages.

Each stage gets its own state class carrying only the fields that mean
something in that stage. Reading a confirmation while the item is still in
planning is therefore impossible: ``Planning`` has no such attribute.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import ClassVar

from capsule_workflow.domain.parties import Party, PartyPair, Vote
from capsule_workflow.domain.stages import ItemStage

PERSPECTIVE_FIELDS = ("feeling", "need", "willing", "compromise")


class ItemCategory(StrEnum):
    """Advisory category. No behavior depends on it."""

    DATE = "date"
    TRIP = "trip"
    TRAVEL = "travel"
    MONEY = "money"
    SHOPPING = "shopping"
    GIFT = "gift"
    ACTIVITY = "activity"
    HOME = "home"
    GENERAL = "general"


class ItemPriority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


@dataclass(frozen=True)
class Perspective:
    """One party's structured statement during resolving."""

    feeling: str
    need: str
    willing: str
    compromise: str

    def is_complete(self) -> bool:
        return all((getattr(self, name) or "").strip() for name in PERSPECTIVE_FIELDS)


@dataclass(frozen=True)
class ItemDetails:
    """Free-form and advisory fields, editable while the item is live."""

    title: str
    description: str | None = None
    category: ItemCategory = ItemCategory.GENERAL
    estimated_cost: Decimal | None = None
    currency: str = "USD"
    scheduled_date: date | None = None
    location: str | None = None
    priority: ItemPriority = ItemPriority.NORMAL
    deadline: datetime | None = None


# ---------------------------------------------------------------------------
# Stage states
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Planning:
    stage: ClassVar[ItemStage] = ItemStage.PLANNING

    votes: PartyPair[Vote | None] = field(default_factory=lambda: PartyPair(None, None))


@dataclass(frozen=True)
class Resolving:
    stage: ClassVar[ItemStage] = ItemStage.RESOLVING

    perspectives: PartyPair[Perspective | None] = field(
        default_factory=lambda: PartyPair(None, None)
    )
    moved_to_resolve_at: datetime | None = None


@dataclass(frozen=True)
class PendingDecision:
    stage: ClassVar[ItemStage] = ItemStage.PENDING_DECISION

    confirmations: PartyPair[bool] = field(default_factory=lambda: PartyPair(False, False))
    resolution_notes: str | None = None
    moved_to_decision_at: datetime | None = None


@dataclass(frozen=True)
class Confirmed:
    stage: ClassVar[ItemStage] = ItemStage.CONFIRMED

    confirmed_at: datetime | None = None
    resolution_notes: str | None = None


@dataclass(frozen=True)
class Completed:
    stage: ClassVar[ItemStage] = ItemStage.COMPLETED

    confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    resolution_notes: str | None = None


@dataclass(frozen=True)
class Archived:
    stage: ClassVar[ItemStage] = ItemStage.ARCHIVED

    archived_at: datetime | None = None


StageState = Planning | Resolving | PendingDecision | Confirmed | Completed | Archived


@dataclass(frozen=True)
class RelationshipItem:
    """A shared item and its current stage state."""

    id: uuid.UUID
    capsule_id: uuid.UUID
    created_by: Party
    details: ItemDetails
    state: StageState
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def stage(self) -> ItemStage:
        return self.state.stage

    @property
    def title(self) -> str:
        return self.details.title


@dataclass(frozen=True)
class ItemComment:
    id: uuid.UUID
    item_id: uuid.UUID
    party: Party
    content: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class ItemEvent:
    """Append-only audit record of one action on an item."""

    id: uuid.UUID
    item_id: uuid.UUID
    correlation_id: uuid.UUID
    party: Party
    action: str  # created, voted, moved_to_resolve, submitted_perspective, promoted, ...
    from_stage: ItemStage | None = None
    to_stage: ItemStage | None = None
    detail: dict = field(default_factory=dict)
    created_at: datetime | None = None


@dataclass(frozen=True)
class ItemEventDraft:
    """History event to be written in the same transaction as an item change.

    The store fills in ``id``, ``item_id`` and ``created_at``.
    """

    correlation_id: uuid.UUID
    party: Party
    action: str
    from_stage: ItemStage | None = None
    to_stage: ItemStage | None = None
    detail: dict = field(default_factory=dict)
