"""Row <-> domain mapping shared by every ItemStore implementation.

Rows are flat column mappings. Only the columns that belong to the row's
current stage are read into its state; stale columns left behind by earlier
stages stay in the row and are ignored here.
"""

from collections.abc import Mapping
from typing import Any

from capsule_workflow.domain.items import (
    PERSPECTIVE_FIELDS,
    Archived,
    Completed,
    Confirmed,
    ItemCategory,
    ItemComment,
    ItemDetails,
    ItemEvent,
    ItemEventDraft,
    ItemPriority,
    PendingDecision,
    Perspective,
    Planning,
    RelationshipItem,
    Resolving,
    StageState,
)
from capsule_workflow.domain.parties import Capsule, Party, PartyPair, Vote, slot_column
from capsule_workflow.domain.stages import ItemStage

DETAIL_COLUMNS = (
    "title",
    "description",
    "category",
    "estimated_cost",
    "currency",
    "scheduled_date",
    "location",
    "priority",
    "deadline",
)

FLAG_COLUMNS = tuple(
    [slot_column("vote", p) for p in Party]
    + [slot_column(name, p) for p in Party for name in PERSPECTIVE_FIELDS]
    + [slot_column("confirmed_by", p) for p in Party]
)

STAGE_COLUMNS = (
    "stage",
    "resolution_notes",
    "moved_to_resolve_at",
    "moved_to_decision_at",
    "confirmed_at",
    "completed_at",
    "archived_at",
)

IMMUTABLE_COLUMNS = frozenset({"id", "capsule_id", "created_by", "created_at", "updated_at"})

UPDATABLE_COLUMNS = frozenset(DETAIL_COLUMNS + FLAG_COLUMNS + STAGE_COLUMNS)

# insert_item only accepts what a new planning item can carry
INSERTABLE_COLUMNS = frozenset(DETAIL_COLUMNS + ("created_by",))


def validate_update_fields(fields: Mapping[str, Any]) -> None:
    """Reject empty, immutable, or unknown column names."""
    if not fields:
        raise ValueError("update_fields requires at least one column")
    immutable = sorted(set(fields) & IMMUTABLE_COLUMNS)
    if immutable:
        raise ValueError(f"Immutable columns cannot be updated: {', '.join(immutable)}")
    unknown = sorted(set(fields) - UPDATABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown columns: {', '.join(unknown)}")


def validate_insert_fields(fields: Mapping[str, Any]) -> None:
    if "title" not in fields or "created_by" not in fields:
        raise ValueError("insert_item requires title and created_by")
    unknown = sorted(set(fields) - INSERTABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Columns not allowed on insert: {', '.join(unknown)}")


def _vote(value: str | None) -> Vote | None:
    return Vote(value) if value else None


def _perspective(row: Mapping[str, Any], party: Party) -> Perspective | None:
    values = {name: row.get(slot_column(name, party)) for name in PERSPECTIVE_FIELDS}
    if not any(values.values()):
        return None
    return Perspective(**{name: value or "" for name, value in values.items()})


def state_from_row(row: Mapping[str, Any]) -> StageState:
    """Build the typed state for the row's current stage."""
    stage = ItemStage(row["stage"])

    if stage == ItemStage.PLANNING:
        return Planning(votes=PartyPair(_vote(row.get("vote_a")), _vote(row.get("vote_b"))))

    if stage == ItemStage.RESOLVING:
        return Resolving(
            perspectives=PartyPair(_perspective(row, Party.A), _perspective(row, Party.B)),
            moved_to_resolve_at=row.get("moved_to_resolve_at"),
        )

    if stage == ItemStage.PENDING_DECISION:
        return PendingDecision(
            confirmations=PartyPair(bool(row.get("confirmed_by_a")), bool(row.get("confirmed_by_b"))),
            resolution_notes=row.get("resolution_notes"),
            moved_to_decision_at=row.get("moved_to_decision_at"),
        )

    if stage == ItemStage.CONFIRMED:
        return Confirmed(
            confirmed_at=row.get("confirmed_at"),
            resolution_notes=row.get("resolution_notes"),
        )

    if stage == ItemStage.COMPLETED:
        return Completed(
            confirmed_at=row.get("confirmed_at"),
            completed_at=row.get("completed_at"),
            resolution_notes=row.get("resolution_notes"),
        )

    return Archived(archived_at=row.get("archived_at"))


def details_from_row(row: Mapping[str, Any]) -> ItemDetails:
    return ItemDetails(
        title=row["title"],
        description=row.get("description"),
        category=ItemCategory(row.get("category") or ItemCategory.GENERAL),
        estimated_cost=row.get("estimated_cost"),
        currency=row.get("currency") or "USD",
        scheduled_date=row.get("scheduled_date"),
        location=row.get("location"),
        priority=ItemPriority(row.get("priority") or ItemPriority.NORMAL),
        deadline=row.get("deadline"),
    )


def item_from_row(row: Mapping[str, Any]) -> RelationshipItem:
    return RelationshipItem(
        id=row["id"],
        capsule_id=row["capsule_id"],
        created_by=Party(row["created_by"]),
        details=details_from_row(row),
        state=state_from_row(row),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def capsule_from_row(row: Mapping[str, Any]) -> Capsule:
    return Capsule(
        id=row["id"],
        user_a_id=row["user_a_id"],
        user_b_id=row.get("user_b_id"),
        nickname=row.get("nickname"),
        relationship_type=row.get("relationship_type"),
        created_at=row.get("created_at"),
    )


def comment_from_row(row: Mapping[str, Any]) -> ItemComment:
    return ItemComment(
        id=row["id"],
        item_id=row["item_id"],
        party=Party(row["party"]),
        content=row["content"],
        created_at=row.get("created_at"),
    )


def event_from_row(row: Mapping[str, Any]) -> ItemEvent:
    from_stage = row.get("from_stage")
    to_stage = row.get("to_stage")
    return ItemEvent(
        id=row["id"],
        item_id=row["item_id"],
        correlation_id=row["correlation_id"],
        party=Party(row["party"]),
        action=row["action"],
        from_stage=ItemStage(from_stage) if from_stage else None,
        to_stage=ItemStage(to_stage) if to_stage else None,
        detail=dict(row.get("detail") or {}),
        created_at=row.get("created_at"),
    )


def event_columns(item_id, draft: ItemEventDraft) -> dict[str, Any]:
    """Column values for a history row; the store adds ``id`` and ``created_at``."""
    return {
        "item_id": item_id,
        "correlation_id": draft.correlation_id,
        "party": Party(draft.party).value,
        "action": draft.action,
        "from_stage": draft.from_stage.value if draft.from_stage else None,
        "to_stage": draft.to_stage.value if draft.to_stage else None,
        "detail": dict(draft.detail),
    }
