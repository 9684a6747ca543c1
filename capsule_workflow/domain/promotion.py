"""Promotion policy and per-action column updates.

Pure domain functions: each ``check_*`` returns a TransitionResult, each
``*_updates`` returns the exact columns an action is allowed to write. The
service writes no column that is not produced here.
"""

from datetime import datetime
from typing import Any

from capsule_workflow.domain.confirmation import both_approved, perspectives_complete
from capsule_workflow.domain.items import (
    PERSPECTIVE_FIELDS,
    Perspective,
    RelationshipItem,
    Resolving,
)
from capsule_workflow.domain.parties import Party, Vote, slot_column
from capsule_workflow.domain.stages import (
    PROMOTABLE_STAGES,
    ItemStage,
    TransitionResult,
    is_terminal,
    validate_transition,
)


def _require_stage(item: RelationshipItem, stage: ItemStage, action: str) -> TransitionResult:
    """In-stage actions (vote, perspective, confirm) only exist in one stage."""
    if item.stage != stage:
        return TransitionResult(False, f"{action} is only possible while {stage.value}")
    return TransitionResult(True, new_stage=stage)


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def check_vote(item: RelationshipItem) -> TransitionResult:
    return _require_stage(item, ItemStage.PLANNING, "Voting")


def check_request_resolution(item: RelationshipItem) -> TransitionResult:
    """planning -> resolving. Always an explicit request, never gated on votes."""
    return validate_transition(item.stage, ItemStage.RESOLVING)


def check_submit_perspective(item: RelationshipItem) -> TransitionResult:
    return _require_stage(item, ItemStage.RESOLVING, "Submitting a perspective")


def check_promotion(item: RelationshipItem) -> TransitionResult:
    """Validate promotion into pending_decision.

    Rules:
        - Only planning and resolving items can be promoted (edge check)
        - planning: both votes must be APPROVE
        - resolving: both perspectives must have all four fields filled
        - Source stage is otherwise irrelevant; both edges share this check
    """
    if item.stage not in PROMOTABLE_STAGES:
        return TransitionResult(False, f"Cannot promote from {item.stage.value}")

    if item.stage == ItemStage.PLANNING and not both_approved(item):
        return TransitionResult(
            False, "Both parties must approve before promotion", precondition_failed=True
        )

    if item.stage == ItemStage.RESOLVING and not perspectives_complete(item):
        return TransitionResult(
            False,
            "Both parties must submit a complete perspective before promotion",
            precondition_failed=True,
        )

    return TransitionResult(True, new_stage=ItemStage.PENDING_DECISION)


def check_confirm(item: RelationshipItem) -> TransitionResult:
    return _require_stage(item, ItemStage.PENDING_DECISION, "Confirming")


def check_complete(item: RelationshipItem) -> TransitionResult:
    return validate_transition(item.stage, ItemStage.COMPLETED)


def check_archive(item: RelationshipItem) -> TransitionResult:
    return validate_transition(item.stage, ItemStage.ARCHIVED)


def check_details_update(item: RelationshipItem) -> TransitionResult:
    if is_terminal(item.stage):
        return TransitionResult(False, f"Item is already {item.stage.value}")
    return TransitionResult(True, new_stage=item.stage)


# ---------------------------------------------------------------------------
# Column updates
# ---------------------------------------------------------------------------


def vote_updates(party: Party, vote: Vote) -> dict[str, Any]:
    return {slot_column("vote", party): vote.value}


def resolution_request_updates(now: datetime) -> dict[str, Any]:
    return {"stage": ItemStage.RESOLVING.value, "moved_to_resolve_at": now}


def perspective_updates(party: Party, perspective: Perspective) -> dict[str, Any]:
    """Write the acting party's whole perspective group, never the other one."""
    return {slot_column(name, party): getattr(perspective, name) for name in PERSPECTIVE_FIELDS}


def promotion_updates(
    item: RelationshipItem, resolution_notes: str | None, now: datetime
) -> dict[str, Any]:
    """Move into pending_decision.

    Resolution notes are only carried over from resolving, and only when
    supplied; existing notes are kept otherwise. Confirmations are left at
    their default -- promotion does not imply confirmation.
    """
    updates: dict[str, Any] = {
        "stage": ItemStage.PENDING_DECISION.value,
        "moved_to_decision_at": now,
    }
    if isinstance(item.state, Resolving) and resolution_notes:
        updates["resolution_notes"] = resolution_notes
    return updates


def confirmation_updates(party: Party) -> dict[str, Any]:
    return {slot_column("confirmed_by", party): True}


def auto_confirm_updates(item: RelationshipItem, now: datetime) -> dict[str, Any] | None:
    """Return the confirmed-stage updates once both confirmations are in, else None.

    The one automatic transition: the second confirmation is both the
    precondition and the action.
    """
    if item.stage != ItemStage.PENDING_DECISION or not both_approved(item):
        return None
    return {"stage": ItemStage.CONFIRMED.value, "confirmed_at": now}


def completion_updates(now: datetime) -> dict[str, Any]:
    return {"stage": ItemStage.COMPLETED.value, "completed_at": now}


def archive_updates(now: datetime) -> dict[str, Any]:
    return {"stage": ItemStage.ARCHIVED.value, "archived_at": now}
