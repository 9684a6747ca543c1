"""Stage enum and transition validation logic.

Pure domain logic with no external dependencies.
"""
from dataclasses import dataclass
from enum import StrEnum


class ItemStage(StrEnum):
    """Lifecycle stage of a relationship item. Values match the persisted column."""

    PLANNING = "planning"
    RESOLVING = "resolving"
    PENDING_DECISION = "pending_decision"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    ARCHIVED = "archived"


TERMINAL_STAGES = frozenset({ItemStage.COMPLETED, ItemStage.ARCHIVED})

# Stages still waiting on one or both parties (the "pending" badge)
PENDING_STAGES = frozenset({ItemStage.PLANNING, ItemStage.RESOLVING, ItemStage.PENDING_DECISION})

# Only stages a promotion may start from
PROMOTABLE_STAGES = frozenset({ItemStage.PLANNING, ItemStage.RESOLVING})

TRANSITIONS: dict[ItemStage, frozenset[ItemStage]] = {
    ItemStage.PLANNING: frozenset(
        {ItemStage.RESOLVING, ItemStage.PENDING_DECISION, ItemStage.ARCHIVED}
    ),
    ItemStage.RESOLVING: frozenset({ItemStage.PENDING_DECISION, ItemStage.ARCHIVED}),
    ItemStage.PENDING_DECISION: frozenset({ItemStage.CONFIRMED, ItemStage.ARCHIVED}),
    ItemStage.CONFIRMED: frozenset({ItemStage.COMPLETED, ItemStage.ARCHIVED}),
    ItemStage.COMPLETED: frozenset(),  # Terminal
    ItemStage.ARCHIVED: frozenset(),  # Terminal
}


@dataclass
class TransitionResult:
    """Result of a transition check.

    ``precondition_failed`` separates "edge exists, not ready yet" from
    "edge does not exist" when ``allowed`` is False.
    """

    allowed: bool
    reason: str = ""
    new_stage: ItemStage | None = None
    precondition_failed: bool = False


def is_terminal(stage: ItemStage) -> bool:
    """Return True when no transition can leave *stage*."""
    return stage in TERMINAL_STAGES


def validate_transition(current_stage: ItemStage, target_stage: ItemStage) -> TransitionResult:
    """Validate whether the stage graph has an edge from current to target.

    Pure function -- no side effects, no DB access. Only checks structure;
    vote/perspective/confirmation gates live in the promotion policy.

    Rules:
        - Terminal stages (completed, archived) have no outgoing edges
        - Same-stage transitions are rejected
        - Every other pair must appear in TRANSITIONS
    """
    if is_terminal(current_stage):
        return TransitionResult(False, f"Item is already {current_stage.value}")

    if target_stage == current_stage:
        return TransitionResult(False, f"Item is already in {current_stage.value}")

    if target_stage not in TRANSITIONS[current_stage]:
        return TransitionResult(
            False, f"No transition from {current_stage.value} to {target_stage.value}"
        )

    return TransitionResult(True, new_stage=target_stage)
