"""Deterministic item count projections.

Pure functions with no external dependencies. Always recomputed from the
full item collection; never maintained incrementally.
"""

from collections.abc import Iterable

from capsule_workflow.domain.items import RelationshipItem
from capsule_workflow.domain.stages import PENDING_STAGES, ItemStage


def count_by_stage(items: Iterable[RelationshipItem]) -> dict[ItemStage, int]:
    """Tally items per stage.

    Returns:
        Mapping with every ItemStage as a key (zero when empty)
    """
    counts = {stage: 0 for stage in ItemStage}
    for item in items:
        counts[item.stage] += 1
    return counts


def pending_count(items: Iterable[RelationshipItem]) -> int:
    """Count items still waiting on a party (planning, resolving, pending_decision)."""
    return sum(1 for item in items if item.stage in PENDING_STAGES)
