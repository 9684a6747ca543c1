"""Tests for item count projections."""
import pytest

from capsule_workflow.domain.counts import count_by_stage, pending_count
from capsule_workflow.domain.items import (
    Archived,
    Completed,
    Confirmed,
    PendingDecision,
    Planning,
    Resolving,
)
from capsule_workflow.domain.stages import ItemStage

pytestmark = pytest.mark.unit


def test_empty_collection_has_every_stage_at_zero():
    """Every stage is present even with no items."""
    counts = count_by_stage([])
    assert set(counts) == set(ItemStage)
    assert all(value == 0 for value in counts.values())
    assert pending_count([]) == 0


def test_counts_mixed_stages(build_item):
    """Counts per stage add up to the item total."""
    items = [
        build_item(Planning()),
        build_item(Planning()),
        build_item(Resolving()),
        build_item(PendingDecision()),
        build_item(Confirmed()),
        build_item(Completed()),
        build_item(Archived()),
        build_item(Archived()),
    ]

    counts = count_by_stage(items)

    assert counts[ItemStage.PLANNING] == 2
    assert counts[ItemStage.RESOLVING] == 1
    assert counts[ItemStage.PENDING_DECISION] == 1
    assert counts[ItemStage.CONFIRMED] == 1
    assert counts[ItemStage.COMPLETED] == 1
    assert counts[ItemStage.ARCHIVED] == 2
    assert sum(counts.values()) == len(items)


def test_pending_excludes_decided_and_terminal(build_item):
    """Confirmed items are decided, so they no longer count as pending."""
    items = [
        build_item(Planning()),
        build_item(Resolving()),
        build_item(PendingDecision()),
        build_item(Confirmed()),
        build_item(Completed()),
        build_item(Archived()),
    ]
    assert pending_count(items) == 3


def test_accepts_any_iterable(build_item):
    """Generators are accepted."""
    items = (build_item(Planning()) for _ in range(3))
    assert pending_count(items) == 3
