"""Tests for item stage enum and transition validation."""
import pytest

from capsule_workflow.domain.stages import (
    PENDING_STAGES,
    TERMINAL_STAGES,
    TRANSITIONS,
    ItemStage,
    TransitionResult,
    is_terminal,
    validate_transition,
)

pytestmark = pytest.mark.unit


class TestItemStageEnum:
    """Test ItemStage enum definitions."""

    def test_stage_values(self):
        """Stage values match the persisted column values."""
        assert ItemStage.PLANNING == "planning"
        assert ItemStage.RESOLVING == "resolving"
        assert ItemStage.PENDING_DECISION == "pending_decision"
        assert ItemStage.CONFIRMED == "confirmed"
        assert ItemStage.COMPLETED == "completed"
        assert ItemStage.ARCHIVED == "archived"

    def test_terminal_stages(self):
        """Completed and archived are terminal."""
        assert TERMINAL_STAGES == {ItemStage.COMPLETED, ItemStage.ARCHIVED}
        assert is_terminal(ItemStage.ARCHIVED)
        assert not is_terminal(ItemStage.CONFIRMED)

    def test_pending_stages(self):
        """Pending covers the three undecided stages."""
        assert PENDING_STAGES == {
            ItemStage.PLANNING,
            ItemStage.RESOLVING,
            ItemStage.PENDING_DECISION,
        }

    def test_every_stage_has_transition_entry(self):
        """TRANSITIONS has a row for every stage."""
        assert set(TRANSITIONS) == set(ItemStage)


class TestTransitionResult:
    def test_defaults(self):
        """A bare result carries no target and no precondition flag."""
        result = TransitionResult(allowed=False, reason="nope")
        assert result.new_stage is None
        assert result.precondition_failed is False


class TestValidateTransition:
    """Structural edge checks -- no gating conditions."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (ItemStage.PLANNING, ItemStage.RESOLVING),
            (ItemStage.PLANNING, ItemStage.PENDING_DECISION),
            (ItemStage.RESOLVING, ItemStage.PENDING_DECISION),
            (ItemStage.PENDING_DECISION, ItemStage.CONFIRMED),
            (ItemStage.CONFIRMED, ItemStage.COMPLETED),
        ],
    )
    def test_forward_edges_allowed(self, current, target):
        """Every forward edge is allowed and reports its target."""
        result = validate_transition(current, target)
        assert result.allowed is True
        assert result.new_stage == target

    @pytest.mark.parametrize(
        "current",
        [ItemStage.PLANNING, ItemStage.RESOLVING, ItemStage.PENDING_DECISION, ItemStage.CONFIRMED],
    )
    def test_archive_reachable_from_every_live_stage(self, current):
        """Archive is an edge from every live stage."""
        result = validate_transition(current, ItemStage.ARCHIVED)
        assert result.allowed is True
        assert result.new_stage == ItemStage.ARCHIVED

    @pytest.mark.parametrize("current", [ItemStage.COMPLETED, ItemStage.ARCHIVED])
    @pytest.mark.parametrize("target", list(ItemStage))
    def test_terminal_stages_have_no_exit(self, current, target):
        """Terminal stages reject every target."""
        result = validate_transition(current, target)
        assert result.allowed is False
        assert "already" in result.reason

    def test_complete_from_planning_rejected(self):
        """Skipping to completed is a structural rejection."""
        result = validate_transition(ItemStage.PLANNING, ItemStage.COMPLETED)
        assert result.allowed is False
        assert result.precondition_failed is False
        assert "planning" in result.reason

    def test_backward_edge_rejected(self):
        """No edge leads back to an earlier stage."""
        result = validate_transition(ItemStage.PENDING_DECISION, ItemStage.PLANNING)
        assert result.allowed is False

    def test_resolving_cannot_skip_to_confirmed(self):
        """Resolving must pass through pending_decision."""
        result = validate_transition(ItemStage.RESOLVING, ItemStage.CONFIRMED)
        assert result.allowed is False

    def test_same_stage_rejected(self):
        """A self edge is rejected."""
        result = validate_transition(ItemStage.RESOLVING, ItemStage.RESOLVING)
        assert result.allowed is False
        assert "already" in result.reason
