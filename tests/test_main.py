"""Tests for the engine entry point."""
import pytest

from capsule_workflow.db import get_session_factory
from capsule_workflow.domain.parties import Party, Vote
from capsule_workflow.domain.stages import ItemStage
from capsule_workflow.main import workflow_engine
from capsule_workflow.schemas.items import CreateItemInput

pytestmark = pytest.mark.integration


async def test_engine_round_trip(tmp_path):
    """Data written through one engine is read back by the next."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'capsule.db'}"

    async with workflow_engine(url, configure_logging=False) as service:
        capsule = await service.create_capsule("user-alice", "user-bob")
        item = await service.create_item(capsule.id, Party.A, CreateItemInput(title="Movie night"))
        await service.vote(item.id, Party.B, Vote.APPROVE)

    # Engine is disposed on exit
    with pytest.raises(RuntimeError):
        get_session_factory()

    async with workflow_engine(url, configure_logging=False) as service:
        reloaded = await service.get_item(item.id)
        assert reloaded.stage == ItemStage.PLANNING
        assert reloaded.state.votes.b == Vote.APPROVE
