"""Integration tests for WorkflowService over SqlItemStore.

Runs the same scenarios as the fake-backed tests against in-memory SQLite
through aiosqlite, so the column-level UPDATE path is exercised for real.
"""

import pytest
from sqlalchemy import event

from capsule_workflow.core.exceptions import PreconditionNotMetError
from capsule_workflow.db.models.item_event import ItemEvent as ItemEventRow
from capsule_workflow.domain.items import Completed, Confirmed, PendingDecision
from capsule_workflow.domain.parties import Party, Vote
from capsule_workflow.domain.stages import ItemStage
from capsule_workflow.schemas.items import CommentInput, CreateItemInput, PerspectiveInput
from capsule_workflow.services.workflow_service import WorkflowService

pytestmark = pytest.mark.integration


@pytest.fixture
def sql_service(sql_store):
    """WorkflowService over SqlItemStore."""
    return WorkflowService(sql_store)


@pytest.fixture
async def sql_capsule(sql_service):
    return await sql_service.create_capsule("user-alice", "user-bob", nickname="Us")


async def test_paris_trip_end_to_end(sql_service, sql_capsule):
    """Agreement path through the SQL store, history included."""
    item = await sql_service.create_item(
        sql_capsule.id, Party.A, CreateItemInput(title="Paris trip", category="trip", currency="eur")
    )
    assert item.details.currency == "EUR"

    await sql_service.vote(item.id, Party.A, Vote.APPROVE)
    await sql_service.vote(item.id, Party.B, Vote.APPROVE)
    item = await sql_service.promote(item.id, Party.B)
    assert isinstance(item.state, PendingDecision)

    item = await sql_service.confirm(item.id, Party.A)
    assert item.state.confirmations.a is True
    assert item.state.confirmations.b is False

    item = await sql_service.confirm(item.id, Party.B)
    assert isinstance(item.state, Confirmed)

    item = await sql_service.complete(item.id, Party.B)
    assert isinstance(item.state, Completed)

    history = await sql_service.get_history(item.id)
    assert history[0].action == "created"
    assert history[-1].action == "completed"
    assert history[-1].to_stage == ItemStage.COMPLETED


async def test_disagreement_resolved(sql_service, sql_capsule):
    """Disagreement path with perspectives and resolution notes."""
    item = await sql_service.create_item(sql_capsule.id, Party.B, CreateItemInput(title="New couch"))
    await sql_service.vote(item.id, Party.A, Vote.REJECT)
    await sql_service.vote(item.id, Party.B, Vote.APPROVE)

    await sql_service.request_resolution(item.id, Party.A)
    await sql_service.submit_perspective(
        item.id,
        Party.A,
        PerspectiveInput(feeling="Stretched", need="Savings", willing="Wait", compromise="Second-hand"),
    )

    with pytest.raises(PreconditionNotMetError):
        await sql_service.promote(item.id, Party.B)

    await sql_service.submit_perspective(
        item.id,
        Party.B,
        PerspectiveInput(feeling="Uncomfortable", need="Back support", willing="Shop around", compromise="Used"),
    )
    item = await sql_service.promote(item.id, Party.B, resolution_notes="Buy a used one")

    assert item.state.resolution_notes == "Buy a used one"
    # Votes from planning are still in the row, but the item no longer exposes them
    assert not hasattr(item.state, "votes")


async def test_counts_and_comments(sql_service, sql_capsule):
    """Counts and comments read back from SQLite."""
    first = await sql_service.create_item(sql_capsule.id, Party.A, CreateItemInput(title="Date night"))
    second = await sql_service.create_item(sql_capsule.id, Party.A, CreateItemInput(title="Gift for mum"))
    await sql_service.archive(second.id, Party.B)
    await sql_service.add_comment(first.id, Party.B, CommentInput(content="Friday?"))

    counts = await sql_service.counts(sql_capsule.id)
    assert counts[ItemStage.PLANNING] == 1
    assert counts[ItemStage.ARCHIVED] == 1
    assert await sql_service.pending_count(sql_capsule.id) == 1

    comments = await sql_service.list_comments(first.id)
    assert [c.content for c in comments] == ["Friday?"]


@pytest.fixture
def failing_actions():
    """Actions whose ItemEvent row raises when flushed."""
    actions: set[str] = set()

    def _fail(mapper, connection, target):
        if target.action in actions:
            raise ConnectionError("connection reset")

    event.listen(ItemEventRow, "before_insert", _fail)
    yield actions
    event.remove(ItemEventRow, "before_insert", _fail)


async def test_failed_event_insert_rolls_back_archive(sql_service, sql_capsule, failing_actions):
    """The UPDATE is rolled back with the history insert that failed."""
    item = await sql_service.create_item(sql_capsule.id, Party.A, CreateItemInput(title="Date night"))
    failing_actions.add("archived")

    with pytest.raises(ConnectionError):
        await sql_service.archive(item.id, Party.B)

    reloaded = await sql_service.get_item(item.id)
    assert reloaded.stage == ItemStage.PLANNING
    assert [e.action for e in await sql_service.get_history(item.id)] == ["created"]


async def test_retry_after_failed_advance(sql_service, sql_capsule, failing_actions):
    """A failed advance leaves both flags set; retrying confirm finishes it."""
    item = await sql_service.create_item(sql_capsule.id, Party.A, CreateItemInput(title="Date night"))
    await sql_service.vote(item.id, Party.A, Vote.APPROVE)
    await sql_service.vote(item.id, Party.B, Vote.APPROVE)
    await sql_service.promote(item.id, Party.A)
    await sql_service.confirm(item.id, Party.A)

    failing_actions.add("decision_confirmed")
    with pytest.raises(ConnectionError):
        await sql_service.confirm(item.id, Party.B)

    stuck = await sql_service.get_item(item.id)
    assert isinstance(stuck.state, PendingDecision)
    assert stuck.state.confirmations.b is True

    failing_actions.clear()
    item = await sql_service.confirm(item.id, Party.B)

    assert isinstance(item.state, Confirmed)
    assert [e.action for e in await sql_service.get_history(item.id)][-1] == "decision_confirmed"
