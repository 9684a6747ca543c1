"""Shared test fixtures for all test groups."""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from capsule_workflow.db.base import Base
from capsule_workflow.domain.items import ItemCategory, ItemDetails, RelationshipItem
from capsule_workflow.domain.parties import Party
from capsule_workflow.schemas.items import CreateItemInput
from capsule_workflow.services.workflow_service import WorkflowService
from capsule_workflow.store.fake import ItemStoreFake
from capsule_workflow.store.sql import SqlItemStore


@pytest.fixture
def build_item():
    """Build a detached RelationshipItem around a given stage state."""

    def _build(state, created_by: Party = Party.A, title: str = "Paris trip") -> RelationshipItem:
        return RelationshipItem(
            id=uuid.uuid4(),
            capsule_id=uuid.uuid4(),
            created_by=created_by,
            details=ItemDetails(title=title, category=ItemCategory.TRIP),
            state=state,
        )

    return _build


@pytest.fixture
async def session_factory():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    import capsule_workflow.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def fake_store():
    """Fresh in-memory ItemStoreFake."""
    return ItemStoreFake()


@pytest.fixture
def sql_store(session_factory):
    """SqlItemStore over in-memory SQLite."""
    return SqlItemStore(session_factory)


@pytest.fixture(params=["fake", "sql"])
def store(request, fake_store, sql_store):
    """Every ItemStore implementation, for contract tests."""
    return fake_store if request.param == "fake" else sql_store


@pytest.fixture
def service(fake_store):
    """WorkflowService backed by the fake store."""
    return WorkflowService(fake_store)


@pytest.fixture
async def capsule(service):
    """Capsule with alice in slot A and bob in slot B."""
    return await service.create_capsule("user-alice", "user-bob", nickname="Us", relationship_type="spouse")


@pytest.fixture
def make_item(service, capsule):
    """Create a planning item in the shared capsule."""

    async def _make(title: str = "Paris trip", category: ItemCategory = ItemCategory.TRIP, party: Party = Party.A):
        return await service.create_item(capsule.id, party, CreateItemInput(title=title, category=category))

    return _make
