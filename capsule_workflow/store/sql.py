"""SqlItemStore: ItemStore backed by SQLAlchemy async sessions.

Each method opens its own session and commits once before returning. An
item change and the history row describing it are added to the same
session, so they commit or roll back together.
"""

import uuid
from collections.abc import Collection, Mapping
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from capsule_workflow.core.exceptions import CapsuleNotFoundError, ItemNotFoundError
from capsule_workflow.db.models.capsule import Capsule as CapsuleRow
from capsule_workflow.db.models.item_comment import ItemComment as ItemCommentRow
from capsule_workflow.db.models.item_event import ItemEvent as ItemEventRow
from capsule_workflow.db.models.relationship_item import RelationshipItem as RelationshipItemRow
from capsule_workflow.domain.items import ItemComment, ItemEvent, ItemEventDraft, RelationshipItem
from capsule_workflow.domain.parties import Capsule, Party
from capsule_workflow.domain.stages import ItemStage
from capsule_workflow.store.mapping import (
    capsule_from_row,
    comment_from_row,
    event_columns,
    event_from_row,
    item_from_row,
    validate_insert_fields,
    validate_update_fields,
)

logger = structlog.get_logger(__name__)


def _as_dict(row) -> dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


class SqlItemStore:
    """ItemStore implementation over an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_item(self, item_id: uuid.UUID) -> RelationshipItem:
        async with self.session_factory() as session:
            row = await session.get(RelationshipItemRow, item_id)
            if row is None:
                raise ItemNotFoundError(item_id)
            return item_from_row(_as_dict(row))

    async def list_items(
        self, capsule_id: uuid.UUID, stages: Collection[ItemStage] | None = None
    ) -> list[RelationshipItem]:
        query = select(RelationshipItemRow).where(RelationshipItemRow.capsule_id == capsule_id)
        if stages is not None:
            query = query.where(RelationshipItemRow.stage.in_([ItemStage(s).value for s in stages]))
        query = query.order_by(RelationshipItemRow.created_at.desc())

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [item_from_row(_as_dict(row)) for row in result.scalars().all()]

    async def update_fields(
        self,
        item_id: uuid.UUID,
        fields: Mapping[str, Any],
        event: ItemEventDraft | None = None,
    ) -> RelationshipItem:
        validate_update_fields(fields)

        async with self.session_factory() as session:
            # Column-level UPDATE: only the named columns are written
            result = await session.execute(
                update(RelationshipItemRow)
                .where(RelationshipItemRow.id == item_id)
                .values(**dict(fields))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await session.rollback()
                raise ItemNotFoundError(item_id)

            if event is not None:
                session.add(ItemEventRow(**event_columns(item_id, event)))
            await session.commit()

            row = await session.get(RelationshipItemRow, item_id, populate_existing=True)
            if row is None:
                raise ItemNotFoundError(item_id)
            logger.debug(
                "item_fields_updated",
                item_id=str(item_id),
                columns=sorted(fields),
                action=event.action if event else None,
            )
            return item_from_row(_as_dict(row))

    async def insert_item(
        self,
        capsule_id: uuid.UUID,
        fields: Mapping[str, Any],
        event: ItemEventDraft | None = None,
    ) -> RelationshipItem:
        validate_insert_fields(fields)

        async with self.session_factory() as session:
            capsule = await session.get(CapsuleRow, capsule_id)
            if capsule is None:
                raise CapsuleNotFoundError(capsule_id)

            row = RelationshipItemRow(capsule_id=capsule_id, stage=ItemStage.PLANNING.value, **dict(fields))
            session.add(row)
            if event is not None:
                # Flush first so the generated id is available for the event
                await session.flush()
                session.add(ItemEventRow(**event_columns(row.id, event)))
            await session.commit()
            await session.refresh(row)
            return item_from_row(_as_dict(row))

    async def get_capsule(self, capsule_id: uuid.UUID) -> Capsule:
        async with self.session_factory() as session:
            row = await session.get(CapsuleRow, capsule_id)
            if row is None:
                raise CapsuleNotFoundError(capsule_id)
            return capsule_from_row(_as_dict(row))

    async def insert_capsule(
        self,
        user_a_id: str,
        user_b_id: str | None = None,
        nickname: str | None = None,
        relationship_type: str | None = None,
    ) -> Capsule:
        async with self.session_factory() as session:
            row = CapsuleRow(
                user_a_id=user_a_id,
                user_b_id=user_b_id,
                nickname=nickname,
                relationship_type=relationship_type,
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return capsule_from_row(_as_dict(row))

    async def list_events(self, item_id: uuid.UUID) -> list[ItemEvent]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ItemEventRow)
                .where(ItemEventRow.item_id == item_id)
                .order_by(ItemEventRow.created_at.asc())
            )
            return [event_from_row(_as_dict(row)) for row in result.scalars().all()]

    async def add_comment(
        self,
        item_id: uuid.UUID,
        party: Party,
        content: str,
        event: ItemEventDraft | None = None,
    ) -> ItemComment:
        async with self.session_factory() as session:
            item = await session.get(RelationshipItemRow, item_id)
            if item is None:
                raise ItemNotFoundError(item_id)

            row = ItemCommentRow(id=uuid.uuid4(), item_id=item_id, party=Party(party).value, content=content)
            session.add(row)
            if event is not None:
                columns = event_columns(item_id, event)
                columns["detail"]["comment_id"] = str(row.id)
                session.add(ItemEventRow(**columns))
            await session.commit()
            await session.refresh(row)
            return comment_from_row(_as_dict(row))

    async def list_comments(self, item_id: uuid.UUID) -> list[ItemComment]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ItemCommentRow)
                .where(ItemCommentRow.item_id == item_id)
                .order_by(ItemCommentRow.created_at.asc())
            )
            return [comment_from_row(_as_dict(row)) for row in result.scalars().all()]
