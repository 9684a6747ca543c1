"""ItemStoreFake: in-memory test double for the ItemStore protocol.

Keeps flat column rows exactly like the SQL tables and maps them through the
same functions as SqlItemStore, so stage projection behaves identically.
All calls return instantly with no I/O.
"""

import json
import uuid
from collections.abc import Collection, Mapping
from datetime import UTC, datetime
from typing import Any

from capsule_workflow.core.exceptions import CapsuleNotFoundError, ItemNotFoundError
from capsule_workflow.domain.items import ItemComment, ItemEvent, ItemEventDraft, RelationshipItem
from capsule_workflow.domain.parties import Capsule, Party
from capsule_workflow.domain.stages import ItemStage
from capsule_workflow.store.mapping import (
    FLAG_COLUMNS,
    STAGE_COLUMNS,
    capsule_from_row,
    comment_from_row,
    event_columns,
    event_from_row,
    item_from_row,
    validate_insert_fields,
    validate_update_fields,
)

_ITEM_DEFAULTS: dict[str, Any] = {
    "description": None,
    "category": "general",
    "estimated_cost": None,
    "currency": "USD",
    "scheduled_date": None,
    "location": None,
    "priority": "normal",
    "deadline": None,
}


class ItemStoreFake:
    """In-memory ItemStore.

    Rows are kept in insertion order; ``update_count`` and ``last_update``
    let tests assert which columns an operation actually wrote. Each write
    builds every row it needs before touching any collection, so a failure
    leaves the fake unchanged, like a rolled-back transaction.
    """

    def __init__(self):
        self.capsules: dict[uuid.UUID, dict[str, Any]] = {}
        self.items: dict[uuid.UUID, dict[str, Any]] = {}
        self.events: list[dict[str, Any]] = []
        self.comments: list[dict[str, Any]] = []
        self.update_count = 0
        self.last_update: dict[str, Any] | None = None

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _event_row(self, item_id: uuid.UUID, event: ItemEventDraft) -> dict[str, Any]:
        row = {"id": uuid.uuid4(), **event_columns(item_id, event), "created_at": self._now()}
        # Same constraint as the JSON column
        row["detail"] = json.loads(json.dumps(row["detail"]))
        return row

    async def get_item(self, item_id: uuid.UUID) -> RelationshipItem:
        row = self.items.get(item_id)
        if row is None:
            raise ItemNotFoundError(item_id)
        return item_from_row(row)

    async def list_items(
        self, capsule_id: uuid.UUID, stages: Collection[ItemStage] | None = None
    ) -> list[RelationshipItem]:
        wanted = {ItemStage(s).value for s in stages} if stages is not None else None
        rows = [
            row
            for row in self.items.values()
            if row["capsule_id"] == capsule_id and (wanted is None or row["stage"] in wanted)
        ]
        # Newest first; dict preserves insertion order
        return [item_from_row(row) for row in reversed(rows)]

    async def update_fields(
        self,
        item_id: uuid.UUID,
        fields: Mapping[str, Any],
        event: ItemEventDraft | None = None,
    ) -> RelationshipItem:
        validate_update_fields(fields)
        row = self.items.get(item_id)
        if row is None:
            raise ItemNotFoundError(item_id)

        event_row = self._event_row(item_id, event) if event is not None else None

        row.update(fields)
        row["updated_at"] = self._now()
        if event_row is not None:
            self.events.append(event_row)
        self.update_count += 1
        self.last_update = dict(fields)
        return item_from_row(row)

    async def insert_item(
        self,
        capsule_id: uuid.UUID,
        fields: Mapping[str, Any],
        event: ItemEventDraft | None = None,
    ) -> RelationshipItem:
        validate_insert_fields(fields)
        if capsule_id not in self.capsules:
            raise CapsuleNotFoundError(capsule_id)

        now = self._now()
        row: dict[str, Any] = {column: None for column in FLAG_COLUMNS + STAGE_COLUMNS}
        row.update(
            {
                "confirmed_by_a": False,
                "confirmed_by_b": False,
                **_ITEM_DEFAULTS,
                **dict(fields),
                "id": uuid.uuid4(),
                "capsule_id": capsule_id,
                "stage": ItemStage.PLANNING.value,
                "created_at": now,
                "updated_at": now,
            }
        )
        event_row = self._event_row(row["id"], event) if event is not None else None

        self.items[row["id"]] = row
        if event_row is not None:
            self.events.append(event_row)
        return item_from_row(row)

    async def get_capsule(self, capsule_id: uuid.UUID) -> Capsule:
        row = self.capsules.get(capsule_id)
        if row is None:
            raise CapsuleNotFoundError(capsule_id)
        return capsule_from_row(row)

    async def insert_capsule(
        self,
        user_a_id: str,
        user_b_id: str | None = None,
        nickname: str | None = None,
        relationship_type: str | None = None,
    ) -> Capsule:
        row = {
            "id": uuid.uuid4(),
            "user_a_id": user_a_id,
            "user_b_id": user_b_id,
            "nickname": nickname,
            "relationship_type": relationship_type,
            "created_at": self._now(),
        }
        self.capsules[row["id"]] = row
        return capsule_from_row(row)

    async def list_events(self, item_id: uuid.UUID) -> list[ItemEvent]:
        return [event_from_row(row) for row in self.events if row["item_id"] == item_id]

    async def add_comment(
        self,
        item_id: uuid.UUID,
        party: Party,
        content: str,
        event: ItemEventDraft | None = None,
    ) -> ItemComment:
        if item_id not in self.items:
            raise ItemNotFoundError(item_id)
        row = {
            "id": uuid.uuid4(),
            "item_id": item_id,
            "party": Party(party).value,
            "content": content,
            "created_at": self._now(),
        }
        event_row = None
        if event is not None:
            event_row = self._event_row(item_id, event)
            event_row["detail"]["comment_id"] = str(row["id"])

        self.comments.append(row)
        if event_row is not None:
            self.events.append(event_row)
        return comment_from_row(row)

    async def list_comments(self, item_id: uuid.UUID) -> list[ItemComment]:
        return [comment_from_row(row) for row in self.comments if row["item_id"] == item_id]
