"""ItemStore Protocol: the persistence boundary of the workflow engine.

The engine never touches a database directly. Everything it reads or writes
goes through these methods:
- get_item / list_items / insert_item / update_fields: relationship items
- get_capsule / insert_capsule: two-party capsules
- list_events: append-only item history
- add_comment / list_comments: discussion thread per item

update_fields applies only the named columns in one statement, so a write
to one party's flag never touches the other party's. Every write that takes
an ``event`` stores the change and its history row in one transaction:
either both are kept or neither is.
"""

import uuid
from collections.abc import Collection, Mapping
from typing import Any, Protocol, runtime_checkable

from capsule_workflow.domain.items import ItemComment, ItemEvent, ItemEventDraft, RelationshipItem
from capsule_workflow.domain.parties import Capsule, Party
from capsule_workflow.domain.stages import ItemStage


@runtime_checkable
class ItemStore(Protocol):
    """Protocol for item persistence.

    Implementations:
    1. SqlItemStore -- SQLAlchemy async sessions (PostgreSQL, SQLite)
    2. ItemStoreFake -- in-memory test double
    """

    async def get_item(self, item_id: uuid.UUID) -> RelationshipItem:
        """Load one item.

        Raises:
            ItemNotFoundError: no row with this id
        """
        ...

    async def list_items(
        self, capsule_id: uuid.UUID, stages: Collection[ItemStage] | None = None
    ) -> list[RelationshipItem]:
        """List a capsule's items, newest first, optionally filtered by stage."""
        ...

    async def update_fields(
        self,
        item_id: uuid.UUID,
        fields: Mapping[str, Any],
        event: ItemEventDraft | None = None,
    ) -> RelationshipItem:
        """Atomically set only the named columns and return the fresh item.

        Raises:
            ItemNotFoundError: row no longer exists
            ValueError: unknown or immutable column name
        """
        ...

    async def insert_item(
        self,
        capsule_id: uuid.UUID,
        fields: Mapping[str, Any],
        event: ItemEventDraft | None = None,
    ) -> RelationshipItem:
        """Insert a new item in planning.

        Raises:
            CapsuleNotFoundError: capsule does not exist
            ValueError: unknown or immutable column name
        """
        ...

    async def get_capsule(self, capsule_id: uuid.UUID) -> Capsule:
        """Raises CapsuleNotFoundError when missing."""
        ...

    async def insert_capsule(
        self,
        user_a_id: str,
        user_b_id: str | None = None,
        nickname: str | None = None,
        relationship_type: str | None = None,
    ) -> Capsule:
        ...

    async def list_events(self, item_id: uuid.UUID) -> list[ItemEvent]:
        """Item history, oldest first."""
        ...

    async def add_comment(
        self,
        item_id: uuid.UUID,
        party: Party,
        content: str,
        event: ItemEventDraft | None = None,
    ) -> ItemComment:
        """Add a comment; the event's detail gains ``comment_id``.

        Raises:
            ItemNotFoundError: item is missing
        """
        ...

    async def list_comments(self, item_id: uuid.UUID) -> list[ItemComment]:
        """Comments, oldest first."""
        ...
