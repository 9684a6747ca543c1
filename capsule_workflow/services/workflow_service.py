"""WorkflowService: orchestrates the Plan -> Resolve -> Decide workflow.

This is the integration point where pure domain functions meet the ItemStore.
Every mutating method:
- Generates correlation_id if not provided and binds it to the log context
- Loads the item fresh and checks the edge and its precondition
- Writes only the columns the domain layer produced for the acting party,
  together with the ItemEvent that records the action, in one store call
"""

import uuid
from collections.abc import Callable, Collection, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from capsule_workflow.core.config import get_settings
from capsule_workflow.core.exceptions import InvalidTransitionError, PreconditionNotMetError
from capsule_workflow.domain.confirmation import PartyStatus, my_flag, party_status
from capsule_workflow.domain.counts import count_by_stage, pending_count
from capsule_workflow.domain.items import ItemComment, ItemEvent, ItemEventDraft, RelationshipItem
from capsule_workflow.domain.parties import Capsule, Party, Vote
from capsule_workflow.domain.promotion import (
    archive_updates,
    auto_confirm_updates,
    check_archive,
    check_complete,
    check_confirm,
    check_details_update,
    check_promotion,
    check_request_resolution,
    check_submit_perspective,
    check_vote,
    completion_updates,
    confirmation_updates,
    perspective_updates,
    promotion_updates,
    resolution_request_updates,
    vote_updates,
)
from capsule_workflow.domain.stages import ItemStage, TransitionResult
from capsule_workflow.schemas.items import CommentInput, CreateItemInput, PerspectiveInput, UpdateItemInput
from capsule_workflow.store.protocol import ItemStore

logger = structlog.get_logger(__name__)


class WorkflowService:
    """Service layer for the bilateral confirmation workflow.

    Operations take the acting party explicitly; nothing is read from an
    ambient "current user". Retries are left to the caller: a failed call
    leaves the store as it was, and repeating it is safe.
    """

    def __init__(self, store: ItemStore, clock: Callable[[], datetime] | None = None):
        """Initialize with dependency injection.

        Args:
            store: ItemStore implementation (SqlItemStore or ItemStoreFake)
            clock: Returns the current time (for deterministic testing)
        """
        self.store = store
        self.clock = clock or (lambda: datetime.now(UTC))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _enforce(self, item: RelationshipItem, result: TransitionResult, action: str) -> None:
        """Raise the matching error when a check did not pass."""
        if result.allowed:
            return

        logger.warning(
            "transition_rejected",
            action=action,
            stage=item.stage.value,
            reason=result.reason,
            precondition_failed=result.precondition_failed,
        )
        if result.precondition_failed:
            raise PreconditionNotMetError(item.stage.value, action, result.reason)
        raise InvalidTransitionError(item.stage.value, action, result.reason)

    async def _write(
        self,
        item: RelationshipItem,
        fields: Mapping[str, Any],
        party: Party,
        action: str,
        correlation_id: uuid.UUID,
        detail: dict | None = None,
    ) -> RelationshipItem:
        """Apply column updates and their history event as one store write.

        from_stage/to_stage are only recorded when the write moves the item.
        """
        target = ItemStage(fields["stage"]) if "stage" in fields else None
        event = ItemEventDraft(
            correlation_id=correlation_id,
            party=party,
            action=action,
            from_stage=item.stage if target else None,
            to_stage=target,
            detail=dict(detail or {}),
        )
        return await self.store.update_fields(item.id, fields, event=event)

    # ------------------------------------------------------------------
    # Capsules
    # ------------------------------------------------------------------

    async def create_capsule(
        self,
        user_a_id: str,
        user_b_id: str | None = None,
        nickname: str | None = None,
        relationship_type: str | None = None,
    ) -> Capsule:
        """Create a capsule. The slot assignment made here is permanent."""
        capsule = await self.store.insert_capsule(
            user_a_id=user_a_id,
            user_b_id=user_b_id,
            nickname=nickname,
            relationship_type=relationship_type,
        )
        logger.info("capsule_created", capsule_id=str(capsule.id), has_partner=user_b_id is not None)
        return capsule

    async def party_for_user(self, capsule_id: uuid.UUID, user_id: str) -> Party:
        """Map an authenticated user id to its fixed slot in the capsule.

        Raises:
            CapsuleNotFoundError: capsule does not exist
            NotCapsuleMemberError: user is neither party
        """
        capsule = await self.store.get_capsule(capsule_id)
        return capsule.party_for(user_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_item(self, item_id: uuid.UUID) -> RelationshipItem:
        return await self.store.get_item(item_id)

    async def list_items(
        self, capsule_id: uuid.UUID, stages: Collection[ItemStage] | None = None
    ) -> list[RelationshipItem]:
        return await self.store.list_items(capsule_id, stages)

    async def party_status(self, item_id: uuid.UUID, party: Party) -> PartyStatus:
        item = await self.store.get_item(item_id)
        return party_status(item, Party(party))

    async def counts(self, capsule_id: uuid.UUID) -> dict[ItemStage, int]:
        """Items per stage, derived fresh from the store on every call."""
        return count_by_stage(await self.store.list_items(capsule_id))

    async def pending_count(self, capsule_id: uuid.UUID) -> int:
        return pending_count(await self.store.list_items(capsule_id))

    async def get_history(self, item_id: uuid.UUID) -> list[ItemEvent]:
        await self.store.get_item(item_id)
        return await self.store.list_events(item_id)

    async def list_comments(self, item_id: uuid.UUID) -> list[ItemComment]:
        await self.store.get_item(item_id)
        return await self.store.list_comments(item_id)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    async def create_item(
        self,
        capsule_id: uuid.UUID,
        party: Party,
        data: CreateItemInput,
        correlation_id: uuid.UUID | None = None,
    ) -> RelationshipItem:
        """Create an item in planning with both votes unset.

        Raises:
            CapsuleNotFoundError: capsule does not exist
        """
        correlation_id = correlation_id or uuid.uuid4()
        party = Party(party)
        settings = get_settings()

        with structlog.contextvars.bound_contextvars(
            correlation_id=str(correlation_id), capsule_id=str(capsule_id), party=party.value
        ):
            fields = data.model_dump()
            fields["category"] = data.category.value
            fields["currency"] = data.currency or settings.default_currency
            fields["priority"] = (data.priority.value if data.priority else settings.default_priority)
            fields["created_by"] = party.value

            event = ItemEventDraft(
                correlation_id=correlation_id,
                party=party,
                action="created",
                to_stage=ItemStage.PLANNING,
                detail={"title": data.title, "category": data.category.value},
            )
            item = await self.store.insert_item(capsule_id, fields, event=event)
            logger.info("item_created", item_id=str(item.id), category=item.details.category.value)
            return item

    async def vote(
        self,
        item_id: uuid.UUID,
        party: Party,
        vote: Vote,
        correlation_id: uuid.UUID | None = None,
    ) -> RelationshipItem:
        """Record the acting party's planning vote.

        Repeating the same vote is a no-op. A different vote overwrites only
        the actor's own slot. A reject never moves the item by itself.
        """
        correlation_id = correlation_id or uuid.uuid4()
        party = Party(party)
        vote = Vote(vote)

        with structlog.contextvars.bound_contextvars(
            correlation_id=str(correlation_id), item_id=str(item_id), party=party.value
        ):
            item = await self.store.get_item(item_id)
            self._enforce(item, check_vote(item), "vote")

            if my_flag(item, party) == vote:
                logger.debug("vote_unchanged", vote=vote.value)
                return item

            updated = await self._write(
                item, vote_updates(party, vote), party, "voted", correlation_id, {"vote": vote.value}
            )
            logger.info("item_voted", vote=vote.value)
            return updated

    async def request_resolution(
        self, item_id: uuid.UUID, party: Party, correlation_id: uuid.UUID | None = None
    ) -> RelationshipItem:
        """Move a planning item into resolving at either party's request."""
        correlation_id = correlation_id or uuid.uuid4()
        party = Party(party)

        with structlog.contextvars.bound_contextvars(
            correlation_id=str(correlation_id), item_id=str(item_id), party=party.value
        ):
            item = await self.store.get_item(item_id)
            self._enforce(item, check_request_resolution(item), "request resolution for")

            updated = await self._write(
                item, resolution_request_updates(self.clock()), party, "moved_to_resolve", correlation_id
            )
            logger.info("item_moved_to_resolve")
            return updated

    # ------------------------------------------------------------------
    # Resolving
    # ------------------------------------------------------------------

    async def submit_perspective(
        self,
        item_id: uuid.UUID,
        party: Party,
        perspective: PerspectiveInput,
        correlation_id: uuid.UUID | None = None,
    ) -> RelationshipItem:
        """Write the acting party's feeling/need/willing/compromise group."""
        correlation_id = correlation_id or uuid.uuid4()
        party = Party(party)

        with structlog.contextvars.bound_contextvars(
            correlation_id=str(correlation_id), item_id=str(item_id), party=party.value
        ):
            item = await self.store.get_item(item_id)
            self._enforce(item, check_submit_perspective(item), "submit a perspective for")

            resubmitted = my_flag(item, party) is not None
            updated = await self._write(
                item,
                perspective_updates(party, perspective.to_domain()),
                party,
                "submitted_perspective",
                correlation_id,
                {"resubmitted": resubmitted},
            )
            logger.info("perspective_submitted", resubmitted=resubmitted)
            return updated

    async def promote(
        self,
        item_id: uuid.UUID,
        party: Party,
        resolution_notes: str | None = None,
        correlation_id: uuid.UUID | None = None,
    ) -> RelationshipItem:
        """Promote a planning or resolving item into pending_decision.

        Always an explicit call, even when both votes are already approve.

        Raises:
            InvalidTransitionError: item is not in planning or resolving
            PreconditionNotMetError: votes or perspectives not complete yet
        """
        correlation_id = correlation_id or uuid.uuid4()
        party = Party(party)

        with structlog.contextvars.bound_contextvars(
            correlation_id=str(correlation_id), item_id=str(item_id), party=party.value
        ):
            item = await self.store.get_item(item_id)
            self._enforce(item, check_promotion(item), "promote")

            updates = promotion_updates(item, resolution_notes, self.clock())
            updated = await self._write(
                item,
                updates,
                party,
                "promoted",
                correlation_id,
                {"with_resolution_notes": "resolution_notes" in updates},
            )
            logger.info("item_promoted", from_stage=item.stage.value)
            return updated

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def confirm(
        self, item_id: uuid.UUID, party: Party, correlation_id: uuid.UUID | None = None
    ) -> RelationshipItem:
        """Record the acting party's confirmation; advance once both are in.

        The actor's flag is written first and the store returns the fresh
        row. If that row shows both confirmations, a second write moves the
        item to confirmed, so a concurrent confirm from the other party is
        never lost. When the actor had already confirmed, only the advance
        is re-checked: a retry after a failed advance completes it.
        """
        correlation_id = correlation_id or uuid.uuid4()
        party = Party(party)

        with structlog.contextvars.bound_contextvars(
            correlation_id=str(correlation_id), item_id=str(item_id), party=party.value
        ):
            item = await self.store.get_item(item_id)
            self._enforce(item, check_confirm(item), "confirm")

            if my_flag(item, party) is True:
                updated = item
            else:
                updated = await self._write(
                    item, confirmation_updates(party), party, "confirmed", correlation_id
                )
                logger.info("item_confirmed")

            advance = auto_confirm_updates(updated, self.clock())
            if advance is None:
                if updated is item:
                    logger.debug("confirmation_unchanged")
                return updated

            decided = await self._write(updated, advance, party, "decision_confirmed", correlation_id)
            logger.info("decision_confirmed", resumed=updated is item)
            return decided

    async def complete(
        self, item_id: uuid.UUID, party: Party, correlation_id: uuid.UUID | None = None
    ) -> RelationshipItem:
        """Mark a confirmed item done. Either party may do this alone."""
        correlation_id = correlation_id or uuid.uuid4()
        party = Party(party)

        with structlog.contextvars.bound_contextvars(
            correlation_id=str(correlation_id), item_id=str(item_id), party=party.value
        ):
            item = await self.store.get_item(item_id)
            self._enforce(item, check_complete(item), "complete")

            updated = await self._write(item, completion_updates(self.clock()), party, "completed", correlation_id)
            logger.info("item_completed")
            return updated

    async def archive(
        self, item_id: uuid.UUID, party: Party, correlation_id: uuid.UUID | None = None
    ) -> RelationshipItem:
        """Soft-delete a live item. There is no un-archive."""
        correlation_id = correlation_id or uuid.uuid4()
        party = Party(party)

        with structlog.contextvars.bound_contextvars(
            correlation_id=str(correlation_id), item_id=str(item_id), party=party.value
        ):
            item = await self.store.get_item(item_id)
            self._enforce(item, check_archive(item), "archive")

            updated = await self._write(item, archive_updates(self.clock()), party, "archived", correlation_id)
            logger.info("item_archived", from_stage=item.stage.value)
            return updated

    # ------------------------------------------------------------------
    # Details and discussion
    # ------------------------------------------------------------------

    async def update_details(
        self,
        item_id: uuid.UUID,
        party: Party,
        changes: UpdateItemInput,
        correlation_id: uuid.UUID | None = None,
    ) -> RelationshipItem:
        """Edit title, description and other details of a live item."""
        correlation_id = correlation_id or uuid.uuid4()
        party = Party(party)

        with structlog.contextvars.bound_contextvars(
            correlation_id=str(correlation_id), item_id=str(item_id), party=party.value
        ):
            item = await self.store.get_item(item_id)
            self._enforce(item, check_details_update(item), "update")

            columns = changes.changed_columns()
            if not columns:
                return item

            updated = await self._write(
                item, columns, party, "updated", correlation_id, {"columns": sorted(columns)}
            )
            logger.info("item_updated", columns=sorted(columns))
            return updated

    async def add_comment(
        self,
        item_id: uuid.UUID,
        party: Party,
        comment: CommentInput,
        correlation_id: uuid.UUID | None = None,
    ) -> ItemComment:
        """Add to the item's discussion thread. Allowed in every stage."""
        correlation_id = correlation_id or uuid.uuid4()
        party = Party(party)

        with structlog.contextvars.bound_contextvars(
            correlation_id=str(correlation_id), item_id=str(item_id), party=party.value
        ):
            event = ItemEventDraft(correlation_id=correlation_id, party=party, action="commented")
            created = await self.store.add_comment(item_id, party, comment.content, event=event)
            logger.info("comment_added", comment_id=str(created.id))
            return created
