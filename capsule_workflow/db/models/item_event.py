"""ItemEvent model: append-only item history."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Uuid

from capsule_workflow.db.base import Base


class ItemEvent(Base):
    __tablename__ = "relationship_item_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    item_id = Column(Uuid, ForeignKey("relationship_items.id", ondelete="CASCADE"), nullable=False, index=True)
    correlation_id = Column(Uuid, nullable=False, default=uuid.uuid4, index=True)

    party = Column(String(1), nullable=False)
    action = Column(String(50), nullable=False)  # created, voted, moved_to_resolve, promoted, confirmed, ...
    from_stage = Column(String(50), nullable=True)
    to_stage = Column(String(50), nullable=True)
    detail = Column(JSON, nullable=False, default=dict)  # action-specific payload

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
    # NO updated_at -- events are immutable (append-only)
