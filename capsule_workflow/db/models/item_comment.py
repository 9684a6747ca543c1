"""ItemComment model: discussion thread on an item."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid

from capsule_workflow.db.base import Base


class ItemComment(Base):
    __tablename__ = "relationship_item_comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    item_id = Column(Uuid, ForeignKey("relationship_items.id", ondelete="CASCADE"), nullable=False, index=True)
    party = Column(String(1), nullable=False)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
