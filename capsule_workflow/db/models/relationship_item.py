"""RelationshipItem model: one row per shared item, flat per-party columns."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Numeric, String, Text, Uuid

from capsule_workflow.db.base import Base


class RelationshipItem(Base):
    __tablename__ = "relationship_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    capsule_id = Column(Uuid, ForeignKey("capsules.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(String(1), nullable=False)  # party slot: "a" or "b"

    # Core item data
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, default="general")

    # planning, resolving, pending_decision, confirmed, completed, archived
    stage = Column(String(50), nullable=False, default="planning", index=True)

    # Planning: null = not voted, "approve" / "reject"
    vote_a = Column(String(16), nullable=True)
    vote_b = Column(String(16), nullable=True)

    # Resolving: per-party perspective groups
    feeling_a = Column(Text, nullable=True)
    need_a = Column(Text, nullable=True)
    willing_a = Column(Text, nullable=True)
    compromise_a = Column(Text, nullable=True)
    feeling_b = Column(Text, nullable=True)
    need_b = Column(Text, nullable=True)
    willing_b = Column(Text, nullable=True)
    compromise_b = Column(Text, nullable=True)

    resolution_notes = Column(Text, nullable=True)

    # Pending decision
    confirmed_by_a = Column(Boolean, nullable=False, default=False)
    confirmed_by_b = Column(Boolean, nullable=False, default=False)

    # Optional details
    estimated_cost = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    scheduled_date = Column(Date, nullable=True)
    location = Column(Text, nullable=True)
    priority = Column(String(16), nullable=False, default="normal")
    deadline = Column(DateTime(timezone=True), nullable=True)

    # Transition stamps
    moved_to_resolve_at = Column(DateTime(timezone=True), nullable=True)
    moved_to_decision_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
