"""Capsule model: the two-party shared space items belong to."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Uuid

from capsule_workflow.db.base import Base


class Capsule(Base):
    __tablename__ = "capsules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Slot assignment is fixed here and never renegotiated
    user_a_id = Column(String(255), nullable=False, index=True)
    user_b_id = Column(String(255), nullable=True, index=True)  # null until invite accepted

    nickname = Column(String(255), nullable=True)
    relationship_type = Column(String(50), nullable=True)  # "spouse", "friend", "colleague"

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
