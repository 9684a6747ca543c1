"""Re-export all models so Base.metadata sees them."""

from capsule_workflow.db.models.capsule import Capsule
from capsule_workflow.db.models.item_comment import ItemComment
from capsule_workflow.db.models.item_event import ItemEvent
from capsule_workflow.db.models.relationship_item import RelationshipItem

__all__ = [
    "Capsule",
    "ItemComment",
    "ItemEvent",
    "RelationshipItem",
]
