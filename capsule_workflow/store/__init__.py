"""Item Store package: persistence protocol and its implementations."""

from capsule_workflow.store.fake import ItemStoreFake
from capsule_workflow.store.protocol import ItemStore
from capsule_workflow.store.sql import SqlItemStore

__all__ = [
    "ItemStore",
    "ItemStoreFake",
    "SqlItemStore",
]
