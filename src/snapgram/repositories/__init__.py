# src/snapgram/repositories/__init__.py
"""Data access layer for Snapgram."""

from .base import DuplicateRelationError, RelationKind, RelationStore, StoreError
from .memory_store import InMemoryRelationStore
from .sql_store import SqlRelationStore

__all__ = [
    "DuplicateRelationError",
    "InMemoryRelationStore",
    "RelationKind",
    "RelationStore",
    "SqlRelationStore",
    "StoreError",
]
