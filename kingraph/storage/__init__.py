"""Storage interface and implementations for relationship edges."""

from kingraph.storage.interfaces import RelationshipStore
from kingraph.storage.memory import InMemoryRelationshipStore

__all__ = [
    "RelationshipStore",
    "InMemoryRelationshipStore",
]
