"""
Kinship Graph - Family Relationship Consistency and Inference.

Maintains a directed, typed graph of family relationships between opaque
resident identifiers and derives the relationships that must follow from the
ones a user enters:

    from kingraph import InMemoryRelationshipStore, RelationshipInferenceEngine

    engine = RelationshipInferenceEngine(InMemoryRelationshipStore())
    await engine.add_relationship("ana", "ben", "father")   # also ("ben", "ana", "child")

The SQL-backed store lives in `kingraph.storage.sql` and is imported on
demand so that the in-memory engine does not load SQLAlchemy.
"""

from kingraph.config import EngineConfig, load_engine_config
from kingraph.edge import DeletionResult, RelationshipEdge
from kingraph.engine import RelationshipInferenceEngine
from kingraph.errors import (
    DuplicateRelationshipError,
    RelationshipError,
    RelationshipNotFoundError,
    RelationshipValidationError,
    StoreUnavailableError,
)
from kingraph.reciprocity import (
    RECIPROCITY_TABLE,
    RELATIONSHIP_TYPES,
    RelationshipFamily,
    family_of,
    reciprocal_of,
)
from kingraph.storage import InMemoryRelationshipStore, RelationshipStore

__all__ = [
    "RelationshipInferenceEngine",
    "RelationshipEdge",
    "DeletionResult",
    "RelationshipStore",
    "InMemoryRelationshipStore",
    "EngineConfig",
    "load_engine_config",
    "RelationshipError",
    "DuplicateRelationshipError",
    "RelationshipNotFoundError",
    "StoreUnavailableError",
    "RelationshipValidationError",
    "RECIPROCITY_TABLE",
    "RELATIONSHIP_TYPES",
    "RelationshipFamily",
    "family_of",
    "reciprocal_of",
]

__version__ = "0.1.0"
