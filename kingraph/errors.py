"""Exceptions raised by the relationship engine and its stores."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kingraph.edge import RelationshipEdge


class RelationshipError(Exception):
    """Base class for every error the engine surfaces to callers."""


class DuplicateRelationshipError(RelationshipError):
    """The exact `(source, target, type)` relationship already exists.

    Raised by the engine's idempotency check, and by stores that enforce a
    uniqueness constraint when two writers race past that check.
    """

    def __init__(
        self,
        source_resident_id: str,
        target_resident_id: str,
        relationship_type: str,
        existing: RelationshipEdge | None = None,
    ):
        self.source_resident_id = source_resident_id
        self.target_resident_id = target_resident_id
        self.relationship_type = relationship_type
        self.existing = existing
        super().__init__(
            f"Relationship {source_resident_id} -[{relationship_type}]-> {target_resident_id} already exists"
        )


class RelationshipNotFoundError(RelationshipError):
    """No edge with the given id exists."""

    def __init__(self, edge_id: str):
        self.edge_id = edge_id
        super().__init__(f"Relationship {edge_id!r} not found")


class StoreUnavailableError(RelationshipError):
    """The backing store failed to complete a call (I/O, connection, etc.)."""


class RelationshipValidationError(RelationshipError, ValueError):
    """Malformed input: missing resident ids, empty or unknown type, self-edge."""
