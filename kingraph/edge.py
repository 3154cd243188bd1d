"""Relationship edges between residents.

A `RelationshipEdge` is a directed, typed link between two opaque resident
identifiers:

    (source_resident_id, relationship_type, target_resident_id)

and reads "source is the *relationship_type* of target". For example:
    - ("res-ana", "father", "res-ben"): Ana is Ben's father
    - ("res-ben", "child", "res-ana"): Ben is Ana's child

Edges are immutable (frozen Pydantic models). They are never updated in
place; changing a relationship means deleting the edge and creating a new
one. The `id` and `created_at` fields are assigned by the store that creates
the edge.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field


def new_edge_id() -> str:
    """Return a fresh, unique edge identifier."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RelationshipEdge(BaseModel):
    """A stored family relationship between two residents.

    Key fields:
        - `id`: Store-assigned unique identifier, immutable
        - `source_resident_id`: Resident the relationship is asserted about
        - `target_resident_id`: Resident the relationship points to
        - `relationship_type`: Lower-case type from the relationship vocabulary
        - `created_at`: Timezone-aware creation timestamp

    Edges created by reciprocity maintenance or inference are ordinary edges;
    nothing on the model records why an edge exists.
    """

    model_config = {"frozen": True}

    id: str = Field(default_factory=new_edge_id, description="Unique edge identifier.")
    source_resident_id: str = Field(min_length=1, description="Resident the relationship starts from.")
    target_resident_id: str = Field(min_length=1, description="Resident the relationship points to.")
    relationship_type: str = Field(min_length=1, description="Relationship type, e.g. 'father'.")
    created_at: datetime = Field(default_factory=utc_now, description="Timestamp when the edge was created.")

    @property
    def triple(self) -> tuple[str, str, str]:
        """The `(source, target, type)` key that identifies this relationship."""
        return (self.source_resident_id, self.target_resident_id, self.relationship_type)

    def __str__(self) -> str:
        return f"{self.source_resident_id} -[{self.relationship_type}]-> {self.target_resident_id}"


class DeletionResult(BaseModel):
    """Result of deleting a relationship.

    Attributes:
        deleted: The edge that was explicitly deleted.
        reciprocal: The reciprocal edge removed alongside it, or None when the
            type has no reciprocal, none was stored, or removing it failed.
    """

    model_config = {"frozen": True}

    deleted: RelationshipEdge
    reciprocal: RelationshipEdge | None = None
