"""Storage interface consumed by the relationship inference engine."""

from abc import ABC, abstractmethod

from kingraph.edge import RelationshipEdge


class RelationshipStore(ABC):
    """Abstract interface for relationship edge persistence.

    The engine issues these calls one at a time and treats each as an
    independent operation; no transaction or batch support is required.
    Implementations are expected to serialize individual calls but need not
    isolate sequences of calls from one another.
    """

    @abstractmethod
    async def find_edge(
        self,
        source_resident_id: str,
        target_resident_id: str,
        relationship_type: str,
    ) -> RelationshipEdge | None:
        """Find the edge matching the exact triple, or None."""

    @abstractmethod
    async def find_edges_by_source(self, resident_id: str) -> list[RelationshipEdge]:
        """Return every edge whose source is the given resident."""

    @abstractmethod
    async def create_edge(
        self,
        source_resident_id: str,
        target_resident_id: str,
        relationship_type: str,
    ) -> RelationshipEdge:
        """Insert a new edge and return it with its assigned id and timestamp.

        Callers check idempotency first, but implementations with a
        uniqueness constraint on `(source, target, type)` raise
        `DuplicateRelationshipError` when it is violated. Transient failures
        raise `StoreUnavailableError`.
        """

    @abstractmethod
    async def delete_edge(self, edge_id: str) -> bool:
        """Delete an edge by id. Returns True if found and deleted."""

    @abstractmethod
    async def get_edge(self, edge_id: str) -> RelationshipEdge | None:
        """Retrieve an edge by id, or None if not found."""

    @abstractmethod
    async def count(self) -> int:
        """Return total number of stored edges."""
