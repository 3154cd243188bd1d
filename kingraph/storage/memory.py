"""In-memory relationship store for testing and development.

Keeps every edge in a dictionary. Suitable for unit tests, demos and
prototyping the engine against a real store contract.

**Not recommended for production** due to:
- No persistence (data is lost when the process exits)
- No concurrency control across processes
- O(n) source scans (no secondary index)

For production use `kingraph.storage.sql.SQLRelationshipStore` or another
implementation of `RelationshipStore` backed by a database.
"""

from kingraph.edge import RelationshipEdge
from kingraph.errors import DuplicateRelationshipError
from kingraph.storage.interfaces import RelationshipStore


class InMemoryRelationshipStore(RelationshipStore):
    """In-memory edge storage with a unique triple index.

    Edges are stored by id, and a second dictionary keyed by
    `(source, target, type)` enforces the same uniqueness constraint a
    database table would, so racing duplicate inserts fail loudly instead of
    producing two identical edges.

    Thread safety: Not thread-safe. Within one event loop every method runs
    to completion without yielding, so individual calls are serialized.

    Example:
        ```python
        store = InMemoryRelationshipStore()
        edge = await store.create_edge("res-ana", "res-ben", "father")
        outgoing = await store.find_edges_by_source("res-ana")
        ```
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._edges: dict[str, RelationshipEdge] = {}
        self._by_triple: dict[tuple[str, str, str], str] = {}

    async def find_edge(
        self,
        source_resident_id: str,
        target_resident_id: str,
        relationship_type: str,
    ) -> RelationshipEdge | None:
        """Finds an edge by its full triple. This is an O(1) lookup."""
        edge_id = self._by_triple.get((source_resident_id, target_resident_id, relationship_type))
        if edge_id is None:
            return None
        return self._edges[edge_id]

    async def find_edges_by_source(self, resident_id: str) -> list[RelationshipEdge]:
        """Returns all edges originating from a resident, oldest first.

        This performs an O(n) scan of all edges.
        """
        return [edge for edge in self._edges.values() if edge.source_resident_id == resident_id]

    async def create_edge(
        self,
        source_resident_id: str,
        target_resident_id: str,
        relationship_type: str,
    ) -> RelationshipEdge:
        """Creates and stores a new edge.

        Raises:
            DuplicateRelationshipError: if the triple is already stored.
        """
        key = (source_resident_id, target_resident_id, relationship_type)
        if key in self._by_triple:
            raise DuplicateRelationshipError(*key, existing=self._edges[self._by_triple[key]])
        edge = RelationshipEdge(
            source_resident_id=source_resident_id,
            target_resident_id=target_resident_id,
            relationship_type=relationship_type,
        )
        self._edges[edge.id] = edge
        self._by_triple[key] = edge.id
        return edge

    async def delete_edge(self, edge_id: str) -> bool:
        edge = self._edges.pop(edge_id, None)
        if edge is None:
            return False
        del self._by_triple[edge.triple]
        return True

    async def get_edge(self, edge_id: str) -> RelationshipEdge | None:
        return self._edges.get(edge_id)

    async def count(self) -> int:
        return len(self._edges)

    def all_edges(self) -> list[RelationshipEdge]:
        """Snapshot of every stored edge, for inspection in tests and demos."""
        return list(self._edges.values())
