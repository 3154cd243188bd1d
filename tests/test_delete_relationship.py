"""Tests for RelationshipInferenceEngine.delete_relationship.

This module verifies:
- The named edge and its reciprocal are removed
- Edges inferred when the deleted edge was added are left in place
- Deleting either half of a pair removes the other
- Unknown and empty ids raise the right errors
- Reciprocal-less types delete just the named edge
"""

import pytest

from kingraph.engine import RelationshipInferenceEngine
from kingraph.errors import RelationshipNotFoundError, RelationshipValidationError
from kingraph.storage.memory import InMemoryRelationshipStore

from tests.conftest import triples


class TestDeletionSymmetry:
    """delete_relationship removes exactly the edge and its reciprocal."""

    async def test_removes_edge_and_reciprocal(self, engine: RelationshipInferenceEngine, store: InMemoryRelationshipStore) -> None:
        edge = await engine.add_relationship("A", "B", "father")

        result = await engine.delete_relationship(edge.id)

        assert result.deleted == edge
        assert result.reciprocal is not None
        assert result.reciprocal.triple == ("B", "A", "child")
        assert await store.count() == 0

    async def test_deleting_reciprocal_removes_original(self, engine: RelationshipInferenceEngine, store: InMemoryRelationshipStore) -> None:
        await engine.add_relationship("A", "B", "husband")
        wife_edge = await store.find_edge("B", "A", "wife")

        await engine.delete_relationship(wife_edge.id)

        assert triples(store) == set()

    async def test_inferred_edges_are_not_retracted(self, engine: RelationshipInferenceEngine, store: InMemoryRelationshipStore) -> None:
        """Deleting (A,C,father) keeps the sibling pair that adding it produced."""
        await engine.add_relationship("A", "B", "father")
        second = await engine.add_relationship("A", "C", "father")

        await engine.delete_relationship(second.id)

        assert triples(store) == {
            ("A", "B", "father"),
            ("B", "A", "child"),
            ("B", "C", "sibling"),
            ("C", "B", "sibling"),
        }

    async def test_missing_reciprocal_is_fine(self, engine: RelationshipInferenceEngine, store: InMemoryRelationshipStore) -> None:
        """An edge whose reciprocal was never written still deletes cleanly."""
        edge = await store.create_edge("A", "B", "uncle")

        result = await engine.delete_relationship(edge.id)

        assert result.reciprocal is None
        assert await store.count() == 0

    async def test_other_relationships_untouched(self, engine: RelationshipInferenceEngine, store: InMemoryRelationshipStore) -> None:
        edge = await engine.add_relationship("A", "B", "cousin")
        await engine.add_relationship("A", "C", "cousin")

        await engine.delete_relationship(edge.id)

        assert triples(store) == {("A", "C", "cousin"), ("C", "A", "cousin")}

    async def test_recreate_after_delete(self, engine: RelationshipInferenceEngine, store: InMemoryRelationshipStore) -> None:
        """Changing a relationship means delete-then-recreate."""
        edge = await engine.add_relationship("A", "B", "father")
        await engine.delete_relationship(edge.id)

        recreated = await engine.add_relationship("A", "B", "mother")

        assert recreated.id != edge.id
        assert triples(store) == {("A", "B", "mother"), ("B", "A", "child")}


class TestDeletionErrors:
    """Invalid delete requests."""

    async def test_unknown_id(self, engine: RelationshipInferenceEngine) -> None:
        with pytest.raises(RelationshipNotFoundError) as exc_info:
            await engine.delete_relationship("does-not-exist")
        assert exc_info.value.edge_id == "does-not-exist"

    async def test_deleting_twice(self, engine: RelationshipInferenceEngine) -> None:
        edge = await engine.add_relationship("A", "B", "sibling")
        await engine.delete_relationship(edge.id)

        with pytest.raises(RelationshipNotFoundError):
            await engine.delete_relationship(edge.id)

    @pytest.mark.parametrize("edge_id", ["", "   ", None])
    async def test_empty_id(self, engine: RelationshipInferenceEngine, edge_id) -> None:
        with pytest.raises(RelationshipValidationError):
            await engine.delete_relationship(edge_id)
