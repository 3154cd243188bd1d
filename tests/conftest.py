"""Test fixtures and store doubles for the relationship engine.

This module provides:
- Fixtures for a fresh in-memory store and an engine wired to it
- `FlakyRelationshipStore`, an in-memory store that fails chosen calls, used
  to exercise the fatal / best-effort asymmetry of engine operations
- Helpers for asserting on the set of stored triples

Resident ids in tests are short names ("ana", "ben", ...) since the engine
treats them as opaque strings.
"""

from typing import Callable

import pytest

from kingraph.config import EngineConfig
from kingraph.engine import RelationshipInferenceEngine
from kingraph.errors import StoreUnavailableError
from kingraph.storage.memory import InMemoryRelationshipStore

Triple = tuple[str, str, str]


class FlakyRelationshipStore(InMemoryRelationshipStore):
    """In-memory store that raises StoreUnavailableError on selected writes.

    `fail_create` is a predicate over the `(source, target, type)` triple;
    when it returns True the create is rejected. `fail_delete_ids` lists edge
    ids whose deletion fails. Every attempted create is logged in
    `create_attempts` whether or not it succeeded.
    """

    def __init__(
        self,
        fail_create: Callable[[Triple], bool] | None = None,
        fail_delete_ids: set[str] | None = None,
    ) -> None:
        super().__init__()
        self.fail_create = fail_create or (lambda triple: False)
        self.fail_delete_ids = fail_delete_ids or set()
        self.create_attempts: list[Triple] = []

    async def create_edge(self, source_resident_id: str, target_resident_id: str, relationship_type: str):
        triple = (source_resident_id, target_resident_id, relationship_type)
        self.create_attempts.append(triple)
        if self.fail_create(triple):
            raise StoreUnavailableError(f"simulated outage writing {triple}")
        return await super().create_edge(*triple)

    async def delete_edge(self, edge_id: str) -> bool:
        if edge_id in self.fail_delete_ids:
            raise StoreUnavailableError(f"simulated outage deleting {edge_id}")
        return await super().delete_edge(edge_id)


def triples(store: InMemoryRelationshipStore) -> set[Triple]:
    """All stored edges as a set of (source, target, type) triples."""
    return {edge.triple for edge in store.all_edges()}


@pytest.fixture
def store() -> InMemoryRelationshipStore:
    """Provide a fresh in-memory relationship store.

    Each test receives an empty store, ensuring test isolation.
    """
    return InMemoryRelationshipStore()


@pytest.fixture
def engine(store: InMemoryRelationshipStore) -> RelationshipInferenceEngine:
    """Provide an engine with default settings writing to the `store` fixture."""
    return RelationshipInferenceEngine(store, EngineConfig())
