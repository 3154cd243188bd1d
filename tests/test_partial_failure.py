"""Tests for the fatal / best-effort split of engine operations.

Only the direct edge write is fatal. Reciprocal writes, inference steps and
reciprocal deletes may fail; the call still succeeds and the failure is only
logged, leaving the graph partially consistent.

This module verifies:
- A failed direct write surfaces to the caller and stops all later steps
- A failed reciprocal write is logged and the direct edge is kept
- A failed inference write skips just that edge
- A failed reciprocal delete still reports success
- Concurrent duplicate adds resolve through the store's uniqueness constraint
"""

import asyncio
import logging

import pytest

from kingraph.engine import RelationshipInferenceEngine
from kingraph.errors import DuplicateRelationshipError, StoreUnavailableError
from kingraph.storage.memory import InMemoryRelationshipStore

from tests.conftest import FlakyRelationshipStore, triples


class TestFatalStep:
    """The direct edge write is the one step whose failure reaches the caller."""

    async def test_direct_write_failure_surfaces(self) -> None:
        store = FlakyRelationshipStore(fail_create=lambda t: t == ("A", "B", "father"))
        engine = RelationshipInferenceEngine(store)

        with pytest.raises(StoreUnavailableError):
            await engine.add_relationship("A", "B", "father")

        assert store.create_attempts == [("A", "B", "father")]
        assert await store.count() == 0

    async def test_direct_delete_failure_surfaces(self) -> None:
        store = FlakyRelationshipStore()
        engine = RelationshipInferenceEngine(store)
        edge = await engine.add_relationship("A", "B", "father")
        store.fail_delete_ids.add(edge.id)

        with pytest.raises(StoreUnavailableError):
            await engine.delete_relationship(edge.id)

        assert await store.count() == 2


class TestBestEffortSteps:
    """Failures after the direct write are logged and skipped."""

    async def test_reciprocal_failure_keeps_direct_edge(self, caplog: pytest.LogCaptureFixture) -> None:
        store = FlakyRelationshipStore(fail_create=lambda t: t == ("B", "A", "child"))
        engine = RelationshipInferenceEngine(store)

        with caplog.at_level(logging.WARNING, logger="kingraph"):
            edge = await engine.add_relationship("A", "B", "father")

        assert edge.triple == ("A", "B", "father")
        assert triples(store) == {("A", "B", "father")}
        assert "best-effort step" in caplog.text
        assert "simulated outage" in caplog.text

    async def test_inference_failure_skips_only_that_edge(self) -> None:
        """With the sibling link write failing, the rest of the add still lands."""
        store = FlakyRelationshipStore(fail_create=lambda t: t == ("C2", "C1", "sibling"))
        engine = RelationshipInferenceEngine(store)
        await engine.add_relationship("F", "C1", "father")

        edge = await engine.add_relationship("F", "C2", "father")

        assert edge.triple == ("F", "C2", "father")
        stored = triples(store)
        assert ("C2", "F", "child") in stored
        assert ("C2", "C1", "sibling") not in stored
        assert ("C1", "C2", "sibling") not in stored

    async def test_one_failed_sibling_does_not_block_others(self) -> None:
        store = FlakyRelationshipStore(fail_create=lambda t: t == ("C3", "C1", "sibling"))
        engine = RelationshipInferenceEngine(store)
        await engine.add_relationship("F", "C1", "father")
        await engine.add_relationship("F", "C2", "father")

        await engine.add_relationship("F", "C3", "father")

        stored = triples(store)
        assert ("C3", "C1", "sibling") not in stored
        assert {("C3", "C2", "sibling"), ("C2", "C3", "sibling")} <= stored

    async def test_reciprocal_delete_failure_is_not_fatal(self, caplog: pytest.LogCaptureFixture) -> None:
        store = FlakyRelationshipStore()
        engine = RelationshipInferenceEngine(store)
        edge = await engine.add_relationship("A", "B", "father")
        reciprocal = await store.find_edge("B", "A", "child")
        store.fail_delete_ids.add(reciprocal.id)

        with caplog.at_level(logging.WARNING, logger="kingraph"):
            result = await engine.delete_relationship(edge.id)

        assert result.deleted == edge
        assert result.reciprocal is None
        assert triples(store) == {("B", "A", "child")}
        assert "delete reciprocal" in caplog.text

    async def test_failing_reads_during_inference_are_not_fatal(self) -> None:
        """A store that cannot list edges still lets the direct add succeed."""

        class NoListingStore(InMemoryRelationshipStore):
            async def find_edges_by_source(self, resident_id: str):
                raise StoreUnavailableError("listing unavailable")

        store = NoListingStore()
        engine = RelationshipInferenceEngine(store)

        edge = await engine.add_relationship("F", "C1", "father")

        assert edge.triple == ("F", "C1", "father")
        assert triples(store) == {("F", "C1", "father"), ("C1", "F", "child")}


class SlowCheckStore(InMemoryRelationshipStore):
    """Yields to the event loop after each lookup so two adds can both miss."""

    async def find_edge(self, source_resident_id: str, target_resident_id: str, relationship_type: str):
        found = await super().find_edge(source_resident_id, target_resident_id, relationship_type)
        await asyncio.sleep(0)
        return found


class TestConcurrency:
    """The engine does no locking; the store's uniqueness constraint decides races."""

    async def test_racing_duplicate_adds(self) -> None:
        store = SlowCheckStore()
        engine = RelationshipInferenceEngine(store)

        results = await asyncio.gather(
            engine.add_relationship("A", "B", "father"),
            engine.add_relationship("A", "B", "father"),
            return_exceptions=True,
        )

        edges = [r for r in results if not isinstance(r, Exception)]
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(edges) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], DuplicateRelationshipError)
        assert triples(store) == {("A", "B", "father"), ("B", "A", "child")}
