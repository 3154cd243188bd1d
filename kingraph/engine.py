"""Relationship inference engine.

This module provides `RelationshipInferenceEngine`, which adds and deletes
family relationships between residents while keeping the graph consistent:

**Reciprocity:**
    Every edge whose type has a reciprocal gets its mirror edge, e.g.
    ("ana", "ben", "father") is paired with ("ben", "ana", "child").

**Sibling closure:**
    When two residents become siblings, each gains the parents the other has
    and it lacks. Parent edges added this way propagate further.

**Parent propagation:**
    When a parent-child edge is added (from either side), the new child
    becomes a sibling of the parent's other children, and the child's
    existing siblings gain the same parent with the same parent type.

Only the direct edge write of `add_relationship` (and the named edge delete
of `delete_relationship`) is fatal. Reciprocity and inference run as
best-effort steps: their failures are logged and skipped, and the call still
succeeds with a partially consistent graph. There is no transaction around
the sequence and no locking; concurrent adds of the same triple rely on the
store's uniqueness constraint, surfacing as `DuplicateRelationshipError`.

Deleting an edge removes its reciprocal but never retracts edges that were
inferred from it.

Example usage:
    ```python
    engine = RelationshipInferenceEngine(InMemoryRelationshipStore())

    await engine.add_relationship("ana", "ben", "father")
    await engine.add_relationship("ana", "cara", "father")
    # ben and cara are now siblings of each other
    ```
"""

from __future__ import annotations

from pathlib import Path

from kingraph.config import EngineConfig, load_engine_config
from kingraph.edge import DeletionResult, RelationshipEdge
from kingraph.errors import (
    DuplicateRelationshipError,
    RelationshipNotFoundError,
    RelationshipValidationError,
)
from kingraph.logging import setup_logging
from kingraph.reciprocity import (
    CHILD_TYPES,
    GENERIC_PARENT_TYPE,
    GENERIC_SIBLING_TYPE,
    PARENT_TYPES,
    SIBLING_TYPES,
    RelationshipFamily,
    family_of,
    is_known_type,
    normalize_relationship_type,
    reciprocal_of,
)
from kingraph.steps import BestEffortSteps, InferenceRun
from kingraph.storage.interfaces import RelationshipStore


class RelationshipInferenceEngine:
    """Adds and deletes relationships, maintaining reciprocals and inferred kin.

    The engine holds no state between calls beyond the store it writes to.
    Each call builds its own `InferenceRun`, which records visited triples and
    caps recursion at `config.max_inference_depth`.
    """

    def __init__(self, store: RelationshipStore, config: EngineConfig | None = None):
        self.store = store
        self.config = config or EngineConfig()
        self.logger = setup_logging(level=self.config.log_level)

    @classmethod
    def from_config(cls, store: RelationshipStore, path: str | Path | None = None) -> "RelationshipInferenceEngine":
        """Build an engine with settings loaded from kingraph.toml."""
        return cls(store, load_engine_config(path))

    # ==================== Public operations ====================

    async def add_relationship(
        self,
        source_resident_id: str,
        target_resident_id: str,
        relationship_type: str,
    ) -> RelationshipEdge:
        """Add "source is the *relationship_type* of target" plus everything it implies.

        Args:
            source_resident_id: Resident the relationship is asserted about.
            target_resident_id: Resident it points to.
            relationship_type: Type from the vocabulary, case-insensitive.

        Returns:
            The directly requested edge, even if some reciprocal or inferred
            edges could not be written.

        Raises:
            RelationshipValidationError: missing ids, unknown type, or a
                self-edge when those are not allowed.
            DuplicateRelationshipError: the exact edge already exists; nothing
                is written.
            StoreUnavailableError: the idempotency check or the direct write
                failed.
        """
        source, target, rel_type = self._validate(source_resident_id, target_resident_id, relationship_type)

        run = InferenceRun(
            operation=f"add {source} -[{rel_type}]-> {target}",
            max_depth=self.config.max_inference_depth,
        )
        steps = BestEffortSteps(run, self.logger)

        existing = await self.store.find_edge(source, target, rel_type)
        if existing is not None:
            raise DuplicateRelationshipError(source, target, rel_type, existing=existing)

        run.mark_visited((source, target, rel_type))
        edge = await self.store.create_edge(source, target, rel_type)
        run.created.append(edge)
        self.logger.debug("%s: created direct edge %s", run.operation, edge.id)

        await self._maintain(run, steps, edge, depth=0, propagate=True)

        self.logger.info(
            "%s: wrote %d edge(s), skipped %d failed step(s)",
            run.operation,
            len(run.created),
            len(run.failures),
        )
        return edge

    async def delete_relationship(self, edge_id: str) -> DeletionResult:
        """Delete an edge and, best-effort, its reciprocal.

        Edges that were inferred when this edge was added are left in place.

        Raises:
            RelationshipValidationError: `edge_id` is empty.
            RelationshipNotFoundError: no edge with that id exists.
            StoreUnavailableError: the lookup or the delete itself failed.
        """
        if not isinstance(edge_id, str) or not edge_id.strip():
            raise RelationshipValidationError("edge_id is required")

        edge = await self.store.get_edge(edge_id)
        if edge is None:
            raise RelationshipNotFoundError(edge_id)
        if not await self.store.delete_edge(edge_id):
            raise RelationshipNotFoundError(edge_id)

        run = InferenceRun(operation=f"delete {edge}", max_depth=1)
        steps = BestEffortSteps(run, self.logger)
        reciprocal = await steps.run_step("delete reciprocal", self._delete_reciprocal, edge)

        self.logger.info(
            "%s: removed edge %s%s",
            run.operation,
            edge.id,
            f" and reciprocal {reciprocal.id}" if reciprocal is not None else "",
        )
        return DeletionResult(deleted=edge, reciprocal=reciprocal)

    # ==================== Validation ====================

    def _validate(
        self,
        source_resident_id: str,
        target_resident_id: str,
        relationship_type: str,
    ) -> tuple[str, str, str]:
        for label, value in (("source_resident_id", source_resident_id), ("target_resident_id", target_resident_id)):
            if not isinstance(value, str) or not value.strip():
                raise RelationshipValidationError(f"{label} is required")
        if not isinstance(relationship_type, str) or not relationship_type.strip():
            raise RelationshipValidationError("relationship_type is required")

        rel_type = normalize_relationship_type(relationship_type)
        if not is_known_type(rel_type):
            raise RelationshipValidationError(f"Unknown relationship type {relationship_type!r}")
        if source_resident_id == target_resident_id and not self.config.allow_self_edges:
            raise RelationshipValidationError(f"Resident {source_resident_id!r} cannot be related to themselves")
        return source_resident_id, target_resident_id, rel_type

    # ==================== Reciprocity ====================

    async def _maintain(
        self,
        run: InferenceRun,
        steps: BestEffortSteps,
        edge: RelationshipEdge,
        depth: int,
        propagate: bool,
    ) -> None:
        """Run the best-effort follow-ups for a freshly written edge."""
        await steps.run_step(f"reciprocal of {edge}", self._ensure_reciprocal, run, edge)
        if not propagate:
            return
        if not run.can_descend(depth):
            self.logger.warning("%s: inference depth limit %d reached at %s", run.operation, run.max_depth, edge)
            return

        source, target = edge.source_resident_id, edge.target_resident_id
        family = family_of(edge.relationship_type)
        if family is RelationshipFamily.SIBLING:
            await steps.run_step(
                f"sibling closure for {edge}",
                self._infer_sibling_closure,
                run,
                steps,
                source,
                target,
                depth,
            )
        elif family is RelationshipFamily.PARENT:
            await steps.run_step(
                f"parent propagation for {edge}",
                self._infer_parent_propagation,
                run,
                steps,
                source,
                target,
                edge.relationship_type,
            )
        elif family is RelationshipFamily.CHILD:
            await steps.run_step(
                f"parent propagation for {edge}",
                self._infer_child_propagation,
                run,
                steps,
                source,
                target,
            )

    async def _ensure_reciprocal(self, run: InferenceRun, edge: RelationshipEdge) -> RelationshipEdge | None:
        rtype = reciprocal_of(edge.relationship_type)
        if rtype is None:
            return None
        triple = (edge.target_resident_id, edge.source_resident_id, rtype)
        run.visited.add(triple)
        if await self.store.find_edge(*triple) is not None:
            return None
        reciprocal = await self.store.create_edge(*triple)
        run.created.append(reciprocal)
        self.logger.debug("%s: created reciprocal %s", run.operation, reciprocal)
        return reciprocal

    async def _delete_reciprocal(self, edge: RelationshipEdge) -> RelationshipEdge | None:
        rtype = reciprocal_of(edge.relationship_type)
        if rtype is None:
            return None
        reciprocal = await self.store.find_edge(edge.target_resident_id, edge.source_resident_id, rtype)
        # a symmetric self-edge is its own reciprocal and is already gone
        if reciprocal is None or reciprocal.id == edge.id:
            return None
        await self.store.delete_edge(reciprocal.id)
        return reciprocal

    async def _add_inferred(
        self,
        run: InferenceRun,
        steps: BestEffortSteps,
        source: str,
        target: str,
        relationship_type: str,
        depth: int,
        propagate: bool,
    ) -> RelationshipEdge | None:
        """Write an inferred edge unless it exists or was already attempted.

        Returns the new edge, or None when nothing was written.
        """
        triple = (source, target, relationship_type)
        if source == target or not run.mark_visited(triple):
            return None
        if await self.store.find_edge(*triple) is not None:
            return None
        edge = await self.store.create_edge(*triple)
        run.created.append(edge)
        self.logger.debug("%s: inferred %s", run.operation, edge)
        await self._maintain(run, steps, edge, depth=depth, propagate=propagate)
        return edge

    # ==================== Graph reads ====================

    async def _outgoing(self, resident_id: str, types: frozenset[str]) -> list[RelationshipEdge]:
        return [e for e in await self.store.find_edges_by_source(resident_id) if e.relationship_type in types]

    async def _parent_type(self, parent_id: str, child_id: str) -> str:
        """The exact type of the parent's edge to the child, else "parent"."""
        for edge in await self._outgoing(parent_id, PARENT_TYPES):
            if edge.target_resident_id == child_id:
                return edge.relationship_type
        return GENERIC_PARENT_TYPE

    async def _parents_of(self, resident_id: str) -> dict[str, str]:
        """Map each parent of a resident to that parent's relationship type.

        Parents are found through the resident's own child-family edges
        ("resident is child of P"); the type comes from P's edge back.
        """
        parents: dict[str, str] = {}
        for edge in await self._outgoing(resident_id, CHILD_TYPES):
            parent_id = edge.target_resident_id
            if parent_id not in parents:
                parents[parent_id] = await self._parent_type(parent_id, resident_id)
        return parents

    async def _children_of(self, parent_id: str) -> list[str]:
        return _unique(e.target_resident_id for e in await self._outgoing(parent_id, PARENT_TYPES))

    async def _siblings_of(self, resident_id: str) -> list[str]:
        return _unique(e.target_resident_id for e in await self._outgoing(resident_id, SIBLING_TYPES))

    # ==================== Inference ====================

    async def _infer_sibling_closure(
        self,
        run: InferenceRun,
        steps: BestEffortSteps,
        first_id: str,
        second_id: str,
        depth: int,
    ) -> None:
        """Give each of two new siblings the parents only the other one has."""
        first_parents = await self._parents_of(first_id)
        second_parents = await self._parents_of(second_id)

        for child_id, missing in (
            (second_id, {p: t for p, t in first_parents.items() if p not in second_parents}),
            (first_id, {p: t for p, t in second_parents.items() if p not in first_parents}),
        ):
            for parent_id, parent_type in missing.items():
                await steps.run_step(
                    f"add parent {parent_id} to sibling {child_id}",
                    self._add_inferred,
                    run,
                    steps,
                    parent_id,
                    child_id,
                    parent_type,
                    depth + 1,
                    True,
                )

    async def _infer_parent_propagation(
        self,
        run: InferenceRun,
        steps: BestEffortSteps,
        parent_id: str,
        child_id: str,
        parent_type: str,
    ) -> None:
        """Link a new child to the parent's other children and share the parent with the child's siblings."""
        for other_child in await self._children_of(parent_id):
            if other_child == child_id:
                continue
            forward = await self._sibling_edge(child_id, other_child)
            backward = await self._sibling_edge(other_child, child_id)
            if forward is not None and backward is not None:
                continue
            if forward is not None or backward is not None:
                # one half of the pair is stored; restore its reciprocal
                half = forward if forward is not None else backward
                await steps.run_step(f"reciprocal of {half}", self._ensure_reciprocal, run, half)
                continue
            await steps.run_step(
                f"link siblings {child_id} and {other_child}",
                self._add_inferred,
                run,
                steps,
                child_id,
                other_child,
                GENERIC_SIBLING_TYPE,
                0,
                False,
            )

        for sibling_id in await self._siblings_of(child_id):
            if sibling_id == parent_id:
                continue
            if await self._has_parent_edge(parent_id, sibling_id):
                continue
            await steps.run_step(
                f"add parent {parent_id} to sibling {sibling_id}",
                self._add_inferred,
                run,
                steps,
                parent_id,
                sibling_id,
                parent_type,
                0,
                False,
            )

    async def _infer_child_propagation(
        self,
        run: InferenceRun,
        steps: BestEffortSteps,
        child_id: str,
        parent_id: str,
    ) -> None:
        parent_type = await self._parent_type(parent_id, child_id)
        await self._infer_parent_propagation(run, steps, parent_id, child_id, parent_type)

    async def _sibling_edge(self, resident_id: str, other_id: str) -> RelationshipEdge | None:
        """Any sibling-family edge from resident to other, or None."""
        for edge in await self._outgoing(resident_id, SIBLING_TYPES):
            if edge.target_resident_id == other_id:
                return edge
        return None

    async def _has_parent_edge(self, parent_id: str, child_id: str) -> bool:
        return child_id in await self._children_of(parent_id)


def _unique(ids) -> list[str]:
    """Deduplicate while keeping first-seen order."""
    return list(dict.fromkeys(ids))
