"""Step execution for multi-step graph mutations.

Adding or deleting a relationship is a sequence of independent store calls
with no transaction around them. Exactly one step per operation is fatal (the
direct edge write); everything after it is best-effort. `BestEffortSteps`
keeps that policy in one place: wrap a step with `run_step()` and a failure is
logged and recorded on the `InferenceRun` instead of propagating.

`InferenceRun` is the per-call bookkeeping for recursive inference: which
relationship triples have already been attempted, which edges were created,
and which best-effort steps failed. It bounds the recursion so every call
terminates even if the store misbehaves.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from kingraph.edge import RelationshipEdge
from kingraph.logging import PprintLogger

T = TypeVar("T")

Triple = tuple[str, str, str]


class StepFailure(BaseModel):
    """A best-effort step that raised and was skipped."""

    model_config = ConfigDict(frozen=True)

    step: str
    error_type: str
    message: str


class InferenceRun(BaseModel):
    """Mutable state shared by every step of one engine call.

    Attributes:
        operation: Human-readable label for the call, used in log lines.
        max_depth: Deepest level of recursive inference allowed.
        visited: Relationship triples already attempted during this call.
        created: Every edge written during this call, in write order.
        failures: Best-effort steps that failed and were skipped.
    """

    operation: str
    max_depth: int = Field(ge=1)
    visited: set[Triple] = Field(default_factory=set)
    created: list[RelationshipEdge] = Field(default_factory=list)
    failures: list[StepFailure] = Field(default_factory=list)

    def mark_visited(self, triple: Triple) -> bool:
        """Record a triple; returns False if it was already attempted."""
        if triple in self.visited:
            return False
        self.visited.add(triple)
        return True

    def can_descend(self, depth: int) -> bool:
        return depth < self.max_depth


class BestEffortSteps:
    """Runs non-fatal steps: failures are logged and recorded, never raised."""

    def __init__(self, run: InferenceRun, logger: PprintLogger):
        self.run = run
        self.logger = logger

    async def run_step(
        self,
        step: str,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T | None:
        """Await `func(*args, **kwargs)`; on failure log, record and return None."""
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            self.run.failures.append(StepFailure(step=step, error_type=type(e).__name__, message=str(e)))
            self.logger.warning(
                "%s: best-effort step '%s' failed and was skipped: %s",
                self.run.operation,
                step,
                e,
                exc_info=True,
            )
            return None
