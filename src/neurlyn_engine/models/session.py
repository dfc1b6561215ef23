"""Session state and step models — the contract between the engine and callers.

``SessionState`` is the only per-session mutable value.  The caller owns it
and hands it back to the engine on every call; the engine itself keeps no
per-session fields.  Every attribute is a primitive, string or list so the
state serializes to a flat JSON structure (``model_dump(mode="json")``) and
reloads with ``model_validate``.

Ordered lists stand in for sets so a reloaded state preserves the
append-only ordering of ``responses``, ``asked_question_ids`` and
``active_pathways``.
"""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field, model_validator

from .pathway import BranchingDecision
from .question import Question
from .response import ResponseEvent

Tier = Literal["quick", "standard", "deep"]
Phase = Literal["core", "branching", "refinement"]


class SessionState(BaseModel):
    """Mutable adaptation state for one in-progress questionnaire."""

    session_id: str
    tier: Tier
    total_budget: int
    responses: List[ResponseEvent] = Field(default_factory=list)
    asked_question_ids: List[str] = Field(default_factory=list)
    # Issued to the caller but not yet answered
    pending_question_ids: List[str] = Field(default_factory=list)
    active_pathways: List[str] = Field(default_factory=list)
    branching_log: List[BranchingDecision] = Field(default_factory=list)
    phase: Phase = "core"
    completed: bool = False
    # Set once the selector could not fill a batch
    exhausted: bool = False

    @model_validator(mode="after")
    def _chk(self):
        if len(self.responses) > self.total_budget:
            raise ValueError(
                f"{len(self.responses)} responses exceed the budget of {self.total_budget}"
            )
        for name in ("asked_question_ids", "active_pathways"):
            values = getattr(self, name)
            if len(values) != len(set(values)):
                raise ValueError(f"{name} contains duplicates")
        return self

    @property
    def answered_ids(self) -> set[str]:
        return {r.question_id for r in self.responses}

    @property
    def remaining(self) -> int:
        """Budget left after answered and outstanding questions."""
        return max(0, self.total_budget - len(self.responses) - len(self.pending_question_ids))

    @property
    def percent_complete(self) -> int:
        if self.total_budget <= 0:
            return 100
        return round(len(self.responses) / self.total_budget * 100)

    @property
    def is_complete(self) -> bool:
        return self.completed or len(self.responses) >= self.total_budget


class AdvanceResult(BaseModel):
    """Returned by ``AssessmentEngine.advance``."""

    next_batch: List[Question]
    phase: Phase
    # Pathways newly activated by this call, in declaration order
    activated_pathways: List[str]
    active_pathways: List[str]
    percent_complete: int
    is_complete: bool
    exhausted: bool = False
    # Set when the selector had to drop its narrowing filters
    broadened: bool = False


class BudgetPlan(BaseModel):
    """Budget allocation for a tier (see ``planner.plan``)."""

    tier: Tier
    total_budget: int
    core_budget: int
    # Response counts at which each phase begins
    phase_boundaries: dict[str, int]
