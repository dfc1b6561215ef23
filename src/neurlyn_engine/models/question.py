"""Question catalog record and the filter used to query the catalog.

Questions are owned by the external catalog and are read-only to the
engine.  ``trait_weights`` keys are drawn from the trait vocabulary in
``v1/vocabulary.yaml``; weights are typically in [-1, 1].  Declaration order
of ``trait_weights`` matters: the first key is the question's primary trait.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

QuestionTier = Literal[
    "free",
    "core",
    "comprehensive",
    "specialized",
    "quick",
    "standard",
    "deep",
    "screening",
]

ResponseType = Literal[
    "likert",
    "multiple-choice",
    "forced-choice",
    "slider",
    "ranking",
    "binary",
]

Importance = Literal["core", "high", "medium", "low"]


class Question(BaseModel):
    """A single catalog item."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str = ""
    category: str
    subcategory: Optional[str] = None
    trait_weights: dict[str, float] = Field(default_factory=dict)
    tier: QuestionTier = "core"
    base_priority: float = 50.0
    response_type: ResponseType = "likert"
    reverse_scored: bool = False
    importance: Importance = "medium"
    # Tags attached to a high-scoring answer (branching-rule input)
    personalization_markers: list[str] = Field(default_factory=list)

    @property
    def primary_trait(self) -> str | None:
        """First declared trait, or None for untraited questions."""
        return next(iter(self.trait_weights), None)


class CatalogFilter(BaseModel):
    """AND-combined equality/membership filter over catalog questions.

    ``None`` means "no constraint" for every field.
    """

    category: Optional[str] = None
    category_in: Optional[frozenset[str]] = None
    subcategory: Optional[str] = None
    subcategory_in: Optional[frozenset[str]] = None
    tier_in: Optional[frozenset[str]] = None
    importance_in: Optional[frozenset[str]] = None
    response_type_in: Optional[frozenset[str]] = None
    excluded_ids: frozenset[str] = frozenset()
    limit: Optional[int] = None

    def matches(self, q: Question) -> bool:
        if q.id in self.excluded_ids:
            return False
        if self.category is not None and q.category != self.category:
            return False
        if self.category_in is not None and q.category not in self.category_in:
            return False
        if self.subcategory is not None and q.subcategory != self.subcategory:
            return False
        if self.subcategory_in is not None and q.subcategory not in self.subcategory_in:
            return False
        if self.tier_in is not None and q.tier not in self.tier_in:
            return False
        if self.importance_in is not None and q.importance not in self.importance_in:
            return False
        if self.response_type_in is not None and q.response_type not in self.response_type_in:
            return False
        return True

    def broadened(self) -> "CatalogFilter":
        """Copy without the narrowing filters (subcategory, importance, response type)."""
        return self.model_copy(
            update={
                "subcategory": None,
                "subcategory_in": None,
                "importance_in": None,
                "response_type_in": None,
            }
        )
