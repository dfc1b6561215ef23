"""Branching pathway definitions from ``v1/pathways.yaml``.

A pathway is static configuration, not session state.  Two shapes exist:

  - **indicator pathways** fire when enough of their ``trigger_indicators``
    appear in the pattern summary (and, optionally, their score trait meets
    ``score_threshold``)
  - **combined pathways** fire only when every pathway in ``combined_of``
    has already fired

A pathway never declares both shapes at once.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PathwayRecommendations(BaseModel):
    """Recommendation bullets surfaced in the report when the pathway is active."""

    model_config = ConfigDict(frozen=True)

    immediate: List[str] = Field(default_factory=list)
    assessment: List[str] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)


class Pathway(BaseModel):
    """A branching rule that biases selection toward a thematic cluster."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str = ""
    trigger_indicators: frozenset[str] = frozenset()
    indicator_threshold: int = 1
    score_threshold: Optional[float] = None
    # Trait whose accumulated sum is compared with score_threshold
    score_trait: Optional[str] = None
    combined_of: Optional[frozenset[str]] = None
    priority_boost_subcategories: frozenset[str] = frozenset()
    added_subcategories: frozenset[str] = frozenset()
    recommendations: PathwayRecommendations = Field(default_factory=PathwayRecommendations)

    @property
    def is_combined(self) -> bool:
        return self.combined_of is not None

    @model_validator(mode="after")
    def _chk(self):
        if self.combined_of is not None and self.trigger_indicators:
            raise ValueError(
                f"pathway {self.id}: combined_of and trigger_indicators are exclusive"
            )
        if self.combined_of is not None and not self.combined_of:
            raise ValueError(f"pathway {self.id}: combined_of must not be empty")
        if self.score_threshold is not None and self.score_trait is None:
            raise ValueError(f"pathway {self.id}: score_threshold requires score_trait")
        if self.indicator_threshold < 1:
            raise ValueError(f"pathway {self.id}: indicator_threshold must be >= 1")
        return self


class BranchingDecision(BaseModel):
    """Log entry written when a pathway activates."""

    pathway_id: str
    # Number of responses recorded when the pathway fired
    fired_at_index: int
    triggers: List[str] = Field(default_factory=list)
