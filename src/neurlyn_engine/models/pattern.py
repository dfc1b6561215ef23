"""Pattern summary produced by the response analyzer."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ResponseStyle = Literal["extreme", "central", "balanced"]
Engagement = Literal["impulsive", "deliberate", "normal"]


class PatternSummary(BaseModel):
    """Aggregate signal over the responses answered so far."""

    model_config = ConfigDict(frozen=True)

    response_count: int = 0
    trait_sums: dict[str, float] = Field(default_factory=dict)
    average_score: float = 0.0
    response_style: ResponseStyle = "balanced"
    score_std: float = 0.0
    consistency: float = 1.0
    indicators: frozenset[str] = frozenset()
    # Answered questions per catalog category
    category_counts: dict[str, int] = Field(default_factory=dict)
    engagement: Engagement = "normal"
    mean_response_time: Optional[float] = None
    coerced_count: int = 0
    unknown_traits: int = 0

    def trait(self, name: str) -> float:
        return self.trait_sums.get(name, 0.0)
