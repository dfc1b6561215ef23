"""Response pattern analyzer — reduces answered items into aggregate signal.

``analyze`` is a pure function of its input and is re-run over the full
response list after every batch (O(n) per call).  It computes:

  - trait_sums:      Σ weight * score per trait
  - average_score:   mean score (0.0 on empty input)
  - response_style:  extreme / central / balanced
  - consistency:     1.0 when the population std of scores is below 0.5,
                     otherwise 0.7
  - indicators:      markers of responses scored in the scale's top category
  - category_counts, engagement, mean_response_time (selector/scoring input)

Unknown trait keys are skipped and counted when a trait vocabulary is given.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Iterable, Sequence

from neurlyn_engine.constants import (
    CENTRAL_FRACTION,
    CONSISTENCY_STD_CUTOFF,
    DELIBERATE_FRACTION,
    EXTREME_FRACTION,
    HIGH_CONSISTENCY,
    IMPULSIVE_FRACTION,
    QUICK_RESPONSE_MS,
    REDUCED_CONSISTENCY,
    SLOW_RESPONSE_MS,
)
from neurlyn_engine.models.pattern import Engagement, PatternSummary, ResponseStyle
from neurlyn_engine.models.response import LIKERT, ResponseEvent, ResponseScale

logger = logging.getLogger(__name__)


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for an empty sequence."""
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


def classify_style(scores: Sequence[int], scale: ResponseScale = LIKERT) -> ResponseStyle:
    """Classify the response style of a score sequence."""
    if not scores:
        return "balanced"
    n = len(scores)
    extreme = sum(1 for s in scores if s in (scale.minimum, scale.maximum))
    central = sum(1 for s in scores if s == scale.midpoint)
    if extreme / n > EXTREME_FRACTION:
        return "extreme"
    if central / n > CENTRAL_FRACTION:
        return "central"
    return "balanced"


def classify_engagement(times: Sequence[int]) -> Engagement:
    """Impulsive / deliberate / normal from response timings (ms)."""
    if not times:
        return "normal"
    n = len(times)
    quick = sum(1 for t in times if t < QUICK_RESPONSE_MS)
    slow = sum(1 for t in times if t > SLOW_RESPONSE_MS)
    if quick / n > IMPULSIVE_FRACTION:
        return "impulsive"
    if slow / n > DELIBERATE_FRACTION:
        return "deliberate"
    return "normal"


def analyze(
    responses: Iterable[ResponseEvent],
    scale: ResponseScale = LIKERT,
    trait_vocabulary: frozenset[str] | None = None,
) -> PatternSummary:
    """Summarize the responses answered so far.

    Args:
        responses: answered items in session order
        scale: score scale the responses were recorded on
        trait_vocabulary: if given, trait keys outside it are ignored

    Returns:
        A frozen :class:`PatternSummary`.
    """
    responses = list(responses)
    if not responses:
        return PatternSummary()

    trait_sums: dict[str, float] = {}
    indicators: set[str] = set()
    categories: Counter[str] = Counter()
    unknown = 0

    for r in responses:
        for trait, weight in r.trait_weights.items():
            if trait_vocabulary is not None and trait not in trait_vocabulary:
                logger.warning(
                    "Ignoring unknown trait %r on response to %s", trait, r.question_id
                )
                unknown += 1
                continue
            trait_sums[trait] = trait_sums.get(trait, 0.0) + weight * r.score

        if r.score >= scale.high:
            indicators.update(r.personalization_markers)

        if r.category:
            categories[r.category] += 1

    scores = [r.score for r in responses]
    std = population_std(scores)
    times = [r.response_time_ms for r in responses if r.response_time_ms is not None]

    return PatternSummary(
        response_count=len(responses),
        trait_sums=trait_sums,
        average_score=sum(scores) / len(scores),
        response_style=classify_style(scores, scale),
        score_std=std,
        consistency=HIGH_CONSISTENCY if std < CONSISTENCY_STD_CUTOFF else REDUCED_CONSISTENCY,
        indicators=frozenset(indicators),
        category_counts=dict(categories),
        engagement=classify_engagement(times),
        mean_response_time=sum(times) / len(times) if times else None,
        coerced_count=sum(1 for r in responses if r.coerced),
        unknown_traits=unknown,
    )
