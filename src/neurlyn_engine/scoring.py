"""Scoring & profile engine — turns a finished response set into a Report.

Runs once per session, at completion.  The numeric helpers are module-level
functions so they can be tested and reused on their own:

  - :func:`aggregate_traits`  per-trait mean of weight * score
  - :func:`percentile`        normal-CDF percentile (Abramowitz-Stegun 26.2.17)
  - :func:`quality_metrics`   validity flags for the response set
  - :func:`confidence`        bounded heuristic in [0.5, 0.95]

:class:`ScoringEngine` combines them with the profile tables from the
ruleset store.  The only error it raises is ``EmptyResponseSet``; every
recoverable problem is counted in ``Report.quality`` instead.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Sequence

from neurlyn_engine.analyzer import analyze
from neurlyn_engine.constants import (
    ACQUIESCENCE_FRACTION,
    CARELESS_DIVERSITY,
    CARELESS_MEAN_MS,
    CONFIDENCE_BASE,
    CONFIDENCE_CEILING,
    CONFIDENCE_CONSISTENCY_WEIGHT,
    CONFIDENCE_COUNT_STEPS,
    CONFIDENCE_PATHWAY_CAP,
    CONFIDENCE_PER_PATHWAY,
    DIVERSITY_WINDOW,
    GOOD_DIVERSITY,
    STRAIGHT_LINE_RUN,
)
from neurlyn_engine.errors import EmptyResponseSet, ValidationError
from neurlyn_engine.models.report import QualityMetrics, Recommendations, Report, TraitScore
from neurlyn_engine.models.response import LIKERT, ResponseEvent, ResponseScale
from neurlyn_engine.profiles import ProfileLabeler, describe_trait, level_for
from neurlyn_engine.ruleset import RulesetStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Numeric helpers
# ---------------------------------------------------------------------------

def aggregate_traits(
    responses: Iterable[ResponseEvent],
    trait_vocabulary: frozenset[str] | None = None,
) -> dict[str, tuple[float, int]]:
    """Per-trait ``(mean of weight * score, contributing responses)``.

    Traits outside ``trait_vocabulary`` (when given) are left out.
    """
    sums: dict[str, float] = {}
    counts: dict[str, int] = {}
    for r in responses:
        for trait, weight in r.trait_weights.items():
            if trait_vocabulary is not None and trait not in trait_vocabulary:
                continue
            sums[trait] = sums.get(trait, 0.0) + weight * r.score
            counts[trait] = counts.get(trait, 0) + 1
    return {t: (sums[t] / counts[t], counts[t]) for t in sums}


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def percentile(x: float, mu: float, sigma: float) -> int:
    """Percentile of ``x`` in a normal population N(mu, sigma).

    Uses the Abramowitz-Stegun rational approximation of the standard normal
    CDF with its published constants; results are rounded half-up.

    Raises:
        ValidationError: if ``sigma`` is not positive.
    """
    if sigma <= 0:
        raise ValidationError(f"sigma must be > 0, got {sigma}")
    z = (x - mu) / sigma
    t = 1 / (1 + 0.2316419 * abs(z))
    d = 0.3989423 * math.exp(-z * z / 2)
    poly = t * (0.3193815 + t * (t * (1.781478 + t * (1.330274 * t - 1.821256)) - 0.3565638))
    tail = d * poly
    if z > 0:
        return _round_half_up(100 * (1 - tail))
    return _round_half_up(100 * tail)


def longest_run(scores: Sequence[int]) -> int:
    """Length of the longest run of identical consecutive scores."""
    best = run = 0
    prev: Optional[int] = None
    for s in scores:
        run = run + 1 if s == prev else 1
        prev = s
        best = max(best, run)
    return best


def quality_metrics(
    responses: Sequence[ResponseEvent],
    expected_total: int | None = None,
    unknown_traits: int = 0,
    scale: ResponseScale = LIKERT,
) -> QualityMetrics:
    """Validity signals for a response set.

    ``expected_total`` defaults to the number of responses (completion 1.0).
    Untimed responses are left out of the mean response time; when none are
    timed the mean is ``None`` and no time-based careless flag is raised.
    """
    n = len(responses)
    scores = [r.score for r in responses]
    expected = expected_total if expected_total else n

    times = [r.response_time_ms for r in responses if r.response_time_ms is not None]
    mean_time = sum(times) / len(times) if times else None

    diversity = len(set(scores)) / min(n, DIVERSITY_WINDOW) if n else 0.0
    run = longest_run(scores)
    straight = run > STRAIGHT_LINE_RUN
    careless = (mean_time is not None and mean_time < CARELESS_MEAN_MS) or (
        diversity < CARELESS_DIVERSITY
    )
    agree = sum(1 for s in scores if s >= scale.high)
    acquiescence = n > 0 and agree / n > ACQUIESCENCE_FRACTION

    return QualityMetrics(
        completion_rate=n / expected if expected else 0.0,
        mean_response_time=mean_time,
        response_diversity=diversity,
        longest_run=run,
        straight_lining=straight,
        careless_responding=careless,
        acquiescence=acquiescence,
        coerced_responses=sum(1 for r in responses if r.coerced),
        unknown_traits=unknown_traits,
        data_quality="Good" if diversity > GOOD_DIVERSITY and not straight else "Review needed",
    )


def confidence(response_count: int, consistency: float, pathway_count: int) -> float:
    """Heuristic confidence in [0.5, 0.95]."""
    value = CONFIDENCE_BASE
    for floor, bonus in CONFIDENCE_COUNT_STEPS:
        if response_count >= floor:
            value += bonus
            break
    value += consistency * CONFIDENCE_CONSISTENCY_WEIGHT
    value += min(pathway_count * CONFIDENCE_PER_PATHWAY, CONFIDENCE_PATHWAY_CAP)
    return min(value, CONFIDENCE_CEILING)


# ---------------------------------------------------------------------------
# ScoringEngine
# ---------------------------------------------------------------------------

class ScoringEngine:
    """Scores a completed response set against the ruleset's norms and tables."""

    def __init__(
        self,
        store: RulesetStore,
        scale: ResponseScale = LIKERT,
        labeler: ProfileLabeler | None = None,
    ) -> None:
        self._store = store
        self._scale = scale
        self._labeler = labeler or ProfileLabeler(store.profile_table)

    def score(
        self,
        responses: Sequence[ResponseEvent],
        *,
        active_pathways: Sequence[str] = (),
        expected_total: int | None = None,
    ) -> Report:
        """Build the report for ``responses``.

        Raises:
            EmptyResponseSet: if ``responses`` is empty.
        """
        if not responses:
            raise EmptyResponseSet("Cannot score an empty response set")

        pattern = analyze(responses, self._scale, self._store.traits)

        trait_scores: dict[str, TraitScore] = {}
        for trait, (mean, count) in aggregate_traits(responses, self._store.traits).items():
            norm = self._store.norm_for(trait)
            pct = percentile(mean, norm.mean, norm.std)
            trait_scores[trait] = TraitScore(
                trait=trait,
                raw=mean,
                percentile=pct,
                level=level_for(pct),
                description=describe_trait(trait, mean),
                contributing=count,
            )

        pathways = self._resolve_pathways(active_pathways)
        quality = quality_metrics(
            responses, expected_total, pattern.unknown_traits, self._scale
        )
        percentiles = {t: s.percentile for t, s in trait_scores.items()}
        raw_means = {t: s.raw for t, s in trait_scores.items()}

        report = Report(
            response_count=len(responses),
            trait_scores=trait_scores,
            quality=quality,
            confidence=confidence(len(responses), pattern.consistency, len(pathways)),
            response_style=pattern.response_style,
            consistency=pattern.consistency,
            hidden_patterns=self._labeler.hidden_patterns(responses, pattern, self._scale),
            archetype=self._labeler.archetype(percentiles),
            primary_profile=self._labeler.primary_profile(raw_means),
            pathways=[p.id for p in pathways],
            recommendations=self._recommendations(pathways),
            styles=self._labeler.styles(responses, self._scale),
            resilience_factors=self._labeler.resilience_factors(responses, self._scale),
        )
        logger.info(
            "Scored %d responses: %d traits, archetype=%s, quality=%s",
            report.response_count,
            len(trait_scores),
            report.archetype.name,
            quality.data_quality,
        )
        return report

    def _resolve_pathways(self, pathway_ids: Sequence[str]):
        """Known pathways in declaration order; unknown ids are logged and dropped."""
        wanted = set(pathway_ids)
        known = [p for p in self._store.pathways if p.id in wanted]
        unknown = wanted - {p.id for p in known}
        if unknown:
            logger.warning("Ignoring unknown active pathways: %s", sorted(unknown))
        return known

    @staticmethod
    def _recommendations(pathways) -> Recommendations:
        """Merge recommendation bullets of active pathways, first occurrence wins."""
        merged: dict[str, list[str]] = {"immediate": [], "assessment": [], "resources": []}
        for p in pathways:
            for key, items in merged.items():
                for item in getattr(p.recommendations, key):
                    if item not in items:
                        items.append(item)
        return Recommendations(**merged)
