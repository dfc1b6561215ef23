"""Session budget planner — tier budgets, phase transitions, initial batch.

The phase of a session is a pure function of how much of its budget has
been answered:

    ratio < 0.4          → core
    0.4 <= ratio < 0.7   → branching
    ratio >= 0.7         → refinement

The initial batch takes ``floor(0.4 * total_budget)`` questions from the
core categories.  Later batches are chosen adaptively by the selector; the
initial allocation is advisory and is not enforced after the first batch.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Sequence

from neurlyn_engine.constants import (
    CORE_ALLOCATION_RATIO,
    DEEP_CORE_CATEGORIES,
    DEEP_CORE_LIMIT,
    ND_ADDITIONAL_LIMIT,
    ND_SCREENING_LIMIT,
    ND_SCREENING_SUBCATEGORIES,
    PHASE_BRANCHING_END,
    PHASE_CORE_END,
    TIER_BUDGETS,
    TIER_QUESTION_TIERS,
)
from neurlyn_engine.errors import ValidationError
from neurlyn_engine.interfaces import QuestionCatalog
from neurlyn_engine.models.question import CatalogFilter, Question
from neurlyn_engine.models.session import BudgetPlan, Phase, SessionState

logger = logging.getLogger(__name__)


def plan(tier: str, core_ratio: float = CORE_ALLOCATION_RATIO) -> BudgetPlan:
    """Budget allocation for ``tier``.

    Raises:
        ValidationError: if ``tier`` is not quick, standard or deep.
    """
    if tier not in TIER_BUDGETS:
        raise ValidationError(
            f"Unknown tier {tier!r}; expected one of {sorted(TIER_BUDGETS)}"
        )
    total = TIER_BUDGETS[tier]
    return BudgetPlan(
        tier=tier,
        total_budget=total,
        core_budget=math.floor(core_ratio * total),
        phase_boundaries={
            "core": 0,
            "branching": math.ceil(PHASE_CORE_END * total),
            "refinement": math.ceil(PHASE_BRANCHING_END * total),
        },
    )


def phase_for_ratio(ratio: float) -> Phase:
    if ratio < PHASE_CORE_END:
        return "core"
    if ratio < PHASE_BRANCHING_END:
        return "branching"
    return "refinement"


def phase_for(state: SessionState) -> Phase:
    """Phase implied by the share of the budget already answered."""
    if state.total_budget <= 0:
        return "refinement"
    return phase_for_ratio(len(state.responses) / state.total_budget)


# ---------------------------------------------------------------------------
# Initial batch
# ---------------------------------------------------------------------------

def _take(
    catalog: QuestionCatalog,
    query: CatalogFilter,
    limit: int,
    taken: set[str],
) -> list[Question]:
    """Up to ``limit`` matches not already taken, in catalog order."""
    if limit <= 0:
        return []
    picked = [q for q in catalog.find(query) if q.id not in taken][:limit]
    taken.update(q.id for q in picked)
    return picked


def _sample_in_order(
    pool: Sequence[Question], k: int, rng: random.Random
) -> list[Question]:
    """Random ``k``-subset of ``pool`` returned in pool order."""
    if k >= len(pool):
        return list(pool)
    chosen = set(rng.sample(range(len(pool)), k))
    return [q for i, q in enumerate(pool) if i in chosen]


def initial_batch(
    tier: str,
    catalog: QuestionCatalog,
    rng: random.Random | None = None,
    core_ratio: float = CORE_ALLOCATION_RATIO,
) -> list[Question]:
    """First batch of a session, drawn from the core categories.

    Order of the returned batch: personality, neurodiversity screening,
    other neurodiversity items, then (deep tier only) cognitive functions,
    attachment and enneagram.  The later slices are sized first; personality
    fills whatever remains of the core budget, sampled with ``rng``.
    """
    budget = plan(tier, core_ratio)
    rng = rng or random.Random()
    tiers = TIER_QUESTION_TIERS[tier]
    taken: set[str] = set()

    screening: list[Question] = []
    additional: list[Question] = []
    deep_slice: list[Question] = []

    if tier != "quick":
        screening = _take(
            catalog,
            CatalogFilter(
                category="neurodiversity",
                subcategory_in=frozenset(ND_SCREENING_SUBCATEGORIES),
                tier_in=tiers,
            ),
            min(ND_SCREENING_LIMIT, budget.core_budget),
            taken,
        )
        additional = _take(
            catalog,
            CatalogFilter(category="neurodiversity", tier_in=tiers),
            min(ND_ADDITIONAL_LIMIT, budget.core_budget - len(screening)),
            taken,
        )

    if tier == "deep":
        deep_slice = _take(
            catalog,
            CatalogFilter(category_in=frozenset(DEEP_CORE_CATEGORIES), tier_in=tiers),
            min(DEEP_CORE_LIMIT, budget.core_budget - len(screening) - len(additional)),
            taken,
        )

    remaining = budget.core_budget - len(screening) - len(additional) - len(deep_slice)
    pool = [
        q
        for q in catalog.find(CatalogFilter(category="personality", tier_in=tiers))
        if q.id not in taken
    ]
    personality = _sample_in_order(pool, max(0, remaining), rng)

    batch = personality + screening + additional + deep_slice
    logger.debug(
        "Initial %s batch: %d personality, %d screening, %d neurodiversity, %d deep",
        tier,
        len(personality),
        len(screening),
        len(additional),
        len(deep_slice),
    )
    return batch
