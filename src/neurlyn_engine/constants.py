"""Assessment constants shared across the engine.

These values are referenced by the planner, analyzer, selector and scoring
engine.  They mirror conventions encoded in the YAML rulesets under ``v1/``.

Quality thresholds can be overridden via environment variables so that
deployments can tune validity flags without code changes.  The empirical
selection weights live in :mod:`neurlyn_engine.config` instead.
"""

import os

# Total question budget per assessment tier.
TIER_BUDGETS: dict[str, int] = {
    "quick": 20,
    "standard": 45,
    "deep": 75,
}

# Question tiers eligible for each assessment tier.  ``None`` means every
# catalog tier is allowed.
TIER_QUESTION_TIERS: dict[str, frozenset[str] | None] = {
    "quick": frozenset({"free", "core", "screening", "quick"}),
    "standard": frozenset(
        {"free", "core", "screening", "quick", "standard", "comprehensive"}
    ),
    "deep": None,
}

# Phase boundaries as a fraction of the consumed budget.
#   core:       ratio < 0.4
#   branching:  0.4 <= ratio < 0.7
#   refinement: ratio >= 0.7
PHASE_CORE_END = 0.4
PHASE_BRANCHING_END = 0.7
PHASE_NAMES: tuple[str, ...] = ("core", "branching", "refinement")

# Share of the budget allocated to the initial (core) batch.
CORE_ALLOCATION_RATIO = 0.4

# Initial-batch slices (see planner.initial_batch).
ND_SCREENING_SUBCATEGORIES: tuple[str, ...] = (
    "executive_function",
    "sensory_processing",
    "masking",
)
ND_SCREENING_LIMIT = 4
ND_ADDITIONAL_LIMIT = 3
DEEP_CORE_CATEGORIES: tuple[str, ...] = (
    "cognitive_functions",
    "attachment",
    "enneagram",
)
DEEP_CORE_LIMIT = 3

# Selector narrowing filters.
CORE_PHASE_IMPORTANCE: frozenset[str] = frozenset({"core", "high"})
REFINEMENT_RESPONSE_TYPES: frozenset[str] = frozenset({"forced-choice", "slider"})

# Response types understood by the engine.
RESPONSE_TYPES: tuple[str, ...] = (
    "likert",
    "multiple-choice",
    "forced-choice",
    "slider",
    "ranking",
    "binary",
)

# Likert labels -> 1..5 score.  Used when a response arrives without a score.
LABEL_SCORES: dict[str, int] = {
    "strongly disagree": 1,
    "disagree": 2,
    "neutral": 3,
    "agree": 4,
    "strongly agree": 5,
    "never": 1,
    "rarely": 2,
    "sometimes": 3,
    "often": 4,
    "always": 5,
}

# Response-time cutoffs for engagement classification (milliseconds).
QUICK_RESPONSE_MS = 2000
SLOW_RESPONSE_MS = 10000
IMPULSIVE_FRACTION = 0.7
DELIBERATE_FRACTION = 0.5

# Response-style cutoffs.
EXTREME_FRACTION = 0.6
CENTRAL_FRACTION = 0.5
CONSISTENCY_STD_CUTOFF = 0.5
HIGH_CONSISTENCY = 1.0
REDUCED_CONSISTENCY = 0.7

# Quality-metric cutoffs.
# Overridable via STRAIGHT_LINE_RUN / CARELESS_MEAN_MS / CARELESS_DIVERSITY.
STRAIGHT_LINE_RUN = int(os.getenv("STRAIGHT_LINE_RUN", "10"))
CARELESS_MEAN_MS = float(os.getenv("CARELESS_MEAN_MS", "1000"))
CARELESS_DIVERSITY = float(os.getenv("CARELESS_DIVERSITY", "0.3"))
GOOD_DIVERSITY = 0.5
DIVERSITY_WINDOW = 7
ACQUIESCENCE_FRACTION = 0.8

# Confidence heuristic.
CONFIDENCE_BASE = 0.5
CONFIDENCE_COUNT_STEPS: tuple[tuple[int, float], ...] = (
    (75, 0.2),
    (45, 0.15),
    (20, 0.1),
)
CONFIDENCE_CONSISTENCY_WEIGHT = 0.2
CONFIDENCE_PER_PATHWAY = 0.05
CONFIDENCE_PATHWAY_CAP = 0.15
CONFIDENCE_CEILING = 0.95
