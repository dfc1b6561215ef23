"""Public model re-exports for neurlyn_engine.

Consumers should import from ``neurlyn_engine.models`` rather than
reaching into sub-modules directly.
"""

# --- Catalog ---
from neurlyn_engine.models.question import (
    CatalogFilter,
    Importance,
    Question,
    QuestionTier,
    ResponseType,
)

# --- Responses ---
from neurlyn_engine.models.response import (
    LIKERT,
    ResponseEvent,
    ResponseScale,
)

# --- Pathways ---
from neurlyn_engine.models.pathway import (
    BranchingDecision,
    Pathway,
    PathwayRecommendations,
)

# --- Analysis ---
from neurlyn_engine.models.pattern import (
    Engagement,
    PatternSummary,
    ResponseStyle,
)

# --- Session / step ---
from neurlyn_engine.models.session import (
    AdvanceResult,
    BudgetPlan,
    Phase,
    SessionState,
    Tier,
)

# --- Report ---
from neurlyn_engine.models.report import (
    Archetype,
    HiddenPattern,
    QualityMetrics,
    Recommendations,
    Report,
    TraitScore,
)

# --- Profile tables / norms ---
from neurlyn_engine.models.profile import (
    ArchetypeRule,
    BandedDimension,
    CategoryCount,
    DominantDimension,
    DominantOption,
    HiddenPatternRule,
    Norm,
    PrimaryProfileRule,
    ProfileTable,
    ResilienceFactorRule,
    ResponseSelector,
    TraitPredicate,
)

__all__ = [
    # Catalog
    "CatalogFilter",
    "Importance",
    "Question",
    "QuestionTier",
    "ResponseType",
    # Responses
    "LIKERT",
    "ResponseEvent",
    "ResponseScale",
    # Pathways
    "BranchingDecision",
    "Pathway",
    "PathwayRecommendations",
    # Analysis
    "Engagement",
    "PatternSummary",
    "ResponseStyle",
    # Session
    "AdvanceResult",
    "BudgetPlan",
    "Phase",
    "SessionState",
    "Tier",
    # Report
    "Archetype",
    "HiddenPattern",
    "QualityMetrics",
    "Recommendations",
    "Report",
    "TraitScore",
    # Profiles
    "ArchetypeRule",
    "BandedDimension",
    "CategoryCount",
    "DominantDimension",
    "DominantOption",
    "HiddenPatternRule",
    "Norm",
    "PrimaryProfileRule",
    "ProfileTable",
    "ResilienceFactorRule",
    "ResponseSelector",
    "TraitPredicate",
]
