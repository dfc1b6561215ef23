"""neurlyn_engine — Adaptive psychometric questionnaire engine.

Public API:
    AssessmentEngine  — start_session / advance / finalize entry points
    AssessmentService — async wrapper that persists sessions via neurlyn_db
    RulesetStore      — loads YAML rulesets (pathways, norms, profiles) from v1/
    InMemoryCatalog   — immutable-snapshot question catalog
    QuestionCatalog   — ABC for external catalog accessors

Components:
    analyze           — response pattern analyzer
    PathwayEvaluator  — branching pathway rule evaluator
    AdaptiveSelector  — priority-based next-batch selection
    plan / phase_for  — session budget planner
    ScoringEngine     — trait scores, percentiles, quality, profiles

Settings and errors:
    EngineSettings, SelectionWeights, load_settings
    AssessmentError, ValidationError, ExhaustedCatalog, EmptyResponseSet
"""

from neurlyn_engine.analyzer import analyze
from neurlyn_engine.catalog import InMemoryCatalog
from neurlyn_engine.config import EngineSettings, SelectionWeights, load_settings
from neurlyn_engine.engine import AssessmentEngine
from neurlyn_engine.errors import (
    AssessmentError,
    EmptyResponseSet,
    ExhaustedCatalog,
    ValidationError,
)
from neurlyn_engine.evaluator import PathwayEvaluator
from neurlyn_engine.interfaces import QuestionCatalog
from neurlyn_engine.planner import initial_batch, phase_for, plan
from neurlyn_engine.ruleset import RulesetStore
from neurlyn_engine.scoring import ScoringEngine, percentile
from neurlyn_engine.selector import AdaptiveSelector, Selection
from neurlyn_engine.service import AssessmentService

__all__ = [
    # Engine & store
    "AssessmentEngine",
    "AssessmentService",
    "RulesetStore",
    # Catalog
    "InMemoryCatalog",
    "QuestionCatalog",
    # Components
    "AdaptiveSelector",
    "PathwayEvaluator",
    "ScoringEngine",
    "Selection",
    "analyze",
    "initial_batch",
    "percentile",
    "phase_for",
    "plan",
    # Settings
    "EngineSettings",
    "SelectionWeights",
    "load_settings",
    # Errors
    "AssessmentError",
    "EmptyResponseSet",
    "ExhaustedCatalog",
    "ValidationError",
]
