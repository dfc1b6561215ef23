"""Engine configuration — empirical selection constants and tunables.

All settings have the values the questionnaire has always shipped with.
Deployments can override them via ``NEURLYN_*`` environment variables, or
tests can construct :class:`EngineSettings` directly.
"""

import os
from dataclasses import dataclass, field


def _default_category_caps() -> dict[str, int]:
    return {
        "personality": 10,
        "neurodiversity": 15,
        "mental_health": 8,
        "cognitive_functions": 6,
    }


@dataclass(frozen=True)
class SelectionWeights:
    """Priority adjustments applied by the adaptive selector."""

    # Subcategory boosts from fired/active pathways
    priority_boost: float = 30.0
    added_boost: float = 20.0

    # Trait signal boost: multiplier * accumulated trait sum above threshold
    trait_multiplier: float = 10.0
    trait_threshold: float = 3.5

    # Redundancy: primary trait already saturated, or category cap reached
    redundancy_penalty: float = 20.0
    redundancy_trait_threshold: float = 4.5
    category_caps: dict[str, int] = field(default_factory=_default_category_caps)
    default_category_cap: int = 10

    # Response-style adjustments
    forced_choice_boost: float = 15.0
    slider_boost: float = 10.0

    def cap_for(self, category: str) -> int:
        return self.category_caps.get(category, self.default_category_cap)


@dataclass(frozen=True)
class EngineSettings:
    """Immutable engine configuration read from environment at startup."""

    weights: SelectionWeights = field(default_factory=SelectionWeights)

    # Questions returned per advance() call
    batch_size: int = 3

    # Share of the budget used for the initial core batch
    core_allocation_ratio: float = 0.4

    # Seed for initial personality sampling (None → nondeterministic)
    sampling_seed: int | None = None

    # Ruleset directory (None → RulesetStore default, which is v1/ from repo root)
    ruleset_dir: str | None = None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _parse_caps(raw: str | None) -> dict[str, int]:
    """Parse ``personality=10,neurodiversity=15`` into a dict merged over defaults."""
    caps = _default_category_caps()
    if not raw:
        return caps
    for pair in raw.split(","):
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        caps[key.strip()] = int(value)
    return caps


def load_settings() -> EngineSettings:
    """Build settings from ``NEURLYN_*`` environment variables."""
    defaults = SelectionWeights()
    weights = SelectionWeights(
        priority_boost=_env_float("NEURLYN_PRIORITY_BOOST", defaults.priority_boost),
        added_boost=_env_float("NEURLYN_ADDED_BOOST", defaults.added_boost),
        trait_multiplier=_env_float("NEURLYN_TRAIT_MULTIPLIER", defaults.trait_multiplier),
        trait_threshold=_env_float("NEURLYN_TRAIT_THRESHOLD", defaults.trait_threshold),
        redundancy_penalty=_env_float(
            "NEURLYN_REDUNDANCY_PENALTY", defaults.redundancy_penalty
        ),
        redundancy_trait_threshold=_env_float(
            "NEURLYN_REDUNDANCY_TRAIT_THRESHOLD", defaults.redundancy_trait_threshold
        ),
        category_caps=_parse_caps(os.getenv("NEURLYN_CATEGORY_CAPS")),
        default_category_cap=_env_int(
            "NEURLYN_DEFAULT_CATEGORY_CAP", defaults.default_category_cap
        ),
        forced_choice_boost=_env_float(
            "NEURLYN_FORCED_CHOICE_BOOST", defaults.forced_choice_boost
        ),
        slider_boost=_env_float("NEURLYN_SLIDER_BOOST", defaults.slider_boost),
    )

    seed = os.getenv("NEURLYN_SAMPLING_SEED")
    return EngineSettings(
        weights=weights,
        batch_size=_env_int("NEURLYN_BATCH_SIZE", 3),
        core_allocation_ratio=_env_float("NEURLYN_CORE_ALLOCATION_RATIO", 0.4),
        sampling_seed=int(seed) if seed else None,
        ruleset_dir=os.getenv("NEURLYN_RULESET_DIR") or None,
    )
