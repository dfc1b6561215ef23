"""RulesetStore — loads the YAML rulesets from ``v1/`` into typed models.

This is the single source of truth for static configuration at runtime.
The store is loaded once at startup and is read-only afterwards, so it can
be shared by any number of concurrent sessions.

Files:
    vocabulary.yaml — closed trait and indicator vocabularies
    pathways.yaml   — branching pathway table (declaration order matters)
    norms.yaml      — reference-population mean/std per trait
    profiles.yaml   — archetypes, primary profiles, hidden patterns, style
                      dimensions and resilience factors

Usage::

    store = RulesetStore()          # defaults to v1/ relative to repo root
    store.load()                    # parse and validate all YAML files

    adhd = store.get_pathway("adhd_pathway")
    norm = store.norm_for("openness")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from neurlyn_engine.errors import ValidationError
from neurlyn_engine.evaluator import validate_pathway_table
from neurlyn_engine.models.pathway import Pathway
from neurlyn_engine.models.profile import HiddenPatternRule, Norm, ProfileTable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# RulesetStore
# ---------------------------------------------------------------------------

class RulesetStore:
    """Loads all YAML from ``v1/`` and provides typed lookup.

    Attributes populated after :meth:`load`:

        traits          — frozenset of trait names
        indicators      — frozenset of indicator names
        pathways        — list[Pathway] in declaration order
        norms           — dict[trait, Norm]
        default_norm    — Norm used for traits without an explicit entry
        profile_table   — ProfileTable
        hidden_patterns — shortcut to ``profile_table.hidden_patterns``
    """

    def __init__(self, ruleset_dir: str | Path | None = None) -> None:
        if ruleset_dir is None:
            ruleset_dir = find_repo_root() / "v1"
        self._base = Path(ruleset_dir)

        # Populated by load()
        self.traits: frozenset[str] = frozenset()
        self.indicators: frozenset[str] = frozenset()
        self.pathways: list[Pathway] = []
        self.norms: dict[str, Norm] = {}
        self.default_norm: Norm = Norm(mean=3.0, std=0.8)
        self.profile_table: ProfileTable | None = None

        self._pathway_index: dict[str, Pathway] = {}

    @property
    def base_dir(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> "RulesetStore":
        """Parse all YAML files under the ruleset directory into typed models.

        Call this once at startup.  Raises ``FileNotFoundError`` if expected
        YAML files are missing and ``ValidationError`` if any entry is
        malformed or references an unknown indicator, trait or pathway.
        """
        self._load_vocabulary()
        self._load_pathways()
        self._load_norms()
        self._load_profiles()
        logger.info(
            "RulesetStore loaded: %d traits, %d indicators, %d pathways, %d norms",
            len(self.traits),
            len(self.indicators),
            len(self.pathways),
            len(self.norms),
        )
        return self

    def _load_vocabulary(self) -> None:
        raw = load_yaml(self._base / "vocabulary.yaml")
        self.traits = frozenset(raw.get("traits", []))
        self.indicators = frozenset(raw.get("indicators", []))

    def _load_pathways(self) -> None:
        """Load and validate the pathway table, preserving declaration order."""
        pathways: list[Pathway] = []
        for raw in load_yaml(self._base / "pathways.yaml"):
            try:
                pathways.append(Pathway(**raw))
            except PydanticValidationError as exc:
                raise ValidationError(
                    f"Invalid pathway {raw.get('id')!r} in pathways.yaml: {exc}"
                ) from exc
        validate_pathway_table(pathways, self.indicators, self.traits)
        self.pathways = pathways
        self._pathway_index = {p.id: p for p in pathways}

    def _load_norms(self) -> None:
        raw = load_yaml(self._base / "norms.yaml")
        try:
            if "default" in raw:
                self.default_norm = Norm(**raw["default"])
            for trait, entry in (raw.get("traits") or {}).items():
                if trait not in self.traits:
                    raise ValidationError(f"norms.yaml: unknown trait {trait!r}")
                self.norms[trait] = Norm(**entry)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid norm in norms.yaml: {exc}") from exc

    def _load_profiles(self) -> None:
        raw = load_yaml(self._base / "profiles.yaml")
        try:
            self.profile_table = ProfileTable(**raw)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid profiles.yaml: {exc}") from exc

        for rule in self.profile_table.archetypes + self.profile_table.primary_profiles:
            for pred in rule.when:
                if pred.trait not in self.traits:
                    raise ValidationError(f"profiles.yaml: unknown trait {pred.trait!r}")
        for hp in self.profile_table.hidden_patterns:
            unknown = sorted(set(hp.any_indicators + hp.all_indicators) - self.indicators)
            if unknown:
                raise ValidationError(
                    f"profiles.yaml: hidden pattern {hp.type} uses unknown indicators {unknown}"
                )
        for sel in self.profile_table.selectors():
            unknown = sorted(set(sel.traits) - self.traits)
            if unknown:
                raise ValidationError(f"profiles.yaml: style rule uses unknown traits {unknown}")

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get_pathway(self, pathway_id: str) -> Pathway:
        """Look up a pathway by id.

        Raises:
            ValidationError: if the id is not in the pathway table.
        """
        try:
            return self._pathway_index[pathway_id]
        except KeyError:
            raise ValidationError(f"Unknown pathway id: {pathway_id!r}") from None

    def pathways_for(self, pathway_ids: list[str] | set[str]) -> list[Pathway]:
        """Resolve ids to pathways, in table declaration order."""
        wanted = set(pathway_ids)
        for pid in wanted:
            self.get_pathway(pid)
        return [p for p in self.pathways if p.id in wanted]

    @property
    def hidden_patterns(self) -> list[HiddenPatternRule]:
        if self.profile_table is None:
            return []
        return self.profile_table.hidden_patterns

    def norm_for(self, trait: str) -> Norm:
        """Reference norm for a trait, falling back to the default norm."""
        return self.norms.get(trait, self.default_norm)
