#!/usr/bin/env python3
"""Simulate an adaptive assessment session end-to-end against the sample catalog.

Starts a session, answers every issued batch with a mock respondent, and
prints an audit log of each batch (phase, questions, answers, activated
pathways) followed by the final report.  No database is involved: the
engine is driven directly with an in-memory ``SessionState``.

Respondent profiles:
    random    uniform random Likert answers
    adhd      strong agreement with attention / executive-function items
    neutral   always answers 3 (exercises central style and quality flags)

Usage::

    # Default run (standard tier, random respondent)
    python scripts/simulate_session.py

    # Reproducible deep-tier run with an ADHD-leaning respondent
    python scripts/simulate_session.py -t deep -p adhd --seed 42

    # Print the report as JSON only
    python scripts/simulate_session.py --json -q
"""

from __future__ import annotations

import argparse
import json
import logging
import random
from pathlib import Path

from neurlyn_engine import AssessmentEngine, InMemoryCatalog, RulesetStore
from neurlyn_engine.config import load_settings
from neurlyn_engine.models import Question, Report, ResponseEvent

_REPO_ROOT = Path(__file__).resolve().parent.parent
_DEFAULT_CATALOG = _REPO_ROOT / "v1" / "questions.yaml"

_DOUBLE_LINE = "=" * 72
_SINGLE_LINE = "-" * 72

# Subcategories an ADHD-leaning respondent strongly agrees with
_ADHD_SUBCATEGORIES = {
    "executive_function",
    "impulsivity",
    "adhd_comprehensive",
    "rejection_sensitivity",
    "attention_style",
}

_quiet = False


def _print(*args, **kwargs) -> None:
    """Print wrapper that respects the --quiet flag."""
    if not _quiet:
        print(*args, **kwargs)


# ---------------------------------------------------------------------------
# Mock respondent
# ---------------------------------------------------------------------------

def mock_answer(q: Question, profile: str, rng: random.Random) -> int:
    """Choose a 1-5 answer for ``q`` according to the respondent profile."""
    if profile == "neutral":
        return 3
    if profile == "adhd":
        if q.subcategory in _ADHD_SUBCATEGORIES:
            return rng.choice([4, 5])
        return rng.choice([2, 3, 3, 4])
    return rng.randint(1, 5)


def mock_time_ms(rng: random.Random) -> int:
    return rng.randint(1500, 12000)


# ---------------------------------------------------------------------------
# Logging helpers
# ---------------------------------------------------------------------------

def log_batch(index: int, phase: str, batch: list[Question], answers: list[ResponseEvent]) -> None:
    _print(f"\n{_SINGLE_LINE}")
    _print(f" BATCH {index} ({phase})")
    _print(_SINGLE_LINE)
    for q, r in zip(batch, answers):
        _print(f"  [{q.id:<7s}] {q.category}/{q.subcategory or '-'}: {q.text}")
        _print(f"            answer={r.raw_value} score={r.score} time={r.response_time_ms}ms")


def log_report(report: Report) -> None:
    _print(f"\n{_DOUBLE_LINE}")
    _print(" REPORT")
    _print(_DOUBLE_LINE)
    _print(f"  responses:       {report.response_count}")
    _print(f"  archetype:       {report.archetype.name} ({report.archetype.tagline})")
    _print(f"  primary profile: {report.primary_profile}")
    _print(f"  pathways:        {', '.join(report.pathways) or '-'}")
    _print(f"  confidence:      {report.confidence:.2f}")
    _print(f"  style:           {report.response_style} (consistency {report.consistency})")
    _print(f"  data quality:    {report.quality.data_quality}")
    _print("\n  Traits:")
    for name, ts in sorted(report.trait_scores.items()):
        desc = f" - {ts.description}" if ts.description else ""
        _print(f"    {name:<22s} raw={ts.raw:5.2f} pct={ts.percentile:3d} {ts.level}{desc}")
    if report.styles:
        _print("\n  Styles:")
        for name, label in report.styles.items():
            _print(f"    {name:<22s} {label}")
    if report.resilience_factors:
        _print(f"\n  Resilience factors: {', '.join(report.resilience_factors)}")
    if report.hidden_patterns:
        _print("\n  Hidden patterns:")
        for hp in report.hidden_patterns:
            _print(f"    {hp.type} ({hp.confidence})")


# ---------------------------------------------------------------------------
# Main simulation
# ---------------------------------------------------------------------------

def run_simulation(
    tier: str,
    profile: str,
    seed: int | None,
    catalog_path: Path,
    as_json: bool = False,
) -> Report:
    """Drive one session to completion and return its report."""
    rng = random.Random(seed)
    settings = load_settings()
    store = RulesetStore(settings.ruleset_dir).load()
    catalog = InMemoryCatalog.from_yaml(catalog_path)
    engine = AssessmentEngine(store, catalog, settings, rng=random.Random(seed))

    state = engine.start_session(tier)
    _print(_DOUBLE_LINE)
    _print(f" SESSION {state.session_id}  tier={tier} budget={state.total_budget}")
    _print(_DOUBLE_LINE)

    batch = engine.current_batch(state)
    index = 1
    while batch:
        answers = [
            engine.build_response(q.id, mock_answer(q, profile, rng), mock_time_ms(rng))
            for q in batch
        ]
        log_batch(index, state.phase, batch, answers)
        result = engine.advance(state, answers)
        if result.activated_pathways:
            _print(f"  >> pathways activated: {', '.join(result.activated_pathways)}")
        if result.exhausted:
            _print("  >> catalog exhausted")
        if result.is_complete:
            break
        batch = result.next_batch
        index += 1

    report = engine.finalize(state)
    if as_json:
        print(json.dumps(report.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        log_report(report)
    return report


def main() -> None:
    global _quiet
    parser = argparse.ArgumentParser(
        description="Simulate an adaptive assessment session with a mock respondent.",
    )
    parser.add_argument(
        "-t", "--tier",
        choices=["quick", "standard", "deep"],
        default="standard",
        help="Assessment tier (default: standard)",
    )
    parser.add_argument(
        "-p", "--profile",
        choices=["random", "adhd", "neutral"],
        default="random",
        help="Mock respondent profile (default: random)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for answers and initial question sampling",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=_DEFAULT_CATALOG,
        help="Question catalog YAML (default: v1/questions.yaml)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the final report as JSON",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress the audit log",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show engine debug logging",
    )
    args = parser.parse_args()

    _quiet = args.quiet
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.quiet:
        logging.getLogger("neurlyn_engine").setLevel(logging.CRITICAL)

    run_simulation(args.tier, args.profile, args.seed, args.catalog, args.json)


if __name__ == "__main__":
    main()
