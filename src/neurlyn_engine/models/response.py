"""Answered-item record and the response scale it is scored on.

A ``ResponseEvent`` is appended once per answer and never mutated.  The
``score`` is always present once the model is built: a missing score is
derived from ``raw_value`` (Likert label or numeric string).  A score that
cannot be read, or falls outside the scale, defaults to the scale midpoint
with ``coerced=True`` so the quality metrics can count it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from neurlyn_engine.constants import LABEL_SCORES

from .question import Question

logger = logging.getLogger(__name__)


class ResponseScale(BaseModel):
    """Score range of an instrument.  The default is a 1-5 Likert scale."""

    model_config = ConfigDict(frozen=True)

    minimum: int = 1
    maximum: int = 5
    midpoint: int = 3
    # Scores at or above this are in the top category (indicator-bearing)
    high: int = 4

    def reverse(self, score: int) -> int:
        return self.minimum + self.maximum - score


LIKERT = ResponseScale()

RawValue = Union[str, int, float, None]


def _score_from_raw(raw: Any, scale: ResponseScale = LIKERT) -> int | None:
    """Convert a raw answer to a score, or None if it cannot be interpreted.

    Values outside ``[scale.minimum, scale.maximum]`` count as unusable.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        if raw != raw:  # NaN
            return None
        score = int(round(raw))
    else:
        text = str(raw).strip()
        mapped = LABEL_SCORES.get(text.lower())
        if mapped is not None:
            return mapped
        try:
            score = int(round(float(text)))
        except (ValueError, OverflowError):
            return None
    if not scale.minimum <= score <= scale.maximum:
        return None
    return score


class ResponseEvent(BaseModel):
    """One answered item within a session."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    raw_value: RawValue = None
    score: int
    response_time_ms: Optional[int] = None
    category: str = ""
    subcategory: Optional[str] = None
    # Copied from the question at answer time
    trait_weights: dict[str, float] = Field(default_factory=dict)
    personalization_markers: list[str] = Field(default_factory=list)
    # True when the score had to be defaulted to the scale midpoint
    coerced: bool = False

    @model_validator(mode="before")
    @classmethod
    def _fill_score(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        given = data.get("score")
        if given is None:
            score = _score_from_raw(data.get("raw_value"))
        else:
            score = _score_from_raw(given)
        if score is None:
            logger.warning(
                "Response to %s has no usable score (score=%r, raw_value=%r); using midpoint %d",
                data.get("question_id"),
                given,
                data.get("raw_value"),
                LIKERT.midpoint,
            )
            score = LIKERT.midpoint
            data["coerced"] = True
        data["score"] = score
        return data

    @classmethod
    def from_question(
        cls,
        question: Question,
        raw_value: RawValue,
        response_time_ms: int | None = None,
        *,
        scale: ResponseScale = LIKERT,
    ) -> "ResponseEvent":
        """Build a response from a catalog question and the user's raw answer.

        Copies the question's category, subcategory, trait weights and
        markers, and applies reverse scoring when the question declares it.
        """
        score = _score_from_raw(raw_value, scale)
        coerced = False
        if score is None:
            logger.warning(
                "Unscorable answer %r for %s; using midpoint %d",
                raw_value,
                question.id,
                scale.midpoint,
            )
            score = scale.midpoint
            coerced = True
        elif question.reverse_scored:
            score = scale.reverse(score)

        return cls(
            question_id=question.id,
            raw_value=raw_value,
            score=score,
            response_time_ms=response_time_ms,
            category=question.category,
            subcategory=question.subcategory,
            trait_weights=dict(question.trait_weights),
            personalization_markers=list(question.personalization_markers),
            coerced=coerced,
        )
