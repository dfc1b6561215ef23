"""InMemoryCatalog — immutable snapshot implementation of ``QuestionCatalog``.

The catalog holds its questions in a tuple.  Readers grab the current
tuple reference and scan it; :meth:`InMemoryCatalog.refresh` builds a new
tuple and swaps the reference in a single assignment, so concurrent
sessions never see a half-updated pool and never need a lock.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from neurlyn_engine.errors import ValidationError
from neurlyn_engine.interfaces import QuestionCatalog
from neurlyn_engine.models.question import CatalogFilter, Question
from neurlyn_engine.ruleset import load_yaml

logger = logging.getLogger(__name__)


class InMemoryCatalog(QuestionCatalog):
    """Question pool held in memory as an immutable snapshot."""

    def __init__(self, questions: Iterable[Question] = ()) -> None:
        self._snapshot: tuple[Question, ...] = ()
        self._index: dict[str, Question] = {}
        self.refresh(questions)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "InMemoryCatalog":
        """Load a catalog file: a YAML list of question mappings."""
        questions: list[Question] = []
        for raw in load_yaml(path) or []:
            try:
                questions.append(Question(**raw))
            except PydanticValidationError as exc:
                raise ValidationError(
                    f"Invalid question {raw.get('id')!r} in {path}: {exc}"
                ) from exc
        return cls(questions)

    def refresh(self, questions: Iterable[Question]) -> None:
        """Replace the pool with a new snapshot.

        Raises:
            ValidationError: if two questions share an id.
        """
        snapshot = tuple(questions)
        index: dict[str, Question] = {}
        for q in snapshot:
            if q.id in index:
                raise ValidationError(f"Duplicate question id in catalog: {q.id!r}")
            index[q.id] = q
        # Single reference swap; readers holding the old tuple are unaffected
        self._snapshot, self._index = snapshot, index
        logger.info("Question catalog refreshed: %d questions", len(snapshot))

    def find(self, query: CatalogFilter) -> list[Question]:
        snapshot = self._snapshot
        result = [q for q in snapshot if query.matches(q)]
        if query.limit is not None:
            result = result[: query.limit]
        return result

    def get(self, question_id: str) -> Optional[Question]:
        return self._index.get(question_id)

    def __len__(self) -> int:
        return len(self._snapshot)

    def __iter__(self):
        return iter(self._snapshot)
