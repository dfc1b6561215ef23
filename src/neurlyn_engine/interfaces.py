"""Abstract interfaces for the engine's external collaborators.

The question catalog is owned outside the engine.  Any accessor that
implements :class:`QuestionCatalog` can be plugged into the engine: the
bundled :class:`~neurlyn_engine.catalog.InMemoryCatalog`, a database-backed
accessor, or a test double.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from neurlyn_engine.models.question import CatalogFilter, Question


class QuestionCatalog(ABC):
    """Read-only queries over the question pool.

    Implementations must be safe for concurrent reads without locking and
    must return matches in a stable catalog order, since the selector uses
    that order to break priority ties.
    """

    @abstractmethod
    def find(self, query: CatalogFilter) -> list[Question]:
        """Return questions matching every constraint in ``query``, in catalog order."""

    @abstractmethod
    def get(self, question_id: str) -> Optional[Question]:
        """Look up a single question by id, or ``None`` if it is not in the catalog."""
