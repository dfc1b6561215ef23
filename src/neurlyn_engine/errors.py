"""Engine exception taxonomy.

``ValidationError`` and ``EmptyResponseSet`` subclass ``ValueError`` so a
service layer that maps ``ValueError`` to HTTP 400 keeps working without
knowing about engine-specific types.

Recoverable conditions (a missing or garbled score, an unknown trait key
on a single response) are never raised; they are logged and counted in
the report's quality metrics.
"""

from __future__ import annotations


class AssessmentError(Exception):
    """Base class for all engine errors."""


class ValidationError(AssessmentError, ValueError):
    """Malformed tier, unknown pathway id, unknown indicator/trait, bad answer batch."""


class ExhaustedCatalog(AssessmentError):
    """The selector found no unused candidate even after broadening its query.

    A short but non-empty batch is not an error; the selector returns it
    with ``exhausted=True`` instead.
    """

    def __init__(self, requested: int) -> None:
        self.requested = requested
        super().__init__(f"Question catalog exhausted: requested {requested}, found none")


class EmptyResponseSet(AssessmentError, ValueError):
    """A report was requested for a session with zero responses."""
