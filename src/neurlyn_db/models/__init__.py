"""ORM models for neurlyn_db."""

from neurlyn_db.models.base import Base
from neurlyn_db.models.enums import SessionStatus
from neurlyn_db.models.session import AssessmentSessionRow

__all__ = ["Base", "SessionStatus", "AssessmentSessionRow"]
