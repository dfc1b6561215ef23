"""neurlyn_db — PostgreSQL persistence layer for assessment sessions.

This package provides the ORM model, async engine factory, and repository
for creating, saving, and completing adaptive assessment sessions.  The
engine package stays storage-agnostic; only the async service in
``neurlyn_engine.service`` talks to this layer.
"""

from neurlyn_db.config import DatabaseSettings, load_database_settings
from neurlyn_db.models.session import AssessmentSessionRow
from neurlyn_db.models.enums import SessionStatus
from neurlyn_db.engine import create_schema, dispose_engine, get_engine, get_session_factory
from neurlyn_db.repository import SessionRepository

__all__ = [
    "AssessmentSessionRow",
    "DatabaseSettings",
    "SessionStatus",
    "create_schema",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "load_database_settings",
    "SessionRepository",
]
