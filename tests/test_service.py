"""AssessmentService tests with mocked DB layer.

Uses MockSessionRow (a plain dataclass mimicking AssessmentSessionRow) and
MockRepository (in-memory dict implementing the SessionRepository interface)
to test load → engine step → save without a real database.

Mock strategy:
  - MockSessionRow has the same attributes as AssessmentSessionRow but no
    SQLAlchemy dependency.  The service reads/writes attributes directly.
  - MockRepository implements every async method the service calls,
    mutating MockSessionRow in-place just like the real repository.
  - AsyncMock stands in for AsyncSession (db); flush() is a no-op.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest

from neurlyn_db.models.enums import SessionStatus
from neurlyn_engine.config import EngineSettings
from neurlyn_engine.engine import AssessmentEngine
from neurlyn_engine.errors import EmptyResponseSet, ValidationError
from neurlyn_engine.models import Report, SessionState
from neurlyn_engine.service import AssessmentService


# =====================================================================
# Mock infrastructure
# =====================================================================


@dataclass
class MockSessionRow:
    """In-memory stand-in for the AssessmentSessionRow ORM model."""

    session_id: str = "sess1"
    tier: str = "standard"
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    status: SessionStatus = SessionStatus.IN_PROGRESS
    response_count: int = 0
    state: dict[str, Any] = field(default_factory=dict)
    report: dict[str, Any] | None = None
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    completed_at: datetime | None = None


class MockRepository:
    """In-memory SessionRepository replacement keyed by session_id."""

    def __init__(self):
        self._sessions: dict[str, MockSessionRow] = {}

    async def create_session(self, db, *, session_id, tier, state):
        row = MockSessionRow(
            session_id=session_id,
            tier=tier,
            state=state,
            response_count=len(state.get("responses", [])),
        )
        self._sessions[session_id] = row
        return row

    async def get_by_session_id(self, db, session_id):
        return self._sessions.get(session_id)

    async def save_state(self, db, row, state):
        row.state = dict(state)
        row.response_count = len(state.get("responses", []))
        row.updated_at = datetime.now(timezone.utc)
        return row

    async def complete_session(self, db, row, state, report):
        now = datetime.now(timezone.utc)
        row.state = dict(state)
        row.response_count = len(state.get("responses", []))
        row.status = SessionStatus.COMPLETED
        row.report = report
        row.completed_at = now
        row.updated_at = now
        return row


# =====================================================================
# Fixtures
# =====================================================================


@pytest.fixture
def mock_repo():
    """Fresh MockRepository for each test."""
    return MockRepository()


@pytest.fixture
def service(store, catalog, mock_repo):
    """AssessmentService with mocked repository."""
    engine = AssessmentEngine(store, catalog, EngineSettings(sampling_seed=2))
    svc = AssessmentService(engine)
    svc._repo = mock_repo
    return svc


@pytest.fixture
def mock_db():
    """AsyncMock standing in for AsyncSession — flush/commit are no-ops."""
    return AsyncMock()


def _answers(service, state, score=4):
    return [service._engine.build_response(qid, score) for qid in state.pending_question_ids]


# =====================================================================
# Lifecycle
# =====================================================================


class TestServiceLifecycle:
    @pytest.mark.asyncio
    async def test_start_stores_state(self, service, mock_repo, mock_db):
        """start() persists the initial state as JSON."""
        state = await service.start(mock_db, "standard", session_id="s1")
        row = mock_repo._sessions["s1"]
        assert row.tier == "standard"
        assert row.status == SessionStatus.IN_PROGRESS
        assert row.response_count == 0
        assert row.state["pending_question_ids"] == state.pending_question_ids

    @pytest.mark.asyncio
    async def test_get_state_round_trips(self, service, mock_db):
        state = await service.start(mock_db, "quick", session_id="s1")
        loaded = await service.get_state(mock_db, "s1")
        assert isinstance(loaded, SessionState)
        assert loaded == state

    @pytest.mark.asyncio
    async def test_advance_saves_updated_state(self, service, mock_repo, mock_db):
        state = await service.start(mock_db, "standard", session_id="s1")
        result = await service.advance(mock_db, "s1", _answers(service, state))
        row = mock_repo._sessions["s1"]
        assert row.response_count == len(state.pending_question_ids)
        assert row.state["pending_question_ids"] == [q.id for q in result.next_batch]
        assert row.state["active_pathways"] == result.active_pathways

    @pytest.mark.asyncio
    async def test_consecutive_advances_use_stored_state(self, service, mock_db):
        """Each call reloads the state; nothing is cached on the service."""
        await service.start(mock_db, "quick", session_id="s1")
        for _ in range(2):
            state = await service.get_state(mock_db, "s1")
            await service.advance(mock_db, "s1", _answers(service, state, 3))
        final = await service.get_state(mock_db, "s1")
        assert len(final.responses) == 8 + 3

    @pytest.mark.asyncio
    async def test_finalize_completes_row(self, service, mock_repo, mock_db):
        state = await service.start(mock_db, "quick", session_id="s1")
        await service.advance(mock_db, "s1", _answers(service, state))
        report = await service.finalize(mock_db, "s1")
        row = mock_repo._sessions["s1"]
        assert row.status == SessionStatus.COMPLETED
        assert row.completed_at is not None
        assert row.state["completed"] is True
        assert Report.model_validate(row.report) == report

    @pytest.mark.asyncio
    async def test_finalize_twice_returns_stored_report(self, service, mock_db):
        state = await service.start(mock_db, "quick", session_id="s1")
        await service.advance(mock_db, "s1", _answers(service, state))
        first = await service.finalize(mock_db, "s1")
        second = await service.finalize(mock_db, "s1")
        assert first == second


# =====================================================================
# Errors
# =====================================================================


class TestServiceErrors:
    @pytest.mark.asyncio
    async def test_unknown_session(self, service, mock_db):
        with pytest.raises(ValidationError, match="not found"):
            await service.get_state(mock_db, "missing")

    @pytest.mark.asyncio
    async def test_advance_completed_session(self, service, mock_db):
        state = await service.start(mock_db, "quick", session_id="s1")
        await service.advance(mock_db, "s1", _answers(service, state))
        await service.finalize(mock_db, "s1")
        with pytest.raises(ValidationError, match="already completed"):
            await service.advance(mock_db, "s1", [service._engine.build_response("BF_O1", 3)])

    @pytest.mark.asyncio
    async def test_rejected_answers_leave_row_untouched(self, service, mock_repo, mock_db):
        state = await service.start(mock_db, "quick", session_id="s1")
        before = dict(mock_repo._sessions["s1"].state)
        qid = state.pending_question_ids[0]
        dup = [service._engine.build_response(qid, 3), service._engine.build_response(qid, 3)]
        with pytest.raises(ValidationError):
            await service.advance(mock_db, "s1", dup)
        assert mock_repo._sessions["s1"].state == before

    @pytest.mark.asyncio
    async def test_finalize_without_responses(self, service, mock_repo, mock_db):
        await service.start(mock_db, "quick", session_id="s1")
        with pytest.raises(EmptyResponseSet):
            await service.finalize(mock_db, "s1")
        assert mock_repo._sessions["s1"].status == SessionStatus.IN_PROGRESS
