"""AssessmentService — async, database-backed wrapper around AssessmentEngine.

Each call loads the ``SessionState`` from the session store, runs the
synchronous engine step, saves the state back, and returns the result.
Nothing is cached between calls.

The service accepts an ``AsyncSession`` from the caller so that the caller
(typically a web handler) controls transaction boundaries::

    service = AssessmentService(engine)
    async with get_session_factory()() as db:
        state = await service.start(db, "standard")
        await db.commit()
"""

from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from neurlyn_db.models.enums import SessionStatus
from neurlyn_db.models.session import AssessmentSessionRow
from neurlyn_db.repository import SessionRepository

from neurlyn_engine.engine import AssessmentEngine
from neurlyn_engine.errors import ValidationError
from neurlyn_engine.models.report import Report
from neurlyn_engine.models.response import ResponseEvent
from neurlyn_engine.models.session import AdvanceResult, SessionState

logger = logging.getLogger(__name__)


class AssessmentService:
    """Persists engine sessions through :class:`SessionRepository`.

    Args:
        engine: a configured :class:`AssessmentEngine`
    """

    def __init__(self, engine: AssessmentEngine) -> None:
        self._engine = engine
        self._repo = SessionRepository()

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def start(
        self,
        db: AsyncSession,
        tier: str,
        *,
        session_id: str | None = None,
    ) -> SessionState:
        """Start a session and store it.  The caller must ``await db.commit()``."""
        state = self._engine.start_session(tier, session_id=session_id)
        await self._repo.create_session(
            db,
            session_id=state.session_id,
            tier=state.tier,
            state=state.model_dump(mode="json"),
        )
        return state

    async def get_state(self, db: AsyncSession, session_id: str) -> SessionState:
        """Load the stored state for ``session_id``."""
        row = await self._load_row(db, session_id)
        return SessionState.model_validate(row.state)

    async def advance(
        self,
        db: AsyncSession,
        session_id: str,
        answered_batch: Sequence[ResponseEvent],
    ) -> AdvanceResult:
        """Record answers for a stored session and save the updated state."""
        row = await self._load_row(db, session_id)
        if row.status == SessionStatus.COMPLETED:
            raise ValidationError(f"Session {session_id} is already completed")

        state = SessionState.model_validate(row.state)
        result = self._engine.advance(state, answered_batch)
        await self._repo.save_state(db, row, state.model_dump(mode="json"))
        return result

    async def finalize(self, db: AsyncSession, session_id: str) -> Report:
        """Score a stored session and mark it completed.

        A session that was already finalized returns its stored report.
        """
        row = await self._load_row(db, session_id)
        if row.status == SessionStatus.COMPLETED and row.report is not None:
            return Report.model_validate(row.report)

        state = SessionState.model_validate(row.state)
        report = self._engine.finalize(state)
        await self._repo.complete_session(
            db,
            row,
            state.model_dump(mode="json"),
            report.model_dump(mode="json"),
        )
        return report

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _load_row(self, db: AsyncSession, session_id: str) -> AssessmentSessionRow:
        row = await self._repo.get_by_session_id(db, session_id)
        if row is None:
            raise ValidationError(f"Session {session_id} not found")
        return row
